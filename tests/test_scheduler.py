"""Tests for the debouncer and the asyncio scheduler."""

from __future__ import annotations

import asyncio

import pytest

from aidersync.sync.scheduler import AsyncioScheduler, Debouncer
from tests.utils import ManualScheduler


class TestDebouncer:
    """Tests for Debouncer."""

    def test_burst_collapses_to_one_call(self, scheduler: ManualScheduler) -> None:
        calls: list[float] = []
        debouncer = Debouncer(scheduler, 0.3, lambda: calls.append(scheduler.now))

        for _ in range(5):
            debouncer.trigger()
            scheduler.advance(0.1)

        assert calls == []
        scheduler.advance(0.3)
        assert len(calls) == 1
        # Fired delay after the last trigger (at 0.4)
        assert calls[0] == pytest.approx(0.7)

    def test_separate_bursts_fire_separately(self, scheduler: ManualScheduler) -> None:
        calls: list[int] = []
        debouncer = Debouncer(scheduler, 0.3, lambda: calls.append(1))

        debouncer.trigger()
        scheduler.advance(0.5)
        debouncer.trigger()
        scheduler.advance(0.5)

        assert len(calls) == 2

    def test_cancel(self, scheduler: ManualScheduler) -> None:
        calls: list[int] = []
        debouncer = Debouncer(scheduler, 0.3, lambda: calls.append(1))

        debouncer.trigger()
        assert debouncer.pending
        debouncer.cancel()
        scheduler.advance(1.0)

        assert calls == []
        assert not debouncer.pending

    def test_flush_runs_pending_now(self, scheduler: ManualScheduler) -> None:
        calls: list[int] = []
        debouncer = Debouncer(scheduler, 0.3, lambda: calls.append(1))

        debouncer.flush()
        assert calls == []

        debouncer.trigger()
        debouncer.flush()
        scheduler.advance(1.0)
        assert calls == [1]

    def test_callback_error_is_logged(self, scheduler: ManualScheduler) -> None:
        def boom() -> None:
            raise RuntimeError("boom")

        debouncer = Debouncer(scheduler, 0.1, boom)
        debouncer.trigger()
        scheduler.advance(0.2)

        assert not debouncer.pending

    def test_negative_delay_clamped(self, scheduler: ManualScheduler) -> None:
        debouncer = Debouncer(scheduler, 0.3, lambda: None)
        debouncer.delay = -1
        assert debouncer.delay == 0.0


class TestAsyncioScheduler:
    """Tests for AsyncioScheduler."""

    @pytest.mark.asyncio
    async def test_debounce_on_event_loop(self) -> None:
        fired = asyncio.Event()
        calls: list[int] = []

        def callback() -> None:
            calls.append(1)
            fired.set()

        debouncer = Debouncer(AsyncioScheduler(), 0.01, callback)
        debouncer.trigger()
        debouncer.trigger()

        await asyncio.wait_for(fired.wait(), timeout=1.0)
        await asyncio.sleep(0.05)
        assert calls == [1]
