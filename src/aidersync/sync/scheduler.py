"""Timer scheduling for debounced work.

All callbacks run on the event loop thread. A ``Debouncer`` holds at most one
pending timer: triggering again cancels and replaces it, so a burst of events
produces a single call after the burst goes quiet.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from typing import Protocol

from aidersync.logging import get_logger

log = get_logger("scheduler")


class TimerHandle(Protocol):
    def cancel(self) -> None: ...


class Scheduler(Protocol):
    """Something that can run a callback after a delay in seconds."""

    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle: ...


class AsyncioScheduler:
    """Scheduler backed by the running event loop's ``call_later``."""

    def __init__(self, loop: asyncio.AbstractEventLoop | None = None) -> None:
        self._loop = loop

    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle:
        loop = self._loop or asyncio.get_running_loop()
        return loop.call_later(delay, callback)


class Debouncer:
    """Run ``callback`` once, ``delay`` seconds after the last trigger."""

    def __init__(self, scheduler: Scheduler, delay: float, callback: Callable[[], None]) -> None:
        self._scheduler = scheduler
        self._delay = delay
        self._callback = callback
        self._handle: TimerHandle | None = None

    @property
    def pending(self) -> bool:
        return self._handle is not None

    @property
    def delay(self) -> float:
        return self._delay

    @delay.setter
    def delay(self, value: float) -> None:
        self._delay = max(0.0, value)

    def trigger(self) -> None:
        """(Re)start the timer; any pending run is replaced."""
        self.cancel()
        self._handle = self._scheduler.call_later(self._delay, self._fire)

    def cancel(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    def flush(self) -> None:
        """Run now if a call is pending."""
        if self._handle is not None:
            self.cancel()
            self._callback()

    def _fire(self) -> None:
        self._handle = None
        try:
            self._callback()
        except Exception as e:
            log.error("Debounced callback failed: %s", e)
