"""Shared test doubles for aidersync tests."""

from __future__ import annotations

from collections.abc import Callable

from aidersync.errors import TransportClosedError
from aidersync.terminal.launch import LaunchSpec
from aidersync.terminal.protocol import ExitCallback, OutputHandler


class FakeTransport:
    """In-memory transport that records every write.

    ``exit()`` simulates the process ending on its own.
    """

    def __init__(self, alive: bool = False) -> None:
        self.alive = alive
        self.launch: LaunchSpec | None = None
        self.writes: list[tuple[str, bool]] = []
        self.disposed = False
        self.handlers: list[OutputHandler] = []
        self._on_exit: ExitCallback | None = None

    @property
    def is_alive(self) -> bool:
        return self.alive

    @property
    def lines(self) -> list[str]:
        """Text of every write, startup command line included."""
        return [text for text, _ in self.writes]

    @property
    def commands(self) -> list[str]:
        """Writes after the startup command line."""
        return self.lines[1:]

    async def start(self, launch: LaunchSpec, on_exit: ExitCallback) -> None:
        self.launch = launch
        self._on_exit = on_exit
        self.alive = True
        if launch.command_line:
            self.writes.append((launch.command_line, True))

    def send_text(self, text: str, add_newline: bool = True) -> None:
        if not self.alive:
            raise TransportClosedError("fake transport closed")
        self.writes.append((text, add_newline))

    async def dispose(self) -> None:
        self.alive = False
        self.disposed = True

    def on_output(self, handler: OutputHandler) -> None:
        self.handlers.append(handler)

    def off_output(self, handler: OutputHandler) -> None:
        self.handlers = [h for h in self.handlers if h is not handler]

    def emit(self, text: str) -> None:
        for handler in list(self.handlers):
            handler(text)

    def exit(self, returncode: int | None = 0) -> None:
        self.alive = False
        assert self._on_exit is not None
        self._on_exit(returncode)


class FakeTransportFactory:
    """Transport factory remembering every transport it built."""

    def __init__(self) -> None:
        self.created: list[FakeTransport] = []

    def __call__(self) -> FakeTransport:
        transport = FakeTransport()
        self.created.append(transport)
        return transport

    @property
    def last(self) -> FakeTransport:
        return self.created[-1]


class ManualTimer:
    def __init__(self, when: float, callback: Callable[[], None]) -> None:
        self.when = when
        self.callback = callback
        self.cancelled = False
        self.fired = False

    def cancel(self) -> None:
        self.cancelled = True


class ManualScheduler:
    """Scheduler whose clock only moves when a test calls ``advance``."""

    def __init__(self) -> None:
        self.now = 0.0
        self._timers: list[ManualTimer] = []

    def call_later(self, delay: float, callback: Callable[[], None]) -> ManualTimer:
        timer = ManualTimer(self.now + delay, callback)
        self._timers.append(timer)
        return timer

    @property
    def pending(self) -> list[ManualTimer]:
        return [t for t in self._timers if not t.cancelled and not t.fired]

    def advance(self, seconds: float) -> None:
        """Move the clock forward, firing due timers in order."""
        target = self.now + seconds
        while True:
            due = [t for t in self.pending if t.when <= target + 1e-9]
            if not due:
                break
            timer = min(due, key=lambda t: t.when)
            self.now = max(self.now, timer.when)
            timer.fired = True
            timer.callback()
        self.now = target
