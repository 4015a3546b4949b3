"""Transport protocol for the assistant's line-oriented text channel."""

from __future__ import annotations

from collections.abc import Callable
from typing import Protocol

from aidersync.terminal.launch import LaunchSpec

ExitCallback = Callable[[int | None], None]
OutputHandler = Callable[[str], None]


class Transport(Protocol):
    """A send-text pipe into one running assistant process.

    Implementations:
    - SubprocessTransport: local shell via asyncio subprocess

    There is no structured reply channel. Output, when a transport can capture
    it, is delivered best-effort to registered output handlers.
    """

    @property
    def is_alive(self) -> bool:
        """True while the process accepts input."""
        ...

    async def start(self, launch: LaunchSpec, on_exit: ExitCallback) -> None:
        """Spawn the process.

        Args:
            launch: Working directory, environment, shell and the assistant
                command line to run in it.
            on_exit: Called once if the process ends on its own (not via dispose).
        """
        ...

    def send_text(self, text: str, add_newline: bool = True) -> None:
        """Write text without waiting for any response.

        Raises:
            TransportClosedError: If the process is gone.
        """
        ...

    async def dispose(self) -> None:
        """Terminate the process. Idempotent; never triggers on_exit."""
        ...

    def on_output(self, handler: OutputHandler) -> None: ...

    def off_output(self, handler: OutputHandler) -> None: ...
