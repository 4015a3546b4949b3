"""Single-writer command channel to the assistant process.

Every command is exactly one line. Paths are rendered relative to the
workspace root with forward slashes and double-quoted when they contain
whitespace::

    channel.send("/add", ["/proj/src/main.py", "/proj/my file.ts"])
    # -> /add src/main.py "my file.ts"

Sends are fire-and-forget. While no transport is attached (no active session)
they are silently dropped.
"""

from __future__ import annotations

import re
import sys
from collections.abc import Iterable

from aidersync.errors import AiderSyncError
from aidersync.logging import get_logger
from aidersync.paths import PathResolver
from aidersync.terminal.protocol import Transport

log = get_logger("channel")

_COLLAPSE = re.compile(r"[\s\x00-\x1f\x7f]+")
_WHITESPACE = re.compile(r"\s")


def format_path(path: str, root: str) -> str:
    """Root-relative display path, quoted if it contains whitespace."""
    display = PathResolver.to_display_path(path, root)
    return f'"{display}"' if _WHITESPACE.search(display) else display


def format_command(command: str, paths: Iterable[str] | None, root: str) -> str:
    """Build the single line sent for ``command`` and optional ``paths``."""
    line = command
    if paths is not None:
        formatted = " ".join(format_path(p, root) for p in paths)
        line = f"{command} {formatted}"
    return _COLLAPSE.sub(" ", line).strip()


class CommandChannel:
    """Formats commands and writes them to whichever transport is attached."""

    def __init__(self) -> None:
        self._transport: Transport | None = None
        self._root: str | None = None

    @property
    def root(self) -> str | None:
        return self._root

    @property
    def is_attached(self) -> bool:
        return self._transport is not None and self._transport.is_alive

    def attach(self, transport: Transport, root: str) -> None:
        self._transport = transport
        self._root = root

    def detach(self) -> None:
        self._transport = None
        self._root = None

    def _write(self, text: str, add_newline: bool) -> bool:
        transport = self._transport
        if transport is None:
            log.debug("No session, dropping %r", text)
            return False
        try:
            transport.send_text(text, add_newline)
        except (AiderSyncError, OSError) as e:
            log.debug("Transport gone, dropping %r: %s", text, e)
            return False
        return True

    def send(self, command: str, paths: Iterable[str] | None = None) -> bool:
        """Send one collapsed command line. Returns False when nothing was written."""
        if self._transport is None or self._root is None:
            log.debug("No session, dropping %r", command)
            return False
        line = format_command(command, paths, self._root)
        log.debug("send: %s", line)
        return self._write(line, True)

    def send_raw(self, line: str) -> bool:
        """Send ``line`` verbatim plus a line terminator, without collapsing."""
        return self._write(line, True)

    def send_enter(self) -> bool:
        """Send the bare confirm keystroke used to end dictation."""
        if sys.platform == "win32":
            return self._write("\r", False)
        return self._write("", True)
