"""Exception types raised by aidersync.

Only session start reports failures to the caller. Sends and reconciliation
passes are best-effort and log instead of raising.
"""

from __future__ import annotations

from dataclasses import dataclass


class AiderSyncError(Exception):
    """Base class for aidersync errors."""


@dataclass
class ConfigurationError(AiderSyncError):
    """Raised when a session cannot start because configuration is incomplete.

    No process is spawned and no session object is retained when this is raised.
    """

    message: str
    setting: str | None = None  # Offending setting, e.g. "aider.anthropic_api_key"

    def __str__(self) -> str:
        if self.setting:
            return f"{self.message} (setting: {self.setting})"
        return self.message


@dataclass
class SessionStartError(AiderSyncError):
    """Raised when the assistant process could not be spawned."""

    command: str
    reason: str

    def __str__(self) -> str:
        return f"Failed to start '{self.command}': {self.reason}"


class TransportClosedError(AiderSyncError):
    """Raised by a transport asked to write after its process has gone.

    CommandChannel absorbs this; callers never see it.
    """
