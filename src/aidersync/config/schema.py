"""Configuration schema dataclasses for aidersync.

All fields have defaults so partial configs merge together. Example
``.aidersync/config.yaml``::

    aider:
      command_line: aider
      model: --sonnet
      startup_args: --no-auto-commits
      feature_flags: [--dark-mode]
      ignore_files:
        - '^node_modules/'
        - '\\.lock$'
    sync:
      debounce_ms: 300
    logging:
      verbose: 3
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

CUSTOM_MODEL = "custom"


@dataclass
class AiderConfig:
    """How to launch the assistant process."""

    command_line: str = "aider"
    working_directory: str | None = None  # Overrides the start directory
    model: str = "--sonnet"  # "--sonnet", "--opus", "--4o" or "custom"
    startup_args: str = ""  # Passed through verbatim
    feature_flags: list[str] = field(default_factory=list)
    ignore_files: list[str] = field(default_factory=list)  # Regexes on root-relative paths
    openai_api_key: str | None = None  # Falls back to OPENAI_API_KEY
    anthropic_api_key: str | None = None  # Falls back to ANTHROPIC_API_KEY
    env: dict[str, str] = field(default_factory=dict)  # Extra process environment

    def launch_signature(self) -> tuple[Any, ...]:
        """Settings whose change requires restarting a running session."""
        return (
            self.command_line,
            self.model,
            self.startup_args,
            tuple(self.feature_flags),
            self.openai_api_key,
            self.anthropic_api_key,
            tuple(sorted(self.env.items())),
        )


@dataclass
class SyncConfig:
    """Reconciliation and dictation timing."""

    debounce_ms: int = 300
    dictation_delay_ms: int = 500


@dataclass
class LoggingConfig:
    """Logging configuration."""

    level: str | None = None  # DEBUG, INFO, WARNING, ERROR
    verbose: int | None = None  # 0-4, takes precedence over level
    file: str | None = None  # Log file path


@dataclass
class Config:
    """Root configuration object."""

    aider: AiderConfig = field(default_factory=AiderConfig)
    sync: SyncConfig = field(default_factory=SyncConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    # Unknown top-level sections are preserved
    extra: dict[str, Any] = field(default_factory=dict)
