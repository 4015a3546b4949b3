"""Logging setup for aidersync.

Everything logs under the ``aidersync`` logger. Two extra levels sit between
the standard ones: VERBOSE (15) for per-pass reconciliation summaries and
TRACE (5) for raw terminal traffic. ``setup_logging`` is called once by the
CLI; library users configure logging themselves.
"""

from __future__ import annotations

import logging
import os
import sys
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from aidersync.config.schema import LoggingConfig

TRACE = 5
VERBOSE = 15

logging.addLevelName(TRACE, "TRACE")
logging.addLevelName(VERBOSE, "VERBOSE")

logger = logging.getLogger("aidersync")

LOG_ENV_VAR = "AIDERSYNC_LOG"

_configured = False

# --verbose count -> level; anything above 4 is TRACE
_VERBOSITY_LEVELS = (logging.ERROR, logging.WARNING, logging.INFO, VERBOSE, TRACE)


class _LowercaseLevelFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        record.levelname = record.levelname.lower()
        return super().format(record)


def level_for(config: LoggingConfig | None) -> int:
    """Effective level for ``config``; ``verbose`` beats ``level``, default INFO."""
    if config is None:
        return logging.INFO
    if config.verbose is not None:
        return _VERBOSITY_LEVELS[max(0, min(config.verbose, len(_VERBOSITY_LEVELS) - 1))]
    if config.level:
        name = config.level.upper()
        if name == "WARN":
            name = "WARNING"
        level = logging.getLevelName(name)
        return level if isinstance(level, int) else logging.INFO
    return logging.INFO


def _log_destination(config: LoggingConfig | None) -> logging.Handler | None:
    """File handler when a log path is set, stderr for a console, else nothing.

    Stdout belongs to the REPL, and a piped stderr is usually an editor
    capturing the process, so neither gets log lines by default.
    """
    path = (config.file if config else None) or os.environ.get(LOG_ENV_VAR)
    if path:
        try:
            return logging.FileHandler(os.path.expanduser(path), mode="a", encoding="utf-8")
        except OSError as e:
            if not sys.stderr.isatty():
                return None
            print(f"[aidersync] Cannot open log file {path}: {e}", file=sys.stderr)
    if sys.stderr.isatty():
        return logging.StreamHandler(sys.stderr)
    return None


def setup_logging(config: LoggingConfig | None = None) -> None:
    """Configure the ``aidersync`` logger. Only the first call has an effect."""
    global _configured
    if _configured:
        return
    _configured = True

    level = level_for(config)
    logger.setLevel(level)

    handler = _log_destination(config)
    if handler is None:
        return
    handler.setLevel(level)
    handler.setFormatter(
        _LowercaseLevelFormatter("%(asctime)s %(name)s %(levelname)s: %(message)s", datefmt="%H:%M:%S")
    )
    logger.addHandler(handler)


def get_logger(name: str | None = None) -> logging.Logger:
    """Child logger such as ``aidersync.sync``, or the package logger for None."""
    if name:
        return logger.getChild(name)
    return logger
