"""Ignore patterns for file-set reconciliation.

Patterns are Python regular expressions searched (``re.search``) against the
project-root-relative, forward-slash display path of a file, e.g.
``src/app/main.py``. Absolute paths are never matched against, so a pattern
such as ``^/home/me/project/build/`` matches nothing while ``^build/`` does.

The runtime-mutable part of the list is persisted as a newline-separated file
at ``<root>/.aidersync/ignore``.
"""

from __future__ import annotations

import re
from collections.abc import Iterable
from dataclasses import dataclass, field
from pathlib import Path

from filelock import FileLock

from aidersync.config.paths import get_ignore_list_path
from aidersync.logging import get_logger

log = get_logger("ignore")


@dataclass
class Matcher:
    """Compiled ignore patterns."""

    patterns: list[re.Pattern[str]] = field(default_factory=list)
    rejected: list[str] = field(default_factory=list)  # Patterns that failed to compile

    def __bool__(self) -> bool:
        return bool(self.patterns)


class IgnoreFilter:
    """Compiles pattern strings and answers "should this path be skipped"."""

    @staticmethod
    def compile(patterns: Iterable[str]) -> Matcher:
        """Compile each pattern independently; invalid ones are dropped with a warning."""
        matcher = Matcher()
        for pattern in patterns:
            if not pattern:
                continue
            try:
                matcher.patterns.append(re.compile(pattern))
            except re.error as e:
                log.warning("Ignoring invalid ignore pattern %r: %s", pattern, e)
                matcher.rejected.append(pattern)
        return matcher

    @staticmethod
    def should_ignore(display_path: str, matcher: Matcher) -> bool:
        """True if any compiled pattern matches the root-relative display path."""
        return any(p.search(display_path) for p in matcher.patterns)


class IgnoreList:
    """The persisted, runtime-mutable ignore-pattern list for one project."""

    def __init__(self, project_root: str | Path) -> None:
        self._path = get_ignore_list_path(project_root)
        self._lock_path = self._path.with_suffix(".lock")

    @property
    def path(self) -> Path:
        return self._path

    def load(self) -> list[str]:
        """Read the list; a missing or unreadable file is an empty list."""
        if not self._path.exists():
            return []
        try:
            text = self._path.read_text(encoding="utf-8")
        except OSError as e:
            log.warning("Cannot read ignore list %s: %s", self._path, e)
            return []
        return [line.strip() for line in text.splitlines() if line.strip()]

    def _save(self, patterns: list[str]) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        body = "\n".join(patterns)
        self._path.write_text(body + "\n" if body else "", encoding="utf-8")

    def append(self, pattern: str) -> list[str]:
        """Append a pattern (read-modify-write under a file lock)."""
        self._path.parent.mkdir(parents=True, exist_ok=True)
        with FileLock(self._lock_path, timeout=10):
            patterns = self.load()
            patterns.append(pattern)
            self._save(patterns)
        log.info("Added ignore pattern %r", pattern)
        return patterns

    def remove(self, pattern: str) -> list[str]:
        """Remove every occurrence of a pattern and rewrite the file."""
        if not self._path.exists():
            return []
        with FileLock(self._lock_path, timeout=10):
            patterns = [p for p in self.load() if p != pattern]
            self._save(patterns)
        log.info("Removed ignore pattern %r", pattern)
        return patterns
