"""Polling watcher for the configuration cascade.

Credentials and launch settings can change while a session runs. The watcher
compares config file modification times every ``poll_interval`` seconds and,
on any change, calls ``reload_config`` so that ``on_config_reload`` callbacks
(such as ``ReconciliationEngine.watch_config``) see the new values.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from pathlib import Path

from aidersync.config.loader import reload_config
from aidersync.config.paths import get_config_paths

_log = logging.getLogger("aidersync.config.watcher")

DEFAULT_POLL_INTERVAL = 2.0


def _snapshot(paths: list[Path]) -> dict[Path, float]:
    stamps: dict[Path, float] = {}
    for path in paths:
        with contextlib.suppress(OSError):
            stamps[path] = path.stat().st_mtime
    return stamps


class ConfigWatcher:
    """Reloads configuration when any layer of the cascade changes on disk."""

    def __init__(
        self,
        project_root: str | None = None,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
    ) -> None:
        self._project_root = project_root
        self._poll_interval = poll_interval
        self._stamps: dict[Path, float] = {}
        self._task: asyncio.Task[None] | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def detect_changes(self) -> list[Path]:
        """Config files created, modified or deleted since the previous call."""
        current = _snapshot(get_config_paths(self._project_root))
        previous, self._stamps = self._stamps, current
        return sorted(p for p in previous.keys() | current.keys() if previous.get(p) != current.get(p))

    async def _watch(self) -> None:
        self.detect_changes()
        while True:
            await asyncio.sleep(self._poll_interval)
            changed = self.detect_changes()
            if not changed:
                continue
            _log.info("Config changed: %s", ", ".join(str(p) for p in changed))
            try:
                reload_config(project_root=self._project_root)
            except Exception as e:
                _log.error("Config reload failed: %s", e)

    def start(self) -> None:
        """Begin polling; requires a running event loop."""
        if self.running:
            return
        self._task = asyncio.create_task(self._watch())

    def stop(self) -> None:
        if self._task is not None:
            self._task.cancel()
            self._task = None

    async def __aenter__(self) -> ConfigWatcher:
        self.start()
        return self

    async def __aexit__(self, *args: object) -> None:
        self.stop()
