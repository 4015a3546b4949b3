"""Where aidersync keeps configuration and per-project state.

- System: ``/etc/aidersync/`` or ``%PROGRAMDATA%\\aidersync\\``
- User: ``$XDG_CONFIG_HOME/aidersync/``, ``~/.config/aidersync/``,
  ``~/.aidersync/`` or ``%APPDATA%\\aidersync\\``
- Project: ``<root>/.aidersync/`` holding ``config.yaml`` and the persisted
  ``ignore`` list
"""

from __future__ import annotations

import os
import sys
from pathlib import Path

APP_NAME = "aidersync"
SHORT_NAME = ".aidersync"
CONFIG_FILENAME = "config.yaml"
IGNORE_FILENAME = "ignore"


def _from_env(var: str) -> Path | None:
    value = os.environ.get(var)
    return Path(value) / APP_NAME / CONFIG_FILENAME if value else None


def get_system_config_path() -> Path | None:
    """System-wide config file (may not exist); None if undeterminable."""
    if sys.platform == "win32":
        return _from_env("PROGRAMDATA")
    return Path("/etc") / APP_NAME / CONFIG_FILENAME


def get_user_config_path() -> Path | None:
    """Per-user config file (may not exist); None if undeterminable."""
    if sys.platform == "win32":
        return _from_env("APPDATA")

    xdg = _from_env("XDG_CONFIG_HOME")
    if xdg is not None:
        return xdg

    home = Path.home()
    if (home / ".config").exists():
        return home / ".config" / APP_NAME / CONFIG_FILENAME
    return home / SHORT_NAME / CONFIG_FILENAME


def get_project_dir(project_root: str | os.PathLike[str]) -> Path:
    return Path(project_root) / SHORT_NAME


def get_project_config_path(project_root: str | os.PathLike[str]) -> Path:
    return get_project_dir(project_root) / CONFIG_FILENAME


def get_ignore_list_path(project_root: str | os.PathLike[str]) -> Path:
    return get_project_dir(project_root) / IGNORE_FILENAME


def get_config_paths(project_root: str | None = None) -> list[Path]:
    """Config files to merge, lowest priority first."""
    candidates = [get_system_config_path(), get_user_config_path()]
    if project_root:
        candidates.append(get_project_config_path(project_root))
    return [p for p in candidates if p is not None]
