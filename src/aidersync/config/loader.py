"""Loading the configuration cascade into a typed ``Config``.

Layers are read lowest priority first (system, user, project), merged with
``merge_configs`` and topped with environment overrides. Only the global
(project-less) result is cached; project configs are read fresh each time
because the engine may serve different roots over its lifetime.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Callable
from pathlib import Path
from typing import Any

import yaml

from aidersync.config.merge import merge_configs
from aidersync.config.paths import get_config_paths
from aidersync.config.schema import AiderConfig, Config, LoggingConfig, SyncConfig

# Loaded before setup_logging runs, so use the stdlib name directly
_log = logging.getLogger("aidersync.config")

ReloadCallback = Callable[[Config], None]

# Environment variable -> (section, key)
ENV_OVERRIDES: dict[str, tuple[str, str]] = {
    "AIDERSYNC_LOG": ("logging", "file"),
    "AIDERSYNC_MODEL": ("aider", "model"),
    "AIDERSYNC_COMMAND": ("aider", "command_line"),
}

_cached_config: Config | None = None
_reload_callbacks: list[ReloadCallback] = []


def load_yaml_file(path: Path) -> dict[str, Any]:
    """Parse one config layer. Missing, unreadable or non-mapping files are empty."""
    try:
        text = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        return {}
    except OSError as e:
        _log.warning("Cannot read %s: %s", path, e)
        return {}

    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as e:
        _log.warning("Invalid YAML in %s: %s", path, e)
        return {}

    if data is not None and not isinstance(data, dict):
        _log.warning("Ignoring %s: top level is not a mapping", path)
        return {}
    return data or {}


def env_overrides() -> dict[str, Any]:
    """The highest-priority layer, built from AIDERSYNC_* variables.

    Provider API keys are deliberately absent: ``fetch_secret`` reads them at
    session start so they never sit in a cached Config.
    """
    layer: dict[str, Any] = {}
    for var, (section, key) in ENV_OVERRIDES.items():
        value = os.environ.get(var)
        if value:
            layer.setdefault(section, {})[key] = value
    return layer


def _str_list(value: Any) -> list[str]:
    if not isinstance(value, list):
        return []
    return [v for v in value if isinstance(v, str)]


def _section(data: dict[str, Any], name: str) -> dict[str, Any]:
    value = data.get(name)
    return value if isinstance(value, dict) else {}


def _aider_section(data: dict[str, Any]) -> AiderConfig:
    defaults = AiderConfig()
    env = data.get("env")
    return AiderConfig(
        command_line=data.get("command_line") or defaults.command_line,
        working_directory=data.get("working_directory"),
        model=data.get("model") or defaults.model,
        startup_args=data.get("startup_args") or "",
        feature_flags=_str_list(data.get("feature_flags")),
        ignore_files=_str_list(data.get("ignore_files")),
        openai_api_key=data.get("openai_api_key"),
        anthropic_api_key=data.get("anthropic_api_key"),
        env={str(k): str(v) for k, v in env.items()} if isinstance(env, dict) else {},
    )


def _sync_section(data: dict[str, Any]) -> SyncConfig:
    defaults = SyncConfig()
    return SyncConfig(
        debounce_ms=int(data.get("debounce_ms", defaults.debounce_ms)),
        dictation_delay_ms=int(data.get("dictation_delay_ms", defaults.dictation_delay_ms)),
    )


def dict_to_config(data: dict[str, Any]) -> Config:
    """Build the typed Config; unknown top-level sections land in ``extra``."""
    log_data = _section(data, "logging")
    return Config(
        aider=_aider_section(_section(data, "aider")),
        sync=_sync_section(_section(data, "sync")),
        logging=LoggingConfig(
            level=log_data.get("level"),
            verbose=log_data.get("verbose"),
            file=log_data.get("file"),
        ),
        extra={k: v for k, v in data.items() if k not in ("aider", "sync", "logging")},
    )


def load_config(project_root: str | None = None, reload: bool = False) -> Config:
    """Load and merge every configuration layer.

    Priority, highest first: AIDERSYNC_* environment variables, the project's
    ``.aidersync/config.yaml``, the user config, the system config.

    Args:
        project_root: Workspace root whose project layer is included.
        reload: Ignore the cached global config.
    """
    global _cached_config

    if project_root is None and _cached_config is not None and not reload:
        return _cached_config

    layers = []
    for path in get_config_paths(project_root):
        layer = load_yaml_file(path)
        if layer:
            _log.debug("Loaded config layer %s", path)
            layers.append(layer)
    layers.append(env_overrides())

    config = dict_to_config(merge_configs(*layers))
    if project_root is None:
        _cached_config = config
    return config


def get_config() -> Config:
    """The cached global config, loaded on first use."""
    return _cached_config if _cached_config is not None else load_config()


def reset_config() -> None:
    """Forget the cached global config."""
    global _cached_config
    _cached_config = None


def reload_config(project_root: str | None = None) -> Config:
    """Re-read all layers and hand the result to every reload callback."""
    config = load_config(project_root=project_root, reload=True)
    for callback in list(_reload_callbacks):
        try:
            callback(config)
        except Exception as e:
            _log.warning("Config reload callback failed: %s", e)
    return config


def on_config_reload(callback: ReloadCallback) -> Callable[[], None]:
    """Subscribe to reloads. Returns a function that unsubscribes."""
    _reload_callbacks.append(callback)

    def unregister() -> None:
        _reload_callbacks[:] = [c for c in _reload_callbacks if c is not callback]

    return unregister
