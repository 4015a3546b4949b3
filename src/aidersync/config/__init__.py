"""Configuration management for aidersync.

Hierarchical YAML configuration with:
- System-level config (/etc/aidersync/ or %PROGRAMDATA%)
- User-level config (~/.config/aidersync/ or %APPDATA%)
- Project-level config ($project_root/.aidersync/)
- Environment variable overrides (highest priority)

Example usage:
    from aidersync.config import load_config

    config = load_config(project_root="/path/to/project")
    print(config.aider.model)
"""

from aidersync.config.loader import (
    get_config,
    load_config,
    on_config_reload,
    reload_config,
    reset_config,
)
from aidersync.config.paths import (
    get_config_paths,
    get_ignore_list_path,
    get_project_config_path,
    get_system_config_path,
    get_user_config_path,
)
from aidersync.config.schema import (
    CUSTOM_MODEL,
    AiderConfig,
    Config,
    LoggingConfig,
    SyncConfig,
)
from aidersync.config.secrets import clear_secret_cache, fetch_secret
from aidersync.config.watcher import ConfigWatcher

__all__ = [
    # Main API
    "Config",
    "load_config",
    "get_config",
    "reload_config",
    "reset_config",
    "on_config_reload",
    # Schema types
    "AiderConfig",
    "SyncConfig",
    "LoggingConfig",
    "CUSTOM_MODEL",
    # Secrets
    "fetch_secret",
    "clear_secret_cache",
    # Paths
    "get_config_paths",
    "get_system_config_path",
    "get_user_config_path",
    "get_project_config_path",
    "get_ignore_list_path",
    # Watcher
    "ConfigWatcher",
]
