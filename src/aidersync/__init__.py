"""aidersync: keep an aider session's files in step with an editor."""

__version__ = "0.1.0"

# Public API
from aidersync.config import AiderConfig, Config, SyncConfig, load_config
from aidersync.dictation import DictationState, DictationToggle
from aidersync.engine import ReconciliationEngine
from aidersync.errors import AiderSyncError, ConfigurationError, SessionStartError
from aidersync.ignore import IgnoreFilter, IgnoreList
from aidersync.paths import PathResolver
from aidersync.session import Session, SessionController, SessionState
from aidersync.sync import EditorDocument, FileSetReconciler, ReconcileResult
from aidersync.terminal import CommandChannel, SubprocessTransport, Transport

__all__ = [
    # Main entry point
    "ReconciliationEngine",
    # Config
    "AiderConfig",
    "Config",
    "SyncConfig",
    "load_config",
    # Errors
    "AiderSyncError",
    "ConfigurationError",
    "SessionStartError",
    # Components
    "CommandChannel",
    "DictationState",
    "DictationToggle",
    "EditorDocument",
    "FileSetReconciler",
    "IgnoreFilter",
    "IgnoreList",
    "PathResolver",
    "ReconcileResult",
    "Session",
    "SessionController",
    "SessionState",
    "SubprocessTransport",
    "Transport",
]
