"""Keeping the assistant's file set in step with the editor."""

from aidersync.sync.documents import FILE_SCHEME, EditorDocument, EditorView
from aidersync.sync.reconciler import FileSetReconciler, ReconcileResult, ReconcilerState
from aidersync.sync.scheduler import AsyncioScheduler, Debouncer, Scheduler

__all__ = [
    "FILE_SCHEME",
    "AsyncioScheduler",
    "Debouncer",
    "EditorDocument",
    "EditorView",
    "FileSetReconciler",
    "ReconcileResult",
    "ReconcilerState",
    "Scheduler",
]
