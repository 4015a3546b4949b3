"""The editor's view of open documents, as reported by open/close events."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

from aidersync.paths import normalize

FILE_SCHEME = "file"


@dataclass(frozen=True)
class EditorDocument:
    """A document the editor has open. Only ``file``-scheme documents sync."""

    path: str
    scheme: str = FILE_SCHEME

    @property
    def is_file(self) -> bool:
        return self.scheme == FILE_SCHEME and bool(self.path)


class EditorView:
    """Latest snapshot of editor-visible documents, keyed by normalized path."""

    def __init__(self) -> None:
        self._documents: dict[str, EditorDocument] = {}

    def opened(self, document: EditorDocument) -> bool:
        """Record an open event. Returns False for non-file documents."""
        if not document.is_file:
            return False
        self._documents[normalize(document.path)] = document
        return True

    def closed(self, document: EditorDocument) -> bool:
        """Record a close event. Returns False if nothing changed."""
        if not document.is_file:
            return False
        return self._documents.pop(normalize(document.path), None) is not None

    def replace(self, documents: Iterable[EditorDocument]) -> None:
        """Replace the whole snapshot (e.g. the editor's full document list)."""
        self._documents = {normalize(d.path): d for d in documents if d.is_file}

    def snapshot(self) -> list[EditorDocument]:
        return list(self._documents.values())

    def __len__(self) -> int:
        return len(self._documents)

    def __contains__(self, path: object) -> bool:
        return isinstance(path, str) and normalize(path) in self._documents
