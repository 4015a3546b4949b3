"""File-set reconciliation between the editor and the assistant.

The reconciler keeps a best-effort belief of which files the assistant has
loaded (the *known set*) and brings it in line with the editor's open
documents:

1. Re-read the ignore patterns.
2. Snapshot the editor's workspace documents (``current``).
3. ``added = current - known`` and ``removed = known - current``.
4. Drop ignored paths from both deltas; their known-set membership is left
   exactly as it was.
5. Send one batched ``/add`` and one batched ``/drop`` at most.
6. Store the new known set.

Files the user adds to the assistant directly are invisible here and can be
re-added by a later pass. There is no reply channel to learn about them.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from enum import Enum

from aidersync.ignore import IgnoreFilter, Matcher
from aidersync.logging import VERBOSE, get_logger
from aidersync.paths import PathResolver, normalize
from aidersync.sync.documents import EditorDocument
from aidersync.terminal.channel import CommandChannel

log = get_logger("sync")

ADD_COMMAND = "/add"
DROP_COMMAND = "/drop"
READ_ONLY_COMMAND = "/read-only"


class ReconcilerState(Enum):
    IDLE = "idle"
    RECONCILING = "reconciling"


@dataclass
class ReconcileResult:
    """What one pass sent."""

    added: list[str] = field(default_factory=list)
    dropped: list[str] = field(default_factory=list)
    ignored: list[str] = field(default_factory=list)

    @property
    def changed(self) -> bool:
        return bool(self.added or self.dropped)


class FileSetReconciler:
    """Diffs the editor's documents against the known set and sends deltas.

    Args:
        channel: Where commands go; sends are no-ops without a session.
        root: Returns the active session's workspace root, or None.
        documents: Returns the editor's current documents.
        patterns: Returns the current ignore patterns (re-read every pass).
        resolver: Path membership and display rules.
    """

    def __init__(
        self,
        channel: CommandChannel,
        root: Callable[[], str | None],
        documents: Callable[[], Iterable[EditorDocument]],
        patterns: Callable[[], Iterable[str]],
        resolver: PathResolver | None = None,
    ) -> None:
        self._channel = channel
        self._root = root
        self._documents = documents
        self._patterns = patterns
        self._resolver = resolver or PathResolver()
        self._known: set[str] = set()
        self._state = ReconcilerState.IDLE
        self._rerun = False

    @property
    def known(self) -> frozenset[str]:
        return frozenset(self._known)

    @property
    def state(self) -> ReconcilerState:
        return self._state

    def reset(self) -> None:
        """Forget everything; used when a session ends."""
        self._known.clear()
        self._rerun = False

    def reconcile(self) -> ReconcileResult | None:
        """Run one pass.

        A request arriving while a pass is running is collapsed into a single
        follow-up pass; in that case this returns None.
        """
        if self._state is ReconcilerState.RECONCILING:
            self._rerun = True
            return None

        self._state = ReconcilerState.RECONCILING
        try:
            result = self._pass()
            while self._rerun:
                self._rerun = False
                result = self._pass()
            return result
        finally:
            self._state = ReconcilerState.IDLE

    def _pass(self) -> ReconcileResult:
        result = ReconcileResult()
        root = self._root()
        if root is None:
            log.debug("No active session, skipping reconciliation")
            return result

        try:
            matcher = IgnoreFilter.compile(self._patterns())
            current = self._current_set(root)
            known = set(self._known)

            added = current - known
            removed = known - current

            ignored = {p for p in added | removed if self._is_ignored(p, root, matcher)}
            result.added = sorted(added - ignored)
            result.dropped = sorted(removed - ignored)
            result.ignored = sorted(ignored)

            if result.added:
                self._channel.send(ADD_COMMAND, result.added)
            if result.dropped:
                self._channel.send(DROP_COMMAND, result.dropped)

            # Ignored paths keep whatever membership they had
            still_ignored = {p for p in known if self._is_ignored(p, root, matcher)}
            self._known = {p for p in current if not self._is_ignored(p, root, matcher)}
            self._known |= still_ignored
        except Exception as e:
            log.error("Reconciliation failed: %s", e)
            return result

        if result.changed:
            log.log(
                VERBOSE,
                "Reconciled: +%d -%d (ignored %d)",
                len(result.added),
                len(result.dropped),
                len(result.ignored),
            )
        return result

    def _current_set(self, root: str) -> set[str]:
        return {
            normalize(doc.path)
            for doc in self._documents()
            if doc.is_file and self._resolver.is_workspace_file(doc.path, root)
        }

    def _is_ignored(self, path: str, root: str, matcher: Matcher) -> bool:
        if not matcher:
            return False
        return IgnoreFilter.should_ignore(self._resolver.to_display_path(path, root), matcher)

    # -- explicit operations, bypassing the pass --------------------------------

    def _workspace_paths(self, paths: Iterable[str], root: str) -> list[str]:
        accepted: list[str] = []
        for path in paths:
            if not path:
                continue
            if self._resolver.is_workspace_file(path, root):
                accepted.append(normalize(path))
            else:
                log.warning("Not in workspace %s, refusing %s", root, path)
        return accepted

    def add(self, paths: Iterable[str], *, read_only: bool = False) -> list[str]:
        """Send one ``/add`` (or ``/read-only``) now and mark the paths known."""
        root = self._root()
        if root is None:
            return []
        accepted = self._workspace_paths(paths, root)
        if accepted:
            self._channel.send(READ_ONLY_COMMAND if read_only else ADD_COMMAND, accepted)
            self._known.update(accepted)
        return accepted

    def drop(self, paths: Iterable[str]) -> list[str]:
        """Send one ``/drop`` now and forget the paths."""
        root = self._root()
        if root is None:
            return []
        accepted = self._workspace_paths(paths, root)
        if accepted:
            self._channel.send(DROP_COMMAND, accepted)
            self._known.difference_update(accepted)
        return accepted
