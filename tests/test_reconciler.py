"""Tests for file-set reconciliation."""

from __future__ import annotations

import re
from pathlib import Path

import pytest

from aidersync.sync.documents import EditorDocument
from aidersync.sync.reconciler import FileSetReconciler, ReconcilerState
from aidersync.terminal.channel import CommandChannel
from tests.utils import FakeTransport


class Harness:
    """A reconciler wired to a fake transport and mutable editor state."""

    def __init__(self, root: Path) -> None:
        self.root = root
        self.active = True
        self.documents: list[EditorDocument] = []
        self.patterns: list[str] = []
        self.transport = FakeTransport(alive=True)
        self.channel = CommandChannel()
        self.channel.attach(self.transport, str(root))
        self.reconciler = FileSetReconciler(
            self.channel,
            root=lambda: str(self.root) if self.active else None,
            documents=lambda: list(self.documents),
            patterns=lambda: list(self.patterns),
        )

    def path(self, name: str) -> str:
        return str(self.root / name)

    def open(self, *names: str) -> None:
        self.documents.extend(EditorDocument(self.path(n)) for n in names)

    def close(self, *names: str) -> None:
        paths = {self.path(n) for n in names}
        self.documents = [d for d in self.documents if d.path not in paths]


@pytest.fixture
def harness(project: Path) -> Harness:
    return Harness(project)


class TestReconcilePass:
    """Tests for FileSetReconciler.reconcile."""

    def test_adds_open_documents(self, harness: Harness) -> None:
        harness.open("src/a.py", "src/b.py")

        result = harness.reconciler.reconcile()

        assert result is not None
        assert harness.transport.lines == ["/add src/a.py src/b.py"]
        assert harness.reconciler.known == {harness.path("src/a.py"), harness.path("src/b.py")}

    def test_drops_closed_documents(self, harness: Harness) -> None:
        harness.open("a.py", "b.py")
        harness.reconciler.reconcile()
        harness.close("a.py")

        harness.reconciler.reconcile()

        assert harness.transport.lines[-1] == "/drop a.py"
        assert harness.reconciler.known == {harness.path("b.py")}

    def test_one_add_and_one_drop_per_pass(self, harness: Harness) -> None:
        harness.open("a.py", "b.py")
        harness.reconciler.reconcile()
        harness.close("a.py", "b.py")
        harness.open("c.py", "d.py")

        result = harness.reconciler.reconcile()

        assert result is not None
        assert result.added == [harness.path("c.py"), harness.path("d.py")]
        assert result.dropped == [harness.path("a.py"), harness.path("b.py")]
        assert harness.transport.lines[1:] == ["/add c.py d.py", "/drop a.py b.py"]

    def test_second_pass_is_idempotent(self, harness: Harness) -> None:
        harness.open("a.py")
        harness.reconciler.reconcile()

        result = harness.reconciler.reconcile()

        assert result is not None and not result.changed
        assert harness.transport.lines == ["/add a.py"]

    def test_non_workspace_documents_skipped(self, harness: Harness, tmp_path: Path) -> None:
        harness.documents.append(EditorDocument(str(tmp_path / "elsewhere.py")))
        harness.documents.append(EditorDocument("untitled:1", scheme="untitled"))

        harness.reconciler.reconcile()

        assert harness.transport.writes == []
        assert harness.reconciler.known == frozenset()

    def test_known_set_stays_inside_workspace(self, harness: Harness, tmp_path: Path) -> None:
        harness.open("a.py")
        harness.documents.append(EditorDocument(str(tmp_path / "outside.py")))
        harness.reconciler.reconcile()

        assert all(p.startswith(str(harness.root)) for p in harness.reconciler.known)

    def test_quoted_path_with_space(self, harness: Harness) -> None:
        harness.open("my file.ts")
        harness.reconciler.reconcile()
        assert harness.transport.lines == ['/add "my file.ts"']

    def test_no_root_no_commands(self, harness: Harness) -> None:
        harness.active = False
        harness.open("a.py")

        result = harness.reconciler.reconcile()

        assert result is not None and not result.changed
        assert harness.transport.writes == []


class TestIgnorePatterns:
    """Ignore patterns applied during reconciliation."""

    def test_ignored_document_not_added(self, harness: Harness) -> None:
        harness.patterns = [r"^build/"]
        harness.open("build/out.js", "src/app.js")

        result = harness.reconciler.reconcile()

        assert result is not None
        assert result.ignored == [harness.path("build/out.js")]
        assert harness.transport.lines == ["/add src/app.js"]
        assert harness.path("build/out.js") not in harness.reconciler.known

    def test_absolute_pattern_matches_nothing(self, harness: Harness) -> None:
        harness.patterns = ["^" + re.escape(str(harness.root)) + "/build/"]
        harness.open("build/out.js")

        harness.reconciler.reconcile()

        assert harness.transport.lines == ["/add build/out.js"]

    def test_ignored_known_file_is_not_dropped(self, harness: Harness) -> None:
        harness.reconciler.add([harness.path("gen/schema.py")])
        harness.patterns = [r"^gen/"]

        result = harness.reconciler.reconcile()

        assert result is not None and not result.dropped
        assert harness.path("gen/schema.py") in harness.reconciler.known
        assert harness.transport.lines == ["/add gen/schema.py"]

    def test_patterns_reread_each_pass(self, harness: Harness) -> None:
        harness.patterns = [r"\.log$"]
        harness.open("trace.log")
        harness.reconciler.reconcile()
        assert harness.transport.writes == []

        harness.patterns = []
        harness.reconciler.reconcile()
        assert harness.transport.lines == ["/add trace.log"]

    def test_invalid_pattern_does_not_block(self, harness: Harness) -> None:
        harness.patterns = ["(["]
        harness.open("a.py")
        harness.reconciler.reconcile()
        assert harness.transport.lines == ["/add a.py"]


class TestExplicitOperations:
    """Tests for FileSetReconciler.add and drop."""

    def test_add_marks_known(self, harness: Harness) -> None:
        added = harness.reconciler.add([harness.path("a.py"), harness.path("b c.py")])

        assert added == [harness.path("a.py"), harness.path("b c.py")]
        assert harness.transport.lines == ['/add a.py "b c.py"']
        assert harness.reconciler.known == set(added)

    def test_read_only_add(self, harness: Harness) -> None:
        harness.reconciler.add([harness.path("docs/api.md")], read_only=True)
        assert harness.transport.lines == ["/read-only docs/api.md"]

    def test_add_refuses_outside_workspace(self, harness: Harness, tmp_path: Path) -> None:
        added = harness.reconciler.add([str(tmp_path / "outside.py")])

        assert added == []
        assert harness.transport.writes == []

    def test_drop_forgets(self, harness: Harness) -> None:
        harness.open("a.py")
        harness.reconciler.reconcile()

        harness.reconciler.drop([harness.path("a.py")])

        assert harness.transport.lines[-1] == "/drop a.py"
        assert harness.reconciler.known == frozenset()

    def test_explicit_add_not_in_editor_is_dropped_by_next_pass(self, harness: Harness) -> None:
        # Not open in the editor, so the next pass drops it again
        harness.reconciler.add([harness.path("a.py")])
        harness.reconciler.reconcile()
        assert harness.transport.lines == ["/add a.py", "/drop a.py"]

    def test_no_root_is_noop(self, harness: Harness) -> None:
        harness.active = False
        assert harness.reconciler.add([harness.path("a.py")]) == []
        assert harness.reconciler.drop([harness.path("a.py")]) == []


class TestReentrancy:
    """Concurrent reconcile requests collapse into one follow-up pass."""

    def test_nested_request_runs_once_more(self, project: Path) -> None:
        harness = Harness(project)
        calls: list[ReconcilerState] = []
        nested: list[object] = []

        def patterns() -> list[str]:
            calls.append(harness.reconciler.state)
            if len(calls) == 1:
                nested.append(harness.reconciler.reconcile())
                nested.append(harness.reconciler.reconcile())
            return []

        harness.reconciler._patterns = patterns
        harness.open("a.py")

        result = harness.reconciler.reconcile()

        assert nested == [None, None]
        assert len(calls) == 2
        assert result is not None
        assert harness.transport.lines == ["/add a.py"]
        assert harness.reconciler.state is ReconcilerState.IDLE

    def test_failure_is_logged_and_swallowed(self, harness: Harness) -> None:
        def broken() -> list[str]:
            raise RuntimeError("boom")

        harness.reconciler._patterns = broken
        harness.open("a.py")

        result = harness.reconciler.reconcile()

        assert result is not None and not result.changed
        assert harness.reconciler.state is ReconcilerState.IDLE

    def test_reset_clears_known(self, harness: Harness) -> None:
        harness.open("a.py")
        harness.reconciler.reconcile()
        harness.reconciler.reset()
        assert harness.reconciler.known == frozenset()
