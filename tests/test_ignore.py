"""Tests for ignore pattern matching and the persisted ignore list."""

from __future__ import annotations

import logging
from pathlib import Path

import pytest

from aidersync.ignore import IgnoreFilter, IgnoreList


class TestIgnoreFilter:
    """Tests for IgnoreFilter."""

    def test_matches_root_relative_path(self) -> None:
        matcher = IgnoreFilter.compile([r"^build/"])
        assert IgnoreFilter.should_ignore("build/out.js", matcher)
        assert not IgnoreFilter.should_ignore("src/build.py", matcher)

    def test_search_not_fullmatch(self) -> None:
        matcher = IgnoreFilter.compile([r"\.lock"])
        assert IgnoreFilter.should_ignore("deps/poetry.lock", matcher)

    def test_invalid_pattern_is_dropped(self, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level(logging.WARNING):
            matcher = IgnoreFilter.compile(["([", r"\.min\.js$"])

        assert matcher.rejected == ["(["]
        assert len(matcher.patterns) == 1
        assert IgnoreFilter.should_ignore("static/app.min.js", matcher)
        assert "invalid ignore pattern" in caplog.text

    def test_empty_patterns_skipped(self) -> None:
        matcher = IgnoreFilter.compile(["", ""])
        assert not matcher
        assert not IgnoreFilter.should_ignore("anything.py", matcher)


class TestIgnoreList:
    """Tests for the persisted IgnoreList."""

    def test_missing_file_is_empty(self, project: Path) -> None:
        assert IgnoreList(project).load() == []

    def test_append_persists(self, project: Path) -> None:
        ignore = IgnoreList(project)
        ignore.append(r"^dist/")
        ignore.append(r"\.snap$")

        assert ignore.path == project / ".aidersync" / "ignore"
        assert IgnoreList(project).load() == [r"^dist/", r"\.snap$"]

    def test_remove(self, project: Path) -> None:
        ignore = IgnoreList(project)
        ignore.append("a")
        ignore.append("b")
        ignore.append("a")

        assert ignore.remove("a") == ["b"]
        assert ignore.load() == ["b"]

    def test_remove_without_file(self, project: Path) -> None:
        assert IgnoreList(project).remove("a") == []
        assert not (project / ".aidersync" / "ignore").exists()

    def test_blank_lines_skipped(self, project: Path) -> None:
        path = project / ".aidersync" / "ignore"
        path.parent.mkdir()
        path.write_text("\n^vendor/\n\n  \n")

        assert IgnoreList(project).load() == ["^vendor/"]
