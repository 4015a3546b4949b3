"""Tests for prompt text builders."""

from __future__ import annotations

from aidersync.prompts import REFACTOR_TASK, escape_snippet, snippet_prompt


class TestSnippetPrompt:
    def test_escape_snippet(self) -> None:
        assert escape_snippet("a\nb\r\nc\rd") == "a\\nb\\nc\\nd"

    def test_layout(self) -> None:
        prompt = snippet_prompt(REFACTOR_TASK, "src/app.py", 7, "def f():\n    pass")
        assert prompt == (
            f"{REFACTOR_TASK}\n\nFile: src/app.py\nLine: 7\n\ndef f():\\n    pass"
        )
