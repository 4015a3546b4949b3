"""Prompt text for requests relayed to the assistant.

Every prompt ends up on one line: code snippets keep their line structure as
literal ``\\n`` sequences and the surrounding text is joined with spaces by
the command channel.
"""

from __future__ import annotations

REFACTOR_TASK = (
    "Refactor the following code to improve its structure, performance and "
    "readability without changing its functionality:"
)

README_PROMPT = (
    "Generate a comprehensive README.md file for the project in the current "
    "workspace. Include sections for introduction, features, installation, usage, "
    "configuration, and any other relevant information based on the project files "
    "and structure."
)


def escape_snippet(text: str) -> str:
    """Replace real line breaks with a literal backslash-n."""
    return text.replace("\r\n", "\\n").replace("\n", "\\n").replace("\r", "\\n")


def snippet_prompt(task: str, display_path: str, line: int, snippet: str) -> str:
    """Build a refactor/modify request for a selected snippet.

    Args:
        task: The instruction, e.g. REFACTOR_TASK or the user's own text.
        display_path: Workspace-relative path of the file.
        line: 1-based line number where the selection starts.
        snippet: The selected code.
    """
    return f"{task}\n\nFile: {display_path}\nLine: {line}\n\n{escape_snippet(snippet)}"
