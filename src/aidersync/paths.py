"""Workspace root resolution and path relativization.

Identity comparisons always use normalized absolute paths. The root-relative,
forward-slash form returned by ``to_display_path`` is only used when formatting
commands and when matching ignore patterns.
"""

from __future__ import annotations

import os
from collections.abc import Sequence
from pathlib import Path

from aidersync.logging import get_logger

log = get_logger("paths")

VCS_MARKERS: tuple[str, ...] = (".git", ".hg")
PROJECT_MARKERS: tuple[str, ...] = ("package.json", "pyproject.toml", "setup.py")


def normalize(path: str | os.PathLike[str]) -> str:
    """Return an absolute, normalized path string."""
    return os.path.normpath(os.path.abspath(os.fspath(path)))


def _has_marker(directory: Path, name: str, *, want_dir: bool) -> bool:
    candidate = directory / name
    try:
        return candidate.is_dir() if want_dir else candidate.is_file()
    except OSError as e:
        # Unreadable levels count as "no marker here"
        log.debug("Cannot check %s: %s", candidate, e)
        return False


def _walk_up(start: Path, markers: Sequence[str], *, want_dir: bool) -> Path | None:
    for directory in (start, *start.parents):
        if any(_has_marker(directory, m, want_dir=want_dir) for m in markers):
            return directory
    return None


class PathResolver:
    """Resolves workspace roots and decides workspace membership.

    Markers are configurable so tests and unusual repositories can override
    the defaults.
    """

    def __init__(
        self,
        vcs_markers: Sequence[str] = VCS_MARKERS,
        project_markers: Sequence[str] = PROJECT_MARKERS,
    ) -> None:
        self._vcs_markers = tuple(vcs_markers)
        self._project_markers = tuple(project_markers)

    def resolve_root(self, start_dir: str | os.PathLike[str]) -> str:
        """Find the workspace root for ``start_dir``.

        Walks upward looking for a version-control directory, then for a
        project descriptor file. Falls back to ``start_dir`` itself.
        """
        start = Path(normalize(start_dir))

        root = _walk_up(start, self._vcs_markers, want_dir=True)
        if root is None:
            root = _walk_up(start, self._project_markers, want_dir=False)
        if root is None:
            log.debug("No root marker above %s, using it as root", start)
            return str(start)
        return str(root)

    @staticmethod
    def is_workspace_file(path: str | os.PathLike[str], root: str | os.PathLike[str]) -> bool:
        """True if ``path`` is ``root`` or lives beneath it.

        Separator aware: root ``/a/b`` does not contain ``/a/bc/file``.
        """
        path_str = normalize(path)
        root_str = normalize(root)
        if path_str == root_str:
            return True
        prefix = root_str if root_str.endswith(os.sep) else root_str + os.sep
        return path_str.startswith(prefix)

    @staticmethod
    def to_display_path(path: str | os.PathLike[str], root: str | os.PathLike[str]) -> str:
        """Root-relative path with forward slashes, for commands and ignore matching."""
        relative = os.path.relpath(normalize(path), normalize(root))
        if os.sep != "/":
            relative = relative.replace(os.sep, "/")
        return relative
