"""Launch description for the assistant's terminal process."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True)
class LaunchSpec:
    """Everything needed to spawn the terminal hosting one assistant session.

    Attributes:
        cwd: Working directory (the resolved workspace root).
        command_line: Assistant startup command; the process runs as long as it does.
        env: Environment variables added on top of os.environ.
        shell: Shell argv; platform default when None.
    """

    cwd: str
    command_line: str
    env: dict[str, str] = field(default_factory=dict)
    shell: tuple[str, ...] | None = None

    def __repr__(self) -> str:
        # Never echo credential values
        return f"<LaunchSpec cwd={self.cwd!r} command={self.command_line!r} env={sorted(self.env)}>"
