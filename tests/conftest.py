"""Root pytest configuration for all tests."""

from __future__ import annotations

from pathlib import Path

import pytest

from aidersync.config.loader import reset_config
from aidersync.config.secrets import clear_secret_cache
from tests.utils import FakeTransportFactory, ManualScheduler


# Configure pytest-asyncio to use auto mode
# This is redundant with pyproject.toml but ensures it's set
pytest_plugins = ("pytest_asyncio",)


@pytest.fixture(autouse=True)
def isolated_config(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    """Keep the developer's real config, keys and env overrides out of tests."""
    for name in (
        "ANTHROPIC_API_KEY",
        "OPENAI_API_KEY",
        "AIDERSYNC_LOG",
        "AIDERSYNC_MODEL",
        "AIDERSYNC_COMMAND",
    ):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "xdg"))
    reset_config()
    clear_secret_cache()


@pytest.fixture
def project(tmp_path: Path) -> Path:
    """A workspace root marked by a .git directory."""
    root = tmp_path / "proj"
    (root / ".git").mkdir(parents=True)
    (root / "src").mkdir()
    return root


@pytest.fixture
def transports() -> FakeTransportFactory:
    return FakeTransportFactory()


@pytest.fixture
def scheduler() -> ManualScheduler:
    return ManualScheduler()
