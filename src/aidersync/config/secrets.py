"""Provider credential lookup with dotenv support.

Priority order:
1. Explicit value from config (``aider.anthropic_api_key`` etc.)
2. Environment variables (os.environ)
3. .env.secrets file in the project root (cached)
"""

from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path

from dotenv import dotenv_values

SECRETS_FILE = ".env.secrets"


@lru_cache(maxsize=8)
def _load_secrets(secrets_path: Path) -> dict[str, str | None]:
    if secrets_path.exists():
        return dotenv_values(secrets_path)
    return {}


def fetch_secret(
    key: str,
    default: str | None = None,
    project_root: str | os.PathLike[str] | None = None,
) -> str | None:
    """Fetch a secret from the environment or a project's .env.secrets.

    Environment variables win so tests can use monkeypatch.setenv/delenv.

    Args:
        key: Environment variable name (e.g., "ANTHROPIC_API_KEY")
        default: Default value if not found
        project_root: Directory containing .env.secrets; cwd when None
    """
    value = os.environ.get(key)
    if value is not None:
        return value

    base = Path(project_root) if project_root is not None else Path.cwd()
    secrets = _load_secrets(base / SECRETS_FILE)
    if secrets.get(key) is not None:
        return secrets[key]

    return default


def clear_secret_cache() -> None:
    """Clear the secrets cache (after .env.secrets changes or in tests)."""
    _load_secrets.cache_clear()
