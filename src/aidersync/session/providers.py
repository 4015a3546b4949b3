"""Provider selection as a closed set of variants.

Each variant knows the model flag it contributes to the command line and the
credential it needs. ``resolve_provider`` turns an AiderConfig into exactly one
variant and ``validate_provider`` checks it before anything is spawned.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import ClassVar

from aidersync.config.schema import CUSTOM_MODEL, AiderConfig
from aidersync.config.secrets import fetch_secret
from aidersync.errors import ConfigurationError


@dataclass(frozen=True)
class AnthropicProvider:
    """Claude models selected with aider's shorthand flags."""

    model_flag: str
    api_key: str | None

    kind: ClassVar[str] = "anthropic"
    env_var: ClassVar[str] = "ANTHROPIC_API_KEY"
    setting: ClassVar[str] = "aider.anthropic_api_key"


@dataclass(frozen=True)
class OpenAIProvider:
    """OpenAI models selected with aider's shorthand flags."""

    model_flag: str
    api_key: str | None

    kind: ClassVar[str] = "openai"
    env_var: ClassVar[str] = "OPENAI_API_KEY"
    setting: ClassVar[str] = "aider.openai_api_key"


@dataclass(frozen=True)
class CustomProvider:
    """Model chosen by the user's own startup arguments; no flag is added."""

    startup_args: str
    credentials: tuple[tuple[str, str], ...] = ()  # Whatever keys were found

    kind: ClassVar[str] = "custom"


ProviderConfig = AnthropicProvider | OpenAIProvider | CustomProvider

# Model flag -> (provider kind, display name)
MODEL_CHOICES: dict[str, tuple[str, str]] = {
    "--sonnet": ("anthropic", "Claude 3.5 Sonnet"),
    "--opus": ("anthropic", "Claude 3 Opus"),
    "--4o": ("openai", "GPT-4o"),
    CUSTOM_MODEL: ("custom", "Custom"),
}


def model_display_name(model: str) -> str:
    return MODEL_CHOICES.get(model, ("", "Unknown"))[1]


def resolve_provider(config: AiderConfig, project_root: str | Path | None = None) -> ProviderConfig:
    """Build the provider variant for ``config.model``.

    Credentials come from the config first, then the environment or
    ``.env.secrets`` in ``project_root``.

    Raises:
        ConfigurationError: If no model is selected or the model is unknown.
    """
    model = (config.model or "").strip()
    if not model:
        raise ConfigurationError("No model selected", setting="aider.model")

    choice = MODEL_CHOICES.get(model)
    if choice is None:
        raise ConfigurationError(
            f"Unknown model selection {model!r}; use one of "
            f"{', '.join(MODEL_CHOICES)} (custom passes startup_args through)",
            setting="aider.model",
        )

    kind = choice[0]
    if kind == "anthropic":
        key = config.anthropic_api_key or fetch_secret(
            AnthropicProvider.env_var, project_root=project_root
        )
        return AnthropicProvider(model_flag=model, api_key=key)
    if kind == "openai":
        key = config.openai_api_key or fetch_secret(
            OpenAIProvider.env_var, project_root=project_root
        )
        return OpenAIProvider(model_flag=model, api_key=key)
    found = {
        AnthropicProvider.env_var: config.anthropic_api_key
        or fetch_secret(AnthropicProvider.env_var, project_root=project_root),
        OpenAIProvider.env_var: config.openai_api_key
        or fetch_secret(OpenAIProvider.env_var, project_root=project_root),
    }
    return CustomProvider(
        startup_args=config.startup_args,
        credentials=tuple((k, v) for k, v in found.items() if v),
    )


def validate_provider(provider: ProviderConfig) -> dict[str, str]:
    """Check a provider variant and return the environment it contributes.

    Raises:
        ConfigurationError: On a missing credential, or a custom provider
            without startup arguments to select the model.
    """
    match provider:
        case AnthropicProvider() | OpenAIProvider():
            if not provider.model_flag:
                raise ConfigurationError("No model flag for provider", setting="aider.model")
            if not provider.api_key:
                raise ConfigurationError(
                    f"Missing {provider.kind} API key; set {provider.env_var}",
                    setting=provider.setting,
                )
            return {provider.env_var: provider.api_key}
        case CustomProvider():
            if not provider.startup_args.strip():
                raise ConfigurationError(
                    "Custom model requires startup arguments naming the model",
                    setting="aider.startup_args",
                )
            return dict(provider.credentials)
    raise ConfigurationError(f"Unsupported provider {provider!r}")


def model_flag(provider: ProviderConfig) -> str | None:
    """The model-selection flag for the command line, None for custom."""
    if isinstance(provider, CustomProvider):
        return None
    return provider.model_flag
