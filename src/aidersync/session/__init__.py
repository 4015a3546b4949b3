"""Assistant session lifecycle and provider validation."""

from aidersync.session.controller import (
    Session,
    SessionController,
    SessionState,
    build_command_line,
)
from aidersync.session.providers import (
    MODEL_CHOICES,
    AnthropicProvider,
    CustomProvider,
    OpenAIProvider,
    ProviderConfig,
    model_display_name,
    resolve_provider,
    validate_provider,
)

__all__ = [
    "MODEL_CHOICES",
    "AnthropicProvider",
    "CustomProvider",
    "OpenAIProvider",
    "ProviderConfig",
    "Session",
    "SessionController",
    "SessionState",
    "build_command_line",
    "model_display_name",
    "resolve_provider",
    "validate_provider",
]
