"""Core domain modules."""

from content_forge.core.exceptions import (
    AllModelsExhaustedError,
    ContentForgeError,
    MissingInputError,
    PromptNotFoundError,
    ProviderAuthError,
    ProviderError,
    PublishError,
    ToolDefinitionError,
    ToolNotFoundError,
    UnsupportedProviderError,
)

__all__ = [
    # Exceptions
    "ContentForgeError",
    "ToolDefinitionError",
    "ToolNotFoundError",
    "PromptNotFoundError",
    "MissingInputError",
    "ProviderError",
    "ProviderAuthError",
    "UnsupportedProviderError",
    "AllModelsExhaustedError",
    "PublishError",
]
