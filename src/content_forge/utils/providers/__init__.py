"""LLM provider implementations.

Supports multiple LLM providers with a unified interface:
- Ollama: Local inference server (chat + streaming)
- Gemini: Google generateContent API with model downgrade
- OpenAI-compatible: OpenAI, DeepSeek and other /chat/completions backends

Usage:
    from content_forge.config.models import ProviderConfig
    from content_forge.utils.providers import create_provider

    provider = create_provider("gemini", ProviderConfig("gemini", api_key="..."))
    response = await provider.chat("gemini-2.5-flash", messages)
"""

import httpx

from content_forge.config.models import LOCAL_FALLBACK_BASE_URL, ProviderConfig
from content_forge.core.exceptions import UnsupportedProviderError
from content_forge.utils.providers.base import (
    BaseLLMProvider,
    ChatMessage,
    ProviderResponse,
)
from content_forge.utils.providers.gemini import GeminiProvider
from content_forge.utils.providers.ollama import NDJSONStreamDecoder, OllamaProvider
from content_forge.utils.providers.openai import OpenAICompatibleProvider


OPENAI_COMPATIBLE_PROVIDERS = ("openai", "deepseek")
SUPPORTED_PROVIDERS = ("ollama", *OPENAI_COMPATIBLE_PROVIDERS, "gemini")


def create_provider(
    provider_type: str,
    config: ProviderConfig | None = None,
    *,
    client: httpx.AsyncClient | None = None,
    timeout: float = 120.0,
) -> BaseLLMProvider:
    """
    Factory function mapping a provider type to a fresh provider instance.

    Args:
        provider_type: Provider identifier, matched case-insensitively
        config: Base URL / API key for the provider
        client: Optional shared HTTP client
        timeout: Request timeout when the provider creates its own client

    Returns:
        Configured LLM provider instance

    Raises:
        UnsupportedProviderError: If the provider type is unknown

    Example:
        provider = create_provider("ollama", ProviderConfig("ollama"))
        provider = create_provider("deepseek", ProviderConfig(
            "deepseek", base_url="https://api.deepseek.com", api_key="sk-..."
        ))
    """
    name = provider_type.lower()
    config = config or ProviderConfig(provider_type=name)

    if name == "ollama":
        return OllamaProvider(
            base_url=config.base_url or LOCAL_FALLBACK_BASE_URL,
            client=client,
            timeout=timeout,
        )

    elif name in OPENAI_COMPATIBLE_PROVIDERS:
        return OpenAICompatibleProvider(
            api_key=config.api_key,
            base_url=config.base_url,
            name=name,
            client=client,
            timeout=timeout,
        )

    elif name == "gemini":
        return GeminiProvider(
            api_key=config.api_key,
            base_url=config.base_url,
            client=client,
            timeout=timeout,
        )

    raise UnsupportedProviderError(provider_type)


__all__ = [
    "BaseLLMProvider",
    "ChatMessage",
    "ProviderResponse",
    "GeminiProvider",
    "NDJSONStreamDecoder",
    "OllamaProvider",
    "OpenAICompatibleProvider",
    "SUPPORTED_PROVIDERS",
    "create_provider",
]
