"""Base interface for LLM providers."""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import AsyncIterator, Literal, Sequence

import httpx

from content_forge.core.exceptions import ProviderError


Role = Literal["system", "user", "assistant"]


@dataclass(frozen=True)
class ChatMessage:
    """A single chat message."""

    role: Role
    content: str

    def to_dict(self) -> dict[str, str]:
        return {"role": self.role, "content": self.content}


@dataclass
class ProviderResponse:
    """
    Normalized response from any LLM provider.

    `actual_model` labels the provider and model that really produced the
    text, which differs from the requested model after a downgrade.
    """

    text: str
    actual_model: str


class BaseLLMProvider(ABC):
    """
    Abstract base class for LLM providers.

    All providers (Ollama, Gemini, OpenAI-compatible) implement this
    interface so the tool runner can treat them uniformly.
    """

    def __init__(
        self,
        client: httpx.AsyncClient | None = None,
        timeout: float = 120.0,
    ):
        """
        Initialize provider.

        Args:
            client: Shared HTTP client (created lazily if not provided)
            timeout: Request timeout in seconds for a lazily created client
        """
        self._client = client
        self._owns_client = client is None
        self._timeout = timeout

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """Return the provider name (e.g., 'ollama', 'gemini')."""
        ...

    def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=httpx.Timeout(self._timeout))
        return self._client

    async def close(self) -> None:
        """Close the HTTP client if this provider created it."""
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    @abstractmethod
    async def chat(
        self,
        model: str | None,
        messages: Sequence[ChatMessage],
    ) -> ProviderResponse:
        """
        Run a single chat completion.

        Args:
            model: Model id to use
            messages: Ordered chat messages

        Returns:
            ProviderResponse with text and the actual model label
        """
        ...

    async def chat_stream(
        self,
        model: str | None,
        messages: Sequence[ChatMessage],
    ) -> AsyncIterator[str]:
        """
        Stream a chat completion as text fragments.

        Only some providers support streaming.
        """
        raise ProviderError(
            f"Streaming is not supported by {self.provider_name}",
            provider=self.provider_name,
            model=model,
        )
        # Make this a generator
        if False:
            yield ""
