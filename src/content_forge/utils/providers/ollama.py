"""Ollama local inference provider with token streaming."""

import codecs
import json
from typing import Any, AsyncIterator, Sequence

import httpx

from content_forge.config.models import DEFAULT_TEMPERATURE, LOCAL_FALLBACK_BASE_URL
from content_forge.core.exceptions import ProviderConnectionError, ProviderResponseError
from content_forge.utils.logging import get_logger
from content_forge.utils.providers.base import (
    BaseLLMProvider,
    ChatMessage,
    ProviderResponse,
)


logger = get_logger(__name__)


class NDJSONStreamDecoder:
    """
    Incremental decoder for newline-delimited JSON streams.

    Network chunks may end in the middle of an object (or of a multi-byte
    character). The unterminated tail is carried over to the next `feed`,
    so splitting a stream at any byte offset yields the same objects.
    Complete lines that are not valid JSON are logged and skipped.
    """

    def __init__(self) -> None:
        self._decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        self._buffer = ""

    def feed(self, chunk: bytes | str) -> list[dict[str, Any]]:
        """Consume a chunk and return every object completed by it."""
        if isinstance(chunk, bytes):
            chunk = self._decoder.decode(chunk)
        self._buffer += chunk
        *lines, self._buffer = self._buffer.split("\n")
        return self._parse_lines(lines)

    def flush(self) -> list[dict[str, Any]]:
        """Parse whatever is left once the stream has ended."""
        tail = self._buffer + self._decoder.decode(b"", final=True)
        self._buffer = ""
        return self._parse_lines([tail])

    @property
    def pending(self) -> str:
        """Unconsumed text carried over to the next chunk."""
        return self._buffer

    def _parse_lines(self, lines: list[str]) -> list[dict[str, Any]]:
        objects: list[dict[str, Any]] = []
        for line in lines:
            line = line.strip()
            if not line:
                continue
            try:
                data = json.loads(line)
            except json.JSONDecodeError as e:
                logger.warning(
                    "Skipping malformed stream line",
                    error=str(e),
                    line=line[:80],
                )
                continue
            if isinstance(data, dict):
                objects.append(data)
        return objects


class OllamaProvider(BaseLLMProvider):
    """
    Local Ollama provider.

    Talks to the `/api/chat` endpoint of a local inference server. Supports
    both single-shot and streaming chat.
    """

    def __init__(
        self,
        base_url: str | None = None,
        temperature: float = DEFAULT_TEMPERATURE,
        **kwargs: Any,
    ):
        """
        Initialize Ollama provider.

        Args:
            base_url: Server address (default: http://127.0.0.1:11434)
            temperature: Sampling temperature
            **kwargs: Passed to BaseLLMProvider (client, timeout)
        """
        super().__init__(**kwargs)
        self.base_url = (base_url or LOCAL_FALLBACK_BASE_URL).rstrip("/")
        self.temperature = temperature

    @property
    def provider_name(self) -> str:
        return "ollama"

    @property
    def endpoint(self) -> str:
        return f"{self.base_url}/api/chat"

    def _build_payload(
        self, model: str | None, messages: Sequence[ChatMessage], stream: bool
    ) -> dict[str, Any]:
        return {
            "model": model,
            "messages": [m.to_dict() for m in messages],
            "stream": stream,
            "options": {"temperature": self.temperature},
        }

    async def chat(
        self,
        model: str | None,
        messages: Sequence[ChatMessage],
    ) -> ProviderResponse:
        """Call Ollama and wait for the complete response."""
        logger.info("Calling Ollama", endpoint=self.endpoint, model=model)
        client = self._get_client()

        try:
            response = await client.post(
                self.endpoint, json=self._build_payload(model, messages, False)
            )
        except httpx.TransportError as e:
            logger.error("Ollama unreachable", endpoint=self.endpoint, error=str(e))
            raise ProviderConnectionError(
                f"Ollama request failed: {e}",
                provider=self.provider_name,
                model=model,
                recoverable=True,
            ) from e

        if response.is_error:
            logger.error(
                "Ollama request rejected",
                status_code=response.status_code,
                model=model,
            )
            raise ProviderConnectionError(
                f"Ollama request failed: {response.text}",
                provider=self.provider_name,
                model=model,
                status_code=response.status_code,
            )

        try:
            content = response.json()["message"]["content"]
        except (ValueError, KeyError, TypeError) as e:
            raise ProviderResponseError(
                f"Unexpected Ollama response: {e}",
                provider=self.provider_name,
                model=model,
            ) from e

        return ProviderResponse(text=content, actual_model=f"Ollama: {model}")

    async def chat_stream(
        self,
        model: str | None,
        messages: Sequence[ChatMessage],
    ) -> AsyncIterator[str]:
        """
        Stream response fragments from Ollama.

        Yields `message.content` fragments as they arrive and stops as soon
        as an object carrying `done: true` is seen.
        """
        logger.info("Starting Ollama stream", endpoint=self.endpoint, model=model)
        client = self._get_client()
        decoder = NDJSONStreamDecoder()

        try:
            async with client.stream(
                "POST",
                self.endpoint,
                json=self._build_payload(model, messages, True),
            ) as response:
                if response.is_error:
                    detail = (await response.aread()).decode("utf-8", errors="replace")
                    raise ProviderConnectionError(
                        f"Ollama stream failed: {response.reason_phrase} {detail}".strip(),
                        provider=self.provider_name,
                        model=model,
                        status_code=response.status_code,
                    )

                async for data in _decode_stream(response, decoder):
                    content = (data.get("message") or {}).get("content")
                    if content:
                        yield content
                    if data.get("done"):
                        return
        except httpx.TransportError as e:
            logger.error("Ollama stream interrupted", error=str(e))
            raise ProviderConnectionError(
                f"Ollama stream failed: {e}",
                provider=self.provider_name,
                model=model,
                recoverable=True,
            ) from e


async def _decode_stream(
    response: httpx.Response, decoder: NDJSONStreamDecoder
) -> AsyncIterator[dict[str, Any]]:
    """Yield parsed objects from a streaming response, then the flushed tail."""
    async for chunk in response.aiter_bytes():
        for data in decoder.feed(chunk):
            yield data
    for data in decoder.flush():
        yield data
