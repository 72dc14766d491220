"""Interactive chat streaming against the local provider."""

from typing import AsyncIterator, Any, Iterable, Mapping

import httpx

from content_forge.config.models import LOCAL_PROVIDER, RunnerConfig
from content_forge.utils.logging import get_logger
from content_forge.utils.providers import create_provider
from content_forge.utils.providers.base import ChatMessage


logger = get_logger(__name__)

__all__ = ["run_streaming_chat", "to_chat_messages"]


def to_chat_messages(messages: Iterable[Mapping[str, Any]]) -> list[ChatMessage]:
    """Convert `{role, content}` mappings into chat messages."""
    return [
        ChatMessage(role=m["role"], content=str(m.get("content") or ""))
        for m in messages
    ]


async def run_streaming_chat(
    model: str | None,
    messages: list[ChatMessage],
    config: RunnerConfig,
    client: httpx.AsyncClient | None = None,
) -> AsyncIterator[str]:
    """
    Stream a chat completion from the local provider.

    Args:
        model: Model id (defaults to the configured local model)
        messages: Full conversation, system message first
        config: Runner configuration for the local provider address
        client: Optional shared HTTP client

    Yields:
        Response text fragments, in arrival order
    """
    model = model or config.default_model(LOCAL_PROVIDER)
    provider = create_provider(
        LOCAL_PROVIDER,
        config.provider_config(LOCAL_PROVIDER),
        client=client,
        timeout=config.timeout_seconds,
    )
    logger.info("Streaming chat", model=model, messages=len(messages))
    try:
        async for fragment in provider.chat_stream(model, messages):
            yield fragment
    finally:
        await provider.close()
