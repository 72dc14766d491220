"""Server-Sent Events formatting for streamed chat."""

import json
from typing import Any, AsyncIterator

from content_forge.utils.logging import get_logger


logger = get_logger(__name__)

DONE_SENTINEL = "[DONE]"


def format_sse(data: Any) -> str:
    """Format one SSE `data:` event; strings are sent verbatim."""
    payload = data if isinstance(data, str) else json.dumps(data, ensure_ascii=False)
    return f"data: {payload}\n\n"


async def chat_event_generator(fragments: AsyncIterator[str]) -> AsyncIterator[str]:
    """
    Wrap text fragments into SSE events.

    Each fragment becomes `{"content": ...}`. The stream ends with `[DONE]`,
    or with a single `{"error": ...}` event if the upstream fails midway.
    """
    try:
        async for fragment in fragments:
            if fragment:
                yield format_sse({"content": fragment})
    except Exception as e:
        logger.error("Chat stream failed", error=str(e))
        yield format_sse({"error": str(e)})
        return
    yield format_sse(DONE_SENTINEL)
