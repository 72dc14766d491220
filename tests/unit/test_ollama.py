"""Tests for the Ollama provider and NDJSON stream decoding."""

import json

import httpx
import pytest

from content_forge.core.exceptions import ProviderConnectionError, ProviderResponseError
from content_forge.utils.providers.base import ChatMessage
from content_forge.utils.providers.ollama import NDJSONStreamDecoder, OllamaProvider


STREAM = (
    b'{"message":{"content":"Hel"},"done":false}\n'
    b'{"message":{"content":"lo "},"done":false}\n'
    + '{"message":{"content":"世界"},"done":false}\n'.encode("utf-8")
    + b'{"message":{"content":""},"done":true}\n'
)

MESSAGES = [
    ChatMessage(role="system", content="Be brief."),
    ChatMessage(role="user", content="Hi"),
]


def fragments(objects: list[dict]) -> list[str]:
    return [o["message"]["content"] for o in objects if o["message"]["content"]]


class TestNDJSONStreamDecoder:
    """Tests for incremental NDJSON decoding."""

    def test_whole_stream(self):
        """Test decoding a stream delivered in one chunk."""
        decoder = NDJSONStreamDecoder()
        objects = decoder.feed(STREAM) + decoder.flush()
        assert fragments(objects) == ["Hel", "lo ", "世界"]
        assert objects[-1]["done"] is True

    @pytest.mark.parametrize("size", [1, 3, 7, 20])
    def test_split_at_any_offset(self, size):
        """Test that chunk boundaries do not change the decoded objects."""
        decoder = NDJSONStreamDecoder()
        objects = []
        for i in range(0, len(STREAM), size):
            objects.extend(decoder.feed(STREAM[i : i + size]))
        objects.extend(decoder.flush())

        assert fragments(objects) == ["Hel", "lo ", "世界"]

    def test_partial_line_is_buffered(self):
        """Test that an incomplete object waits for the next chunk."""
        decoder = NDJSONStreamDecoder()
        assert decoder.feed(b'{"message":{"content":"a"') == []
        assert decoder.pending == '{"message":{"content":"a"'

        objects = decoder.feed(b'},"done":false}\n')
        assert fragments(objects) == ["a"]
        assert decoder.pending == ""

    def test_malformed_line_skipped(self):
        """Test that a complete but invalid line is dropped."""
        decoder = NDJSONStreamDecoder()
        objects = decoder.feed(b'garbage\n{"message":{"content":"ok"}}\n')
        assert fragments(objects) == ["ok"]

    def test_flush_parses_unterminated_tail(self):
        """Test that a final object without newline is still delivered."""
        decoder = NDJSONStreamDecoder()
        assert decoder.feed(b'{"message":{"content":"end"},"done":true}') == []
        assert fragments(decoder.flush()) == ["end"]


class TestOllamaProvider:
    """Tests for the Ollama provider."""

    @pytest.mark.asyncio
    async def test_chat(self, make_client):
        """Test single-shot chat payload and label."""
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["url"] = str(request.url)
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json={"message": {"content": "Hello"}})

        provider = OllamaProvider(
            base_url="http://ollama.test:11434/", client=make_client(handler)
        )
        response = await provider.chat("gemma3:12b", MESSAGES)

        assert response.text == "Hello"
        assert response.actual_model == "Ollama: gemma3:12b"
        assert seen["url"] == "http://ollama.test:11434/api/chat"
        assert seen["body"]["stream"] is False
        assert seen["body"]["options"] == {"temperature": 0.7}
        assert seen["body"]["messages"][0] == {"role": "system", "content": "Be brief."}

    @pytest.mark.asyncio
    async def test_chat_error_status(self, make_client):
        """Test non-success status raises a connection error."""
        provider = OllamaProvider(
            client=make_client(lambda r: httpx.Response(500, text="model not loaded"))
        )
        with pytest.raises(ProviderConnectionError, match="model not loaded"):
            await provider.chat("gemma3:12b", MESSAGES)

    @pytest.mark.asyncio
    async def test_chat_unreachable(self, make_client):
        """Test transport failure raises a connection error."""

        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        provider = OllamaProvider(client=make_client(handler))
        with pytest.raises(ProviderConnectionError):
            await provider.chat("gemma3:12b", MESSAGES)

    @pytest.mark.asyncio
    async def test_chat_unexpected_body(self, make_client):
        """Test a body without message content."""
        provider = OllamaProvider(
            client=make_client(lambda r: httpx.Response(200, json={"status": "ok"}))
        )
        with pytest.raises(ProviderResponseError):
            await provider.chat("gemma3:12b", MESSAGES)

    @pytest.mark.asyncio
    async def test_chat_stream(self, make_client):
        """Test streaming yields fragments and stops at done."""
        trailing = STREAM + b'{"message":{"content":"ignored"},"done":false}\n'

        def handler(request: httpx.Request) -> httpx.Response:
            assert json.loads(request.content)["stream"] is True
            return httpx.Response(200, content=trailing)

        provider = OllamaProvider(client=make_client(handler))
        received = [f async for f in provider.chat_stream("gemma3:12b", MESSAGES)]

        assert received == ["Hel", "lo ", "世界"]

    @pytest.mark.asyncio
    async def test_chat_stream_error_status(self, make_client):
        """Test streaming surfaces an error status before any fragment."""
        provider = OllamaProvider(
            client=make_client(lambda r: httpx.Response(404, text="no such model"))
        )
        with pytest.raises(ProviderConnectionError, match="no such model"):
            async for _ in provider.chat_stream("missing", MESSAGES):
                pass
