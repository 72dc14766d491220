"""Tests for the tool runner pipeline."""

import httpx
import pytest

from content_forge.config.models import LOCAL_FALLBACK_MODEL, ProviderSettings, RunnerConfig
from content_forge.core.exceptions import (
    MissingInputError,
    PromptNotFoundError,
    ProviderAuthError,
    ProviderConnectionError,
    RateLimitError,
    ToolNotFoundError,
    UnsupportedProviderError,
)
from content_forge.core.tool_runner import (
    DEFAULT_USER_INSTRUCTION,
    ToolRunner,
    build_user_content,
    keyword_source_text,
    normalize_keywords,
)
from content_forge.data.tools import ToolInvocationRequest


@pytest.fixture
def runner(runner_config, definition_store, provider_factory) -> ToolRunner:
    """Create a tool runner backed by scripted providers."""
    return ToolRunner(runner_config, definition_store, provider_factory=provider_factory)


class TestHelpers:
    """Tests for message and keyword helpers."""

    def test_user_content(self):
        """Test question and material sections."""
        assert build_user_content({"question": "Q", "file": "M"}) == (
            "question:\nQ\n\nmaterial:\nM"
        )
        assert build_user_content({"question": "Q"}) == "question:\nQ"

    def test_user_content_default_instruction(self):
        """Test the generic instruction when no text inputs are given."""
        assert build_user_content({"platform": "x"}) == DEFAULT_USER_INSTRUCTION

    def test_keyword_source_text(self):
        """Test choosing text for keyword extraction."""
        assert keyword_source_text("body") == "body"
        assert keyword_source_text({"brief": "inner"}) == "inner"
        assert keyword_source_text({"a": "中"}) == '{"a": "中"}'

    def test_normalize_keywords(self):
        """Test accepted keyword result shapes."""
        assert normalize_keywords(["a", "", "b"]) == ["a", "b"]
        assert normalize_keywords({"keywords": ["c"]}) == ["c"]
        assert normalize_keywords({"title": "x"}) == []


class TestResolution:
    """Tests for definition failures before any provider call."""

    @pytest.mark.asyncio
    async def test_unknown_tool(self, runner, provider_factory):
        """Test unknown tool id."""
        with pytest.raises(ToolNotFoundError):
            await runner.run_tool("nope", {})
        assert provider_factory.calls == []

    @pytest.mark.asyncio
    async def test_missing_input(self, runner, provider_factory):
        """Test that a missing required input stops before invocation."""
        with pytest.raises(MissingInputError, match="platform"):
            await runner.run_tool("brief", {"question": "Q"})
        assert provider_factory.calls == []

    @pytest.mark.asyncio
    async def test_missing_prompt(self, runner, provider_factory):
        """Test a definition whose prompt does not exist."""
        with pytest.raises(PromptNotFoundError):
            await runner.run_tool("orphan", {})
        assert provider_factory.calls == []


class TestSelection:
    """Tests for provider and model precedence."""

    @pytest.mark.asyncio
    async def test_caller_provider_wins(self, runner, provider_factory):
        """Test caller choice over tool and configured defaults."""
        provider_factory.script("ollama", "local answer")

        result = await runner.run_tool("pinned", {"question": "Q", "provider": "OLLAMA"})

        assert provider_factory.calls[0]["provider"] == "ollama"
        assert provider_factory.calls[0]["model"] == "gemma3:12b"
        assert result.result == "local answer"

    @pytest.mark.asyncio
    async def test_tool_default_provider_and_pinned_model(self, runner, provider_factory):
        """Test tool default provider over configured default."""
        provider_factory.script("deepseek", "ok")

        await runner.run_tool("pinned", {"question": "Q"})

        call = provider_factory.calls[0]
        assert call["provider"] == "deepseek"
        assert call["model"] == "deepseek-reasoner"
        assert call["config"].base_url == "https://api.deepseek.test"

    @pytest.mark.asyncio
    async def test_configured_default_provider(self, runner, provider_factory):
        """Test configured default when neither caller nor tool choose."""
        provider_factory.script("gemini", "ok")

        result = await runner.run_tool("plain", {"question": "Q"})

        assert provider_factory.calls[0]["provider"] == "gemini"
        assert provider_factory.calls[0]["model"] == "gemini-1.5-flash"
        assert result.actual_model == "gemini: gemini-1.5-flash"

    @pytest.mark.asyncio
    async def test_local_when_nothing_configured(self, definition_store, provider_factory):
        """Test the final local fallback for provider selection."""
        provider_factory.script("ollama", "ok")
        runner = ToolRunner(RunnerConfig(), definition_store, provider_factory=provider_factory)

        await runner.run_tool("plain", {"question": "Q"})

        call = provider_factory.calls[0]
        assert call["provider"] == "ollama"
        assert call["config"].base_url == "http://127.0.0.1:11434"

    @pytest.mark.asyncio
    async def test_messages(self, runner, provider_factory):
        """Test composed system and user messages."""
        provider_factory.script("gemini", "ok")

        await runner.run_tool("plain", {"question": "Why?", "file": "notes"})

        system, user = provider_factory.calls[0]["messages"]
        assert system.role == "system"
        assert system.content == "Answer plainly."
        assert user.content == "question:\nWhy?\n\nmaterial:\nnotes"

    @pytest.mark.asyncio
    async def test_provider_closed(self, runner, provider_factory):
        """Test that created providers are released."""
        provider_factory.script("gemini", "ok")
        await runner.run_tool("plain", {"question": "Q"})
        assert all(p.closed for p in provider_factory.created)


class TestLocalFallback:
    """Tests for whole-system fallback to the local provider."""

    @pytest.mark.asyncio
    async def test_cloud_failure_falls_back_once(self, runner, provider_factory):
        """Test exactly one extra local attempt after a cloud failure."""
        provider_factory.script("gemini", RateLimitError("quota"))
        provider_factory.script("ollama", "local text")

        result = await runner.run_tool("plain", {"question": "Q"})

        assert [c["provider"] for c in provider_factory.calls] == ["gemini", "ollama"]
        fallback = provider_factory.calls[1]
        assert fallback["model"] == LOCAL_FALLBACK_MODEL
        assert fallback["config"].base_url == "http://ollama.test:11434"
        assert result.result == "local text"
        assert result.actual_model == f"ollama: {LOCAL_FALLBACK_MODEL}"

    @pytest.mark.asyncio
    async def test_auth_failure_also_falls_back(self, runner, provider_factory):
        """Test that any cloud failure triggers the local fallback."""
        provider_factory.script("gemini", ProviderAuthError("bad key"))
        provider_factory.script("ollama", "local")

        result = await runner.run_tool("plain", {"question": "Q"})
        assert result.result == "local"

    @pytest.mark.asyncio
    async def test_fallback_failure_propagates(self, runner, provider_factory):
        """Test that a failing fallback surfaces its own error."""
        provider_factory.script("gemini", RateLimitError("quota"))
        provider_factory.script("ollama", ProviderConnectionError("down"))

        with pytest.raises(ProviderConnectionError):
            await runner.run_tool("plain", {"question": "Q"})
        assert len(provider_factory.calls) == 2

    @pytest.mark.asyncio
    async def test_unconstructible_cloud_provider_falls_back(self, definition_store, make_client):
        """Test fallback when the cloud adapter cannot be built (no base URL)."""
        calls = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(str(request.url))
            return httpx.Response(200, json={"message": {"content": "local"}})

        config = RunnerConfig(
            default_provider_type="openai",
            providers={"openai": ProviderSettings(api_key="k")},
        )
        runner = ToolRunner(config, definition_store, http_client=make_client(handler))

        result = await runner.run_tool("plain", {"question": "Q"})

        assert result.result == "local"
        assert result.actual_model == f"Ollama: {LOCAL_FALLBACK_MODEL}"
        assert calls == ["http://127.0.0.1:11434/api/chat"]

    @pytest.mark.asyncio
    async def test_unsupported_provider_not_masked(self, definition_store, make_client):
        """Test that an unknown provider type is reported, not replaced."""
        calls = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request)
            return httpx.Response(200, json={"message": {"content": "local"}})

        runner = ToolRunner(RunnerConfig(), definition_store, http_client=make_client(handler))

        with pytest.raises(UnsupportedProviderError):
            await runner.run_tool("plain", {"question": "Q", "provider": "anthropic"})
        assert calls == []

    @pytest.mark.asyncio
    async def test_local_failure_not_retried(self, runner, provider_factory):
        """Test that a failing local provider has no fallback."""
        provider_factory.script("ollama", ProviderConnectionError("down"))

        with pytest.raises(ProviderConnectionError):
            await runner.run_tool("plain", {"question": "Q", "provider": "ollama"})
        assert len(provider_factory.calls) == 1


class TestStructuredOutput:
    """Tests for JSON post-processing."""

    @pytest.mark.asyncio
    async def test_json_output_parsed(self, runner, provider_factory):
        """Test recovery of a truncated outline."""
        provider_factory.script("gemini", 'Outline: {"title":"A","sections":[{"heading":"B"')

        result = await runner.run_tool("article_outline", {"question": "AI"})

        assert result.output_type == "json"
        assert result.result == {"title": "A", "sections": [{"heading": "B"}]}

    @pytest.mark.asyncio
    async def test_text_output_untouched(self, runner, provider_factory):
        """Test that text tools return the raw text."""
        provider_factory.script("gemini", '{"not": "parsed"}')
        result = await runner.run_tool("plain", {"question": "Q"})
        assert result.result == '{"not": "parsed"}'


class TestKeywordDerivation:
    """Tests for nested keyword extraction on briefs."""

    @pytest.mark.asyncio
    async def test_brief_derives_keywords_with_same_provider(self, runner, provider_factory):
        """Test exactly one nested keyword call on the resolved provider."""
        provider_factory.script("ollama", "The brief body", '["AI", "写作"]')

        result = await runner.run_tool(
            "brief", {"question": "Q", "platform": "zhihu", "provider": "ollama"}
        )

        assert result.result == "The brief body"
        assert result.keywords == ["AI", "写作"]
        assert len(provider_factory.calls) == 2
        nested = provider_factory.calls[1]
        assert nested["provider"] == "ollama"
        assert nested["messages"][0].content == "Extract keywords as a JSON array."
        assert nested["messages"][1].content == "question:\nQ\n\nmaterial:\nThe brief body"

    @pytest.mark.asyncio
    async def test_recursive_brief_does_not_derive(self, runner, provider_factory):
        """Test that nested invocations never derive keywords."""
        provider_factory.script("ollama", "body")

        result = await runner.run(
            ToolInvocationRequest(
                tool_id="brief",
                inputs={"question": "Q", "platform": "zhihu"},
                provider="ollama",
                is_recursive=True,
            )
        )

        assert result.keywords == []
        assert len(provider_factory.calls) == 1

    @pytest.mark.asyncio
    async def test_recursive_flag_from_payload(self, runner, provider_factory):
        """Test the wire flag marking a nested invocation."""
        provider_factory.script("ollama", "body")

        await runner.run_tool(
            "brief",
            {"question": "Q", "platform": "xhs", "provider": "ollama", "_isRecursive": True},
        )
        assert len(provider_factory.calls) == 1

    @pytest.mark.asyncio
    async def test_keyword_failure_yields_empty_list(self, runner, provider_factory):
        """Test that keyword extraction failures never fail the brief."""
        provider_factory.script("ollama", "body", ProviderConnectionError("down"))

        result = await runner.run_tool(
            "brief", {"question": "Q", "platform": "zhihu", "provider": "ollama"}
        )

        assert result.result == "body"
        assert result.keywords == []

    @pytest.mark.asyncio
    async def test_unparseable_keywords(self, runner, provider_factory):
        """Test that an unparseable keyword object yields no keywords."""
        provider_factory.script("ollama", "body", "no keywords here")

        result = await runner.run_tool(
            "brief", {"question": "Q", "platform": "zhihu", "provider": "ollama"}
        )
        assert result.keywords == []

    @pytest.mark.asyncio
    async def test_other_tools_do_not_derive(self, runner, provider_factory):
        """Test that only the brief tool derives keywords."""
        provider_factory.script("gemini", "answer")
        result = await runner.run_tool("plain", {"question": "Q"})
        assert result.keywords == []
        assert len(provider_factory.calls) == 1

    @pytest.mark.asyncio
    async def test_result_wire_format(self, runner, provider_factory):
        """Test the serialized invocation result."""
        provider_factory.script("ollama", "body", '["k"]')

        result = await runner.run_tool(
            "brief", {"question": "Q", "platform": "zhihu", "provider": "ollama"}
        )

        assert result.to_dict() == {
            "toolId": "brief",
            "outputType": "text",
            "result": "body",
            "keywords": ["k"],
            "actualModel": "ollama: gemma3:12b",
        }
