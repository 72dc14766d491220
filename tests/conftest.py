"""Pytest fixtures for testing."""

import json
from pathlib import Path
from typing import Any, Callable, Sequence

import httpx
import pytest

from content_forge.config.models import ProviderConfig, ProviderSettings, RunnerConfig
from content_forge.config.settings import Settings
from content_forge.core.definitions import ToolDefinitionStore
from content_forge.utils.providers.base import (
    BaseLLMProvider,
    ChatMessage,
    ProviderResponse,
)


TOOL_DEFINITIONS: dict[str, dict[str, Any]] = {
    "brief": {
        "inputs": {
            "question": {"required": True},
            "platform": {"required": True},
        },
        "prompt": "brief.{platform}.md",
        "outputType": "text",
        "models": {"ollama": "gemma3:12b", "gemini": "gemini-3-flash-preview"},
    },
    "brief.keywords": {
        "inputs": {"file": {"required": True}},
        "prompt": "brief.keywords.md",
        "outputType": "json",
    },
    "article_outline": {
        "inputs": {"question": {"required": True}},
        "prompt": "article_outline.md",
        "outputType": "json",
    },
    "article_section": {
        "inputs": {"question": {"required": True}},
        "prompt": "article_section.md",
        "outputType": "text",
    },
    "pinned": {
        "inputs": {"question": {"required": True}},
        "prompt": "plain.md",
        "defaultProvider": "deepseek",
        "models": {"deepseek": "deepseek-reasoner"},
    },
    "plain": {
        "inputs": {"question": {"required": True}},
        "prompt": "plain.md",
    },
    "orphan": {
        "inputs": {},
        "prompt": "missing.md",
    },
}

PROMPTS: dict[str, str] = {
    "brief.zhihu.md": "Write a zhihu answer.",
    "brief.xhs.md": "Write a xhs note.",
    "brief.keywords.md": "Extract keywords as a JSON array.",
    "article_outline.md": "Return an outline object.",
    "article_section.md": "Write one section.",
    "plain.md": "Answer plainly.",
}


class FakeProvider(BaseLLMProvider):
    """Provider returning scripted responses and recording every call."""

    def __init__(
        self,
        name: str,
        responses: list[Any],
        calls: list[dict[str, Any]],
        config: ProviderConfig | None = None,
    ):
        super().__init__()
        self.name = name
        self.responses = responses
        self.calls = calls
        self.config = config
        self.closed = False

    @property
    def provider_name(self) -> str:
        return self.name

    async def chat(
        self, model: str | None, messages: Sequence[ChatMessage]
    ) -> ProviderResponse:
        self.calls.append(
            {
                "provider": self.name,
                "model": model,
                "messages": list(messages),
                "config": self.config,
            }
        )
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return ProviderResponse(text=response, actual_model=f"{self.name}: {model}")

    async def close(self) -> None:
        self.closed = True


class ScriptedProviderFactory:
    """
    Provider factory handing out FakeProviders.

    Responses are queued per provider type and consumed in call order.
    """

    def __init__(self) -> None:
        self.responses: dict[str, list[Any]] = {}
        self.calls: list[dict[str, Any]] = []
        self.created: list[FakeProvider] = []

    def script(self, provider_type: str, *responses: Any) -> "ScriptedProviderFactory":
        self.responses.setdefault(provider_type, []).extend(responses)
        return self

    def __call__(
        self,
        provider_type: str,
        config: ProviderConfig | None = None,
        **kwargs: Any,
    ) -> FakeProvider:
        provider = FakeProvider(
            provider_type,
            self.responses.setdefault(provider_type, []),
            self.calls,
            config,
        )
        self.created.append(provider)
        return provider


def write_definitions(root: Path) -> tuple[Path, Path]:
    """Write the test tool definitions and prompts under `root`."""
    tools_dir = root / "tools"
    prompts_dir = root / "prompts"
    tools_dir.mkdir()
    prompts_dir.mkdir()
    for tool_id, definition in TOOL_DEFINITIONS.items():
        (tools_dir / f"{tool_id}.json").write_text(
            json.dumps(definition), encoding="utf-8"
        )
    for filename, content in PROMPTS.items():
        (prompts_dir / filename).write_text(content, encoding="utf-8")
    return tools_dir, prompts_dir


@pytest.fixture
def definitions_dir(tmp_path: Path) -> tuple[Path, Path]:
    """Create tool and prompt directories for testing."""
    return write_definitions(tmp_path)


@pytest.fixture
def definition_store(definitions_dir: tuple[Path, Path]) -> ToolDefinitionStore:
    """Create a definition store over the test definitions."""
    tools_dir, prompts_dir = definitions_dir
    return ToolDefinitionStore(tools_dir, prompts_dir)


@pytest.fixture
def runner_config() -> RunnerConfig:
    """Create runner configuration for testing."""
    return RunnerConfig(
        default_provider_type="gemini",
        providers={
            "ollama": ProviderSettings(base_url="http://ollama.test:11434"),
            "gemini": ProviderSettings(api_key="gemini-key"),
            "deepseek": ProviderSettings(
                base_url="https://api.deepseek.test", api_key="ds-key"
            ),
        },
    )


@pytest.fixture
def provider_factory() -> ScriptedProviderFactory:
    """Create a scripted provider factory for testing."""
    return ScriptedProviderFactory()


@pytest.fixture
def settings(definitions_dir: tuple[Path, Path]) -> Settings:
    """Create test settings."""
    tools_dir, prompts_dir = definitions_dir
    return Settings(
        _env_file=None,
        ai_provider="ollama",
        ollama_base_url="http://ollama.test:11434",
        tools_dir=tools_dir,
        prompts_dir=prompts_dir,
        wp_api_base="https://wp.test/wp-json",
        wp_username="editor",
        wp_app_password="app-pass",
        log_level="DEBUG",
    )


def mock_client(handler: Callable[[httpx.Request], httpx.Response]) -> httpx.AsyncClient:
    """HTTP client routed to an in-process handler."""
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


@pytest.fixture
def make_client() -> Callable[..., httpx.AsyncClient]:
    """Factory for HTTP clients routed to in-process handlers."""
    return mock_client
