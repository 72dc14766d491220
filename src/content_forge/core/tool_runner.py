"""Tool runner: the orchestration core.

One invocation is a strictly sequential pipeline:

    resolve -> compose -> select -> invoke -> post-process -> derive

- resolve: load the tool definition, validate inputs (fatal on error)
- compose: system prompt from the template, user message from inputs
- select: provider type and model by precedence rules
- invoke: provider chat, with a one-shot local fallback for cloud providers
- post-process: JSON recovery for tools declaring JSON output
- derive: nested keyword extraction for the top-level brief tool
"""

import json
from typing import Any, Callable, Mapping

import httpx

from content_forge.config.models import (
    LOCAL_FALLBACK_MODEL,
    LOCAL_PROVIDER,
    ProviderConfig,
    RunnerConfig,
)
from content_forge.core.definitions import ToolDefinitionStore
from content_forge.core.exceptions import UnsupportedProviderError
from content_forge.core.output import parse_structured_output
from content_forge.data.tools import (
    ToolDefinition,
    ToolInvocationRequest,
    ToolInvocationResult,
)
from content_forge.utils.logging import get_logger
from content_forge.utils.providers import BaseLLMProvider, create_provider
from content_forge.utils.providers.base import ChatMessage, ProviderResponse


logger = get_logger(__name__)

BRIEF_TOOL_ID = "brief"
KEYWORDS_TOOL_ID = "brief.keywords"
DEFAULT_USER_INSTRUCTION = "Please complete the task as instructed."

ProviderFactory = Callable[..., BaseLLMProvider]


def build_user_content(inputs: Mapping[str, Any]) -> str:
    """Assemble the user message from the `question` and `file` inputs."""
    content = ""
    if inputs.get("question"):
        content += f"question:\n{inputs['question']}\n\n"
    if inputs.get("file"):
        content += f"material:\n{inputs['file']}\n\n"
    return content.strip() or DEFAULT_USER_INSTRUCTION


def build_messages(system_prompt: str, inputs: Mapping[str, Any]) -> list[ChatMessage]:
    """Build the system + user message pair for a tool invocation."""
    return [
        ChatMessage(role="system", content=system_prompt),
        ChatMessage(role="user", content=build_user_content(inputs)),
    ]


def keyword_source_text(result: Any) -> str:
    """Text handed to keyword extraction: the brief body when structured."""
    if isinstance(result, str):
        return result
    if isinstance(result, dict) and result.get("brief"):
        return str(result["brief"])
    return json.dumps(result, ensure_ascii=False)


def normalize_keywords(result: Any) -> list[str]:
    """Accept a bare list or an object with a `keywords` list."""
    if isinstance(result, dict):
        result = result.get("keywords")
    if isinstance(result, list):
        return [str(k) for k in result if k not in (None, "")]
    return []


class ToolRunner:
    """
    Runs declarative tools against LLM providers.

    Features:
    - Provider and model selection by precedence
    - Whole-system fallback to the local provider on cloud failure
    - Structured output recovery for JSON tools
    - Recursive keyword derivation for briefs (guarded by `is_recursive`)

    Stateless between invocations: the definition store re-reads files and
    the factory returns fresh providers, so concurrent runs are independent.
    """

    def __init__(
        self,
        config: RunnerConfig,
        store: ToolDefinitionStore,
        provider_factory: ProviderFactory = create_provider,
        http_client: httpx.AsyncClient | None = None,
    ):
        """
        Initialize tool runner.

        Args:
            config: Explicit provider configuration
            store: Tool definition store
            provider_factory: Maps (provider_type, config) to a provider
            http_client: Optional HTTP client shared by created providers
        """
        self.config = config
        self.store = store
        self.provider_factory = provider_factory
        self.http_client = http_client

    async def run_tool(
        self, tool_id: str, inputs: Mapping[str, Any]
    ) -> ToolInvocationResult:
        """Run a tool from raw inputs (which may carry `provider`)."""
        return await self.run(ToolInvocationRequest.from_payload(tool_id, inputs))

    async def run(self, request: ToolInvocationRequest) -> ToolInvocationResult:
        """
        Run one tool invocation through the full pipeline.

        Raises:
            ToolDefinitionError: Unknown tool, missing prompt or missing input
            ProviderError: Provider failed and no fallback succeeded
        """
        inputs = request.inputs

        # Resolve
        definition = await self.store.resolve(request.tool_id)
        self.store.validate_inputs(definition, inputs)
        system_prompt = await self.store.load_prompt(definition, inputs)

        # Compose
        messages = build_messages(system_prompt, inputs)

        # Select
        provider_type = self.select_provider_type(request, definition)
        model = self.select_model(definition, provider_type)
        logger.info(
            "Running tool",
            tool_id=request.tool_id,
            provider=provider_type,
            model=model,
            recursive=request.is_recursive,
        )

        # Invoke
        response = await self._invoke(provider_type, model, messages)

        # Post-process
        result: Any = response.text
        if definition.output_type == "json":
            result = parse_structured_output(response.text)

        # Derive
        keywords: list[str] = []
        if request.tool_id == BRIEF_TOOL_ID and not request.is_recursive:
            keywords = await self._derive_keywords(request, result, provider_type)

        return ToolInvocationResult(
            tool_id=request.tool_id,
            output_type=definition.output_type,
            result=result,
            keywords=keywords,
            actual_model=response.actual_model,
        )

    def select_provider_type(
        self, request: ToolInvocationRequest, definition: ToolDefinition
    ) -> str:
        """Caller input > tool default > configured default > local."""
        provider_type = (
            request.provider
            or definition.default_provider
            or self.config.default_provider_type
            or LOCAL_PROVIDER
        )
        return provider_type.lower()

    def select_model(self, definition: ToolDefinition, provider_type: str) -> str:
        """Tool pinned model > configured default > hardcoded default."""
        return definition.pinned_model(provider_type) or self.config.default_model(
            provider_type
        )

    def _create_provider(self, provider_type: str, config: ProviderConfig) -> BaseLLMProvider:
        return self.provider_factory(
            provider_type,
            config,
            client=self.http_client,
            timeout=self.config.timeout_seconds,
        )

    async def _chat(
        self, provider: BaseLLMProvider, model: str, messages: list[ChatMessage]
    ) -> ProviderResponse:
        try:
            return await provider.chat(model, messages)
        finally:
            await provider.close()

    async def _invoke(
        self, provider_type: str, model: str, messages: list[ChatMessage]
    ) -> ProviderResponse:
        """Call the selected provider, falling back to local once on failure."""
        try:
            provider = self._create_provider(
                provider_type, self.config.provider_config(provider_type)
            )
            return await self._chat(provider, model, messages)
        except UnsupportedProviderError:
            raise
        except Exception as e:
            if provider_type == LOCAL_PROVIDER:
                raise
            logger.warning(
                "Provider failed, falling back to local model",
                provider=provider_type,
                model=model,
                fallback_model=LOCAL_FALLBACK_MODEL,
                error=str(e),
            )
            local = self._create_provider(
                LOCAL_PROVIDER, self.config.local_fallback_config()
            )
            return await self._chat(local, LOCAL_FALLBACK_MODEL, messages)

    async def _derive_keywords(
        self,
        request: ToolInvocationRequest,
        result: Any,
        provider_type: str,
    ) -> list[str]:
        """Extract keywords with a nested invocation. Never raises."""
        nested = ToolInvocationRequest(
            tool_id=KEYWORDS_TOOL_ID,
            inputs={
                "question": request.inputs.get("question"),
                "file": keyword_source_text(result),
            },
            provider=provider_type,
            is_recursive=True,
        )
        try:
            keyword_result = await self.run(nested)
        except Exception as e:
            logger.error("Keyword extraction failed", error=str(e))
            return []

        keywords = normalize_keywords(keyword_result.result)
        logger.info("Extracted keywords", count=len(keywords), keywords=keywords)
        return keywords
