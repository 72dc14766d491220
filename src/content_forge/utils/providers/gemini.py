"""Google Gemini provider with automatic model downgrade.

Failure handling:
- Retryable failures (400, 404, 429, 500, 503, quota, empty response)
  move on to the next model in the priority list
- Auth failures and unreadable responses abort immediately
"""

from typing import Any, Sequence

from content_forge.config.models import (
    DEFAULT_TEMPERATURE,
    GEMINI_BASE_URL,
    GEMINI_MAX_OUTPUT_TOKENS,
    GEMINI_MODEL_PRIORITY,
)
from content_forge.core.exceptions import EmptyResponseError, ProviderResponseError
from content_forge.core.resilience import (
    ModelFallbackChain,
    classify_http_error,
    wrap_httpx_errors,
)
from content_forge.utils.logging import get_logger
from content_forge.utils.providers.base import (
    BaseLLMProvider,
    ChatMessage,
    ProviderResponse,
)


logger = get_logger(__name__)

# Models in this family emit reasoning tokens unless told not to
THINKING_MODEL_MARKER = "gemini-3"


class GeminiProvider(BaseLLMProvider):
    """
    Gemini `generateContent` provider.

    Features:
    - Ordered model downgrade on retryable failures
    - System instruction split out of the message list
    - Reasoning output suppressed for thinking-family models
    """

    def __init__(
        self,
        api_key: str | None,
        base_url: str | None = None,
        model_priority: Sequence[str] = GEMINI_MODEL_PRIORITY,
        temperature: float = DEFAULT_TEMPERATURE,
        max_output_tokens: int = GEMINI_MAX_OUTPUT_TOKENS,
        **kwargs: Any,
    ):
        """
        Initialize Gemini provider.

        Args:
            api_key: Google AI API key
            base_url: API root (default: generativelanguage v1beta)
            model_priority: Downgrade order used after the requested model
            temperature: Sampling temperature
            max_output_tokens: Output length bound
            **kwargs: Passed to BaseLLMProvider (client, timeout)
        """
        super().__init__(**kwargs)
        self.api_key = api_key
        self.base_url = (base_url or GEMINI_BASE_URL).rstrip("/")
        self.temperature = temperature
        self.max_output_tokens = max_output_tokens
        self.fallback_chain = ModelFallbackChain(model_priority, provider="gemini")

    @property
    def provider_name(self) -> str:
        return "gemini"

    @property
    def model_priority(self) -> list[str]:
        return self.fallback_chain.priority

    async def chat(
        self,
        model: str | None,
        messages: Sequence[ChatMessage],
    ) -> ProviderResponse:
        """
        Call Gemini, downgrading through the model priority list.

        Returns:
            ProviderResponse labelled with the model that actually answered

        Raises:
            AllModelsExhaustedError: Every candidate failed with a retryable error
            ProviderAuthError: Credentials rejected; no other model is tried
        """

        async def attempt(model_id: str) -> str:
            return await self._execute_request(model_id, messages)

        model_id, text = await self.fallback_chain.run(model, attempt)
        return ProviderResponse(text=text, actual_model=f"Gemini: {model_id}")

    def build_request_body(
        self, model_id: str, messages: Sequence[ChatMessage]
    ) -> dict[str, Any]:
        """Build the generateContent request body for one model."""
        system_message = next((m for m in messages if m.role == "system"), None)
        contents = [
            {
                "role": "model" if m.role == "assistant" else "user",
                "parts": [{"text": m.content}],
            }
            for m in messages
            if m.role != "system"
        ]

        body: dict[str, Any] = {
            "contents": contents,
            "generationConfig": {
                "temperature": self.temperature,
                "maxOutputTokens": self.max_output_tokens,
            },
        }
        if system_message is not None:
            body["system_instruction"] = {"parts": [{"text": system_message.content}]}
        if THINKING_MODEL_MARKER in model_id:
            body["generationConfig"]["thinkingConfig"] = {
                "includeThoughts": False,
                "thinkingLevel": "low",
            }
        return body

    @wrap_httpx_errors
    async def _execute_request(
        self, model_id: str, messages: Sequence[ChatMessage]
    ) -> str:
        """Single request against one model. No retries here."""
        client = self._get_client()
        response = await client.post(
            f"{self.base_url}/models/{model_id}:generateContent",
            params={"key": self.api_key or ""},
            json=self.build_request_body(model_id, messages),
        )

        try:
            data = response.json()
        except ValueError:
            data = {}

        if response.is_error:
            detail = ""
            if isinstance(data, dict):
                detail = (data.get("error") or {}).get("message", "")
            error = classify_http_error(
                response.status_code,
                detail or response.text[:200],
                provider=self.provider_name,
                model=model_id,
            )
            logger.error(
                "Gemini request failed",
                model=model_id,
                status_code=response.status_code,
                error=str(error),
            )
            raise error

        return self.extract_text(data, model_id)

    def extract_text(self, data: Any, model_id: str) -> str:
        """
        Pull the answer text out of a generateContent response.

        Parts flagged as `thought` are reasoning output and are dropped. A
        response without any remaining text is reported as empty so the
        downgrade chain can try another model.
        """
        if not isinstance(data, dict):
            raise ProviderResponseError(
                "Gemini response is not a JSON object",
                provider=self.provider_name,
                model=model_id,
            )

        candidates = data.get("candidates") or []
        candidate = candidates[0] if candidates else None
        content = candidate.get("content") if isinstance(candidate, dict) else None
        parts = content.get("parts") if isinstance(content, dict) else None

        if not parts:
            thoughts = (data.get("usageMetadata") or {}).get("thoughtsTokenCount")
            logger.warning(
                "Gemini returned empty content",
                model=model_id,
                thoughts_tokens=thoughts,
            )
            raise EmptyResponseError(
                f"Gemini model {model_id} returned empty content",
                provider=self.provider_name,
                model=model_id,
            )

        if not isinstance(parts, list):
            raise ProviderResponseError(
                f"Unexpected Gemini parts payload: {type(parts).__name__}",
                provider=self.provider_name,
                model=model_id,
            )

        texts = [
            part["text"]
            for part in parts
            if isinstance(part, dict) and part.get("text") and not part.get("thought")
        ]
        if not texts:
            logger.warning("Gemini returned only reasoning output", model=model_id)
            raise EmptyResponseError(
                f"Gemini model {model_id} returned no answer text",
                provider=self.provider_name,
                model=model_id,
            )

        return "".join(texts).strip()
