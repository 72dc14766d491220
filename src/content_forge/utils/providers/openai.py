"""OpenAI-compatible chat completions provider (OpenAI, DeepSeek, ...)."""

from typing import Any, Sequence

from content_forge.config.models import DEFAULT_TEMPERATURE
from content_forge.core.exceptions import ProviderError, ProviderResponseError
from content_forge.core.resilience import classify_http_error, wrap_httpx_errors
from content_forge.utils.logging import get_logger
from content_forge.utils.providers.base import (
    BaseLLMProvider,
    ChatMessage,
    ProviderResponse,
)


logger = get_logger(__name__)


class OpenAICompatibleProvider(BaseLLMProvider):
    """
    Provider for any backend speaking the `/chat/completions` protocol.

    Single-shot, bearer-token authenticated. The actual model label is the
    requested model id as given.
    """

    def __init__(
        self,
        api_key: str | None,
        base_url: str | None,
        name: str = "openai",
        temperature: float = DEFAULT_TEMPERATURE,
        **kwargs: Any,
    ):
        super().__init__(**kwargs)
        if not base_url:
            raise ProviderError(
                f"Base URL required for {name}. Set {name.upper()}_BASE_URL.",
                provider=name,
            )
        self.api_key = api_key
        self.base_url = base_url
        self.name = name
        self.temperature = temperature

    @property
    def provider_name(self) -> str:
        return self.name

    @property
    def endpoint(self) -> str:
        if self.base_url.endswith("/"):
            return f"{self.base_url}chat/completions"
        return f"{self.base_url}/chat/completions"

    @wrap_httpx_errors
    async def chat(
        self,
        model: str | None,
        messages: Sequence[ChatMessage],
    ) -> ProviderResponse:
        logger.info("Calling chat completions", provider=self.name, model=model)
        client = self._get_client()
        response = await client.post(
            self.endpoint,
            headers={"Authorization": f"Bearer {self.api_key or ''}"},
            json={
                "model": model,
                "messages": [m.to_dict() for m in messages],
                "temperature": self.temperature,
            },
        )

        if response.is_error:
            body = response.text
            logger.error(
                "Chat completions request failed",
                provider=self.name,
                status_code=response.status_code,
                body=body[:300],
            )
            detail = f"API request failed: {response.status_code}"
            if "not found" in body.lower():
                detail = (
                    f"Model {model} is not accessible. Check that the API is "
                    "enabled for this key and the region is supported."
                )
            raise classify_http_error(
                response.status_code, detail, provider=self.name, model=model
            )

        try:
            content = response.json()["choices"][0]["message"]["content"]
        except (ValueError, KeyError, IndexError, TypeError) as e:
            raise ProviderResponseError(
                f"Failed to parse response: {e}", provider=self.name, model=model
            ) from e

        return ProviderResponse(text=content, actual_model=model or "")
