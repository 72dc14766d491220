"""Domain exceptions for content forge."""


class ContentForgeError(Exception):
    """Base exception for all content forge errors."""

    def __init__(self, message: str, recoverable: bool = True):
        super().__init__(message)
        self.message = message
        self.recoverable = recoverable


# =============================================================================
# TOOL DEFINITION ERRORS
# =============================================================================


class ToolDefinitionError(ContentForgeError):
    """Error resolving a tool definition or its inputs. Never retried."""

    def __init__(self, message: str, tool_id: str | None = None):
        super().__init__(message, recoverable=False)
        self.tool_id = tool_id


class ToolNotFoundError(ToolDefinitionError):
    """No definition exists for the requested tool id."""

    def __init__(self, tool_id: str):
        super().__init__(f"Tool not found: {tool_id}", tool_id=tool_id)


class PromptNotFoundError(ToolDefinitionError):
    """The resolved prompt template file does not exist."""

    def __init__(self, prompt_file: str, tool_id: str | None = None):
        super().__init__(f"Prompt file not found: {prompt_file}", tool_id=tool_id)
        self.prompt_file = prompt_file


class MissingInputError(ToolDefinitionError):
    """A required tool input is absent or empty."""

    def __init__(self, input_name: str, tool_id: str | None = None):
        super().__init__(f"Missing input: {input_name}", tool_id=tool_id)
        self.input_name = input_name


# =============================================================================
# PROVIDER ERRORS
# =============================================================================


class ProviderError(ContentForgeError):
    """
    Error raised while talking to an LLM backend.

    `recoverable` marks errors that switching to another model of the same
    provider may fix. The model downgrade chain only continues past
    recoverable errors.
    """

    def __init__(
        self,
        message: str,
        provider: str | None = None,
        model: str | None = None,
        status_code: int | None = None,
        recoverable: bool = False,
    ):
        super().__init__(message, recoverable)
        self.provider = provider
        self.model = model
        self.status_code = status_code


class UnsupportedProviderError(ProviderError):
    """The provider type is not one of the known backends."""

    def __init__(self, provider: str):
        super().__init__(
            f"Unsupported provider: {provider}. "
            "Supported providers: ollama, openai, deepseek, gemini",
            provider=provider,
        )


class ProviderAuthError(ProviderError):
    """Authentication or authorization failure (HTTP 401/403)."""


class RateLimitError(ProviderError):
    """Rate limit or quota exceeded (HTTP 429)."""

    def __init__(self, message: str, **kwargs):
        kwargs.setdefault("recoverable", True)
        super().__init__(message, **kwargs)


class TransientError(ProviderError):
    """Upstream overloaded, internal error or transport failure."""

    def __init__(self, message: str, **kwargs):
        kwargs.setdefault("recoverable", True)
        super().__init__(message, **kwargs)


class ModelNotFoundError(ProviderError):
    """The requested model id is unknown to the backend (HTTP 404)."""

    def __init__(self, message: str, **kwargs):
        kwargs.setdefault("recoverable", True)
        super().__init__(message, **kwargs)


class BadRequestError(ProviderError):
    """The backend rejected the request as malformed (HTTP 400)."""

    def __init__(self, message: str, **kwargs):
        kwargs.setdefault("recoverable", True)
        super().__init__(message, **kwargs)


class EmptyResponseError(ProviderError):
    """The backend answered but produced no usable text."""

    def __init__(self, message: str = "Empty response from model", **kwargs):
        kwargs.setdefault("recoverable", True)
        super().__init__(message, **kwargs)


class ProviderResponseError(ProviderError):
    """The response body could not be interpreted."""


class ProviderConnectionError(ProviderError, ConnectionError):
    """The backend rejected or could not accept the request."""


class AllModelsExhaustedError(ProviderError):
    """Every candidate model failed with a recoverable error."""

    def __init__(
        self,
        last_error: Exception | None,
        provider: str | None = None,
        attempted: list[str] | None = None,
    ):
        last_message = str(last_error) if last_error else "no candidates"
        super().__init__(
            f"All {provider or 'provider'} models failed. Last error: {last_message}",
            provider=provider,
        )
        self.last_error = last_error
        self.attempted = attempted or []


# =============================================================================
# PUBLISHING ERRORS
# =============================================================================


class PublishError(ContentForgeError):
    """Error pushing content to the CMS."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message, recoverable=False)
        self.status_code = status_code
