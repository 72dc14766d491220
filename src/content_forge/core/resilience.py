"""Failure classification and fallback chains for provider calls.

Provider calls are never retried against the same model. Resilience comes
from two places:
- the model fallback chain inside a multi-model provider (swap model)
- the whole-system fallback in the tool runner (swap provider)

This module owns the vocabulary both rely on: which failures are worth
trying an alternative for, and how raw HTTP failures map onto the provider
error taxonomy.

Usage:
    from content_forge.core.resilience import ModelFallbackChain, wrap_httpx_errors

    chain = ModelFallbackChain(["model-a", "model-b"], provider="gemini")
    model, text = await chain.run(requested, attempt)
"""

from functools import wraps
from typing import Any, Awaitable, Callable, Sequence, TypeVar

import httpx

from content_forge.core.exceptions import (
    AllModelsExhaustedError,
    BadRequestError,
    EmptyResponseError,
    ModelNotFoundError,
    ProviderAuthError,
    ProviderError,
    RateLimitError,
    TransientError,
)
from content_forge.utils.logging import get_logger


logger = get_logger(__name__)

__all__ = [
    "RETRYABLE_STATUS_CODES",
    "AUTH_STATUS_CODES",
    "classify_http_error",
    "is_retryable",
    "wrap_httpx_errors",
    "ModelFallbackChain",
]


# =============================================================================
# CLASSIFICATION
# =============================================================================


RETRYABLE_STATUS_CODES = frozenset({400, 404, 429, 500, 503})
AUTH_STATUS_CODES = frozenset({401, 403})


def classify_http_error(
    status_code: int,
    detail: str = "",
    *,
    provider: str | None = None,
    model: str | None = None,
) -> ProviderError:
    """
    Classify an HTTP status code into the matching provider error.

    Args:
        status_code: HTTP status code returned by the backend
        detail: Error message extracted from the response body
        provider: Provider name for error context
        model: Model id for error context

    Returns:
        ProviderError subclass; recoverable for the retryable status codes
    """
    message = f"[{status_code}] {detail or 'Unknown error'}"
    context: dict[str, Any] = {
        "provider": provider,
        "model": model,
        "status_code": status_code,
    }

    if status_code in AUTH_STATUS_CODES:
        return ProviderAuthError(message, **context)
    if status_code == 429:
        return RateLimitError(message, **context)
    if status_code == 404:
        return ModelNotFoundError(message, **context)
    if status_code == 400:
        return BadRequestError(message, **context)
    if status_code in RETRYABLE_STATUS_CODES:
        return TransientError(message, **context)
    return ProviderError(message, **context)


def is_retryable(error: BaseException) -> bool:
    """
    Decide whether another model may succeed where this one failed.

    Auth failures are never retryable. Quota messages are retryable even
    when the status code alone would not say so.
    """
    if isinstance(error, ProviderAuthError):
        return False
    if isinstance(error, EmptyResponseError):
        return True
    if isinstance(error, ProviderError):
        if error.recoverable:
            return True
        return "quota" in str(error).lower()
    return False


F = TypeVar("F", bound=Callable[..., Any])


def wrap_httpx_errors(func: F) -> F:
    """
    Decorator to convert httpx transport exceptions to provider errors.

    The wrapped coroutine must be a method of an object exposing
    `provider_name`. Status errors are left to the caller, which has the
    response body at hand for a better message.
    """

    @wraps(func)
    async def wrapper(self: Any, *args: Any, **kwargs: Any) -> Any:
        try:
            return await func(self, *args, **kwargs)
        except httpx.TimeoutException as e:
            raise TransientError(
                f"Request timeout: {e}", provider=self.provider_name
            ) from e
        except httpx.TransportError as e:
            raise TransientError(
                f"Connection error: {e}", provider=self.provider_name
            ) from e

    return wrapper  # type: ignore


# =============================================================================
# MODEL FALLBACK CHAIN
# =============================================================================


T = TypeVar("T")


class ModelFallbackChain:
    """
    Ordered model fallback for a single provider.

    Tries the requested model first, then the configured priority list
    (without repeating the requested model). Retryable failures move on to
    the next candidate; anything else aborts the chain immediately. This is
    a pure fallback sequence, not a load balancer.
    """

    def __init__(self, priority: Sequence[str], provider: str | None = None):
        self.priority = list(priority)
        self.provider = provider

    def candidates(self, requested: str | None = None) -> list[str]:
        """Return the ordered list of models to attempt."""
        if not requested:
            return list(self.priority)
        return [requested, *(m for m in self.priority if m != requested)]

    async def run(
        self,
        requested: str | None,
        attempt: Callable[[str], Awaitable[T]],
    ) -> tuple[str, T]:
        """
        Run `attempt` against each candidate until one succeeds.

        Args:
            requested: Explicitly requested model id, tried first
            attempt: Coroutine function performing one call for a model id

        Returns:
            Tuple of (model id that succeeded, its result)

        Raises:
            AllModelsExhaustedError: Every candidate failed with a retryable error
            Exception: The first terminal error, unchanged
        """
        last_error: Exception | None = None
        attempted: list[str] = []

        for model in self.candidates(requested):
            attempted.append(model)
            logger.info("Attempting model", provider=self.provider, model=model)
            try:
                result = await attempt(model)
            except Exception as e:
                if not is_retryable(e):
                    logger.error(
                        "Terminal model failure, aborting fallback chain",
                        provider=self.provider,
                        model=model,
                        error=str(e),
                    )
                    raise
                last_error = e
                logger.warning(
                    "Model failed, downgrading to next candidate",
                    provider=self.provider,
                    model=model,
                    error=str(e)[:120],
                )
                continue
            return model, result

        raise AllModelsExhaustedError(
            last_error, provider=self.provider, attempted=attempted
        )
