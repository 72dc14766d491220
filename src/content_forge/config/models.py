"""Provider configuration and model defaults.

Defines the explicit configuration handed to the tool runner:
- Per-provider connection settings (base URL, API key, default model)
- Hardcoded fallback model ids per provider
- The fixed local target used when a cloud provider fails completely
"""

from dataclasses import dataclass, field


LOCAL_PROVIDER = "ollama"

# Whole-system fallback target. Fixed on purpose, not configuration.
LOCAL_FALLBACK_BASE_URL = "http://127.0.0.1:11434"
LOCAL_FALLBACK_MODEL = "gemma3:12b"

# Used when neither the tool definition nor configuration names a model
DEFAULT_MODELS: dict[str, str] = {
    "ollama": "gemma3:12b",
    "gemini": "gemini-1.5-flash",
    "deepseek": "deepseek-chat",
    "openai": "gpt-4o-mini",
}
GENERIC_DEFAULT_MODEL = "deepseek-chat"

# Gemini downgrade order, newest first
GEMINI_MODEL_PRIORITY: tuple[str, ...] = (
    "gemini-3-flash-preview",
    "gemini-2.5-flash",
    "gemini-2.0-flash",
    "gemini-1.5-flash",
)
GEMINI_BASE_URL = "https://generativelanguage.googleapis.com/v1beta"

# Generation options shared by all adapters
DEFAULT_TEMPERATURE = 0.7
GEMINI_MAX_OUTPUT_TOKENS = 2048


@dataclass(frozen=True)
class ProviderSettings:
    """Connection settings for one provider type."""

    base_url: str | None = None
    api_key: str | None = None
    default_model: str | None = None


@dataclass(frozen=True)
class ProviderConfig:
    """Resolved configuration for a single provider invocation."""

    provider_type: str
    base_url: str | None = None
    api_key: str | None = None


@dataclass(frozen=True)
class RunnerConfig:
    """
    Configuration for the tool runner.

    Built once at the boundary (see `Settings.to_runner_config`) so the core
    never reads the process environment.
    """

    default_provider_type: str | None = None
    providers: dict[str, ProviderSettings] = field(default_factory=dict)
    timeout_seconds: float = 120.0

    def provider_settings(self, provider_type: str) -> ProviderSettings:
        """Get settings for a provider type, empty if not configured."""
        return self.providers.get(provider_type.lower(), ProviderSettings())

    def provider_config(self, provider_type: str) -> ProviderConfig:
        """Resolve the connection config for a provider type."""
        provider_type = provider_type.lower()
        settings = self.provider_settings(provider_type)
        base_url = settings.base_url
        if base_url is None and provider_type == LOCAL_PROVIDER:
            base_url = LOCAL_FALLBACK_BASE_URL
        return ProviderConfig(
            provider_type=provider_type,
            base_url=base_url,
            api_key=settings.api_key,
        )

    def default_model(self, provider_type: str) -> str:
        """Configured default model, else the hardcoded one for the type."""
        provider_type = provider_type.lower()
        configured = self.provider_settings(provider_type).default_model
        if configured:
            return configured
        return DEFAULT_MODELS.get(provider_type, GENERIC_DEFAULT_MODEL)

    def local_fallback_config(self) -> ProviderConfig:
        """Connection config for the whole-system local fallback."""
        base_url = self.provider_settings(LOCAL_PROVIDER).base_url
        return ProviderConfig(
            provider_type=LOCAL_PROVIDER,
            base_url=base_url or LOCAL_FALLBACK_BASE_URL,
        )
