"""Application settings via environment variables."""

from functools import lru_cache
from pathlib import Path

from pydantic_settings import BaseSettings

from content_forge.config.models import ProviderSettings, RunnerConfig


DEFINITIONS_DIR = Path(__file__).resolve().parent.parent / "definitions"


class Settings(BaseSettings):
    """Application settings via environment variables."""

    # Provider selection
    # Options: "ollama" (local), "gemini", "openai", "deepseek"
    ai_provider: str | None = None

    # Ollama (local inference)
    ollama_base_url: str | None = None
    ollama_model: str | None = None

    # Google Gemini
    gemini_api_key: str | None = None
    gemini_base_url: str | None = None
    gemini_model: str | None = None

    # OpenAI-compatible backends
    openai_api_key: str | None = None
    openai_base_url: str | None = "https://api.openai.com/v1"
    openai_model: str | None = None

    deepseek_api_key: str | None = None
    deepseek_base_url: str | None = "https://api.deepseek.com"
    deepseek_model: str | None = None

    # Network timeout for provider calls (LLM calls can be slow)
    llm_timeout_seconds: float = 120.0

    # Tool and prompt definitions
    tools_dir: Path = DEFINITIONS_DIR / "tools"
    prompts_dir: Path = DEFINITIONS_DIR / "prompts"

    # WordPress publishing
    wp_api_base: str | None = None
    wp_username: str | None = None
    wp_app_password: str | None = None

    # Logging
    log_level: str = "INFO"
    log_json: bool = False

    # Server
    host: str = "0.0.0.0"
    port: int = 3000

    model_config = {
        "env_file": (".env", ".env.local"),
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }

    def to_runner_config(self) -> RunnerConfig:
        """Build the explicit runner configuration from these settings."""
        return RunnerConfig(
            default_provider_type=self.ai_provider,
            providers={
                "ollama": ProviderSettings(
                    base_url=self.ollama_base_url,
                    default_model=self.ollama_model,
                ),
                "gemini": ProviderSettings(
                    base_url=self.gemini_base_url,
                    api_key=self.gemini_api_key,
                    default_model=self.gemini_model,
                ),
                "openai": ProviderSettings(
                    base_url=self.openai_base_url,
                    api_key=self.openai_api_key,
                    default_model=self.openai_model,
                ),
                "deepseek": ProviderSettings(
                    base_url=self.deepseek_base_url,
                    api_key=self.deepseek_api_key,
                    default_model=self.deepseek_model,
                ),
            },
            timeout_seconds=self.llm_timeout_seconds,
        )


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
