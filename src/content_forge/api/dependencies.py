"""FastAPI dependency injection."""

from typing import Annotated

import httpx
from fastapi import Depends, Request

from content_forge.config.settings import Settings, get_settings
from content_forge.core.definitions import ToolDefinitionStore
from content_forge.core.tool_runner import ToolRunner
from content_forge.publishing.wordpress import WordPressClient


def get_app_settings() -> Settings:
    """Get application settings."""
    return get_settings()


async def get_http_client(request: Request) -> httpx.AsyncClient | None:
    """Get the shared HTTP client from application state."""
    return getattr(request.app.state, "http_client", None)


async def get_definition_store(
    settings: Annotated[Settings, Depends(get_app_settings)],
) -> ToolDefinitionStore:
    """Get the tool definition store."""
    return ToolDefinitionStore(settings.tools_dir, settings.prompts_dir)


async def get_tool_runner(
    settings: Annotated[Settings, Depends(get_app_settings)],
    store: Annotated[ToolDefinitionStore, Depends(get_definition_store)],
    http_client: Annotated[httpx.AsyncClient | None, Depends(get_http_client)],
) -> ToolRunner:
    """
    Get a tool runner for this request.

    The runner holds no per-request state; building one per request keeps
    configuration changes visible without a restart of the process.
    """
    return ToolRunner(
        config=settings.to_runner_config(),
        store=store,
        http_client=http_client,
    )


async def get_wordpress_client(
    settings: Annotated[Settings, Depends(get_app_settings)],
    http_client: Annotated[httpx.AsyncClient | None, Depends(get_http_client)],
) -> WordPressClient:
    """Get a WordPress client configured from settings."""
    return WordPressClient(
        base_url=settings.wp_api_base,
        username=settings.wp_username,
        app_password=settings.wp_app_password,
        client=http_client,
    )


# Type aliases for dependency injection
SettingsDep = Annotated[Settings, Depends(get_app_settings)]
HttpClientDep = Annotated[httpx.AsyncClient | None, Depends(get_http_client)]
DefinitionStoreDep = Annotated[ToolDefinitionStore, Depends(get_definition_store)]
ToolRunnerDep = Annotated[ToolRunner, Depends(get_tool_runner)]
WordPressClientDep = Annotated[WordPressClient, Depends(get_wordpress_client)]
