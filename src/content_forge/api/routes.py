"""FastAPI routes for the content API."""

from fastapi import APIRouter
from fastapi.responses import JSONResponse, StreamingResponse

from content_forge import __version__
from content_forge.api.dependencies import (
    DefinitionStoreDep,
    HttpClientDep,
    SettingsDep,
    ToolRunnerDep,
    WordPressClientDep,
)
from content_forge.api.models import (
    ArticlePublishRequest,
    BriefPublishRequest,
    ChatStreamRequest,
    HealthResponse,
    PublishResponse,
    RunRequest,
    RunResponse,
    ToolsResponse,
)
from content_forge.api.sse import chat_event_generator
from content_forge.core.exceptions import (
    ContentForgeError,
    ProviderError,
    ToolDefinitionError,
)
from content_forge.publishing.article import publish_article as push_article
from content_forge.publishing.brief import publish_brief as push_brief
from content_forge.utils.llm import run_streaming_chat, to_chat_messages
from content_forge.utils.logging import get_logger


logger = get_logger(__name__)
router = APIRouter()


def _error_status(error: Exception) -> int:
    """Definition errors are the caller's fault; provider errors are upstream."""
    if isinstance(error, ToolDefinitionError):
        return 400
    if isinstance(error, ProviderError):
        return 502
    return 500


@router.get("/health", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """
    Health check endpoint.

    Returns application status and version.
    """
    return HealthResponse(status="healthy", version=__version__)


@router.get("/tools", response_model=ToolsResponse)
async def list_tools(store: DefinitionStoreDep) -> ToolsResponse:
    """List the tool ids available in the tools directory."""
    tools = await store.list_tools()
    return ToolsResponse(tools=tools, count=len(tools))


@router.post("/run", response_model=RunResponse)
async def run_tool(request: RunRequest, runner: ToolRunnerDep):
    """
    Run one tool invocation.

    The `inputs.provider` field, when present, overrides provider selection.
    Errors are returned as `{"error": message}`.
    """
    if not request.tool or request.inputs is None:
        return JSONResponse(status_code=400, content={"error": "tool and inputs required"})

    try:
        result = await runner.run_tool(request.tool, request.inputs)
    except ContentForgeError as e:
        status_code = _error_status(e)
        logger.error("Tool run failed", tool=request.tool, status=status_code, error=e.message)
        return JSONResponse(status_code=status_code, content={"error": e.message})
    except Exception as e:
        logger.exception("Unexpected tool run failure", tool=request.tool)
        return JSONResponse(status_code=500, content={"error": str(e)})

    return RunResponse(output=result.to_dict())


@router.post("/chat/stream")
async def chat_stream(
    request: ChatStreamRequest,
    settings: SettingsDep,
    http_client: HttpClientDep,
) -> StreamingResponse:
    """
    Stream a chat completion from the local model as Server-Sent Events.

    Events are `data: {"content": "..."}`, terminated by `data: [DONE]`.
    """
    messages = to_chat_messages(m.model_dump() for m in request.messages)
    fragments = run_streaming_chat(
        request.model,
        messages,
        settings.to_runner_config(),
        client=http_client,
    )
    return StreamingResponse(
        chat_event_generator(fragments),
        media_type="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "Connection": "keep-alive",
        },
    )


@router.post("/publish-brief", response_model=PublishResponse)
async def publish_brief(request: BriefPublishRequest, client: WordPressClientDep):
    """Push a generated brief to WordPress."""
    try:
        result = await push_brief(client, request.model_dump())
    except Exception as e:
        logger.error("Brief publish failed", error=str(e))
        return JSONResponse(
            status_code=500, content={"success": False, "message": str(e)}
        )
    finally:
        await client.close()
    return PublishResponse(success=True, result=result.to_dict())


@router.post("/publish-article", response_model=PublishResponse)
async def publish_article(request: ArticlePublishRequest, client: WordPressClientDep):
    """Push a finished long-form article to WordPress."""
    try:
        result = await push_article(
            client,
            title=request.title,
            content=request.content,
            excerpt=request.excerpt,
            status=request.status,
            tags=request.tags,
        )
    except Exception as e:
        logger.error("Article publish failed", error=str(e))
        return JSONResponse(
            status_code=500, content={"success": False, "message": str(e)}
        )
    finally:
        await client.close()
    return PublishResponse(success=True, result=result.to_dict())
