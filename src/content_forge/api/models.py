"""API request/response models."""

from typing import Any, Literal

from pydantic import BaseModel, Field


class RunRequest(BaseModel):
    """Request model for the tool run endpoint."""

    tool: str | None = Field(default=None, description="Tool id (tools/*.json name)")
    inputs: dict[str, Any] | None = Field(
        default=None, description="Tool inputs; may carry `provider`"
    )


class RunResponse(BaseModel):
    """Response model for the tool run endpoint."""

    output: dict[str, Any]


class ChatMessageModel(BaseModel):
    """One message of a streamed chat."""

    role: Literal["system", "user", "assistant"]
    content: str = ""


class ChatStreamRequest(BaseModel):
    """Request model for the streaming chat endpoint."""

    messages: list[ChatMessageModel]
    model: str | None = None


class BriefPublishRequest(BaseModel):
    """A generated brief to publish."""

    question: str = ""
    brief: str = ""
    summary: str = ""
    status: str = "draft"
    platform: str | None = None
    keywords: list[str] = Field(default_factory=list)


class ArticlePublishRequest(BaseModel):
    """A finished article to publish."""

    title: str
    content: str
    excerpt: str = ""
    status: str = "draft"
    tags: list[str] = Field(default_factory=list)


class PublishResponse(BaseModel):
    """Response model for publish endpoints."""

    success: bool
    result: dict[str, Any] | None = None
    message: str | None = None


class ToolsResponse(BaseModel):
    """Response model for tools endpoint."""

    tools: list[str]
    count: int


class HealthResponse(BaseModel):
    """Response model for health check."""

    status: str
    version: str
