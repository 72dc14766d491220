"""Data types shared across the runner, API and publishing layers."""

from content_forge.data.tools import (
    ToolDefinition,
    ToolInput,
    ToolInvocationRequest,
    ToolInvocationResult,
)

__all__ = [
    "ToolDefinition",
    "ToolInput",
    "ToolInvocationRequest",
    "ToolInvocationResult",
]
