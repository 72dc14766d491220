"""Tool definition and invocation types.

ToolDefinition: declarative task loaded from `tools/{tool_id}.json`
ToolInvocationRequest: what the tool runner receives
ToolInvocationResult: what the tool runner returns
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Literal, Mapping

from pydantic import BaseModel, ConfigDict, Field


OutputType = Literal["text", "json"]

# Wire keys lifted out of raw inputs into request fields
PROVIDER_INPUT_KEY = "provider"
RECURSIVE_INPUT_KEY = "_isRecursive"


class ToolInput(BaseModel):
    """Declaration of a single tool input."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    required: bool = False


class ToolDefinition(BaseModel):
    """
    Declarative tool definition.

    On-disk JSON uses camelCase keys (`outputType`, `defaultProvider`);
    both spellings are accepted.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    tool_id: str = ""
    inputs: dict[str, ToolInput] = Field(default_factory=dict)
    prompt: str
    output_type: OutputType = Field(default="text", alias="outputType")
    models: dict[str, str] = Field(default_factory=dict)
    default_provider: str | None = Field(default=None, alias="defaultProvider")

    @property
    def required_inputs(self) -> list[str]:
        return [name for name, spec in self.inputs.items() if spec.required]

    def pinned_model(self, provider_type: str) -> str | None:
        """Model pinned by this tool for a provider, if any."""
        return self.models.get(provider_type)


@dataclass(frozen=True)
class ToolInvocationRequest:
    """
    A single tool invocation.

    `is_recursive` marks nested invocations issued by the runner itself;
    they never trigger further derivation chains.
    """

    tool_id: str
    inputs: Mapping[str, Any] = field(default_factory=dict)
    provider: str | None = None
    is_recursive: bool = False

    @classmethod
    def from_payload(
        cls, tool_id: str, inputs: Mapping[str, Any]
    ) -> ToolInvocationRequest:
        """Build a request from raw inputs carrying `provider` / `_isRecursive`."""
        values = dict(inputs)
        provider = values.pop(PROVIDER_INPUT_KEY, None) or None
        is_recursive = bool(values.pop(RECURSIVE_INPUT_KEY, False))
        return cls(
            tool_id=tool_id,
            inputs=values,
            provider=str(provider) if provider else None,
            is_recursive=is_recursive,
        )


@dataclass(frozen=True)
class ToolInvocationResult:
    """Result of a tool invocation. Built once, never mutated."""

    tool_id: str
    output_type: OutputType
    result: Any
    keywords: list[str] = field(default_factory=list)
    actual_model: str = ""

    def to_dict(self) -> dict[str, Any]:
        """Wire format consumed by the UI."""
        return {
            "toolId": self.tool_id,
            "outputType": self.output_type,
            "result": self.result,
            "keywords": list(self.keywords),
            "actualModel": self.actual_model,
        }
