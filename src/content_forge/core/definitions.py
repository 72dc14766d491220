"""Tool definition and prompt template resolution.

Directory structure:
    {tools_dir}/
    ├── brief.json
    ├── brief.keywords.json
    └── ...
    {prompts_dir}/
    ├── brief.{platform}.md      (placeholder resolved from inputs)
    └── ...

Definitions are read from disk on every call; edits take effect on the next
invocation without a restart.
"""

import json
import re
from pathlib import Path
from typing import Any, Mapping

import aiofiles
import aiofiles.os
from pydantic import ValidationError

from content_forge.core.exceptions import (
    MissingInputError,
    PromptNotFoundError,
    ToolDefinitionError,
    ToolNotFoundError,
)
from content_forge.data.tools import ToolDefinition
from content_forge.utils.logging import get_logger


logger = get_logger(__name__)

TOOL_ID_PATTERN = re.compile(r"^[A-Za-z0-9_.-]+$")


def is_missing(value: Any) -> bool:
    """Whether an input value counts as absent."""
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, (list, dict, tuple)):
        return not value
    return False


def resolve_prompt_filename(template: str, inputs: Mapping[str, Any]) -> str:
    """Substitute `{name}` tokens in a prompt filename with input values."""
    filename = template
    for key, value in inputs.items():
        filename = filename.replace(f"{{{key}}}", str(value))
    return filename


class ToolDefinitionStore:
    """Loads tool definitions and prompt templates from the filesystem."""

    def __init__(self, tools_dir: str | Path, prompts_dir: str | Path):
        """
        Initialize the store.

        Args:
            tools_dir: Directory holding `{tool_id}.json` definitions
            prompts_dir: Directory holding prompt template files
        """
        self.tools_dir = Path(tools_dir)
        self.prompts_dir = Path(prompts_dir)

    def _tool_path(self, tool_id: str) -> Path:
        if not TOOL_ID_PATTERN.match(tool_id):
            raise ToolNotFoundError(tool_id)
        return self.tools_dir / f"{tool_id}.json"

    async def resolve(self, tool_id: str) -> ToolDefinition:
        """
        Load the definition for a tool.

        Raises:
            ToolNotFoundError: No definition file exists for the id
            ToolDefinitionError: The definition file is not a valid definition
        """
        path = self._tool_path(tool_id)
        if not await aiofiles.os.path.isfile(path):
            raise ToolNotFoundError(tool_id)

        async with aiofiles.open(path, "r", encoding="utf-8") as f:
            raw = await f.read()

        try:
            data = json.loads(raw)
            definition = ToolDefinition.model_validate({**data, "tool_id": tool_id})
        except (json.JSONDecodeError, ValidationError, TypeError) as e:
            logger.error("Invalid tool definition", tool_id=tool_id, error=str(e))
            raise ToolDefinitionError(
                f"Invalid tool definition: {tool_id}", tool_id=tool_id
            ) from e

        logger.debug("Loaded tool definition", tool_id=tool_id, output_type=definition.output_type)
        return definition

    def validate_inputs(
        self, definition: ToolDefinition, inputs: Mapping[str, Any]
    ) -> None:
        """
        Check required inputs, failing on the first missing one.

        Raises:
            MissingInputError: A required input is absent or empty
        """
        for name in definition.required_inputs:
            if is_missing(inputs.get(name)):
                raise MissingInputError(name, tool_id=definition.tool_id)

    async def load_prompt(
        self, definition: ToolDefinition, inputs: Mapping[str, Any]
    ) -> str:
        """
        Resolve and read the prompt template for a definition.

        Raises:
            PromptNotFoundError: The resolved template file does not exist
        """
        filename = resolve_prompt_filename(definition.prompt, inputs)
        path = (self.prompts_dir / filename).resolve()

        if self.prompts_dir.resolve() not in path.parents:
            raise PromptNotFoundError(filename, tool_id=definition.tool_id)
        if not await aiofiles.os.path.isfile(path):
            raise PromptNotFoundError(filename, tool_id=definition.tool_id)

        async with aiofiles.open(path, "r", encoding="utf-8") as f:
            return await f.read()

    async def list_tools(self) -> list[str]:
        """List ids of all tools with a definition file."""
        if not await aiofiles.os.path.isdir(self.tools_dir):
            return []
        names = await aiofiles.os.listdir(self.tools_dir)
        return sorted(name[: -len(".json")] for name in names if name.endswith(".json"))
