"""Long-form article generation and publishing.

An article is produced in two passes: an outline (JSON) and then one
section at a time. Both run as nested invocations so they never trigger
keyword derivation.
"""

from typing import Any, Mapping, Sequence

from content_forge.core.tool_runner import ToolRunner
from content_forge.data.tools import ToolInvocationRequest, ToolInvocationResult
from content_forge.publishing.wordpress import ArticlePost, PublishResult, WordPressClient
from content_forge.utils.logging import get_logger


logger = get_logger(__name__)

OUTLINE_TOOL_ID = "article_outline"
SECTION_TOOL_ID = "article_section"

DEFAULT_TAGS = ("AI智能创作", "深度长文")
DEFAULT_CATEGORIES = ("深度观察",)


async def generate_article_outline(
    runner: ToolRunner, topic: str, provider: str | None = None
) -> Any:
    """Generate the outline (`{title, sections: [{heading, key_points}]}`)."""
    result = await runner.run(
        ToolInvocationRequest(
            tool_id=OUTLINE_TOOL_ID,
            inputs={"question": topic},
            provider=provider,
            is_recursive=True,
        )
    )
    return result.result


def build_section_material(context: str | None, requirements: str | None) -> str:
    """Material block for a section: prior context plus its key points."""
    parts = []
    if context:
        parts.append(context)
    if requirements:
        parts.append(f"requirements: {requirements}")
    return "\n\n".join(parts)


async def generate_section(
    runner: ToolRunner,
    section: Mapping[str, Any],
    context: str | None = None,
    provider: str | None = None,
) -> ToolInvocationResult:
    """Generate the body of one outline section."""
    key_points = section.get("key_points") or []
    requirements = "，".join(str(p) for p in key_points) if key_points else None

    inputs: dict[str, Any] = {
        "question": section.get("heading"),
        "file": build_section_material(context, requirements),
    }
    if context:
        inputs["context"] = context
    if requirements:
        inputs["requirements"] = requirements

    return await runner.run(
        ToolInvocationRequest(
            tool_id=SECTION_TOOL_ID,
            inputs=inputs,
            provider=provider,
            is_recursive=True,
        )
    )


async def publish_article(
    client: WordPressClient,
    title: str,
    content: str,
    excerpt: str = "",
    status: str = "draft",
    tags: Sequence[str] | None = None,
    categories: Sequence[str] | None = None,
) -> PublishResult:
    """Push a finished article, applying default tags and category."""
    post = ArticlePost(
        title=title,
        content=content,
        excerpt=excerpt,
        status=status,
        tags=list(tags) if tags else list(DEFAULT_TAGS),
        categories=list(categories) if categories else list(DEFAULT_CATEGORIES),
    )
    logger.info("Publishing article", title=title, status=status, tags=post.tags)
    return await client.push_article(post)
