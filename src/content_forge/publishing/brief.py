"""Publishing of generated briefs."""

from typing import Any, Mapping

from content_forge.publishing.wordpress import BriefPost, PublishResult, WordPressClient


def build_brief_post(brief: Mapping[str, Any]) -> BriefPost:
    """
    Map a brief result from the UI onto a WordPress post.

    Keywords are always sent as a list. An empty list is valid: keywords
    are a quality signal, not a requirement.
    """
    keywords = brief.get("keywords")
    platform = brief.get("platform")
    return BriefPost(
        title=str(brief.get("question") or ""),
        content=str(brief.get("brief") or ""),
        excerpt=str(brief.get("summary") or ""),
        status=brief.get("status") or "draft",
        keywords=[str(k) for k in keywords] if isinstance(keywords, list) else [],
        acf={"brief_platform": platform} if platform else {},
    )


async def publish_brief(
    client: WordPressClient, brief: Mapping[str, Any]
) -> PublishResult:
    """Push a generated brief to WordPress."""
    return await client.push_brief(build_brief_post(brief))
