"""Publishing of generated content to WordPress."""

from content_forge.publishing.wordpress import (
    ArticlePost,
    BriefPost,
    PublishResult,
    WordPressClient,
)

__all__ = [
    "ArticlePost",
    "BriefPost",
    "PublishResult",
    "WordPressClient",
]
