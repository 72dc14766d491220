"""WordPress REST client for pushing generated content."""

from dataclasses import dataclass, field
from typing import Any

import httpx

from content_forge.core.exceptions import PublishError
from content_forge.utils.logging import get_logger


logger = get_logger(__name__)


@dataclass
class BriefPost:
    """A brief as stored in the `brief` custom post type."""

    title: str
    content: str
    excerpt: str = ""
    status: str = "draft"
    keywords: list[str] = field(default_factory=list)
    acf: dict[str, Any] = field(default_factory=dict)

    def to_payload(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "title": self.title,
            "content": self.content,
            "excerpt": self.excerpt,
            "status": self.status,
            "keywords": list(self.keywords),
        }
        if self.acf:
            payload["acf"] = self.acf
        return payload


@dataclass
class ArticlePost:
    """A long-form article published as a regular post."""

    title: str
    content: str
    excerpt: str = ""
    status: str = "draft"
    tags: list[str] = field(default_factory=list)
    categories: list[str] = field(default_factory=list)

    def to_payload(self) -> dict[str, Any]:
        return {
            "title": self.title,
            "content": self.content,
            "excerpt": self.excerpt,
            "status": self.status,
            "tags": list(self.tags),
            "categories": list(self.categories),
        }


@dataclass(frozen=True)
class PublishResult:
    """Outcome of a successful push."""

    post_id: int | None
    link: str | None
    status: str | None

    def to_dict(self) -> dict[str, Any]:
        return {"postId": self.post_id, "link": self.link, "status": self.status}


class WordPressClient:
    """
    Minimal WordPress REST API client using application passwords.

    Content is sent as given; rendering and taxonomy resolution are left to
    the WordPress side.
    """

    def __init__(
        self,
        base_url: str | None,
        username: str | None,
        app_password: str | None,
        client: httpx.AsyncClient | None = None,
        timeout: float = 30.0,
    ):
        """
        Initialize WordPress client.

        Args:
            base_url: REST API root, e.g. https://example.com/wp-json
            username: WordPress user name
            app_password: Application password for the user
            client: Optional shared HTTP client
            timeout: Request timeout in seconds
        """
        self._base_url = (base_url or "").rstrip("/")
        self._username = username
        self._app_password = app_password
        self._client = client
        self._owns_client = client is None
        self._timeout = timeout

    @property
    def is_configured(self) -> bool:
        return bool(self._base_url and self._username and self._app_password)

    def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=httpx.Timeout(self._timeout))
        return self._client

    async def close(self) -> None:
        """Close the HTTP client if this instance created it."""
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    async def push_brief(self, post: BriefPost) -> PublishResult:
        """Create a post in the `brief` custom post type."""
        return await self._create("/wp/v2/brief", post.to_payload())

    async def push_article(self, post: ArticlePost) -> PublishResult:
        """Create a regular post."""
        return await self._create("/wp/v2/posts", post.to_payload())

    async def _create(self, path: str, payload: dict[str, Any]) -> PublishResult:
        if not self.is_configured:
            raise PublishError("WordPress API credentials are not fully configured.")

        client = self._get_client()
        try:
            response = await client.post(
                f"{self._base_url}{path}",
                json=payload,
                auth=httpx.BasicAuth(self._username or "", self._app_password or ""),
            )
        except httpx.TransportError as e:
            logger.error("WordPress unreachable", path=path, error=str(e))
            raise PublishError(f"WordPress unreachable: {e}") from e

        try:
            data = response.json()
        except ValueError:
            data = {}

        if response.is_error:
            logger.error(
                "WordPress push failed",
                path=path,
                status_code=response.status_code,
                data=data,
            )
            message = data.get("message") if isinstance(data, dict) else None
            raise PublishError(
                message or "WordPress push failed", status_code=response.status_code
            )

        logger.info("Pushed to WordPress", path=path, post_id=data.get("id"))
        return PublishResult(
            post_id=data.get("id"),
            link=data.get("link"),
            status=data.get("status"),
        )
