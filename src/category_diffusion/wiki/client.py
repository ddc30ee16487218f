"""Async MediaWiki API client for category listings and page content."""

import logging
from enum import Enum
from typing import Any

import httpx
from pydantic import BaseModel, Field

from category_diffusion.config import WikiConfig
from category_diffusion.errors import WikiAPIError
from category_diffusion.utils.rate_limiter import RateLimiter

logger = logging.getLogger(__name__)


class MemberKind(str, Enum):
    """Kind of category member to list (``cmtype`` values)."""

    SUBCATEGORY = "subcat"
    FILE = "file"


class MemberPage(BaseModel):
    """One page of a category membership listing."""

    members: list[str] = Field(default_factory=list)
    continue_token: str | None = None


class WikiPage(BaseModel):
    """Raw content and category titles of a single page."""

    title: str
    content: str = ""
    categories: list[str] = Field(default_factory=list)


class WikiClient:
    """Thin wrapper around the ``action=query`` API.

    Must be used as an async context manager. Every request goes through the
    shared :class:`RateLimiter`; failures raise :class:`WikiAPIError` and are
    never retried here.
    """

    def __init__(
        self,
        config: WikiConfig,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.config = config
        self.rate_limiter = RateLimiter(config.delay_seconds)
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    async def __aenter__(self):
        """Initialize HTTP client."""
        self._client = httpx.AsyncClient(
            headers={"User-Agent": self.config.user_agent},
            follow_redirects=True,
            timeout=self.config.timeout_seconds,
            transport=self._transport,
        )
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Clean up HTTP client."""
        if self._client:
            await self._client.aclose()
            self._client = None

    @property
    def request_count(self) -> int:
        return self.rate_limiter.request_count

    async def list_members(
        self,
        parent_title: str,
        kind: MemberKind,
        limit: int,
        continue_token: str | None = None,
    ) -> MemberPage:
        """Fetch one page of direct members of ``parent_title``."""
        params: dict[str, Any] = {
            "action": "query",
            "list": "categorymembers",
            "cmtitle": parent_title,
            "cmtype": kind.value,
            "cmlimit": limit,
        }
        if continue_token:
            params["cmcontinue"] = continue_token

        data = await self._get(params)
        try:
            members = data.get("query", {}).get("categorymembers", []) or []
            token = (data.get("continue") or {}).get("cmcontinue")
            return MemberPage(
                members=[m["title"] for m in members if m.get("title")],
                continue_token=token or None,
            )
        except (AttributeError, KeyError, TypeError, ValueError) as e:
            raise WikiAPIError(f"Malformed categorymembers response: {e}") from e

    async def query_pages(self, titles: list[str]) -> list[WikiPage]:
        """Fetch current wikitext and categories for up to ``titles_per_query`` pages."""
        if len(titles) > self.config.titles_per_query:
            raise ValueError(
                f"At most {self.config.titles_per_query} titles per query, got {len(titles)}"
            )
        data = await self._get(
            {
                "action": "query",
                "titles": "|".join(titles),
                "prop": "revisions|categories",
                "rvprop": "content",
                "rvslots": "main",
                "cllimit": "max",
            }
        )

        try:
            return _parse_pages(data)
        except (AttributeError, KeyError, TypeError, ValueError) as e:
            raise WikiAPIError(f"Malformed page query response: {e}") from e

    async def _get(self, params: dict[str, Any]) -> dict[str, Any]:
        if not self._client:
            raise RuntimeError("WikiClient not initialized. Use 'async with' context manager.")

        await self.rate_limiter.acquire()
        logger.debug("API request: %s", params)
        try:
            response = await self._client.get(
                self.config.api_url, params={**params, "format": "json"}
            )
            response.raise_for_status()
            data = response.json()
        except httpx.HTTPError as e:
            raise WikiAPIError(f"{params.get('action')} request failed: {e}") from e
        except ValueError as e:
            raise WikiAPIError(f"Malformed API response: {e}") from e

        if not isinstance(data, dict):
            raise WikiAPIError("Malformed API response: expected a JSON object")
        if "error" in data:
            error = data["error"] or {}
            raise WikiAPIError(
                f"API error {error.get('code', 'unknown')}: {error.get('info', '')}".rstrip()
            )
        return data


def _parse_pages(data: dict[str, Any]) -> list[WikiPage]:
    pages = data.get("query", {}).get("pages", {}) or {}
    # formatversion=1 keys pages by id, formatversion=2 returns a list
    items = pages.items() if isinstance(pages, dict) else (
        (str(p.get("pageid", "")), p) for p in pages
    )

    result: list[WikiPage] = []
    for page_id, page in items:
        title = page.get("title") or ""
        if page_id == "-1" or page.get("missing") is not None or not title:
            continue
        result.append(
            WikiPage(
                title=title,
                content=_revision_content(page),
                categories=[c["title"] for c in page.get("categories", []) if c.get("title")],
            )
        )
    return result


def _revision_content(page: dict[str, Any]) -> str:
    """Pull the main-slot wikitext out of a page's first revision."""
    revisions = page.get("revisions") or []
    if not revisions:
        return ""
    rev = revisions[0]
    main = (rev.get("slots") or {}).get("main")
    if main:
        return main.get("*") or main.get("content") or ""
    return rev.get("*") or ""
