"""Notion client adapter for the Notion REST API over httpx."""

from typing import Any, Self

import httpx
import structlog

from github_notion_sync.utils.constants import DEFAULT_NOTION_API_URL, NOTION_MAX_BLOCKS_PER_REQUEST
from github_notion_sync.utils.retry import retry_on_transient_error

from .abc import NotionClientBase
from .client import get_notion_client
from .exceptions import IncompletePageContentError, NotionAPIError

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)


def _parse_retry_after(response: httpx.Response) -> float | None:
    retry_after = response.headers.get("retry-after")
    if retry_after is None:
        return None
    try:
        return float(retry_after)
    except ValueError:
        return None


class NotionAdapter(NotionClientBase):
    """Notion client adapter for the Notion REST API."""

    def __init__(self, client: httpx.AsyncClient) -> None:
        """Initialize the Notion client adapter with an already-initialized httpx client."""
        self.client = client

    @classmethod
    def create(cls, notion_api_key: str, notion_api_url: str = DEFAULT_NOTION_API_URL) -> Self:
        """Create a new Notion client adapter."""
        logger.info("Creating client for Notion API", notion_api_url=notion_api_url)
        return cls(get_notion_client(notion_api_key=notion_api_key, notion_api_url=notion_api_url))

    async def __aenter__(self) -> Self:
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.close()

    async def close(self) -> None:
        """Close the underlying httpx client and release its connections."""
        await self.client.aclose()

    async def _request(self, method: str, path: str, json: dict[str, Any] | None = None, params: dict[str, Any] | None = None) -> dict[str, Any]:
        """Send a request and return the decoded JSON body, raising NotionAPIError on failure."""
        response = await self.client.request(method, path, json=json, params=params)
        if response.is_success:
            return response.json()

        try:
            error_data = response.json()
        except ValueError:
            error_data = {}
        error = NotionAPIError(
            status_code=response.status_code,
            code=error_data.get("code"),
            message=error_data.get("message", response.reason_phrase),
            retry_after=_parse_retry_after(response),
        )
        if response.status_code == 400:
            logger.error(
                "Notion rejected the request payload",
                method=method,
                path=path,
                code=error.code,
                message=error.message,
                status_code=response.status_code,
            )
        raise error

    # Database queries
    @retry_on_transient_error()
    async def query_database(self, database_id: str, start_cursor: str | None = None) -> dict[str, Any]:
        """Query one page of a database."""
        payload: dict[str, Any] = {}
        if start_cursor is not None:
            payload["start_cursor"] = start_cursor
        return await self._request("POST", f"/databases/{database_id}/query", json=payload)

    # Page CRUD
    @retry_on_transient_error()
    async def retrieve_page_property(self, page_id: str, property_id: str) -> dict[str, Any]:
        """Retrieve a single property item of a page."""
        return await self._request("GET", f"/pages/{page_id}/properties/{property_id}")

    @retry_on_transient_error(idempotent=False)
    async def _create_page(self, database_id: str, properties: dict[str, Any], children: list[dict[str, Any]]) -> dict[str, Any]:
        return await self._request(
            "POST",
            "/pages",
            json={"parent": {"database_id": database_id}, "properties": properties, "children": children},
        )

    async def create_page(self, database_id: str, properties: dict[str, Any], children: list[dict[str, Any]] | None = None) -> dict[str, Any]:
        """Create a page in a database.

        Notion accepts at most 100 child blocks per request, so longer bodies
        are created with the first 100 blocks and the rest appended afterwards.

        Raises:
            IncompletePageContentError: If the page was created but an append failed.
        """
        children = children or []
        page = await self._create_page(database_id, properties, children[:NOTION_MAX_BLOCKS_PER_REQUEST])
        for start in range(NOTION_MAX_BLOCKS_PER_REQUEST, len(children), NOTION_MAX_BLOCKS_PER_REQUEST):
            try:
                await self.append_block_children(page["id"], children[start : start + NOTION_MAX_BLOCKS_PER_REQUEST])
            except (NotionAPIError, httpx.HTTPError) as exc:
                logger.error(
                    "Created Notion page but failed to append its remaining content",
                    page_id=page["id"],
                    appended_count=start,
                    total_count=len(children),
                    error=str(exc),
                )
                raise IncompletePageContentError(page["id"], start, len(children), str(exc)) from exc
        return page

    @retry_on_transient_error()
    async def update_page(self, page_id: str, properties: dict[str, Any]) -> dict[str, Any]:
        """Update the properties of a page."""
        return await self._request("PATCH", f"/pages/{page_id}", json={"properties": properties})

    @retry_on_transient_error(idempotent=False)
    async def append_block_children(self, block_id: str, children: list[dict[str, Any]]) -> dict[str, Any]:
        """Append content blocks to a page or block."""
        return await self._request("PATCH", f"/blocks/{block_id}/children", json={"children": children})

    # Comments and users
    async def list_comments(self, block_id: str) -> list[dict[str, Any]]:
        """List every comment on a page or block, handling pagination."""

        @retry_on_transient_error()
        async def _fetch_page(cursor: str | None) -> dict[str, Any]:
            params: dict[str, Any] = {"block_id": block_id}
            if cursor is not None:
                params["start_cursor"] = cursor
            return await self._request("GET", "/comments", params=params)

        comments: list[dict[str, Any]] = []
        cursor: str | None = None
        while True:
            response = await _fetch_page(cursor)
            comments.extend(response.get("results", []))
            cursor = response.get("next_cursor")
            if not response.get("has_more") or not cursor:
                break
        return comments

    @retry_on_transient_error(idempotent=False)
    async def create_comment(self, page_id: str, rich_text: list[dict[str, Any]]) -> dict[str, Any]:
        """Add a comment to a page."""
        return await self._request("POST", "/comments", json={"parent": {"page_id": page_id}, "rich_text": rich_text})

    @retry_on_transient_error()
    async def retrieve_bot_user(self) -> dict[str, Any]:
        """Retrieve the bot user of the current integration."""
        return await self._request("GET", "/users/me")
