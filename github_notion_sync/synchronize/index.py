"""Builds the identity index of GitHub record numbers already mirrored in Notion."""

import time
from typing import Any

import httpx
import structlog

from github_notion_sync.notion.abc import NotionClientBase
from github_notion_sync.notion.exceptions import NotionAPIError
from github_notion_sync.synchronize.exceptions import MirrorIndexError
from github_notion_sync.synchronize.models import DuplicateKey, IdentityIndex
from github_notion_sync.utils.retry import is_authentication_error

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)


async def fetch_database_pages(notion_adapter: NotionClientBase, database_id: str) -> list[dict[str, Any]]:
    """Fetch every page of a Notion database by following the continuation cursor."""
    pages: list[dict[str, Any]] = []
    cursor: str | None = None
    while True:
        response = await notion_adapter.query_database(database_id, start_cursor=cursor)
        pages.extend(response.get("results", []))
        cursor = response.get("next_cursor")
        if not cursor:
            break
    return pages


async def resolve_record_number(notion_adapter: NotionClientBase, page: dict[str, Any], number_property: str) -> int | None:
    """Look up the GitHub record number stored on a Notion page.

    The query results only reference the property by id, so the value is read
    with a separate property retrieval. Returns None when the page has no such
    property or the property is empty.
    """
    page_property = (page.get("properties") or {}).get(number_property)
    if not page_property or "id" not in page_property:
        logger.warning("Notion page is missing the record number property", page_id=page.get("id"), number_property=number_property)
        return None

    property_item = await notion_adapter.retrieve_page_property(page["id"], page_property["id"])
    number = property_item.get("number")
    if number is None:
        logger.warning("Notion page has an empty record number", page_id=page["id"], number_property=number_property)
        return None
    return int(number)


async def build_identity_index(notion_adapter: NotionClientBase, database_id: str, number_property: str) -> IdentityIndex:
    """Build a mapping of GitHub record number to Notion page id for a database.

    Two pages claiming the same number break the one-page-per-record
    invariant. The later page wins, and every collision is logged and kept on
    the returned index so it can be reported.

    Raises:
        MirrorIndexError: If any query or property retrieval against Notion fails
            or returns a malformed response.
    """
    start_time = time.time()
    logger.info("Building identity index from Notion database", database_id=database_id, number_property=number_property)
    try:
        pages = await fetch_database_pages(notion_adapter, database_id)
        logger.info("Fetched pages from Notion database", database_id=database_id, page_count=len(pages))

        entries: dict[int, str] = {}
        duplicates: list[DuplicateKey] = []
        for page in pages:
            number = await resolve_record_number(notion_adapter, page, number_property)
            if number is None:
                continue
            previous_page_id = entries.get(number)
            if previous_page_id is not None and previous_page_id != page["id"]:
                logger.warning(
                    "Multiple Notion pages claim the same record number",
                    number=number,
                    kept_page_id=page["id"],
                    dropped_page_id=previous_page_id,
                )
                duplicates.append(DuplicateKey(number=number, kept_page_id=page["id"], dropped_page_id=previous_page_id))
            entries[number] = page["id"]
    except (NotionAPIError, httpx.HTTPError, ValueError, KeyError) as exc:
        logger.error("Failed to build identity index", database_id=database_id, error=str(exc))
        raise MirrorIndexError(database_id, str(exc), fatal=is_authentication_error(exc)) from exc

    logger.info(
        "Built identity index",
        database_id=database_id,
        indexed_count=len(entries),
        duplicate_count=len(duplicates),
        duration=round(time.time() - start_time, 2),
    )
    return IdentityIndex(entries, duplicates)
