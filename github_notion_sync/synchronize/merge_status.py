"""Propagates the merge outcome of closed pull requests to the Notion pages they link.

Pull request bodies may link the Notion task they implement. When enabled,
each closed pull request with such a link gets a comment on that task (and,
optionally, its status property set) once. This path is an enrichment only;
its failures never affect the number-based synchronization.
"""

from collections.abc import Sequence
from typing import Any

import structlog

from github_notion_sync.notion.abc import NotionClientBase
from github_notion_sync.synchronize.batch import run_in_batches
from github_notion_sync.synchronize.models import CanonicalRecord, PullRequestRecord
from github_notion_sync.synchronize.properties import merge_status
from github_notion_sync.synchronize.results import BatchResult
from github_notion_sync.utils.blocks import text_segments
from github_notion_sync.utils.constants import DEFAULT_OPERATION_BATCH_SIZE

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)


def select_closed_linked_pull_requests(records: Sequence[CanonicalRecord]) -> list[PullRequestRecord]:
    """Closed pull requests whose body links a Notion page."""
    return [record for record in records if isinstance(record, PullRequestRecord) and record.state == "closed" and record.linked_page_id]


def merge_comment_rich_text(record: PullRequestRecord) -> list[dict[str, Any]]:
    """Comment announcing the outcome of a pull request on its linked task."""
    outcome = " has been merged!" if record.merged else " was closed but not merged!"
    return text_segments("Your PR", link=record.url, bold=True) + text_segments(outcome)


async def has_integration_commented(notion_adapter: NotionClientBase, page_id: str, bot_id: str) -> bool:
    """Check whether this integration already left a comment on a page."""
    comments = await notion_adapter.list_comments(page_id)
    return any((comment.get("created_by") or {}).get("id") == bot_id for comment in comments)


async def propagate_merge_status(
    notion_adapter: NotionClientBase,
    records: Sequence[CanonicalRecord],
    status_property_name: str | None = None,
    batch_size: int = DEFAULT_OPERATION_BATCH_SIZE,
) -> BatchResult[PullRequestRecord]:
    """Comment on (and optionally set the status of) Notion tasks linked from closed pull requests.

    Pages the integration has already commented on are left untouched, so
    repeated runs do not pile up comments.
    """
    candidates = select_closed_linked_pull_requests(records)
    logger.info("Propagating pull request merge status to linked Notion pages", candidate_count=len(candidates))
    if not candidates:
        return BatchResult()

    bot_user = await notion_adapter.retrieve_bot_user()
    bot_id = bot_user["id"]

    async def apply(record: PullRequestRecord) -> bool:
        page_id = record.linked_page_id
        if page_id is None:
            return False
        if await has_integration_commented(notion_adapter, page_id, bot_id):
            logger.debug("Linked Notion page already has a merge status comment", number=record.number, page_id=page_id)
            return False
        if status_property_name:
            await notion_adapter.update_page(page_id, {status_property_name: {"status": {"name": merge_status(record)}}})
        await notion_adapter.create_comment(page_id, merge_comment_rich_text(record))
        logger.info("Propagated merge status to linked Notion page", number=record.number, page_id=page_id, merged=record.merged)
        return True

    return await run_in_batches(candidates, apply, batch_size=batch_size)
