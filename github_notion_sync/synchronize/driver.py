"""Orchestrates the synchronization of GitHub records into Notion databases."""

import time
from typing import Any

import httpx
import structlog
from structlog.contextvars import bound_contextvars

from github_notion_sync.configuration.models import SyncConfig
from github_notion_sync.github.abc import GitHubClientBase
from github_notion_sync.github.adapter import GitHubKitAdapter
from github_notion_sync.notion.abc import NotionClientBase
from github_notion_sync.notion.adapter import NotionAdapter
from github_notion_sync.notion.exceptions import IncompletePageContentError, NotionAPIError
from github_notion_sync.synchronize.batch import run_in_batches
from github_notion_sync.synchronize.exceptions import OperationError, SyncError
from github_notion_sync.synchronize.fetch import fetch_source_records
from github_notion_sync.synchronize.index import build_identity_index
from github_notion_sync.synchronize.merge_status import propagate_merge_status
from github_notion_sync.synchronize.models import CreateOperation, RecordKind, UpdateOperation
from github_notion_sync.synchronize.properties import SCHEMAS, map_content_blocks, map_properties
from github_notion_sync.synchronize.reconcile import reconcile_records
from github_notion_sync.synchronize.results import KindSyncResult, SyncRunResult
from github_notion_sync.utils.constants import DEFAULT_OPERATION_BATCH_SIZE

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)


async def create_mirror_page(notion_adapter: NotionClientBase, database_id: str, operation: CreateOperation) -> str:
    """Create the Notion page for a new GitHub record and return its page id."""
    try:
        page: dict[str, Any] = await notion_adapter.create_page(
            database_id,
            properties=map_properties(operation.record),
            children=map_content_blocks(operation.record),
        )
    except (NotionAPIError, IncompletePageContentError, httpx.HTTPError) as exc:
        raise OperationError(operation, str(exc)) from exc
    return page["id"]


async def update_mirror_page(notion_adapter: NotionClientBase, operation: UpdateOperation) -> str:
    """Overwrite the properties of the Notion page mirroring an existing GitHub record."""
    try:
        await notion_adapter.update_page(operation.page_id, properties=map_properties(operation.record))
    except (NotionAPIError, httpx.HTTPError) as exc:
        raise OperationError(operation, str(exc)) from exc
    return operation.page_id


async def run_kind_sync(
    kind: RecordKind,
    github_adapter: GitHubClientBase,
    notion_adapter: NotionClientBase,
    database_id: str,
    batch_size: int = DEFAULT_OPERATION_BATCH_SIZE,
    propagate_merge_status_enabled: bool = False,
    status_property_name: str | None = None,
) -> KindSyncResult:
    """Run one full synchronization pass for a single record kind.

    Builds the identity index, snapshots GitHub, reconciles, then applies the
    creates followed by the updates. A failure to index or fetch aborts only
    this kind and is recorded on the returned result.
    """
    result = KindSyncResult(kind=kind)
    schema = SCHEMAS[kind]
    with bound_contextvars(record_kind=kind.value):
        start_time = time.time()
        logger.info("Synchronizing record kind", database_id=database_id)
        try:
            index = await build_identity_index(notion_adapter, database_id, schema.number)
            result.duplicates = list(index.duplicates)

            records = await fetch_source_records(
                github_adapter,
                kind,
                extract_page_references=propagate_merge_status_enabled and kind == RecordKind.PULL_REQUESTS,
            )
            result.fetched = len(records)
        except SyncError as exc:
            logger.error("Aborting synchronization of record kind", error=str(exc), fatal=exc.fatal)
            result.error = str(exc)
            result.fatal = exc.fatal
            return result

        plan = reconcile_records(index, records)

        logger.info("Creating Notion pages for new records", create_count=len(plan.to_create))
        create_results = await run_in_batches(
            plan.to_create,
            lambda operation: create_mirror_page(notion_adapter, database_id, operation),
            batch_size=batch_size,
        )
        logger.info("Updating Notion pages for existing records", update_count=len(plan.to_update))
        update_results = await run_in_batches(
            plan.to_update,
            lambda operation: update_mirror_page(notion_adapter, operation),
            batch_size=batch_size,
        )
        result.created = len(create_results.succeeded)
        result.updated = len(update_results.succeeded)
        result.failures = create_results.failed + update_results.failed

        if propagate_merge_status_enabled and kind == RecordKind.PULL_REQUESTS:
            try:
                merge_results = await propagate_merge_status(notion_adapter, records, status_property_name, batch_size=batch_size)
            except (NotionAPIError, httpx.HTTPError, KeyError) as exc:
                logger.error("Failed to propagate pull request merge status", error=str(exc))
            else:
                result.merge_status_updated = sum(1 for merge_result in merge_results.succeeded if merge_result.value)
                result.merge_status_failures = merge_results.failed

        logger.info(
            "Synchronized record kind",
            fetched_count=result.fetched,
            created_count=result.created,
            updated_count=result.updated,
            failed_count=len(result.failures),
            duplicate_count=len(result.duplicates),
            duration=round(time.time() - start_time, 2),
        )
    return result


async def run_sync(
    github_adapter: GitHubClientBase,
    notion_adapter: NotionClientBase,
    database_ids: dict[RecordKind, str],
    kinds: list[RecordKind] | None = None,
    batch_size: int = DEFAULT_OPERATION_BATCH_SIZE,
    propagate_merge_status_enabled: bool = False,
    status_property_name: str | None = None,
) -> SyncRunResult:
    """Synchronize each record kind in turn: issues, then discussions, then pull requests.

    An error escaping one kind is recorded on that kind's result and never
    prevents the later kinds from running.
    """
    requested = set(kinds) if kinds is not None else set(database_ids)
    run_result = SyncRunResult()
    for kind in RecordKind:
        if kind not in requested or kind not in database_ids:
            continue
        try:
            kind_result = await run_kind_sync(
                kind,
                github_adapter,
                notion_adapter,
                database_ids[kind],
                batch_size=batch_size,
                propagate_merge_status_enabled=propagate_merge_status_enabled,
                status_property_name=status_property_name,
            )
        except Exception as exc:
            logger.exception("Unexpected error while synchronizing record kind", record_kind=kind.value, error_type=type(exc).__name__)
            kind_result = KindSyncResult(kind=kind, error=f"Unexpected {type(exc).__name__}: {exc}")
        run_result.kind_results.append(kind_result)
    return run_result


async def run_sync_workflow(config: SyncConfig) -> SyncRunResult:
    """Run the sync workflow for a reconciled configuration."""
    github_adapter = GitHubKitAdapter.create(
        owner=config.repo_owner,
        repo_name=config.repo_name,
        github_pat_token=config.github_pat_token,
        github_api_url=config.github_api_url,
    )
    start_time = time.time()
    logger.info("Starting GitHub to Notion synchronization", repo=config.repo, kinds=[kind.value for kind in config.kinds])
    async with NotionAdapter.create(notion_api_key=config.notion_api_key, notion_api_url=config.notion_api_url) as notion_adapter:
        run_result = await run_sync(
            github_adapter,
            notion_adapter,
            config.database_ids,
            kinds=config.kinds,
            batch_size=config.batch_size,
            propagate_merge_status_enabled=config.propagate_merge_status,
            status_property_name=config.status_property_name,
        )
    logger.info(
        "Finished GitHub to Notion synchronization",
        repo=config.repo,
        exit_code=int(run_result.exit_code),
        duration=round(time.time() - start_time, 2),
    )
    return run_result
