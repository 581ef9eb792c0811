"""Applies operations against Notion in bounded concurrent groups.

Notion enforces a request rate ceiling, so at most one group of operations is
ever in flight. Group N+1 starts only once every operation of group N has
settled, successfully or not.
"""

import asyncio
import math
import time
from collections.abc import Awaitable, Callable, Sequence
from typing import Any, TypeVar

import structlog

from github_notion_sync.synchronize.results import BatchResult, OperationResult
from github_notion_sync.utils.constants import DEFAULT_OPERATION_BATCH_SIZE

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)

T = TypeVar("T")


def chunk(items: Sequence[T], size: int) -> list[list[T]]:
    """Split items into contiguous groups of at most size items, preserving order."""
    if size < 1:
        raise ValueError(f"Group size must be at least 1, got {size}")
    return [list(items[start : start + size]) for start in range(0, len(items), size)]


def _describe(operation: Any) -> dict[str, Any]:
    """Context for log lines about an operation."""
    description: dict[str, Any] = {"operation_type": type(operation).__name__}
    record = getattr(operation, "record", None)
    if record is not None:
        description["number"] = record.number
    page_id = getattr(operation, "page_id", None)
    if page_id is not None:
        description["page_id"] = page_id
    return description


async def _attempt(operation: T, apply: Callable[[T], Awaitable[Any]]) -> OperationResult[T]:
    try:
        value = await apply(operation)
    except Exception as exc:
        logger.error("Operation failed", error=str(exc), error_type=type(exc).__name__, **_describe(operation))
        return OperationResult(operation, succeeded=False, error=str(exc))
    return OperationResult(operation, succeeded=True, value=value)


async def run_in_batches(
    operations: Sequence[T],
    apply: Callable[[T], Awaitable[Any]],
    batch_size: int = DEFAULT_OPERATION_BATCH_SIZE,
) -> BatchResult[T]:
    """Apply every operation, batch_size at a time, and return one result per operation.

    A failing operation never stops the rest of its group or later groups; it
    is reported as a failed result instead. Results are in input order.
    """
    groups = chunk(operations, batch_size)
    batch_result: BatchResult[T] = BatchResult()
    logger.info("Applying operations in groups", operation_count=len(operations), group_count=math.ceil(len(operations) / batch_size), batch_size=batch_size)
    for group_number, group in enumerate(groups, start=1):
        start_time = time.time()
        group_results = await asyncio.gather(*(_attempt(operation, apply) for operation in group))
        batch_result.results.extend(group_results)
        batch_result.group_sizes.append(len(group))
        logger.info(
            "Completed operation group",
            group_number=group_number,
            group_size=len(group),
            failed_count=sum(1 for result in group_results if not result.succeeded),
            duration=round(time.time() - start_time, 2),
        )
    return batch_result
