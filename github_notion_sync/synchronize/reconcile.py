"""Classifies canonical records into Notion create and update operations."""

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field

import structlog

from github_notion_sync.synchronize.models import CanonicalRecord, CreateOperation, UpdateOperation

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)


@dataclass
class ReconciliationPlan:
    """Disjoint create and update operations covering every input record exactly once."""

    to_create: list[CreateOperation] = field(default_factory=list)
    to_update: list[UpdateOperation] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.to_create) + len(self.to_update)


def reconcile_records(index: Mapping[int, str], records: Sequence[CanonicalRecord]) -> ReconciliationPlan:
    """For each record, decide whether its Notion page must be created or updated.

    Key is the GitHub record number. The index is only read.
    """
    plan = ReconciliationPlan()
    for record in records:
        page_id = index.get(record.number)
        if page_id is None:
            plan.to_create.append(CreateOperation(record))
        else:
            plan.to_update.append(UpdateOperation(page_id, record))
    logger.info("Reconciled records against Notion", record_count=len(records), create_count=len(plan.to_create), update_count=len(plan.to_update))
    return plan
