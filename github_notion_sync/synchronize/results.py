"""Contains results of application execution."""

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any, Generic, TypeVar

from github_notion_sync.synchronize.models import DuplicateKey, RecordKind

T = TypeVar("T")


class ExitCode(IntEnum):
    """Process exit codes."""

    SUCCESS = 0
    FATAL = 1
    PARTIAL_FAILURE = 2


@dataclass
class OperationResult(Generic[T]):
    """Outcome of applying a single operation."""

    operation: T
    succeeded: bool
    value: Any = None
    error: str | None = None


@dataclass
class BatchResult(Generic[T]):
    """Outcome of applying a list of operations group by group."""

    results: list[OperationResult[T]] = field(default_factory=list)
    group_sizes: list[int] = field(default_factory=list)

    @property
    def succeeded(self) -> list[OperationResult[T]]:
        return [result for result in self.results if result.succeeded]

    @property
    def failed(self) -> list[OperationResult[T]]:
        return [result for result in self.results if not result.succeeded]


@dataclass
class KindSyncResult:
    """Contains results of synchronizing one record kind."""

    kind: RecordKind
    fetched: int = 0
    created: int = 0
    updated: int = 0
    failures: list[OperationResult[Any]] = field(default_factory=list)
    duplicates: list[DuplicateKey] = field(default_factory=list)
    error: str | None = None
    fatal: bool = False
    merge_status_updated: int = 0
    merge_status_failures: list[OperationResult[Any]] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        """Whether the kind synchronized fully: no abort and no failed operation."""
        return self.error is None and not self.failures


@dataclass
class SyncRunResult:
    """Contains results of a full synchronization run across record kinds."""

    kind_results: list[KindSyncResult] = field(default_factory=list)

    @property
    def exit_code(self) -> ExitCode:
        if any(result.fatal for result in self.kind_results):
            return ExitCode.FATAL
        if all(result.ok for result in self.kind_results):
            return ExitCode.SUCCESS
        return ExitCode.PARTIAL_FAILURE
