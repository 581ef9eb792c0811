"""Custom exceptions for the synchronize module."""

from github_notion_sync.synchronize.models import Operation, RecordKind


class SyncError(Exception):
    """Base class for errors raised while synchronizing a record kind.

    A fatal error means the credentials were rejected, so the whole run is
    reported as a fatal failure rather than a partial one.
    """

    fatal: bool = False


class SourceFetchError(SyncError):
    """Raised when a page of GitHub records cannot be fetched."""

    def __init__(self, kind: RecordKind, reason: str, fatal: bool = False) -> None:
        super().__init__(f"Failed to fetch {kind.value} from GitHub: {reason}")
        self.kind = kind
        self.reason = reason
        self.fatal = fatal


class MirrorIndexError(SyncError):
    """Raised when the Notion identity index cannot be built."""

    def __init__(self, database_id: str, reason: str, fatal: bool = False) -> None:
        super().__init__(f"Failed to index Notion database {database_id}: {reason}")
        self.database_id = database_id
        self.reason = reason
        self.fatal = fatal


class OperationError(SyncError):
    """Raised when a single create or update against Notion fails."""

    def __init__(self, operation: Operation, reason: str) -> None:
        page_id = operation.page_id or "new page"
        super().__init__(f"Failed to {operation.decision.value} Notion page ({page_id}) for record #{operation.record.number}: {reason}")
        self.operation = operation
        self.reason = reason
