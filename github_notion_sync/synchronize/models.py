"""Internal data models for the GitHub to Notion synchronization."""

from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Literal

from pydantic import BaseModel, ConfigDict


class RecordKind(str, Enum):
    """Kinds of GitHub records mirrored into Notion, in the order they are synchronized."""

    ISSUES = "issues"
    DISCUSSIONS = "discussions"
    PULL_REQUESTS = "pull_requests"


class SyncDecision(Enum):
    """Enum for sync decisions."""

    CREATE = "create"
    UPDATE = "update"


class CanonicalRecord(BaseModel):
    """Normalized, immutable view of a GitHub record."""

    model_config = ConfigDict(frozen=True)

    number: int
    title: str
    state: Literal["open", "closed"]
    url: str
    body: str = ""


class IssueRecord(CanonicalRecord):
    """Canonical GitHub issue."""

    assignee: str | None = None


class PullRequestRecord(CanonicalRecord):
    """Canonical GitHub pull request."""

    requested_reviewers: tuple[str, ...] = ()
    merged: bool = False
    linked_page_id: str | None = None


class DiscussionRecord(CanonicalRecord):
    """Canonical GitHub discussion."""

    category: str | None = None
    author: str | None = None


@dataclass(frozen=True)
class DuplicateKey:
    """Two Notion pages claiming the same GitHub record number."""

    number: int
    kept_page_id: str
    dropped_page_id: str


class IdentityIndex(Mapping[int, str]):
    """Read-only mapping of GitHub record number to Notion page id."""

    def __init__(self, entries: Mapping[int, str] | None = None, duplicates: list[DuplicateKey] | None = None) -> None:
        """Initialize the index from already-resolved entries."""
        self._entries: dict[int, str] = dict(entries or {})
        self.duplicates: tuple[DuplicateKey, ...] = tuple(duplicates or [])

    def __getitem__(self, number: int) -> str:
        return self._entries[number]

    def __iter__(self) -> Iterator[int]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __repr__(self) -> str:
        return f"IdentityIndex({self._entries!r}, duplicates={len(self.duplicates)})"


@dataclass(frozen=True)
class CreateOperation:
    """Create a new Notion page for a GitHub record."""

    record: CanonicalRecord
    decision: SyncDecision = field(default=SyncDecision.CREATE, init=False)

    @property
    def page_id(self) -> str | None:
        return None


@dataclass(frozen=True)
class UpdateOperation:
    """Overwrite the properties of an existing Notion page."""

    page_id: str
    record: CanonicalRecord
    decision: SyncDecision = field(default=SyncDecision.UPDATE, init=False)


Operation = CreateOperation | UpdateOperation
