"""Maps canonical records onto the property schema of their Notion database.

Every function here is pure: no network access and no side effects. Fields
GitHub may leave empty (no assignee, no reviewers, no category) map to the
empty value of the Notion property type instead of failing.
"""

from dataclasses import dataclass
from typing import Any

from github_notion_sync.synchronize.models import CanonicalRecord, DiscussionRecord, IssueRecord, PullRequestRecord, RecordKind
from github_notion_sync.utils.blocks import markdown_to_blocks, text_segments
from github_notion_sync.utils.constants import MERGED_STATUS, NOT_MERGED_STATUS, OPEN_STATUS


@dataclass(frozen=True)
class MirrorSchema:
    """Names of the Notion database properties a record kind is written to."""

    title: str
    number: str
    state: str = "State"
    url: str = "URL"


ISSUE_SCHEMA = MirrorSchema(title="issue", number="Issue Number")
PULL_REQUEST_SCHEMA = MirrorSchema(title="pull request", number="Pull Request Number")
DISCUSSION_SCHEMA = MirrorSchema(title="discussion", number="Discussion Number")

ASSIGNEE_PROPERTY = "Assignee"
REVIEWERS_PROPERTY = "Reviewers"
MERGE_STATUS_PROPERTY = "Merge Status"
CATEGORY_PROPERTY = "Category"
AUTHOR_PROPERTY = "Author"

SCHEMAS: dict[RecordKind, MirrorSchema] = {
    RecordKind.ISSUES: ISSUE_SCHEMA,
    RecordKind.DISCUSSIONS: DISCUSSION_SCHEMA,
    RecordKind.PULL_REQUESTS: PULL_REQUEST_SCHEMA,
}


def title_property(text: str) -> dict[str, Any]:
    return {"title": text_segments(text)}


def number_property(number: int) -> dict[str, Any]:
    return {"number": number}


def select_property(name: str | None) -> dict[str, Any]:
    """Build a select value; Notion rejects commas in option names."""
    if not name:
        return {"select": None}
    return {"select": {"name": name.replace(",", "")}}


def multi_select_property(names: tuple[str, ...] | list[str]) -> dict[str, Any]:
    return {"multi_select": [{"name": name.replace(",", "")} for name in names if name]}


def url_property(url: str | None) -> dict[str, Any]:
    return {"url": url or None}


def merge_status(record: PullRequestRecord) -> str:
    """Human readable merge outcome of a pull request."""
    if record.state == "open":
        return OPEN_STATUS
    return MERGED_STATUS if record.merged else NOT_MERGED_STATUS


def _common_properties(record: CanonicalRecord, schema: MirrorSchema) -> dict[str, Any]:
    return {
        schema.title: title_property(record.title),
        schema.number: number_property(record.number),
        schema.state: select_property(record.state),
        schema.url: url_property(record.url),
    }


def issue_properties(record: IssueRecord, schema: MirrorSchema = ISSUE_SCHEMA) -> dict[str, Any]:
    """Map a GitHub issue to its Notion properties."""
    properties = _common_properties(record, schema)
    properties[ASSIGNEE_PROPERTY] = select_property(record.assignee)
    return properties


def pull_request_properties(record: PullRequestRecord, schema: MirrorSchema = PULL_REQUEST_SCHEMA) -> dict[str, Any]:
    """Map a GitHub pull request to its Notion properties."""
    properties = _common_properties(record, schema)
    properties[REVIEWERS_PROPERTY] = multi_select_property(record.requested_reviewers)
    properties[MERGE_STATUS_PROPERTY] = select_property(merge_status(record))
    return properties


def discussion_properties(record: DiscussionRecord, schema: MirrorSchema = DISCUSSION_SCHEMA) -> dict[str, Any]:
    """Map a GitHub discussion to its Notion properties."""
    properties = _common_properties(record, schema)
    properties[CATEGORY_PROPERTY] = select_property(record.category)
    properties[AUTHOR_PROPERTY] = select_property(record.author)
    return properties


def map_properties(record: CanonicalRecord) -> dict[str, Any]:
    """Map any canonical record to the Notion properties of its kind."""
    if isinstance(record, IssueRecord):
        return issue_properties(record)
    if isinstance(record, PullRequestRecord):
        return pull_request_properties(record)
    if isinstance(record, DiscussionRecord):
        return discussion_properties(record)
    raise TypeError(f"No Notion property mapping for {type(record).__name__}")


def map_content_blocks(record: CanonicalRecord) -> list[dict[str, Any]]:
    """Map the markdown body of a record to Notion content blocks."""
    return markdown_to_blocks(record.body)
