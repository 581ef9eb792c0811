"""Contains logic for snapshotting GitHub records into canonical records."""

import time
from typing import Any

import httpx
import structlog
from githubkit.exception import GitHubException

from github_notion_sync.github.abc import GitHubClientBase
from github_notion_sync.synchronize.exceptions import SourceFetchError
from github_notion_sync.synchronize.models import CanonicalRecord, DiscussionRecord, IssueRecord, PullRequestRecord, RecordKind
from github_notion_sync.utils.constants import GITHUB_PAGE_SIZE, NOTION_PAGE_REFERENCE_PATTERN
from github_notion_sync.utils.retry import is_authentication_error

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)


def _login(user: Any) -> str | None:
    """Return the login of a GitHub user object, or None for an absent user."""
    if not user:
        return None
    return getattr(user, "login", None) or None


def _body(value: Any) -> str:
    # githubkit represents absent fields as a falsy UNSET sentinel.
    return value if isinstance(value, str) else ""


def is_pull_request(issue: Any) -> bool:
    """Check whether an entry of the issues endpoint is actually a pull request."""
    return bool(getattr(issue, "pull_request", None))


def extract_notion_page_id(body: str | None) -> str | None:
    """Extract the id of a Notion page linked from a pull request body.

    This is a best-effort pattern match against free text; a missing or
    malformed link yields None.
    """
    if not body:
        return None
    match = NOTION_PAGE_REFERENCE_PATTERN.search(body)
    if match is None:
        return None
    return match.group("page_id").lower()


def normalize_issue(issue: Any) -> IssueRecord:
    """Normalize a GitHub issue into a canonical record."""
    return IssueRecord(
        number=issue.number,
        title=issue.title,
        state=issue.state,
        url=issue.html_url,
        body=_body(getattr(issue, "body", None)),
        assignee=_login(getattr(issue, "assignee", None)),
    )


def normalize_pull_request(pull_request: Any, extract_page_references: bool = False) -> PullRequestRecord:
    """Normalize a GitHub pull request into a canonical record."""
    body = _body(getattr(pull_request, "body", None))
    reviewers = getattr(pull_request, "requested_reviewers", None) or []
    return PullRequestRecord(
        number=pull_request.number,
        title=pull_request.title,
        state=pull_request.state,
        url=pull_request.html_url,
        body=body,
        requested_reviewers=tuple(login for login in (_login(reviewer) for reviewer in reviewers) if login),
        merged=getattr(pull_request, "merged_at", None) is not None,
        linked_page_id=extract_notion_page_id(body) if extract_page_references else None,
    )


def normalize_discussion(discussion: dict[str, Any]) -> DiscussionRecord:
    """Normalize a GitHub discussion GraphQL node into a canonical record."""
    category = discussion.get("category") or {}
    author = discussion.get("author") or {}
    return DiscussionRecord(
        number=discussion["number"],
        title=discussion["title"],
        state="closed" if discussion.get("closed") else "open",
        url=discussion["url"],
        body=_body(discussion.get("body")),
        category=category.get("name"),
        author=author.get("login"),
    )


async def fetch_source_records(
    github_adapter: GitHubClientBase,
    kind: RecordKind,
    extract_page_references: bool = False,
    per_page: int = GITHUB_PAGE_SIZE,
) -> list[CanonicalRecord]:
    """Fetch every record of one kind from GitHub, in the order GitHub reports them.

    Raises:
        SourceFetchError: If any page cannot be fetched or a record cannot be normalized.
    """
    start_time = time.time()
    logger.info("Fetching records from GitHub", record_kind=kind.value)
    records: list[CanonicalRecord] = []
    try:
        if kind == RecordKind.ISSUES:
            issues = await github_adapter.list_issues(state="all", per_page=per_page)
            records.extend(normalize_issue(issue) for issue in issues if not is_pull_request(issue))
            logger.debug("Filtered pull requests out of issues", fetched_count=len(issues), issue_count=len(records))
        elif kind == RecordKind.PULL_REQUESTS:
            pull_requests = await github_adapter.list_pull_requests(state="all", per_page=per_page)
            records.extend(normalize_pull_request(pull_request, extract_page_references) for pull_request in pull_requests)
        elif kind == RecordKind.DISCUSSIONS:
            discussions = await github_adapter.list_discussions(per_page=per_page)
            records.extend(normalize_discussion(discussion) for discussion in discussions)
        else:
            raise ValueError(f"Unsupported record kind: {kind}")
    except (GitHubException, httpx.HTTPError, ValueError, KeyError) as exc:
        logger.error("Failed to fetch records from GitHub", record_kind=kind.value, error=str(exc))
        raise SourceFetchError(kind, str(exc), fatal=is_authentication_error(exc)) from exc

    logger.info("Fetched records from GitHub", record_kind=kind.value, record_count=len(records), duration=round(time.time() - start_time, 2))
    return records
