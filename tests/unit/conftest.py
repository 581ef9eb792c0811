"""Fixtures for unit tests."""

from types import SimpleNamespace
from typing import Any, Callable, Generator

import httpx
import pytest
import structlog

from github_notion_sync.github.abc import GitHubClientBase
from github_notion_sync.notion.abc import NotionClientBase
from github_notion_sync.notion.exceptions import NotionAPIError
from github_notion_sync.synchronize.models import DiscussionRecord, IssueRecord, PullRequestRecord


@pytest.fixture(autouse=True)
def configure_structlog_for_caplog() -> Generator[None, None, None]:
    """Configure structlog for use with caplog."""
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )
    yield
    structlog.reset_defaults()


def _make_issue(number: int, title: str | None = None, state: str = "open", **kwargs: Any) -> IssueRecord:
    """Build a canonical issue with sensible defaults."""
    return IssueRecord(
        number=number,
        title=title or f"Issue {number}",
        state=state,
        url=f"https://github.com/octo/repo/issues/{number}",
        **kwargs,
    )


def _make_pull_request(number: int, title: str | None = None, state: str = "open", **kwargs: Any) -> PullRequestRecord:
    """Build a canonical pull request with sensible defaults."""
    return PullRequestRecord(
        number=number,
        title=title or f"Pull request {number}",
        state=state,
        url=f"https://github.com/octo/repo/pull/{number}",
        **kwargs,
    )


def _make_discussion(number: int, title: str | None = None, state: str = "open", **kwargs: Any) -> DiscussionRecord:
    """Build a canonical discussion with sensible defaults."""
    return DiscussionRecord(
        number=number,
        title=title or f"Discussion {number}",
        state=state,
        url=f"https://github.com/octo/repo/discussions/{number}",
        **kwargs,
    )


@pytest.fixture
def make_issue() -> Callable[..., IssueRecord]:
    """Factory for canonical issues."""
    return _make_issue


@pytest.fixture
def make_pull_request() -> Callable[..., PullRequestRecord]:
    """Factory for canonical pull requests."""
    return _make_pull_request


@pytest.fixture
def make_discussion() -> Callable[..., DiscussionRecord]:
    """Factory for canonical discussions."""
    return _make_discussion


class InMemoryNotion(NotionClientBase):
    """Notion stand-in that keeps databases, pages and comments in memory.

    Query results are paginated page_size at a time so cursor handling is
    exercised. Every property stored on a page gets its name as property id.
    """

    def __init__(self, page_size: int = 2, bot_id: str = "bot-user") -> None:
        self.page_size = page_size
        self.bot_id = bot_id
        self.databases: dict[str, list[dict[str, Any]]] = {}
        self.comments: dict[str, list[dict[str, Any]]] = {}
        self.created: list[dict[str, Any]] = []
        self.updated: list[tuple[str, dict[str, Any]]] = []
        self.fail_on_create: set[int] = set()
        self.fail_on_update: set[str] = set()
        self.fail_query_for: set[str] = set()
        self._next_id = 0

    def add_page(self, database_id: str, properties: dict[str, Any], page_id: str | None = None) -> str:
        if page_id is None:
            self._next_id += 1
            page_id = f"page-{self._next_id}"
        stored = {name: {"id": name, **value} for name, value in properties.items()}
        self.databases.setdefault(database_id, []).append({"object": "page", "id": page_id, "properties": stored})
        return page_id

    def find_page(self, page_id: str) -> dict[str, Any]:
        for pages in self.databases.values():
            for page in pages:
                if page["id"] == page_id:
                    return page
        raise NotionAPIError(404, "object_not_found", f"Could not find page with ID: {page_id}")

    def pages(self, database_id: str) -> list[dict[str, Any]]:
        return self.databases.get(database_id, [])

    async def query_database(self, database_id: str, start_cursor: str | None = None) -> dict[str, Any]:
        if database_id in self.fail_query_for:
            raise NotionAPIError(404, "object_not_found", f"Could not find database with ID: {database_id}")
        pages = self.pages(database_id)
        start = int(start_cursor) if start_cursor else 0
        end = start + self.page_size
        return {
            "object": "list",
            "results": [{"object": "page", "id": page["id"], "properties": {name: {"id": value["id"]} for name, value in page["properties"].items()}} for page in pages[start:end]],
            "has_more": end < len(pages),
            "next_cursor": str(end) if end < len(pages) else None,
        }

    async def retrieve_page_property(self, page_id: str, property_id: str) -> dict[str, Any]:
        page = self.find_page(page_id)
        for value in page["properties"].values():
            if value["id"] == property_id:
                return {"object": "property_item", "type": "number", "number": value.get("number")}
        raise NotionAPIError(404, "object_not_found", f"Could not find property with ID: {property_id}")

    async def create_page(self, database_id: str, properties: dict[str, Any], children: list[dict[str, Any]] | None = None) -> dict[str, Any]:
        number = next((value["number"] for value in properties.values() if "number" in value), None)
        if number in self.fail_on_create:
            raise NotionAPIError(400, "validation_error", f"Cannot create page for #{number}")
        page_id = self.add_page(database_id, properties)
        self.created.append({"database_id": database_id, "page_id": page_id, "properties": properties, "children": children or []})
        return {"object": "page", "id": page_id}

    async def update_page(self, page_id: str, properties: dict[str, Any]) -> dict[str, Any]:
        if page_id in self.fail_on_update:
            raise NotionAPIError(502, "bad_gateway", "Bad gateway")
        page = self.find_page(page_id)
        page["properties"].update({name: {"id": name, **value} for name, value in properties.items()})
        self.updated.append((page_id, properties))
        return {"object": "page", "id": page_id}

    async def append_block_children(self, block_id: str, children: list[dict[str, Any]]) -> dict[str, Any]:
        return {"object": "list", "results": children}

    async def list_comments(self, block_id: str) -> list[dict[str, Any]]:
        return list(self.comments.get(block_id, []))

    async def create_comment(self, page_id: str, rich_text: list[dict[str, Any]]) -> dict[str, Any]:
        comment = {"object": "comment", "created_by": {"object": "user", "id": self.bot_id}, "rich_text": rich_text}
        self.comments.setdefault(page_id, []).append(comment)
        return comment

    async def retrieve_bot_user(self) -> dict[str, Any]:
        return {"object": "user", "id": self.bot_id, "type": "bot"}


class InMemoryGitHub(GitHubClientBase):
    """GitHub stand-in serving fixed lists of records."""

    def __init__(self) -> None:
        self.issues: list[Any] = []
        self.pull_requests: list[Any] = []
        self.discussions: list[dict[str, Any]] = []
        self.fail_for: set[str] = set()

    async def list_issues(self, state: str = "all", per_page: int = 100, **kwargs: Any) -> list[Any]:
        if "issues" in self.fail_for:
            raise httpx.ConnectError("connection refused")
        return list(self.issues)

    async def list_pull_requests(self, state: str = "all", per_page: int = 100, **kwargs: Any) -> list[Any]:
        if "pull_requests" in self.fail_for:
            raise httpx.ConnectError("connection refused")
        return list(self.pull_requests)

    async def list_discussions(self, per_page: int = 100) -> list[dict[str, Any]]:
        if "discussions" in self.fail_for:
            raise ValueError("Repository octo/repo not found or discussions are not accessible")
        return list(self.discussions)


def github_issue(number: int, title: str = "", state: str = "open", body: str | None = None, assignee: str | None = None, pull_request: bool = False) -> SimpleNamespace:
    """Build an object shaped like a githubkit issue."""
    return SimpleNamespace(
        number=number,
        title=title or f"Issue {number}",
        state=state,
        html_url=f"https://github.com/octo/repo/issues/{number}",
        body=body,
        assignee=SimpleNamespace(login=assignee) if assignee else None,
        pull_request=SimpleNamespace(url=f"https://api.github.com/repos/octo/repo/pulls/{number}") if pull_request else None,
    )


def github_pull_request(
    number: int, title: str = "", state: str = "open", body: str | None = None, merged_at: str | None = None, reviewers: tuple[str, ...] = ()
) -> SimpleNamespace:
    """Build an object shaped like a githubkit pull request."""
    return SimpleNamespace(
        number=number,
        title=title or f"Pull request {number}",
        state=state,
        html_url=f"https://github.com/octo/repo/pull/{number}",
        body=body,
        merged_at=merged_at,
        requested_reviewers=[SimpleNamespace(login=login) for login in reviewers],
    )


@pytest.fixture
def notion() -> InMemoryNotion:
    """In-memory Notion workspace."""
    return InMemoryNotion()


@pytest.fixture
def github() -> InMemoryGitHub:
    """In-memory GitHub repository."""
    return InMemoryGitHub()


@pytest.fixture
def make_github_issue() -> Callable[..., SimpleNamespace]:
    """Factory for githubkit-shaped issues."""
    return github_issue


@pytest.fixture
def make_github_pull_request() -> Callable[..., SimpleNamespace]:
    """Factory for githubkit-shaped pull requests."""
    return github_pull_request
