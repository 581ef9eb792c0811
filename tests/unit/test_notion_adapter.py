"""Unit tests for the NotionAdapter class over a mocked HTTP transport."""

import json
from typing import Any, Callable
from unittest.mock import AsyncMock

import httpx
import pytest
from pytest import MonkeyPatch

from github_notion_sync.configuration.exceptions import RequiredConfigurationElementError
from github_notion_sync.notion.adapter import NotionAdapter
from github_notion_sync.notion.client import get_notion_client
from github_notion_sync.notion.exceptions import IncompletePageContentError, NotionAPIError
from github_notion_sync.utils import retry


class RecordingTransport:
    """Serve queued responses and remember every request made."""

    def __init__(self, responses: list[httpx.Response]) -> None:
        self.responses = list(responses)
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self.responses.pop(0)

    def payload(self, index: int) -> Any:
        return json.loads(self.requests[index].content)


@pytest.fixture(autouse=True)
def no_sleep(monkeypatch: MonkeyPatch) -> AsyncMock:
    """Keep retries instantaneous."""
    mock_sleep = AsyncMock()
    monkeypatch.setattr(retry.asyncio, "sleep", mock_sleep)
    return mock_sleep


@pytest.fixture
def make_adapter() -> Callable[[list[httpx.Response]], tuple[NotionAdapter, RecordingTransport]]:
    """Build an adapter whose HTTP traffic goes to a RecordingTransport."""

    def _make(responses: list[httpx.Response]) -> tuple[NotionAdapter, RecordingTransport]:
        transport = RecordingTransport(responses)
        client = get_notion_client("secret-token", "https://api.notion.com/v1", transport=httpx.MockTransport(transport))
        return NotionAdapter(client), transport

    return _make


def _blocks(count: int) -> list[dict[str, Any]]:
    return [{"object": "block", "type": "paragraph", "paragraph": {"rich_text": []}, "index": index} for index in range(count)]


@pytest.mark.asyncio
async def test_requests_carry_auth_and_version_headers(make_adapter: Callable) -> None:
    """Every request is authenticated and pinned to the API version."""
    adapter, transport = make_adapter([httpx.Response(200, json={"results": [], "next_cursor": None})])

    await adapter.query_database("db-1")

    request = transport.requests[0]
    assert request.headers["Authorization"] == "Bearer secret-token"
    assert request.headers["Notion-Version"] == "2022-06-28"
    assert request.method == "POST"
    assert request.url.path == "/v1/databases/db-1/query"
    assert transport.payload(0) == {}


@pytest.mark.asyncio
async def test_query_database_sends_cursor(make_adapter: Callable) -> None:
    """A continuation cursor is forwarded as start_cursor."""
    adapter, transport = make_adapter([httpx.Response(200, json={"results": [], "next_cursor": None})])

    await adapter.query_database("db-1", start_cursor="abc")

    assert transport.payload(0) == {"start_cursor": "abc"}


@pytest.mark.asyncio
async def test_validation_error_is_raised_without_retry(make_adapter: Callable) -> None:
    """A 400 response becomes a NotionAPIError carrying Notion's code and message."""
    adapter, transport = make_adapter([httpx.Response(400, json={"object": "error", "code": "validation_error", "message": "Bad property"})])

    with pytest.raises(NotionAPIError) as exc_info:
        await adapter.update_page("page-1", {"State": {"select": {"name": "open"}}})

    assert exc_info.value.status_code == 400
    assert exc_info.value.code == "validation_error"
    assert exc_info.value.message == "Bad property"
    assert len(transport.requests) == 1


@pytest.mark.asyncio
async def test_rate_limited_request_is_retried(make_adapter: Callable, no_sleep: AsyncMock) -> None:
    """A 429 is retried after the Retry-After delay."""
    adapter, transport = make_adapter(
        [
            httpx.Response(429, headers={"retry-after": "2"}, json={"object": "error", "code": "rate_limited", "message": "Slow down"}),
            httpx.Response(200, json={"object": "page", "id": "page-1"}),
        ]
    )

    page = await adapter.update_page("page-1", {})

    assert page["id"] == "page-1"
    assert len(transport.requests) == 2
    no_sleep.assert_awaited_once_with(2.0)


@pytest.mark.asyncio
async def test_create_page_is_not_retried_on_server_error(make_adapter: Callable) -> None:
    """A create that failed ambiguously is not repeated."""
    adapter, transport = make_adapter([httpx.Response(500, json={"object": "error", "code": "internal_server_error", "message": "Oops"})])

    with pytest.raises(NotionAPIError):
        await adapter.create_page("db-1", {"issue": {"title": []}})

    assert len(transport.requests) == 1


@pytest.mark.asyncio
async def test_create_page_appends_blocks_beyond_request_limit(make_adapter: Callable) -> None:
    """Children past the first hundred are appended in chunks of one hundred."""
    adapter, transport = make_adapter(
        [
            httpx.Response(200, json={"object": "page", "id": "new-page"}),
            httpx.Response(200, json={"object": "list", "results": []}),
            httpx.Response(200, json={"object": "list", "results": []}),
        ]
    )

    page = await adapter.create_page("db-1", {"issue": {"title": []}}, children=_blocks(250))

    assert page["id"] == "new-page"
    create_payload = transport.payload(0)
    assert create_payload["parent"] == {"database_id": "db-1"}
    assert len(create_payload["children"]) == 100
    assert [request.url.path for request in transport.requests[1:]] == ["/v1/blocks/new-page/children"] * 2
    assert [len(transport.payload(index)["children"]) for index in (1, 2)] == [100, 50]
    assert transport.payload(2)["children"][0]["index"] == 200


@pytest.mark.asyncio
async def test_create_page_reports_created_page_when_append_fails(make_adapter: Callable) -> None:
    """A failed append after the page exists names the page and how many blocks it got."""
    adapter, transport = make_adapter(
        [
            httpx.Response(200, json={"object": "page", "id": "new-page"}),
            httpx.Response(200, json={"object": "list", "results": []}),
            httpx.Response(502, json={"object": "error", "code": "bad_gateway", "message": "Bad gateway"}),
        ]
    )

    with pytest.raises(IncompletePageContentError) as exc_info:
        await adapter.create_page("db-1", {"issue": {"title": []}}, children=_blocks(250))

    assert exc_info.value.page_id == "new-page"
    assert (exc_info.value.appended_count, exc_info.value.total_count) == (200, 250)
    assert "new-page" in str(exc_info.value)
    assert isinstance(exc_info.value.__cause__, NotionAPIError)
    assert len(transport.requests) == 3


@pytest.mark.asyncio
async def test_create_page_without_children(make_adapter: Callable) -> None:
    """A page with no body is created in a single request."""
    adapter, transport = make_adapter([httpx.Response(200, json={"object": "page", "id": "new-page"})])

    await adapter.create_page("db-1", {"issue": {"title": []}})

    assert len(transport.requests) == 1
    assert transport.payload(0)["children"] == []


@pytest.mark.asyncio
async def test_list_comments_paginates(make_adapter: Callable) -> None:
    """Comments are collected across pages."""
    adapter, transport = make_adapter(
        [
            httpx.Response(200, json={"results": [{"id": "c1"}], "has_more": True, "next_cursor": "next"}),
            httpx.Response(200, json={"results": [{"id": "c2"}], "has_more": False, "next_cursor": None}),
        ]
    )

    comments = await adapter.list_comments("page-1")

    assert [comment["id"] for comment in comments] == ["c1", "c2"]
    assert transport.requests[0].url.params["block_id"] == "page-1"
    assert "start_cursor" not in transport.requests[0].url.params
    assert transport.requests[1].url.params["start_cursor"] == "next"


@pytest.mark.asyncio
async def test_create_comment_payload(make_adapter: Callable) -> None:
    """Comments are posted against the page as parent."""
    adapter, transport = make_adapter([httpx.Response(200, json={"object": "comment", "id": "c1"})])
    rich_text = [{"type": "text", "text": {"content": "hello"}}]

    await adapter.create_comment("page-1", rich_text)

    assert transport.requests[0].url.path == "/v1/comments"
    assert transport.payload(0) == {"parent": {"page_id": "page-1"}, "rich_text": rich_text}


@pytest.mark.asyncio
async def test_retrieve_page_property_and_bot_user(make_adapter: Callable) -> None:
    """Property items and the bot user are read with GET requests."""
    adapter, transport = make_adapter(
        [
            httpx.Response(200, json={"object": "property_item", "type": "number", "number": 42}),
            httpx.Response(200, json={"object": "user", "id": "bot-1"}),
        ]
    )

    assert (await adapter.retrieve_page_property("page-1", "abc"))["number"] == 42
    assert (await adapter.retrieve_bot_user())["id"] == "bot-1"
    assert [(request.method, request.url.path) for request in transport.requests] == [
        ("GET", "/v1/pages/page-1/properties/abc"),
        ("GET", "/v1/users/me"),
    ]


@pytest.mark.asyncio
async def test_context_manager_closes_client(make_adapter: Callable) -> None:
    """Leaving the context closes the HTTP client."""
    adapter, _ = make_adapter([])

    async with adapter:
        pass

    assert adapter.client.is_closed


def test_get_notion_client_requires_key() -> None:
    """An empty integration token is a configuration error."""
    with pytest.raises(RequiredConfigurationElementError, match="NOTION_API_KEY"):
        get_notion_client("")
