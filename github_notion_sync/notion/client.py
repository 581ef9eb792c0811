# This file is intended to hold the setup for the authenticated httpx client used against Notion.

"""Sets up the authenticated httpx client for the Notion API."""

import httpx

from github_notion_sync.configuration.exceptions import RequiredConfigurationElementError
from github_notion_sync.utils.constants import DEFAULT_NOTION_API_URL, NOTION_API_VERSION

CONNECT_TIMEOUT = 5.0
READ_TIMEOUT = 60.0
WRITE_TIMEOUT = 30.0
POOL_TIMEOUT = 30.0


def get_notion_client(notion_api_key: str, notion_api_url: str = DEFAULT_NOTION_API_URL, transport: httpx.AsyncBaseTransport | None = None) -> httpx.AsyncClient:
    """Returns an httpx client authenticated against the Notion API with an integration token."""
    if not notion_api_key:
        raise RequiredConfigurationElementError(name="Notion API key", cli_name="--notion-api-key", env_name="NOTION_API_KEY")
    return httpx.AsyncClient(
        base_url=notion_api_url.rstrip("/"),
        headers={
            "Authorization": f"Bearer {notion_api_key}",
            "Notion-Version": NOTION_API_VERSION,
            "Content-Type": "application/json",
        },
        timeout=httpx.Timeout(connect=CONNECT_TIMEOUT, read=READ_TIMEOUT, write=WRITE_TIMEOUT, pool=POOL_TIMEOUT),
        transport=transport,
    )
