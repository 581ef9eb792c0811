"""Base ABC for Notion clients."""

from abc import ABC, abstractmethod
from typing import Any


class NotionClientBase(ABC):
    """Base ABC for Notion clients."""

    # Database queries
    @abstractmethod
    async def query_database(self, database_id: str, start_cursor: str | None = None) -> dict[str, Any]:
        """Query one page of a database; the response carries results and next_cursor."""
        pass

    # Page CRUD
    @abstractmethod
    async def retrieve_page_property(self, page_id: str, property_id: str) -> dict[str, Any]:
        """Retrieve a single property item of a page."""
        pass

    @abstractmethod
    async def create_page(self, database_id: str, properties: dict[str, Any], children: list[dict[str, Any]] | None = None) -> dict[str, Any]:
        """Create a page in a database."""
        pass

    @abstractmethod
    async def update_page(self, page_id: str, properties: dict[str, Any]) -> dict[str, Any]:
        """Update the properties of a page."""
        pass

    @abstractmethod
    async def append_block_children(self, block_id: str, children: list[dict[str, Any]]) -> dict[str, Any]:
        """Append content blocks to a page or block."""
        pass

    # Comments and users
    @abstractmethod
    async def list_comments(self, block_id: str) -> list[dict[str, Any]]:
        """List every comment on a page or block."""
        pass

    @abstractmethod
    async def create_comment(self, page_id: str, rich_text: list[dict[str, Any]]) -> dict[str, Any]:
        """Add a comment to a page."""
        pass

    @abstractmethod
    async def retrieve_bot_user(self) -> dict[str, Any]:
        """Retrieve the bot user of the current integration."""
        pass
