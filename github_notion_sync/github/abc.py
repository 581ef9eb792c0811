"""Base ABC for GitHub clients."""

from abc import ABC, abstractmethod
from typing import Any, Literal


class GitHubClientBase(ABC):
    """Base ABC for GitHub clients.

    Only the read operations needed to snapshot a repository are part of this
    interface; nothing is ever written back to GitHub.
    """

    @abstractmethod
    async def list_issues(self, state: Literal["open", "closed", "all"] = "all", per_page: int = 100, **kwargs: Any) -> list[Any]:
        """List issues for a repository (pull requests included, as GitHub returns them)."""
        pass

    @abstractmethod
    async def list_pull_requests(self, state: Literal["open", "closed", "all"] = "all", per_page: int = 100, **kwargs: Any) -> list[Any]:
        """List pull requests for a repository."""
        pass

    @abstractmethod
    async def list_discussions(self, per_page: int = 100) -> list[dict[str, Any]]:
        """List discussions for a repository."""
        pass
