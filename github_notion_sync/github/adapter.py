"""GitHub client adapter for the githubkit library."""

from typing import Any, Literal, Self

import structlog
from githubkit import Response
from githubkit.versions.latest.models import Issue, PullRequestSimple

from github_notion_sync.utils.constants import DEFAULT_GITHUB_API_URL, GITHUB_PAGE_SIZE
from github_notion_sync.utils.retry import retry_on_transient_error

from .abc import GitHubClientBase
from .client import GitHubClient, get_github_client

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)

LIST_DISCUSSIONS_QUERY = """
query ($owner: String!, $name: String!, $first: Int!, $after: String) {
  repository(owner: $owner, name: $name) {
    discussions(first: $first, after: $after, orderBy: {field: CREATED_AT, direction: ASC}) {
      pageInfo {
        hasNextPage
        endCursor
      }
      nodes {
        number
        title
        body
        url
        closed
        category {
          name
        }
        author {
          login
        }
      }
    }
  }
}
"""


class GitHubKitAdapter(GitHubClientBase):
    """GitHub client adapter for the githubkit library."""

    def __init__(self, client: GitHubClient, owner: str, repo_name: str) -> None:
        """Initialize the GitHub client adapter with an already-initialized client."""
        self.client = client
        self.owner = owner
        self.repo_name = repo_name

    @classmethod
    def create(cls, owner: str, repo_name: str, github_pat_token: str, github_api_url: str = DEFAULT_GITHUB_API_URL) -> Self:
        """Create a new GitHub client adapter.

        Args:
            owner: Repository owner (user or organization)
            repo_name: Repository name
            github_pat_token: Personal access token
            github_api_url: GitHub API URL (defaults to https://api.github.com)

        Returns:
            Configured GitHubKitAdapter instance
        """
        logger.info("Creating client for GitHub instance and repository", github_api_url=github_api_url, owner=owner, repo_name=repo_name)
        client = get_github_client(github_pat_token=github_pat_token, github_api_url=github_api_url)
        return cls(client, owner, repo_name)

    async def list_issues(self, state: Literal["open", "closed", "all"] = "all", per_page: int = GITHUB_PAGE_SIZE, **kwargs: Any) -> list[Issue]:
        """List all issues for a repository, handling pagination.

        GitHub's issues endpoint also returns pull requests; callers that only
        want true issues must filter on the pull_request field.
        """

        @retry_on_transient_error()
        async def _fetch_page(page: int) -> list[Issue]:
            response: Response[list[Issue]] = await self.client.rest.issues.async_list_for_repo(
                owner=self.owner,
                repo=self.repo_name,
                state=state,
                per_page=per_page,
                page=page,
                **kwargs,
            )
            return response.parsed_data

        all_issues: list[Issue] = []
        page: int = 1
        while True:
            logger.debug("Fetching issues page", page=page, per_page=per_page)
            issues = await _fetch_page(page)
            if not issues:
                break
            all_issues.extend(issues)
            if len(issues) < per_page:
                break
            page += 1
        return all_issues

    async def list_pull_requests(
        self, state: Literal["open", "closed", "all"] = "all", per_page: int = GITHUB_PAGE_SIZE, **kwargs: Any
    ) -> list[PullRequestSimple]:
        """List all pull requests for a repository, handling pagination."""

        @retry_on_transient_error()
        async def _fetch_page(page: int) -> list[PullRequestSimple]:
            response: Response[list[PullRequestSimple]] = await self.client.rest.pulls.async_list(
                owner=self.owner,
                repo=self.repo_name,
                state=state,
                per_page=per_page,
                page=page,
                **kwargs,
            )
            return response.parsed_data

        all_pull_requests: list[PullRequestSimple] = []
        page: int = 1
        while True:
            logger.debug("Fetching pull requests page", page=page, per_page=per_page)
            pull_requests = await _fetch_page(page)
            if not pull_requests:
                break
            all_pull_requests.extend(pull_requests)
            if len(pull_requests) < per_page:
                break
            page += 1
        return all_pull_requests

    async def list_discussions(self, per_page: int = GITHUB_PAGE_SIZE) -> list[dict[str, Any]]:
        """List all discussions for a repository using GraphQL cursor pagination.

        Discussions are not exposed by the REST API, so each page is requested
        through the repository.discussions connection until hasNextPage is false.
        """

        @retry_on_transient_error()
        async def _fetch_page(cursor: str | None) -> dict[str, Any]:
            data: dict[str, Any] = await self.client.async_graphql(
                LIST_DISCUSSIONS_QUERY,
                variables={"owner": self.owner, "name": self.repo_name, "first": per_page, "after": cursor},
            )
            repository = data.get("repository")
            if repository is None:
                raise ValueError(f"Repository {self.owner}/{self.repo_name} not found or discussions are not accessible")
            return repository["discussions"]

        all_discussions: list[dict[str, Any]] = []
        cursor: str | None = None
        while True:
            logger.debug("Fetching discussions page", cursor=cursor, per_page=per_page)
            connection = await _fetch_page(cursor)
            all_discussions.extend(node for node in connection.get("nodes") or [] if node is not None)
            page_info = connection.get("pageInfo") or {}
            cursor = page_info.get("endCursor")
            if not page_info.get("hasNextPage") or not cursor:
                break
        return all_discussions
