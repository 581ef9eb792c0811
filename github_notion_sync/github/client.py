# This file is intended to hold the setup for the authenticated githubkit client.

"""Sets up the authenticated githubkit client."""

from githubkit import GitHub
from githubkit.auth import TokenAuthStrategy

from github_notion_sync.configuration.exceptions import RequiredConfigurationElementError

GitHubClient = GitHub[TokenAuthStrategy]


def get_github_client(github_pat_token: str, github_api_url: str) -> GitHubClient:
    """Returns an authenticated GitHub client using GitHub PAT credentials.

    Supports custom base URL for GitHub Enterprise Server (GHES).
    """
    if not github_pat_token:
        raise RequiredConfigurationElementError(name="GitHub personal access token", cli_name="--github-pat-token", env_name="GITHUB_PAT_TOKEN")
    # Disable HTTP caching so every run sees the current state of the repository
    return GitHub(auth=TokenAuthStrategy(github_pat_token), base_url=github_api_url, http_cache=False)
