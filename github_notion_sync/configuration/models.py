"""Models for configuration between CLI arguments and environment variables."""

from dataclasses import dataclass, field

from github_notion_sync.synchronize.models import RecordKind


@dataclass
class SyncConfig:
    """Configuration class for the sync command."""

    debug: bool
    github_api_url: str
    github_pat_token: str
    repo_owner: str
    repo_name: str
    notion_api_url: str
    notion_api_key: str
    database_ids: dict[RecordKind, str]
    batch_size: int
    propagate_merge_status: bool = False
    status_property_name: str | None = None
    kinds: list[RecordKind] = field(default_factory=list)

    @property
    def repo(self) -> str:
        """Repository in 'owner/repo' format."""
        return f"{self.repo_owner}/{self.repo_name}"
