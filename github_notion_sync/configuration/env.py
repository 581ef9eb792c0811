"""Pydantic Settings model for application configuration."""

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from github_notion_sync.utils.constants import DEFAULT_GITHUB_API_URL, DEFAULT_NOTION_API_URL, DEFAULT_OPERATION_BATCH_SIZE


class Settings(BaseSettings):
    """Environment variable settings for the application."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    # Generic application-wide settings
    DEBUG: bool = False
    OPERATION_BATCH_SIZE: int = DEFAULT_OPERATION_BATCH_SIZE

    # GitHub settings
    GITHUB_API_URL: str = DEFAULT_GITHUB_API_URL
    GITHUB_PAT_TOKEN: str | None = Field(default=None, validation_alias=AliasChoices("GITHUB_PAT_TOKEN", "PERSONAL_GITHUB_ACCESS_KEY"))
    REPO_OWNER: str | None = None
    REPO_NAME: str | None = None

    # Notion settings
    NOTION_API_URL: str = DEFAULT_NOTION_API_URL
    NOTION_API_KEY: str | None = None
    NOTION_ISSUE_DATABASE_ID: str | None = None
    NOTION_DISCUSSION_DATABASE_ID: str | None = None
    NOTION_PR_DATABASE_ID: str | None = None

    # Pull request merge status propagation
    PROPAGATE_MERGE_STATUS: bool = Field(default=False, validation_alias=AliasChoices("PROPAGATE_MERGE_STATUS", "UPDATE_STATUS_IN_NOTION_DB"))
    STATUS_PROPERTY_NAME: str | None = None
