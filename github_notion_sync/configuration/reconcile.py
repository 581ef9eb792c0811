"""Reconciles configuration between CLI arguments and environment variables."""

from typing import TypeVar

import structlog

from github_notion_sync.configuration.env import Settings
from github_notion_sync.configuration.exceptions import ConfigurationError, RequiredConfigurationElementError
from github_notion_sync.configuration.models import SyncConfig
from github_notion_sync.synchronize.models import RecordKind

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)

T = TypeVar("T")


def _prefer_cli(cli_value: T | None, env_value: T | None) -> T | None:
    """Return the CLI value when one was given, otherwise the environment value."""
    return cli_value if cli_value is not None else env_value


def _require(value: str | None, name: str, cli_name: str, env_name: str) -> str:
    if not value:
        raise RequiredConfigurationElementError(name=name, cli_name=cli_name, env_name=env_name)
    return value


async def reconcile_sync_configuration(
    cli_debug: bool | None = None,
    cli_github_api_url: str | None = None,
    cli_github_pat_token: str | None = None,
    cli_repo_owner: str | None = None,
    cli_repo_name: str | None = None,
    cli_notion_api_url: str | None = None,
    cli_notion_api_key: str | None = None,
    cli_notion_issue_database_id: str | None = None,
    cli_notion_discussion_database_id: str | None = None,
    cli_notion_pr_database_id: str | None = None,
    cli_batch_size: int | None = None,
    cli_propagate_merge_status: bool | None = None,
    cli_status_property_name: str | None = None,
    cli_kinds: list[RecordKind] | None = None,
    settings: Settings | None = None,
) -> SyncConfig:
    """Reconciles the sync configuration from CLI arguments and environment settings.

    CLI arguments take precedence over environment variables (and the .env
    file). Validation happens here so that a bad configuration fails before
    any network call is made.

    Raises:
        RequiredConfigurationElementError: If a required setting is missing.
        ConfigurationError: If a setting has an invalid value.

    Returns:
        SyncConfig: The reconciled configuration.
    """
    if settings is None:
        settings = Settings()

    github_pat_token = _require(
        _prefer_cli(cli_github_pat_token, settings.GITHUB_PAT_TOKEN),
        name="GitHub personal access token",
        cli_name="--github-pat-token",
        env_name="GITHUB_PAT_TOKEN",
    )
    notion_api_key = _require(
        _prefer_cli(cli_notion_api_key, settings.NOTION_API_KEY),
        name="Notion API key",
        cli_name="--notion-api-key",
        env_name="NOTION_API_KEY",
    )
    repo_owner = _require(
        _prefer_cli(cli_repo_owner, settings.REPO_OWNER),
        name="Repository owner",
        cli_name="--repo-owner",
        env_name="REPO_OWNER",
    )
    repo_name = _require(
        _prefer_cli(cli_repo_name, settings.REPO_NAME),
        name="Repository name",
        cli_name="--repo-name",
        env_name="REPO_NAME",
    )

    candidate_database_ids = {
        RecordKind.ISSUES: _prefer_cli(cli_notion_issue_database_id, settings.NOTION_ISSUE_DATABASE_ID),
        RecordKind.DISCUSSIONS: _prefer_cli(cli_notion_discussion_database_id, settings.NOTION_DISCUSSION_DATABASE_ID),
        RecordKind.PULL_REQUESTS: _prefer_cli(cli_notion_pr_database_id, settings.NOTION_PR_DATABASE_ID),
    }
    database_ids = {kind: database_id for kind, database_id in candidate_database_ids.items() if database_id}
    if not database_ids:
        raise RequiredConfigurationElementError(
            name="Notion database ID (at least one record kind)",
            cli_name="--notion-issue-database-id, --notion-discussion-database-id or --notion-pr-database-id",
            env_name="NOTION_ISSUE_DATABASE_ID, NOTION_DISCUSSION_DATABASE_ID or NOTION_PR_DATABASE_ID",
        )

    # Kinds always run in declaration order regardless of the order requested.
    requested_kinds = set(cli_kinds) if cli_kinds else set(RecordKind)
    missing_kinds = [kind for kind in RecordKind if kind in requested_kinds and kind not in database_ids]
    if cli_kinds and missing_kinds:
        raise ConfigurationError(f"No Notion database ID configured for requested record kind(s): {', '.join(kind.value for kind in missing_kinds)}")
    kinds = [kind for kind in RecordKind if kind in requested_kinds and kind in database_ids]

    batch_size = _prefer_cli(cli_batch_size, settings.OPERATION_BATCH_SIZE)
    if batch_size is None or batch_size < 1:
        raise ConfigurationError(f"Operation batch size must be at least 1, got {batch_size}")

    propagate_merge_status = bool(_prefer_cli(cli_propagate_merge_status, settings.PROPAGATE_MERGE_STATUS))
    status_property_name = _prefer_cli(cli_status_property_name, settings.STATUS_PROPERTY_NAME)
    if propagate_merge_status and RecordKind.PULL_REQUESTS not in kinds:
        logger.warning("Merge status propagation is enabled but pull requests are not being synchronized")

    config = SyncConfig(
        debug=bool(_prefer_cli(cli_debug, settings.DEBUG)),
        github_api_url=_prefer_cli(cli_github_api_url, settings.GITHUB_API_URL) or settings.GITHUB_API_URL,
        github_pat_token=github_pat_token,
        repo_owner=repo_owner,
        repo_name=repo_name,
        notion_api_url=_prefer_cli(cli_notion_api_url, settings.NOTION_API_URL) or settings.NOTION_API_URL,
        notion_api_key=notion_api_key,
        database_ids=database_ids,
        batch_size=batch_size,
        propagate_merge_status=propagate_merge_status,
        status_property_name=status_property_name,
        kinds=kinds,
    )
    logger.debug(
        "Reconciled sync configuration",
        repo=config.repo,
        kinds=[kind.value for kind in kinds],
        batch_size=batch_size,
        propagate_merge_status=propagate_merge_status,
    )
    return config
