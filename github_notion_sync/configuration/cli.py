"""Defines the Command Line Interface (CLI) using Typer."""

import asyncio
import logging

import structlog
import typer
from dotenv import load_dotenv
from typer import Option
from typing_extensions import Annotated

from github_notion_sync.configuration.exceptions import ConfigurationError
from github_notion_sync.configuration.reconcile import reconcile_sync_configuration
from github_notion_sync.synchronize.driver import run_sync_workflow
from github_notion_sync.synchronize.models import RecordKind
from github_notion_sync.synchronize.results import ExitCode, SyncRunResult

load_dotenv()

typer_app = typer.Typer(pretty_exceptions_show_locals=False)


@typer_app.callback()
def main() -> None:
    """Mirror GitHub issues, discussions and pull requests into Notion databases."""


def configure_logging(debug: bool) -> None:
    """Configure structlog to render key/value log lines at INFO, or DEBUG when requested."""
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.format_exc_info,
            structlog.dev.ConsoleRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(logging.DEBUG if debug else logging.INFO),
        cache_logger_on_first_use=False,
    )


def echo_summary(run_result: SyncRunResult) -> None:
    """Print a per-kind summary of a synchronization run."""
    typer.echo("")
    typer.echo("=" * 70)
    typer.echo("SYNC SUMMARY")
    typer.echo("=" * 70)
    for result in run_result.kind_results:
        typer.echo(f"{result.kind.value}:")
        if result.error is not None:
            typer.echo(f"  Aborted: {result.error}")
            continue
        typer.echo(f"  Records fetched: {result.fetched}")
        typer.echo(f"  Pages created: {result.created}")
        typer.echo(f"  Pages updated: {result.updated}")
        if result.failures:
            typer.echo(f"  Failed operations: {len(result.failures)}")
            for failure in result.failures:
                typer.echo(f"    - #{failure.operation.record.number}: {failure.error}")
        if result.duplicates:
            typer.echo(f"  Duplicate Notion pages: {len(result.duplicates)}")
            for duplicate in result.duplicates:
                typer.echo(f"    - #{duplicate.number}: kept {duplicate.kept_page_id}, ignored {duplicate.dropped_page_id}")
        if result.merge_status_updated or result.merge_status_failures:
            typer.echo(f"  Linked tasks updated with merge status: {result.merge_status_updated}")
            if result.merge_status_failures:
                typer.echo(f"  Merge status failures: {len(result.merge_status_failures)}")
    typer.echo("=" * 70)


@typer_app.command(name="sync")
def sync_cli(
    kinds: Annotated[list[RecordKind] | None, Option("--kind", help="Record kind to synchronize; repeat for several. Defaults to every configured kind.")] = None,
    repo_owner: Annotated[str | None, Option(help="GitHub repository owner. [env: REPO_OWNER]")] = None,
    repo_name: Annotated[str | None, Option(help="GitHub repository name. [env: REPO_NAME]")] = None,
    github_api_url: Annotated[str | None, Option(help="GitHub API URL. [env: GITHUB_API_URL]")] = None,
    github_pat_token: Annotated[str | None, Option(help="GitHub Personal Access Token. [env: GITHUB_PAT_TOKEN]")] = None,
    notion_api_url: Annotated[str | None, Option(help="Notion API URL. [env: NOTION_API_URL]")] = None,
    notion_api_key: Annotated[str | None, Option(help="Notion integration token. [env: NOTION_API_KEY]")] = None,
    notion_issue_database_id: Annotated[str | None, Option(help="Notion database mirroring issues. [env: NOTION_ISSUE_DATABASE_ID]")] = None,
    notion_discussion_database_id: Annotated[
        str | None, Option(help="Notion database mirroring discussions. [env: NOTION_DISCUSSION_DATABASE_ID]")
    ] = None,
    notion_pr_database_id: Annotated[str | None, Option(help="Notion database mirroring pull requests. [env: NOTION_PR_DATABASE_ID]")] = None,
    batch_size: Annotated[int | None, Option(help="Notion operations in flight at once. [env: OPERATION_BATCH_SIZE]")] = None,
    propagate_merge_status: Annotated[
        bool | None,
        Option(
            "--propagate-merge-status/--no-propagate-merge-status",
            envvar=["PROPAGATE_MERGE_STATUS", "UPDATE_STATUS_IN_NOTION_DB"],
            help="Comment on Notion tasks linked from closed pull requests.",
        ),
    ] = None,
    status_property_name: Annotated[
        str | None, Option(help="Status property set on linked Notion tasks. [env: STATUS_PROPERTY_NAME]")
    ] = None,
    debug: Annotated[bool | None, Option("--debug/--no-debug", envvar="DEBUG", help="Enable debug logging.")] = None,
) -> None:
    """Synchronize GitHub records into their Notion databases."""
    try:
        config = asyncio.run(
            reconcile_sync_configuration(
                cli_debug=debug,
                cli_github_api_url=github_api_url,
                cli_github_pat_token=github_pat_token,
                cli_repo_owner=repo_owner,
                cli_repo_name=repo_name,
                cli_notion_api_url=notion_api_url,
                cli_notion_api_key=notion_api_key,
                cli_notion_issue_database_id=notion_issue_database_id,
                cli_notion_discussion_database_id=notion_discussion_database_id,
                cli_notion_pr_database_id=notion_pr_database_id,
                cli_batch_size=batch_size,
                cli_propagate_merge_status=propagate_merge_status,
                cli_status_property_name=status_property_name,
                cli_kinds=kinds,
            )
        )
    except ConfigurationError as exc:
        typer.echo(f"Configuration error: {exc}", err=True)
        raise typer.Exit(int(ExitCode.FATAL)) from exc

    configure_logging(config.debug)
    typer.echo(f"Synchronizing {config.repo} into Notion: {', '.join(kind.value for kind in config.kinds)}")

    run_result = asyncio.run(run_sync_workflow(config))
    echo_summary(run_result)

    exit_code = run_result.exit_code
    if exit_code == ExitCode.FATAL:
        typer.echo("Synchronization aborted: GitHub or Notion rejected the configured credentials.", err=True)
        raise typer.Exit(int(exit_code))
    if exit_code != ExitCode.SUCCESS:
        typer.echo("Synchronization finished with failures.", err=True)
        raise typer.Exit(int(exit_code))
    typer.echo("Notion databases are synced with GitHub.")


if __name__ == "__main__":
    typer_app()
