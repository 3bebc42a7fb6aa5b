"""Sync commands for PR Review Tracker."""

import json
from pathlib import Path
from typing import Any

import typer

from pr_review_tracker.db import get_session
from pr_review_tracker.github import GitHubClient
from pr_review_tracker.sync import (
    RefreshCoordinator,
    ReviewRefreshService,
    UserSyncService,
    WebhookRevalidator,
)

from .common import (
    OutputFormat,
    OutputFormatOption,
    console,
    emit_json,
    run_async_command,
)

app = typer.Typer(help="Sync PR data from GitHub")


@app.command("user")
def sync_user(
    login: str = typer.Argument(..., help="GitHub login of a tracked user"),
    output_format: OutputFormatOption = OutputFormat.TEXT,
) -> None:
    """Sync every PR a tracked user authored within the tracking window.

    Examples:
        prtracker sync user octocat
        prtracker sync user octocat --format json
    """

    async def _sync() -> dict[str, Any]:
        async with GitHubClient() as client, get_session() as session:
            result = await UserSyncService(client, session).sync_user_by_login(login)
            return result.to_dict()

    result = run_async_command(_sync(), error_prefix="Sync failed")

    if output_format == OutputFormat.JSON:
        emit_json(result)
        return

    console.print(
        f"[bold]{login}[/bold]: {result['pull_requests_processed']} PRs processed "
        f"([green]{result['created']} created[/green], {result['updated']} updated, "
        f"{result['unchanged']} unchanged, [yellow]{result['skipped']} skipped[/yellow], "
        f"[red]{result['failed']} failed[/red])"
    )
    for problem in result["problems"]:
        console.print(f"  [dim]{problem['action']}[/dim] {problem['link']}")


@app.command("all")
def sync_all(
    output_format: OutputFormatOption = OutputFormat.TEXT,
) -> None:
    """Refresh every tracked user, one at a time.

    Users are processed sequentially with a courtesy delay between them;
    a failing user is reported and the run continues.

    Examples:
        prtracker sync all
        prtracker -q sync all --format json
    """

    async def _refresh() -> dict[str, Any]:
        async with GitHubClient() as client:
            coordinator = RefreshCoordinator.create(client, get_session)
            if output_format == OutputFormat.TEXT:
                with console.status("Refreshing tracked users..."):
                    status = await coordinator.run()
            else:
                status = await coordinator.run()
            return status.to_dict()

    result = run_async_command(_refresh(), error_prefix="Refresh failed")

    if output_format == OutputFormat.JSON:
        emit_json(result)
        return

    console.print(
        f"Refreshed {result['processed']}/{result['total']} users: "
        f"[green]{result['success_count']} succeeded[/green], "
        f"[red]{result['error_count']} failed[/red]"
    )
    for outcome in result["recent"]:
        if not outcome["success"]:
            console.print(f"  [red]✗[/red] {outcome['login']}: {outcome['error']}")


@app.command("pr")
def sync_pull_request_reviews(
    pr_id: int = typer.Argument(..., help="Stored PR ID"),
    output_format: OutputFormatOption = OutputFormat.TEXT,
) -> None:
    """Re-fetch review data for one stored PR and overwrite its review fields.

    Examples:
        prtracker sync pr 42
    """

    async def _refresh() -> dict[str, Any]:
        async with GitHubClient() as client, get_session() as session:
            review = await ReviewRefreshService(client, session).refresh_pull_request(pr_id)
            return {"pr_id": pr_id, **review.to_dict()}

    result = run_async_command(_refresh(), error_prefix="Review refresh failed")

    if output_format == OutputFormat.JSON:
        emit_json(result)
        return

    console.print(
        f"PR {pr_id}: [bold]{result['review_status']}[/bold], "
        f"{len(result['reviewers'])} reviewers, "
        f"{result['review_comments_count']} review comments"
    )


@app.command("reviews")
def sync_all_reviews(
    output_format: OutputFormatOption = OutputFormat.TEXT,
) -> None:
    """Re-fetch review data for every stored PR.

    Examples:
        prtracker sync reviews --format json
    """

    async def _refresh() -> dict[str, Any]:
        async with GitHubClient() as client, get_session() as session:
            summary = await ReviewRefreshService(client, session).refresh_all()
            return summary.to_dict()

    result = run_async_command(_refresh(), error_prefix="Review refresh failed")

    if output_format == OutputFormat.JSON:
        emit_json(result)
        return

    console.print(
        f"[green]{result['refreshed']} refreshed[/green], "
        f"[yellow]{result['skipped']} skipped[/yellow], "
        f"[red]{result['failed']} failed[/red]"
    )


@app.command("webhook")
def sync_from_webhook(
    payload_file: Path = typer.Argument(..., exists=True, help="JSON webhook payload"),
    event: str = typer.Option("pull_request", "--event", "-e", help="X-GitHub-Event value"),
    output_format: OutputFormatOption = OutputFormat.TEXT,
) -> None:
    """Replay a webhook delivery: re-sync the PR author if they are tracked.

    Examples:
        prtracker sync webhook delivery.json --event pull_request
    """
    try:
        payload = json.loads(payload_file.read_text())
    except json.JSONDecodeError as e:
        console.print(f"[red]Error:[/red] Invalid JSON payload: {e}")
        raise typer.Exit(1) from None

    async def _handle() -> dict[str, Any] | None:
        async with GitHubClient() as client:
            revalidator = WebhookRevalidator(client, get_session)
            result = await revalidator.handle_pull_request_event(event, payload)
            return result.to_dict() if result is not None else None

    result = run_async_command(_handle(), error_prefix="Webhook handling failed")

    if output_format == OutputFormat.JSON:
        emit_json({"handled": result is not None, "result": result})
        return

    if result is None:
        console.print("[dim]Ignored: not a pull_request event by a tracked user[/dim]")
    else:
        console.print(
            f"Revalidated [bold]{result['login']}[/bold]: "
            f"{result['pull_requests_processed']} PRs processed"
        )
