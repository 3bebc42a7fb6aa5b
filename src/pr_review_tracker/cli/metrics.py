"""Review metrics commands."""

from typing import Any

import typer
from rich.table import Table

from pr_review_tracker.db import get_session
from pr_review_tracker.metrics import ReviewMetricsService

from .common import (
    OutputFormat,
    OutputFormatOption,
    console,
    emit_json,
    run_async_command,
)

app = typer.Typer(help="Review-health metrics")


@app.command("bottlenecks")
def show_bottlenecks(
    output_format: OutputFormatOption = OutputFormat.TEXT,
) -> None:
    """List open PRs stuck in review, grouped by repository.

    Examples:
        prtracker metrics bottlenecks
        prtracker metrics bottlenecks --format json
    """

    async def _query() -> dict[str, Any]:
        async with get_session() as session:
            report = await ReviewMetricsService(session).get_bottlenecks()
            return report.to_dict()

    result = run_async_command(_query(), error_prefix="Metrics failed")

    if output_format == OutputFormat.JSON:
        emit_json(result)
        return

    if not result["total_stuck_prs"]:
        console.print("[green]No PRs stuck in review[/green]")
        return

    console.print(f"[bold]{result['total_stuck_prs']} PRs stuck in review[/bold]")
    for repository, prs in result["by_repository"].items():
        table = Table(title=repository, title_justify="left")
        table.add_column("PR")
        table.add_column("Author")
        table.add_column("Status")
        table.add_column("Days", justify="right")
        table.add_column("Title")
        for pr in prs:
            table.add_row(
                f"#{pr['number']}" if pr["number"] else "?",
                pr["author"],
                pr["review_status"],
                str(pr["days_in_review"]),
                pr["title"][:60],
            )
        console.print(table)


@app.command("efficiency")
def show_efficiency(
    output_format: OutputFormatOption = OutputFormat.TEXT,
) -> None:
    """Show review rate, approval rate and average review latency.

    Examples:
        prtracker metrics efficiency --format json
    """

    async def _query() -> dict[str, Any]:
        async with get_session() as session:
            report = await ReviewMetricsService(session).get_efficiency_metrics()
            return report.to_dict()

    result = run_async_command(_query(), error_prefix="Metrics failed")

    if output_format == OutputFormat.JSON:
        emit_json(result)
        return

    table = Table(show_header=False)
    table.add_column("Metric")
    table.add_column("Value", justify="right")
    table.add_row("Total PRs", str(result["total_prs"]))
    table.add_row("PRs with reviews", str(result["prs_with_reviews"]))
    table.add_row("Review rate", f"{result['review_rate']}%")
    table.add_row("Approval rate", f"{result['approval_rate']}%")
    for status, count in result["status_counts"].items():
        table.add_row(f"  {status}", str(count))
    table.add_row(
        "Avg time to first review",
        f"{result['avg_time_to_first_review_hours']}h "
        f"({result['avg_time_to_first_review_days']}d)",
    )
    table.add_row(
        "Avg total review time",
        f"{result['avg_total_review_time_hours']}h ({result['avg_total_review_time_days']}d)",
    )
    bottlenecks = result["bottlenecks"]
    table.add_row(
        "Stuck PRs",
        f"{bottlenecks['total_stuck_prs']} in {bottlenecks['repositories_with_stuck_prs']} repos",
    )
    console.print(table)


@app.command("pr")
def show_pull_request(
    pr_id: int = typer.Argument(..., help="Stored PR ID"),
    output_format: OutputFormatOption = OutputFormat.TEXT,
) -> None:
    """Show the stored review state and timings of one PR.

    Examples:
        prtracker metrics pr 42
    """

    async def _query() -> dict[str, Any] | None:
        async with get_session() as session:
            report = await ReviewMetricsService(session).get_pull_request_metrics(pr_id)
            return report.to_dict() if report is not None else None

    result = run_async_command(_query(), error_prefix="Metrics failed")

    if result is None:
        console.print(f"[red]Error:[/red] PR {pr_id} not found")
        raise typer.Exit(1)

    if output_format == OutputFormat.JSON:
        emit_json(result)
        return

    console.print(f"[bold]{result['repository']}#{result['number']}[/bold] {result['title']}")
    console.print(f"  author: {result['author']}")
    console.print(f"  status: {result['review_status']}")
    console.print(f"  reviewers: {', '.join(result['reviewers']) or '-'}")
    console.print(f"  review comments: {result['review_comments_count']}")
    console.print(f"  time to first review: {result['time_to_first_review_hours']} h")
    console.print(f"  total review time: {result['total_review_time_hours']} h")
    if result["is_stuck"]:
        console.print("  [red]stuck in review[/red]")
