"""Main CLI application for PR Review Tracker."""

from pathlib import Path
from typing import Annotated

import typer

from pr_review_tracker import __version__
from pr_review_tracker.cli import db as db_cmd
from pr_review_tracker.cli import metrics as metrics_cmd
from pr_review_tracker.cli import sync as sync_cmd
from pr_review_tracker.cli.common import console
from pr_review_tracker.config import get_settings
from pr_review_tracker.logging import setup_logging

app = typer.Typer(
    name="prtracker",
    help="Track review progress of pull requests opened by a roster of contributors.",
    add_completion=False,
)


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"prtracker version {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: Annotated[
        bool,
        typer.Option(
            "--version",
            help="Show version and exit.",
            callback=version_callback,
            is_eager=True,
        ),
    ] = False,
    verbose: Annotated[
        bool,
        typer.Option(
            "--verbose",
            "-v",
            help="Enable debug logging.",
        ),
    ] = False,
    quiet: Annotated[
        bool,
        typer.Option(
            "--quiet",
            "-q",
            help="Suppress non-error output (WARNING level).",
        ),
    ] = False,
) -> None:
    """PR Review Tracker - sync tracked users' PRs and report review health."""
    settings = get_settings()
    log_config = settings.logging

    setup_logging(
        level=settings.log_level,
        verbose=verbose,
        quiet=quiet,
        log_file=Path(log_config.log_file) if log_config.log_file else None,
        rotation=log_config.rotation,
        retention=log_config.retention,
        serialize=log_config.serialize,
    )


# Register subcommands
app.add_typer(db_cmd.app, name="db")
app.add_typer(sync_cmd.app, name="sync")
app.add_typer(metrics_cmd.app, name="metrics")


if __name__ == "__main__":
    app()
