"""Database management commands."""

import typer

from pr_review_tracker.db.engine import create_tables, drop_tables

from .common import console, run_async_command

app = typer.Typer(help="Manage the local database")


@app.command("init")
def init_db() -> None:
    """Create all tables (use Alembic for upgrades of existing databases)."""
    run_async_command(create_tables(), error_prefix="Database init failed")
    console.print("[green]Database tables created[/green]")


@app.command("drop")
def drop_db(
    yes: bool = typer.Option(False, "--yes", help="Skip the confirmation prompt"),
) -> None:
    """Drop all tables. Deletes every stored PR, repository and owner."""
    if not yes:
        typer.confirm("Drop all tables?", abort=True)
    run_async_command(drop_tables(), error_prefix="Database drop failed")
    console.print("[yellow]Database tables dropped[/yellow]")
