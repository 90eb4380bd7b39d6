"""Alembic wrappers: `vipclub db migrate`, `rollback`, `reset` and friends."""

import subprocess
import sys

import typer
from rich.console import Console

console = Console()
app = typer.Typer(help="Schema migrations (Alembic)")


def run_alembic(*args: str) -> int:
    """Run ``python -m alembic`` with the repo's alembic.ini and return its exit code."""
    return subprocess.run([sys.executable, "-m", "alembic", *args], check=False).returncode


def alembic_step(label: str, *args: str) -> None:
    """Run one alembic command, exiting non-zero if it fails."""
    console.print(f"[dim]{label}...[/dim]")
    if run_alembic(*args) != 0:
        console.print(f"[red]{label} failed[/red]")
        raise typer.Exit(1)


@app.command("migrate")
def migrate(revision: str = typer.Argument("head", help="Revision to upgrade to")):
    """Upgrade the schema."""
    alembic_step(f"Upgrading to {revision}", "upgrade", revision)
    console.print("[green]Schema is up to date[/green]")


@app.command("rollback")
def rollback(revision: str = typer.Argument("-1", help="Revision to downgrade to")):
    """Downgrade the schema, one step by default."""
    alembic_step(f"Downgrading to {revision}", "downgrade", revision)
    console.print("[green]Rolled back[/green]")


@app.command("current")
def current():
    """Print the applied revision."""
    run_alembic("current")


@app.command("history")
def history(limit: int = typer.Option(10, "--limit", "-l", help="Revisions to show")):
    """Print the most recent revisions."""
    run_alembic("history", f"-r-{limit}:")


@app.command("reset")
def reset(force: bool = typer.Option(False, "--force", "-f", help="Do not ask for confirmation")):
    """Downgrade to base and upgrade to head, deleting every member and access link."""
    if not force and not typer.confirm("This deletes all members and access links. Continue?"):
        console.print("[dim]Cancelled[/dim]")
        raise typer.Exit(0)

    alembic_step("Dropping schema", "downgrade", "base")
    alembic_step("Recreating schema", "upgrade", "head")
    console.print("[green]Database reset[/green]")


@app.command("create-migration")
def create_migration(
    message: str = typer.Argument(..., help="Revision message"),
    autogenerate: bool = typer.Option(True, "--autogenerate/--empty", help="Diff models against the database"),
):
    """Write a new revision file under migrations/versions."""
    args = ["revision", "-m", message]
    if autogenerate:
        args.append("--autogenerate")
    alembic_step("Creating revision", *args)
