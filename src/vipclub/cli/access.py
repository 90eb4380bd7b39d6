"""Access link CLI commands."""

import asyncio
from typing import NoReturn

import typer
from rich.console import Console
from rich.table import Table

from vipclub.config import settings
from vipclub.database import get_session_context
from vipclub.models import GrantStatus, TargetPage, ensure_utc
from vipclub.services.access import (
    AccessError,
    TTLPolicy,
    delete_grant,
    grant_status,
    issue_admin_token,
    issue_grant,
    list_grants,
    revoke_grant,
)

console = Console()
app = typer.Typer(help="Access link commands")

STATUS_STYLES = {
    GrantStatus.ACTIVE: "[green]active[/green]",
    GrantStatus.USED: "[yellow]used[/yellow]",
    GrantStatus.EXPIRED: "[red]expired[/red]",
}


def fail(error: AccessError) -> NoReturn:
    console.print(f"[red]Error:[/red] {error.message}")
    raise typer.Exit(1)


@app.command("issue")
def issue(
    target: TargetPage = typer.Option(TargetPage.MEMBER, "--target", "-t", help="Page the link unlocks"),
    minutes: int = typer.Option(
        settings.access_link_default_ttl_minutes, "--minutes", "-m", help="Lifetime in minutes"
    ),
    permanent: bool = typer.Option(False, "--permanent", help="Never expires"),
    share: bool = typer.Option(False, "--share", help="Allow repeated use until expiry"),
):
    """Issue a new access link."""

    async def _issue():
        ttl = TTLPolicy.permanent() if permanent else TTLPolicy.of_minutes(minutes)
        async with get_session_context() as session:
            try:
                issued = await issue_grant(session, target, ttl, allow_share=share)
            except AccessError as e:
                fail(e)

        grant = issued.grant
        console.print(f"[green]Access link:[/green] {issued.access_link}")
        expires = "never" if grant.is_permanent else str(ensure_utc(grant.expires_at))
        kind = "shareable" if grant.allow_share else "one-time"
        console.print(f"[dim]Target: {grant.target_page.value}, {kind}, expires: {expires}[/dim]")

    asyncio.run(_issue())


@app.command("admin-link")
def admin_link():
    """Issue a one-hour, one-time admin link (bootstrap access to the admin panel)."""

    async def _issue():
        async with get_session_context() as session:
            try:
                issued = await issue_admin_token(session)
            except AccessError as e:
                fail(e)

        console.print(f"[green]Admin link:[/green] {issued.access_link}")
        console.print(f"[dim]Expires: {ensure_utc(issued.grant.expires_at)}[/dim]")

    asyncio.run(_issue())


@app.command("list")
def list_links(
    status: GrantStatus | None = typer.Option(None, "--status", "-s", help="Filter by status"),
    target: TargetPage | None = typer.Option(None, "--target", "-t", help="Filter by target page"),
):
    """List access links, newest first."""

    async def _list():
        async with get_session_context() as session:
            grants = await list_grants(session, status=status, target_page=target)

        table = Table(title="Access Links")
        table.add_column("ID", style="cyan")
        table.add_column("Target", style="magenta")
        table.add_column("Status")
        table.add_column("Share")
        table.add_column("Expires", style="dim")
        table.add_column("Created", style="dim")

        for grant in grants:
            expires = "never" if grant.is_permanent else ensure_utc(grant.expires_at).strftime("%Y-%m-%d %H:%M")  # type: ignore[union-attr]
            table.add_row(
                grant.id,
                grant.target_page.value,
                STATUS_STYLES[grant_status(grant)],
                "yes" if grant.allow_share else "no",
                expires,
                grant.created_at.strftime("%Y-%m-%d %H:%M"),
            )

        console.print(table)

    asyncio.run(_list())


@app.command("revoke")
def revoke(grant_id: str = typer.Argument(..., help="Access link ID")):
    """Revoke an access link."""

    async def _revoke():
        async with get_session_context() as session:
            try:
                await revoke_grant(session, grant_id)
            except AccessError as e:
                fail(e)
        console.print(f"[green]Revoked:[/green] {grant_id}")

    asyncio.run(_revoke())


@app.command("delete")
def delete(
    grant_id: str = typer.Argument(..., help="Access link ID"),
    force: bool = typer.Option(False, "--force", "-f", help="Skip confirmation"),
):
    """Permanently delete an access link."""
    if not force and not typer.confirm(f"Delete access link {grant_id}? This cannot be undone."):
        console.print("[dim]Cancelled[/dim]")
        raise typer.Exit(0)

    async def _delete():
        async with get_session_context() as session:
            try:
                await delete_grant(session, grant_id)
            except AccessError as e:
                fail(e)
        console.print(f"[green]Deleted:[/green] {grant_id}")

    asyncio.run(_delete())
