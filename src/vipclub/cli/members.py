"""Member CLI commands."""

import asyncio

import typer
from rich.console import Console
from rich.table import Table
from sqlmodel import col, select

from vipclub.database import get_session_context
from vipclub.models import Member, MemberType
from vipclub.services.members import member_stats

console = Console()
app = typer.Typer(help="Member commands")


@app.command("list")
def list_members(
    vip_only: bool = typer.Option(False, "--vip", help="Only VIP members"),
):
    """List members, newest first."""

    async def _list():
        async with get_session_context() as session:
            stmt = select(Member).order_by(col(Member.created_at).desc())
            if vip_only:
                stmt = stmt.where(Member.member_type == MemberType.VIP)
            result = await session.execute(stmt)
            members = result.scalars().all()

            table = Table(title="Members")
            table.add_column("ID", style="cyan")
            table.add_column("Name", style="green")
            table.add_column("Type", style="magenta")
            table.add_column("Location")
            table.add_column("Pages", style="dim")

            for member in members:
                pages = [
                    name
                    for name, shown in (("member", member.show_on_member_page), ("vip", member.show_on_vip_page))
                    if shown
                ]
                table.add_row(
                    member.id,
                    member.name,
                    member.member_type.value,
                    member.location or "-",
                    ", ".join(pages) or "-",
                )

            console.print(table)

    asyncio.run(_list())


@app.command("stats")
def stats():
    """Show dashboard counts."""

    async def _stats():
        async with get_session_context() as session:
            counts = await member_stats(session)
        for key, value in counts.items():
            console.print(f"{key.replace('_', ' ').title()}: [bold]{value}[/bold]")

    asyncio.run(_stats())
