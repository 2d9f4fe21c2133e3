"""CLI commands for browsing projects."""

import asyncio
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

app = typer.Typer(no_args_is_help=True)
console = Console()


@app.command("list")
def list_projects(
    owner: Optional[str] = typer.Option(None, "--owner", "-o", help="Filter by owner user ID"),
    limit: int = typer.Option(10, "--limit", "-n", help="Max results"),
    offset: int = typer.Option(0, "--offset", help="Rows to skip"),
):
    """List projects, most recently updated first."""

    async def _list():
        from atlas.repositories import list_projects as fetch_projects
        from atlas.schemas import ProjectFilters
        from atlas.storage.db import close_db, get_session

        async with get_session() as session:
            projects = await fetch_projects(
                session, ProjectFilters(owner_id=owner, limit=limit, offset=offset)
            )
        await close_db()
        return projects

    projects = asyncio.run(_list())
    if not projects:
        console.print("[yellow]No projects found.[/yellow]")
        return

    table = Table(title="Projects")
    table.add_column("ID", style="dim")
    table.add_column("Name", style="cyan")
    table.add_column("Owner", style="dim")
    table.add_column("Updated")
    for p in projects:
        table.add_row(p.id[:8], p.name, p.owner_id[:8], p.updated_at.strftime("%Y-%m-%d %H:%M"))
    console.print(table)
