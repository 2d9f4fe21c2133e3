"""CLI commands for browsing tasks."""

import asyncio
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

app = typer.Typer(no_args_is_help=True)
console = Console()

PRIORITY_STYLES = {1: "red", 2: "yellow", 3: "dim"}


@app.command("list")
def list_tasks(
    project: Optional[str] = typer.Option(None, "--project", "-p", help="Filter by project ID"),
    assignee: Optional[str] = typer.Option(None, "--assignee", "-a", help="Filter by assignee user ID"),
    status: Optional[str] = typer.Option(None, "--status", "-s", help="Filter by status"),
    limit: int = typer.Option(10, "--limit", "-n", help="Max results"),
):
    """List tasks, soonest deadline first."""

    async def _list():
        from atlas.repositories import list_tasks as fetch_tasks
        from atlas.schemas import TaskFilters
        from atlas.storage.db import close_db, get_session

        filters = TaskFilters(project_id=project, assignee_id=assignee, status=status, limit=limit)
        async with get_session() as session:
            tasks = await fetch_tasks(session, filters)
        await close_db()
        return tasks

    tasks = asyncio.run(_list())
    if not tasks:
        console.print("[yellow]No tasks found.[/yellow]")
        return

    table = Table(title="Tasks")
    table.add_column("ID", style="dim")
    table.add_column("Title", style="cyan")
    table.add_column("Status")
    table.add_column("Priority", justify="center")
    table.add_column("Deadline")
    for t in tasks:
        style = PRIORITY_STYLES.get(t.priority, "")
        priority = f"[{style}]{t.priority}[/{style}]" if style else str(t.priority)
        table.add_row(t.id[:8], t.title, t.status, priority, t.deadline.strftime("%Y-%m-%d"))
    console.print(table)
