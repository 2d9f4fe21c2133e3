"""CLI commands for managing users."""

import asyncio

import typer
from rich.console import Console
from rich.table import Table

app = typer.Typer(no_args_is_help=True)
console = Console()


@app.command("list")
def list_users():
    """List all users."""

    async def _list():
        from atlas.repositories import list_users as fetch_users
        from atlas.storage.db import close_db, get_session

        async with get_session() as session:
            users = await fetch_users(session)
        await close_db()
        return users

    users = asyncio.run(_list())
    if not users:
        console.print("[yellow]No users found.[/yellow]")
        return

    table = Table(title="Users")
    table.add_column("ID", style="dim")
    table.add_column("Username", style="cyan")
    table.add_column("Created")
    for u in users:
        table.add_row(u.id, u.username, u.created_at.strftime("%Y-%m-%d %H:%M"))
    console.print(table)


@app.command("create")
def create_user(
    username: str = typer.Argument(help="Unique username"),
    password: str = typer.Option(..., prompt=True, hide_input=True, confirmation_prompt=True),
):
    """Create a user, or return the existing one with that username."""

    async def _create():
        from atlas.repositories import get_or_create_user
        from atlas.schemas import UserCreate
        from atlas.storage.db import close_db, get_session

        async with get_session() as session:
            user = await get_or_create_user(session, UserCreate(username=username, password=password))
        await close_db()
        return user

    user = asyncio.run(_create())
    console.print(f"User [cyan]{user.username}[/cyan] (id: {user.id})")


@app.command("passwd")
def change_password(
    user_id: str = typer.Argument(help="User ID"),
    password: str = typer.Option(..., prompt=True, hide_input=True, confirmation_prompt=True),
):
    """Set a new password for a user."""

    async def _passwd():
        from atlas.errors import NotFoundError
        from atlas.repositories import update_user_password
        from atlas.schemas import UserPasswordUpdate
        from atlas.storage.db import close_db, get_session

        try:
            async with get_session() as session:
                user = await update_user_password(session, UserPasswordUpdate(id=user_id, password=password))
        except NotFoundError:
            return None
        finally:
            await close_db()
        return user

    user = asyncio.run(_passwd())
    if user is None:
        console.print(f"[red]User not found: {user_id}[/red]")
        raise typer.Exit(1)
    console.print(f"Password updated for [cyan]{user.username}[/cyan]")
