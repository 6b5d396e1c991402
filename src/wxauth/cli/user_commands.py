"""User store CLI commands."""

import typer
from rich.console import Console
from rich.table import Table

from wxauth.core.services.database.db_session import DbSessionService
from wxauth.entities.core.user import UserRepository

console = Console()

users_app = typer.Typer(help="Inspect registered users")


@users_app.command("show")
def show(openid: str = typer.Argument(..., help="WeChat openid")) -> None:
    """Show the stored user for an openid."""
    with DbSessionService().session_scope() as session:
        user = UserRepository(session).find_by_external_id(openid)

    if user is None:
        console.print(f"[yellow]No user registered for '{openid}'[/yellow]")
        raise typer.Exit(code=1)

    table = Table(title=f"User {user.id}")
    table.add_column("Field", style="cyan")
    table.add_column("Value", style="green")
    table.add_row("id", str(user.id))
    table.add_row("openid", user.external_id)
    table.add_row("nickname", user.display_name or "")
    table.add_row("avatar", user.avatar_ref or "")
    table.add_row("authorities", ", ".join(user.authorities))
    console.print(table)
