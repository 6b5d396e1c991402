"""Database CLI commands."""

import typer
from rich.console import Console
from sqlalchemy.exc import SQLAlchemyError

from wxauth.runtime.init_db import init_db

console = Console()

db_app = typer.Typer(help="Manage the user database")


@db_app.command("init")
def init() -> None:
    """Create missing tables."""
    try:
        init_db()
    except SQLAlchemyError as e:
        console.print(f"[red]❌ Failed to initialize database: {type(e).__name__}[/red]")
        raise typer.Exit(code=1) from e
    console.print("[green]✅ Database tables created[/green]")
