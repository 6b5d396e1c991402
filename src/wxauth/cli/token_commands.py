"""Bearer token CLI commands for local development."""

import typer
from rich.console import Console
from rich.table import Table

from wxauth.core.exceptions import TokenError
from wxauth.core.models.principal import AuthenticatedPrincipal
from wxauth.core.services.jwt.token_codec import TokenCodecService

console = Console()

token_app = typer.Typer(help="Issue and inspect bearer tokens")


@token_app.command("issue")
def issue(
    name: str = typer.Argument(..., help="Principal name (the user's openid)"),
    authorities: list[str] = typer.Option(
        ["USER"], "--authority", "-a", help="Authority to grant; repeatable"
    ),
) -> None:
    """Sign a token with the configured key."""
    codec = TokenCodecService.from_config()
    token = codec.issue(AuthenticatedPrincipal(name=name, authorities=authorities))
    # Plain print so the token can be piped.
    print(token)


@token_app.command("verify")
def verify(token: str = typer.Argument(..., help="Compact token to check")) -> None:
    """Verify a token and show the principal it carries."""
    codec = TokenCodecService.from_config()
    try:
        principal = codec.verify(token)
    except TokenError as e:
        console.print(f"[red]❌ {e.kind}: {e.message}[/red]")
        raise typer.Exit(code=1) from e

    table = Table(title="Principal")
    table.add_column("Name", style="cyan")
    table.add_column("Authorities", style="green")
    table.add_row(principal.name, ", ".join(principal.authorities))
    console.print(table)
