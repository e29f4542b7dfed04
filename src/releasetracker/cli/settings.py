"""
ReleaseTracker CLI - Token and update-folder settings.
"""

from pathlib import Path

import typer
from rich.console import Console

from releasetracker.cli.context import get_services
from releasetracker.cli.errors import ExitCode, print_error
from releasetracker.core.config.env import TOKEN_ENV_VAR

console = Console()

token_app = typer.Typer(
    name="token",
    help="Manage the stored GitHub token",
    no_args_is_help=True,
)

folder_app = typer.Typer(
    name="folder",
    help="Manage the folder holding local working copies",
    no_args_is_help=True,
)


def mask_token(token: str) -> str:
    if len(token) <= 8:
        return "*" * len(token)
    return f"{token[:4]}{'*' * (len(token) - 8)}{token[-4:]}"


@token_app.command(name="set")
def token_set(
    token: str = typer.Option(
        ...,
        "--token",
        prompt="GitHub token",
        hide_input=True,
        help="Personal access token (prompted for when omitted)",
    ),
) -> None:
    """
    Store a GitHub token for API requests and clones.

    Examples:
        releasetracker token set
        releasetracker token set --token ghp_...
    """
    if not token.strip():
        print_error("Token must not be empty")
        raise typer.Exit(ExitCode.USER_ERROR)
    get_services().settings.save_token(token)
    console.print("[green]✓[/green] Token saved")


@token_app.command(name="show")
def token_show() -> None:
    """
    Show which token is in use (masked).

    Examples:
        releasetracker token show
    """
    settings = get_services().settings
    stored = settings.get_stored_token()
    if stored:
        console.print(f"Stored token: {mask_token(stored)}")
        return

    effective = settings.get_token()
    if effective:
        console.print(f"No stored token; using {TOKEN_ENV_VAR}: {mask_token(effective)}")
    else:
        console.print("[dim]No token configured. Requests are anonymous.[/dim]")


@token_app.command(name="remove")
def token_remove() -> None:
    """
    Delete the stored token.

    Examples:
        releasetracker token remove
    """
    get_services().settings.remove_token()
    console.print("[green]✓[/green] Token removed")


@folder_app.command(name="show")
def folder_show() -> None:
    """
    Show the update folder.

    Examples:
        releasetracker folder show
    """
    folder = get_services().settings.get_update_folder_path()
    if folder is None:
        console.print("[dim]No update folder configured.[/dim]")
    else:
        console.print(str(folder))


@folder_app.command(name="set")
def folder_set(
    folder: Path = typer.Argument(..., help="Directory to clone and pull repositories into"),
) -> None:
    """
    Set the folder that `releasetracker update` works in.

    Examples:
        releasetracker folder set ~/src
    """
    resolved = folder.expanduser().resolve()
    if resolved.exists() and not resolved.is_dir():
        print_error(f"Not a directory: {resolved}")
        raise typer.Exit(ExitCode.USER_ERROR)
    get_services().settings.save_update_folder_path(resolved)
    console.print(f"[green]✓[/green] Update folder set to {resolved}")
