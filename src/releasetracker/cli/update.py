"""
ReleaseTracker CLI - Update local working copies.

Clones missing repositories into the update folder and pulls the default
branch of existing ones. Working copies with uncommitted changes are
skipped untouched.
"""

from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

from releasetracker.cli.context import get_services
from releasetracker.cli.errors import (
    ExitCode,
    print_error,
    print_no_repos_error,
    print_no_update_folder_error,
)
from releasetracker.core.update import (
    GitRunner,
    RepoUpdateState,
    UpdateRunResult,
    UpdateStatus,
    WorkingCopyUpdater,
    build_update_targets,
)

console = Console()

_STATUS_STYLES = {
    UpdateStatus.DONE: ("✓", "green"),
    UpdateStatus.ERROR: ("✗", "red"),
    UpdateStatus.SKIPPED: ("○", "yellow"),
}


class ConsoleUpdateCallback:
    """Prints each repository's progress as it happens."""

    def __init__(self, verbose: bool = False) -> None:
        self.verbose = verbose

    def on_start(self, num_repos: int, num_workers: int) -> None:
        console.print(f"[bold]Updating {num_repos} repositories ({num_workers} workers)...[/bold]")

    def on_state_change(self, state: RepoUpdateState) -> None:
        if state.status in _STATUS_STYLES:
            icon, color = _STATUS_STYLES[state.status]
            console.print(f"[{color}]{icon}[/{color}] {state.repo_name}: {state.message or ''}")
        elif self.verbose and state.status != UpdateStatus.PENDING:
            console.print(f"[dim]  {state.repo_name}: {state.status.value}[/dim]")


def _display_summary(result: UpdateRunResult) -> None:
    table = Table(title="Update Summary", show_header=False, box=None)
    table.add_column("Outcome", style="cyan")
    table.add_column("Count", justify="right")
    table.add_row("Done", f"[green]{result.summary.done}[/green]")
    table.add_row("Skipped", f"[yellow]{result.summary.skipped}[/yellow]")
    table.add_row("Errors", f"[red]{result.summary.error}[/red]")
    table.add_row("Duration", f"{result.duration_seconds:.1f}s")
    console.print()
    console.print(table)


def update(
    folder: Path | None = typer.Option(
        None,
        "--folder",
        "-f",
        help="Update folder (defaults to the one saved with `folder set`)",
    ),
    workers: int | None = typer.Option(
        None,
        "--workers",
        "-w",
        min=1,
        help="Repositories to update in parallel (defaults to max_workers)",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Show every state transition",
    ),
) -> None:
    """
    Clone or pull every tracked repository under the update folder.

    Each repository lives at <folder>/<name>. Missing ones are cloned,
    clean ones are switched to their default branch and pulled, and dirty
    ones are skipped.

    Examples:
        releasetracker update
        releasetracker update --folder ~/src --workers 8
    """
    services = get_services()

    target_folder = folder or services.settings.get_update_folder_path()
    if target_folder is None:
        print_no_update_folder_error()
        raise typer.Exit(ExitCode.USER_ERROR)
    target_folder = target_folder.expanduser()
    if target_folder.exists() and not target_folder.is_dir():
        print_error(f"Not a directory: {target_folder}")
        raise typer.Exit(ExitCode.USER_ERROR)

    repos = services.catalog.get_repos()
    if not repos:
        print_no_repos_error()
        raise typer.Exit(ExitCode.USER_ERROR)

    updater = WorkingCopyUpdater(
        git=GitRunner(timeout=services.config.git_timeout_seconds),
        token_provider=services.settings.get_token,
        callback=ConsoleUpdateCallback(verbose=verbose),
    )
    result = updater.run(
        build_update_targets(repos, target_folder),
        max_workers=workers or services.config.max_workers,
    )

    _display_summary(result)
    if result.summary.error > 0:
        raise typer.Exit(ExitCode.GENERAL_ERROR)
