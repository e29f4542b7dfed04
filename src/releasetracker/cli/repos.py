"""
ReleaseTracker CLI - Repository catalog commands.

Add, list and remove tracked repositories, and move the catalog between
machines with export/import.
"""

from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

from releasetracker.cli.context import get_services
from releasetracker.cli.errors import ExitCode, fail, print_error
from releasetracker.core.catalog import RepoSource
from releasetracker.core.errors import ReleaseTrackerError
from releasetracker.core.github import RepoInfo

console = Console()
app = typer.Typer(
    name="repos",
    help="Manage tracked repositories",
    no_args_is_help=True,
)


def _parse_or_exit(value: str) -> RepoInfo:
    info = RepoInfo.parse(value)
    if info is None:
        print_error(
            f"Not a GitHub repository: {value}",
            reason="Expected OWNER/NAME or a github.com URL",
            solution="releasetracker repos add sveltejs/svelte",
        )
        raise typer.Exit(ExitCode.USER_ERROR)
    return info


@app.command(name="list")
def list_repos() -> None:
    """
    List tracked repositories.

    Examples:
        releasetracker repos list
    """
    repos = get_services().catalog.get_repos()
    if not repos:
        console.print("[dim]No repositories tracked.[/dim]")
        return

    table = Table(title=f"Tracked Repositories ({len(repos)})", show_header=True)
    table.add_column("Repository", style="cyan")
    table.add_column("Source")
    table.add_column("Added")
    table.add_column("ID", style="dim")

    for repo in repos:
        table.add_row(
            repo.full_name,
            repo.source.value,
            repo.added_at.strftime("%Y-%m-%d"),
            repo.id,
        )

    console.print(table)


@app.command()
def add(
    repos: list[str] = typer.Argument(..., help="OWNER/NAME or GitHub URL (one or more)"),
) -> None:
    """
    Start tracking one or more repositories.

    With a single repository, an already-tracked one is an error. With
    several, duplicates are skipped and counted.

    Examples:
        releasetracker repos add sveltejs/svelte
        releasetracker repos add https://github.com/astral-sh/uv
        releasetracker repos add pallets/flask pallets/click
    """
    parsed = [_parse_or_exit(value) for value in repos]
    catalog = get_services().catalog

    if len(parsed) == 1:
        info = parsed[0]
        try:
            repo = catalog.add_repo(info.owner, info.name, RepoSource.MANUAL)
        except ReleaseTrackerError as e:
            raise fail(e, f"Could not add {info.full_name}")
        console.print(f"[green]✓[/green] Tracking {repo.full_name}")
        return

    result = catalog.add_repos(((info.owner, info.name) for info in parsed), RepoSource.MANUAL)
    for repo in result.added:
        console.print(f"[green]✓[/green] Tracking {repo.full_name}")
    if result.skipped:
        console.print(
            f"[yellow]⚠[/yellow]  Skipped {len(result.skipped)} already tracked: "
            + ", ".join(result.skipped)
        )


@app.command()
def remove(
    repo: str = typer.Argument(..., help="OWNER/NAME or repository id"),
) -> None:
    """
    Stop tracking a repository and delete its stored releases and commits.

    Examples:
        releasetracker repos remove sveltejs/svelte
    """
    catalog = get_services().catalog

    repo_id = repo
    info = RepoInfo.parse(repo)
    if info is not None:
        tracked = catalog.find_repo(info.owner, info.name)
        if tracked is None:
            print_error(
                f"Repository not tracked: {info.full_name}",
                solution="releasetracker repos list",
            )
            raise typer.Exit(ExitCode.USER_ERROR)
        repo_id = tracked.id

    try:
        removed = catalog.remove_repo(repo_id)
    except ReleaseTrackerError as e:
        raise fail(e, f"Could not remove {repo}")
    console.print(f"[green]✓[/green] Stopped tracking {removed.full_name}")


@app.command(name="export")
def export_cmd(
    path: Path = typer.Argument(..., help="File to write the catalog to"),
) -> None:
    """
    Export the whole catalog (repositories, releases, commits) as JSON.

    Examples:
        releasetracker repos export backup.json
    """
    written = get_services().catalog.export_data(path)
    console.print(f"[green]✓[/green] Exported catalog to {written}")


@app.command(name="import")
def import_cmd(
    path: Path = typer.Argument(..., help="Exported catalog file"),
) -> None:
    """
    Merge an exported catalog into this one.

    Only new repositories, releases and commits are added; existing records
    are never overwritten.

    Examples:
        releasetracker repos import backup.json
    """
    try:
        result = get_services().catalog.import_data(path)
    except ReleaseTrackerError as e:
        raise fail(e, f"Could not import {path}")

    console.print(
        f"[green]✓[/green] Imported {result.repo_count} repositories, "
        f"{result.release_count} releases, {result.commit_count} commits"
    )
