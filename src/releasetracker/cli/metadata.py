"""
ReleaseTracker CLI - Release and commit metadata commands.

`fetch` reconciles the latest release and default-branch commit of every
tracked repository into the catalog; `releases` and `commits` show what is
stored; `last-commit` and `rate-limit` query GitHub directly.
"""

from datetime import datetime

import typer
from rich.console import Console
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.table import Table

from releasetracker.cli.context import get_services
from releasetracker.cli.errors import ExitCode, fail, print_error
from releasetracker.core.errors import ReleaseTrackerError
from releasetracker.core.github import GitHubClient, RepoInfo

console = Console()


def _when(value: datetime | None) -> str:
    if value is None:
        return "[dim]unknown[/dim]"
    return value.astimezone().strftime("%Y-%m-%d %H:%M")


def _first_line(message: str, width: int = 60) -> str:
    line = message.strip().splitlines()[0] if message.strip() else ""
    return line[:width] + "..." if len(line) > width else line


def fetch() -> None:
    """
    Fetch the latest release and commit of every tracked repository.

    Issues one batched GitHub GraphQL request. If it fails, nothing stored
    is changed.

    Examples:
        releasetracker fetch
        GITHUB_TOKEN=ghp_... releasetracker fetch
    """
    services = get_services()
    if not services.catalog.get_repos():
        console.print("[dim]No repositories tracked; nothing to fetch.[/dim]")
        return

    try:
        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            console=console,
        ) as progress:
            progress.add_task("Fetching releases from GitHub...", total=None)
            result = services.synchronizer.sync()
    except ReleaseTrackerError as e:
        raise fail(e, "Fetch failed")

    console.print(f"[green]✓[/green] Fetched {result.summary()}")
    for full_name in result.missing_repos:
        console.print(f"[yellow]⚠[/yellow]  Not found on GitHub: {full_name}")


def releases(
    limit: int = typer.Option(20, "--limit", "-n", help="Maximum rows to show (0 = all)"),
) -> None:
    """
    Show stored releases, newest first.

    Examples:
        releasetracker releases
        releasetracker releases -n 0
    """
    services = get_services()
    stored = services.catalog.get_stored_releases()
    if not stored:
        console.print("[dim]No releases stored. Run [bold]releasetracker fetch[/bold].[/dim]")
        return

    shown = stored[:limit] if limit > 0 else stored
    table = Table(title="Releases", show_header=True)
    table.add_column("Repository", style="cyan")
    table.add_column("Tag", style="green")
    table.add_column("Name")
    table.add_column("Published")

    for release in shown:
        table.add_row(
            f"{release.owner}/{release.name}",
            release.tag_name,
            release.display_name,
            _when(release.published_at),
        )

    console.print(table)
    last_fetch = services.catalog.get_last_fetch()
    console.print(f"[dim]Last fetched: {_when(last_fetch)}[/dim]")


def commits(
    limit: int = typer.Option(20, "--limit", "-n", help="Maximum rows to show (0 = all)"),
) -> None:
    """
    Show the stored default-branch tip commit of each repository.

    Examples:
        releasetracker commits
    """
    stored = get_services().catalog.get_stored_commits()
    if not stored:
        console.print("[dim]No commits stored. Run [bold]releasetracker fetch[/bold].[/dim]")
        return

    shown = stored[:limit] if limit > 0 else stored
    table = Table(title="Latest Commits", show_header=True)
    table.add_column("Repository", style="cyan")
    table.add_column("SHA", style="yellow")
    table.add_column("Message")
    table.add_column("Author")
    table.add_column("Date")

    for commit in shown:
        table.add_row(
            f"{commit.owner}/{commit.name}",
            commit.sha[:8],
            _first_line(commit.message),
            commit.author_name,
            _when(commit.committed_at),
        )

    console.print(table)


def last_commit(
    repo: str = typer.Argument(..., help="OWNER/NAME or GitHub URL"),
) -> None:
    """
    Look up the latest default-branch commit of any repository.

    The catalog is not modified.

    Examples:
        releasetracker last-commit sveltejs/svelte
    """
    info = RepoInfo.parse(repo)
    if info is None:
        print_error(f"Not a GitHub repository: {repo}", reason="Expected OWNER/NAME")
        raise typer.Exit(ExitCode.USER_ERROR)

    try:
        commit = get_services().synchronizer.fetch_last_commit(info.owner, info.name)
    except ReleaseTrackerError as e:
        raise fail(e, f"Could not fetch the last commit of {info.full_name}")

    console.print(f"[bold]{info.full_name}[/bold] [yellow]{commit.sha[:8]}[/yellow]")
    console.print(f"  {_first_line(commit.message, width=100)}")
    console.print(f"  [dim]{commit.author_name} · {_when(commit.committed_at)}[/dim]")
    if commit.url:
        console.print(f"  [dim]{commit.url}[/dim]")


def rate_limit() -> None:
    """
    Show the GitHub API rate limit for the configured token.

    Examples:
        releasetracker rate-limit
    """
    services = get_services()
    try:
        client = GitHubClient.from_config(services.config, services.settings.get_token())
        status = client.get_rate_limit()
    except ReleaseTrackerError as e:
        raise fail(e, "Could not read the rate limit")

    table = Table(title="GitHub Rate Limit", show_header=False)
    table.add_column("Field", style="cyan")
    table.add_column("Value")
    table.add_row("Limit", str(status.limit))
    table.add_row("Remaining", str(status.remaining))
    table.add_row("Used", str(status.used))
    table.add_row("Resets at", status.reset_at.strftime("%Y-%m-%d %H:%M:%S"))
    console.print(table)
