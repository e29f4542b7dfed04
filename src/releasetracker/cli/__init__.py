"""
ReleaseTracker CLI - Main application entry point.

This module sets up the Typer CLI application with all subcommands.
"""

import logging
import sys

import typer
from rich.console import Console

from releasetracker import __version__
from releasetracker.cli import metadata, repos, settings, update
from releasetracker.core.config.env import load_layered_env

# Help panel names for command grouping
PANEL_TRACK = "Track Repositories"
PANEL_RELEASES = "Releases and Commits"
PANEL_LOCAL = "Local Working Copies"
PANEL_SETTINGS = "Settings"

# Create the main Typer app
app = typer.Typer(
    name="releasetracker",
    help="Follow GitHub releases and keep local clones up to date",
    no_args_is_help=True,
    add_completion=True,
    context_settings={"help_option_names": ["--help", "-h"]},
)

console = Console()
logger = logging.getLogger(__name__)


def setup_logging(debug: bool = False) -> None:
    """
    Configure logging for all commands.

    Args:
        debug: If True, enable DEBUG level logging
    """
    level = logging.DEBUG if debug else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stderr,
    )


@app.callback()
def main(
    ctx: typer.Context,
    debug: bool = typer.Option(
        False,
        "--debug",
        help="Enable debug output with detailed logging",
    ),
) -> None:
    """
    ReleaseTracker - follow GitHub releases of the repositories you care about.

    Quick Start:
        1. releasetracker token set                 # Store a GitHub token
        2. releasetracker repos add sveltejs/svelte # Track a repository
        3. releasetracker fetch                     # Fetch latest releases
        4. releasetracker releases                  # Show them

    Local Clones:
        releasetracker folder set ~/src             # Where clones live
        releasetracker update                       # Clone or pull everything
    """
    setup_logging(debug)
    # Precedence: OS env > .env.local > project .env > user .env
    for key, source in sorted(load_layered_env().items()):
        logger.debug("Loaded %s from %s", key, source)
    ctx.obj = {"debug": debug}


# =============================================================================
# Track Repositories
# =============================================================================

app.add_typer(repos.app, name="repos", rich_help_panel=PANEL_TRACK)


# =============================================================================
# Releases and Commits
# =============================================================================

app.command(name="fetch", rich_help_panel=PANEL_RELEASES)(metadata.fetch)
app.command(name="releases", rich_help_panel=PANEL_RELEASES)(metadata.releases)
app.command(name="commits", rich_help_panel=PANEL_RELEASES)(metadata.commits)
app.command(name="last-commit", rich_help_panel=PANEL_RELEASES)(metadata.last_commit)
app.command(name="rate-limit", rich_help_panel=PANEL_RELEASES)(metadata.rate_limit)


# =============================================================================
# Local Working Copies
# =============================================================================

app.command(name="update", rich_help_panel=PANEL_LOCAL)(update.update)


# =============================================================================
# Settings
# =============================================================================

app.add_typer(settings.token_app, name="token", rich_help_panel=PANEL_SETTINGS)
app.add_typer(settings.folder_app, name="folder", rich_help_panel=PANEL_SETTINGS)


@app.command(rich_help_panel=PANEL_SETTINGS)
def version() -> None:
    """Show releasetracker version and exit."""
    console.print(f"releasetracker version {__version__}")
    raise typer.Exit(0)


def cli_main() -> None:
    """Main CLI entry point."""
    app()


__all__ = ["app", "cli_main"]
