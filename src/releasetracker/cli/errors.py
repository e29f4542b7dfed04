"""
Standardized error handling and exit codes for the releasetracker CLI.

This module provides consistent error messaging with actionable guidance
and maps core exceptions to exit codes.
"""

from enum import IntEnum

import typer
from rich.console import Console

from releasetracker.core.errors import ErrorKind, ReleaseTrackerError

console = Console()


class ExitCode(IntEnum):
    """Standard exit codes for releasetracker CLI operations."""

    SUCCESS = 0
    """Operation completed successfully."""

    GENERAL_ERROR = 1
    """Generic error, including a batch update with failed repositories."""

    USER_ERROR = 2
    """Invalid input or configuration (actionable by user)."""

    AUTH_ERROR = 3
    """GitHub rejected the credential or none was supplied."""

    RATE_LIMITED = 4
    """GitHub API rate limit exceeded."""

    SIGINT = 130
    """Terminated by SIGINT (Ctrl+C) - Unix standard."""


_EXIT_CODES = {
    ErrorKind.VALIDATION: ExitCode.USER_ERROR,
    ErrorKind.AUTH: ExitCode.AUTH_ERROR,
    ErrorKind.RATE_LIMIT: ExitCode.RATE_LIMITED,
}

_SOLUTIONS = {
    ErrorKind.AUTH: "releasetracker token set  # or export GITHUB_TOKEN",
    ErrorKind.RATE_LIMIT: "releasetracker rate-limit  # to see when the limit resets",
    ErrorKind.TRANSPORT: "Check your network connection and try again",
}


def print_error(
    problem: str,
    *,
    reason: str | None = None,
    solution: str | None = None,
) -> None:
    """
    Print a standardized error message with actionable guidance.

    Args:
        problem: Brief description of what went wrong
        reason: Optional explanation of why it happened
        solution: Optional command or action to fix it

    Example:
        >>> print_error(
        ...     "No update folder configured",
        ...     solution="releasetracker folder set ~/src",
        ... )
    """
    console.print(f"[red]Error:[/red] {problem}")

    if reason:
        console.print(f"[dim]{reason}[/dim]")

    if solution:
        console.print(f"[cyan]→ Try:[/cyan] {solution}")


def exit_code_for(error: ReleaseTrackerError) -> ExitCode:
    return _EXIT_CODES.get(error.kind, ExitCode.GENERAL_ERROR)


def fail(error: ReleaseTrackerError, problem: str) -> typer.Exit:
    """
    Print a core error and build the matching typer.Exit.

    Usage:
        raise fail(e, "Fetch failed")
    """
    print_error(problem, reason=error.message, solution=_SOLUTIONS.get(error.kind))
    return typer.Exit(exit_code_for(error))


def print_no_update_folder_error() -> None:
    """Print error when no update folder is configured."""
    print_error(
        "No update folder configured",
        reason="Working copies are cloned and pulled under a single folder",
        solution="releasetracker folder set ~/src  # or pass --folder",
    )


def print_no_repos_error() -> None:
    """Print error when the catalog tracks no repositories."""
    print_error(
        "No repositories tracked",
        solution="releasetracker repos add OWNER/NAME",
    )


__all__ = [
    "ExitCode",
    "exit_code_for",
    "fail",
    "print_error",
    "print_no_repos_error",
    "print_no_update_folder_error",
]
