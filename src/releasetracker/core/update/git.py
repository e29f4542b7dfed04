"""
Blocking git invocations against a working directory.

Each call runs one `git` subprocess and hands back its exit code and output.
Callers decide what a non-zero exit means; only failures to run git at all
(binary missing, timeout) raise GitError.
"""

from __future__ import annotations

import logging
import os
import subprocess
from dataclasses import dataclass
from pathlib import Path

from releasetracker.core.update.messages import redact_credentials

logger = logging.getLogger(__name__)


class GitError(Exception):
    """Exception raised when a git operation fails."""

    def __init__(self, message: str, command: list[str] | None = None, stderr: str = ""):
        super().__init__(message)
        self.command = command
        self.stderr = stderr


@dataclass
class GitResult:
    """
    Outcome of a git invocation.

    Attributes:
        returncode: Process exit code
        stdout: Captured stdout (credentials redacted)
        stderr: Captured stderr (credentials redacted)
    """

    returncode: int
    stdout: str
    stderr: str

    @property
    def ok(self) -> bool:
        return self.returncode == 0

    @property
    def output(self) -> str:
        """stdout and stderr combined, the success-path output."""
        return "\n".join(part for part in (self.stdout.strip(), self.stderr.strip()) if part)


class GitRunner:
    """
    Runs git commands with prompts disabled and credentials kept out of logs.

    Example:
        >>> git = GitRunner()
        >>> git.has_uncommitted_changes(Path("~/src/project").expanduser())
        False
    """

    def __init__(self, timeout: float | None = None, git_binary: str = "git") -> None:
        """
        Initialize the runner.

        Args:
            timeout: Seconds before a single invocation is abandoned (None = no limit)
            git_binary: git executable to invoke
        """
        self.timeout = timeout
        self.git_binary = git_binary

    def run(self, args: list[str], cwd: Path | None = None) -> GitResult:
        """
        Run `git <args>` and capture its output.

        Raises:
            GitError: If git cannot be started or the invocation times out
        """
        cmd = [self.git_binary, *args]
        shown = redact_credentials(" ".join(cmd))
        logger.debug("Running git command: %s (cwd=%s)", shown, cwd)

        env = {**os.environ, "GIT_TERMINAL_PROMPT": "0"}
        try:
            result = subprocess.run(
                cmd,
                cwd=cwd,
                capture_output=True,
                text=True,
                timeout=self.timeout,
                env=env,
                check=False,
            )
        except subprocess.TimeoutExpired as e:
            raise GitError(
                f"Git command timed out: {shown}",
                command=[redact_credentials(c) for c in cmd],
                stderr=f"git {args[0]} timed out after {self.timeout} seconds",
            ) from e
        except FileNotFoundError as e:
            raise GitError("git not found in PATH", command=[self.git_binary]) from e

        return GitResult(
            returncode=result.returncode,
            stdout=redact_credentials(result.stdout or ""),
            stderr=redact_credentials(result.stderr or ""),
        )

    # --------------------------------------------------------------------------
    # Probes
    # --------------------------------------------------------------------------

    def status_porcelain(self, path: Path) -> GitResult:
        return self.run(["status", "--porcelain"], cwd=path)

    def has_uncommitted_changes(self, path: Path) -> bool:
        """
        True if the working tree has staged, unstaged or untracked changes.

        Raises:
            GitError: If `git status` fails (e.g. not a git repository)
        """
        result = self.status_porcelain(path)
        if not result.ok:
            raise GitError(
                f"git status failed in {path}",
                command=["git", "status", "--porcelain"],
                stderr=result.stderr,
            )
        return bool(result.stdout.strip())

    def symbolic_ref(self, path: Path, ref: str) -> GitResult:
        return self.run(["symbolic-ref", ref], cwd=path)

    def rev_parse_verify(self, path: Path, ref: str) -> bool:
        return self.run(["rev-parse", "--verify", "--quiet", ref], cwd=path).ok

    def current_branch(self, path: Path) -> str | None:
        result = self.run(["rev-parse", "--abbrev-ref", "HEAD"], cwd=path)
        if not result.ok:
            return None
        branch = result.stdout.strip()
        return branch if branch and branch != "HEAD" else None

    # --------------------------------------------------------------------------
    # Mutations
    # --------------------------------------------------------------------------

    def checkout(self, path: Path, branch: str) -> GitResult:
        return self.run(["checkout", branch], cwd=path)

    def pull(self, path: Path) -> GitResult:
        return self.run(["pull"], cwd=path)

    def clone(self, url: str, target: Path) -> GitResult:
        return self.run(["clone", url, str(target)], cwd=target.parent)

    def set_remote_url(self, path: Path, url: str, remote: str = "origin") -> GitResult:
        return self.run(["remote", "set-url", remote, url], cwd=path)
