"""
Update-plan resolution for a single working copy.

Decides whether a path needs cloning, default-branch discovery or just a
pull. Everything here is a read-only probe; mutations happen in the
orchestrator.
"""

from __future__ import annotations

import logging
from enum import Enum
from pathlib import Path

from releasetracker.core.errors import LocalStateError
from releasetracker.core.update.git import GitRunner

logger = logging.getLogger(__name__)

ORIGIN_HEAD_REF = "refs/remotes/origin/HEAD"
FALLBACK_BRANCHES = ("main", "master")


class UpdatePlan(str, Enum):
    """Next action needed to bring a working copy up to date."""

    NEEDS_CLONE = "needs-clone"
    NEEDS_BRANCH_RESOLUTION = "needs-branch-resolution"
    NEEDS_PULL = "needs-pull"


class BranchUndeterminableError(LocalStateError):
    """No origin/HEAD, origin/main or origin/master could be found."""

    def __init__(self, path: Path, diagnostic: str = "") -> None:
        super().__init__(
            f"Could not determine the default branch of {path}: "
            "no origin/HEAD, origin/main or origin/master"
        )
        self.path = path
        self.diagnostic = diagnostic


def resolve_plan(path: Path, known_branch: str | None = None) -> UpdatePlan:
    """Pick the next action for `path` based on what is on disk."""
    if not Path(path).is_dir():
        return UpdatePlan.NEEDS_CLONE
    if known_branch is None:
        return UpdatePlan.NEEDS_BRANCH_RESOLUTION
    return UpdatePlan.NEEDS_PULL


def resolve_default_branch(git: GitRunner, path: Path) -> str:
    """
    Discover the default branch of the clone at `path`.

    Tries, in order: the symbolic ref origin/HEAD, a remote `main` branch,
    a remote `master` branch. The first that succeeds wins.

    Raises:
        BranchUndeterminableError: If none of the probes succeed
    """
    head = git.symbolic_ref(path, ORIGIN_HEAD_REF)
    ref = head.stdout.strip()
    if head.ok and ref:
        branch = ref.removeprefix("refs/remotes/origin/")
        logger.debug("%s: default branch %s from origin/HEAD", path, branch)
        return branch

    for candidate in FALLBACK_BRANCHES:
        if git.rev_parse_verify(path, f"origin/{candidate}"):
            logger.debug("%s: default branch %s from origin/%s", path, candidate, candidate)
            return candidate

    raise BranchUndeterminableError(Path(path), diagnostic=head.stderr.strip())
