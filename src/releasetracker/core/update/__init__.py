"""
Working-copy updates: clone, switch to the default branch, pull.

Example:
    >>> from releasetracker.core.update import WorkingCopyUpdater, build_update_targets
    >>> updater = WorkingCopyUpdater(token_provider=settings.get_token)
    >>> result = updater.run(build_update_targets(repos, folder), max_workers=4)
"""

from releasetracker.core.update.git import GitError, GitResult, GitRunner
from releasetracker.core.update.messages import (
    AUTH_REQUIRED_MESSAGE,
    FailureKind,
    GitFailure,
    normalize_git_error,
)
from releasetracker.core.update.models import (
    RepoUpdateState,
    UpdateRunResult,
    UpdateStatus,
    UpdateSummary,
    UpdateTarget,
    build_update_targets,
)
from releasetracker.core.update.orchestrator import (
    UpdateProgressCallback,
    WorkingCopyUpdateError,
    WorkingCopyUpdater,
)
from releasetracker.core.update.resolver import (
    BranchUndeterminableError,
    UpdatePlan,
    resolve_default_branch,
    resolve_plan,
)

__all__ = [
    "AUTH_REQUIRED_MESSAGE",
    "BranchUndeterminableError",
    "FailureKind",
    "GitError",
    "GitFailure",
    "GitResult",
    "GitRunner",
    "RepoUpdateState",
    "UpdatePlan",
    "UpdateProgressCallback",
    "UpdateRunResult",
    "UpdateStatus",
    "UpdateSummary",
    "UpdateTarget",
    "WorkingCopyUpdateError",
    "WorkingCopyUpdater",
    "build_update_targets",
    "normalize_git_error",
    "resolve_default_branch",
    "resolve_plan",
]
