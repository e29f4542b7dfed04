"""
Working-copy update orchestration.

Drives each repository through the update state machine:

    pending -> checking -> {cloning | pulling} -> {done | error | skipped}

Repositories are independent: a failure or skip in one never stops the
others. A bounded thread pool runs several repositories at once, and a
per-path lock keeps two git invocations from touching the same directory
concurrently. Within one batch, only the first target that maps to a given
directory is updated; later ones end in the error state.
"""

from __future__ import annotations

import logging
import shutil
import threading
import time
from concurrent.futures import Future, ThreadPoolExecutor, as_completed
from pathlib import Path
from typing import Callable, Protocol, Sequence

from releasetracker.core.errors import LocalStateError
from releasetracker.core.update.git import GitError, GitRunner
from releasetracker.core.update.messages import (
    FailureKind,
    GitFailure,
    inject_credential,
    normalize_git_error,
)
from releasetracker.core.update.models import (
    RepoUpdateState,
    UpdateRunResult,
    UpdateStatus,
    UpdateTarget,
)
from releasetracker.core.update.resolver import (
    BranchUndeterminableError,
    UpdatePlan,
    resolve_default_branch,
    resolve_plan,
)

logger = logging.getLogger(__name__)

_UP_TO_DATE_MARKERS = ("already up to date", "already up-to-date")


class WorkingCopyUpdateError(LocalStateError):
    """Raised by single-repository updates that end in the error state."""

    def __init__(self, state: RepoUpdateState) -> None:
        super().__init__(state.message or f"Update of {state.repo_name} failed")
        self.state = state


class UpdateProgressCallback(Protocol):
    """Protocol for update progress callbacks."""

    def on_start(self, num_repos: int, num_workers: int) -> None:
        """Called once before any repository is processed.

        Args:
            num_repos: Number of repositories in the batch
            num_workers: Number of parallel workers
        """
        ...

    def on_state_change(self, state: RepoUpdateState) -> None:
        """Called on every transition, including the terminal one.

        Args:
            state: Snapshot of the repository's state after the transition
        """
        ...


class _NoOpCallback:
    """Default no-op callback implementation."""

    def on_start(self, num_repos: int, num_workers: int) -> None:
        pass

    def on_state_change(self, state: RepoUpdateState) -> None:
        pass


class PathLocks:
    """One lock per resolved working-copy path."""

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._locks: dict[Path, threading.Lock] = {}

    def for_path(self, path: Path) -> threading.Lock:
        key = Path(path).expanduser().resolve()
        with self._guard:
            if key not in self._locks:
                self._locks[key] = threading.Lock()
            return self._locks[key]


_PATH_LOCKS = PathLocks()


class WorkingCopyUpdater:
    """
    Brings local clones of tracked repositories up to date.

    Example:
        >>> updater = WorkingCopyUpdater(token_provider=settings.get_token)
        >>> result = updater.run(build_update_targets(repos, folder), max_workers=4)
        >>> print(result.summary)
    """

    def __init__(
        self,
        git: GitRunner | None = None,
        token_provider: Callable[[], str | None] | None = None,
        callback: UpdateProgressCallback | None = None,
        path_locks: PathLocks | None = None,
    ) -> None:
        """
        Initialize the updater.

        Args:
            git: Git runner (defaults to an unbounded GitRunner)
            token_provider: Returns the credential for clones; called once per clone
            callback: Progress callback receiving every state transition
            path_locks: Lock registry enforcing one writer per path
        """
        self.git = git or GitRunner()
        self.token_provider = token_provider or (lambda: None)
        self._callback = callback or _NoOpCallback()
        self._path_locks = path_locks or _PATH_LOCKS

    # --------------------------------------------------------------------------
    # Batch
    # --------------------------------------------------------------------------

    def run(self, targets: Sequence[UpdateTarget], max_workers: int = 1) -> UpdateRunResult:
        """
        Update every target, `max_workers` at a time.

        Returns:
            UpdateRunResult with one terminal state per target, in input order
        """
        result = UpdateRunResult()
        if not targets:
            return result

        # Later targets resolving to an already claimed path never run
        claimed: dict[Path, int] = {}
        conflicts: dict[int, int] = {}
        for index, target in enumerate(targets):
            key = Path(target.repo_path).expanduser().resolve()
            if key in claimed:
                conflicts[index] = claimed[key]
            else:
                claimed[key] = index

        max_workers = max(1, min(max_workers, len(claimed)))
        start_time = time.time()
        self._callback.on_start(len(targets), max_workers)

        states: list[RepoUpdateState | None] = [None] * len(targets)
        for index, owner_index in conflicts.items():
            states[index] = self._reject_conflict(targets[index], targets[owner_index])

        with ThreadPoolExecutor(max_workers=max_workers) as executor:
            futures: dict[Future[RepoUpdateState], int] = {
                executor.submit(self.process, targets[index]): index
                for index in claimed.values()
            }

            for future in as_completed(futures):
                index = futures[future]
                try:
                    states[index] = future.result()
                except Exception as e:
                    target = targets[index]
                    logger.exception("Unexpected failure updating %s", target.repo_name)
                    state = RepoUpdateState(
                        repo_path=target.repo_path,
                        repo_name=target.repo_name,
                        status=UpdateStatus.ERROR,
                        message=str(e),
                        error=str(e),
                        failure_kind=FailureKind.UNKNOWN,
                    )
                    self._emit(state)
                    states[index] = state

        for state in states:
            assert state is not None
            result.states.append(state)
            result.summary.record(state)
        result.duration_seconds = time.time() - start_time

        logger.info(
            "Update finished: %d done, %d error, %d skipped",
            result.summary.done,
            result.summary.error,
            result.summary.skipped,
        )
        return result

    # --------------------------------------------------------------------------
    # Single repository
    # --------------------------------------------------------------------------

    def update_repository(self, target: UpdateTarget) -> RepoUpdateState:
        """
        Update one repository.

        Raises:
            WorkingCopyUpdateError: If the update ends in the error state
        """
        state = self.process(target)
        if state.status == UpdateStatus.ERROR:
            raise WorkingCopyUpdateError(state)
        return state

    def process(self, target: UpdateTarget) -> RepoUpdateState:
        """Run the state machine for one target; failures end up in the state."""
        state = RepoUpdateState(repo_path=target.repo_path, repo_name=target.repo_name)
        self._emit(state)

        with self._path_locks.for_path(target.repo_path):
            try:
                return self._drive(target, state)
            except GitError as e:
                return self._fail(state, normalize_git_error(e.stderr or str(e)))

    def _reject_conflict(self, target: UpdateTarget, owner: UpdateTarget) -> RepoUpdateState:
        state = RepoUpdateState(repo_path=target.repo_path, repo_name=target.repo_name)
        self._emit(state)
        message = (
            f"{target.repo_path} is also the working copy of {owner.repo_name}; "
            f"{target.repo_name} was not updated"
        )
        return self._fail(
            state,
            GitFailure(
                kind=FailureKind.PATH_CONFLICT,
                raw_diagnostic=message,
                normalized_message=message,
            ),
        )

    def _drive(self, target: UpdateTarget, state: RepoUpdateState) -> RepoUpdateState:
        self._transition(state, UpdateStatus.CHECKING)
        path = target.repo_path

        plan = resolve_plan(path, known_branch=target.branch)
        if plan is UpdatePlan.NEEDS_CLONE:
            return self._clone(target, state)

        self._transition(state, UpdateStatus.CHECKING, "Checking for uncommitted changes")
        if self.git.has_uncommitted_changes(path):
            state.has_uncommitted_changes = True
            logger.info("%s has uncommitted changes; skipping", target.repo_name)
            return self._transition(
                state,
                UpdateStatus.SKIPPED,
                "Skipped: working tree has uncommitted changes",
            )
        state.has_uncommitted_changes = False

        branch = target.branch if plan is UpdatePlan.NEEDS_PULL else None
        if branch is None:
            try:
                branch = resolve_default_branch(self.git, path)
            except BranchUndeterminableError as e:
                return self._fail(
                    state,
                    GitFailure(
                        kind=FailureKind.BRANCH_UNDETERMINABLE,
                        raw_diagnostic=e.diagnostic,
                        normalized_message=str(e),
                    ),
                )

        if self.git.current_branch(path) != branch:
            checkout = self.git.checkout(path, branch)
            if not checkout.ok:
                return self._fail(state, normalize_git_error(checkout.stderr))

        self._transition(state, UpdateStatus.PULLING, f"Pulling {branch}")
        pull = self.git.pull(path)
        if not pull.ok:
            return self._fail(state, normalize_git_error(pull.stderr))

        up_to_date = any(marker in pull.output.lower() for marker in _UP_TO_DATE_MARKERS)
        state.up_to_date = up_to_date
        return self._transition(
            state,
            UpdateStatus.DONE,
            "Already up to date" if up_to_date else f"Updated {branch}",
        )

    def _clone(self, target: UpdateTarget, state: RepoUpdateState) -> RepoUpdateState:
        self._transition(state, UpdateStatus.CLONING, f"Cloning {target.repo_name}")
        path = target.repo_path
        path.parent.mkdir(parents=True, exist_ok=True)

        url = inject_credential(target.clone_url, self.token_provider())
        cloned = self.git.clone(url, path)
        if not cloned.ok:
            return self._fail(state, normalize_git_error(cloned.stderr))

        if url != target.clone_url:
            # The credential-bearing URL must not stay in .git/config
            reset = self.git.set_remote_url(path, target.clone_url)
            if not reset.ok:
                self._discard_clone(path)
                return self._fail(state, normalize_git_error(reset.stderr))

        return self._transition(state, UpdateStatus.DONE, "Cloned")

    def _discard_clone(self, path: Path) -> None:
        """Delete a fresh clone whose .git/config still holds the credential URL."""
        try:
            shutil.rmtree(path)
        except OSError as e:
            logger.error("Could not remove %s after failed remote reset: %s", path, e)
        else:
            logger.warning("Removed %s: origin still carried the clone credential", path)

    # --------------------------------------------------------------------------
    # State helpers
    # --------------------------------------------------------------------------

    def _transition(
        self,
        state: RepoUpdateState,
        status: UpdateStatus,
        message: str | None = None,
    ) -> RepoUpdateState:
        state.status = status
        state.message = message
        self._emit(state)
        return state

    def _fail(self, state: RepoUpdateState, failure: GitFailure) -> RepoUpdateState:
        logger.warning("%s failed (%s): %s", state.repo_name, failure.kind.value, failure.raw_diagnostic)
        state.error = failure.raw_diagnostic or failure.normalized_message
        state.failure_kind = failure.kind
        return self._transition(state, UpdateStatus.ERROR, failure.normalized_message)

    def _emit(self, state: RepoUpdateState) -> None:
        self._callback.on_state_change(state.model_copy())
