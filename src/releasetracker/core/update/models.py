"""
Data models for working-copy updates.

RepoUpdateState is transient: one instance per repository per run, reported
to the caller as it changes and never persisted.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Iterable

from pydantic import BaseModel, Field

from releasetracker.core.catalog.models import TrackedRepo
from releasetracker.core.update.messages import FailureKind


class UpdateStatus(str, Enum):
    """State of one repository in the update state machine."""

    PENDING = "pending"
    CHECKING = "checking"
    CLONING = "cloning"
    PULLING = "pulling"
    DONE = "done"
    ERROR = "error"
    SKIPPED = "skipped"

    @property
    def is_terminal(self) -> bool:
        return self in (UpdateStatus.DONE, UpdateStatus.ERROR, UpdateStatus.SKIPPED)


@dataclass(frozen=True)
class UpdateTarget:
    """
    A working copy to bring up to date.

    Attributes:
        repo_name: Display name (owner/name)
        repo_path: Local directory holding (or to hold) the clone
        clone_url: Canonical URL to clone from
        branch: Default branch when already known; skips branch discovery
    """

    repo_name: str
    repo_path: Path
    clone_url: str
    branch: str | None = None


def build_update_targets(repos: Iterable[TrackedRepo], folder: Path) -> list[UpdateTarget]:
    """Map tracked repositories to `<folder>/<name>` working copies."""
    folder = Path(folder).expanduser()
    return [
        UpdateTarget(
            repo_name=repo.full_name,
            repo_path=folder / repo.name,
            clone_url=f"{repo.url.rstrip('/')}.git",
        )
        for repo in repos
    ]


class RepoUpdateState(BaseModel):
    """Progress and outcome of one repository's update."""

    repo_path: Path
    repo_name: str
    status: UpdateStatus = UpdateStatus.PENDING
    message: str | None = None
    error: str | None = Field(
        default=None,
        description="Raw git diagnostic (credentials redacted) when status is error",
    )
    failure_kind: FailureKind | None = None
    has_uncommitted_changes: bool | None = None
    up_to_date: bool | None = None


class UpdateSummary(BaseModel):
    """Aggregate counts over the terminal states of a run."""

    done: int = 0
    error: int = 0
    skipped: int = 0

    @property
    def total(self) -> int:
        return self.done + self.error + self.skipped

    def record(self, state: RepoUpdateState) -> None:
        if state.status == UpdateStatus.DONE:
            self.done += 1
        elif state.status == UpdateStatus.ERROR:
            self.error += 1
        elif state.status == UpdateStatus.SKIPPED:
            self.skipped += 1


class UpdateRunResult(BaseModel):
    """Terminal states of every repository in a run plus the summary."""

    states: list[RepoUpdateState] = Field(default_factory=list)
    summary: UpdateSummary = Field(default_factory=UpdateSummary)
    duration_seconds: float = 0.0

    def state_for(self, repo_name: str) -> RepoUpdateState | None:
        for state in self.states:
            if state.repo_name == repo_name:
                return state
        return None
