"""
Data models for the metadata synchronizer.
"""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field

from releasetracker.core.catalog.models import Commit, Release


class MetadataSyncResult(BaseModel):
    """
    Result of one reconciliation pass.

    `releases` and `commits` hold the whole stored catalog after the merge,
    newest first.
    """

    releases: list[Release] = Field(default_factory=list)
    commits: list[Commit] = Field(default_factory=list)
    missing_repos: list[str] = Field(
        default_factory=list,
        description="owner/name of tracked repositories absent upstream",
    )
    releases_upserted: int = 0
    commits_upserted: int = 0
    last_fetch: datetime | None = None

    def summary(self) -> str:
        """Generate a human-readable summary of the result."""
        parts = [
            f"{self.releases_upserted} releases",
            f"{self.commits_upserted} commits",
        ]
        if self.missing_repos:
            parts.append(f"{len(self.missing_repos)} repositories not found")
        return ", ".join(parts)
