"""
GitHub data models for releasetracker.

Defines Pydantic models for repository identity and for the pieces of the
GraphQL/REST responses the synchronizer consumes.
"""

from __future__ import annotations

import re
from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field, computed_field


class RepoInfo(BaseModel):
    """
    GitHub repository identity.

    Parsed from a git remote URL (SSH or HTTPS format) or an owner/name slug.

    Example:
        >>> RepoInfo.from_remote_url("git@github.com:user/repo.git")
        RepoInfo(owner='user', name='repo')
        >>> RepoInfo.parse("user/repo")
        RepoInfo(owner='user', name='repo')
    """

    owner: str = Field(..., description="Repository owner (user or organization)")
    name: str = Field(..., description="Repository name")

    @computed_field
    @property
    def full_name(self) -> str:
        """Full repository name (owner/name)."""
        return f"{self.owner}/{self.name}"

    @computed_field
    @property
    def url(self) -> str:
        """GitHub URL for the repository."""
        return f"https://github.com/{self.owner}/{self.name}"

    @classmethod
    def from_remote_url(cls, remote_url: str) -> RepoInfo | None:
        """
        Parse repository info from a git remote URL.

        Handles formats:
        - git@github.com:user/repo.git
        - git@github.com:user/repo
        - https://github.com/user/repo.git
        - https://github.com/user/repo

        Returns:
            RepoInfo or None if not a valid GitHub URL
        """
        if not remote_url:
            return None
        remote_url = remote_url.strip()

        ssh_match = re.match(
            r"git@github\.com:([^/]+)/([^/]+?)(?:\.git)?$",
            remote_url,
        )
        if ssh_match:
            return cls(owner=ssh_match.group(1), name=ssh_match.group(2))

        https_match = re.match(
            r"https?://github\.com/([^/]+)/([^/]+?)(?:\.git)?/?$",
            remote_url,
        )
        if https_match:
            return cls(owner=https_match.group(1), name=https_match.group(2))

        return None

    @classmethod
    def parse(cls, value: str) -> RepoInfo | None:
        """Parse an `owner/name` slug or a GitHub URL."""
        if info := cls.from_remote_url(value):
            return info
        match = re.match(r"^([A-Za-z0-9_.-]+)/([A-Za-z0-9_.-]+)$", value.strip())
        if match:
            return cls(owner=match.group(1), name=match.group(2))
        return None


class RemoteRelease(BaseModel):
    """`latestRelease` of a repository as returned by the GraphQL API."""

    tag_name: str
    name: str | None = None
    published_at: datetime | None = None
    url: str = ""
    description: str | None = None

    @classmethod
    def from_graphql(cls, node: dict[str, Any]) -> RemoteRelease:
        return cls(
            tag_name=node["tagName"],
            name=node.get("name"),
            published_at=node.get("publishedAt"),
            url=node.get("url") or "",
            description=node.get("description"),
        )


class RemoteCommit(BaseModel):
    """Tip commit of a default branch as returned by the GraphQL API."""

    sha: str
    message: str = ""
    committed_at: datetime | None = None
    author_name: str = ""
    url: str = ""

    @classmethod
    def from_graphql(cls, node: dict[str, Any]) -> RemoteCommit:
        author = node.get("author") or {}
        return cls(
            sha=node["oid"],
            message=node.get("message") or "",
            committed_at=node.get("committedDate"),
            author_name=author.get("name") or "",
            url=node.get("url") or "",
        )


class RepoSnapshot(BaseModel):
    """Latest release and tip commit of one repository (either may be absent)."""

    release: RemoteRelease | None = None
    commit: RemoteCommit | None = None

    @classmethod
    def from_graphql(cls, node: dict[str, Any]) -> RepoSnapshot:
        release_node = node.get("latestRelease")
        branch_ref = node.get("defaultBranchRef") or {}
        target = branch_ref.get("target") or {}
        return cls(
            release=RemoteRelease.from_graphql(release_node) if release_node else None,
            commit=RemoteCommit.from_graphql(target) if target.get("oid") else None,
        )


class RateLimit(BaseModel):
    """Core REST rate limit status."""

    limit: int
    remaining: int
    reset: int = Field(description="Unix timestamp at which the window resets")
    used: int

    @computed_field
    @property
    def reset_at(self) -> datetime:
        return datetime.fromtimestamp(self.reset).astimezone()
