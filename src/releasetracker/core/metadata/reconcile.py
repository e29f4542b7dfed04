"""
Upsert rules for merging fetched metadata into a CatalogData.

Releases are keyed by (repoId, tagName) and commits by repoId. A matching
record is replaced wholesale (last write wins); otherwise the new record is
appended.
"""

from __future__ import annotations

from datetime import datetime

from releasetracker.core.catalog.models import CatalogData, Commit, Release, TrackedRepo
from releasetracker.core.github.models import RemoteCommit, RemoteRelease


def upsert_release(data: CatalogData, release: Release) -> bool:
    """
    Insert or replace a release.

    Returns:
        True if an existing record was replaced, False if appended
    """
    for index, existing in enumerate(data.releases):
        if existing.repo_id == release.repo_id and existing.tag_name == release.tag_name:
            data.releases[index] = release
            return True
    data.releases.append(release)
    return False


def upsert_commit(data: CatalogData, commit: Commit) -> bool:
    """
    Insert or replace the single commit stored for a repository.

    Returns:
        True if an existing record was replaced, False if appended
    """
    for index, existing in enumerate(data.commits):
        if existing.repo_id == commit.repo_id:
            data.commits[index] = commit
            return True
    data.commits.append(commit)
    return False


def release_from_remote(repo: TrackedRepo, remote: RemoteRelease, fetched_at: datetime) -> Release:
    return Release(
        repo_id=repo.id,
        owner=repo.owner,
        name=repo.name,
        tag_name=remote.tag_name,
        display_name=remote.name or remote.tag_name,
        published_at=remote.published_at,
        url=remote.url,
        body=remote.description or "",
        fetched_at=fetched_at,
    )


def commit_from_remote(repo: TrackedRepo, remote: RemoteCommit, fetched_at: datetime) -> Commit:
    return Commit(
        repo_id=repo.id,
        owner=repo.owner,
        name=repo.name,
        sha=remote.sha,
        message=remote.message,
        committed_at=remote.committed_at,
        author_name=remote.author_name,
        url=remote.url,
        fetched_at=fetched_at,
    )
