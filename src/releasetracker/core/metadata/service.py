"""
Remote metadata synchronizer.

Reconciles the latest release and default-branch tip commit of every tracked
repository into the catalog:

1. load the catalog
2. issue one batched GraphQL request for all repositories
3. upsert releases/commits in memory
4. write the catalog back once

Any failure in step 2 propagates before step 3, so a failed run never
modifies data.json. Callers must not run two syncs against the same catalog
concurrently.
"""

from __future__ import annotations

import logging

import httpx

from releasetracker.core.catalog.models import sort_commits, sort_releases, utc_now
from releasetracker.core.catalog.settings import SettingsService
from releasetracker.core.catalog.store import CatalogStore
from releasetracker.core.config.models import AppConfig
from releasetracker.core.github.client import GitHubClient
from releasetracker.core.github.models import RemoteCommit
from releasetracker.core.metadata.models import MetadataSyncResult
from releasetracker.core.metadata.reconcile import (
    commit_from_remote,
    release_from_remote,
    upsert_commit,
    upsert_release,
)

logger = logging.getLogger(__name__)


class MetadataSynchronizer:
    """
    Fetch and merge release/commit metadata for all tracked repositories.

    Example:
        >>> sync = MetadataSynchronizer(store, settings, config)
        >>> result = sync.sync()
        >>> print(f"{len(result.releases)} releases, {len(result.missing_repos)} missing")
    """

    def __init__(
        self,
        store: CatalogStore,
        settings: SettingsService,
        config: AppConfig,
        http_client: httpx.Client | None = None,
    ) -> None:
        """
        Initialize the synchronizer.

        Args:
            store: Catalog store to read and write
            settings: Settings service providing the GitHub token
            config: Application configuration (API URLs, timeouts)
            http_client: Optional httpx.Client passed to the GitHub client
        """
        self.store = store
        self.settings = settings
        self.config = config
        self.http_client = http_client

    def _client(self) -> GitHubClient:
        # Token is read per operation, never cached on the synchronizer
        return GitHubClient.from_config(self.config, self.settings.get_token(), self.http_client)

    def sync(self) -> MetadataSyncResult:
        """
        Run one reconciliation pass.

        Returns:
            MetadataSyncResult with sorted releases and commits

        Raises:
            GitHubClientError: If the batched request failed; the catalog is
                left unchanged
        """
        data = self.store.load()
        if not data.repos:
            logger.info("No tracked repositories; nothing to fetch")
            return MetadataSyncResult(
                releases=sort_releases(data.releases),
                commits=sort_commits(data.commits),
                last_fetch=data.last_fetch,
            )

        snapshots = self._client().fetch_snapshots([(r.owner, r.name) for r in data.repos])

        result = MetadataSyncResult()
        fetched_at = utc_now()
        for repo, snapshot in zip(data.repos, snapshots):
            if snapshot is None:
                logger.warning("Repository not found upstream: %s", repo.full_name)
                result.missing_repos.append(repo.full_name)
                continue

            if snapshot.release is not None:
                upsert_release(data, release_from_remote(repo, snapshot.release, fetched_at))
                result.releases_upserted += 1
            else:
                logger.info("No releases found for %s", repo.full_name)

            if snapshot.commit is not None:
                upsert_commit(data, commit_from_remote(repo, snapshot.commit, fetched_at))
                result.commits_upserted += 1

        data.last_fetch = fetched_at
        self.store.save(data)

        result.releases = sort_releases(data.releases)
        result.commits = sort_commits(data.commits)
        result.last_fetch = data.last_fetch
        logger.info(
            "Synchronized %d repos: %d releases, %d commits, %d missing",
            len(data.repos),
            result.releases_upserted,
            result.commits_upserted,
            len(result.missing_repos),
        )
        return result

    def fetch_last_commit(self, owner: str, name: str) -> RemoteCommit:
        """Look up one repository's tip commit without touching the catalog."""
        return self._client().fetch_last_commit(owner, name)
