"""
Session state for interactive front ends.

TrackerSession owns the in-memory view a UI renders: tracked repositories,
stored releases and commits, a loading flag, the last error message and the
repositories discovered by a folder scan. Every assignment notifies
subscribers with the field name and its new value.

Operations catch releasetracker errors and surface them through `error`
instead of raising, except `add_repo_manual` which also re-raises so the
caller can keep its input form open.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Iterable

from releasetracker.core.catalog.models import Commit, Release, RepoSource, TrackedRepo
from releasetracker.core.catalog.service import CatalogService
from releasetracker.core.errors import ReleaseTrackerError
from releasetracker.core.github.models import RepoInfo
from releasetracker.core.metadata.service import MetadataSynchronizer

logger = logging.getLogger(__name__)

Listener = Callable[[str, Any], None]


class TrackerSession:
    """
    Observable session state backed by the catalog and the synchronizer.

    Example:
        >>> session = TrackerSession(catalog, synchronizer)
        >>> session.subscribe(lambda field, value: print(field))
        >>> session.load_repos()
        loading
        repos
        loading
    """

    def __init__(
        self,
        catalog: CatalogService,
        synchronizer: MetadataSynchronizer | None = None,
    ) -> None:
        self.catalog = catalog
        self.synchronizer = synchronizer
        self._listeners: list[Listener] = []
        self._repos: list[TrackedRepo] = []
        self._releases: list[Release] = []
        self._commits: list[Commit] = []
        self._loading = False
        self._error: str | None = None
        self._scanned_repos: list[RepoInfo] = []

    # --------------------------------------------------------------------------
    # Change notification
    # --------------------------------------------------------------------------

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """
        Register a listener called as `listener(field, value)` on every change.

        Returns:
            A callable that removes the listener
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _set(self, field: str, value: Any) -> None:
        setattr(self, f"_{field}", value)
        for listener in list(self._listeners):
            listener(field, value)

    # --------------------------------------------------------------------------
    # State
    # --------------------------------------------------------------------------

    @property
    def repos(self) -> list[TrackedRepo]:
        return self._repos

    @repos.setter
    def repos(self, value: list[TrackedRepo]) -> None:
        self._set("repos", value)

    @property
    def releases(self) -> list[Release]:
        return self._releases

    @releases.setter
    def releases(self, value: list[Release]) -> None:
        self._set("releases", value)

    @property
    def commits(self) -> list[Commit]:
        return self._commits

    @commits.setter
    def commits(self, value: list[Commit]) -> None:
        self._set("commits", value)

    @property
    def loading(self) -> bool:
        return self._loading

    @loading.setter
    def loading(self, value: bool) -> None:
        self._set("loading", value)

    @property
    def error(self) -> str | None:
        return self._error

    @error.setter
    def error(self, value: str | None) -> None:
        self._set("error", value)

    @property
    def scanned_repos(self) -> list[RepoInfo]:
        return self._scanned_repos

    @scanned_repos.setter
    def scanned_repos(self, value: list[RepoInfo]) -> None:
        self._set("scanned_repos", value)

    # --------------------------------------------------------------------------
    # Operations
    # --------------------------------------------------------------------------

    def _begin(self) -> None:
        self.loading = True
        if self._error is not None:
            self.error = None

    def _fail(self, e: ReleaseTrackerError, action: str) -> None:
        logger.error("Error %s: %s", action, e)
        self.error = e.message

    def load_repos(self) -> None:
        self._begin()
        try:
            self.repos = self.catalog.get_repos()
        finally:
            self.loading = False

    def add_repo_manual(self, owner: str, name: str) -> TrackedRepo:
        """
        Track owner/name and append it to `repos`.

        Raises:
            ReleaseTrackerError: After recording the message in `error`
        """
        self._begin()
        try:
            repo = self.catalog.add_repo(owner, name, RepoSource.MANUAL)
            self.repos = [*self._repos, repo]
            return repo
        except ReleaseTrackerError as e:
            self._fail(e, "adding repository")
            raise
        finally:
            self.loading = False

    def add_scanned_repos(self, repos: Iterable[RepoInfo]) -> list[TrackedRepo]:
        """Track scanned repositories, skipping duplicates, then clear the scan."""
        self._begin()
        try:
            result = self.catalog.add_repos(((r.owner, r.name) for r in repos), RepoSource.FOLDER)
            self.repos = self.catalog.get_repos()
            self.scanned_repos = []
            return result.added
        finally:
            self.loading = False

    def remove_repo(self, repo_id: str) -> None:
        self._begin()
        try:
            self.catalog.remove_repo(repo_id)
            self.repos = [r for r in self._repos if r.id != repo_id]
            self.releases = [r for r in self._releases if r.repo_id != repo_id]
            self.commits = [c for c in self._commits if c.repo_id != repo_id]
        except ReleaseTrackerError as e:
            self._fail(e, "removing repository")
        finally:
            self.loading = False

    def refresh_releases(self) -> None:
        """Run one metadata sync and replace `releases` and `commits` with the result."""
        if self.synchronizer is None:
            raise RuntimeError("refresh_releases requires a MetadataSynchronizer")
        self._begin()
        try:
            result = self.synchronizer.sync()
            self.releases = result.releases
            self.commits = result.commits
        except ReleaseTrackerError as e:
            self._fail(e, "fetching releases")
        finally:
            self.loading = False

    def load_stored_releases(self) -> None:
        self._begin()
        try:
            self.releases = self.catalog.get_stored_releases()
        finally:
            self.loading = False

    def load_stored_commits(self) -> None:
        self._begin()
        try:
            self.commits = self.catalog.get_stored_commits()
        finally:
            self.loading = False

    def clear_error(self) -> None:
        self.error = None

    def clear_scanned_repos(self) -> None:
        self.scanned_repos = []
