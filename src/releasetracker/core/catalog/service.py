"""
Catalog service: tracked repositories, stored releases and commits.

Every mutating operation is a single load -> mutate -> save cycle against
the CatalogStore. Validation happens before the load so a rejected request
never touches data.json.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Iterable

from pydantic import ValidationError

from releasetracker.core.catalog.models import (
    BulkAddResult,
    CatalogData,
    Commit,
    ImportResult,
    Release,
    RepoSource,
    TrackedRepo,
    new_id,
    sort_commits,
    sort_releases,
)
from releasetracker.core.catalog.store import CatalogStore, write_json_atomic
from releasetracker.core.errors import CatalogValidationError, RepositoryNotTrackedError

logger = logging.getLogger(__name__)


class CatalogService:
    """
    High-level operations on the repository catalog.

    Example:
        >>> catalog = CatalogService(CatalogStore(path))
        >>> repo = catalog.add_repo("sveltejs", "svelte")
        >>> catalog.remove_repo(repo.id)
    """

    def __init__(self, store: CatalogStore) -> None:
        self.store = store

    # --------------------------------------------------------------------------
    # Repositories
    # --------------------------------------------------------------------------

    def get_repos(self) -> list[TrackedRepo]:
        return self.store.load().repos

    def add_repo(
        self,
        owner: str,
        name: str,
        source: RepoSource = RepoSource.MANUAL,
    ) -> TrackedRepo:
        """
        Start tracking owner/name.

        Raises:
            CatalogValidationError: If owner/name is empty or already tracked
        """
        owner = owner.strip()
        name = name.strip()
        if not owner or not name:
            raise CatalogValidationError("Repository owner and name are required")

        data = self.store.load()
        if data.find_repo_by_name(owner, name) is not None:
            raise CatalogValidationError(f"Repository already tracked: {owner}/{name}")

        repo = TrackedRepo.create(owner, name, source)
        data.repos.append(repo)
        self.store.save(data)
        logger.info("Tracking %s (%s)", repo.full_name, repo.id)
        return repo

    def add_repos(
        self,
        repos: Iterable[tuple[str, str]],
        source: RepoSource = RepoSource.FOLDER,
    ) -> BulkAddResult:
        """Add several owner/name pairs, skipping ones that are already tracked."""
        result = BulkAddResult()
        for owner, name in repos:
            try:
                result.added.append(self.add_repo(owner, name, source))
            except CatalogValidationError as e:
                logger.info("Skipping %s/%s: %s", owner, name, e)
                result.skipped.append(f"{owner}/{name}")
        return result

    def remove_repo(self, repo_id: str) -> TrackedRepo:
        """
        Stop tracking a repository and drop its releases and commits.

        Raises:
            RepositoryNotTrackedError: If no repository has this id
        """
        data = self.store.load()
        repo = data.find_repo(repo_id)
        if repo is None:
            raise RepositoryNotTrackedError(f"No tracked repository with id {repo_id}")

        data.repos = [r for r in data.repos if r.id != repo_id]
        data.releases = [r for r in data.releases if r.repo_id != repo_id]
        data.commits = [c for c in data.commits if c.repo_id != repo_id]
        self.store.save(data)
        logger.info("Stopped tracking %s", repo.full_name)
        return repo

    def find_repo(self, owner: str, name: str) -> TrackedRepo | None:
        return self.store.load().find_repo_by_name(owner, name)

    # --------------------------------------------------------------------------
    # Stored metadata
    # --------------------------------------------------------------------------

    def get_stored_releases(self) -> list[Release]:
        """Stored releases, newest publishedAt first."""
        return sort_releases(self.store.load().releases)

    def get_stored_commits(self) -> list[Commit]:
        """Stored commits, newest commit date first."""
        return sort_commits(self.store.load().commits)

    def get_last_fetch(self) -> datetime | None:
        return self.store.load().last_fetch

    # --------------------------------------------------------------------------
    # Export / import
    # --------------------------------------------------------------------------

    def export_data(self, path: Path) -> Path:
        """Write the full catalog to `path`."""
        path = Path(path).expanduser()
        write_json_atomic(path, self.store.load().to_json_dict())
        logger.info("Exported catalog to %s", path)
        return path

    def import_data(self, path: Path) -> ImportResult:
        """
        Merge an exported catalog into the current one.

        Only genuinely new records are added: repos are matched by owner/name,
        releases by repoId-tagName, commits by repoId. Existing records are
        never overwritten.

        Raises:
            CatalogValidationError: If the file is unreadable or lacks list-typed
                `repos` and `releases` sections
        """
        imported = _read_import_file(Path(path).expanduser())
        data = self.store.load()
        result = ImportResult()

        # imported repo id -> id of the repo it resolves to in the catalog
        id_map: dict[str, str] = {}
        existing_by_key = {repo.key: repo for repo in data.repos}
        existing_ids = {repo.id for repo in data.repos}

        for repo in imported.repos:
            match = existing_by_key.get(repo.key)
            if match is not None:
                id_map[repo.id] = match.id
                continue
            imported_id = repo.id
            if repo.id in existing_ids:
                repo = repo.model_copy(update={"id": new_id()})
            id_map[imported_id] = repo.id
            data.repos.append(repo)
            existing_by_key[repo.key] = repo
            existing_ids.add(repo.id)
            result.repo_count += 1

        release_keys = {release.key for release in data.releases}
        for release in imported.releases:
            repo_id = _resolve_repo_id(release.repo_id, id_map, existing_ids)
            if repo_id is None:
                logger.debug("Dropping imported release %s: unknown repo", release.key)
                continue
            if repo_id != release.repo_id:
                release = release.model_copy(update={"repo_id": repo_id})
            if release.key in release_keys:
                continue
            data.releases.append(release)
            release_keys.add(release.key)
            result.release_count += 1

        commit_repo_ids = {commit.repo_id for commit in data.commits}
        for commit in imported.commits:
            repo_id = _resolve_repo_id(commit.repo_id, id_map, existing_ids)
            if repo_id is None or repo_id in commit_repo_ids:
                continue
            if repo_id != commit.repo_id:
                commit = commit.model_copy(update={"repo_id": repo_id})
            data.commits.append(commit)
            commit_repo_ids.add(repo_id)
            result.commit_count += 1

        self.store.save(data)
        logger.info(
            "Imported %d repos, %d releases, %d commits from %s",
            result.repo_count,
            result.release_count,
            result.commit_count,
            path,
        )
        return result


def _resolve_repo_id(repo_id: str, id_map: dict[str, str], existing_ids: set[str]) -> str | None:
    if repo_id in id_map:
        return id_map[repo_id]
    if repo_id in existing_ids:
        return repo_id
    return None


def _read_import_file(path: Path) -> CatalogData:
    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
        raise CatalogValidationError(f"Cannot read import file {path}: {e}") from e

    if not isinstance(raw, dict):
        raise CatalogValidationError("Invalid data format: expected a JSON object")
    if not isinstance(raw.get("repos"), list):
        raise CatalogValidationError("Invalid data format: missing repos array")
    if not isinstance(raw.get("releases"), list):
        raise CatalogValidationError("Invalid data format: missing releases array")
    if "commits" in raw and not isinstance(raw["commits"], list):
        raw = {k: v for k, v in raw.items() if k != "commits"}

    try:
        return CatalogData.from_raw(raw)
    except ValidationError as e:
        raise CatalogValidationError(f"Invalid data format: {e}") from e
