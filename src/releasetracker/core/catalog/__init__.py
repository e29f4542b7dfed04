"""
Repository catalog: tracked repositories, releases, commits and settings.

Example:
    >>> from releasetracker.core.catalog import CatalogService, CatalogStore
    >>> catalog = CatalogService(CatalogStore(config.catalog_path))
    >>> catalog.add_repo("owner", "name")
"""

from releasetracker.core.catalog.models import (
    BulkAddResult,
    CatalogData,
    Commit,
    ImportResult,
    Release,
    RepoSource,
    Settings,
    TrackedRepo,
    sort_commits,
    sort_releases,
)
from releasetracker.core.catalog.service import CatalogService
from releasetracker.core.catalog.settings import SettingsService
from releasetracker.core.catalog.store import CatalogStore, SettingsStore

__all__ = [
    "BulkAddResult",
    "CatalogData",
    "CatalogService",
    "CatalogStore",
    "Commit",
    "ImportResult",
    "Release",
    "RepoSource",
    "Settings",
    "SettingsService",
    "SettingsStore",
    "TrackedRepo",
    "sort_commits",
    "sort_releases",
]
