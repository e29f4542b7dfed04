"""
Catalog data models for releasetracker.

Defines Pydantic models for tracked repositories, releases, commits and
settings. Persisted JSON uses camelCase keys; Python attributes are
snake_case.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Iterable

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

CATALOG_SCHEMA_VERSION = 2


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def new_id() -> str:
    return str(uuid.uuid4())


class _CatalogModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )

    def to_json_dict(self) -> dict[str, Any]:
        """Dump with camelCase keys, JSON-ready values."""
        return self.model_dump(mode="json", by_alias=True)


def _ensure_aware(value: datetime | None) -> datetime | None:
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class RepoSource(str, Enum):
    """How a repository came to be tracked."""

    FOLDER = "folder"
    MANUAL = "manual"


class TrackedRepo(_CatalogModel):
    """
    A repository the user has chosen to track.

    Identity is (owner, name); `id` is an opaque token referenced by releases
    and commits.
    """

    id: str = Field(default_factory=new_id)
    owner: str
    name: str
    url: str = ""
    added_at: datetime = Field(default_factory=utc_now)
    source: RepoSource = RepoSource.MANUAL

    @field_validator("added_at")
    @classmethod
    def normalize_timestamps(cls, v: datetime) -> datetime | None:
        return _ensure_aware(v)

    @property
    def key(self) -> str:
        """Uniqueness key (owner/name)."""
        return f"{self.owner}/{self.name}"

    @property
    def full_name(self) -> str:
        return self.key

    @classmethod
    def create(cls, owner: str, name: str, source: RepoSource = RepoSource.MANUAL) -> TrackedRepo:
        return cls(
            owner=owner,
            name=name,
            url=f"https://github.com/{owner}/{name}",
            source=source,
        )


class Release(_CatalogModel):
    """Latest published release of a tracked repository."""

    id: str = Field(default_factory=new_id)
    repo_id: str
    owner: str
    name: str
    tag_name: str
    display_name: str = ""
    published_at: datetime | None = None
    url: str = ""
    body: str = ""
    fetched_at: datetime = Field(default_factory=utc_now)

    @field_validator("published_at", "fetched_at")
    @classmethod
    def normalize_timestamps(cls, v: datetime | None) -> datetime | None:
        return _ensure_aware(v)

    @property
    def key(self) -> str:
        """Uniqueness key (repoId-tagName)."""
        return f"{self.repo_id}-{self.tag_name}"


class Commit(_CatalogModel):
    """Tip commit of a tracked repository's default branch."""

    id: str = Field(default_factory=new_id)
    repo_id: str
    owner: str
    name: str
    sha: str
    message: str = ""
    committed_at: datetime | None = None
    author_name: str = ""
    url: str = ""
    fetched_at: datetime = Field(default_factory=utc_now)

    @field_validator("committed_at", "fetched_at")
    @classmethod
    def normalize_timestamps(cls, v: datetime | None) -> datetime | None:
        return _ensure_aware(v)


class Settings(_CatalogModel):
    """User settings persisted next to the catalog."""

    github_token: str | None = None
    update_folder_path: str | None = None


class CatalogData(_CatalogModel):
    """
    Root model for data.json.

    Files written before schema versioning (no `schemaVersion` key) are
    migrated by `from_raw`.
    """

    schema_version: int = CATALOG_SCHEMA_VERSION
    repos: list[TrackedRepo] = Field(default_factory=list)
    releases: list[Release] = Field(default_factory=list)
    commits: list[Commit] = Field(default_factory=list)
    last_fetch: datetime | None = None

    @field_validator("last_fetch")
    @classmethod
    def normalize_timestamps(cls, v: datetime | None) -> datetime | None:
        return _ensure_aware(v)

    @classmethod
    def from_raw(cls, raw: dict[str, Any]) -> CatalogData:
        """Validate a decoded data.json, migrating older layouts first."""
        return cls.model_validate(migrate_catalog(raw))

    def find_repo(self, repo_id: str) -> TrackedRepo | None:
        for repo in self.repos:
            if repo.id == repo_id:
                return repo
        return None

    def find_repo_by_name(self, owner: str, name: str) -> TrackedRepo | None:
        for repo in self.repos:
            if repo.owner == owner and repo.name == name:
                return repo
        return None


# ------------------------------------------------------------------------------
# Migration
# ------------------------------------------------------------------------------


def _migrate_v1_release(record: dict[str, Any]) -> dict[str, Any]:
    if "repoOwner" not in record and "htmlUrl" not in record:
        return record
    return {
        "id": record.get("id") or new_id(),
        "repoId": record.get("repoId"),
        "owner": record.get("repoOwner", ""),
        "name": record.get("repoName", ""),
        "tagName": record.get("tagName"),
        "displayName": record.get("name") or record.get("tagName") or "",
        "publishedAt": record.get("publishedAt"),
        "url": record.get("htmlUrl", ""),
        "body": record.get("body") or "",
        "fetchedAt": record.get("fetchedAt") or utc_now().isoformat(),
    }


def _migrate_v1_commit(record: dict[str, Any]) -> dict[str, Any]:
    if "repoOwner" not in record and "htmlUrl" not in record:
        return record
    return {
        "id": record.get("id") or new_id(),
        "repoId": record.get("repoId"),
        "owner": record.get("repoOwner", ""),
        "name": record.get("repoName", ""),
        "sha": record.get("sha"),
        "message": record.get("message") or "",
        "committedAt": record.get("date"),
        "authorName": record.get("author") or "",
        "url": record.get("htmlUrl", ""),
        "fetchedAt": record.get("fetchedAt") or utc_now().isoformat(),
    }


def migrate_catalog(raw: dict[str, Any]) -> dict[str, Any]:
    """
    Bring a decoded data.json up to the current schema version.

    Version 1 files stored `repoOwner`/`repoName`, used `name` for the release
    display name, `htmlUrl` for links and `date`/`author` on commits, and may
    lack the `commits` list entirely.
    """
    version = raw.get("schemaVersion", 1)
    data = dict(raw)
    data.setdefault("repos", [])
    data.setdefault("releases", [])
    data.setdefault("commits", [])
    data.setdefault("lastFetch", None)

    for key in ("repos", "releases", "commits"):
        if not isinstance(data[key], list):
            data[key] = []

    if version < 2:
        data["releases"] = [_migrate_v1_release(r) for r in data["releases"] if isinstance(r, dict)]
        data["commits"] = [_migrate_v1_commit(c) for c in data["commits"] if isinstance(c, dict)]

    data["schemaVersion"] = CATALOG_SCHEMA_VERSION
    return data


# ------------------------------------------------------------------------------
# Ordering
# ------------------------------------------------------------------------------


def _timestamp(value: datetime | None) -> float:
    if value is None:
        return float("-inf")
    return value.timestamp()


def sort_releases(releases: Iterable[Release]) -> list[Release]:
    """Newest first by publishedAt; equal timestamps keep insertion order."""
    return sorted(releases, key=lambda r: _timestamp(r.published_at), reverse=True)


def sort_commits(commits: Iterable[Commit]) -> list[Commit]:
    """Newest first by commit date; equal timestamps keep insertion order."""
    return sorted(commits, key=lambda c: _timestamp(c.committed_at), reverse=True)


# ------------------------------------------------------------------------------
# Operation results
# ------------------------------------------------------------------------------


class BulkAddResult(BaseModel):
    """Outcome of adding several repositories at once."""

    added: list[TrackedRepo] = Field(default_factory=list)
    skipped: list[str] = Field(
        default_factory=list,
        description="owner/name of repositories that were already tracked",
    )


class ImportResult(BaseModel):
    """Counts of genuinely new records merged from an import file."""

    repo_count: int = 0
    release_count: int = 0
    commit_count: int = 0
