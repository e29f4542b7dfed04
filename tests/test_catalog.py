"""
Tests for the repository catalog.

Tests cover:
- JSON store load/save contract (absent, corrupt, atomic write)
- Adding repositories and duplicate rejection
- Removal cascading to releases and commits
- Ordering of stored releases and commits
- Export/import validation and merge rules
- Migration of schema version 1 catalogs
"""

from __future__ import annotations

import json
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

from helpers import write_json
from releasetracker.core.catalog import (
    CatalogData,
    CatalogService,
    CatalogStore,
    Commit,
    Release,
    RepoSource,
    TrackedRepo,
    sort_releases,
)
from releasetracker.core.catalog.models import CATALOG_SCHEMA_VERSION
from releasetracker.core.errors import (
    CatalogValidationError,
    ErrorKind,
    RepositoryNotTrackedError,
)

T0 = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)


def make_release(repo: TrackedRepo, tag: str, published_at: datetime | None) -> Release:
    return Release(
        repo_id=repo.id,
        owner=repo.owner,
        name=repo.name,
        tag_name=tag,
        display_name=tag,
        published_at=published_at,
    )


def make_commit(repo: TrackedRepo, sha: str, committed_at: datetime | None = None) -> Commit:
    return Commit(
        repo_id=repo.id,
        owner=repo.owner,
        name=repo.name,
        sha=sha,
        committed_at=committed_at,
    )


# ==============================================================================
# Store Tests
# ==============================================================================


class TestCatalogStore:
    """Tests for the data.json store."""

    def test_load_absent_returns_empty(self, tmp_path: Path):
        data = CatalogStore(tmp_path / "data.json").load()

        assert data.repos == []
        assert data.releases == []
        assert data.commits == []
        assert data.last_fetch is None

    def test_load_corrupt_returns_empty(self, tmp_path: Path):
        path = tmp_path / "data.json"
        path.write_text("{ this is not json")

        assert CatalogStore(path).load().repos == []
        assert not path.exists()
        [moved] = tmp_path.glob("data.json.corrupt-*")
        assert moved.read_text() == "{ this is not json"

    def test_load_invalid_shape_returns_empty(self, tmp_path: Path):
        path = write_json(tmp_path / "data.json", {"repos": [{"id": 5}]})
        assert CatalogStore(path).load().repos == []
        assert len(list(tmp_path.glob("data.json.corrupt-*"))) == 1

    def test_invalid_catalog_survives_next_save(self, catalog: CatalogService):
        """A mutating command after a failed load keeps the old file aside."""
        original = json.dumps({"repos": [{"id": "r1", "owner": "o"}], "releases": []})
        catalog.store.path.parent.mkdir(parents=True, exist_ok=True)
        catalog.store.path.write_text(original)

        catalog.add_repo("o", "fresh")

        [moved] = catalog.store.path.parent.glob("data.json.corrupt-*")
        assert moved.read_text() == original
        assert [r.full_name for r in catalog.get_repos()] == ["o/fresh"]

    def test_save_writes_camel_case(self, tmp_path: Path):
        store = CatalogStore(tmp_path / "nested" / "data.json")
        repo = TrackedRepo.create("sveltejs", "svelte")
        store.save(CatalogData(repos=[repo], last_fetch=T0))

        raw = json.loads(store.path.read_text())
        assert raw["schemaVersion"] == CATALOG_SCHEMA_VERSION
        assert raw["repos"][0]["addedAt"]
        assert raw["repos"][0]["url"] == "https://github.com/sveltejs/svelte"
        assert raw["lastFetch"].startswith("2024-05-01T12:00:00")

    def test_save_leaves_no_temp_files(self, tmp_path: Path):
        store = CatalogStore(tmp_path / "data.json")
        store.save(CatalogData())
        store.save(CatalogData())

        assert [p.name for p in tmp_path.iterdir()] == ["data.json"]

    def test_round_trip(self, tmp_path: Path):
        store = CatalogStore(tmp_path / "data.json")
        repo = TrackedRepo.create("a", "b", RepoSource.FOLDER)
        store.save(CatalogData(repos=[repo], releases=[make_release(repo, "v1", T0)]))

        loaded = store.load()
        assert loaded.repos == [repo]
        assert loaded.releases[0].published_at == T0


# ==============================================================================
# Repository Tests
# ==============================================================================


class TestAddRepo:
    """Tests for adding repositories."""

    def test_add_repo(self, catalog: CatalogService):
        repo = catalog.add_repo("sveltejs", "svelte")

        assert repo.owner == "sveltejs"
        assert repo.name == "svelte"
        assert repo.source == RepoSource.MANUAL
        assert repo.url == "https://github.com/sveltejs/svelte"
        assert catalog.get_repos() == [repo]

    def test_add_strips_whitespace(self, catalog: CatalogService):
        repo = catalog.add_repo("  pallets ", " flask\n")
        assert repo.full_name == "pallets/flask"

    def test_ids_are_unique(self, catalog: CatalogService):
        a = catalog.add_repo("o", "a")
        b = catalog.add_repo("o", "b")
        assert a.id != b.id

    def test_duplicate_rejected_and_file_unchanged(self, catalog: CatalogService):
        """A duplicate add fails and leaves data.json byte-for-byte identical."""
        catalog.add_repo("sveltejs", "svelte")
        before = catalog.store.path.read_bytes()

        with pytest.raises(CatalogValidationError) as exc_info:
            catalog.add_repo("sveltejs", "svelte")

        assert exc_info.value.kind == ErrorKind.VALIDATION
        assert catalog.store.path.read_bytes() == before

    @pytest.mark.parametrize("owner,name", [("", "svelte"), ("sveltejs", "  ")])
    def test_empty_rejected(self, catalog: CatalogService, owner: str, name: str):
        with pytest.raises(CatalogValidationError):
            catalog.add_repo(owner, name)
        assert not catalog.store.path.exists()

    def test_bulk_add_reports_skipped(self, catalog: CatalogService):
        catalog.add_repo("o", "existing")

        result = catalog.add_repos([("o", "new1"), ("o", "existing"), ("o", "new2")])

        assert [r.full_name for r in result.added] == ["o/new1", "o/new2"]
        assert result.skipped == ["o/existing"]
        assert all(r.source == RepoSource.FOLDER for r in result.added)
        assert len(catalog.get_repos()) == 3


class TestRemoveRepo:
    """Tests for removing repositories."""

    def test_remove_cascades(self, catalog: CatalogService, catalog_store: CatalogStore):
        """Removing a repo drops exactly its releases and commits."""
        keep = catalog.add_repo("o", "keep")
        drop = catalog.add_repo("o", "drop")
        data = catalog_store.load()
        data.releases = [
            make_release(keep, "v1", T0),
            make_release(drop, "v1", T0),
            make_release(drop, "v2", T0),
        ]
        data.commits = [make_commit(keep, "aaa"), make_commit(drop, "bbb")]
        catalog_store.save(data)

        removed = catalog.remove_repo(drop.id)

        after = catalog_store.load()
        assert removed.id == drop.id
        assert [r.id for r in after.repos] == [keep.id]
        assert [(r.repo_id, r.tag_name) for r in after.releases] == [(keep.id, "v1")]
        assert [c.sha for c in after.commits] == ["aaa"]

    def test_remove_unknown(self, catalog: CatalogService):
        with pytest.raises(RepositoryNotTrackedError):
            catalog.remove_repo("does-not-exist")

    def test_find_repo(self, catalog: CatalogService):
        repo = catalog.add_repo("o", "n")
        assert catalog.find_repo("o", "n") == repo
        assert catalog.find_repo("o", "other") is None


# ==============================================================================
# Ordering Tests
# ==============================================================================


class TestStoredOrdering:
    """Stored releases and commits come back newest first."""

    def test_releases_newest_first(self, catalog: CatalogService, catalog_store: CatalogStore):
        repo = catalog.add_repo("o", "n")
        data = catalog_store.load()
        data.releases = [
            make_release(repo, "old", T0),
            make_release(repo, "new", T0 + timedelta(days=2)),
            make_release(repo, "mid", T0 + timedelta(days=1)),
        ]
        catalog_store.save(data)

        assert [r.tag_name for r in catalog.get_stored_releases()] == ["new", "mid", "old"]

    def test_ties_keep_insertion_order(self):
        repo = TrackedRepo.create("o", "n")
        releases = [
            make_release(repo, "first", T0),
            make_release(repo, "second", T0),
            make_release(repo, "newest", T0 + timedelta(hours=1)),
            make_release(repo, "third", T0),
        ]

        ordered = [r.tag_name for r in sort_releases(releases)]

        assert ordered == ["newest", "first", "second", "third"]

    def test_missing_dates_last(self, catalog: CatalogService, catalog_store: CatalogStore):
        undated = catalog.add_repo("o", "n")
        dated = catalog.add_repo("o", "m")
        data = catalog_store.load()
        data.commits = [make_commit(undated, "undated"), make_commit(dated, "dated", T0)]
        catalog_store.save(data)

        assert [c.sha for c in catalog.get_stored_commits()] == ["dated", "undated"]


# ==============================================================================
# Export / Import Tests
# ==============================================================================


class TestExportImport:
    """Tests for export_data / import_data."""

    def test_export_writes_catalog(self, catalog: CatalogService, tmp_path: Path):
        repo = catalog.add_repo("o", "n")

        path = catalog.export_data(tmp_path / "backup.json")

        raw = json.loads(path.read_text())
        assert raw["repos"][0]["id"] == repo.id
        assert raw["releases"] == []

    @pytest.mark.parametrize(
        "payload",
        [
            {"releases": []},
            {"repos": [], "releases": "nope"},
            {"repos": {"a": 1}, "releases": []},
            [1, 2, 3],
        ],
    )
    def test_import_rejects_bad_shape(self, catalog: CatalogService, tmp_path: Path, payload):
        catalog.add_repo("o", "n")
        before = catalog.store.path.read_bytes()
        path = write_json(tmp_path / "import.json", payload)

        with pytest.raises(CatalogValidationError):
            catalog.import_data(path)

        assert catalog.store.path.read_bytes() == before

    def test_import_rejects_invalid_json(self, catalog: CatalogService, tmp_path: Path):
        path = tmp_path / "import.json"
        path.write_text("not json at all")

        with pytest.raises(CatalogValidationError):
            catalog.import_data(path)
        assert not catalog.store.path.exists()

    def test_import_merges_without_overwriting(self, catalog: CatalogService, tmp_path: Path):
        """Existing repos and releases win; only new records are added."""
        existing = catalog.add_repo("o", "shared")
        data = catalog.store.load()
        data.releases.append(make_release(existing, "v1", T0))
        catalog.store.save(data)

        other_shared = TrackedRepo.create("o", "shared")
        fresh = TrackedRepo.create("o", "fresh")
        incoming_v1 = make_release(other_shared, "v1", T0 + timedelta(days=9))
        incoming_v1.display_name = "should not overwrite"
        payload = CatalogData(
            repos=[other_shared, fresh],
            releases=[
                incoming_v1,
                make_release(other_shared, "v2", T0),
                make_release(fresh, "v0.1", T0),
            ],
            commits=[make_commit(fresh, "abc")],
        ).to_json_dict()
        path = write_json(tmp_path / "import.json", payload)

        result = catalog.import_data(path)

        after = catalog.store.load()
        assert result.repo_count == 1
        assert result.release_count == 2
        assert result.commit_count == 1
        assert sorted(r.full_name for r in after.repos) == ["o/fresh", "o/shared"]

        by_key = {(r.repo_id, r.tag_name): r for r in after.releases}
        assert by_key[(existing.id, "v1")].display_name == "v1"
        assert (existing.id, "v2") in by_key
        assert (fresh.id, "v0.1") in by_key

    def test_import_drops_dangling_releases(self, catalog: CatalogService, tmp_path: Path):
        path = write_json(
            tmp_path / "import.json",
            {
                "repos": [],
                "releases": [
                    {"repoId": "ghost", "owner": "o", "name": "n", "tagName": "v1"},
                ],
            },
        )

        result = catalog.import_data(path)

        assert result.release_count == 0
        assert catalog.store.load().releases == []

    def test_import_reassigns_colliding_ids(self, catalog: CatalogService, tmp_path: Path):
        existing = catalog.add_repo("o", "first")
        clash = TrackedRepo.create("o", "second").model_copy(update={"id": existing.id})
        payload = {"repos": [clash.to_json_dict()], "releases": []}

        catalog.import_data(write_json(tmp_path / "import.json", payload))

        ids = [r.id for r in catalog.get_repos()]
        assert len(ids) == 2
        assert len(set(ids)) == 2

    def test_import_tolerates_non_list_commits(self, catalog: CatalogService, tmp_path: Path):
        path = write_json(
            tmp_path / "import.json",
            {"repos": [], "releases": [], "commits": "broken"},
        )
        assert catalog.import_data(path).commit_count == 0


# ==============================================================================
# Migration Tests
# ==============================================================================


class TestMigration:
    """Tests for loading catalogs written before schema versioning."""

    def test_v1_catalog_migrated(self, tmp_path: Path):
        path = write_json(
            tmp_path / "data.json",
            {
                "repos": [
                    {
                        "id": "r1",
                        "owner": "sveltejs",
                        "name": "svelte",
                        "url": "https://github.com/sveltejs/svelte",
                        "addedAt": "2024-01-01T00:00:00.000Z",
                        "source": "folder",
                    }
                ],
                "releases": [
                    {
                        "id": "rel1",
                        "repoId": "r1",
                        "repoName": "svelte",
                        "repoOwner": "sveltejs",
                        "tagName": "v5.0.0",
                        "name": None,
                        "publishedAt": "2024-02-01T00:00:00Z",
                        "htmlUrl": "https://github.com/sveltejs/svelte/releases/tag/v5.0.0",
                        "body": None,
                        "fetchedAt": "2024-02-02T00:00:00Z",
                    }
                ],
                "lastFetch": "2024-02-02T00:00:00Z",
            },
        )

        data = CatalogStore(path).load()

        assert data.schema_version == CATALOG_SCHEMA_VERSION
        assert data.commits == []
        release = data.releases[0]
        assert release.owner == "sveltejs"
        assert release.name == "svelte"
        assert release.display_name == "v5.0.0"
        assert release.body == ""
        assert release.url.endswith("/v5.0.0")
        assert data.repos[0].source == RepoSource.FOLDER

    def test_v1_commit_migrated(self):
        data = CatalogData.from_raw(
            {
                "repos": [],
                "releases": [],
                "commits": [
                    {
                        "id": "c1",
                        "repoId": "r1",
                        "repoOwner": "o",
                        "repoName": "n",
                        "sha": "deadbeef",
                        "message": "Fix",
                        "date": "2024-03-01T10:00:00Z",
                        "author": "Ada",
                        "htmlUrl": "https://github.com/o/n/commit/deadbeef",
                        "fetchedAt": "2024-03-02T00:00:00Z",
                    }
                ],
            }
        )

        commit = data.commits[0]
        assert commit.author_name == "Ada"
        assert commit.committed_at == datetime(2024, 3, 1, 10, tzinfo=timezone.utc)
        assert commit.url.endswith("deadbeef")

    def test_naive_timestamps_become_utc(self):
        repo = TrackedRepo(owner="o", name="n", added_at=datetime(2024, 1, 1))
        assert repo.added_at.tzinfo is timezone.utc
