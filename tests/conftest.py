"""
Pytest configuration and shared fixtures.

Provides isolated data/config directories, catalog and settings services
and a scratch root for the git repositories built by helpers.py.
"""

from pathlib import Path

import pytest

from releasetracker.core.catalog import (
    CatalogService,
    CatalogStore,
    SettingsService,
    SettingsStore,
)
from releasetracker.core.config import AppConfig, clear_cache

# ==============================================================================
# Environment Fixtures
# ==============================================================================


@pytest.fixture(autouse=True)
def isolated_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    """
    Keep every test away from the real home directory and credentials.

    Points XDG_CONFIG_HOME and RELEASETRACKER_DATA_DIR into tmp_path, removes
    GITHUB_TOKEN and gives git a committer identity.
    """
    config_home = tmp_path / "xdg-config"
    data_dir = tmp_path / "data"
    monkeypatch.setenv("XDG_CONFIG_HOME", str(config_home))
    monkeypatch.setenv("RELEASETRACKER_DATA_DIR", str(data_dir))
    for var in (
        "GITHUB_TOKEN",
        "RELEASETRACKER_API_URL",
        "RELEASETRACKER_MAX_WORKERS",
        "RELEASETRACKER_GIT_TIMEOUT",
    ):
        monkeypatch.delenv(var, raising=False)

    monkeypatch.setenv("GIT_AUTHOR_NAME", "Test User")
    monkeypatch.setenv("GIT_AUTHOR_EMAIL", "test@example.com")
    monkeypatch.setenv("GIT_COMMITTER_NAME", "Test User")
    monkeypatch.setenv("GIT_COMMITTER_EMAIL", "test@example.com")
    monkeypatch.setenv("GIT_CONFIG_NOSYSTEM", "1")
    monkeypatch.setenv("HOME", str(tmp_path / "home"))

    clear_cache()
    yield {"config_home": config_home, "data_dir": data_dir}
    clear_cache()


@pytest.fixture
def data_dir(isolated_env: dict) -> Path:
    return isolated_env["data_dir"]


@pytest.fixture
def config(data_dir: Path) -> AppConfig:
    return AppConfig(data_dir=data_dir)


# ==============================================================================
# Catalog Fixtures
# ==============================================================================


@pytest.fixture
def catalog_store(config: AppConfig) -> CatalogStore:
    return CatalogStore(config.catalog_path)


@pytest.fixture
def catalog(catalog_store: CatalogStore) -> CatalogService:
    return CatalogService(catalog_store)


@pytest.fixture
def settings_service(config: AppConfig) -> SettingsService:
    return SettingsService(SettingsStore(config.settings_path))


# ==============================================================================
# Git Fixtures
# ==============================================================================


@pytest.fixture
def git_root(tmp_path: Path) -> Path:
    root = tmp_path / "git"
    root.mkdir()
    return root
