"""
Unit tests for configuration loader.

Tests multi-layer config merging, environment variable overrides,
caching, XDG directory handling and layered .env loading.
"""

import json
import os
from pathlib import Path

import pytest
from pydantic import ValidationError

from releasetracker.core.config import (
    AppConfig,
    clear_cache,
    get_user_config_path,
    load_config,
)
from releasetracker.core.config.env import env_file_candidates, load_layered_env, read_env_file
from releasetracker.core.config.loader import (
    apply_env_overrides,
    deep_merge,
    get_default_config,
    get_xdg_data_home,
    load_json_file,
)

# ==============================================================================
# Helper Functions Tests
# ==============================================================================


class TestDeepMerge:
    """Test the deep_merge helper function."""

    def test_simple_merge(self):
        """Test merging two simple dicts."""
        result = deep_merge({"a": 1, "b": 2}, {"b": 3, "c": 4})
        assert result == {"a": 1, "b": 3, "c": 4}

    def test_nested_merge(self):
        """Test merging nested dicts."""
        base = {"a": 1, "b": {"x": 10, "y": 20}}
        override = {"b": {"y": 30, "z": 40}}
        assert deep_merge(base, override) == {"a": 1, "b": {"x": 10, "y": 30, "z": 40}}

    def test_base_not_mutated(self):
        base = {"a": {"x": 1}}
        deep_merge(base, {"a": {"x": 2}})
        assert base == {"a": {"x": 1}}


class TestLoadJsonFile:
    """Test load_json_file."""

    def test_missing_file(self, tmp_path: Path):
        assert load_json_file(tmp_path / "missing.json") is None

    def test_invalid_json(self, tmp_path: Path):
        path = tmp_path / "bad.json"
        path.write_text("{not json")
        assert load_json_file(path) is None

    def test_non_object(self, tmp_path: Path):
        path = tmp_path / "list.json"
        path.write_text("[1, 2]")
        assert load_json_file(path) is None

    def test_valid_object(self, tmp_path: Path):
        path = tmp_path / "ok.json"
        path.write_text('{"max_workers": 2}')
        assert load_json_file(path) == {"max_workers": 2}


class TestEnvOverrides:
    """Test RELEASETRACKER_* environment overrides."""

    def test_data_dir(self, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setenv("RELEASETRACKER_DATA_DIR", "/srv/rt")
        assert apply_env_overrides({})["data_dir"] == "/srv/rt"

    def test_api_url_sets_graphql_url(self, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setenv("RELEASETRACKER_API_URL", "https://ghe.example.com/api/")
        result = apply_env_overrides({})
        assert result["api_url"] == "https://ghe.example.com/api"
        assert result["graphql_url"] == "https://ghe.example.com/api/graphql"

    def test_max_workers(self, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setenv("RELEASETRACKER_MAX_WORKERS", "8")
        assert apply_env_overrides({})["max_workers"] == 8

    @pytest.mark.parametrize("value", ["zero", "0", "-3"])
    def test_invalid_max_workers_ignored(self, monkeypatch: pytest.MonkeyPatch, value: str):
        monkeypatch.setenv("RELEASETRACKER_MAX_WORKERS", value)
        assert "max_workers" not in apply_env_overrides({})

    def test_git_timeout(self, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setenv("RELEASETRACKER_GIT_TIMEOUT", "2.5")
        assert apply_env_overrides({})["git_timeout_seconds"] == 2.5

    def test_invalid_git_timeout_ignored(self, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setenv("RELEASETRACKER_GIT_TIMEOUT", "soon")
        assert "git_timeout_seconds" not in apply_env_overrides({})


# ==============================================================================
# load_config Tests
# ==============================================================================


class TestLoadConfig:
    """Test the layered load_config."""

    def test_defaults(self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path):
        """Without overrides the data dir lives under XDG_DATA_HOME."""
        monkeypatch.delenv("RELEASETRACKER_DATA_DIR")
        monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "share"))
        clear_cache()

        config = load_config()

        assert config.data_dir == tmp_path / "share" / "releasetracker"
        assert config.catalog_path == tmp_path / "share" / "releasetracker" / "data.json"
        assert config.settings_path.name == "settings.json"
        assert config.api_url == "https://api.github.com"
        assert config.user_agent == "ReleaseTracker-App"
        assert config.max_workers == 4
        assert config.git_timeout_seconds is None

    def test_default_data_home(self, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.delenv("XDG_DATA_HOME", raising=False)
        assert get_xdg_data_home() == Path.home() / ".local" / "share"
        assert get_default_config()["max_workers"] == 4

    def test_user_config_overrides_defaults(self):
        path = get_user_config_path()
        path.parent.mkdir(parents=True)
        path.write_text(json.dumps({"max_workers": 2, "request_timeout": 5}))

        config = load_config(use_cache=False)

        assert config.max_workers == 2
        assert config.request_timeout == 5

    def test_env_overrides_user_config(self, monkeypatch: pytest.MonkeyPatch):
        path = get_user_config_path()
        path.parent.mkdir(parents=True)
        path.write_text(json.dumps({"max_workers": 2}))
        monkeypatch.setenv("RELEASETRACKER_MAX_WORKERS", "6")

        assert load_config(use_cache=False).max_workers == 6

    def test_cache_and_clear(self, monkeypatch: pytest.MonkeyPatch):
        first = load_config()
        monkeypatch.setenv("RELEASETRACKER_MAX_WORKERS", "7")

        assert load_config() is first
        clear_cache()
        assert load_config().max_workers == 7

    def test_invalid_value_raises(self):
        path = get_user_config_path()
        path.parent.mkdir(parents=True)
        path.write_text(json.dumps({"max_workers": 0}))

        with pytest.raises(ValidationError):
            load_config(use_cache=False)

    def test_data_dir_tilde_expanded(self):
        config = AppConfig(data_dir="~/rt-data")
        assert config.data_dir == Path.home() / "rt-data"


# ==============================================================================
# Layered .env Tests
# ==============================================================================


@pytest.fixture
def env_keys(monkeypatch: pytest.MonkeyPatch) -> None:
    """Register the touched keys with monkeypatch so writes are undone."""
    for key in ("GITHUB_TOKEN", "RELEASETRACKER_MAX_WORKERS", "OTHER_APP_SECRET"):
        monkeypatch.setenv(key, "x")
        monkeypatch.delenv(key)


@pytest.mark.usefixtures("env_keys")
class TestLoadLayeredEnv:
    """Test .env precedence: OS env > .env.local > project .env > user .env."""

    def test_later_file_overrides_earlier(self, tmp_path: Path):
        user_env = tmp_path / "user.env"
        user_env.write_text("RELEASETRACKER_MAX_WORKERS=2\n")
        project_env = tmp_path / ".env"
        project_env.write_text("RELEASETRACKER_MAX_WORKERS=6\n")

        loaded = load_layered_env(paths=[user_env, project_env])

        assert os.environ["RELEASETRACKER_MAX_WORKERS"] == "6"
        assert loaded == {"RELEASETRACKER_MAX_WORKERS": project_env}

    def test_os_env_wins(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setenv("GITHUB_TOKEN", "ghp_shell")
        project_env = tmp_path / ".env"
        project_env.write_text("GITHUB_TOKEN=ghp_file\n")

        loaded = load_layered_env(paths=[project_env])

        assert os.environ["GITHUB_TOKEN"] == "ghp_shell"
        assert "GITHUB_TOKEN" not in loaded

    def test_unrelated_keys_not_exported(self, tmp_path: Path):
        project_env = tmp_path / ".env"
        project_env.write_text("OTHER_APP_SECRET=hunter2\nGITHUB_TOKEN=ghp_file\n")

        loaded = load_layered_env(paths=[project_env])

        assert "OTHER_APP_SECRET" not in os.environ
        assert loaded == {"GITHUB_TOKEN": project_env}
        assert read_env_file(project_env) == {"GITHUB_TOKEN": "ghp_file"}

    def test_missing_files_ignored(self, tmp_path: Path):
        loaded = load_layered_env(paths=[tmp_path / "nope.env", tmp_path / "also-nope.env"])

        assert loaded == {}

    def test_candidates_in_precedence_order(self, tmp_path: Path, isolated_env: dict):
        candidates = env_file_candidates(tmp_path)

        assert candidates == [
            Path(os.environ["XDG_CONFIG_HOME"]) / "releasetracker" / ".env",
            tmp_path / ".env",
            tmp_path / ".env.local",
        ]
