"""
Settings service: GitHub token and update folder.

The stored token and the environment credential are separate
read paths. `get_stored_token` only ever returns what the user saved;
`get_token` falls back to GITHUB_TOKEN and is what API and git calls use.
"""

from __future__ import annotations

import os
from pathlib import Path

from releasetracker.core.catalog.store import SettingsStore
from releasetracker.core.config.env import TOKEN_ENV_VAR


class SettingsService:
    """Read and update persisted settings."""

    def __init__(self, store: SettingsStore) -> None:
        self.store = store

    def get_stored_token(self) -> str | None:
        """Return the saved token, never the environment credential."""
        return self.store.load().github_token or None

    def get_token(self) -> str | None:
        """Return the saved token, else GITHUB_TOKEN from the environment."""
        return self.get_stored_token() or os.environ.get(TOKEN_ENV_VAR) or None

    def save_token(self, token: str) -> None:
        settings = self.store.load()
        settings.github_token = token.strip() or None
        self.store.save(settings)

    def remove_token(self) -> None:
        settings = self.store.load()
        settings.github_token = None
        self.store.save(settings)

    def get_update_folder_path(self) -> Path | None:
        folder = self.store.load().update_folder_path
        return Path(folder).expanduser() if folder else None

    def save_update_folder_path(self, folder: Path | str) -> None:
        settings = self.store.load()
        settings.update_folder_path = str(folder)
        self.store.save(settings)
