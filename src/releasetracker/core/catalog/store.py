"""
JSON stores for data.json and settings.json.

Both stores follow the same contract: `load()` never raises (an absent or
corrupt file yields the default structure, and a corrupt file is first moved
to `<name>.corrupt-<timestamp>`) and `save()` is an atomic full overwrite.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from releasetracker.core.catalog.models import CatalogData, Settings

logger = logging.getLogger(__name__)


def _read_json_object(path: Path) -> dict[str, Any] | None:
    if not path.exists():
        return None
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (json.JSONDecodeError, OSError, UnicodeDecodeError) as e:
        logger.warning("Ignoring unreadable file %s: %s", path, e)
        return None
    if not isinstance(data, dict):
        logger.warning("Ignoring %s: top-level value is not an object", path)
        return None
    return data


def quarantine(path: Path) -> Path | None:
    """
    Move an unreadable file to `<name>.corrupt-<timestamp>` next to it.

    Returns:
        The new location, or None if the file could not be moved
    """
    stamp = datetime.now(timezone.utc).strftime("%Y%m%dT%H%M%S%fZ")
    target = path.with_name(f"{path.name}.corrupt-{stamp}")
    try:
        os.replace(path, target)
    except OSError as e:
        logger.error("Could not move unreadable %s aside: %s", path, e)
        return None
    logger.warning("Moved unreadable %s to %s", path, target)
    return target


def write_json_atomic(path: Path, data: Any) -> None:
    """Write JSON to `path` via a temp file in the same directory + os.replace."""
    path.parent.mkdir(parents=True, exist_ok=True)

    fd, temp_path = tempfile.mkstemp(
        dir=path.parent,
        prefix=f".{path.stem}_",
        suffix=".json.tmp",
    )
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2, ensure_ascii=False)
            f.write("\n")
        os.replace(temp_path, path)
    except Exception:
        try:
            os.unlink(temp_path)
        except OSError:
            pass
        raise


class CatalogStore:
    """
    Store for the repository catalog (data.json).

    Example:
        >>> store = CatalogStore(Path("~/.local/share/releasetracker/data.json"))
        >>> data = store.load()
        >>> data.repos.append(TrackedRepo.create("owner", "name"))
        >>> store.save(data)
    """

    def __init__(self, path: Path) -> None:
        self.path = Path(path)

    def load(self) -> CatalogData:
        """
        Load the catalog, migrating old layouts.

        An absent file yields an empty catalog. An unreadable or invalid one is
        moved aside with `quarantine` first, so the next save cannot overwrite it.
        """
        if not self.path.exists():
            return CatalogData()
        raw = _read_json_object(self.path)
        if raw is None:
            quarantine(self.path)
            return CatalogData()
        try:
            return CatalogData.from_raw(raw)
        except ValidationError as e:
            logger.warning("Catalog at %s failed validation, starting empty: %s", self.path, e)
            quarantine(self.path)
            return CatalogData()

    def save(self, data: CatalogData) -> None:
        write_json_atomic(self.path, data.to_json_dict())


class SettingsStore:
    """Store for user settings (settings.json)."""

    def __init__(self, path: Path) -> None:
        self.path = Path(path)

    def load(self) -> Settings:
        if not self.path.exists():
            return Settings()
        raw = _read_json_object(self.path)
        if raw is None:
            quarantine(self.path)
            return Settings()
        try:
            return Settings.model_validate(raw)
        except ValidationError as e:
            logger.warning("Settings at %s failed validation, using defaults: %s", self.path, e)
            quarantine(self.path)
            return Settings()

    def save(self, settings: Settings) -> None:
        write_json_atomic(self.path, settings.to_json_dict())
