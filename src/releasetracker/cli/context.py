"""
Service wiring shared by CLI commands.

Commands build their collaborators from the cached AppConfig on each
invocation, so tests can point RELEASETRACKER_DATA_DIR at a temporary
directory and call clear_cache().
"""

from __future__ import annotations

from dataclasses import dataclass

from releasetracker.core.catalog import CatalogService, CatalogStore, SettingsService, SettingsStore
from releasetracker.core.config import AppConfig, load_config
from releasetracker.core.metadata import MetadataSynchronizer


@dataclass
class Services:
    config: AppConfig
    catalog: CatalogService
    settings: SettingsService
    synchronizer: MetadataSynchronizer


def get_services() -> Services:
    config = load_config()
    store = CatalogStore(config.catalog_path)
    settings = SettingsService(SettingsStore(config.settings_path))
    return Services(
        config=config,
        catalog=CatalogService(store),
        settings=settings,
        synchronizer=MetadataSynchronizer(store, settings, config),
    )
