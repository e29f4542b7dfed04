"""
Configuration models and loading.

This module provides the Pydantic model for releasetracker configuration
with multi-layer merging: defaults < user < env vars.
"""

from .loader import (
    clear_cache,
    get_user_config_path,
    get_xdg_config_home,
    get_xdg_data_home,
    load_config,
)
from .models import AppConfig

__all__ = [
    "AppConfig",
    "clear_cache",
    "get_user_config_path",
    "get_xdg_config_home",
    "get_xdg_data_home",
    "load_config",
]
