"""
Configuration loading with multi-layer merging.

Implements the configuration precedence chain:
    defaults < user config < env vars
"""

import json
import logging
import os
from pathlib import Path
from typing import Any

from .models import AppConfig

logger = logging.getLogger(__name__)

# Global cache to avoid reloading config multiple times per session
_config_cache: AppConfig | None = None


def get_xdg_config_home() -> Path:
    """
    Get XDG config home directory.

    Returns:
        Path to config directory (defaults to ~/.config)
    """
    if xdg_home := os.environ.get("XDG_CONFIG_HOME"):
        return Path(xdg_home)
    return Path.home() / ".config"


def get_xdg_data_home() -> Path:
    """
    Get XDG data home directory.

    Returns:
        Path to data directory (defaults to ~/.local/share)
    """
    if xdg_home := os.environ.get("XDG_DATA_HOME"):
        return Path(xdg_home)
    return Path.home() / ".local" / "share"


def get_user_config_path() -> Path:
    """
    Get path to user configuration file.

    Returns:
        Path to ~/.config/releasetracker/config.json (or XDG equivalent)
    """
    return get_xdg_config_home() / "releasetracker" / "config.json"


def deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """
    Deep merge two dictionaries.

    Values in `override` take precedence over values in `base`; nested dicts
    are merged, not replaced.

    Example:
        >>> deep_merge({"a": 1, "b": {"x": 10}}, {"b": {"y": 20}})
        {'a': 1, 'b': {'x': 10, 'y': 20}}
    """
    result = base.copy()

    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = deep_merge(result[key], value)
        else:
            result[key] = value

    return result


def load_json_file(path: Path) -> dict[str, Any] | None:
    """
    Load a JSON file, returning None if it doesn't exist or is invalid.

    Args:
        path: Path to JSON file

    Returns:
        Parsed JSON as dict, or None if file doesn't exist or can't be parsed
    """
    if not path.exists():
        return None

    try:
        with path.open() as f:
            data = json.load(f)
            if isinstance(data, dict):
                return data
            return None
    except (json.JSONDecodeError, OSError) as e:
        logger.warning("Failed to parse config at %s: %s", path, e)
        return None


def apply_env_overrides(config_dict: dict[str, Any]) -> dict[str, Any]:
    """
    Apply environment variable overrides to configuration.

    Supported env vars:
        RELEASETRACKER_DATA_DIR - overrides data_dir
        RELEASETRACKER_API_URL - overrides api_url and graphql_url
        RELEASETRACKER_MAX_WORKERS - overrides max_workers
        RELEASETRACKER_GIT_TIMEOUT - overrides git_timeout_seconds

    Args:
        config_dict: Configuration dictionary to override

    Returns:
        Configuration dictionary with env var overrides applied
    """
    result = config_dict.copy()

    if data_dir := os.environ.get("RELEASETRACKER_DATA_DIR"):
        result["data_dir"] = data_dir

    if api_url := os.environ.get("RELEASETRACKER_API_URL"):
        api_url = api_url.rstrip("/")
        result["api_url"] = api_url
        result["graphql_url"] = f"{api_url}/graphql"

    if workers_str := os.environ.get("RELEASETRACKER_MAX_WORKERS"):
        try:
            workers = int(workers_str)
            if workers < 1:
                logger.warning(
                    "RELEASETRACKER_MAX_WORKERS must be >= 1, got %d, ignoring", workers
                )
            else:
                result["max_workers"] = workers
        except ValueError:
            logger.warning("Invalid RELEASETRACKER_MAX_WORKERS value '%s', ignoring", workers_str)

    if timeout_str := os.environ.get("RELEASETRACKER_GIT_TIMEOUT"):
        try:
            timeout = float(timeout_str)
            if timeout <= 0:
                logger.warning(
                    "RELEASETRACKER_GIT_TIMEOUT must be > 0, got %s, ignoring", timeout_str
                )
            else:
                result["git_timeout_seconds"] = timeout
        except ValueError:
            logger.warning("Invalid RELEASETRACKER_GIT_TIMEOUT value '%s', ignoring", timeout_str)

    return result


def get_default_config() -> dict[str, Any]:
    """
    Get hardcoded default configuration.

    Returns:
        Dictionary with default configuration values
    """
    return {
        "data_dir": str(get_xdg_data_home() / "releasetracker"),
        "max_workers": 4,
    }


def load_config(use_cache: bool = True) -> AppConfig:
    """
    Load configuration with multi-layer merging.

    Configuration precedence (highest to lowest):
        1. Environment variables (RELEASETRACKER_*)
        2. User config (~/.config/releasetracker/config.json)
        3. Hardcoded defaults

    Args:
        use_cache: If True, return cached config from previous load

    Returns:
        Validated AppConfig instance

    Raises:
        ValidationError: If the merged config fails Pydantic validation
    """
    global _config_cache

    if use_cache and _config_cache is not None:
        return _config_cache

    merged = get_default_config()

    if user_config := load_json_file(get_user_config_path()):
        merged = deep_merge(merged, user_config)

    merged = apply_env_overrides(merged)

    config = AppConfig(**merged)
    _config_cache = config

    return config


def clear_cache() -> None:
    """
    Clear the cached configuration.

    Useful for testing or when config files change during execution.
    """
    global _config_cache
    _config_cache = None
