"""
.env support for the CLI.

Only the variables releasetracker itself reads are taken from .env files:
GITHUB_TOKEN and anything prefixed RELEASETRACKER_. Other keys in a
project's .env belong to that project and are left alone.

Files are applied lowest precedence first:

    ~/.config/releasetracker/.env < ./.env < ./.env.local

and a variable already present in the process environment always wins.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Iterable

from dotenv import dotenv_values

from .loader import get_xdg_config_home

logger = logging.getLogger(__name__)

TOKEN_ENV_VAR = "GITHUB_TOKEN"
ENV_PREFIX = "RELEASETRACKER_"


def is_releasetracker_key(key: str) -> bool:
    return key == TOKEN_ENV_VAR or key.startswith(ENV_PREFIX)


def env_file_candidates(project_dir: Path | None = None) -> list[Path]:
    """
    Get the .env files consulted at start-up, lowest precedence first.

    Args:
        project_dir: Directory holding the project .env files (defaults to cwd)
    """
    project_dir = project_dir or Path.cwd()
    return [
        get_xdg_config_home() / "releasetracker" / ".env",
        project_dir / ".env",
        project_dir / ".env.local",
    ]


def read_env_file(path: Path) -> dict[str, str]:
    """Return the releasetracker variables defined in one .env file."""
    if not path.is_file():
        return {}
    return {
        key: value
        for key, value in dotenv_values(path).items()
        if key and value is not None and is_releasetracker_key(key)
    }


def load_layered_env(paths: Iterable[Path] | None = None) -> dict[str, Path]:
    """
    Export releasetracker variables from .env files into os.environ.

    Later files override earlier ones; nothing already set in the process
    environment is replaced.

    Args:
        paths: .env files, lowest precedence first (defaults to env_file_candidates())

    Returns:
        Each exported variable mapped to the file it came from
    """
    if paths is None:
        paths = env_file_candidates()

    found: dict[str, tuple[str, Path]] = {}
    for path in paths:
        for key, value in read_env_file(Path(path)).items():
            found[key] = (value, Path(path))

    loaded: dict[str, Path] = {}
    for key, (value, source) in found.items():
        if key in os.environ:
            logger.debug("%s already set in the environment; ignoring %s", key, source)
            continue
        os.environ[key] = value
        loaded[key] = source
    return loaded
