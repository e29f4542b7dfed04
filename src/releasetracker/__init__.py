"""
ReleaseTracker - follow GitHub releases and keep local clones current.

Tracks a set of GitHub repositories, reconciles their latest release and
default-branch commit into a local JSON catalog, and brings working copies
on disk up to date.
"""

__version__ = "0.4.0"

# Re-export core models for convenience
from releasetracker.core.catalog.models import Commit, Release, TrackedRepo
from releasetracker.core.config.models import AppConfig

__all__ = ["AppConfig", "Commit", "Release", "TrackedRepo", "__version__"]
