"""
Remote metadata reconciliation.

Example:
    >>> from releasetracker.core.metadata import MetadataSynchronizer
    >>> result = MetadataSynchronizer(store, settings, config).sync()
"""

from releasetracker.core.metadata.models import MetadataSyncResult
from releasetracker.core.metadata.reconcile import upsert_commit, upsert_release
from releasetracker.core.metadata.service import MetadataSynchronizer

__all__ = [
    "MetadataSyncResult",
    "MetadataSynchronizer",
    "upsert_commit",
    "upsert_release",
]
