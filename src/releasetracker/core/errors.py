"""
Error taxonomy for releasetracker.

Every failure raised by the core carries an ErrorKind so callers (the CLI,
the session object) can classify it without string matching.
"""

from __future__ import annotations

from enum import Enum


class ErrorKind(str, Enum):
    """Classification of a releasetracker failure."""

    VALIDATION = "validation-error"
    AUTH = "auth-error"
    RATE_LIMIT = "rate-limit-error"
    TRANSPORT = "transport-error"
    PROTOCOL = "protocol-error"
    LOCAL_STATE = "local-state-error"


class ReleaseTrackerError(Exception):
    """Base class for all releasetracker errors."""

    kind: ErrorKind = ErrorKind.TRANSPORT

    def __init__(self, message: str, *, kind: ErrorKind | None = None) -> None:
        super().__init__(message)
        if kind is not None:
            self.kind = kind

    @property
    def message(self) -> str:
        return str(self)


class CatalogValidationError(ReleaseTrackerError):
    """Raised for duplicate repositories and malformed import files."""

    kind = ErrorKind.VALIDATION


class RepositoryNotTrackedError(ReleaseTrackerError):
    """Raised when an operation names a repository id that is not tracked."""

    kind = ErrorKind.VALIDATION


class LocalStateError(ReleaseTrackerError):
    """Raised when a working copy is in a state that blocks an update."""

    kind = ErrorKind.LOCAL_STATE


__all__ = [
    "CatalogValidationError",
    "ErrorKind",
    "LocalStateError",
    "ReleaseTrackerError",
    "RepositoryNotTrackedError",
]
