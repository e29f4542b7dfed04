"""
GitHub integration for releasetracker.

Provides the API client used to fetch release and commit metadata.
"""

from releasetracker.core.github.client import (
    GitHubAuthError,
    GitHubClient,
    GitHubClientError,
    GitHubProtocolError,
    GitHubRateLimitError,
    GitHubTransportError,
    RepositoryNotFoundError,
)
from releasetracker.core.github.models import (
    RateLimit,
    RemoteCommit,
    RemoteRelease,
    RepoInfo,
    RepoSnapshot,
)

__all__ = [
    "GitHubAuthError",
    "GitHubClient",
    "GitHubClientError",
    "GitHubProtocolError",
    "GitHubRateLimitError",
    "GitHubTransportError",
    "RateLimit",
    "RemoteCommit",
    "RemoteRelease",
    "RepoInfo",
    "RepoSnapshot",
    "RepositoryNotFoundError",
]
