"""
GitHub API client for releasetracker.

Talks to the GraphQL endpoint for release/commit metadata (one batched
request for all tracked repositories) and to the REST API for rate limit
status. Every failure is raised as a GitHubClientError subclass whose
`kind` classifies it.
"""

from __future__ import annotations

import logging
from typing import Any, Sequence

import httpx

from releasetracker.core.config.models import AppConfig
from releasetracker.core.errors import ErrorKind, ReleaseTrackerError
from releasetracker.core.github.models import RateLimit, RemoteCommit, RepoSnapshot

logger = logging.getLogger(__name__)


class GitHubClientError(ReleaseTrackerError):
    """Error from GitHub client operations."""

    kind = ErrorKind.TRANSPORT

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class GitHubAuthError(GitHubClientError):
    """HTTP 401: the token is missing, expired or revoked."""

    kind = ErrorKind.AUTH


class GitHubRateLimitError(GitHubClientError):
    """HTTP 403: the rate limit budget is exhausted."""

    kind = ErrorKind.RATE_LIMIT


class GitHubTransportError(GitHubClientError):
    """Network failure, non-2xx status or undecodable response body."""

    kind = ErrorKind.TRANSPORT


class GitHubProtocolError(GitHubClientError):
    """A well-formed response that carries GraphQL errors."""

    kind = ErrorKind.PROTOCOL

    def __init__(self, message: str, *, errors: list[dict[str, Any]] | None = None) -> None:
        super().__init__(message)
        self.errors = errors or []


class RepositoryNotFoundError(GitHubProtocolError):
    """The repository does not exist (or has no commits) upstream."""


_COMMIT_FIELDS = """
            ... on Commit {
              oid
              message
              committedDate
              author {
                name
              }
              url
            }"""

_REPO_FIELDS = f"""
fragment RepoFields on Repository {{
  latestRelease {{
    tagName
    name
    publishedAt
    url
    description
  }}
  defaultBranchRef {{
    target {{{_COMMIT_FIELDS}
    }}
  }}
}}"""


def repo_alias(index: int) -> str:
    return f"repo{index}"


def build_batch_query(repos: Sequence[tuple[str, str]]) -> tuple[str, dict[str, str]]:
    """
    Build one GraphQL query covering every (owner, name) pair.

    Each repository gets an alias `repo<N>` matching its position; owner and
    name travel as variables so no user input is spliced into the query text.

    Returns:
        (query, variables)
    """
    params: list[str] = []
    selections: list[str] = []
    variables: dict[str, str] = {}
    for index, (owner, name) in enumerate(repos):
        params.append(f"$owner{index}: String!, $name{index}: String!")
        selections.append(
            f"  {repo_alias(index)}: repository(owner: $owner{index}, name: $name{index}) "
            "{ ...RepoFields }"
        )
        variables[f"owner{index}"] = owner
        variables[f"name{index}"] = name

    query = "query(" + ", ".join(params) + ") {\n" + "\n".join(selections) + "\n}\n" + _REPO_FIELDS
    return query, variables


def _is_not_found(error: dict[str, Any]) -> bool:
    return error.get("type") == "NOT_FOUND"


class GitHubClient:
    """
    Client for the GitHub GraphQL and REST APIs.

    Example:
        >>> client = GitHubClient.from_config(config, token="ghp_...")
        >>> snapshots = client.fetch_snapshots([("sveltejs", "svelte")])
        >>> snapshots[0].release.tag_name
        'svelte@5.0.0'
    """

    def __init__(
        self,
        token: str | None = None,
        *,
        api_url: str = "https://api.github.com",
        graphql_url: str = "https://api.github.com/graphql",
        user_agent: str = "ReleaseTracker-App",
        timeout: float = 30.0,
        client: httpx.Client | None = None,
    ) -> None:
        """
        Initialize GitHubClient.

        Args:
            token: GitHub token; requests are anonymous when None
            api_url: REST API base URL
            graphql_url: GraphQL endpoint
            user_agent: User-Agent header value
            timeout: Per-request timeout in seconds
            client: Pre-built httpx.Client to reuse (e.g. in tests)
        """
        self.api_url = api_url.rstrip("/")
        self.graphql_url = graphql_url
        self.timeout = timeout
        self.client = client
        self.headers = {
            "Content-Type": "application/json",
            "User-Agent": user_agent,
        }
        if token:
            self.headers["Authorization"] = f"bearer {token}"

    @classmethod
    def from_config(
        cls,
        config: AppConfig,
        token: str | None,
        client: httpx.Client | None = None,
    ) -> GitHubClient:
        return cls(
            token,
            api_url=config.api_url,
            graphql_url=config.graphql_url,
            user_agent=config.user_agent,
            timeout=config.request_timeout,
            client=client,
        )

    def _request(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        """Send a request with either the injected client or a temporary one."""
        try:
            if self.client is not None:
                response = self.client.request(
                    method, url, headers=self.headers, timeout=self.timeout, **kwargs
                )
            else:
                with httpx.Client(headers=self.headers, timeout=self.timeout) as client:
                    response = client.request(method, url, **kwargs)
        except httpx.HTTPError as e:
            raise GitHubTransportError(f"GitHub API request failed: {e}") from e

        if response.status_code == 401:
            raise GitHubAuthError(
                "GitHub API authentication failed. Check your GitHub token.",
                status_code=401,
            )
        if response.status_code == 403:
            raise GitHubRateLimitError("GitHub API rate limit exceeded", status_code=403)
        if not response.is_success:
            raise GitHubTransportError(
                f"GitHub API error: {response.status_code} {response.reason_phrase}",
                status_code=response.status_code,
            )
        return response

    def _json(self, response: httpx.Response) -> dict[str, Any]:
        try:
            payload = response.json()
        except ValueError as e:
            raise GitHubTransportError(f"Failed to parse GitHub API response: {e}") from e
        if not isinstance(payload, dict):
            raise GitHubTransportError("Unexpected GitHub API response shape")
        return payload

    def graphql(self, query: str, variables: dict[str, Any] | None = None) -> dict[str, Any]:
        """
        Run a GraphQL query and return the decoded payload (data + errors).

        Raises:
            GitHubClientError: On transport or HTTP-status failures
        """
        body: dict[str, Any] = {"query": query}
        if variables:
            body["variables"] = variables
        logger.debug("POST %s (%d variables)", self.graphql_url, len(variables or {}))
        return self._json(self._request("POST", self.graphql_url, json=body))

    def fetch_snapshots(self, repos: Sequence[tuple[str, str]]) -> list[RepoSnapshot | None]:
        """
        Fetch latest release and tip commit for every repository in one call.

        Args:
            repos: (owner, name) pairs

        Returns:
            One entry per input pair, in order; None where the repository was
            not found upstream

        Raises:
            GitHubClientError: If the batch as a whole failed
        """
        if not repos:
            return []

        query, variables = build_batch_query(repos)
        payload = self.graphql(query, variables)

        errors = payload.get("errors") or []
        fatal = [e for e in errors if not _is_not_found(e)]
        if fatal:
            logger.error("GraphQL errors: %s", fatal)
            message = fatal[0].get("message") or "GraphQL query failed"
            raise GitHubProtocolError(message, errors=fatal)

        data = payload.get("data")
        if not isinstance(data, dict):
            raise GitHubProtocolError("GraphQL response carried no data", errors=errors)

        snapshots: list[RepoSnapshot | None] = []
        for index in range(len(repos)):
            node = data.get(repo_alias(index))
            snapshots.append(RepoSnapshot.from_graphql(node) if node else None)
        return snapshots

    def fetch_last_commit(self, owner: str, name: str) -> RemoteCommit:
        """
        Fetch the tip commit of one repository's default branch.

        Raises:
            RepositoryNotFoundError: If the repository or its commits are missing
        """
        query = (
            "query($owner: String!, $name: String!) {\n"
            "  repository(owner: $owner, name: $name) {\n"
            f"    defaultBranchRef {{\n      target {{{_COMMIT_FIELDS}\n      }}\n    }}\n"
            "  }\n}"
        )
        payload = self.graphql(query, {"owner": owner, "name": name})

        errors = payload.get("errors") or []
        if errors and not all(_is_not_found(e) for e in errors):
            raise GitHubProtocolError(
                errors[0].get("message") or "GraphQL query failed", errors=errors
            )

        repository = (payload.get("data") or {}).get("repository") or {}
        target = (repository.get("defaultBranchRef") or {}).get("target") or {}
        if not target.get("oid"):
            raise RepositoryNotFoundError(
                f"Repository not found or no commits available: {owner}/{name}",
                errors=errors,
            )
        return RemoteCommit.from_graphql(target)

    def get_rate_limit(self) -> RateLimit:
        """Fetch the core REST rate limit status."""
        payload = self._json(self._request("GET", f"{self.api_url}/rate_limit"))
        rate = payload.get("rate")
        if not isinstance(rate, dict):
            raise GitHubTransportError("Failed to fetch rate limit")
        return RateLimit.model_validate(rate)
