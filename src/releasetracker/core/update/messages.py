"""
Normalization of git diagnostics into user-facing messages.

Clone and pull failures are reported to the user through a single rule:

- credential/authentication signature -> AUTH_REQUIRED_MESSAGE
- connectivity signature -> "Network error: <diagnostic>"
- anything else -> the trimmed diagnostic

Progress chatter (`Cloning into ...`, `Receiving objects: 42%`) is stripped
before the diagnostic is shown.
"""

from __future__ import annotations

import re
from enum import Enum
from urllib.parse import quote, urlsplit, urlunsplit

from pydantic import BaseModel

AUTH_REQUIRED_MESSAGE = (
    "Authentication required. Add a GitHub token with "
    "`releasetracker token set` (or set GITHUB_TOKEN) and try again."
)
NETWORK_ERROR_PREFIX = "Network error: "

_AUTH_SIGNATURES = (
    "authentication failed",
    "could not read username",
    "could not read password",
    "terminal prompts disabled",
    "invalid username or password",
    "invalid credentials",
    "permission denied (publickey)",
    "the requested url returned error: 401",
    "the requested url returned error: 403",
)

_NETWORK_SIGNATURES = (
    "could not resolve host",
    "could not resolve hostname",
    "failed to connect",
    "couldn't connect to server",
    "connection timed out",
    "operation timed out",
    "connection refused",
    "connection reset",
    "network is unreachable",
    "temporary failure in name resolution",
)

_PROGRESS_LINE = re.compile(
    r"^(?:Cloning into|remote: (?:Enumerating|Counting|Compressing|Total)"
    r"|Receiving objects|Resolving deltas|Unpacking objects|Updating files"
    r"|Checking out files|Filtering content|Updating [0-9a-f]+\.\.[0-9a-f]+)"
)

_URL_CREDENTIALS = re.compile(r"(?P<scheme>https?://)[^/@\s]+@")


class FailureKind(str, Enum):
    """Classification of a failed working-copy operation."""

    AUTH_REQUIRED = "auth-required"
    NETWORK_ERROR = "network-error"
    BRANCH_UNDETERMINABLE = "branch-undeterminable"
    PATH_CONFLICT = "path-conflict"
    UNKNOWN = "unknown"


class GitFailure(BaseModel):
    """A failed git step: what kind, what git said, what the user sees."""

    kind: FailureKind
    raw_diagnostic: str
    normalized_message: str


def redact_credentials(text: str) -> str:
    """Replace any user:password@ / token@ URL authority with ***@."""
    return _URL_CREDENTIALS.sub(r"\g<scheme>***@", text)


def inject_credential(url: str, token: str | None) -> str:
    """
    Return `url` with the token placed in its authority component.

    Only http(s) URLs are rewritten; SSH URLs and empty tokens pass through.
    """
    if not token:
        return url
    parts = urlsplit(url)
    if parts.scheme not in ("http", "https"):
        return url
    host = parts.hostname or ""
    if parts.port:
        host = f"{host}:{parts.port}"
    netloc = f"x-access-token:{quote(token, safe='')}@{host}"
    return urlunsplit((parts.scheme, netloc, parts.path, parts.query, parts.fragment))


def strip_progress(diagnostic: str) -> str:
    """Drop transient progress lines; carriage-return updates count as lines."""
    lines = re.split(r"[\r\n]+", diagnostic)
    kept = [line.rstrip() for line in lines if line.strip() and not _PROGRESS_LINE.match(line.strip())]
    return "\n".join(kept).strip()


def _contains(haystack: str, needles: tuple[str, ...]) -> bool:
    lowered = haystack.lower()
    return any(needle in lowered for needle in needles)


def normalize_git_error(raw_diagnostic: str) -> GitFailure:
    """
    Classify a git diagnostic and build the message shown to the user.

    Example:
        >>> normalize_git_error("fatal: Authentication failed for 'https://...'").kind
        <FailureKind.AUTH_REQUIRED: 'auth-required'>
    """
    raw = redact_credentials(raw_diagnostic or "")
    cleaned = strip_progress(raw) or raw.strip() or "git command failed"

    if _contains(raw, _AUTH_SIGNATURES):
        return GitFailure(
            kind=FailureKind.AUTH_REQUIRED,
            raw_diagnostic=raw,
            normalized_message=AUTH_REQUIRED_MESSAGE,
        )
    if _contains(raw, _NETWORK_SIGNATURES):
        return GitFailure(
            kind=FailureKind.NETWORK_ERROR,
            raw_diagnostic=raw,
            normalized_message=f"{NETWORK_ERROR_PREFIX}{cleaned}",
        )
    return GitFailure(
        kind=FailureKind.UNKNOWN,
        raw_diagnostic=raw,
        normalized_message=cleaned,
    )
