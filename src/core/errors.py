"""Error taxonomy.

Only *fatal* conditions are exceptions. Legitimately empty results (no README,
no pinned repositories, no signal for similar profiles) are explicit states in
the view models and never raise.
"""

from __future__ import annotations

from typing import Any


class GitFolioError(Exception):
    """Base class for every error raised by this project."""


class GitHubError(GitFolioError):
    """Base class for failures talking to GitHub."""

    def __init__(self, message: str, *, url: str | None = None) -> None:
        super().__init__(message)
        self.url = url


class Unreachable(GitHubError):
    """Network-level failure (DNS, connection reset, timeout)."""


class UpstreamError(GitHubError):
    """GitHub answered with a non-2xx status."""

    def __init__(self, status_code: int, message: str = "", *, url: str | None = None) -> None:
        super().__init__(message or f"GitHub API error {status_code}", url=url)
        self.status_code = status_code


class NotFound(UpstreamError):
    """The entity is genuinely absent upstream (HTTP 404)."""

    def __init__(self, message: str = "", *, url: str | None = None) -> None:
        super().__init__(404, message or "Not found", url=url)


class ProfileNotFound(NotFound):
    def __init__(self, username: str, *, url: str | None = None) -> None:
        super().__init__(f"GitHub profile '{username}' not found", url=url)
        self.username = username


class RepositoryNotFound(NotFound):
    def __init__(self, owner: str, repository: str, *, url: str | None = None) -> None:
        super().__init__(f"Repository '{owner}/{repository}' not found", url=url)
        self.owner = owner
        self.repository = repository


class DecodeError(GitHubError):
    """The body could not be parsed or did not match the expected shape."""


class GraphQLError(GitHubError):
    """A GraphQL response carried `errors` and no `data`."""

    def __init__(self, errors: list[dict[str, Any]], *, url: str | None = None) -> None:
        messages = [str(e.get("message")) for e in errors if isinstance(e, dict) and e.get("message")]
        super().__init__("; ".join(messages) or "GraphQL query failed", url=url)
        self.errors = errors


def describe_error(exc: BaseException) -> str:
    """Short, user-facing classification of an exception."""

    if isinstance(exc, NotFound):
        return f"not found: {exc}"
    if isinstance(exc, UpstreamError):
        return f"upstream error {exc.status_code}: {exc}"
    if isinstance(exc, Unreachable):
        return f"unreachable: {exc}"
    if isinstance(exc, DecodeError):
        return f"malformed response: {exc}"
    if isinstance(exc, GraphQLError):
        return f"graphql error: {exc}"
    return f"{type(exc).__name__}: {exc}"
