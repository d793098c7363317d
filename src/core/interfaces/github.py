"""GitHub gateway contract.

Why Protocol:
- Aggregators depend on this structural contract, not on httpx.
- Tests swap in an in-memory gateway that records calls, which is how the
  "zero upstream calls" guarantees are checked.
"""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable

from pydantic import BaseModel, Field

from core.domain.models import (
    CommitRecord,
    ContributorSummary,
    ParticipationStats,
    RateLimitSnapshot,
    ReadmeFile,
    Repository,
    UserProfile,
    UserSummary,
)


class GraphQLResponse(BaseModel):
    """`data`/`errors` envelope. Both may be present (partial success)."""

    data: dict[str, Any] | None = None
    errors: list[dict[str, Any]] = Field(default_factory=list)

    @property
    def partial(self) -> bool:
        return self.data is not None and bool(self.errors)


@runtime_checkable
class GitHubGateway(Protocol):
    """Minimal contract for reading GitHub.

    Every method either returns a typed result or raises one of
    `core.errors.Unreachable`, `UpstreamError` (`NotFound` for 404),
    `DecodeError` or `GraphQLError`.
    """

    @property
    def authenticated(self) -> bool: ...

    async def get_user(self, username: str) -> UserProfile: ...

    async def list_user_repositories(self, username: str, *, per_page: int = 100) -> list[Repository]: ...

    async def get_repository(self, owner: str, repository: str) -> Repository: ...

    async def get_readme(self, owner: str, repository: str) -> ReadmeFile: ...

    async def list_contributors(self, owner: str, repository: str, *, per_page: int = 10) -> list[ContributorSummary]: ...

    async def get_languages(self, owner: str, repository: str) -> dict[str, int]: ...

    async def list_commits(self, owner: str, repository: str, *, per_page: int = 5) -> list[CommitRecord]: ...

    async def get_participation(self, owner: str, repository: str) -> ParticipationStats | None: ...

    async def search_repositories(
        self,
        query: str,
        *,
        sort: str = "stars",
        per_page: int = 5,
    ) -> list[Repository]: ...

    async def list_followers(self, username: str, *, per_page: int = 5) -> list[UserSummary]: ...

    async def list_following(self, username: str, *, per_page: int = 5) -> list[UserSummary]: ...

    async def fetch_rate_limit(self) -> RateLimitSnapshot: ...

    async def graphql(self, query: str, variables: dict[str, Any] | None = None) -> GraphQLResponse: ...
