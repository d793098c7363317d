"""Domain models (Pydantic v2).

Why Pydantic in the domain:
- Strict validation at the edge: a payload that does not fit these shapes is a
  `DecodeError`, not a half-filled dict travelling through the aggregators.
- Self-documenting contracts (Field) without coupling the Core to I/O.

Note:
- These models describe *what* the GitHub data is, not *how* it is fetched.
- Every model is frozen; aggregators build new instances instead of mutating.
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel, Field, field_validator
from pydantic.config import ConfigDict


class _Entity(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True, populate_by_name=True)


class RateLimitBucket(_Entity):
    limit: int = Field(default=0, ge=0)
    remaining: int = Field(default=0, ge=0)
    reset: int = Field(default=0, description="Epoch seconds when the window resets.")
    used: int = Field(default=0, ge=0)

    @property
    def reset_at(self) -> datetime:
        return datetime.fromtimestamp(self.reset, tz=timezone.utc)


class RateLimitSnapshot(_Entity):
    """Point-in-time quota per API category. Stale as soon as it is read."""

    rate: RateLimitBucket = Field(default_factory=RateLimitBucket)
    core: RateLimitBucket = Field(default_factory=RateLimitBucket)
    search: RateLimitBucket = Field(default_factory=RateLimitBucket)
    graphql: RateLimitBucket = Field(default_factory=RateLimitBucket)

    @property
    def authenticated(self) -> bool:
        # Anonymous core quota is 60/hour; anything above means a token was used.
        return self.core.limit > 60

    def is_low(self, threshold: int) -> bool:
        return self.core.remaining <= threshold


class UserProfile(_Entity):
    login: str = Field(..., min_length=1, description="Unique GitHub handle.")
    name: str | None = None
    bio: str | None = None
    avatar_url: str | None = None
    html_url: str | None = None
    company: str | None = None
    blog: str | None = None
    location: str | None = None
    email: str | None = None
    twitter_username: str | None = None
    hireable: bool | None = None
    public_repos: int = Field(default=0, ge=0)
    public_gists: int = Field(default=0, ge=0)
    followers: int = Field(default=0, ge=0)
    following: int = Field(default=0, ge=0)
    created_at: str | None = Field(default=None, description="Join date (ISO-8601).")

    @property
    def display_name(self) -> str:
        return self.name or self.login


class UserSummary(_Entity):
    """Entry of a followers/following list."""

    login: str
    avatar_url: str | None = None
    html_url: str | None = None


class RepositoryOwner(_Entity):
    login: str
    avatar_url: str | None = None
    html_url: str | None = None


class LicenseInfo(_Entity):
    key: str | None = None
    name: str | None = None


class RepositorySource(str, Enum):
    REST = "rest"
    PINNED = "pinned"


class Repository(_Entity):
    """Canonical repository shape.

    Built straight from the REST payload, or from a GraphQL pinned item through
    `core.services.featured.reconcile_pinned`.
    """

    id: int | None = None
    name: str = Field(..., min_length=1)
    owner: RepositoryOwner
    full_name: str | None = None
    html_url: str | None = None
    description: str | None = None
    fork: bool = False
    language: str | None = None
    stargazers_count: int = Field(default=0, ge=0)
    forks_count: int = Field(default=0, ge=0)
    watchers_count: int = Field(default=0, ge=0)
    open_issues_count: int = Field(default=0, ge=0)
    size: int = Field(default=0, ge=0)
    topics: list[str] = Field(default_factory=list)
    created_at: str | None = None
    updated_at: str | None = None
    pushed_at: str | None = None
    homepage: str | None = None
    license: LicenseInfo | None = None
    default_branch: str | None = None
    archived: bool = False
    source: RepositorySource = RepositorySource.REST

    @field_validator("homepage")
    @classmethod
    def _blank_homepage(cls, value: str | None) -> str | None:
        # GitHub sends "" for repositories that never set one.
        return value or None

    @field_validator("topics", mode="before")
    @classmethod
    def _null_topics(cls, value: object) -> object:
        return value if value is not None else []

    @property
    def slug(self) -> str:
        return self.full_name or f"{self.owner.login}/{self.name}"


class PinnedRepository(_Entity):
    """Partial repository shape returned by the GraphQL `pinnedItems` query."""

    name: str = Field(..., min_length=1)
    description: str | None = None
    url: str | None = None
    stargazer_count: int = Field(default=0, ge=0)
    fork_count: int = Field(default=0, ge=0)
    primary_language: str | None = None
    primary_language_color: str | None = None
    topics: list[str] = Field(default_factory=list, max_length=5)
    owner_login: str
    owner_avatar_url: str | None = None


class ReadmeFile(_Entity):
    name: str | None = None
    path: str | None = None
    html_url: str | None = None
    content: str = ""
    encoding: str = "base64"


class ContributorSummary(_Entity):
    login: str
    avatar_url: str | None = None
    html_url: str | None = None
    contributions: int = Field(default=0, ge=0)


class LanguageShare(_Entity):
    language: str
    bytes: int = Field(..., ge=0)
    percentage: int = Field(..., ge=0)


class ParticipationStats(_Entity):
    """Weekly commit counts for the last 52 weeks, oldest first."""

    all_weeks: list[int] = Field(default_factory=list, alias="all")
    owner: list[int] = Field(default_factory=list)

    @property
    def owner_active(self) -> bool:
        return any(count > 0 for count in self.owner)


class CommitRecord(_Entity):
    sha: str
    message: str = ""
    html_url: str | None = None
    author_login: str | None = Field(
        default=None,
        description="GitHub account of the author; None when GitHub could not resolve one.",
    )
    author_avatar_url: str | None = None
    author_name: str | None = None
    date: str | None = None
    repository: str
    repository_url: str | None = None


class SimilarProfileCandidate(_Entity):
    login: str
    avatar_url: str | None = None
    html_url: str | None = None
    name: str | None = None
    reason: str


class ActivityPoint(_Entity):
    label: str
    period: str = Field(..., description="Week date (YYYY-MM-DD) or month key (YYYY-MM).")
    count: int = Field(..., ge=0)


class ContributionDay(_Entity):
    date: str
    count: int = Field(default=0, ge=0)


class ContributionCalendar(_Entity):
    days: list[ContributionDay] = Field(default_factory=list)
    months: list[str] = Field(default_factory=list)
    total: int = Field(default=0, ge=0)


class InsightReport(_Entity):
    """Narrative summary of a portfolio (heuristic or AI-generated)."""

    summary: str = Field(..., min_length=1, max_length=20_000)
    highlights: list[str] = Field(default_factory=list)
    model: str = Field(default="heuristic")
    generated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
