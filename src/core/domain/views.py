"""View models: one fully aggregated, presentation-ready structure per page.

Expected absence is never an exception. Each degradable section carries an
explicit state so the presentation layer can tell "nothing there" from
"could not fetch".
"""

from __future__ import annotations

from enum import Enum
from typing import Generic, TypeVar

from pydantic import BaseModel, Field
from pydantic.config import ConfigDict

from core.credentials import CredentialSource
from core.domain.models import (
    ActivityPoint,
    CommitRecord,
    ContributionCalendar,
    ContributorSummary,
    LanguageShare,
    RateLimitSnapshot,
    Repository,
    SimilarProfileCandidate,
    UserProfile,
)

T = TypeVar("T")


class _View(BaseModel):
    model_config = ConfigDict(frozen=True)


class SectionState(str, Enum):
    AVAILABLE = "available"
    ABSENT = "absent"
    FAILED = "failed"


class Section(_View, Generic[T]):
    """An optional part of a page that degrades on its own."""

    state: SectionState
    value: T | None = None
    error: str | None = None

    @property
    def available(self) -> bool:
        return self.state is SectionState.AVAILABLE


class FeaturedSource(str, Enum):
    PINNED = "pinned"
    RECENT = "recent"
    NONE = "none"


class FeaturedProjects(_View):
    source: FeaturedSource
    repositories: list[Repository] = Field(default_factory=list)


class LanguageCount(_View):
    language: str
    count: int


class RepositoryStats(_View):
    total_stars: int = 0
    total_forks: int = 0
    top_languages: list[LanguageCount] = Field(default_factory=list)


class ProfileView(_View):
    profile: UserProfile
    repositories: list[Repository] = Field(default_factory=list)
    skills: list[str] = Field(default_factory=list, max_length=6)
    featured: FeaturedProjects
    stats: RepositoryStats = Field(default_factory=RepositoryStats)
    profile_readme: Section[str]


class ProjectListState(str, Enum):
    READY = "ready"
    NO_REPOSITORIES = "no_repositories"


class RepositoryFilter(str, Enum):
    ALL = "all"
    SOURCE = "source"
    FORKED = "forked"


class RepositorySort(str, Enum):
    STARS = "stars"
    UPDATED = "updated"
    NAME = "name"


class ProjectListView(_View):
    username: str
    state: ProjectListState
    featured: FeaturedProjects
    repositories: list[Repository] = Field(default_factory=list)
    total_count: int = 0
    filter: RepositoryFilter = RepositoryFilter.ALL
    sort: RepositorySort = RepositorySort.STARS
    query: str | None = None


class ProjectDetailView(_View):
    repository: Repository
    readme: Section[str]
    contributors: Section[list[ContributorSummary]]
    languages: Section[list[LanguageShare]]


class SimilarProfilesState(str, Enum):
    FOUND = "found"
    NONE_FOUND = "none_found"
    NO_SIGNAL = "no_signal"


class SimilarProfilesView(_View):
    username: str
    state: SimilarProfilesState
    candidates: list[SimilarProfileCandidate] = Field(default_factory=list, max_length=6)


class ActivitySource(str, Enum):
    PARTICIPATION = "participation"
    PUSH_HISTORY = "push_history"
    EMPTY = "empty"


class ActivityView(_View):
    username: str
    source: ActivitySource
    repository: str | None = Field(default=None, description="Repository whose participation was used.")
    points: list[ActivityPoint] = Field(default_factory=list)
    calendar: ContributionCalendar = Field(default_factory=ContributionCalendar)


class CommitHistoryState(str, Enum):
    COMMITS = "commits"
    SYNTHETIC = "synthetic"
    EMPTY = "empty"


class CommitHistoryView(_View):
    username: str
    state: CommitHistoryState
    commits: list[CommitRecord] = Field(default_factory=list)


class RateLimitStatus(_View):
    snapshot: RateLimitSnapshot
    has_env_token: bool
    has_client_token: bool
    token_source: CredentialSource | None = None
    low: bool = False
