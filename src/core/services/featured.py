"""Featured repositories and the project list.

Featured repositories come from an ordered fallback chain:
1. the user's pinned items (GraphQL, only with a credential);
2. otherwise the most recently pushed non-fork repositories.

Pinned items arrive in a partial GraphQL shape and are reconciled into the
canonical `Repository` against the REST list of the same user.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Sequence

from adapters.github_queries import PINNED_ITEMS_QUERY, parse_pinned_items
from core.domain.models import PinnedRepository, Repository, RepositoryOwner, RepositorySource
from core.domain.views import (
    FeaturedProjects,
    FeaturedSource,
    ProjectListState,
    ProjectListView,
    RepositoryFilter,
    RepositorySort,
)
from core.errors import NotFound, ProfileNotFound
from core.interfaces.github import GitHubGateway
from core.services.fallback import Outcome, Stage, first_non_empty, gather_settled

logger = logging.getLogger(__name__)

RECENT_FEATURED_LIMIT = 4


def github_timestamp(moment: datetime) -> str:
    return moment.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


async def fetch_pinned(gateway: GitHubGateway, username: str) -> list[PinnedRepository]:
    """Pinned repositories, or nothing when no credential is available.

    Without a credential no GraphQL call is attempted at all.
    """

    if not gateway.authenticated:
        return []
    response = await gateway.graphql(PINNED_ITEMS_QUERY, {"login": username})
    return parse_pinned_items(response)


def reconcile_pinned(pinned: PinnedRepository, rest: Sequence[Repository], *, now: datetime) -> Repository:
    """Merge one GraphQL pinned item with its REST record (exact, case-sensitive name match)."""

    match = next((repo for repo in rest if repo.name == pinned.name), None)
    placeholder = github_timestamp(now)
    if match is None:
        logger.debug("Pinned repository '%s' has no REST counterpart", pinned.name)

    return Repository(
        name=pinned.name,
        owner=RepositoryOwner(
            login=pinned.owner_login,
            avatar_url=pinned.owner_avatar_url,
            html_url=f"https://github.com/{pinned.owner_login}",
        ),
        full_name=f"{pinned.owner_login}/{pinned.name}",
        html_url=pinned.url,
        description=pinned.description,
        fork=match.fork if match else False,
        language=pinned.primary_language,
        stargazers_count=pinned.stargazer_count,
        forks_count=pinned.fork_count,
        topics=list(pinned.topics),
        created_at=(match.created_at if match else None) or placeholder,
        updated_at=(match.updated_at if match else None) or placeholder,
        pushed_at=(match.pushed_at if match else None) or placeholder,
        homepage=match.homepage if match else None,
        source=RepositorySource.PINNED,
    )


def recent_non_forks(repositories: Sequence[Repository], *, limit: int = RECENT_FEATURED_LIMIT) -> list[Repository]:
    """Non-fork repositories, newest `pushed_at` first.

    Raw ISO-8601 string comparison; ties keep upstream order and repositories
    that were never pushed sort last.
    """

    non_forks = [repo for repo in repositories if not repo.fork]
    return sorted(non_forks, key=lambda repo: repo.pushed_at or "", reverse=True)[:limit]


async def resolve_featured(
    repositories: Sequence[Repository],
    pinned: Outcome[list[PinnedRepository]],
    *,
    authenticated: bool,
    now: datetime | None = None,
) -> FeaturedProjects:
    if not repositories:
        return FeaturedProjects(source=FeaturedSource.NONE)

    moment = now or datetime.now(timezone.utc)

    async def pinned_stage() -> list[Repository]:
        return [reconcile_pinned(item, repositories, now=moment) for item in pinned.unwrap()]

    async def recent_stage() -> list[Repository]:
        return recent_non_forks(repositories)

    result = await first_non_empty(
        [
            Stage(FeaturedSource.PINNED.value, pinned_stage, enabled=authenticated),
            Stage(FeaturedSource.RECENT.value, recent_stage),
        ],
        context="featured",
    )
    if result.empty:
        return FeaturedProjects(source=FeaturedSource.NONE)
    return FeaturedProjects(source=FeaturedSource(result.stage), repositories=result.items)


def select_repositories(
    repositories: Sequence[Repository],
    *,
    filter: RepositoryFilter = RepositoryFilter.ALL,
    sort: RepositorySort = RepositorySort.STARS,
    query: str | None = None,
) -> list[Repository]:
    """Apply the project list controls: filter, then search, then a stable sort."""

    result = list(repositories)
    if filter is RepositoryFilter.FORKED:
        result = [repo for repo in result if repo.fork]
    elif filter is RepositoryFilter.SOURCE:
        result = [repo for repo in result if not repo.fork]

    needle = (query or "").strip().lower()
    if needle:
        result = [
            repo
            for repo in result
            if needle in repo.name.lower() or (repo.description and needle in repo.description.lower())
        ]

    if sort is RepositorySort.STARS:
        result.sort(key=lambda repo: repo.stargazers_count, reverse=True)
    elif sort is RepositorySort.UPDATED:
        result.sort(key=lambda repo: repo.updated_at or "", reverse=True)
    elif sort is RepositorySort.NAME:
        result.sort(key=lambda repo: repo.name.casefold())
    return result


async def aggregate_project_list(
    gateway: GitHubGateway,
    username: str,
    *,
    filter: RepositoryFilter = RepositoryFilter.ALL,
    sort: RepositorySort = RepositorySort.STARS,
    query: str | None = None,
    now: datetime | None = None,
) -> ProjectListView:
    repos_outcome, pinned_outcome = await gather_settled(
        gateway.list_user_repositories(username),
        fetch_pinned(gateway, username),
    )
    try:
        repositories = repos_outcome.unwrap()
    except NotFound as exc:
        raise ProfileNotFound(username, url=exc.url) from exc

    if not repositories:
        return ProjectListView(
            username=username,
            state=ProjectListState.NO_REPOSITORIES,
            featured=FeaturedProjects(source=FeaturedSource.NONE),
            filter=filter,
            sort=sort,
            query=query,
        )

    featured = await resolve_featured(
        repositories,
        pinned_outcome,
        authenticated=gateway.authenticated,
        now=now,
    )
    return ProjectListView(
        username=username,
        state=ProjectListState.READY,
        featured=featured,
        repositories=select_repositories(repositories, filter=filter, sort=sort, query=query),
        total_count=len(repositories),
        filter=filter,
        sort=sort,
        query=query,
    )
