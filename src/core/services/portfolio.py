"""Page-level entry points.

One coroutine per page. Each resolves the credential once, opens a GitHub
client for the duration of the page, runs the aggregator and closes the client.
Only fatal conditions raise (`ProfileNotFound`, `RepositoryNotFound`,
`UpstreamError`, `Unreachable`, `DecodeError` on required data); everything
else is a state in the returned view.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from datetime import datetime
from typing import AsyncIterator

from adapters.ai_analyst import analyze_portfolio
from adapters.github_client import GitHubClient
from core.config import AppSettings
from core.credentials import resolve_credential
from core.domain.models import InsightReport
from core.domain.views import (
    ActivityView,
    CommitHistoryView,
    ProfileView,
    ProjectDetailView,
    ProjectListView,
    RateLimitStatus,
    RepositoryFilter,
    RepositorySort,
    SimilarProfilesView,
)
from core.errors import NotFound, ProfileNotFound
from core.interfaces.github import GitHubGateway
from core.services.activity import aggregate_activity
from core.services.commit_history import aggregate_commit_history
from core.services.featured import aggregate_project_list
from core.services.profile import aggregate_profile
from core.services.project_detail import aggregate_project_detail
from core.services.similar_profiles import discover_similar_profiles

logger = logging.getLogger(__name__)


@asynccontextmanager
async def open_gateway(
    settings: AppSettings | None = None,
    caller_token: str | None = None,
) -> AsyncIterator[GitHubClient]:
    settings = settings or AppSettings()
    credential = resolve_credential(settings, caller_token)
    logger.debug("Opening GitHub client (credential: %s)", credential.source.value if credential else "none")
    async with GitHubClient(settings, credential) as client:
        yield client


async def _profile_and_repositories(gateway: GitHubGateway, username: str):
    try:
        profile = await gateway.get_user(username)
    except NotFound as exc:
        raise ProfileNotFound(username, url=exc.url) from exc
    repositories = await gateway.list_user_repositories(profile.login)
    return profile, repositories


async def profile_page(
    username: str,
    *,
    caller_token: str | None = None,
    settings: AppSettings | None = None,
    now: datetime | None = None,
) -> ProfileView:
    async with open_gateway(settings, caller_token) as gateway:
        return await aggregate_profile(gateway, username, now=now)


async def project_list_page(
    username: str,
    *,
    caller_token: str | None = None,
    settings: AppSettings | None = None,
    filter: RepositoryFilter = RepositoryFilter.ALL,
    sort: RepositorySort = RepositorySort.STARS,
    query: str | None = None,
    now: datetime | None = None,
) -> ProjectListView:
    async with open_gateway(settings, caller_token) as gateway:
        return await aggregate_project_list(gateway, username, filter=filter, sort=sort, query=query, now=now)


async def project_detail_page(
    username: str,
    repository: str,
    *,
    caller_token: str | None = None,
    settings: AppSettings | None = None,
) -> ProjectDetailView:
    async with open_gateway(settings, caller_token) as gateway:
        return await aggregate_project_detail(gateway, username, repository)


async def similar_profiles_page(
    username: str,
    *,
    caller_token: str | None = None,
    settings: AppSettings | None = None,
) -> SimilarProfilesView:
    async with open_gateway(settings, caller_token) as gateway:
        profile, repositories = await _profile_and_repositories(gateway, username)
        return await discover_similar_profiles(gateway, profile, repositories)


async def activity_page(
    username: str,
    *,
    caller_token: str | None = None,
    settings: AppSettings | None = None,
    now: datetime | None = None,
) -> ActivityView:
    async with open_gateway(settings, caller_token) as gateway:
        return await aggregate_activity(gateway, username, now=now)


async def commit_history_page(
    username: str,
    *,
    caller_token: str | None = None,
    settings: AppSettings | None = None,
) -> CommitHistoryView:
    async with open_gateway(settings, caller_token) as gateway:
        return await aggregate_commit_history(gateway, username)


async def insights_page(
    username: str,
    *,
    caller_token: str | None = None,
    settings: AppSettings | None = None,
    now: datetime | None = None,
) -> InsightReport:
    settings = settings or AppSettings()
    async with open_gateway(settings, caller_token) as gateway:
        profile, repositories = await _profile_and_repositories(gateway, username)
    return await analyze_portfolio(profile=profile, repositories=repositories, settings=settings, now=now)


async def rate_limit_status(
    caller_token: str | None = None,
    *,
    settings: AppSettings | None = None,
) -> RateLimitStatus:
    settings = settings or AppSettings()
    credential = resolve_credential(settings, caller_token)
    async with open_gateway(settings, caller_token) as gateway:
        snapshot = await gateway.fetch_rate_limit()
    return RateLimitStatus(
        snapshot=snapshot,
        has_env_token=bool((settings.github_access_token or "").strip()),
        has_client_token=bool((caller_token or "").strip()),
        token_source=credential.source if credential else None,
        low=snapshot.is_low(settings.rate_limit_warning_threshold),
    )
