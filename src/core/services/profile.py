"""Profile page aggregation.

The profile fetch is required and runs first: when it fails nothing else is
requested. The repository list (required), pinned items and the profile README
(both optional) are then fetched together.
"""

from __future__ import annotations

import base64
import binascii
import logging
from collections import Counter
from datetime import datetime
from typing import Sequence

from core.domain.models import ReadmeFile, Repository
from core.domain.views import LanguageCount, ProfileView, RepositoryStats, Section, SectionState
from core.errors import DecodeError, NotFound, ProfileNotFound, describe_error
from core.interfaces.github import GitHubGateway
from core.services.featured import fetch_pinned, resolve_featured
from core.services.fallback import Outcome, gather_settled

logger = logging.getLogger(__name__)

MAX_SKILLS = 6
MAX_TOP_LANGUAGES = 5


def derive_skills(repositories: Sequence[Repository], *, limit: int = MAX_SKILLS) -> list[str]:
    """Distinct non-null languages in first-appearance order."""

    skills: list[str] = []
    for repo in repositories:
        if repo.language and repo.language not in skills:
            skills.append(repo.language)
            if len(skills) == limit:
                break
    return skills


def repository_stats(repositories: Sequence[Repository]) -> RepositoryStats:
    counts = Counter(repo.language for repo in repositories if repo.language)
    # Counter.most_common keeps insertion order for equal counts.
    top = [LanguageCount(language=lang, count=n) for lang, n in counts.most_common(MAX_TOP_LANGUAGES)]
    return RepositoryStats(
        total_stars=sum(repo.stargazers_count for repo in repositories),
        total_forks=sum(repo.forks_count for repo in repositories),
        top_languages=top,
    )


def decode_readme(readme: ReadmeFile) -> str:
    """Decode README content (base64 -> UTF-8, invalid bytes replaced)."""

    if readme.encoding.lower() != "base64":
        return readme.content
    try:
        raw = base64.b64decode("".join(readme.content.split()), validate=True)
    except (binascii.Error, ValueError) as exc:
        raise DecodeError(f"README '{readme.path or readme.name}' is not valid base64") from exc
    return raw.decode("utf-8", errors="replace")


def readme_section(outcome: Outcome[ReadmeFile]) -> Section[str]:
    """No README is an explicit ABSENT state; any other failure degrades to FAILED."""

    if outcome.error is not None:
        if isinstance(outcome.error, NotFound):
            return Section[str](state=SectionState.ABSENT)
        logger.info("README unavailable: %s", describe_error(outcome.error))
        return Section[str](state=SectionState.FAILED, error=describe_error(outcome.error))
    try:
        text = decode_readme(outcome.unwrap())
    except DecodeError as exc:
        return Section[str](state=SectionState.FAILED, error=describe_error(exc))
    return Section[str](state=SectionState.AVAILABLE, value=text)


async def aggregate_profile(
    gateway: GitHubGateway,
    username: str,
    *,
    now: datetime | None = None,
) -> ProfileView:
    try:
        profile = await gateway.get_user(username)
    except NotFound as exc:
        raise ProfileNotFound(username, url=exc.url) from exc

    repos_outcome, pinned_outcome, readme_outcome = await gather_settled(
        gateway.list_user_repositories(profile.login),
        fetch_pinned(gateway, profile.login),
        # `<login>/<login>` is the repository GitHub renders on the profile page.
        gateway.get_readme(profile.login, profile.login),
    )
    repositories = repos_outcome.unwrap()

    featured = await resolve_featured(
        repositories,
        pinned_outcome,
        authenticated=gateway.authenticated,
        now=now,
    )
    return ProfileView(
        profile=profile,
        repositories=repositories,
        skills=derive_skills(repositories),
        featured=featured,
        stats=repository_stats(repositories),
        profile_readme=readme_section(readme_outcome),
    )
