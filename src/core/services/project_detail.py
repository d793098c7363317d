"""Project detail page aggregation.

Repository metadata is required. README, contributors and languages are
optional: each one is fetched concurrently and degrades only its own section.
"""

from __future__ import annotations

import logging
import math
from typing import Mapping

from core.domain.models import ContributorSummary, LanguageShare
from core.domain.views import ProjectDetailView, Section, SectionState
from core.errors import NotFound, RepositoryNotFound, describe_error
from core.interfaces.github import GitHubGateway
from core.services.fallback import Outcome, gather_settled
from core.services.profile import readme_section

logger = logging.getLogger(__name__)

MAX_CONTRIBUTORS = 10


def language_shares(breakdown: Mapping[str, int]) -> list[LanguageShare]:
    """Per-language share of total bytes.

    Each share is rounded half-up on its own; the sum may drift to 99 or 101
    and is deliberately left that way.
    """

    total = sum(breakdown.values())
    if total <= 0:
        return []
    return [
        LanguageShare(language=language, bytes=count, percentage=math.floor(count / total * 100 + 0.5))
        for language, count in breakdown.items()
    ]


def _failure(outcome: Outcome[object], section: str) -> str | None:
    error = describe_error(outcome.error) if outcome.error else None
    logger.info("Project detail section '%s' degraded: %s", section, error)
    return error


def contributors_section(outcome: Outcome[list[ContributorSummary]]) -> Section[list[ContributorSummary]]:
    if not outcome.ok:
        return Section[list[ContributorSummary]](state=SectionState.FAILED, error=_failure(outcome, "contributors"))
    contributors = outcome.unwrap()[:MAX_CONTRIBUTORS]
    if not contributors:
        return Section[list[ContributorSummary]](state=SectionState.ABSENT, value=[])
    return Section[list[ContributorSummary]](state=SectionState.AVAILABLE, value=contributors)


def languages_section(outcome: Outcome[dict[str, int]]) -> Section[list[LanguageShare]]:
    if not outcome.ok:
        return Section[list[LanguageShare]](state=SectionState.FAILED, error=_failure(outcome, "languages"))
    shares = language_shares(outcome.unwrap())
    if not shares:
        return Section[list[LanguageShare]](state=SectionState.ABSENT, value=[])
    return Section[list[LanguageShare]](state=SectionState.AVAILABLE, value=shares)


async def aggregate_project_detail(
    gateway: GitHubGateway,
    owner: str,
    repository: str,
) -> ProjectDetailView:
    meta, readme, contributors, languages = await gather_settled(
        gateway.get_repository(owner, repository),
        gateway.get_readme(owner, repository),
        gateway.list_contributors(owner, repository, per_page=MAX_CONTRIBUTORS),
        gateway.get_languages(owner, repository),
    )
    try:
        repo = meta.unwrap()
    except NotFound as exc:
        raise RepositoryNotFound(owner, repository, url=exc.url) from exc

    return ProjectDetailView(
        repository=repo,
        readme=readme_section(readme),
        contributors=contributors_section(contributors),
        languages=languages_section(languages),
    )
