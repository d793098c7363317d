"""Similar-profile discovery.

Best-effort and explicitly heuristic. Three independent strategies look for
accounts related to the source profile:

- language: contributors of popular repositories in the user's primary language;
- topic: owners of popular repositories sharing the user's topics;
- social: accounts followed by the user's followers.

Results merge in that order, keyed by login (first reason wins), are capped at
six and enriched with a display name. With no signal at all (no repositories,
or repositories without languages and topics) nothing is requested upstream.
"""

from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass, field
from typing import Iterable, Sequence

from core.domain.models import Repository, SimilarProfileCandidate, UserProfile
from core.domain.views import SimilarProfilesState, SimilarProfilesView
from core.errors import describe_error
from core.interfaces.github import GitHubGateway
from core.services.fallback import gather_settled

logger = logging.getLogger(__name__)

MAX_CANDIDATES = 6
SEARCH_PAGE_SIZE = 5
LANGUAGE_REPOS_SCANNED = 3
CONTRIBUTORS_PER_REPO = 5
MAX_TOPICS = 3
SOCIAL_PAGE_SIZE = 5

TOPIC_REASON = "Works on similar topics"
SOCIAL_REASON = "Followed by people who follow you"


def language_reason(language: str) -> str:
    return f"Also works with {language}"


@dataclass(frozen=True)
class DiscoverySignal:
    primary_language: str | None = None
    topics: list[str] = field(default_factory=list)

    @property
    def empty(self) -> bool:
        return self.primary_language is None and not self.topics


def discovery_signal(repositories: Sequence[Repository]) -> DiscoverySignal:
    """Most used language (ties: first seen) and the first distinct topics."""

    counts = Counter(repo.language for repo in repositories if repo.language)
    primary = counts.most_common(1)[0][0] if counts else None

    topics: list[str] = []
    for repo in repositories:
        for topic in repo.topics:
            if topic not in topics:
                topics.append(topic)
    return DiscoverySignal(primary_language=primary, topics=topics[:MAX_TOPICS])


async def _by_language(gateway: GitHubGateway, source: str, language: str) -> list[SimilarProfileCandidate]:
    repos = await gateway.search_repositories(
        f"language:{language} stars:>10",
        sort="stars",
        per_page=SEARCH_PAGE_SIZE,
    )
    scanned = repos[:LANGUAGE_REPOS_SCANNED]
    outcomes = await gather_settled(
        *(gateway.list_contributors(repo.owner.login, repo.name, per_page=CONTRIBUTORS_PER_REPO) for repo in scanned)
    )
    found: list[SimilarProfileCandidate] = []
    for repo, outcome in zip(scanned, outcomes):
        if not outcome.ok:
            logger.info("Contributors of %s unavailable: %s", repo.slug, describe_error(outcome.error))
            continue
        for contributor in outcome.unwrap()[:CONTRIBUTORS_PER_REPO]:
            if contributor.login == source:
                continue
            found.append(
                SimilarProfileCandidate(
                    login=contributor.login,
                    avatar_url=contributor.avatar_url,
                    html_url=contributor.html_url,
                    reason=language_reason(language),
                )
            )
    return found


async def _by_topic(gateway: GitHubGateway, source: str, topics: Sequence[str]) -> list[SimilarProfileCandidate]:
    query = " ".join(f"topic:{topic}" for topic in topics) + " stars:>5"
    repos = await gateway.search_repositories(query, sort="stars", per_page=SEARCH_PAGE_SIZE)
    return [
        SimilarProfileCandidate(
            login=repo.owner.login,
            avatar_url=repo.owner.avatar_url,
            html_url=repo.owner.html_url,
            reason=TOPIC_REASON,
        )
        for repo in repos
        if repo.owner.login != source
    ]


async def _by_followers(gateway: GitHubGateway, source: str) -> list[SimilarProfileCandidate]:
    followers = await gateway.list_followers(source, per_page=SOCIAL_PAGE_SIZE)
    outcomes = await gather_settled(
        *(gateway.list_following(follower.login, per_page=SOCIAL_PAGE_SIZE) for follower in followers)
    )
    found: list[SimilarProfileCandidate] = []
    for follower, outcome in zip(followers, outcomes):
        if not outcome.ok:
            logger.info("Following list of %s unavailable: %s", follower.login, describe_error(outcome.error))
            continue
        for user in outcome.unwrap():
            if user.login == source:
                continue
            found.append(
                SimilarProfileCandidate(
                    login=user.login,
                    avatar_url=user.avatar_url,
                    html_url=user.html_url,
                    reason=SOCIAL_REASON,
                )
            )
    return found


def merge_candidates(
    batches: Iterable[Iterable[SimilarProfileCandidate]],
    *,
    limit: int = MAX_CANDIDATES,
) -> list[SimilarProfileCandidate]:
    """Deduplicate by login across strategies; the first discovery wins."""

    merged: dict[str, SimilarProfileCandidate] = {}
    for batch in batches:
        for candidate in batch:
            merged.setdefault(candidate.login, candidate)
    return list(merged.values())[:limit]


async def _enrich(gateway: GitHubGateway, candidates: list[SimilarProfileCandidate]) -> list[SimilarProfileCandidate]:
    outcomes = await gather_settled(*(gateway.get_user(candidate.login) for candidate in candidates))
    enriched: list[SimilarProfileCandidate] = []
    for candidate, outcome in zip(candidates, outcomes):
        if outcome.ok:
            enriched.append(candidate.model_copy(update={"name": outcome.unwrap().name}))
        else:
            logger.info("Could not enrich %s: %s", candidate.login, describe_error(outcome.error))
            enriched.append(candidate)
    return enriched


async def discover_similar_profiles(
    gateway: GitHubGateway,
    profile: UserProfile,
    repositories: Sequence[Repository],
) -> SimilarProfilesView:
    signal = discovery_signal(repositories)
    if not repositories or signal.empty:
        return SimilarProfilesView(username=profile.login, state=SimilarProfilesState.NO_SIGNAL)

    strategies = []
    if signal.primary_language:
        strategies.append(("language", _by_language(gateway, profile.login, signal.primary_language)))
    if signal.topics:
        strategies.append(("topic", _by_topic(gateway, profile.login, signal.topics)))
    if profile.followers > 0:
        strategies.append(("social", _by_followers(gateway, profile.login)))

    outcomes = await gather_settled(*(run for _, run in strategies))
    batches = []
    for (name, _), outcome in zip(strategies, outcomes):
        if not outcome.ok:
            logger.info("Similar-profile strategy '%s' failed: %s", name, describe_error(outcome.error))
            continue
        batches.append(outcome.unwrap())

    candidates = merge_candidates(batches)
    if not candidates:
        return SimilarProfilesView(username=profile.login, state=SimilarProfilesState.NONE_FOUND)

    return SimilarProfilesView(
        username=profile.login,
        state=SimilarProfilesState.FOUND,
        candidates=await _enrich(gateway, candidates),
    )
