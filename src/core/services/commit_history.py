"""Recent commits authored by the user.

Only the three most recently pushed repositories are sampled (five commits
each), so this is a glimpse rather than a full history. When none of the
sampled commits belongs to the user, one synthetic record per repository
(its creation) stands in.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Sequence

from core.domain.models import CommitRecord, Repository
from core.domain.views import CommitHistoryState, CommitHistoryView
from core.errors import NotFound, ProfileNotFound, describe_error
from core.interfaces.github import GitHubGateway
from core.services.activity import parse_timestamp
from core.services.fallback import Stage, first_non_empty, gather_settled

logger = logging.getLogger(__name__)

SAMPLED_REPOSITORIES = 3
COMMITS_PER_REPOSITORY = 5
MAX_COMMITS = 10
SYNTHETIC_REPOSITORIES = 5

_OLDEST = datetime.min.replace(tzinfo=timezone.utc)


def authored_by(commit: CommitRecord, username: str) -> bool:
    return commit.author_login == username or commit.author_name == username


def most_recently_pushed(repositories: Sequence[Repository], *, limit: int = SAMPLED_REPOSITORIES) -> list[Repository]:
    return sorted(
        repositories,
        key=lambda repo: parse_timestamp(repo.pushed_at) or _OLDEST,
        reverse=True,
    )[:limit]


def synthetic_commits(repositories: Sequence[Repository], username: str) -> list[CommitRecord]:
    return [
        CommitRecord(
            sha=str(repo.id) if repo.id is not None else repo.slug,
            message=f"Repository created: {repo.name}",
            html_url=repo.html_url,
            author_name=username,
            date=repo.created_at,
            repository=repo.name,
            repository_url=repo.html_url,
        )
        for repo in repositories[:SYNTHETIC_REPOSITORIES]
    ]


async def sample_user_commits(
    gateway: GitHubGateway,
    repositories: Sequence[Repository],
    username: str,
) -> list[CommitRecord]:
    sampled = most_recently_pushed(repositories)
    outcomes = await gather_settled(
        *(gateway.list_commits(repo.owner.login, repo.name, per_page=COMMITS_PER_REPOSITORY) for repo in sampled)
    )

    commits: list[CommitRecord] = []
    for repo, outcome in zip(sampled, outcomes):
        if not outcome.ok:
            logger.info("Commits of %s unavailable: %s", repo.slug, describe_error(outcome.error))
            continue
        commits.extend(
            commit.model_copy(update={"repository_url": repo.html_url or commit.repository_url})
            for commit in outcome.unwrap()
            if authored_by(commit, username)
        )

    commits.sort(key=lambda commit: parse_timestamp(commit.date) or _OLDEST, reverse=True)
    return commits[:MAX_COMMITS]


async def aggregate_commit_history(gateway: GitHubGateway, username: str) -> CommitHistoryView:
    try:
        repositories = await gateway.list_user_repositories(username)
    except NotFound as exc:
        raise ProfileNotFound(username, url=exc.url) from exc

    if not repositories:
        return CommitHistoryView(username=username, state=CommitHistoryState.EMPTY)

    async def commits_stage() -> list[CommitRecord]:
        return await sample_user_commits(gateway, repositories, username)

    async def synthetic_stage() -> list[CommitRecord]:
        return synthetic_commits(repositories, username)

    result = await first_non_empty(
        [
            Stage(CommitHistoryState.COMMITS.value, commits_stage),
            Stage(CommitHistoryState.SYNTHETIC.value, synthetic_stage),
        ],
        context="commit history",
    )
    if result.empty:
        return CommitHistoryView(username=username, state=CommitHistoryState.EMPTY)
    return CommitHistoryView(username=username, state=CommitHistoryState(result.stage), commits=result.items)
