"""Activity page aggregation.

Weekly commit counts come from GitHub's participation statistic of the most
recently pushed non-fork repositories (first one with owner commits wins).
When none of them has any, activity is approximated from the `pushed_at`
dates of every repository, bucketed per calendar month.
"""

from __future__ import annotations

import logging
from collections import Counter
from datetime import date, datetime, timedelta, timezone
from typing import Sequence

from core.domain.models import ActivityPoint, ContributionCalendar, ContributionDay, Repository
from core.domain.views import ActivitySource, ActivityView
from core.errors import NotFound, ProfileNotFound
from core.interfaces.github import GitHubGateway
from core.services.featured import recent_non_forks
from core.services.fallback import Stage, first_non_empty

logger = logging.getLogger(__name__)

PARTICIPATION_REPOS_SCANNED = 3
HISTORY_MONTHS = 12
CALENDAR_DAYS = 365

MONTH_NAMES = ("Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec")


def parse_timestamp(value: str | None) -> datetime | None:
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        logger.debug("Ignoring unparsable timestamp %r", value)
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def _shift_month(year: int, month: int, delta: int) -> tuple[int, int]:
    index = year * 12 + (month - 1) + delta
    return index // 12, index % 12 + 1


def participation_points(weekly: Sequence[int], *, now: datetime) -> list[ActivityPoint]:
    """Non-zero weeks only; the last entry is the current week."""

    last = len(weekly) - 1
    points: list[ActivityPoint] = []
    for index, count in enumerate(weekly):
        if count <= 0:
            continue
        week_of = now - timedelta(days=(last - index) * 7)
        points.append(ActivityPoint(label=f"Week {index + 1}", period=week_of.date().isoformat(), count=count))
    return points


def monthly_push_history(repositories: Sequence[Repository], *, now: datetime) -> list[ActivityPoint]:
    """One bucket per month over the trailing twelve months, empty months included."""

    pushes: Counter[str] = Counter()
    for repo in repositories:
        pushed = parse_timestamp(repo.pushed_at)
        if pushed is not None:
            pushes[f"{pushed.year:04d}-{pushed.month:02d}"] += 1

    points: list[ActivityPoint] = []
    for offset in range(HISTORY_MONTHS - 1, -1, -1):
        year, month = _shift_month(now.year, now.month, -offset)
        key = f"{year:04d}-{month:02d}"
        points.append(ActivityPoint(label=f"{month:02d}/{year % 100:02d}", period=key, count=pushes[key]))
    return points


def contribution_calendar(repositories: Sequence[Repository], *, now: datetime) -> ContributionCalendar:
    """Daily push counts for the last year.

    Each repository contributes at most one push (its latest), so this is a
    rough picture rather than a real contribution graph.
    """

    today = now.astimezone(timezone.utc).date()
    first = today - timedelta(days=CALENDAR_DAYS - 1)

    pushes: Counter[date] = Counter()
    for repo in repositories:
        pushed = parse_timestamp(repo.pushed_at)
        if pushed is not None and first <= pushed.date() <= today:
            pushes[pushed.date()] += 1

    days = [
        ContributionDay(date=(first + timedelta(days=i)).isoformat(), count=pushes[first + timedelta(days=i)])
        for i in range(CALENDAR_DAYS)
    ]
    months = [MONTH_NAMES[_shift_month(today.year, today.month, -offset)[1] - 1] for offset in range(11, -1, -1)]
    return ContributionCalendar(days=days, months=months, total=sum(day.count for day in days))


def _participation_stage(gateway: GitHubGateway, repo: Repository, now: datetime) -> Stage[ActivityPoint]:
    async def run() -> list[ActivityPoint]:
        stats = await gateway.get_participation(repo.owner.login, repo.name)
        # None: GitHub is still computing the statistic for this repository.
        if stats is None or not stats.owner_active:
            return []
        return participation_points(stats.owner, now=now)

    return Stage(repo.name, run)


async def aggregate_activity(
    gateway: GitHubGateway,
    username: str,
    *,
    now: datetime | None = None,
) -> ActivityView:
    moment = now or datetime.now(timezone.utc)
    try:
        repositories = await gateway.list_user_repositories(username)
    except NotFound as exc:
        raise ProfileNotFound(username, url=exc.url) from exc

    if not repositories:
        return ActivityView(username=username, source=ActivitySource.EMPTY)

    candidates = recent_non_forks(repositories, limit=PARTICIPATION_REPOS_SCANNED)
    result = await first_non_empty(
        [_participation_stage(gateway, repo, moment) for repo in candidates],
        context="activity",
    )
    calendar = contribution_calendar(repositories, now=moment)

    if not result.empty:
        return ActivityView(
            username=username,
            source=ActivitySource.PARTICIPATION,
            repository=result.stage,
            points=result.items,
            calendar=calendar,
        )

    logger.debug("No participation data for %s, using push history", username)
    return ActivityView(
        username=username,
        source=ActivitySource.PUSH_HISTORY,
        points=monthly_push_history(repositories, now=moment),
        calendar=calendar,
    )
