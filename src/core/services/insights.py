"""Heuristic portfolio insights.

Why a heuristic:
- Works offline and without any AI provider key.
- It is also the fallback when the provider fails, so `insights_page` always
  has something to show.

Each highlight is a "Title: sentence" line; the summary is a short paragraph.
"""

from __future__ import annotations

from collections import Counter
from datetime import datetime, timezone
from typing import Sequence

from core.domain.models import InsightReport, Repository, UserProfile
from core.services.activity import parse_timestamp

HEURISTIC_MODEL = "heuristic"


def _top_languages(repositories: Sequence[Repository]) -> list[str]:
    counts = Counter(repo.language for repo in repositories if repo.language)
    return [language for language, _ in counts.most_common()]


def _days_since_last_push(repositories: Sequence[Repository], now: datetime) -> int | None:
    pushes = [ts for ts in (parse_timestamp(repo.pushed_at) for repo in repositories) if ts is not None]
    if not pushes:
        return None
    return (now - max(pushes)).days


def _activity_trend(repositories: Sequence[Repository]) -> list[int]:
    """Push counts of the three latest months that saw any push, oldest first."""

    per_month: Counter[str] = Counter()
    for repo in repositories:
        pushed = parse_timestamp(repo.pushed_at)
        if pushed is not None:
            per_month[f"{pushed.year:04d}-{pushed.month:02d}"] += 1
    if len(per_month) < 2:
        return []
    return [per_month[key] for key in sorted(per_month)[-3:]]


def _account_age_years(profile: UserProfile, now: datetime) -> int | None:
    created = parse_timestamp(profile.created_at)
    if created is None:
        return None
    return (now - created).days // 365


def language_expertise(profile: UserProfile, languages: Sequence[str]) -> str | None:
    if not languages:
        return None
    text = f"{languages[0]} appears to be {profile.display_name}'s primary programming language"
    if len(languages) > 1:
        text += f", with proficiency in {', '.join(languages[1:3])}"
        if len(languages) > 3:
            text += " and other languages"
    return f"Language Expertise: {text}."


def activity_level(days: int | None) -> str:
    if days is not None and days <= 7:
        return "Activity Level: Very active developer with recent contributions."
    if days is not None and days <= 30:
        return "Activity Level: Moderately active developer with contributions this month."
    if days is not None and days <= 90:
        return "Activity Level: Occasionally active developer with contributions in the past quarter."
    return "Activity Level: Less active recently, with the last contribution some time ago."


def project_focus(repositories: Sequence[Repository]) -> str:
    if any(repo.stargazers_count > 10 for repo in repositories):
        return "Project Impact: Has created notable projects with community interest."
    if len(repositories) > 10:
        return "Project Diversity: Demonstrates diverse coding interests across multiple repositories."
    return "Project Status: Focused on fewer, specific projects or newer to GitHub."


def activity_trend(trend: Sequence[int]) -> str | None:
    if len(trend) != 3:
        return None
    if trend[2] > trend[0]:
        return "Activity Trend: Increasing GitHub activity over recent months."
    if trend[2] < trend[0]:
        return "Activity Trend: Decreasing GitHub activity in recent months."
    return "Activity Trend: Consistent GitHub activity level in recent months."


def account_maturity(years: int | None) -> str | None:
    if years is None:
        return None
    if years >= 5:
        return f"Account Maturity: Experienced GitHub user with an account over {years} years old."
    if years >= 1:
        unit = "year" if years == 1 else "years"
        return f"Account Maturity: Established GitHub user with an account {years} {unit} old."
    return "Account Maturity: Newer GitHub user with an account less than a year old."


def summary_line(total_stars: int, days: int | None, languages: Sequence[str]) -> str:
    if total_stars > 50:
        parts = [f"An impactful developer with {total_stars}+ stars across their projects."]
    elif total_stars > 10:
        parts = [f"A developer with growing recognition ({total_stars} stars)."]
    else:
        parts = ["A developer focused on personal or specialized projects."]
    if days is not None and days <= 30:
        parts.append("Currently active on GitHub.")
    if languages:
        parts.append(f"Shows strongest skills in {languages[0]}.")
    return " ".join(parts)


def heuristic_insights(
    profile: UserProfile,
    repositories: Sequence[Repository],
    *,
    now: datetime | None = None,
) -> InsightReport:
    moment = now or datetime.now(timezone.utc)
    if not repositories:
        return InsightReport(
            summary=f"{profile.display_name} has no public repositories to analyse yet.",
            model=HEURISTIC_MODEL,
            generated_at=moment,
        )

    languages = _top_languages(repositories)
    days = _days_since_last_push(repositories, moment)

    highlights = [
        language_expertise(profile, languages),
        activity_level(days),
        project_focus(repositories),
        "Community Engagement: Has a following in the developer community." if profile.followers > 10 else None,
        (
            "Collaboration Style: Actively contributes to or builds upon other projects."
            if any(repo.fork for repo in repositories)
            else None
        ),
        activity_trend(_activity_trend(repositories)),
        account_maturity(_account_age_years(profile, moment)),
    ]
    return InsightReport(
        summary=summary_line(sum(repo.stargazers_count for repo in repositories), days, languages),
        highlights=[line for line in highlights if line],
        model=HEURISTIC_MODEL,
        generated_at=moment,
    )
