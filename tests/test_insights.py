from datetime import timedelta

import pytest

from adapters.ai_analyst import _extract_json_object, analyze_portfolio, build_evidence
from core.config import AppSettings
from core.services.insights import heuristic_insights


def _iso(moment):
    return moment.strftime("%Y-%m-%dT%H:%M:%SZ")


def test_heuristic_for_an_active_impactful_developer(make_user, make_repo, now):
    profile = make_user(name="Mona", followers=42, created_at="2015-01-01T00:00:00Z")
    repos = [
        make_repo("a", language="Python", stargazers_count=40, pushed_at=_iso(now - timedelta(days=2))),
        make_repo("b", language="Python", stargazers_count=15, pushed_at="2024-04-10T00:00:00Z"),
        make_repo("c", language="Go", fork=True, pushed_at="2024-05-10T00:00:00Z"),
        make_repo("d", language="Rust", pushed_at="2024-05-11T00:00:00Z"),
        make_repo("e", language="C", pushed_at="2024-05-12T00:00:00Z"),
    ]

    report = heuristic_insights(profile, repos, now=now)

    assert report.model == "heuristic"
    assert report.highlights[0] == (
        "Language Expertise: Python appears to be Mona's primary programming language, "
        "with proficiency in Go, Rust and other languages."
    )
    assert "Activity Level: Very active developer with recent contributions." in report.highlights
    assert "Project Impact: Has created notable projects with community interest." in report.highlights
    assert any(line.startswith("Community Engagement") for line in report.highlights)
    assert any(line.startswith("Collaboration Style") for line in report.highlights)
    # Months with pushes: 2024-04 (1), 2024-05 (3), 2024-06 (1).
    assert "Activity Trend: Consistent GitHub activity level in recent months." in report.highlights
    assert "Account Maturity: Experienced GitHub user with an account over 9 years old." in report.highlights
    assert report.summary == (
        "An impactful developer with 55+ stars across their projects. "
        "Currently active on GitHub. Shows strongest skills in Python."
    )


def test_heuristic_for_a_quiet_newcomer(make_user, make_repo, now):
    profile = make_user(created_at="2024-01-01T00:00:00Z")
    repos = [make_repo("only", pushed_at="2024-01-05T00:00:00Z")]

    report = heuristic_insights(profile, repos, now=now)

    assert report.highlights == [
        "Activity Level: Less active recently, with the last contribution some time ago.",
        "Project Status: Focused on fewer, specific projects or newer to GitHub.",
        "Account Maturity: Newer GitHub user with an account less than a year old.",
    ]
    assert report.summary == "A developer focused on personal or specialized projects."


def test_heuristic_without_repositories(make_user, now):
    report = heuristic_insights(make_user(), [], now=now)

    assert report.highlights == []
    assert "no public repositories" in report.summary


def test_extract_json_object_from_fenced_answer():
    text = 'Sure!\n```json\n{"summary": "ok", "highlights": []}\n```'

    assert _extract_json_object(text) == '{"summary": "ok", "highlights": []}'


def test_evidence_ranks_repositories_by_stars(make_user, make_repo):
    evidence = build_evidence(make_user(), [make_repo("low", stargazers_count=1), make_repo("high", stargazers_count=9)])

    assert [r["name"] for r in evidence["repositories"]] == ["high", "low"]


@pytest.mark.asyncio
async def test_without_ai_key_the_heuristic_is_used(make_user, make_repo, now):
    settings = AppSettings(_env_file=None, ai_api_key=None)

    report = await analyze_portfolio(profile=make_user(), repositories=[make_repo("x")], settings=settings, now=now)

    assert report.model == "heuristic"


class _Completions:
    def __init__(self, answers):
        self.answers = list(answers)
        self.calls = 0

    async def create(self, **kwargs):
        self.calls += 1
        content = self.answers.pop(0)

        class _Message:
            pass

        class _Choice:
            pass

        class _Response:
            pass

        message = _Message()
        message.content = content
        choice = _Choice()
        choice.message = message
        response = _Response()
        response.choices = [choice]
        return response


class _FakeAIClient:
    def __init__(self, answers):
        self.completions = _Completions(answers)
        self.chat = self


@pytest.mark.asyncio
async def test_ai_answer_is_parsed(make_user, make_repo, now):
    settings = AppSettings(_env_file=None, ai_model="test-model")
    client = _FakeAIClient(['{"summary": "Strong Python developer.", "highlights": ["Focus: data tooling"]}'])

    report = await analyze_portfolio(
        profile=make_user(), repositories=[make_repo("x")], settings=settings, client=client, now=now
    )

    assert report.model == "test-model"
    assert report.summary == "Strong Python developer."
    assert report.highlights == ["Focus: data tooling"]


@pytest.mark.asyncio
async def test_invalid_ai_answers_fall_back_to_heuristic(make_user, make_repo, now):
    settings = AppSettings(_env_file=None, ai_max_retries=1)
    client = _FakeAIClient(["not json", "still not json"])

    report = await analyze_portfolio(
        profile=make_user(), repositories=[make_repo("x")], settings=settings, client=client, now=now
    )

    assert report.model == "heuristic"
    assert client.completions.calls == 2
