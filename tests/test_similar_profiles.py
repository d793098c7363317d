import pytest

from core.domain.models import ContributorSummary, SimilarProfileCandidate, UserSummary
from core.domain.views import SimilarProfilesState
from core.errors import NotFound, Unreachable
from core.services.similar_profiles import (
    SOCIAL_REASON,
    TOPIC_REASON,
    discover_similar_profiles,
    discovery_signal,
    language_reason,
    merge_candidates,
)


@pytest.mark.asyncio
async def test_no_repositories_means_no_signal_and_no_calls(fake_gateway, make_user):
    gateway = fake_gateway()

    view = await discover_similar_profiles(gateway, make_user(followers=50), [])

    assert view.state is SimilarProfilesState.NO_SIGNAL
    assert gateway.calls == []


@pytest.mark.asyncio
async def test_repositories_without_language_or_topics_mean_no_signal(fake_gateway, make_user, make_repo):
    gateway = fake_gateway()

    view = await discover_similar_profiles(gateway, make_user(followers=5), [make_repo("bare")])

    assert view.state is SimilarProfilesState.NO_SIGNAL
    assert gateway.calls == []


def test_discovery_signal(make_repo):
    repos = [
        make_repo("a", language="Go", topics=["cli", "tui"]),
        make_repo("b", language="Rust", topics=["cli", "wasm", "async"]),
        make_repo("c", language="Rust"),
    ]

    signal = discovery_signal(repos)

    assert signal.primary_language == "Rust"
    assert signal.topics == ["cli", "tui", "wasm"]


def _search(popular, topical):
    def answer(query):
        return popular if query.startswith("language:") else topical

    return answer


@pytest.mark.asyncio
async def test_strategies_merge_in_order_and_dedupe(fake_gateway, make_user, make_repo):
    popular = [make_repo("big", owner="corp")]
    topical = [make_repo("tool", owner="alice"), make_repo("mine", owner="octocat"), make_repo("x", owner="bob")]
    gateway = fake_gateway(
        search_repositories=_search(popular, topical),
        list_contributors=[
            ContributorSummary(login="alice"),
            ContributorSummary(login="octocat"),
            ContributorSummary(login="carol"),
        ],
        list_followers=[UserSummary(login="fan")],
        list_following=[UserSummary(login="dave"), UserSummary(login="carol")],
        get_user=lambda login: make_user(login, name=login.title()),
    )
    repos = [make_repo("r", language="Go", topics=["cli"])]

    view = await discover_similar_profiles(gateway, make_user(followers=1), repos)

    assert view.state is SimilarProfilesState.FOUND
    assert [(c.login, c.reason) for c in view.candidates] == [
        ("alice", language_reason("Go")),
        ("carol", language_reason("Go")),
        ("bob", TOPIC_REASON),
        ("dave", SOCIAL_REASON),
    ]
    assert view.candidates[0].name == "Alice"
    queries = [args[0] for args in gateway.calls_to("search_repositories")]
    assert "language:Go stars:>10" in queries
    assert "topic:cli stars:>5" in queries


@pytest.mark.asyncio
async def test_every_topic_is_qualified(fake_gateway, make_user, make_repo):
    gateway = fake_gateway(search_repositories=[])
    repos = [make_repo("r", topics=["a", "b", "c", "d"])]

    await discover_similar_profiles(gateway, make_user(), repos)

    assert gateway.calls_to("search_repositories") == [("topic:a topic:b topic:c stars:>5",)]


@pytest.mark.asyncio
async def test_social_strategy_skipped_without_followers(fake_gateway, make_user, make_repo):
    gateway = fake_gateway(search_repositories=[], list_contributors=[])

    view = await discover_similar_profiles(gateway, make_user(followers=0), [make_repo("r", language="Go")])

    assert view.state is SimilarProfilesState.NONE_FOUND
    assert gateway.calls_to("list_followers") == []


@pytest.mark.asyncio
async def test_failed_strategy_does_not_hide_the_others(fake_gateway, make_user, make_repo):
    gateway = fake_gateway(
        search_repositories=Unreachable("down"),
        list_followers=[UserSummary(login="fan")],
        list_following=[UserSummary(login="erin")],
        get_user=NotFound(),
    )
    repos = [make_repo("r", language="Go", topics=["cli"])]

    view = await discover_similar_profiles(gateway, make_user(followers=2), repos)

    assert view.state is SimilarProfilesState.FOUND
    assert [c.login for c in view.candidates] == ["erin"]
    # Enrichment failure keeps the candidate without a name.
    assert view.candidates[0].name is None


def test_merge_candidates_caps_at_six():
    batches = [
        [SimilarProfileCandidate(login=f"u{i}", reason="a") for i in range(5)],
        [SimilarProfileCandidate(login=f"u{i}", reason="b") for i in range(3, 9)],
    ]

    merged = merge_candidates(batches)

    assert [c.login for c in merged] == ["u0", "u1", "u2", "u3", "u4", "u5"]
    assert merged[3].reason == "a"
