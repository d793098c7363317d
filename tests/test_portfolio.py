"""End-to-end page views through the real client (HTTP mocked with respx)."""

import base64

import httpx
import pytest
import respx
from httpx import Response

from core.config import AppSettings
from core.credentials import CredentialSource
from core.domain.views import FeaturedSource, ProjectListState, SectionState, SimilarProfilesState
from core.errors import ProfileNotFound, Unreachable
from core.services import portfolio

API = "https://api.github.com"


def _repo(name, **extra):
    payload = {
        "id": 1,
        "name": name,
        "full_name": f"octocat/{name}",
        "owner": {"login": "octocat"},
        "html_url": f"https://github.com/octocat/{name}",
        "fork": False,
        "stargazers_count": 1,
        "pushed_at": "2024-05-01T00:00:00Z",
        "created_at": "2020-01-01T00:00:00Z",
    }
    payload.update(extra)
    return payload


@pytest.mark.asyncio
@respx.mock(assert_all_called=False)
async def test_profile_page_without_credential(settings, respx_mock):
    respx_mock.get(f"{API}/users/octocat").mock(return_value=Response(200, json={"login": "octocat", "name": "Octo"}))
    respx_mock.get(f"{API}/users/octocat/repos").mock(
        return_value=Response(200, json=[_repo("hello", language="Ruby")])
    )
    respx_mock.get(f"{API}/repos/octocat/octocat/readme").mock(
        return_value=Response(200, json={"content": base64.b64encode(b"# hi").decode(), "encoding": "base64"})
    )
    graphql = respx_mock.post(f"{API}/graphql")

    view = await portfolio.profile_page("octocat", settings=settings)

    assert view.skills == ["Ruby"]
    assert view.featured.source is FeaturedSource.RECENT
    assert view.profile_readme.value == "# hi"
    assert not graphql.called


@pytest.mark.asyncio
@respx.mock
async def test_project_list_page_with_caller_token(settings):
    repos = respx.get(f"{API}/users/octocat/repos").mock(return_value=Response(200, json=[_repo("hello")]))
    graphql = respx.post(f"{API}/graphql").mock(
        return_value=Response(
            200,
            json={
                "data": {
                    "user": {"pinnedItems": {"nodes": [{"name": "hello", "owner": {"login": "octocat"}}]}}
                }
            },
        )
    )

    view = await portfolio.project_list_page("octocat", caller_token="caller", settings=settings)

    assert view.state is ProjectListState.READY
    assert view.featured.source is FeaturedSource.PINNED
    assert view.featured.repositories[0].created_at == "2020-01-01T00:00:00Z"
    assert repos.calls[0].request.headers["authorization"] == "token caller"
    assert graphql.calls[0].request.headers["authorization"] == "Bearer caller"


@pytest.mark.asyncio
@respx.mock
async def test_project_list_page_for_user_without_repositories(settings):
    respx.get(f"{API}/users/octocat/repos").mock(return_value=Response(200, json=[]))

    view = await portfolio.project_list_page("octocat", settings=settings)

    assert view.state is ProjectListState.NO_REPOSITORIES


@pytest.mark.asyncio
@respx.mock(assert_all_called=False)
async def test_profile_page_unknown_user(settings, respx_mock):
    respx_mock.get(f"{API}/users/ghost").mock(return_value=Response(404, json={"message": "Not Found"}))
    repos = respx_mock.get(f"{API}/users/ghost/repos")

    with pytest.raises(ProfileNotFound):
        await portfolio.profile_page("ghost", settings=settings)

    assert not repos.called


@pytest.mark.asyncio
@respx.mock
async def test_project_detail_page(settings):
    base = f"{API}/repos/octocat/hello"
    respx.get(base).mock(return_value=Response(200, json=_repo("hello")))
    respx.get(f"{base}/readme").mock(return_value=Response(404, json={"message": "Not Found"}))
    respx.get(f"{base}/contributors").mock(return_value=Response(500, json={"message": "oops"}))
    respx.get(f"{base}/languages").mock(return_value=Response(200, json={"A": 30, "B": 70}))

    view = await portfolio.project_detail_page("octocat", "hello", settings=settings)

    assert view.readme.state is SectionState.ABSENT
    assert view.contributors.state is SectionState.FAILED
    assert [s.percentage for s in view.languages.value] == [30, 70]


@pytest.mark.asyncio
@respx.mock(assert_all_called=False)
async def test_similar_profiles_page_without_repositories_stops_early(settings, respx_mock):
    respx_mock.get(f"{API}/users/octocat").mock(return_value=Response(200, json={"login": "octocat", "followers": 9}))
    respx_mock.get(f"{API}/users/octocat/repos").mock(return_value=Response(200, json=[]))
    search = respx_mock.get(f"{API}/search/repositories")
    followers = respx_mock.get(f"{API}/users/octocat/followers")

    view = await portfolio.similar_profiles_page("octocat", settings=settings)

    assert view.state is SimilarProfilesState.NO_SIGNAL
    assert not search.called
    assert not followers.called


@pytest.mark.asyncio
@respx.mock
async def test_unreachable_github_propagates(settings):
    respx.get(f"{API}/users/octocat/repos").mock(side_effect=httpx.ConnectError("no route"))

    with pytest.raises(Unreachable):
        await portfolio.activity_page("octocat", settings=settings)


@pytest.mark.asyncio
@respx.mock
async def test_rate_limit_status_reports_token_sources():
    settings = AppSettings(_env_file=None, github_access_token="server", rate_limit_warning_threshold=10)
    route = respx.get(f"{API}/rate_limit").mock(
        return_value=Response(
            200,
            json={"resources": {"core": {"limit": 5000, "remaining": 3, "reset": 0, "used": 4997}}},
        )
    )

    status = await portfolio.rate_limit_status("caller", settings=settings)

    assert status.has_env_token is True
    assert status.has_client_token is True
    assert status.token_source is CredentialSource.ENVIRONMENT
    assert status.low is True
    assert route.calls[0].request.headers["authorization"] == "token server"
