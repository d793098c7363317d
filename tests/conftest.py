"""Shared fixtures.

`FakeGateway` is an in-memory `GitHubGateway`: each method answers from a
table (value, exception instance, or callable of the call arguments) and every
call is recorded, so tests can assert exactly what was requested upstream.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

import pytest

from core.config import AppSettings
from core.domain.models import Repository, RepositoryOwner, UserProfile

NOW = datetime(2024, 6, 15, 12, 0, 0, tzinfo=timezone.utc)

_MISSING = object()


class FakeGateway:
    def __init__(self, *, authenticated: bool = False, **responses: Any) -> None:
        self.authenticated = authenticated
        self.responses = responses
        self.calls: list[tuple[str, tuple[Any, ...], dict[str, Any]]] = []

    async def _answer(self, method: str, *args: Any, **kwargs: Any) -> Any:
        self.calls.append((method, args, kwargs))
        answer = self.responses.get(method, _MISSING)
        if answer is _MISSING:
            raise AssertionError(f"unexpected call: {method}{args}")
        if callable(answer):
            answer = answer(*args)
        if isinstance(answer, BaseException):
            raise answer
        return answer

    def calls_to(self, method: str) -> list[tuple[Any, ...]]:
        return [args for name, args, _ in self.calls if name == method]

    async def get_user(self, username):
        return await self._answer("get_user", username)

    async def list_user_repositories(self, username, *, per_page=100):
        return await self._answer("list_user_repositories", username, per_page=per_page)

    async def get_repository(self, owner, repository):
        return await self._answer("get_repository", owner, repository)

    async def get_readme(self, owner, repository):
        return await self._answer("get_readme", owner, repository)

    async def list_contributors(self, owner, repository, *, per_page=10):
        return await self._answer("list_contributors", owner, repository, per_page=per_page)

    async def get_languages(self, owner, repository):
        return await self._answer("get_languages", owner, repository)

    async def list_commits(self, owner, repository, *, per_page=5):
        return await self._answer("list_commits", owner, repository, per_page=per_page)

    async def get_participation(self, owner, repository):
        return await self._answer("get_participation", owner, repository)

    async def search_repositories(self, query, *, sort="stars", per_page=5):
        return await self._answer("search_repositories", query, sort=sort, per_page=per_page)

    async def list_followers(self, username, *, per_page=5):
        return await self._answer("list_followers", username, per_page=per_page)

    async def list_following(self, username, *, per_page=5):
        return await self._answer("list_following", username, per_page=per_page)

    async def fetch_rate_limit(self):
        return await self._answer("fetch_rate_limit")

    async def graphql(self, query, variables=None):
        return await self._answer("graphql", query, variables)


def build_repo(name: str, *, owner: str = "octocat", **fields: Any) -> Repository:
    return Repository(
        name=name,
        owner=RepositoryOwner(login=owner, html_url=f"https://github.com/{owner}"),
        full_name=f"{owner}/{name}",
        html_url=f"https://github.com/{owner}/{name}",
        **fields,
    )


def build_user(login: str = "octocat", **fields: Any) -> UserProfile:
    return UserProfile(login=login, html_url=f"https://github.com/{login}", **fields)


@pytest.fixture
def settings() -> AppSettings:
    return AppSettings(
        _env_file=None,
        github_access_token=None,
        ai_api_key=None,
        api_base_url="https://api.github.com",
        graphql_url="https://api.github.com/graphql",
    )


@pytest.fixture
def make_repo():
    return build_repo


@pytest.fixture
def make_user():
    return build_user


@pytest.fixture
def fake_gateway():
    return FakeGateway


@pytest.fixture
def now() -> datetime:
    return NOW
