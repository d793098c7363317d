"""GitHub REST v3 + GraphQL v4 client.

Thin request layer:
- uniform headers (`User-Agent`, `Accept`) and per-endpoint authorization
  (`token` for REST, `Bearer` for GraphQL);
- every failure is classified into `core.errors` (Unreachable, UpstreamError,
  NotFound, DecodeError, GraphQLError);
- no retries and no throttling: a failed call surfaces immediately to the
  aggregator that issued it.
"""

from __future__ import annotations

import logging
from typing import Any, TypeVar
from urllib.parse import quote

import httpx
from pydantic import TypeAdapter, ValidationError

from adapters.http_client import build_async_client
from core.config import AppSettings
from core.credentials import Credential
from core.domain.models import (
    CommitRecord,
    ContributorSummary,
    ParticipationStats,
    RateLimitSnapshot,
    ReadmeFile,
    Repository,
    UserProfile,
    UserSummary,
)
from core.errors import DecodeError, GraphQLError, NotFound, Unreachable, UpstreamError
from core.interfaces.github import GitHubGateway, GraphQLResponse

logger = logging.getLogger(__name__)

T = TypeVar("T")

_REPOSITORIES = TypeAdapter(list[Repository])
_CONTRIBUTORS = TypeAdapter(list[ContributorSummary])
_USERS = TypeAdapter(list[UserSummary])
_LANGUAGES = TypeAdapter(dict[str, int])


def _segment(value: str) -> str:
    return quote(value.strip(), safe="")


def _error_message(response: httpx.Response) -> str:
    try:
        payload = response.json()
    except ValueError:
        return response.text[:200]
    if isinstance(payload, dict) and isinstance(payload.get("message"), str):
        return payload["message"]
    return response.text[:200]


def _commit_from_payload(item: Any, *, owner: str, repository: str) -> CommitRecord:
    if not isinstance(item, dict) or not isinstance(item.get("sha"), str):
        raise DecodeError(f"Unexpected commit entry in {owner}/{repository}")
    commit = item.get("commit") if isinstance(item.get("commit"), dict) else {}
    git_author = commit.get("author") if isinstance(commit.get("author"), dict) else {}
    account = item.get("author") if isinstance(item.get("author"), dict) else None
    return CommitRecord(
        sha=item["sha"],
        message=str(commit.get("message") or ""),
        html_url=item.get("html_url"),
        author_login=account.get("login") if account else None,
        author_avatar_url=account.get("avatar_url") if account else None,
        author_name=git_author.get("name"),
        date=git_author.get("date"),
        repository=repository,
        repository_url=f"https://github.com/{owner}/{repository}",
    )


class GitHubClient(GitHubGateway):
    """Async GitHub client bound to at most one credential."""

    def __init__(
        self,
        settings: AppSettings | None = None,
        credential: Credential | None = None,
        *,
        http: httpx.AsyncClient | None = None,
    ) -> None:
        self._settings = settings or AppSettings()
        self._credential = credential
        self._base_url = self._settings.api_base_url.rstrip("/")
        self._http = http or build_async_client(self._settings)
        self._owns_http = http is None

    async def __aenter__(self) -> GitHubClient:
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_http:
            await self._http.aclose()

    @property
    def authenticated(self) -> bool:
        return self._credential is not None

    @property
    def credential(self) -> Credential | None:
        return self._credential

    def _rest_headers(self) -> dict[str, str]:
        if self._credential is None:
            return {}
        return {"Authorization": f"token {self._credential.reveal()}"}

    def _graphql_headers(self) -> dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self._credential is not None:
            headers["Authorization"] = f"Bearer {self._credential.reveal()}"
        return headers

    async def _send(
        self,
        method: str,
        url: str,
        *,
        params: dict[str, Any] | None = None,
        json: Any = None,
        headers: dict[str, str] | None = None,
    ) -> httpx.Response:
        logger.debug("GitHub request", extra={"method": method, "url": url, "params": params})
        try:
            response = await self._http.request(method, url, params=params, json=json, headers=headers)
        except httpx.TimeoutException as exc:
            logger.warning("GitHub request timed out: %s %s", method, url)
            raise Unreachable(f"Timed out calling {url}", url=url) from exc
        except httpx.TransportError as exc:
            logger.warning("GitHub unreachable: %s %s (%s)", method, url, exc)
            raise Unreachable(f"Network error calling {url}: {exc}", url=url) from exc
        except httpx.RequestError as exc:
            logger.warning("GitHub request failed: %s %s (%s)", method, url, exc)
            raise Unreachable(f"Request to {url} failed: {exc}", url=url) from exc

        if response.status_code == 404:
            logger.info("GitHub 404: %s", url)
            raise NotFound(_error_message(response), url=url)
        if not response.is_success:
            message = _error_message(response)
            logger.warning("GitHub error %s for %s: %s", response.status_code, url, message)
            raise UpstreamError(response.status_code, message, url=url)
        return response

    async def _get(self, path_or_url: str, *, params: dict[str, Any] | None = None) -> httpx.Response:
        url = path_or_url if path_or_url.startswith("http") else f"{self._base_url}{path_or_url}"
        return await self._send("GET", url, params=params, headers=self._rest_headers())

    @staticmethod
    def _json(response: httpx.Response) -> Any:
        try:
            return response.json()
        except ValueError as exc:
            raise DecodeError(f"Invalid JSON from {response.url}", url=str(response.url)) from exc

    @staticmethod
    def _validate(adapter: TypeAdapter[T], data: Any, *, url: str) -> T:
        try:
            return adapter.validate_python(data)
        except ValidationError as exc:
            raise DecodeError(f"Unexpected payload shape from {url}: {exc.error_count()} error(s)", url=url) from exc

    async def _get_model(self, adapter: TypeAdapter[T], path: str, *, params: dict[str, Any] | None = None) -> T:
        response = await self._get(path, params=params)
        return self._validate(adapter, self._json(response), url=str(response.url))

    async def _get_list(self, adapter: TypeAdapter[list[T]], path: str, *, params: dict[str, Any] | None = None) -> list[T]:
        response = await self._get(path, params=params)
        # 204 No Content: e.g. contributors of an empty repository.
        if response.status_code == 204 or not response.content:
            return []
        return self._validate(adapter, self._json(response), url=str(response.url))

    async def get_user(self, username: str) -> UserProfile:
        return await self._get_model(TypeAdapter(UserProfile), f"/users/{_segment(username)}")

    async def list_user_repositories(self, username: str, *, per_page: int = 100) -> list[Repository]:
        return await self._get_list(
            _REPOSITORIES,
            f"/users/{_segment(username)}/repos",
            params={"per_page": per_page, "sort": "pushed"},
        )

    async def get_repository(self, owner: str, repository: str) -> Repository:
        return await self._get_model(TypeAdapter(Repository), f"/repos/{_segment(owner)}/{_segment(repository)}")

    async def get_readme(self, owner: str, repository: str) -> ReadmeFile:
        return await self._get_model(TypeAdapter(ReadmeFile), f"/repos/{_segment(owner)}/{_segment(repository)}/readme")

    async def list_contributors(self, owner: str, repository: str, *, per_page: int = 10) -> list[ContributorSummary]:
        return await self._get_list(
            _CONTRIBUTORS,
            f"/repos/{_segment(owner)}/{_segment(repository)}/contributors",
            params={"per_page": per_page},
        )

    async def get_languages(self, owner: str, repository: str) -> dict[str, int]:
        return await self._get_model(_LANGUAGES, f"/repos/{_segment(owner)}/{_segment(repository)}/languages")

    async def list_commits(self, owner: str, repository: str, *, per_page: int = 5) -> list[CommitRecord]:
        response = await self._get(
            f"/repos/{_segment(owner)}/{_segment(repository)}/commits",
            params={"per_page": per_page},
        )
        data = self._json(response)
        if not isinstance(data, list):
            raise DecodeError(f"Expected a list of commits from {response.url}", url=str(response.url))
        return [_commit_from_payload(item, owner=owner, repository=repository) for item in data]

    async def get_participation(self, owner: str, repository: str) -> ParticipationStats | None:
        response = await self._get(f"/repos/{_segment(owner)}/{_segment(repository)}/stats/participation")
        # 202: GitHub is still computing the statistic. 204: no data.
        if response.status_code in (202, 204) or not response.content:
            return None
        data = self._json(response)
        if not data:
            return None
        return self._validate(TypeAdapter(ParticipationStats), data, url=str(response.url))

    async def search_repositories(self, query: str, *, sort: str = "stars", per_page: int = 5) -> list[Repository]:
        response = await self._get("/search/repositories", params={"q": query, "sort": sort, "per_page": per_page})
        data = self._json(response)
        if not isinstance(data, dict):
            raise DecodeError(f"Unexpected search payload from {response.url}", url=str(response.url))
        return self._validate(_REPOSITORIES, data.get("items") or [], url=str(response.url))

    async def list_followers(self, username: str, *, per_page: int = 5) -> list[UserSummary]:
        return await self._get_list(_USERS, f"/users/{_segment(username)}/followers", params={"per_page": per_page})

    async def list_following(self, username: str, *, per_page: int = 5) -> list[UserSummary]:
        return await self._get_list(_USERS, f"/users/{_segment(username)}/following", params={"per_page": per_page})

    async def fetch_rate_limit(self) -> RateLimitSnapshot:
        response = await self._get("/rate_limit")
        data = self._json(response)
        if not isinstance(data, dict):
            raise DecodeError("Unexpected rate limit payload", url=str(response.url))
        resources = data.get("resources") if isinstance(data.get("resources"), dict) else {}
        payload = {
            "rate": data.get("rate") or {},
            "core": resources.get("core") or {},
            "search": resources.get("search") or {},
            "graphql": resources.get("graphql") or {},
        }
        return self._validate(TypeAdapter(RateLimitSnapshot), payload, url=str(response.url))

    async def graphql(self, query: str, variables: dict[str, Any] | None = None) -> GraphQLResponse:
        url = self._settings.graphql_url
        response = await self._send(
            "POST",
            url,
            json={"query": query, "variables": variables or {}},
            headers=self._graphql_headers(),
        )
        payload = self._json(response)
        if not isinstance(payload, dict):
            raise DecodeError("GraphQL response is not an object", url=url)

        data = payload.get("data")
        errors = payload.get("errors") or []
        if data is not None and not isinstance(data, dict):
            raise DecodeError("GraphQL `data` is not an object", url=url)
        if not isinstance(errors, list):
            raise DecodeError("GraphQL `errors` is not a list", url=url)

        if errors and data is None:
            logger.warning("GraphQL query failed: %s", errors)
            raise GraphQLError(errors, url=url)
        if errors:
            logger.info("GraphQL partial response with %d error(s)", len(errors))
        return GraphQLResponse(data=data, errors=errors)
