"""httpx wrapper.

Why a wrapper:
- Standardizes timeouts and the identification headers GitHub requires.
- Makes testing easy: respx intercepts the client built here.
"""

from __future__ import annotations

import httpx

from core.config import AppSettings

GITHUB_ACCEPT = "application/vnd.github.v3+json"


def build_async_client(settings: AppSettings | None = None) -> httpx.AsyncClient:
    """Create an `httpx.AsyncClient` with the GitHub defaults.

    Why a builder:
    - Every GitHub call carries the same `User-Agent` and `Accept`.
    - Authorization is *not* set here: REST and GraphQL use different schemes,
      so the client adds it per request.
    """

    settings = settings or AppSettings()
    headers: dict[str, str] = {
        "User-Agent": settings.user_agent,
        "Accept": GITHUB_ACCEPT,
    }
    return httpx.AsyncClient(
        timeout=httpx.Timeout(settings.http_timeout_seconds),
        follow_redirects=True,
        headers=headers,
    )
