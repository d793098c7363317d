"""AI adapter for portfolio insights (any OpenAI-compatible provider).

Responsibilities:
- Build a compact evidence payload from a profile and its repositories.
- Call the provider through the OpenAI SDK and parse a JSON answer.
- Normalize the result as an `InsightReport`.

Any provider failure (missing key, rate limit, timeout, malformed JSON) ends
in the heuristic report, so callers never see an AI error.
"""

from __future__ import annotations

import asyncio
import json
import logging
import random
import re
from datetime import datetime, timezone
from typing import Any, Sequence

from openai import APIConnectionError, APIStatusError, APITimeoutError, AsyncOpenAI, RateLimitError
from pydantic import BaseModel, Field, ValidationError

from core.config import AppSettings
from core.domain.models import InsightReport, Repository, UserProfile
from core.services.insights import heuristic_insights

logger = logging.getLogger(__name__)

MAX_REPOSITORIES_IN_PROMPT = 30
MAX_DESCRIPTION_CHARS = 160

_JSON_FENCE_RE = re.compile(r"```(?:json)?\s*(\{.*?\})\s*```", re.DOTALL | re.IGNORECASE)

SYSTEM_PROMPT = (
    "You review public GitHub portfolios for technical recruiters.\n"
    "You receive a JSON document with a user profile and their repositories.\n"
    "Rules:\n"
    "- Base every statement on the provided data; do not invent projects or employers.\n"
    "- Cover language expertise, activity, project impact, collaboration and account maturity.\n"
    "- Answer with ONLY a JSON object, no prose and no code fences:\n"
    '  {"summary": "<one short paragraph>", "highlights": ["<Title>: <one sentence>", ...]}\n'
)


class _AIInsightPayload(BaseModel):
    summary: str = Field(..., min_length=1)
    highlights: list[str] = Field(default_factory=list)


def build_ai_client(settings: AppSettings) -> AsyncOpenAI:
    # Retries are handled here so they can fall back to the heuristic report.
    return AsyncOpenAI(
        api_key=settings.ai_api_key,
        base_url=settings.ai_base_url,
        timeout=settings.ai_timeout_seconds,
        max_retries=0,
    )


def _truncate(value: str | None, max_chars: int) -> str | None:
    if not value or not value.strip():
        return None
    text = value.strip()
    if len(text) <= max_chars:
        return text
    return text[: max_chars - 1].rstrip() + "…"


def _extract_json_object(text: str) -> str:
    """First JSON object in the provider answer (fenced or bare)."""

    match = _JSON_FENCE_RE.search(text)
    if match:
        return match.group(1).strip()

    stripped = text.strip()
    start = stripped.find("{")
    end = stripped.rfind("}")
    if 0 <= start < end:
        return stripped[start : end + 1]
    raise ValueError("Could not locate a JSON object in the AI provider response.")


def _retry_after_seconds(exc: Exception) -> float | None:
    response = getattr(exc, "response", None)
    headers = getattr(response, "headers", None)
    if not headers:
        return None
    value = headers.get("retry-after")
    if not value:
        return None
    try:
        return max(0.0, float(value))
    except ValueError:
        return None


def _backoff_seconds(exc: Exception, attempt: int) -> float:
    retry_after = _retry_after_seconds(exc)
    base = retry_after if retry_after is not None else 1.25 * (2**attempt)
    return base + random.uniform(0.0, 0.35)


def build_evidence(profile: UserProfile, repositories: Sequence[Repository]) -> dict[str, Any]:
    ranked = sorted(repositories, key=lambda repo: repo.stargazers_count, reverse=True)
    return {
        "user": {
            "login": profile.login,
            "name": profile.name,
            "bio": _truncate(profile.bio, MAX_DESCRIPTION_CHARS),
            "company": profile.company,
            "location": profile.location,
            "followers": profile.followers,
            "following": profile.following,
            "public_repos": profile.public_repos,
            "created_at": profile.created_at,
        },
        "repositories": [
            {
                "name": repo.name,
                "description": _truncate(repo.description, MAX_DESCRIPTION_CHARS),
                "language": repo.language,
                "stars": repo.stargazers_count,
                "forks": repo.forks_count,
                "fork": repo.fork,
                "topics": repo.topics,
                "created_at": repo.created_at,
                "pushed_at": repo.pushed_at,
            }
            for repo in ranked[:MAX_REPOSITORIES_IN_PROMPT]
        ],
    }


async def analyze_portfolio(
    *,
    profile: UserProfile,
    repositories: Sequence[Repository],
    settings: AppSettings | None = None,
    client: AsyncOpenAI | None = None,
    now: datetime | None = None,
) -> InsightReport:
    """AI narrative of a portfolio, or the heuristic report when the provider is unavailable."""

    settings = settings or AppSettings()
    moment = now or datetime.now(timezone.utc)

    if not repositories:
        return heuristic_insights(profile, repositories, now=moment)
    if client is None and not (settings.ai_api_key or "").strip():
        logger.debug("No AI API key configured, using heuristic insights")
        return heuristic_insights(profile, repositories, now=moment)

    client = client or build_ai_client(settings)
    messages = [
        {"role": "system", "content": SYSTEM_PROMPT},
        {"role": "user", "content": json.dumps(build_evidence(profile, repositories), ensure_ascii=False)},
    ]

    last_error: Exception | None = None
    for attempt in range(settings.ai_max_retries + 1):
        content = ""
        try:
            response = await client.chat.completions.create(
                model=settings.ai_model,
                messages=messages,  # type: ignore[arg-type]
                temperature=0.2,
                max_tokens=900,
            )
            content = (response.choices[0].message.content or "").strip()
            parsed = _AIInsightPayload.model_validate(json.loads(_extract_json_object(content)))
            return InsightReport(
                summary=parsed.summary.strip(),
                highlights=[line.strip() for line in parsed.highlights if line.strip()],
                model=settings.ai_model,
                generated_at=moment,
            )

        except (RateLimitError, APITimeoutError, APIConnectionError) as exc:
            last_error = exc
            if attempt >= settings.ai_max_retries:
                break
            delay = _backoff_seconds(exc, attempt)
            logger.info("AI provider busy (%s), retrying in %.1fs", type(exc).__name__, delay)
            await asyncio.sleep(delay)

        except APIStatusError as exc:
            last_error = exc
            break

        except (ValueError, ValidationError) as exc:
            # json.JSONDecodeError is a ValueError.
            last_error = exc
            if attempt >= settings.ai_max_retries:
                break
            messages.append({"role": "assistant", "content": content})
            messages.append(
                {"role": "user", "content": "Your response was not valid JSON. Rewrite ONLY the JSON object."}
            )
            await asyncio.sleep(0.5)

    logger.warning(
        "AI insights failed (%s), falling back to heuristic",
        type(last_error).__name__ if last_error else "unknown",
    )
    return heuristic_insights(profile, repositories, now=moment)
