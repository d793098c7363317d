"""Core configuration.

Why here:
- Centralizes environment variables (pydantic-settings) without leaking into the CLI.
- Lets adapters (HTTP/AI) read configuration consistently.
"""

from __future__ import annotations

import logging
import os
import sys
from pathlib import Path

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


def get_user_config_dir() -> Path:
    """Per-user configuration directory (cross-platform, no extra dependencies)."""

    if sys.platform.startswith("win"):
        base = Path(os.environ.get("APPDATA", str(Path.home())))
        return base / "gitfolio"
    if sys.platform == "darwin":
        return Path.home() / "Library" / "Application Support" / "gitfolio"

    xdg = os.environ.get("XDG_CONFIG_HOME")
    if xdg:
        return Path(xdg) / "gitfolio"
    return Path.home() / ".config" / "gitfolio"


def get_user_env_file() -> Path:
    return get_user_config_dir() / ".env"


def _parse_env_lines(text: str) -> dict[str, str]:
    data: dict[str, str] = {}
    for raw_line in text.splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue
        if "=" not in line:
            continue
        key, value = line.split("=", 1)
        key = key.strip()
        value = value.strip().strip('"').strip("'")
        if key:
            data[key] = value
    return data


def write_user_env_vars(values: dict[str, str], *, env_path: Path | None = None) -> Path:
    """Write or update variables in the user's global .env file."""

    env_path = env_path or get_user_env_file()
    env_path.parent.mkdir(parents=True, exist_ok=True)

    existing: dict[str, str] = {}
    if env_path.exists():
        existing = _parse_env_lines(env_path.read_text(encoding="utf-8"))

    existing.update({k: v for k, v in values.items() if v is not None})

    lines = ["# gitfolio user config (.env)"]
    for key in sorted(existing.keys()):
        lines.append(f"{key}={existing[key]}")
    env_path.write_text("\n".join(lines) + "\n", encoding="utf-8")
    return env_path


class AppSettings(BaseSettings):
    """Central application settings.

    Why pydantic-settings:
    - Typed and validated at the edge (env vars) without polluting the Core.
    - One configuration contract shared by the CLI, the client and the aggregators.
    """

    model_config = SettingsConfigDict(
        env_prefix="GITFOLIO_",
        extra="ignore",
        case_sensitive=False,
        # Order: project first (dev), then the user's global config.
        env_file=(".env", str(get_user_env_file())),
        env_file_encoding="utf-8",
        populate_by_name=True,
    )

    github_access_token: str | None = Field(
        default=None,
        validation_alias=AliasChoices("GITFOLIO_GITHUB_ACCESS_TOKEN", "GITHUB_ACCESS_TOKEN"),
        description="Server-side GitHub token. Always wins over a caller-supplied one.",
    )
    api_base_url: str = Field(
        default="https://api.github.com",
        min_length=8,
        description="Base URL of the GitHub REST v3 API.",
    )
    graphql_url: str = Field(
        default="https://api.github.com/graphql",
        min_length=8,
        description="GitHub GraphQL v4 endpoint.",
    )
    user_agent: str = Field(
        default="GitHubFolio",
        min_length=1,
        description="Identification header sent on every GitHub request.",
    )
    http_timeout_seconds: float = Field(
        default=20.0,
        gt=0,
        description="Per-request timeout (seconds). Expiry surfaces as Unreachable.",
    )
    rate_limit_warning_threshold: int = Field(
        default=10,
        ge=0,
        description="Remaining-call count at or below which the quota is reported as low.",
    )
    log_level: str = Field(
        default="WARNING",
        description="Log level for the CLI (DEBUG, INFO, WARNING, ERROR).",
    )

    ai_api_key: str | None = Field(
        default=None,
        description="API key for an OpenAI-compatible provider used by `insights`.",
    )
    ai_base_url: str = Field(
        default="https://api.openai.com/v1",
        min_length=8,
        description="OpenAI-compatible base URL.",
    )
    ai_model: str = Field(
        default="gpt-4o-mini",
        min_length=1,
        description="Model used for the remote portfolio narrative.",
    )
    ai_timeout_seconds: float = Field(
        default=45.0,
        gt=0,
        description="Timeout for AI provider calls (seconds).",
    )
    ai_max_retries: int = Field(
        default=2,
        ge=0,
        le=10,
        description="Maximum retries on transient AI provider failures (rate limit, network).",
    )

    @field_validator("github_access_token", "ai_api_key")
    @classmethod
    def _blank_as_none(cls, value: str | None) -> str | None:
        if value is None:
            return None
        value = value.strip()
        return value or None

    @field_validator("log_level")
    @classmethod
    def _upper_level(cls, value: str) -> str:
        level = value.strip().upper() or "WARNING"
        if not isinstance(logging.getLevelName(level), int):
            raise ValueError(f"unknown log level {value!r}; use DEBUG, INFO, WARNING, ERROR or CRITICAL")
        return level
