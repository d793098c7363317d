import pytest
from pydantic import ValidationError

from core.config import AppSettings, write_user_env_vars


def test_defaults(settings):
    assert settings.api_base_url == "https://api.github.com"
    assert settings.user_agent == "GitHubFolio"
    assert settings.http_timeout_seconds == 20.0
    assert settings.log_level == "WARNING"


def test_env_prefix_and_legacy_token_name(monkeypatch):
    monkeypatch.delenv("GITFOLIO_GITHUB_ACCESS_TOKEN", raising=False)
    monkeypatch.setenv("GITHUB_ACCESS_TOKEN", "legacy")
    monkeypatch.setenv("GITFOLIO_LOG_LEVEL", "debug")

    settings = AppSettings(_env_file=None)

    assert settings.github_access_token == "legacy"
    assert settings.log_level == "DEBUG"


def test_blank_ai_key_is_none():
    assert AppSettings(_env_file=None, ai_api_key="  ").ai_api_key is None


def test_write_user_env_vars_merges_existing(tmp_path):
    env_path = tmp_path / "gitfolio" / ".env"
    env_path.parent.mkdir()
    env_path.write_text('# comment\nGITFOLIO_AI_MODEL="gpt-4o"\n', encoding="utf-8")

    write_user_env_vars({"GITFOLIO_GITHUB_ACCESS_TOKEN": "abc"}, env_path=env_path)

    lines = env_path.read_text(encoding="utf-8").splitlines()
    assert "GITFOLIO_AI_MODEL=gpt-4o" in lines
    assert "GITFOLIO_GITHUB_ACCESS_TOKEN=abc" in lines


def test_unknown_log_level_is_rejected(monkeypatch):
    monkeypatch.setenv("GITFOLIO_LOG_LEVEL", "foo")

    with pytest.raises(ValidationError):
        AppSettings(_env_file=None)
