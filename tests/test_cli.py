import json

import pytest
import respx
from httpx import Response
from typer.testing import CliRunner

from cli.main import app

API = "https://api.github.com"

runner = CliRunner()


@pytest.fixture(autouse=True)
def _isolated_env(monkeypatch, tmp_path):
    for name in ("GITFOLIO_GITHUB_ACCESS_TOKEN", "GITHUB_ACCESS_TOKEN", "GITFOLIO_AI_API_KEY", "GITFOLIO_CALLER_TOKEN"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    monkeypatch.chdir(tmp_path)


def test_projects_json_output(tmp_path):
    out = tmp_path / "out" / "projects.json"
    with respx.mock:
        respx.get(f"{API}/users/octocat/repos").mock(
            return_value=Response(
                200,
                json=[{"name": "hello", "owner": {"login": "octocat"}, "pushed_at": "2024-01-01T00:00:00Z"}],
            )
        )
        result = runner.invoke(app, ["projects", "octocat", "--json", "--output", str(out)])

    assert result.exit_code == 0, result.output
    payload = json.loads(out.read_text(encoding="utf-8"))
    assert payload["state"] == "ready"
    assert payload["featured"]["source"] == "recent"
    assert '"username": "octocat"' in result.stdout


def test_unknown_profile_exits_with_code_1():
    with respx.mock:
        respx.get(f"{API}/users/ghost").mock(return_value=Response(404, json={"message": "Not Found"}))
        result = runner.invoke(app, ["profile", "ghost"])

    assert result.exit_code == 1


def test_upstream_failure_exits_with_code_2():
    with respx.mock:
        respx.get(f"{API}/users/octocat/repos").mock(return_value=Response(502, json={"message": "Bad gateway"}))
        result = runner.invoke(app, ["commits", "octocat"])

    assert result.exit_code == 2


def test_setup_token_writes_user_env(tmp_path):
    result = runner.invoke(app, ["doctor", "setup-token"], input="ghp_example\n")

    assert result.exit_code == 0, result.output
    env_file = tmp_path / "config" / "gitfolio" / ".env"
    assert "GITFOLIO_GITHUB_ACCESS_TOKEN=ghp_example" in env_file.read_text(encoding="utf-8")


def test_invalid_log_level_exits_with_code_3(monkeypatch):
    monkeypatch.setenv("GITFOLIO_LOG_LEVEL", "FOO")

    result = runner.invoke(app, ["rate-limit"])

    assert result.exit_code == 3
    assert "Invalid configuration" in result.output


def test_rate_limit_table_shows_quota_kind():
    with respx.mock:
        respx.get(f"{API}/rate_limit").mock(
            return_value=Response(
                200,
                json={"resources": {"core": {"limit": 60, "remaining": 58, "reset": 0, "used": 2}}},
            )
        )
        result = runner.invoke(app, ["rate-limit"])

    assert result.exit_code == 0, result.output
    assert "quota: anonymous" in result.stdout
