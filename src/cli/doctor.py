"""Doctor command for environment diagnostics."""

from __future__ import annotations

import asyncio

import typer
from rich.console import Console
from rich.table import Table

from adapters.github_client import GitHubClient
from core.config import AppSettings, write_user_env_vars
from core.credentials import resolve_credential
from core.errors import GitHubError, describe_error

app = typer.Typer(no_args_is_help=True, help="Environment diagnostics and configuration checks.")

_console = Console()


async def _check_github(settings: AppSettings) -> tuple[bool, str, str | None]:
    """Reach the API and read the current quota (does not count against it)."""

    credential = resolve_credential(settings)
    try:
        async with GitHubClient(settings, credential) as client:
            snapshot = await client.fetch_rate_limit()
    except GitHubError as exc:
        return False, describe_error(exc), None
    quota = f"{snapshot.core.remaining}/{snapshot.core.limit} core requests left"
    return True, f"HTTP OK ({settings.api_base_url})", quota


@app.command()
def run() -> None:
    """Run baseline diagnostics and show recommended fixes."""

    settings = AppSettings()

    table = Table(title="gitfolio doctor")
    table.add_column("Check", style="bright_green", no_wrap=True)
    table.add_column("Status", style="white")
    table.add_column("Details", style="dim")

    # Config
    if settings.github_access_token:
        table.add_row("GitHub token", "OK", "Authenticated calls (pinned repositories enabled)")
    else:
        table.add_row("GitHub token", "OPTIONAL", "No token -> 60 requests/hour, no pinned repositories")
    if settings.ai_api_key:
        table.add_row("AI key", "OK", f"{settings.ai_model} @ {settings.ai_base_url}")
    else:
        table.add_row("AI key", "OPTIONAL", "No key set -> heuristic insights")

    ok_http, detail_http, quota = asyncio.run(_check_github(settings))
    table.add_row("GitHub API", "OK" if ok_http else "FAIL", detail_http)
    if quota:
        table.add_row("Rate limit", "OK", quota)

    _console.print(table)

    if not settings.github_access_token:
        _console.print("\n[yellow]Tip:[/yellow] run `gitfolio doctor setup-token` to store a personal access token.")


@app.command(name="setup-token")
def setup_token() -> None:
    """Store a GitHub personal access token in the user config .env.

    No manual .env editing needed. A read-only token with no scopes is enough.
    """

    token = typer.prompt("GitHub personal access token", hide_input=True, confirmation_prompt=False).strip()
    if not token:
        raise typer.BadParameter("token is required")

    env_path = write_user_env_vars({"GITFOLIO_GITHUB_ACCESS_TOKEN": token})
    _console.print(f"[green]Saved GitHub token to:[/green] {env_path}")
