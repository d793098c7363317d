"""gitfolio command line.

Every command renders one page view. `--json` prints the view as JSON instead
of Rich tables, `--output` also writes that JSON to a file.

Exit codes: 0 success, 1 profile/repository not found, 2 GitHub unreachable or
upstream error.
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Awaitable, Callable, Optional, TypeVar

import typer
from pydantic import BaseModel, ValidationError
from rich.console import Console
from rich.logging import RichHandler

from adapters.json_exporter import export_view_json, view_to_json
from cli import doctor
from cli.ui_components import (
    build_insights_panel,
    build_rate_limit_table,
    print_banner,
    render_activity,
    render_commit_history,
    render_profile,
    render_project_detail,
    render_project_list,
    render_similar_profiles,
)
from core.config import AppSettings
from core.domain.views import RepositoryFilter, RepositorySort
from core.errors import GitHubError, NotFound
from core.services import portfolio

V = TypeVar("V", bound=BaseModel)

app = typer.Typer(no_args_is_help=True, help="Read-only GitHub developer portfolios.")
app.add_typer(doctor.app, name="doctor")

_console = Console()
_err_console = Console(stderr=True)

EXIT_NOT_FOUND = 1
EXIT_UPSTREAM = 2
EXIT_CONFIG = 3

TokenOption = typer.Option(None, "--token", envvar="GITFOLIO_CALLER_TOKEN", help="GitHub token supplied by you (the configured token wins).")
JsonOption = typer.Option(False, "--json", help="Print the view as JSON.")
OutputOption = typer.Option(None, "--output", "-o", help="Also write the view as JSON to this path.")


def _configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=_err_console, rich_tracebacks=True, show_path=False)],
        force=True,
    )
    # httpx logs every request at INFO.
    logging.getLogger("httpx").setLevel(max(logging.WARNING, logging.getLevelName(level)))


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging."),
) -> None:
    try:
        settings = AppSettings()
    except ValidationError as exc:
        _err_console.print(f"[red]Invalid configuration:[/red] {exc}")
        raise typer.Exit(code=EXIT_CONFIG) from exc
    _configure_logging("DEBUG" if verbose else settings.log_level)


def _execute(
    fetch: Callable[[], Awaitable[V]],
    render: Callable[[Console, V], None],
    *,
    as_json: bool,
    output: Optional[Path],
) -> None:
    try:
        view = asyncio.run(fetch())
    except NotFound as exc:
        _err_console.print(f"[red]{exc}[/red]")
        raise typer.Exit(code=EXIT_NOT_FOUND) from exc
    except GitHubError as exc:
        _err_console.print(f"[red]GitHub request failed:[/red] {exc}")
        raise typer.Exit(code=EXIT_UPSTREAM) from exc

    if output is not None:
        path = export_view_json(view=view, output_path=output)
        _err_console.print(f"[green]Saved JSON to:[/green] {path}")
    if as_json:
        typer.echo(view_to_json(view), nl=False)
        return
    print_banner(_console)
    render(_console, view)


@app.command()
def profile(
    username: str = typer.Argument(..., help="GitHub login."),
    token: Optional[str] = TokenOption,
    as_json: bool = JsonOption,
    output: Optional[Path] = OutputOption,
) -> None:
    """Profile header, skills, featured repositories and profile README."""

    _execute(lambda: portfolio.profile_page(username, caller_token=token), render_profile, as_json=as_json, output=output)


@app.command()
def projects(
    username: str = typer.Argument(..., help="GitHub login."),
    filter: RepositoryFilter = typer.Option(RepositoryFilter.ALL, "--filter", help="all, source or forked."),
    sort: RepositorySort = typer.Option(RepositorySort.STARS, "--sort", help="stars, updated or name."),
    search: Optional[str] = typer.Option(None, "--search", "-s", help="Match name or description."),
    token: Optional[str] = TokenOption,
    as_json: bool = JsonOption,
    output: Optional[Path] = OutputOption,
) -> None:
    """Featured repositories plus the full, filterable repository list."""

    _execute(
        lambda: portfolio.project_list_page(username, caller_token=token, filter=filter, sort=sort, query=search),
        render_project_list,
        as_json=as_json,
        output=output,
    )


@app.command()
def project(
    username: str = typer.Argument(..., help="Repository owner."),
    repository: str = typer.Argument(..., help="Repository name."),
    token: Optional[str] = TokenOption,
    as_json: bool = JsonOption,
    output: Optional[Path] = OutputOption,
) -> None:
    """One repository: metadata, README, contributors and language breakdown."""

    _execute(
        lambda: portfolio.project_detail_page(username, repository, caller_token=token),
        render_project_detail,
        as_json=as_json,
        output=output,
    )


@app.command()
def similar(
    username: str = typer.Argument(..., help="GitHub login."),
    token: Optional[str] = TokenOption,
    as_json: bool = JsonOption,
    output: Optional[Path] = OutputOption,
) -> None:
    """Developers with similar languages, topics or followers (best effort)."""

    _execute(
        lambda: portfolio.similar_profiles_page(username, caller_token=token),
        render_similar_profiles,
        as_json=as_json,
        output=output,
    )


@app.command()
def activity(
    username: str = typer.Argument(..., help="GitHub login."),
    token: Optional[str] = TokenOption,
    as_json: bool = JsonOption,
    output: Optional[Path] = OutputOption,
) -> None:
    """Weekly commit activity, or monthly push history as a fallback."""

    _execute(lambda: portfolio.activity_page(username, caller_token=token), render_activity, as_json=as_json, output=output)


@app.command()
def commits(
    username: str = typer.Argument(..., help="GitHub login."),
    token: Optional[str] = TokenOption,
    as_json: bool = JsonOption,
    output: Optional[Path] = OutputOption,
) -> None:
    """Latest commits authored by the user in their most recently pushed repositories."""

    _execute(
        lambda: portfolio.commit_history_page(username, caller_token=token),
        render_commit_history,
        as_json=as_json,
        output=output,
    )


@app.command(name="rate-limit")
def rate_limit(
    token: Optional[str] = TokenOption,
    as_json: bool = JsonOption,
    output: Optional[Path] = OutputOption,
) -> None:
    """Remaining GitHub API quota and which token is in use."""

    def render(console: Console, status) -> None:
        console.print(build_rate_limit_table(status))
        if status.low:
            console.print("[yellow]Low quota: set a token with `gitfolio doctor setup-token`.[/yellow]")

    _execute(lambda: portfolio.rate_limit_status(token), render, as_json=as_json, output=output)


@app.command()
def insights(
    username: str = typer.Argument(..., help="GitHub login."),
    token: Optional[str] = TokenOption,
    as_json: bool = JsonOption,
    output: Optional[Path] = OutputOption,
) -> None:
    """Narrative summary of a portfolio (AI when configured, heuristic otherwise)."""

    _execute(
        lambda: portfolio.insights_page(username, caller_token=token),
        lambda console, report: console.print(build_insights_panel(report)),
        as_json=as_json,
        output=output,
    )


def run() -> None:
    app()


if __name__ == "__main__":
    run()
