"""CLI UI components (Rich).

Why separate components:
- Keeps command logic apart from visual details.
- Tables and panels are reused by several commands.
"""

from __future__ import annotations

from rich.align import Align
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from core.domain.models import InsightReport, Repository
from core.domain.views import (
    ActivityView,
    CommitHistoryState,
    CommitHistoryView,
    FeaturedProjects,
    ProfileView,
    ProjectDetailView,
    ProjectListState,
    ProjectListView,
    RateLimitStatus,
    SectionState,
    SimilarProfilesState,
    SimilarProfilesView,
)


def print_banner(console: Console) -> None:
    """Print the welcome banner.

    Why here:
    - Avoids a circular import between main and doctor.
    - Lets non-interactive modes (--json) skip it.
    """

    title = Text("gitfolio", style="bold cyan")
    subtitle = Text("GitHub developer portfolios from the terminal", style="dim")
    body = Align.center(Text.assemble(title, "\n", subtitle), vertical="middle")
    console.print(Panel(body, border_style="cyan", padding=(1, 4)))


def build_repositories_table(repositories: list[Repository], *, title: str = "Repositories") -> Table:
    table = Table(title=title)
    table.add_column("Name", style="cyan", no_wrap=True)
    table.add_column("Language", style="white")
    table.add_column("Stars", style="yellow", justify="right")
    table.add_column("Forks", style="yellow", justify="right")
    table.add_column("Pushed", style="dim")
    table.add_column("Description", style="white")
    for repo in repositories:
        name = f"{repo.name} (fork)" if repo.fork else repo.name
        table.add_row(
            name,
            repo.language or "-",
            str(repo.stargazers_count),
            str(repo.forks_count),
            (repo.pushed_at or "")[:10],
            repo.description or "",
        )
    return table


def build_featured_table(featured: FeaturedProjects) -> Table:
    return build_repositories_table(featured.repositories, title=f"Featured ({featured.source.value})")


def build_profile_panel(view: ProfileView) -> Panel:
    profile = view.profile
    body = Text()
    body.append(f"{profile.display_name}", style="bold")
    if profile.name:
        body.append(f"  @{profile.login}", style="dim")
    body.append("\n")
    if profile.bio:
        body.append(profile.bio.strip() + "\n")
    for label, value in (("Company", profile.company), ("Location", profile.location), ("Blog", profile.blog)):
        if value:
            body.append(f"{label}: ", style="bold")
            body.append(f"{value}\n")
    body.append(
        f"\nRepos {profile.public_repos} • Followers {profile.followers} • Following {profile.following}"
        f" • Stars {view.stats.total_stars}\n"
    )
    if view.skills:
        body.append("Skills: ", style="bold")
        body.append(", ".join(view.skills) + "\n")
    if view.profile_readme.state is SectionState.FAILED:
        body.append("\nProfile README could not be loaded.", style="red")
    return Panel(body, title=Text(profile.login, style="bold cyan"), border_style="cyan")


def build_readme_panel(text: str, *, title: str = "README", max_chars: int = 2000) -> Panel:
    snippet = text if len(text) <= max_chars else text[: max_chars - 1].rstrip() + "…"
    return Panel(snippet, title=title, border_style="dim")


def render_profile(console: Console, view: ProfileView) -> None:
    console.print(build_profile_panel(view))
    if view.featured.repositories:
        console.print(build_featured_table(view.featured))
    if view.profile_readme.available and view.profile_readme.value:
        console.print(build_readme_panel(view.profile_readme.value, title="Profile README"))


def render_project_list(console: Console, view: ProjectListView) -> None:
    if view.state is ProjectListState.NO_REPOSITORIES:
        console.print(f"[yellow]{view.username} has no public repositories.[/yellow]")
        return
    if view.featured.repositories:
        console.print(build_featured_table(view.featured))
    title = f"Repositories ({len(view.repositories)} of {view.total_count})"
    console.print(build_repositories_table(view.repositories, title=title))


def render_project_detail(console: Console, view: ProjectDetailView) -> None:
    repo = view.repository
    header = Text()
    header.append(repo.slug, style="bold")
    if repo.description:
        header.append(f"\n{repo.description}")
    header.append(f"\n★ {repo.stargazers_count}  forks {repo.forks_count}  issues {repo.open_issues_count}")
    if repo.homepage:
        header.append(f"\n{repo.homepage}", style="magenta")
    console.print(Panel(header, border_style="cyan"))

    if view.languages.available and view.languages.value:
        table = Table(title="Languages")
        table.add_column("Language", style="cyan")
        table.add_column("Share", justify="right")
        for share in view.languages.value:
            table.add_row(share.language, f"{share.percentage}%")
        console.print(table)

    if view.contributors.available and view.contributors.value:
        table = Table(title="Contributors")
        table.add_column("Login", style="cyan")
        table.add_column("Commits", justify="right")
        for contributor in view.contributors.value:
            table.add_row(contributor.login, str(contributor.contributions))
        console.print(table)

    if view.readme.available and view.readme.value:
        console.print(build_readme_panel(view.readme.value))

    for name, section in (("README", view.readme), ("Contributors", view.contributors), ("Languages", view.languages)):
        if section.state is SectionState.FAILED:
            console.print(f"[red]{name} unavailable:[/red] {section.error}")


def render_similar_profiles(console: Console, view: SimilarProfilesView) -> None:
    if view.state is SimilarProfilesState.NO_SIGNAL:
        console.print("[yellow]Not enough public activity to look for similar developers.[/yellow]")
        return
    if view.state is SimilarProfilesState.NONE_FOUND:
        console.print("[yellow]No similar developers found.[/yellow]")
        return
    table = Table(title=f"Developers similar to {view.username}")
    table.add_column("Login", style="cyan", no_wrap=True)
    table.add_column("Name", style="white")
    table.add_column("Why", style="dim")
    for candidate in view.candidates:
        table.add_row(candidate.login, candidate.name or "", candidate.reason)
    console.print(table)


def render_activity(console: Console, view: ActivityView) -> None:
    if not view.points:
        console.print("[yellow]No activity to show.[/yellow]")
        return
    title = f"Activity ({view.source.value}" + (f": {view.repository})" if view.repository else ")")
    table = Table(title=title)
    table.add_column("Period", style="cyan")
    table.add_column("Count", justify="right")
    table.add_column("", style="green")
    peak = max(point.count for point in view.points) or 1
    for point in view.points:
        table.add_row(point.label, str(point.count), "█" * max(1, round(point.count / peak * 30)) if point.count else "")
    console.print(table)
    console.print(f"[dim]{view.calendar.total} pushes over the last year[/dim]")


def render_commit_history(console: Console, view: CommitHistoryView) -> None:
    if view.state is CommitHistoryState.EMPTY:
        console.print("[yellow]No commits to show.[/yellow]")
        return
    table = Table(title="Recent commits" if view.state is CommitHistoryState.COMMITS else "Repository history")
    table.add_column("Date", style="dim", no_wrap=True)
    table.add_column("Repository", style="cyan")
    table.add_column("Message", style="white")
    for commit in view.commits:
        table.add_row((commit.date or "")[:10], commit.repository, commit.message.splitlines()[0] if commit.message else "")
    console.print(table)


def build_rate_limit_table(status: RateLimitStatus) -> Table:
    table = Table(title="GitHub rate limit")
    table.add_column("Resource", style="cyan")
    table.add_column("Remaining", justify="right")
    table.add_column("Limit", justify="right")
    table.add_column("Resets", style="dim")
    snapshot = status.snapshot
    for name, bucket in (("core", snapshot.core), ("search", snapshot.search), ("graphql", snapshot.graphql)):
        style = "red" if name == "core" and status.low else "white"
        table.add_row(
            name,
            Text(str(bucket.remaining), style=style),
            str(bucket.limit),
            bucket.reset_at.strftime("%H:%M:%S UTC"),
        )
    source = status.token_source.value if status.token_source else "none"
    quota = "authenticated" if snapshot.authenticated else "anonymous"
    table.caption = f"token: {source}, quota: {quota}"
    return table


def build_insights_panel(report: InsightReport) -> Panel:
    """Panel for an `InsightReport` (heuristic or AI)."""

    body = Text()
    for line in report.highlights:
        title, _, content = line.partition(": ")
        if content:
            body.append(f"{title}\n", style="bold")
            body.append(f"{content}\n\n")
        else:
            body.append(f"- {line}\n")
    body.append("Summary\n", style="bold")
    body.append(report.summary.strip() + "\n")
    body.append(f"\nModel: {report.model}", style="dim")
    return Panel(body, title=Text("Insights", style="bold yellow"), border_style="yellow")
