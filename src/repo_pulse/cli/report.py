"""Report commands -- summary, authors, files, hotspots, ownership, timeline, heatmap, prs."""

from typing import Optional

import typer
from rich.panel import Panel
from rich.table import Table

from ..stats import views
from ..stats.merge import find_similar_authors
from ..stats.views import AuthorSort, DirSort, FileSort, PRAuthorSort, PRSort
from . import app
from ._common import console, err_console, load_result, print_json
from ._render import (
    WEEKDAYS,
    format_number,
    heatmap_grid,
    risk_bar,
    risk_style,
    sparkline_with_width,
)


def _wants_json(ctx: typer.Context) -> bool:
    return bool(ctx.obj.get("json", False))


def _hour_label(hour: int, use_24h: bool) -> str:
    if use_24h:
        return f"{hour:02d}:00"
    suffix = "am" if hour < 12 else "pm"
    return f"{hour % 12 or 12}{suffix}"


def _date_range_label(stats) -> str:
    since, until = stats.date_range.since, stats.date_range.until
    start = since.strftime("%Y-%m-%d") if since else "beginning"
    end = until.strftime("%Y-%m-%d") if until else "now"
    return f"{start} .. {end}"


# ---------------------------------------------------------------------------
# summary
# ---------------------------------------------------------------------------


def render_summary(ctx: typer.Context) -> None:
    """Headline numbers for the scanned window."""
    result = load_result(ctx)
    stats = result.stats
    codebase = views.codebase_summary(stats)

    if _wants_json(ctx):
        print_json(
            {
                "repositories": [
                    {"path": r.path, "outcome": r.outcome.value, "commits": r.commits}
                    for r in result.repos
                ],
                "date_range": stats.date_range,
                "total_commits": stats.total_commits,
                "total_authors": stats.total_authors,
                "total_merges": stats.pr_stats.total_merges,
                "codebase": codebase,
            }
        )
        return

    lines = [
        f"[bold]Repositories:[/bold] {', '.join(r.path for r in result.repos)}",
        f"[bold]Window:[/bold] {_date_range_label(stats)}",
        "",
        f"[bold]Commits:[/bold] {format_number(stats.total_commits)}"
        f"   [bold]Authors:[/bold] {stats.total_authors}"
        f"   [bold]Merges:[/bold] {stats.pr_stats.total_merges}",
        f"[green]+{format_number(codebase.total_additions)}[/green] "
        f"[red]-{format_number(codebase.total_deletions)}[/red] "
        f"(net {codebase.net_change:+,}) across {codebase.files_modified} files",
        f"[dim]{codebase.avg_per_commit:.1f} lines/commit, "
        f"{codebase.avg_per_author:.1f} lines/author[/dim]",
    ]
    if codebase.codebase_size > 0:
        lines.append(
            f"[bold]Churn:[/bold] {codebase.refactored_percent:.1f}% of "
            f"{format_number(codebase.codebase_size)} current lines "
            f"([cyan]{codebase.churn_level.value}[/cyan])"
        )
    if result.cancelled:
        lines.append("[yellow]Scan was cancelled; results are partial.[/yellow]")

    console.print()
    console.print(Panel("\n".join(lines), title="repo-pulse", expand=False))
    console.print()


@app.command()
def summary(ctx: typer.Context):
    """
    Totals for the scanned window: commits, authors, lines and churn.

    [bold cyan]Examples:[/bold cyan]

      repo-pulse summary

      repo-pulse --json summary
    """
    render_summary(ctx)


# ---------------------------------------------------------------------------
# authors
# ---------------------------------------------------------------------------


@app.command()
def authors(
    ctx: typer.Context,
    sort: AuthorSort = typer.Option(
        AuthorSort.COMMITS, "--sort", "-s", help="Sort key", case_sensitive=False
    ),
    ascending: bool = typer.Option(False, "--asc", help="Sort ascending"),
    limit: int = typer.Option(0, "--limit", "-n", help="Rows to show (0 = config max_authors)", min=0),
    similar: Optional[str] = typer.Option(
        None,
        "--similar",
        help="List identities that look like this email instead (merge candidates)",
    ),
):
    """
    Author leaderboard.

    [bold cyan]Examples:[/bold cyan]

      repo-pulse authors --sort additions

      repo-pulse authors --similar jo@example.com
    """
    result = load_result(ctx)
    config = ctx.obj["config"]

    if similar:
        rows = find_similar_authors(result.stats, similar)
        title = f"Identities similar to {similar}"
    else:
        rows = views.leaderboard(result.stats, sort, ascending)
        rows = rows[: limit or config.max_authors]
        title = "Authors"

    if _wants_json(ctx):
        print_json(rows)
        return

    if not rows:
        console.print("[yellow]No authors found.[/yellow]")
        return

    table = Table(title=title, show_lines=False, pad_edge=True)
    table.add_column("#", style="dim", justify="right")
    table.add_column("Author", style="bold")
    table.add_column("Email", style="dim")
    table.add_column("Commits", justify="right", style="cyan")
    table.add_column("Added", justify="right", style="green")
    table.add_column("Deleted", justify="right", style="red")
    table.add_column("Net", justify="right")
    table.add_column("Files", justify="right")

    for i, a in enumerate(rows, 1):
        table.add_row(
            str(i),
            a.name,
            a.email,
            str(a.commits),
            format_number(a.additions),
            format_number(a.deletions),
            f"{a.net:+,}",
            str(len(a.files_touched)),
        )

    console.print()
    console.print(table)
    console.print()


# ---------------------------------------------------------------------------
# files / hotspots
# ---------------------------------------------------------------------------


@app.command()
def files(
    ctx: typer.Context,
    sort: FileSort = typer.Option(FileSort.CHANGES, "--sort", "-s", help="Sort key", case_sensitive=False),
    ascending: bool = typer.Option(False, "--asc", help="Sort ascending"),
    limit: int = typer.Option(0, "--limit", "-n", help="Rows to show (0 = config max_files)", min=0),
):
    """
    Most changed files.

    [bold cyan]Examples:[/bold cyan]

      repo-pulse files

      repo-pulse files --sort touches -n 10
    """
    result = load_result(ctx)
    config = ctx.obj["config"]
    rows = views.top_files(result.stats, sort, ascending, limit or config.max_files)

    if _wants_json(ctx):
        print_json(rows)
        return

    if not rows:
        console.print("[yellow]No file changes found.[/yellow]")
        return

    table = Table(title="Files", show_lines=False, pad_edge=True)
    table.add_column("File", style="cyan", max_width=60)
    table.add_column("Changes", justify="right", style="bold")
    table.add_column("+", justify="right", style="green")
    table.add_column("-", justify="right", style="red")
    table.add_column("Commits", justify="right")
    table.add_column("Authors", justify="right")

    for f in rows:
        table.add_row(
            f.path,
            format_number(f.total_changes),
            format_number(f.additions),
            format_number(f.deletions),
            str(f.touch_count),
            str(f.author_count),
        )

    console.print()
    console.print(table)
    console.print()


@app.command()
def hotspots(
    ctx: typer.Context,
    limit: int = typer.Option(0, "--limit", "-n", help="Rows to show (0 = config max_files)", min=0),
):
    """
    Multi-author files ranked by churn, touch frequency and author diversity.

    [bold cyan]Examples:[/bold cyan]

      repo-pulse hotspots

      repo-pulse --json hotspots -n 5
    """
    result = load_result(ctx)
    config = ctx.obj["config"]
    rows = views.hotspots(result.stats, limit or config.max_files)

    if _wants_json(ctx):
        print_json(rows)
        return

    if not rows:
        console.print("[green]No hotspots:[/green] no file was changed by more than one author.")
        return

    table = Table(title="Hotspots", show_lines=False, pad_edge=True)
    table.add_column("File", style="cyan", max_width=60)
    table.add_column("Risk", justify="left")
    table.add_column("Score", justify="right")
    table.add_column("Changes", justify="right")
    table.add_column("Commits", justify="right")
    table.add_column("Authors", justify="right")

    for h in rows:
        style = risk_style(h.risk_score)
        table.add_row(
            h.path,
            f"[{style}]{risk_bar(h.risk_score)}[/{style}]",
            f"[{style}]{h.risk_score:.1f}[/{style}]",
            format_number(h.changes),
            str(h.touch_count),
            str(h.author_count),
        )

    console.print()
    console.print(table)
    high = sum(1 for h in rows if h.risk_score >= config.high_risk_score)
    if high:
        console.print(
            f"[red]{high} file(s)[/red] at or above risk {config.high_risk_score:.0f}"
        )
    console.print()


# ---------------------------------------------------------------------------
# ownership
# ---------------------------------------------------------------------------


@app.command()
def ownership(
    ctx: typer.Context,
    directory: Optional[str] = typer.Argument(
        None, help="Top-level directory to break down by author"
    ),
    sort: DirSort = typer.Option(DirSort.CHANGES, "--sort", "-s", help="Sort key", case_sensitive=False),
    ascending: bool = typer.Option(False, "--asc", help="Sort ascending"),
):
    """
    Directory ownership, or one directory's per-author shares.

    [bold cyan]Examples:[/bold cyan]

      repo-pulse ownership

      repo-pulse ownership src
    """
    result = load_result(ctx)
    stats = result.stats

    if directory is not None:
        try:
            detail = views.ownership_detail(stats, directory)
        except KeyError:
            err_console.print(f"[red]Error:[/red] no changes recorded under {directory!r}")
            raise typer.Exit(1)
        _output_ownership_detail(ctx, detail)
        return

    rows = views.ownership(stats, sort, ascending)
    if _wants_json(ctx):
        print_json(rows)
        return

    if not rows:
        console.print("[yellow]No directories found.[/yellow]")
        return

    table = Table(title="Ownership", show_lines=False, pad_edge=True)
    table.add_column("Directory", style="cyan")
    table.add_column("Changes", justify="right", style="bold")
    table.add_column("Commits", justify="right")
    table.add_column("Authors", justify="right")
    table.add_column("Top owner")
    table.add_column("Share", justify="right")

    for d in rows:
        top = max(d.authors.values(), key=lambda a: a.share or 0.0, default=None)
        table.add_row(
            d.path,
            format_number(d.total_changes),
            str(d.touch_count),
            str(d.author_count),
            top.name if top else "-",
            f"{top.share:.1f}%" if top and top.share is not None else "-",
        )

    console.print()
    console.print(table)
    console.print()


def _output_ownership_detail(ctx: typer.Context, detail) -> None:
    if _wants_json(ctx):
        print_json(detail)
        return

    table = Table(title=f"Ownership of {detail.path}", show_lines=False, pad_edge=True)
    table.add_column("Author", style="bold")
    table.add_column("Email", style="dim")
    table.add_column("Commits", justify="right")
    table.add_column("Changes", justify="right")
    table.add_column("Share", justify="right", style="cyan")

    for a in detail.authors:
        table.add_row(a.name, a.email, str(a.commits), format_number(a.changes), f"{a.share:.1f}%")

    console.print()
    console.print(table)
    console.print(
        f"[bold]Concentration:[/bold] {detail.concentration.value}"
        f"   [bold]Bus factor:[/bold] {detail.bus_factor}"
    )
    console.print()


# ---------------------------------------------------------------------------
# timeline / heatmap
# ---------------------------------------------------------------------------


@app.command()
def timeline(
    ctx: typer.Context,
    window: int = typer.Option(0, "--window", "-w", help="Rolling average window in days (0 = config)", min=0),
):
    """
    Daily commit activity with a rolling average.

    [bold cyan]Examples:[/bold cyan]

      repo-pulse timeline

      repo-pulse timeline --window 14
    """
    result = load_result(ctx)
    config = ctx.obj["config"]
    data = views.timeline(result.stats, window or config.rolling_window)

    if _wants_json(ctx):
        print_json(data)
        return

    if not data.values:
        console.print("[yellow]No commits in this window.[/yellow]")
        return

    peak = max(range(len(data.values)), key=data.values.__getitem__)
    active = sum(1 for v in data.values if v)
    width = config.sparkline_width

    console.print()
    console.print(f"[bold]Activity[/bold] {data.labels[0]} .. {data.labels[-1]} ({len(data.labels)} days)")
    console.print(f"  commits  [cyan]{sparkline_with_width(data.values, width)}[/cyan]")
    smoothed = [round(v) for v in data.rolling_avg]
    console.print(f"  {data.window}d avg   [green]{sparkline_with_width(smoothed, width)}[/green]")
    console.print(
        f"[dim]Peak {data.values[peak]} commits on {data.labels[peak]}; "
        f"active on {active} of {len(data.values)} days[/dim]"
    )
    console.print()


@app.command()
def heatmap(ctx: typer.Context):
    """
    Commits by weekday and hour of day.

    [bold cyan]Examples:[/bold cyan]

      repo-pulse heatmap

      repo-pulse --tz Europe/Berlin heatmap
    """
    result = load_result(ctx)
    config = ctx.obj["config"]
    data = views.heatmap(result.stats)

    if _wants_json(ctx):
        print_json(data)
        return

    if data.max_value == 0:
        console.print("[yellow]No commits in this window.[/yellow]")
        return

    h24 = config.time_format_24h
    zone = str(data.timezone) if data.timezone is not None else "local time"

    console.print()
    console.print(f"[bold]Commit heatmap[/bold] [dim]({zone})[/dim]")
    console.print(heatmap_grid(data.matrix, data.max_value))
    console.print()
    console.print(
        f"[bold]Peak:[/bold] {WEEKDAYS[data.peak_day]} {_hour_label(data.peak_hour, h24)}"
        f"   [bold]Busiest day:[/bold] {WEEKDAYS[data.busiest_day]}"
        f"   [bold]Busiest hour:[/bold] {_hour_label(data.busiest_hour, h24)}"
    )
    console.print(
        f"[bold]Work hours:[/bold] {data.work_pct:.0f}% "
        f"({data.work_hours} in, {data.off_hours} out) - [cyan]{data.pattern.value}[/cyan]"
    )
    console.print()


# ---------------------------------------------------------------------------
# prs
# ---------------------------------------------------------------------------


@app.command()
def prs(
    ctx: typer.Context,
    sort: PRSort = typer.Option(PRSort.DATE, "--sort", "-s", help="Sort key for merges", case_sensitive=False),
    ascending: bool = typer.Option(False, "--asc", help="Sort ascending"),
    limit: int = typer.Option(20, "--limit", "-n", help="Merges to show (0 = all)", min=0),
    by_author: bool = typer.Option(False, "--by-author", help="Show who merges instead of the merge list"),
    author_sort: PRAuthorSort = typer.Option(
        PRAuthorSort.MERGES, "--author-sort", help="Sort key with --by-author", case_sensitive=False
    ),
):
    """
    Merge commits and pull requests.

    [bold cyan]Examples:[/bold cyan]

      repo-pulse prs

      repo-pulse prs --sort size -n 10

      repo-pulse prs --by-author
    """
    result = load_result(ctx)
    pr_stats = result.stats.pr_stats

    if by_author:
        rows = views.pr_leaderboard(result.stats, author_sort, ascending)
        if _wants_json(ctx):
            print_json(rows)
            return
        table = Table(title="Merges by author", show_lines=False, pad_edge=True)
        table.add_column("Author", style="bold")
        table.add_column("Merges", justify="right", style="cyan")
        table.add_column("Changes", justify="right")
        table.add_column("PRs", style="dim")
        for a in rows:
            numbers = ", ".join(f"#{n}" for n in a.pr_numbers[:8])
            if len(a.pr_numbers) > 8:
                numbers += ", ..."
            table.add_row(a.name, str(a.merge_count), format_number(a.total_changes), numbers)
    else:
        rows = views.pr_list(result.stats, sort, ascending, limit)
        if _wants_json(ctx):
            print_json(rows)
            return
        table = Table(title="Merges", show_lines=False, pad_edge=True)
        table.add_column("PR", justify="right", style="bold")
        table.add_column("Merged", style="green")
        table.add_column("By")
        table.add_column("Branch", style="cyan", max_width=40)
        table.add_column("Size", justify="right")
        table.add_column("Files", justify="right")
        for p in rows:
            table.add_row(
                f"#{p.pr_number}" if p.pr_number else "-",
                p.merged_at.strftime("%Y-%m-%d"),
                p.merged_by,
                p.branch or "-",
                format_number(p.size),
                str(p.files_count),
            )

    if not rows:
        console.print("[yellow]No merge commits in this window.[/yellow]")
        return

    console.print()
    console.print(table)
    console.print(
        f"[dim]{pr_stats.total_merges} merges, {pr_stats.total_prs} with a PR number[/dim]"
    )
    console.print()
