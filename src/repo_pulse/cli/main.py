"""Top-level callback: shared options for every report command."""

from datetime import datetime
from pathlib import Path
from typing import List, Optional

import typer

from .. import __version__
from ..exceptions import RepoPulseError
from ..logging_config import setup_logging
from . import app
from ._common import console, err_console, parse_merge_options, resolve_config

DATE_FORMATS = ["%Y-%m-%d", "%Y-%m-%dT%H:%M:%S", "%Y-%m-%d %H:%M:%S"]


@app.callback(invoke_without_command=True)
def main(
    ctx: typer.Context,
    path: Optional[List[Path]] = typer.Option(
        None,
        "--path",
        "-p",
        help="Repository to scan (repeat for several; default: current directory)",
        file_okay=False,
        dir_okay=True,
    ),
    since: Optional[datetime] = typer.Option(
        None,
        "--since",
        help="Only commits after this date (default: one year ago)",
        formats=DATE_FORMATS,
    ),
    until: Optional[datetime] = typer.Option(
        None,
        "--until",
        help="Only commits before this date (default: now)",
        formats=DATE_FORMATS,
    ),
    tz: Optional[str] = typer.Option(
        None,
        "--tz",
        help="IANA time zone for daily and hourly bucketing (default: local)",
    ),
    merge: Optional[List[str]] = typer.Option(
        None,
        "--merge",
        "-m",
        help="Fold an author identity into another: alias@email=primary@email",
    ),
    config: Optional[Path] = typer.Option(
        None,
        "--config",
        "-c",
        help="TOML configuration file",
        exists=True,
        file_okay=True,
        dir_okay=False,
    ),
    json_output: bool = typer.Option(
        False,
        "--json",
        help="Output in machine-readable JSON format",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Show debug logging",
    ),
    quiet: bool = typer.Option(
        False,
        "--quiet",
        "-q",
        help="Only log errors",
    ),
    log_file: Optional[Path] = typer.Option(
        None,
        "--log-file",
        help="Also append log records to this file",
        dir_okay=False,
    ),
    version: bool = typer.Option(
        False,
        "--version",
        help="Show version and exit",
        is_eager=True,
    ),
):
    """
    Commit history statistics: authors, hotspots, ownership, activity and PRs.

    Runs [bold]summary[/bold] when no command is given.

    [bold cyan]Examples:[/bold cyan]

      repo-pulse

      repo-pulse --since 2024-01-01 authors --sort additions

      repo-pulse -p ../api -p ../web hotspots

      repo-pulse -m jo@old.com=jo@new.com ownership src
    """
    if version:
        console.print(f"repo-pulse [cyan]{__version__}[/cyan]")
        raise typer.Exit(0)

    try:
        settings = resolve_config(
            paths=path,
            since=since,
            until=until,
            tz=tz,
            config_file=config,
            verbose=verbose,
            quiet=quiet,
        )
    except RepoPulseError as e:
        err_console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)

    setup_logging(settings.verbosity, log_file=str(log_file) if log_file else None)

    ctx.obj = {
        "config": settings,
        "merges": parse_merge_options(merge),
        "json": json_output,
    }

    if ctx.invoked_subcommand is None:
        from .report import render_summary

        render_summary(ctx)
