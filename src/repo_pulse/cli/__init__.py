"""CLI entry point -- registers all subcommands."""

import typer

from .. import __version__  # noqa: F401
from ._common import console  # noqa: F401

app = typer.Typer(
    name="repo-pulse",
    help="repo-pulse - commit history statistics for git repositories",
    add_completion=False,
    rich_markup_mode="rich",
)


# Import subcommands to register them
from .main import main as _main_callback  # noqa: F401, E402
from .report import (  # noqa: F401, E402
    authors as _authors,
    files as _files,
    heatmap as _heatmap,
    hotspots as _hotspots,
    ownership as _ownership,
    prs as _prs,
    summary as _summary,
    timeline as _timeline,
)
