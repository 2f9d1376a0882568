"""Shared CLI helpers: option resolution, scanning, JSON conversion."""

from __future__ import annotations

import dataclasses
import json
from datetime import date, datetime
from enum import Enum
from pathlib import Path
from typing import Any, Optional

import numpy as np
import typer
from rich.console import Console

from ..config import PulseConfig, default_date_range, load_config
from ..exceptions import InvalidPathError, PulseError, RepoPulseError
from ..history.source import is_git_repo
from ..scan import ScanResult, scan_repositories
from ..stats.merge import apply_author_merges, validate_merge_map
from .progress import ScanProgressDisplay

console = Console()
# Errors, notices and progress; stdout stays clean for --json
err_console = Console(stderr=True)


def parse_merge_options(values: Optional[list[str]]) -> dict[str, str]:
    """Turn repeated ``alias=primary`` options into a flat merge mapping."""
    mapping: dict[str, str] = {}
    for value in values or []:
        alias, sep, primary = value.partition("=")
        alias, primary = alias.strip(), primary.strip()
        if not sep or not alias or not primary:
            raise typer.BadParameter(f"expected alias=primary, got {value!r}", param_hint="--merge")
        mapping[alias] = primary
        mapping.setdefault(primary, primary)
    return mapping


def resolve_config(
    paths: Optional[list[Path]] = None,
    since: Optional[datetime] = None,
    until: Optional[datetime] = None,
    tz: Optional[str] = None,
    config_file: Optional[Path] = None,
    verbose: bool = False,
    quiet: bool = False,
) -> PulseConfig:
    """Build the config from CLI options, defaulting to the last year of the current directory."""
    config = load_config(
        config_file=config_file,
        repo_paths=[str(p) for p in paths] if paths else None,
        since=since,
        until=until,
        timezone=tz,
        verbose=verbose,
        quiet=quiet,
    )
    if not config.repo_paths:
        config = dataclasses.replace(config, repo_paths=[str(Path.cwd())])
    if config.since is None and config.until is None:
        start, end = default_date_range()
        config = dataclasses.replace(config, since=start, until=end)
    return config


def check_repositories(config: PulseConfig) -> None:
    for path in config.repo_paths:
        if not is_git_repo(path):
            raise InvalidPathError.not_a_repository(path)


def load_result(ctx: typer.Context) -> ScanResult:
    """Scan once per invocation and apply any --merge options."""
    obj = ctx.ensure_object(dict)
    if "result" in obj:
        return obj["result"]

    config: PulseConfig = obj["config"]
    merges: dict[str, str] = obj.get("merges", {})
    quiet = obj.get("json", False)

    try:
        validate_merge_map(merges)
        check_repositories(config)
        display = ScanProgressDisplay(err_console, enabled=not quiet)
        with display:
            result = scan_repositories(config=config, on_progress=display.update)
    except (RepoPulseError, PulseError) as e:
        err_console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)

    for failure in result.failures:
        err_console.print(f"[yellow]Skipped {failure.path}:[/yellow] {failure.error}")

    if merges:
        apply_author_merges(result.stats, merges)

    obj["result"] = result
    return result


def to_jsonable(value: Any) -> Any:
    """Recursively convert view results into JSON-compatible values."""
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return {f.name: to_jsonable(getattr(value, f.name)) for f in dataclasses.fields(value)}
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, np.ndarray):
        return value.tolist()
    if isinstance(value, np.generic):
        return value.item()
    if isinstance(value, dict):
        return {str(k.isoformat() if isinstance(k, date) else k): to_jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_jsonable(v) for v in value]
    return value


def print_json(value: Any) -> None:
    print(json.dumps(to_jsonable(value), indent=2, default=str))
