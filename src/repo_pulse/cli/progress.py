"""Scan progress display for the repo-pulse CLI."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

from rich.console import Console
from rich.progress import (
    BarColumn,
    MofNCompleteColumn,
    Progress,
    SpinnerColumn,
    TaskID,
    TextColumn,
    TimeElapsedColumn,
)

from ..history.models import ScanProgress


class ScanProgressDisplay:
    """Live commit counter fed by scan progress events.

    One task per repository. When git can estimate the commit count the
    task gets a determinate bar, otherwise it just counts.
    """

    def __init__(self, console: Console | None = None, enabled: bool = True):
        self.console = console or Console()
        self.enabled = enabled
        self._progress: Optional[Progress] = None
        self._tasks: dict[str, TaskID] = {}

    def __enter__(self) -> "ScanProgressDisplay":
        if self.enabled:
            self._progress = Progress(
                SpinnerColumn(),
                TextColumn("[bold]{task.description}"),
                BarColumn(bar_width=40, complete_style="cyan", finished_style="green"),
                MofNCompleteColumn(),
                TimeElapsedColumn(),
                console=self.console,
                transient=True,
            )
            self._progress.start()
        return self

    def __exit__(self, *exc_info) -> None:
        if self._progress is not None:
            self._progress.stop()
            self._progress = None

    def update(self, repo_path: str, event: ScanProgress) -> None:
        if self._progress is None:
            return

        task_id = self._tasks.get(repo_path)
        if task_id is None:
            total = event.total_estimate if event.total_estimate > 0 else None
            task_id = self._progress.add_task(Path(repo_path).name, total=total)
            self._tasks[repo_path] = task_id

        name = Path(repo_path).name
        if event.done:
            description = f"[green]{name}[/] done"
            self._progress.update(
                task_id,
                completed=event.commits_parsed,
                total=event.commits_parsed,
                description=description,
            )
            return

        description = f"{name} [dim]{event.current_hash}[/]" if event.current_hash else name
        self._progress.update(task_id, completed=event.commits_parsed, description=description)
