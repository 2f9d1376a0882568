"""Read-only projections over a RepositoryStats model.

Every function here is pure: it never mutates the model and returns freshly
allocated results (accumulators are copied), so callers may keep or modify
what they get back. Sort keys are closed enumerations; plain strings are
accepted and any unrecognised key falls back to the view's default key.

Sorting is stable in both directions: ties keep the model's insertion order.
"""

from __future__ import annotations

import copy
from datetime import timedelta
from enum import Enum
from operator import attrgetter
from typing import Any, Callable, Sequence, TypeVar, Union

import numpy as np

from ..exceptions import ErrorCode, StatsNotFinalizedError
from .models import (
    AuthorStats,
    ChurnLevel,
    CodebaseStats,
    Concentration,
    DirStats,
    FileStats,
    HeatmapData,
    HotspotFile,
    OwnershipDetail,
    PRAuthorStats,
    PRInfo,
    RepositoryStats,
    TimelineData,
    WorkPattern,
)

# Hotspot weights: churn, touch frequency, author diversity
CHURN_WEIGHT = 0.4
TOUCH_WEIGHT = 0.3
AUTHOR_WEIGHT = 0.3

BUS_FACTOR_SHARE = 10.0

# Mon-Fri, 09:00-17:59
WORK_DAYS = 5
WORK_START_HOUR = 9
WORK_END_HOUR = 18


class AuthorSort(Enum):
    NAME = "name"
    COMMITS = "commits"
    ADDITIONS = "additions"
    DELETIONS = "deletions"
    NET = "net"


class FileSort(Enum):
    PATH = "path"
    CHANGES = "changes"
    TOUCHES = "touches"
    AUTHORS = "authors"


class DirSort(Enum):
    PATH = "path"
    CHANGES = "changes"
    TOUCHES = "touches"
    AUTHORS = "authors"


class PRAuthorSort(Enum):
    NAME = "name"
    MERGES = "merges"
    CHANGES = "changes"


class PRSort(Enum):
    DATE = "date"
    SIZE = "size"
    FILES = "files"


DEFAULT_AUTHOR_SORT = AuthorSort.COMMITS
DEFAULT_FILE_SORT = FileSort.CHANGES
DEFAULT_DIR_SORT = DirSort.CHANGES
DEFAULT_PR_AUTHOR_SORT = PRAuthorSort.MERGES
DEFAULT_PR_SORT = PRSort.DATE

_AUTHOR_KEYS: dict[AuthorSort, Callable[[AuthorStats], Any]] = {
    AuthorSort.NAME: attrgetter("name"),
    AuthorSort.COMMITS: attrgetter("commits"),
    AuthorSort.ADDITIONS: attrgetter("additions"),
    AuthorSort.DELETIONS: attrgetter("deletions"),
    AuthorSort.NET: attrgetter("net"),
}

_FILE_KEYS: dict[FileSort, Callable[[FileStats], Any]] = {
    FileSort.PATH: attrgetter("path"),
    FileSort.CHANGES: attrgetter("total_changes"),
    FileSort.TOUCHES: attrgetter("touch_count"),
    FileSort.AUTHORS: attrgetter("author_count"),
}

_DIR_KEYS: dict[DirSort, Callable[[DirStats], Any]] = {
    DirSort.PATH: attrgetter("path"),
    DirSort.CHANGES: attrgetter("total_changes"),
    DirSort.TOUCHES: attrgetter("touch_count"),
    DirSort.AUTHORS: attrgetter("author_count"),
}

_PR_AUTHOR_KEYS: dict[PRAuthorSort, Callable[[PRAuthorStats], Any]] = {
    PRAuthorSort.NAME: attrgetter("name"),
    PRAuthorSort.MERGES: attrgetter("merge_count"),
    PRAuthorSort.CHANGES: attrgetter("total_changes"),
}

_PR_KEYS: dict[PRSort, Callable[[PRInfo], Any]] = {
    PRSort.DATE: attrgetter("merged_at"),
    PRSort.SIZE: attrgetter("size"),
    PRSort.FILES: attrgetter("files_count"),
}

E = TypeVar("E", bound=Enum)
T = TypeVar("T")


def coerce_sort_key(enum_cls: type[E], value: Union[E, str, None], default: E) -> E:
    """Map a sort key (member or its string value) into ``enum_cls``."""
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(value)
    except ValueError:
        return default


def _sorted_copy(
    items: Sequence[T], key: Callable[[T], Any], ascending: bool, limit: int = 0
) -> list[T]:
    ordered = sorted(items, key=key, reverse=not ascending)
    if 0 < limit < len(ordered):
        ordered = ordered[:limit]
    return [copy.deepcopy(item) for item in ordered]


def leaderboard(
    stats: RepositoryStats,
    sort_by: Union[AuthorSort, str, None] = DEFAULT_AUTHOR_SORT,
    ascending: bool = False,
) -> list[AuthorStats]:
    """Authors ordered by name, commits, additions, deletions or net lines (default: commits)."""
    key = coerce_sort_key(AuthorSort, sort_by, DEFAULT_AUTHOR_SORT)
    return _sorted_copy(list(stats.authors.values()), _AUTHOR_KEYS[key], ascending)


def top_files(
    stats: RepositoryStats,
    sort_by: Union[FileSort, str, None] = DEFAULT_FILE_SORT,
    ascending: bool = False,
    limit: int = 0,
) -> list[FileStats]:
    """Files ordered by path, changes, touches or distinct authors (default: changes)."""
    key = coerce_sort_key(FileSort, sort_by, DEFAULT_FILE_SORT)
    return _sorted_copy(list(stats.file_stats.values()), _FILE_KEYS[key], ascending, limit)


def hotspots(stats: RepositoryStats, limit: int = 0) -> list[HotspotFile]:
    """Multi-author files ranked by combined churn, touch and author-diversity risk.

    riskScore = 100 * (0.4 * churn + 0.3 * touch + 0.3 * author), where churn
    and touch are normalised by the maxima across all files and author by
    the total author count. Only files with two or more authors qualify.
    """
    files = list(stats.file_stats.values())

    max_changes = max((f.total_changes for f in files), default=0) or 1
    max_touches = max((f.touch_count for f in files), default=0) or 1
    total_authors = stats.total_authors or 1

    spots = []
    for f in files:
        author_count = f.author_count
        if author_count < 2:
            continue

        churn = f.total_changes / max_changes
        touch = f.touch_count / max_touches
        diversity = author_count / total_authors
        risk = (CHURN_WEIGHT * churn + TOUCH_WEIGHT * touch + AUTHOR_WEIGHT * diversity) * 100

        spots.append(
            HotspotFile(
                path=f.path,
                churn_score=churn,
                touch_score=touch,
                author_score=diversity,
                risk_score=risk,
                author_count=author_count,
                changes=f.total_changes,
                touch_count=f.touch_count,
            )
        )

    spots.sort(key=attrgetter("risk_score"), reverse=True)
    if 0 < limit < len(spots):
        spots = spots[:limit]
    return spots


def ownership(
    stats: RepositoryStats,
    sort_by: Union[DirSort, str, None] = DEFAULT_DIR_SORT,
    ascending: bool = False,
) -> list[DirStats]:
    """Top-level directories ordered by path, changes, touches or authors (default: changes)."""
    key = coerce_sort_key(DirSort, sort_by, DEFAULT_DIR_SORT)
    return _sorted_copy(list(stats.dir_stats.values()), _DIR_KEYS[key], ascending)


def classify_concentration(top_share: float, author_count: int) -> Concentration:
    if top_share >= 80:
        return Concentration.SINGLE_OWNER
    if top_share >= 60:
        return Concentration.CONCENTRATED
    if author_count <= 2:
        return Concentration.SHARED
    if top_share >= 40:
        return Concentration.COLLABORATIVE
    return Concentration.DISTRIBUTED


def ownership_detail(stats: RepositoryStats, path: str) -> OwnershipDetail:
    """Per-author breakdown of one directory.

    Raises:
        StatsNotFinalizedError: shares have not been computed yet
        KeyError: no directory with that path
    """
    if not stats.finalized:
        raise StatsNotFinalizedError(
            message="Ownership shares are only defined after finalize()",
            code=ErrorCode.RP300,
            context={"directory": path},
            recovery_hint="Call Aggregator.finalize() before querying ownership",
        )

    dir_stat = stats.dir_stats[path]
    authors = [copy.copy(a) for a in dir_stat.authors.values()]
    for author in authors:
        if author.share is None:
            # Only directories without changed lines keep undefined shares
            author.share = 0.0
    authors.sort(key=attrgetter("share"), reverse=True)

    top_share = authors[0].share if authors else 0.0
    return OwnershipDetail(
        path=dir_stat.path,
        authors=authors,
        total_changes=dir_stat.total_changes,
        touch_count=dir_stat.touch_count,
        top_share=top_share,
        concentration=classify_concentration(top_share, len(authors)),
        bus_factor=sum(1 for a in authors if a.share >= BUS_FACTOR_SHARE),
    )


def rolling_average(values: Sequence[int], window: int) -> list[float]:
    """Trailing mean; near the start fewer than ``window`` values are averaged."""
    if not values:
        return []
    window = max(1, window)
    data = np.asarray(values, dtype=np.float64)
    cumulative = np.concatenate(([0.0], np.cumsum(data)))
    idx = np.arange(len(data))
    start = np.maximum(idx - window + 1, 0)
    averages = (cumulative[idx + 1] - cumulative[start]) / (idx + 1 - start)
    return averages.tolist()


def timeline(stats: RepositoryStats, window: int = 7) -> TimelineData:
    """Dense daily commit counts from first to last active day, zero-filled."""
    if not stats.daily_activity:
        return TimelineData(window=window)

    first = min(stats.daily_activity)
    last = max(stats.daily_activity)
    span = (last - first).days + 1

    labels = [first + timedelta(days=offset) for offset in range(span)]
    values = [stats.daily_activity.get(day, 0) for day in labels]

    return TimelineData(
        labels=labels,
        values=values,
        rolling_avg=rolling_average(values, window),
        window=window,
    )


def classify_work_pattern(work_pct: float) -> WorkPattern:
    if work_pct >= 80:
        return WorkPattern.HIGHLY_STRUCTURED
    if work_pct >= 60:
        return WorkPattern.BALANCED
    if work_pct >= 40:
        return WorkPattern.FLEXIBLE
    return WorkPattern.NON_TRADITIONAL


def heatmap(stats: RepositoryStats) -> HeatmapData:
    """The weekday x hour matrix with its peak and work-hours breakdown."""
    matrix = stats.hourly_matrix.copy()
    total = int(matrix.sum())

    peak_day, peak_hour = np.unravel_index(int(np.argmax(matrix)), matrix.shape)
    weekday_totals = matrix.sum(axis=1)
    hour_totals = matrix.sum(axis=0)

    work_hours = int(matrix[:WORK_DAYS, WORK_START_HOUR:WORK_END_HOUR].sum())
    work_pct = work_hours / total * 100 if total else 0.0

    return HeatmapData(
        matrix=matrix,
        max_value=int(matrix.max()),
        timezone=stats.timezone,
        peak_day=int(peak_day),
        peak_hour=int(peak_hour),
        weekday_totals=[int(v) for v in weekday_totals],
        hour_totals=[int(v) for v in hour_totals],
        busiest_day=int(np.argmax(weekday_totals)),
        busiest_hour=int(np.argmax(hour_totals)),
        work_hours=work_hours,
        off_hours=total - work_hours,
        work_pct=work_pct,
        pattern=classify_work_pattern(work_pct),
    )


def pr_leaderboard(
    stats: RepositoryStats,
    sort_by: Union[PRAuthorSort, str, None] = DEFAULT_PR_AUTHOR_SORT,
    ascending: bool = False,
) -> list[PRAuthorStats]:
    """Merging authors ordered by name, merge count or changed lines (default: merges)."""
    key = coerce_sort_key(PRAuthorSort, sort_by, DEFAULT_PR_AUTHOR_SORT)
    return _sorted_copy(
        list(stats.pr_stats.merges_by_author.values()), _PR_AUTHOR_KEYS[key], ascending
    )


def pr_list(
    stats: RepositoryStats,
    sort_by: Union[PRSort, str, None] = DEFAULT_PR_SORT,
    ascending: bool = False,
    limit: int = 0,
) -> list[PRInfo]:
    """Merge records ordered by date, size or file count (default: date)."""
    key = coerce_sort_key(PRSort, sort_by, DEFAULT_PR_SORT)
    return _sorted_copy(stats.pr_stats.pr_list, _PR_KEYS[key], ascending, limit)


def classify_churn(refactored_percent: float) -> ChurnLevel:
    if refactored_percent >= 200:
        return ChurnLevel.VERY_HIGH
    if refactored_percent >= 100:
        return ChurnLevel.HIGH
    if refactored_percent >= 50:
        return ChurnLevel.MODERATE
    if refactored_percent >= 20:
        return ChurnLevel.NORMAL
    return ChurnLevel.LOW


def codebase_summary(stats: RepositoryStats) -> CodebaseStats:
    total_changes = stats.total_additions + stats.total_deletions
    refactored = total_changes / stats.codebase_size * 100 if stats.codebase_size > 0 else 0.0
    return CodebaseStats(
        total_additions=stats.total_additions,
        total_deletions=stats.total_deletions,
        total_changes=total_changes,
        files_modified=len(stats.file_stats),
        codebase_size=stats.codebase_size,
        refactored_percent=refactored,
        churn_level=classify_churn(refactored),
        net_change=stats.total_additions - stats.total_deletions,
        avg_per_commit=total_changes / stats.total_commits if stats.total_commits else 0.0,
        avg_per_author=total_changes / stats.total_authors if stats.total_authors else 0.0,
    )
