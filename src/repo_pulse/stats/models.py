"""Accumulators and view models for aggregated commit statistics."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, tzinfo
from enum import Enum
from typing import Optional

import numpy as np

DAYS_PER_WEEK = 7
HOURS_PER_DAY = 24


def empty_hour_matrix() -> np.ndarray:
    """Weekday x hour counters, Monday = row 0."""
    return np.zeros((DAYS_PER_WEEK, HOURS_PER_DAY), dtype=np.int64)


@dataclass
class DateRange:
    since: Optional[datetime] = None
    until: Optional[datetime] = None


@dataclass
class AuthorStats:
    name: str
    email: str
    commits: int = 0
    additions: int = 0
    deletions: int = 0
    files_touched: dict[str, int] = field(default_factory=dict)  # path -> commits
    first_commit: Optional[datetime] = None
    last_commit: Optional[datetime] = None

    @property
    def net(self) -> int:
        return self.additions - self.deletions


@dataclass
class FileStats:
    path: str
    total_changes: int = 0  # additions + deletions
    touch_count: int = 0  # distinct commits affecting this file
    authors: dict[str, int] = field(default_factory=dict)  # email -> commits
    additions: int = 0
    deletions: int = 0

    @property
    def author_count(self) -> int:
        return len(self.authors)


@dataclass
class DirAuthorStats:
    name: str
    email: str
    commits: int = 0
    changes: int = 0
    share: Optional[float] = None  # percent of directory changes, set by finalize()


@dataclass
class DirStats:
    path: str  # top-level path segment, "." for root files
    authors: dict[str, DirAuthorStats] = field(default_factory=dict)
    total_changes: int = 0
    touch_count: int = 0

    @property
    def author_count(self) -> int:
        return len(self.authors)

    def compute_shares(self) -> None:
        if self.total_changes <= 0:
            return
        for author in self.authors.values():
            author.share = author.changes / self.total_changes * 100


@dataclass
class PRAuthorStats:
    name: str
    email: str
    merge_count: int = 0
    total_changes: int = 0  # lines changed across all merges
    pr_numbers: list[int] = field(default_factory=list)


@dataclass
class PRInfo:
    pr_number: int  # 0 when the merge subject names no PR
    merged_by: str
    merged_by_email: str
    merged_at: datetime
    branch: str
    subject: str
    additions: int
    deletions: int
    files_count: int

    @property
    def size(self) -> int:
        return self.additions + self.deletions


@dataclass
class PRStatistics:
    total_merges: int = 0
    total_prs: int = 0  # merges with an identifiable PR number
    merges_by_author: dict[str, PRAuthorStats] = field(default_factory=dict)
    pr_list: list[PRInfo] = field(default_factory=list)  # observation order
    daily_merges: dict[date, int] = field(default_factory=dict)


@dataclass
class RepositoryStats:
    """Everything the aggregator knows after observing a commit stream."""

    path: str = ""
    date_range: DateRange = field(default_factory=DateRange)
    timezone: Optional[tzinfo] = None  # bucketing zone, None = local

    total_commits: int = 0
    total_authors: int = 0
    total_additions: int = 0
    total_deletions: int = 0
    codebase_size: int = 0  # lines currently tracked, 0 when not measured

    authors: dict[str, AuthorStats] = field(default_factory=dict)
    file_stats: dict[str, FileStats] = field(default_factory=dict)
    dir_stats: dict[str, DirStats] = field(default_factory=dict)

    daily_activity: dict[date, int] = field(default_factory=dict)
    hourly_matrix: np.ndarray = field(default_factory=empty_hour_matrix)

    pr_stats: PRStatistics = field(default_factory=PRStatistics)

    finalized: bool = False


# ---------------------------------------------------------------------------
# View results
# ---------------------------------------------------------------------------


class Concentration(Enum):
    """How concentrated a directory's ownership is."""

    SINGLE_OWNER = "single owner"
    CONCENTRATED = "concentrated"
    SHARED = "shared"
    COLLABORATIVE = "collaborative"
    DISTRIBUTED = "distributed"


class WorkPattern(Enum):
    """Share of commits landing in Mon-Fri 09:00-17:59."""

    HIGHLY_STRUCTURED = "highly structured"
    BALANCED = "balanced"
    FLEXIBLE = "flexible"
    NON_TRADITIONAL = "non-traditional"


class ChurnLevel(Enum):
    """Lines changed relative to the current codebase size."""

    VERY_HIGH = "very high"
    HIGH = "high"
    MODERATE = "moderate"
    NORMAL = "normal"
    LOW = "low"


@dataclass
class HotspotFile:
    path: str
    churn_score: float  # changes / max changes, 0..1
    touch_score: float  # touches / max touches, 0..1
    author_score: float  # distinct authors / total authors, 0..1
    risk_score: float  # 0..100
    author_count: int
    changes: int
    touch_count: int


@dataclass
class OwnershipDetail:
    path: str
    authors: list[DirAuthorStats]  # share descending
    total_changes: int
    touch_count: int
    top_share: float
    concentration: Concentration
    bus_factor: int  # authors holding >= 10% share


@dataclass
class TimelineData:
    labels: list[date] = field(default_factory=list)
    values: list[int] = field(default_factory=list)
    rolling_avg: list[float] = field(default_factory=list)
    window: int = 7
    period: str = "day"


@dataclass
class HeatmapData:
    matrix: np.ndarray
    max_value: int
    timezone: Optional[tzinfo]
    peak_day: int
    peak_hour: int
    weekday_totals: list[int]
    hour_totals: list[int]
    busiest_day: int
    busiest_hour: int
    work_hours: int
    off_hours: int
    work_pct: float
    pattern: WorkPattern


@dataclass
class CodebaseStats:
    total_additions: int
    total_deletions: int
    total_changes: int
    files_modified: int
    codebase_size: int
    refactored_percent: float
    churn_level: ChurnLevel
    net_change: int
    avg_per_commit: float
    avg_per_author: float
