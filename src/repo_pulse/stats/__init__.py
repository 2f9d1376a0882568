"""Aggregated commit statistics: aggregator, derived views and identity merge."""

from .aggregator import Aggregator, top_level_dir
from .merge import (
    MergeReport,
    apply_author_merges,
    build_merge_map,
    find_similar_authors,
    validate_merge_map,
)
from .models import (
    AuthorStats,
    CodebaseStats,
    Concentration,
    DateRange,
    DirAuthorStats,
    DirStats,
    FileStats,
    HeatmapData,
    HotspotFile,
    OwnershipDetail,
    PRAuthorStats,
    PRInfo,
    PRStatistics,
    RepositoryStats,
    TimelineData,
)
from .views import (
    AuthorSort,
    DirSort,
    FileSort,
    PRAuthorSort,
    PRSort,
    codebase_summary,
    heatmap,
    hotspots,
    leaderboard,
    ownership,
    ownership_detail,
    pr_leaderboard,
    pr_list,
    timeline,
    top_files,
)

__all__ = [
    "Aggregator",
    "top_level_dir",
    "MergeReport",
    "apply_author_merges",
    "build_merge_map",
    "find_similar_authors",
    "validate_merge_map",
    "AuthorStats",
    "CodebaseStats",
    "Concentration",
    "DateRange",
    "DirAuthorStats",
    "DirStats",
    "FileStats",
    "HeatmapData",
    "HotspotFile",
    "OwnershipDetail",
    "PRAuthorStats",
    "PRInfo",
    "PRStatistics",
    "RepositoryStats",
    "TimelineData",
    "AuthorSort",
    "DirSort",
    "FileSort",
    "PRAuthorSort",
    "PRSort",
    "codebase_summary",
    "heatmap",
    "hotspots",
    "leaderboard",
    "ownership",
    "ownership_detail",
    "pr_leaderboard",
    "pr_list",
    "timeline",
    "top_files",
]
