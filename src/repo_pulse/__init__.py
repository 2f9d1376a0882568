"""
repo-pulse - commit history statistics for git repositories

Streams ``git log --numstat`` into a statistical model of who changed what,
where and when: author leaderboards, file hotspots, directory ownership,
activity timelines, work-hour heatmaps and merge/PR activity, with
retroactive consolidation of duplicate author identities.
"""

__version__ = "0.3.0"
__author__ = "repo-pulse contributors"

from .config import PulseConfig, load_config
from .history import CancelToken, Commit, CommitStreamParser, GitLogSource
from .scan import ScanOutcome, ScanResult, scan_repositories
from .stats import Aggregator, RepositoryStats, apply_author_merges

__all__ = [
    "scan_repositories",  # Main entry point
    "ScanResult",
    "ScanOutcome",
    "PulseConfig",
    "load_config",
    "CancelToken",
    "Commit",
    "CommitStreamParser",
    "GitLogSource",
    "Aggregator",  # Direct push-model access
    "RepositoryStats",
    "apply_author_merges",
]
