"""Commit history ingestion: git log source and streaming parser."""

from .models import Author, Commit, FileChange, ScanProgress
from .parser import (
    CancelToken,
    CommitStreamParser,
    extract_merge_info,
    parse_log,
    parse_numstat_line,
)
from .source import GitLogSource, is_git_repo

__all__ = [
    "Author",
    "Commit",
    "FileChange",
    "ScanProgress",
    "CancelToken",
    "CommitStreamParser",
    "GitLogSource",
    "extract_merge_info",
    "is_git_repo",
    "parse_log",
    "parse_numstat_line",
]
