"""Data models for parsed commit history."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime


@dataclass(frozen=True)
class Author:
    name: str
    email: str  # stable identity key


@dataclass
class FileChange:
    path: str
    additions: int = 0
    deletions: int = 0
    is_binary: bool = False  # numstat "-\t-", line counts stay 0

    @property
    def changes(self) -> int:
        return self.additions + self.deletions


@dataclass
class Commit:
    hash: str
    short_hash: str
    author: Author
    author_date: datetime  # timezone-aware, as recorded by git
    subject: str = ""
    file_changes: list[FileChange] = field(default_factory=list)
    is_merge: bool = False  # two or more parents
    pr_number: int = 0  # 0 when the subject names no pull request
    merge_branch: str = ""


@dataclass(frozen=True)
class ScanProgress:
    commits_parsed: int
    current_hash: str = ""
    done: bool = False
    total_estimate: int = 0  # -1/0 when unknown
