"""Fold a commit stream into per-author, per-file, per-directory and time indices."""

from __future__ import annotations

from datetime import datetime, tzinfo
from pathlib import PurePosixPath
from typing import Optional

from ..history.models import Commit
from ..logging_config import get_logger
from .models import (
    AuthorStats,
    DateRange,
    DirAuthorStats,
    DirStats,
    FileStats,
    PRAuthorStats,
    PRInfo,
    RepositoryStats,
)

logger = get_logger(__name__)

ROOT_DIR = "."


def top_level_dir(path: str) -> str:
    """First path segment of a repository-relative path, "." for root files."""
    parts = PurePosixPath(path).parts
    if len(parts) > 1:
        return parts[0]
    return ROOT_DIR


class Aggregator:
    """Push-model accumulator over parsed commits.

    One instance per scan session; it is the only writer of its
    RepositoryStats and is not safe for concurrent observers. Call
    :meth:`observe` once per commit, then :meth:`finalize` before reading
    ownership shares.
    """

    def __init__(
        self,
        path: str = "",
        date_range: Optional[DateRange] = None,
        tz: Optional[tzinfo] = None,
    ):
        self._tz = tz
        self._repo = RepositoryStats(
            path=path,
            date_range=date_range or DateRange(),
            timezone=tz,
        )

    @property
    def result(self) -> RepositoryStats:
        """Live model; ownership shares are undefined until finalize()."""
        return self._repo

    def _local(self, moment: datetime) -> datetime:
        # astimezone(None) converts to the machine's local zone
        return moment.astimezone(self._tz)

    def observe(self, commit: Commit) -> None:
        repo = self._repo
        repo.total_commits += 1

        if commit.is_merge:
            self._observe_merge(commit)

        email = commit.author.email
        author = repo.authors.get(email)
        if author is None:
            author = AuthorStats(name=commit.author.name, email=email)
            repo.authors[email] = author
            repo.total_authors += 1

        author.commits += 1
        if author.first_commit is None or commit.author_date < author.first_commit:
            author.first_commit = commit.author_date
        if author.last_commit is None or commit.author_date > author.last_commit:
            author.last_commit = commit.author_date

        local = self._local(commit.author_date)
        day = local.date()
        repo.daily_activity[day] = repo.daily_activity.get(day, 0) + 1
        repo.hourly_matrix[local.weekday(), local.hour] += 1

        touched_files: set[str] = set()
        touched_dirs: set[str] = set()

        for change in commit.file_changes:
            if change.is_binary:
                continue

            lines = change.additions + change.deletions
            first_in_commit = change.path not in touched_files
            touched_files.add(change.path)

            author.additions += change.additions
            author.deletions += change.deletions
            repo.total_additions += change.additions
            repo.total_deletions += change.deletions

            file_stat = repo.file_stats.get(change.path)
            if file_stat is None:
                file_stat = FileStats(path=change.path)
                repo.file_stats[change.path] = file_stat

            file_stat.additions += change.additions
            file_stat.deletions += change.deletions
            file_stat.total_changes += lines
            if first_in_commit:
                file_stat.touch_count += 1
                file_stat.authors[email] = file_stat.authors.get(email, 0) + 1
                author.files_touched[change.path] = author.files_touched.get(change.path, 0) + 1

            dir_key = top_level_dir(change.path)
            dir_stat = repo.dir_stats.get(dir_key)
            if dir_stat is None:
                dir_stat = DirStats(path=dir_key)
                repo.dir_stats[dir_key] = dir_stat

            dir_author = dir_stat.authors.get(email)
            if dir_author is None:
                dir_author = DirAuthorStats(name=commit.author.name, email=email)
                dir_stat.authors[email] = dir_author

            dir_stat.total_changes += lines
            dir_author.changes += lines
            if dir_key not in touched_dirs:
                touched_dirs.add(dir_key)
                dir_stat.touch_count += 1
                dir_author.commits += 1

    def _observe_merge(self, commit: Commit) -> None:
        pr_stats = self._repo.pr_stats
        pr_stats.total_merges += 1

        day = self._local(commit.author_date).date()
        pr_stats.daily_merges[day] = pr_stats.daily_merges.get(day, 0) + 1

        additions = sum(fc.additions for fc in commit.file_changes if not fc.is_binary)
        deletions = sum(fc.deletions for fc in commit.file_changes if not fc.is_binary)

        email = commit.author.email
        merger = pr_stats.merges_by_author.get(email)
        if merger is None:
            merger = PRAuthorStats(name=commit.author.name, email=email)
            pr_stats.merges_by_author[email] = merger
        merger.merge_count += 1
        merger.total_changes += additions + deletions
        if commit.pr_number > 0:
            merger.pr_numbers.append(commit.pr_number)
            pr_stats.total_prs += 1

        pr_stats.pr_list.append(
            PRInfo(
                pr_number=commit.pr_number,
                merged_by=commit.author.name,
                merged_by_email=email,
                merged_at=commit.author_date,
                branch=commit.merge_branch,
                subject=commit.subject,
                additions=additions,
                deletions=deletions,
                files_count=len(commit.file_changes),
            )
        )

    def finalize(self) -> RepositoryStats:
        """Compute ownership shares; safe to call more than once."""
        for dir_stat in self._repo.dir_stats.values():
            dir_stat.compute_shares()
        self._repo.finalized = True
        logger.debug(
            "Finalized %d commits, %d authors, %d files",
            self._repo.total_commits,
            self._repo.total_authors,
            len(self._repo.file_stats),
        )
        return self._repo
