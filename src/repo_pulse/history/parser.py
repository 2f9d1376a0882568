"""Parse sentinel-delimited git log + numstat output into commits.

Each record looks like::

    COMMIT_START
    <full hash>
    <short hash>
    <author name>
    <author email>
    <ISO-8601 author date>
    <space-separated parent hashes>
    <subject>
    COMMIT_END

    <additions>\t<deletions>\t<path>      (or -\t-\t<path> for binary files)

Header lines are buffered until ``COMMIT_END`` and only then turned into a
Commit, so a truncated stream loses at most the record it was cut in.
"""

from __future__ import annotations

import re
import threading
from datetime import datetime, timezone
from typing import Callable, Iterable, Iterator, Optional

from ..exceptions import ErrorCode, ScanCancelled
from ..logging_config import get_logger
from .models import Author, Commit, FileChange, ScanProgress
from .source import COMMIT_END, COMMIT_START

logger = get_logger(__name__)

HEADER_LINES = 7
COUNT_RE = re.compile(r"[0-9]+")

# "Merge pull request #123 from user/branch"; the verb matches in any case
PR_NUMBER_RE = re.compile(r"(?i:merge) pull request #(\d+)")
# "Merge branch 'feature'" or "Merge branch 'feature' into 'main'"
MERGE_BRANCH_RE = re.compile(r"(?i:merge) (?:pull request #\d+ from |branch '?)([^'\"\s]+)")

ProgressHandler = Callable[[ScanProgress], None]
CommitHandler = Callable[[Commit], None]


class CancelToken:
    """Cooperative cancellation flag shared between a caller and a scan."""

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()


def extract_merge_info(subject: str) -> tuple[int, str]:
    """Return (pr_number, merge_branch) named by a merge subject; (0, "") if none."""
    pr_number = 0
    branch = ""
    match = PR_NUMBER_RE.search(subject)
    if match:
        pr_number = int(match.group(1))
    match = MERGE_BRANCH_RE.search(subject)
    if match:
        branch = match.group(1)
    return pr_number, branch


def parse_numstat_line(line: str) -> Optional[FileChange]:
    """Parse ``add\\tdel\\tpath``; None for anything that is not that shape."""
    parts = line.split("\t")
    if len(parts) != 3:
        return None

    added, deleted, path = parts
    if added == "-" or deleted == "-":
        return FileChange(path=path, is_binary=True)
    if not (COUNT_RE.fullmatch(added) and COUNT_RE.fullmatch(deleted)):
        return None
    return FileChange(path=path, additions=int(added), deletions=int(deleted))


def parse_author_date(value: str) -> datetime:
    """Parse git's ``%aI`` output. Offset-less values are taken as UTC."""
    parsed = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _build_commit(headers: list[str]) -> Optional[Commit]:
    if len(headers) != HEADER_LINES:
        logger.debug("[%s] Dropping record with %d header lines", ErrorCode.RP201.value, len(headers))
        return None

    full_hash, short_hash, name, email, date_str, parents, subject = headers
    try:
        author_date = parse_author_date(date_str)
    except ValueError:
        logger.debug(
            "[%s] Dropping record %s: unparseable date %r", ErrorCode.RP201.value, short_hash, date_str
        )
        return None

    is_merge = len(parents.split()) >= 2
    pr_number, merge_branch = extract_merge_info(subject) if is_merge else (0, "")

    return Commit(
        hash=full_hash,
        short_hash=short_hash,
        author=Author(name=name, email=email),
        author_date=author_date,
        subject=subject,
        is_merge=is_merge,
        pr_number=pr_number,
        merge_branch=merge_branch,
    )


class CommitStreamParser:
    """Single-pass, line-oriented parser over a log line stream.

    Iterate it for a finite, non-restartable sequence of commits in source
    order, or call :meth:`parse` with handlers. Either way progress events
    carry a monotonically increasing count, and exactly one ``done=True``
    event ends the stream, whether it finished, was cancelled or the source
    failed.

    Cancellation is checked before every line. A requested stop discards
    the record being read and raises :class:`ScanCancelled`; commits already
    delivered stay delivered.
    """

    def __init__(
        self,
        lines: Iterable[str],
        cancel: Optional[CancelToken] = None,
        on_progress: Optional[ProgressHandler] = None,
        total_estimate: int = 0,
    ):
        self._lines = lines
        self._cancel = cancel
        self._on_progress = on_progress
        self._total_estimate = total_estimate
        self._started = False
        self.commits_parsed = 0

    def __iter__(self) -> Iterator[Commit]:
        if self._started:
            raise RuntimeError("CommitStreamParser can only be consumed once")
        self._started = True
        return self._run()

    def parse(self, on_commit: CommitHandler, on_progress: Optional[ProgressHandler] = None) -> int:
        """Deliver every commit to ``on_commit``; returns the number delivered."""
        if on_progress is not None:
            self._on_progress = on_progress
        for commit in self:
            on_commit(commit)
        return self.commits_parsed

    def _emit(self, current_hash: str, done: bool = False) -> None:
        if self._on_progress is not None:
            self._on_progress(
                ScanProgress(
                    commits_parsed=self.commits_parsed,
                    current_hash=current_hash,
                    done=done,
                    total_estimate=self._total_estimate,
                )
            )

    def _run(self) -> Iterator[Commit]:
        headers: Optional[list[str]] = None  # None = not inside a header block
        pending: Optional[Commit] = None
        in_numstat = False
        last_hash = ""

        try:
            for line in self._lines:
                if self._cancel is not None and self._cancel.cancelled:
                    raise ScanCancelled(self.commits_parsed)

                if line == COMMIT_START:
                    if pending is not None:
                        self.commits_parsed += 1
                        last_hash = pending.short_hash
                        yield pending
                        self._emit(last_hash)
                    pending = None
                    headers = []
                    in_numstat = False

                elif line == COMMIT_END:
                    if headers is not None:
                        pending = _build_commit(headers)
                    headers = None
                    in_numstat = True

                elif in_numstat:
                    if pending is None or not line:
                        continue
                    change = parse_numstat_line(line)
                    if change is None:
                        logger.debug(
                            "[%s] Skipping malformed numstat line in %s: %r",
                            ErrorCode.RP200.value,
                            pending.short_hash,
                            line,
                        )
                        continue
                    pending.file_changes.append(change)

                elif headers is not None:
                    headers.append(line)

            if pending is not None:
                self.commits_parsed += 1
                last_hash = pending.short_hash
                yield pending
                self._emit(last_hash)
        finally:
            self._emit(last_hash, done=True)


def parse_log(text: str) -> list[Commit]:
    """Parse a complete log dump held in memory.

    Lines end at LF only, so a stray carriage return inside a subject survives.
    """
    lines = (line[:-1] if line.endswith("\r") else line for line in text.split("\n"))
    return list(CommitStreamParser(lines))
