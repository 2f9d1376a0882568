"""Scan one or more repositories into a single aggregated model.

Each repository is read by a producer thread (git log source + parser)
that feeds one bounded, ordered channel. The calling thread drains the
channel and is the only writer of the aggregator, so log reading overlaps
with accumulation without concurrent writers.
"""

from __future__ import annotations

import queue
import threading
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Callable, Iterable, Optional, Protocol

from .config import PulseConfig
from .exceptions import ScanCancelled, SourceUnavailableError
from .history.models import ScanProgress
from .history.parser import CancelToken, CommitStreamParser
from .history.source import GitLogSource
from .logging_config import get_logger
from .stats.aggregator import Aggregator
from .stats.models import DateRange, RepositoryStats

logger = get_logger(__name__)

RepoProgressHandler = Callable[[str, ScanProgress], None]


class LogSource(Protocol):
    def iter_lines(self, since=None, until=None) -> Iterable[str]: ...

    def estimate_commit_count(self, since=None, until=None) -> int: ...

    def codebase_size(self) -> int: ...


class ScanOutcome(Enum):
    COMPLETED = "completed"
    FAILED = "failed"  # source unavailable; commits observed before the failure are kept
    CANCELLED = "cancelled"
    SKIPPED = "skipped"  # never started because the scan was cancelled earlier


@dataclass
class RepoScanResult:
    path: str
    outcome: ScanOutcome
    commits: int = 0
    error: Optional[SourceUnavailableError] = None


@dataclass
class ScanResult:
    stats: RepositoryStats
    repos: list[RepoScanResult] = field(default_factory=list)

    @property
    def cancelled(self) -> bool:
        return any(r.outcome is ScanOutcome.CANCELLED for r in self.repos)

    @property
    def failures(self) -> list[RepoScanResult]:
        return [r for r in self.repos if r.outcome is ScanOutcome.FAILED]


_END = object()


@dataclass
class _Failure:
    error: Exception


class _LinkedCancel(CancelToken):
    """Trips on the caller's token or when the consumer aborts."""

    def __init__(self, outer: Optional[CancelToken]):
        super().__init__()
        self._outer = outer

    @property
    def cancelled(self) -> bool:
        return super().cancelled or (self._outer is not None and self._outer.cancelled)


def _produce(
    source: LogSource,
    config: PulseConfig,
    token: CancelToken,
    channel: queue.Queue,
    total_estimate: int,
) -> None:
    try:
        parser = CommitStreamParser(
            source.iter_lines(config.since, config.until),
            cancel=token,
            on_progress=channel.put,
            total_estimate=total_estimate,
        )
        for commit in parser:
            channel.put(commit)
        channel.put(_END)
    except Exception as e:
        channel.put(_Failure(e))


def _scan_one(
    source: LogSource,
    path: str,
    aggregator: Aggregator,
    config: PulseConfig,
    on_progress: Optional[RepoProgressHandler],
    cancel: Optional[CancelToken],
) -> RepoScanResult:
    estimate = source.estimate_commit_count(config.since, config.until)
    channel: queue.Queue = queue.Queue(maxsize=config.queue_size)
    token = _LinkedCancel(cancel)
    producer = threading.Thread(
        target=_produce,
        args=(source, config, token, channel, estimate),
        name=f"repo-pulse-{Path(path).name}",
        daemon=True,
    )

    result = RepoScanResult(path=path, outcome=ScanOutcome.COMPLETED)
    finished = False
    producer.start()
    try:
        while True:
            item = channel.get()
            if item is _END:
                finished = True
                break
            if isinstance(item, ScanProgress):
                if on_progress is not None:
                    on_progress(path, item)
                continue
            if isinstance(item, _Failure):
                finished = True
                if isinstance(item.error, ScanCancelled):
                    result.outcome = ScanOutcome.CANCELLED
                    break
                if isinstance(item.error, SourceUnavailableError):
                    logger.warning("Scan of %s failed: %s", path, item.error)
                    result.outcome = ScanOutcome.FAILED
                    result.error = item.error
                    break
                raise item.error
            aggregator.observe(item)
            result.commits += 1
    finally:
        if not finished:
            # Consumer bailed out: stop the producer and unblock its puts
            token.cancel()
            while producer.is_alive():
                try:
                    channel.get(timeout=0.1)
                except queue.Empty:
                    pass
        producer.join()

    return result


def scan_repositories(
    paths: Optional[Iterable[str]] = None,
    config: Optional[PulseConfig] = None,
    on_progress: Optional[RepoProgressHandler] = None,
    cancel: Optional[CancelToken] = None,
    source_factory: Callable[[str], LogSource] = GitLogSource,
) -> ScanResult:
    """Scan repositories one after another into a single finalized model.

    A repository whose log source fails is recorded and skipped; the others
    still contribute. Cancellation ends the current repository between log
    lines and skips the rest, leaving already-observed commits intact.
    """
    config = config or PulseConfig()
    repo_paths = [str(p) for p in (paths if paths is not None else config.repo_paths)]

    label = repo_paths[0] if len(repo_paths) == 1 else f"{len(repo_paths)} repositories"
    aggregator = Aggregator(
        path=label,
        date_range=DateRange(since=config.since, until=config.until),
        tz=config.tz,
    )

    results: list[RepoScanResult] = []
    codebase_size = 0

    for path in repo_paths:
        if cancel is not None and cancel.cancelled:
            results.append(RepoScanResult(path=path, outcome=ScanOutcome.SKIPPED))
            continue

        logger.info("Scanning %s", path)
        source = source_factory(path)
        result = _scan_one(source, path, aggregator, config, on_progress, cancel)
        results.append(result)
        logger.info("Scanned %s: %d commits (%s)", path, result.commits, result.outcome.value)

        if result.outcome is ScanOutcome.COMPLETED and config.measure_codebase:
            codebase_size += source.codebase_size()

    stats = aggregator.finalize()
    stats.codebase_size = codebase_size
    return ScanResult(stats=stats, repos=results)
