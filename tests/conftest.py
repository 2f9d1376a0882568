"""Shared test fixtures for repo-pulse tests."""

import logging
from datetime import datetime, timedelta, timezone

import pytest

from repo_pulse.history.models import Author, Commit, FileChange
from repo_pulse.stats.aggregator import Aggregator

UTC = timezone.utc


def log_record(
    full_hash,
    name,
    email,
    date,
    subject="change",
    parents="p1",
    numstat=(),
):
    """Lines of one sentinel-delimited record, numstat included."""
    lines = [
        "COMMIT_START",
        full_hash,
        full_hash[:7],
        name,
        email,
        date,
        parents,
        subject,
        "COMMIT_END",
        "",
    ]
    lines.extend(numstat)
    return lines


@pytest.fixture
def debug_log(caplog, monkeypatch):
    """caplog at DEBUG for the repo_pulse namespace.

    setup_logging() turns propagation off, so CLI tests that ran earlier
    would otherwise hide these records from caplog.
    """
    monkeypatch.setattr(logging.getLogger("repo_pulse"), "propagate", True)
    caplog.set_level(logging.DEBUG, logger="repo_pulse")
    return caplog


@pytest.fixture
def sample_log_lines():
    """Three commits: a plain one, one with a binary file, and a PR merge."""
    lines = []
    lines += log_record(
        "a" * 40,
        "Ann",
        "ann@x.com",
        "2024-03-04T10:15:00+00:00",
        numstat=["10\t2\tsrc/app.py", "3\t0\tREADME.md"],
    )
    lines += log_record(
        "b" * 40,
        "Jo",
        "jo@x.com",
        "2024-03-05T22:40:00+00:00",
        numstat=["-\t-\tassets/logo.png", "4\t4\tsrc/app.py"],
    )
    lines += log_record(
        "c" * 40,
        "Ann",
        "ann@x.com",
        "2024-03-06T09:00:00+00:00",
        subject="Merge pull request #42 from jo/feature-x",
        parents="p1 p2",
        numstat=["5\t1\tsrc/feature.py"],
    )
    return lines


@pytest.fixture
def sample_log_text(sample_log_lines):
    return "\n".join(sample_log_lines) + "\n"


def make_commit(
    email="ann@x.com",
    name=None,
    when=None,
    changes=(),
    is_merge=False,
    pr_number=0,
    merge_branch="",
    subject="change",
    sha="deadbeef",
):
    """Build a Commit; ``changes`` is a list of (path, additions, deletions)."""
    file_changes = []
    for path, additions, deletions in changes:
        if additions is None:
            file_changes.append(FileChange(path=path, is_binary=True))
        else:
            file_changes.append(FileChange(path=path, additions=additions, deletions=deletions))
    return Commit(
        hash=sha * 5,
        short_hash=sha[:7],
        author=Author(name=name or email.split("@")[0].title(), email=email),
        author_date=when or datetime(2024, 3, 4, 10, 0, tzinfo=UTC),
        subject=subject,
        file_changes=file_changes,
        is_merge=is_merge,
        pr_number=pr_number,
        merge_branch=merge_branch,
    )


@pytest.fixture
def commit_factory():
    return make_commit


@pytest.fixture
def team_stats():
    """Finalized model built from a small two-directory, three-author history."""
    base = datetime(2024, 3, 4, 9, 0, tzinfo=UTC)  # a Monday
    commits = [
        make_commit("ann@x.com", "Ann", base, [("src/app.py", 80, 10), ("README.md", 5, 0)]),
        make_commit("jo@x.com", "Jo", base + timedelta(days=1), [("src/app.py", 20, 5)]),
        make_commit("lee@x.com", "Lee", base + timedelta(days=1, hours=2), [("src/util.py", 3, 1)]),
        make_commit("ann@x.com", "Ann", base + timedelta(days=3), [("docs/guide.md", 40, 0)]),
        make_commit("jo@x.com", "Jo", base + timedelta(days=3, hours=1), [("src/util.py", 6, 2)]),
        make_commit(
            "ann@x.com",
            "Ann",
            base + timedelta(days=4),
            [("src/app.py", 2, 2)],
            is_merge=True,
            pr_number=7,
            merge_branch="jo/fix",
            subject="Merge pull request #7 from jo/fix",
        ),
    ]
    aggregator = Aggregator(path="team", tz=UTC)
    for commit in commits:
        aggregator.observe(commit)
    return aggregator.finalize()


class FakeSource:
    """In-memory log source with the same surface as GitLogSource."""

    def __init__(self, lines, fail_after=None, estimate=-1, size=0, error=None):
        self.lines = list(lines)
        self.fail_after = fail_after
        self.estimate = estimate
        self.size = size
        self.error = error
        self.windows = []

    def iter_lines(self, since=None, until=None):
        self.windows.append((since, until))
        for i, line in enumerate(self.lines):
            if self.fail_after is not None and i == self.fail_after:
                raise self.error
            yield line
        if self.fail_after is not None and self.fail_after >= len(self.lines):
            raise self.error

    def estimate_commit_count(self, since=None, until=None):
        return self.estimate

    def codebase_size(self):
        return self.size


@pytest.fixture
def fake_source():
    return FakeSource
