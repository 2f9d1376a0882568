"""Tests for stats/views.py - derived projections over the model."""

from datetime import date, datetime, timezone

import numpy as np
import pytest

from repo_pulse.exceptions import ErrorCode, StatsNotFinalizedError
from repo_pulse.stats.aggregator import Aggregator
from repo_pulse.stats.models import ChurnLevel, Concentration, RepositoryStats, WorkPattern
from repo_pulse.stats.views import (
    AuthorSort,
    FileSort,
    PRSort,
    classify_concentration,
    codebase_summary,
    heatmap,
    hotspots,
    leaderboard,
    ownership,
    ownership_detail,
    pr_leaderboard,
    pr_list,
    rolling_average,
    timeline,
    top_files,
)

from conftest import make_commit

UTC = timezone.utc


class TestLeaderboard:
    """Test author sorting."""

    def test_default_is_commits_descending(self, team_stats):
        rows = leaderboard(team_stats)
        assert [a.email for a in rows] == ["ann@x.com", "jo@x.com", "lee@x.com"]

    def test_ascending(self, team_stats):
        rows = leaderboard(team_stats, AuthorSort.COMMITS, ascending=True)
        assert [a.email for a in rows] == ["lee@x.com", "jo@x.com", "ann@x.com"]

    def test_string_key(self, team_stats):
        rows = leaderboard(team_stats, "name", ascending=True)
        assert [a.name for a in rows] == ["Ann", "Jo", "Lee"]

    def test_unknown_key_falls_back_to_commits(self, team_stats):
        assert [a.email for a in leaderboard(team_stats, "bogus")] == [
            a.email for a in leaderboard(team_stats)
        ]

    def test_ties_keep_insertion_order(self):
        aggregator = Aggregator()
        for email in ("zed@x.com", "amy@x.com", "kim@x.com"):
            aggregator.observe(make_commit(email))
        stats = aggregator.finalize()

        expected = ["zed@x.com", "amy@x.com", "kim@x.com"]
        assert [a.email for a in leaderboard(stats)] == expected
        assert [a.email for a in leaderboard(stats, ascending=True)] == expected

    def test_results_are_copies(self, team_stats):
        rows = leaderboard(team_stats)
        rows[0].commits = 999
        rows[0].files_touched.clear()
        assert team_stats.authors["ann@x.com"].commits == 3
        assert team_stats.authors["ann@x.com"].files_touched


class TestTopFiles:
    def test_by_changes_with_limit(self, team_stats):
        rows = top_files(team_stats, FileSort.CHANGES, limit=2)
        assert [f.path for f in rows] == ["src/app.py", "docs/guide.md"]

    def test_by_authors(self, team_stats):
        rows = top_files(team_stats, FileSort.AUTHORS)
        assert {f.path for f in rows[:2]} == {"src/app.py", "src/util.py"}

    def test_zero_limit_returns_all(self, team_stats):
        assert len(top_files(team_stats, limit=0)) == len(team_stats.file_stats)


class TestHotspots:
    """Test risk scoring."""

    def test_only_multi_author_files(self, team_stats):
        paths = [h.path for h in hotspots(team_stats)]
        assert paths == ["src/app.py", "src/util.py"]

    def test_scores(self, team_stats):
        app, util = hotspots(team_stats)
        assert app.churn_score == pytest.approx(1.0)
        assert app.touch_score == pytest.approx(1.0)
        assert app.author_score == pytest.approx(2 / 3)
        assert app.risk_score == pytest.approx(90.0)
        expected = (0.4 * 12 / 119 + 0.3 * 2 / 3 + 0.3 * 2 / 3) * 100
        assert util.risk_score == pytest.approx(expected)

    def test_scores_within_bounds(self, team_stats):
        for spot in hotspots(team_stats):
            assert 0.0 <= spot.risk_score <= 100.0

    def test_limit(self, team_stats):
        assert len(hotspots(team_stats, limit=1)) == 1

    def test_empty_model(self):
        assert hotspots(RepositoryStats()) == []

    def test_zero_change_files(self):
        aggregator = Aggregator()
        aggregator.observe(make_commit("a@x.com", changes=[("x.py", 0, 0)]))
        aggregator.observe(make_commit("b@x.com", changes=[("x.py", 0, 0)]))
        (spot,) = hotspots(aggregator.finalize())
        assert spot.churn_score == 0.0
        assert 0.0 <= spot.risk_score <= 100.0


class TestOwnership:
    """Test directory ownership and per-directory detail."""

    def test_directories_sorted_by_changes(self, team_stats):
        assert [d.path for d in ownership(team_stats)] == ["src", "docs", "."]

    def test_detail(self, team_stats):
        detail = ownership_detail(team_stats, "src")
        assert [a.email for a in detail.authors] == ["ann@x.com", "jo@x.com", "lee@x.com"]
        assert detail.top_share == pytest.approx(94 / 131 * 100)
        assert detail.concentration is Concentration.CONCENTRATED
        assert detail.bus_factor == 2

    def test_single_owner(self, team_stats):
        detail = ownership_detail(team_stats, "docs")
        assert detail.concentration is Concentration.SINGLE_OWNER
        assert detail.bus_factor == 1

    def test_requires_finalize(self):
        aggregator = Aggregator()
        aggregator.observe(make_commit(changes=[("src/a.py", 1, 0)]))
        with pytest.raises(StatsNotFinalizedError) as exc:
            ownership_detail(aggregator.result, "src")
        assert exc.value.code is ErrorCode.RP300

    def test_unknown_directory(self, team_stats):
        with pytest.raises(KeyError):
            ownership_detail(team_stats, "nope")

    def test_detail_does_not_touch_model(self, team_stats):
        detail = ownership_detail(team_stats, "src")
        detail.authors[0].share = 0.0
        assert team_stats.dir_stats["src"].authors["ann@x.com"].share > 0

    @pytest.mark.parametrize(
        "share,authors,expected",
        [
            (85.0, 4, Concentration.SINGLE_OWNER),
            (65.0, 4, Concentration.CONCENTRATED),
            (55.0, 2, Concentration.SHARED),
            (45.0, 4, Concentration.COLLABORATIVE),
            (25.0, 6, Concentration.DISTRIBUTED),
        ],
    )
    def test_concentration_labels(self, share, authors, expected):
        assert classify_concentration(share, authors) is expected


class TestTimeline:
    """Test dense daily series and rolling average."""

    def test_dense_zero_filled(self, team_stats):
        data = timeline(team_stats)
        assert data.labels[0] == date(2024, 3, 4)
        assert data.labels[-1] == date(2024, 3, 8)
        assert data.values == [1, 2, 0, 2, 1]
        assert len(data.labels) == len(data.values) == len(data.rolling_avg)

    def test_rolling_window(self, team_stats):
        data = timeline(team_stats, window=2)
        assert data.window == 2
        assert data.rolling_avg == pytest.approx([1.0, 1.5, 1.0, 1.0, 1.5])

    def test_window_longer_than_series(self):
        assert rolling_average([2, 4, 6], 7) == pytest.approx([2.0, 3.0, 4.0])

    def test_empty(self):
        data = timeline(RepositoryStats())
        assert data.labels == []
        assert data.values == []
        assert data.rolling_avg == []


class TestHeatmap:
    """Test weekday x hour summary."""

    def test_peaks_and_pattern(self, team_stats):
        data = heatmap(team_stats)
        assert data.matrix.shape == (7, 24)
        assert data.max_value == 1
        assert (data.peak_day, data.peak_hour) == (0, 9)
        assert data.busiest_day == 1
        assert data.busiest_hour == 9
        assert data.work_hours == 6
        assert data.off_hours == 0
        assert data.pattern is WorkPattern.HIGHLY_STRUCTURED

    def test_matrix_is_a_copy(self, team_stats):
        data = heatmap(team_stats)
        data.matrix[:] = 0
        assert team_stats.hourly_matrix.sum() == 6

    def test_off_hours(self):
        aggregator = Aggregator(tz=UTC)
        aggregator.observe(make_commit(when=datetime(2024, 3, 9, 22, 0, tzinfo=UTC)))  # Saturday
        data = heatmap(aggregator.finalize())
        assert data.work_hours == 0
        assert data.off_hours == 1
        assert data.pattern is WorkPattern.NON_TRADITIONAL

    def test_empty(self):
        data = heatmap(RepositoryStats())
        assert data.max_value == 0
        assert data.work_pct == 0.0
        assert np.array_equal(data.weekday_totals, [0] * 7)


class TestPRViews:
    def test_pr_leaderboard(self, team_stats):
        (merger,) = pr_leaderboard(team_stats)
        assert merger.email == "ann@x.com"
        assert merger.pr_numbers == [7]

    def test_pr_list_sorting(self):
        aggregator = Aggregator()
        aggregator.observe(
            make_commit(is_merge=True, pr_number=1, when=datetime(2024, 1, 1, tzinfo=UTC),
                        changes=[("a.py", 50, 0)])
        )
        aggregator.observe(
            make_commit(is_merge=True, pr_number=2, when=datetime(2024, 2, 1, tzinfo=UTC),
                        changes=[("a.py", 1, 0), ("b.py", 1, 0)])
        )
        stats = aggregator.finalize()

        assert [p.pr_number for p in pr_list(stats)] == [2, 1]
        assert [p.pr_number for p in pr_list(stats, PRSort.SIZE)] == [1, 2]
        assert [p.pr_number for p in pr_list(stats, PRSort.FILES)] == [2, 1]
        assert [p.pr_number for p in pr_list(stats, "date", ascending=True, limit=1)] == [1]


class TestCodebaseSummary:
    def test_churn_relative_to_size(self, team_stats):
        team_stats.codebase_size = 100
        summary = codebase_summary(team_stats)
        assert summary.total_changes == 176
        assert summary.net_change == 136
        assert summary.refactored_percent == pytest.approx(176.0)
        assert summary.churn_level is ChurnLevel.HIGH
        assert summary.avg_per_commit == pytest.approx(176 / 6)

    def test_unmeasured_codebase(self, team_stats):
        summary = codebase_summary(team_stats)
        assert summary.refactored_percent == 0.0
        assert summary.churn_level is ChurnLevel.LOW
