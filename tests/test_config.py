"""Tests for config.py - settings validation and source merging."""

import dataclasses
import os
from datetime import datetime, timedelta, timezone
from zoneinfo import ZoneInfo

import pytest

from repo_pulse.config import PulseConfig, default_date_range, load_config, resolve_timezone
from repo_pulse.exceptions import InvalidConfigError, RepoPulseError


@pytest.fixture
def isolated(tmp_path, monkeypatch):
    """No global/project config files and no REPO_PULSE_* variables."""
    home = tmp_path / "home"
    home.mkdir()
    work = tmp_path / "work"
    work.mkdir()
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.chdir(work)
    for key in list(os.environ):
        if key.startswith("REPO_PULSE_"):
            monkeypatch.delenv(key)
    return tmp_path


class TestPulseConfig:
    """Test defaults and validation."""

    def test_defaults(self):
        config = PulseConfig()
        assert config.repo_paths == []
        assert config.timezone == "local"
        assert config.tz is None
        assert config.rolling_window == 7
        assert config.high_risk_score == 50.0

    def test_named_zone(self):
        assert PulseConfig(timezone="Europe/Berlin").tz == ZoneInfo("Europe/Berlin")

    @pytest.mark.parametrize(
        "field,value",
        [
            ("max_authors", 0),
            ("max_files", 0),
            ("sparkline_width", 0),
            ("rolling_window", 0),
            ("high_risk_score", 120.0),
            ("queue_size", 0),
            ("verbosity", "loud"),
            ("timezone", "Mars/Olympus"),
        ],
    )
    def test_invalid_values(self, field, value):
        with pytest.raises(InvalidConfigError) as exc:
            PulseConfig(**{field: value})
        assert exc.value.key == field

    def test_since_after_until(self):
        with pytest.raises(InvalidConfigError):
            PulseConfig(
                since=datetime(2024, 6, 1, tzinfo=timezone.utc),
                until=datetime(2024, 1, 1, tzinfo=timezone.utc),
            )

    def test_frozen(self):
        config = PulseConfig()
        with pytest.raises(dataclasses.FrozenInstanceError):
            config.max_files = 5


class TestHelpers:
    def test_resolve_local(self):
        assert resolve_timezone("local") is None
        assert resolve_timezone(None) is None

    def test_default_date_range_is_one_year(self):
        now = datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)
        since, until = default_date_range(now)
        assert until == now
        assert until - since == timedelta(days=365)


class TestLoadConfig:
    """Test merging of files, environment and overrides."""

    def test_defaults_without_sources(self, isolated):
        assert load_config() == PulseConfig()

    def test_project_file(self, isolated):
        (isolated / "work" / "repo-pulse.toml").write_text(
            'max_authors = 5\ntimezone = "UTC"\nsince = 2024-01-01\n'
        )
        config = load_config()
        assert config.max_authors == 5
        assert config.timezone == "UTC"
        assert config.since == datetime(2024, 1, 1)

    def test_precedence(self, isolated, monkeypatch):
        (isolated / "home" / ".repo-pulse.toml").write_text("max_files = 10\nmax_authors = 10\n")
        (isolated / "work" / "repo-pulse.toml").write_text("max_files = 20\n")
        explicit = isolated / "explicit.toml"
        explicit.write_text("rolling_window = 3\n")
        monkeypatch.setenv("REPO_PULSE_ROLLING_WINDOW", "14")

        config = load_config(config_file=explicit, max_authors=None, sparkline_width=30)
        assert config.max_authors == 10  # global file, None override ignored
        assert config.max_files == 20  # project file beats global
        assert config.rolling_window == 14  # env beats files
        assert config.sparkline_width == 30  # override

    def test_env_types(self, isolated, monkeypatch):
        monkeypatch.setenv("REPO_PULSE_TIME_FORMAT_24H", "false")
        monkeypatch.setenv("REPO_PULSE_HIGH_RISK_SCORE", "75.5")
        monkeypatch.setenv("REPO_PULSE_SINCE", "2024-02-01")
        monkeypatch.setenv("REPO_PULSE_REPO_PATHS", "ignored")
        config = load_config()
        assert config.time_format_24h is False
        assert config.high_risk_score == 75.5
        assert config.since == datetime(2024, 2, 1)
        assert config.repo_paths == []

    def test_bad_env_value(self, isolated, monkeypatch):
        monkeypatch.setenv("REPO_PULSE_MAX_FILES", "lots")
        with pytest.raises(RepoPulseError, match="REPO_PULSE_MAX_FILES"):
            load_config()

    def test_verbose_flag(self, isolated):
        assert load_config(verbose=True).verbosity == "verbose"
        assert load_config(quiet=True).verbosity == "quiet"
        assert load_config(verbose=False).verbosity == "normal"

    def test_unknown_key(self, isolated):
        (isolated / "work" / "repo-pulse.toml").write_text("colour = 'blue'\n")
        with pytest.raises(RepoPulseError, match="Invalid configuration"):
            load_config()

    def test_broken_toml(self, isolated):
        (isolated / "work" / "repo-pulse.toml").write_text("max_files = = 3\n")
        with pytest.raises(RepoPulseError, match="Invalid project config"):
            load_config()

    def test_missing_explicit_file(self, isolated):
        with pytest.raises(RepoPulseError, match="not found"):
            load_config(config_file=isolated / "nope.toml")

    def test_repo_paths_stringified(self, isolated):
        config = load_config(repo_paths=[isolated / "work"])
        assert config.repo_paths == [str(isolated / "work")]
