"""Tests for the error taxonomy and the configuration errors."""

from pathlib import Path

import pytest

from repo_pulse.exceptions import (
    ConfigurationError,
    ErrorCode,
    InvalidConfigError,
    InvalidMergeMappingError,
    InvalidPathError,
    PulseError,
    RepoPulseError,
    ScanCancelled,
    SourceUnavailableError,
    StatsNotFinalizedError,
)


class TestErrorCode:
    """Test ErrorCode ranges."""

    def test_source_error_codes(self):
        """Log source errors are RP1xx."""
        assert ErrorCode.RP100.value == "RP100"  # git could not start
        assert ErrorCode.RP101.value == "RP101"  # git log exited non-zero
        assert ErrorCode.RP102.value == "RP102"  # not a repository

    def test_parse_error_codes(self):
        """Parse errors are RP2xx."""
        assert ErrorCode.RP200.value == "RP200"
        assert ErrorCode.RP201.value == "RP201"

    def test_aggregation_and_merge_codes(self):
        assert ErrorCode.RP300.value == "RP300"
        assert ErrorCode.RP400.value == "RP400"
        assert ErrorCode.RP401.value == "RP401"


class TestPulseError:
    """Test PulseError base exception."""

    def test_basic_creation(self):
        """Can create with message and code."""
        err = PulseError(message="Test error", code=ErrorCode.RP101)
        assert err.message == "Test error"
        assert err.code == ErrorCode.RP101
        assert err.recoverable is True  # default
        assert err.context == {}
        assert err.recovery_hint is None

    def test_str_includes_code(self):
        err = PulseError(message="git log exited with status 128", code=ErrorCode.RP101)
        assert str(err) == "[RP101] git log exited with status 128"

    def test_to_json(self):
        """Structured logging format."""
        err = PulseError(
            message="Test",
            code=ErrorCode.RP400,
            context={"alias": "b@x.com"},
            recoverable=False,
            recovery_hint="Fix it",
        )
        json_data = err.to_json()
        assert json_data["error_code"] == "RP400"
        assert json_data["message"] == "Test"
        assert json_data["context"] == {"alias": "b@x.com"}
        assert json_data["recoverable"] is False
        assert json_data["recovery_hint"] == "Fix it"

    def test_is_exception(self):
        err = PulseError(message="test", code=ErrorCode.RP300)
        with pytest.raises(PulseError) as exc_info:
            raise err
        assert exc_info.value.code == ErrorCode.RP300


class TestDomainExceptions:
    """Test domain-specific exception subclasses."""

    def test_source_unavailable(self):
        err = SourceUnavailableError(
            message="git missing", code=ErrorCode.RP100, context={"repo_path": "/tmp/repo"}
        )
        assert isinstance(err, PulseError)
        assert err.repo_path == "/tmp/repo"

    def test_source_unavailable_without_path(self):
        assert SourceUnavailableError(message="x", code=ErrorCode.RP100).repo_path == ""

    def test_not_finalized(self):
        err = StatsNotFinalizedError(message="call finalize()", code=ErrorCode.RP300)
        assert isinstance(err, PulseError)

    def test_invalid_merge_mapping(self):
        err = InvalidMergeMappingError(message="chain", code=ErrorCode.RP400)
        assert isinstance(err, PulseError)

    def test_cancellation_is_separate(self):
        """Cancellation is a terminal condition, not part of the error hierarchy."""
        err = ScanCancelled(commits_parsed=12)
        assert err.commits_parsed == 12
        assert "12" in str(err)
        assert not isinstance(err, PulseError)
        assert not isinstance(err, RepoPulseError)


class TestConfigurationErrors:
    def test_invalid_path(self):
        err = InvalidPathError(Path("/nope"), "not a git repository")
        assert isinstance(err, ConfigurationError)
        assert isinstance(err, RepoPulseError)
        assert err.details == {"path": "/nope", "reason": "not a git repository"}
        assert "Invalid path: /nope" in str(err)

    def test_invalid_config(self):
        err = InvalidConfigError("max_files", 0, "must be at least 1")
        assert err.key == "max_files"
        assert err.value == 0
        assert "reason=must be at least 1" in str(err)

    def test_not_a_repository(self):
        err = InvalidPathError.not_a_repository("/srv/plain")
        assert err.path == Path("/srv/plain")
        assert err.reason == "not a git repository"
        assert str(err) == "Invalid path: /srv/plain (path=/srv/plain, reason=not a git repository)"

    def test_invalid_config_names_the_field(self):
        err = InvalidConfigError("timezone", "Mars/Olympus", "unknown IANA time zone")
        assert str(err).startswith("Invalid timezone = 'Mars/Olympus'")
        assert err.details == {"key": "timezone", "reason": "unknown IANA time zone"}

    def test_details_rendered_as_text(self):
        err = RepoPulseError("Scan window", details={"days": 365})
        assert err.details == {"days": "365"}
        assert str(err) == "Scan window (days=365)"

    def test_plain_message(self):
        assert str(RepoPulseError("nothing to scan")) == "nothing to scan"
