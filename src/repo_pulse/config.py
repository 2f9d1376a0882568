"""Settings for scans and reports.

Later sources win: PulseConfig defaults, ~/.repo-pulse.toml,
./repo-pulse.toml, a file given with --config, REPO_PULSE_* environment
variables, then CLI flags.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field, fields
from datetime import date, datetime, timedelta, tzinfo
from pathlib import Path
from typing import Any, Callable, Iterator, Literal, Mapping, Optional, get_type_hints
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from .exceptions import InvalidConfigError, RepoPulseError
from .logging_config import get_logger

try:
    import tomllib
except ModuleNotFoundError:  # Python < 3.11
    import tomli as tomllib

logger = get_logger(__name__)

Verbosity = Literal["quiet", "normal", "verbose"]

ENV_PREFIX = "REPO_PULSE_"
LOCAL_TIMEZONE = "local"


@dataclass(frozen=True)
class PulseConfig:
    """Settings consumed by the scan and the reports.

    Attributes:
        Repository selection:
            repo_paths: Repositories to scan into one model
            since: Lower bound passed to ``git log --since`` (None = open)
            until: Upper bound passed to ``git log --until`` (None = open)

        Display:
            timezone: IANA zone name used for day/weekday/hour bucketing,
                or "local" for the machine's zone
            time_format_24h: Render hours as 00-23 instead of am/pm

        Report limits:
            max_authors: Rows shown in the leaderboard
            max_files: Rows shown in file and hotspot tables
            sparkline_width: Columns of the timeline sparkline
            rolling_window: Days averaged by the timeline rolling average
            high_risk_score: Hotspot risk score flagged as high-risk

        Scan tuning:
            queue_size: Bound of the parser -> aggregator channel
            measure_codebase: Count tracked lines for the refactored percentage
    """

    repo_paths: list[str] = field(default_factory=list)
    since: Optional[datetime] = None
    until: Optional[datetime] = None

    timezone: str = LOCAL_TIMEZONE
    time_format_24h: bool = True

    max_authors: int = 20
    max_files: int = 30
    sparkline_width: int = 52
    rolling_window: int = 7
    high_risk_score: float = 50.0

    queue_size: int = 1024
    measure_codebase: bool = True

    verbosity: Verbosity = "normal"

    def __post_init__(self) -> None:
        """Validate configuration after initialization."""
        if self.max_authors < 1:
            raise InvalidConfigError("max_authors", self.max_authors, "must be at least 1")
        if self.max_files < 1:
            raise InvalidConfigError("max_files", self.max_files, "must be at least 1")
        if self.sparkline_width < 1:
            raise InvalidConfigError("sparkline_width", self.sparkline_width, "must be at least 1")
        if self.rolling_window < 1:
            raise InvalidConfigError("rolling_window", self.rolling_window, "must be at least 1")
        if not 0.0 <= self.high_risk_score <= 100.0:
            raise InvalidConfigError(
                "high_risk_score", self.high_risk_score, "must be between 0 and 100"
            )
        if self.queue_size < 1:
            raise InvalidConfigError("queue_size", self.queue_size, "must be at least 1")
        if self.since and self.until and _as_aware(self.since) > _as_aware(self.until):
            raise InvalidConfigError("since", self.since, "must not be later than until")
        if self.verbosity not in ("quiet", "normal", "verbose"):
            raise InvalidConfigError("verbosity", self.verbosity, "expected quiet/normal/verbose")
        resolve_timezone(self.timezone)

    @property
    def tz(self) -> Optional[tzinfo]:
        """Resolved display zone; None means the local zone."""
        return resolve_timezone(self.timezone)


def resolve_timezone(name: Optional[str]) -> Optional[tzinfo]:
    """Map a zone name to a tzinfo. "local", "" and None resolve to None."""
    if not name or name.lower() == LOCAL_TIMEZONE:
        return None
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        raise InvalidConfigError("timezone", name, "unknown IANA time zone")


def default_date_range(now: Optional[datetime] = None) -> tuple[datetime, datetime]:
    """Default reporting window: the year ending now."""
    until = now or datetime.now().astimezone()
    return until - timedelta(days=365), until


def load_config(config_file: Optional[Path] = None, **overrides) -> PulseConfig:
    """Merge every configuration source into a validated PulseConfig.

    ``overrides`` usually come from CLI flags; ``None`` values are dropped so
    an unset option never masks a file or environment setting. The boolean
    ``verbose``/``quiet`` flags fold into ``verbosity`` (quiet wins).
    """
    merged: dict[str, Any] = {}
    for label, path, required in _config_files(config_file):
        if not path.exists():
            if required:
                raise RepoPulseError(f"Config file not found: {path}")
            continue
        try:
            with open(path, "rb") as fh:
                merged.update(tomllib.load(fh))
        except (OSError, tomllib.TOMLDecodeError) as e:
            raise RepoPulseError(f"Invalid {label} config '{path}': {e}")

    merged.update(_load_env_vars())

    verbose = overrides.pop("verbose", False)
    quiet = overrides.pop("quiet", False)
    if quiet:
        overrides["verbosity"] = "quiet"
    elif verbose:
        overrides["verbosity"] = "verbose"
    merged.update((k, v) for k, v in overrides.items() if v is not None)

    for key in ("since", "until"):
        if key in merged:
            merged[key] = _coerce_datetime(key, merged[key])
    if "repo_paths" in merged:
        merged["repo_paths"] = [str(p) for p in merged["repo_paths"]]

    try:
        return PulseConfig(**merged)
    except TypeError as e:
        raise RepoPulseError(f"Invalid configuration: {e}")


def _config_files(explicit: Optional[Path]) -> Iterator[tuple[str, Path, bool]]:
    """(label, path, required) for each TOML source, lowest priority first."""
    yield "global", Path.home() / ".repo-pulse.toml", False
    yield "project", Path.cwd() / "repo-pulse.toml", False
    if explicit is not None:
        yield "explicit", Path(explicit), True


def _as_aware(value: datetime) -> datetime:
    return value if value.tzinfo is not None else value.astimezone()


def _coerce_datetime(key: str, value: Any) -> Optional[datetime]:
    """Accept datetimes, TOML dates and ISO-8601 strings."""
    if value is None or isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    if isinstance(value, str):
        try:
            return datetime.fromisoformat(value)
        except ValueError:
            pass
    raise InvalidConfigError(key, value, "expected an ISO-8601 date or datetime")


_TRUTHY = frozenset({"1", "true", "yes", "on"})
_FALSY = frozenset({"0", "false", "no", "off"})


def _parse_bool(raw: str) -> bool:
    word = raw.strip().lower()
    if word in _TRUTHY:
        return True
    if word in _FALSY:
        return False
    raise ValueError(f"expected true/false, got '{raw}'")


_ENV_CONVERTERS: dict[Any, Callable[[str], Any]] = {
    bool: _parse_bool,
    int: int,
    float: float,
    str: str,
    datetime: datetime.fromisoformat,
}


def _env_converter(hint: Any) -> Optional[Callable[[str], Any]]:
    """Converter for a field's type hint, or None for list fields."""
    args = getattr(hint, "__args__", ())
    if type(None) in args:
        hint = next(a for a in args if a is not type(None))
    if getattr(hint, "__origin__", None) is Literal:
        return str
    return _ENV_CONVERTERS.get(hint)


def _load_env_vars(environ: Optional[Mapping[str, str]] = None) -> dict[str, Any]:
    """Read ``REPO_PULSE_<FIELD>`` variables, e.g. ``REPO_PULSE_MAX_FILES=10``.

    ``repo_paths`` cannot be set this way; the variable is ignored.
    """
    environ = os.environ if environ is None else environ
    hints = get_type_hints(PulseConfig)
    values: dict[str, Any] = {}
    for entry in fields(PulseConfig):
        key = ENV_PREFIX + entry.name.upper()
        if key not in environ:
            continue
        convert = _env_converter(hints[entry.name])
        if convert is None:
            logger.debug("%s cannot be set from the environment, ignoring it", key)
            continue
        try:
            values[entry.name] = convert(environ[key])
        except ValueError as e:
            raise RepoPulseError(f"Invalid {key}: {e}")
    return values
