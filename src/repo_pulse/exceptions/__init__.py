"""Exception hierarchy for repo-pulse."""

from .base import RepoPulseError
from .config import (
    ConfigurationError,
    InvalidConfigError,
    InvalidPathError,
)
from .taxonomy import (
    ErrorCode,
    InvalidMergeMappingError,
    PulseError,
    ScanCancelled,
    SourceUnavailableError,
    StatsNotFinalizedError,
)

__all__ = [
    "RepoPulseError",
    "ConfigurationError",
    "InvalidPathError",
    "InvalidConfigError",
    "ErrorCode",
    "PulseError",
    "SourceUnavailableError",
    "StatsNotFinalizedError",
    "InvalidMergeMappingError",
    "ScanCancelled",
]
