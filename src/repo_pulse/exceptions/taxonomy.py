"""Error taxonomy with error codes and recovery hints.

Error Code Convention:
    RP1xx - Log source errors
    RP2xx - Parse errors
    RP3xx - Aggregation errors
    RP4xx - Identity merge errors
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ErrorCode(Enum):
    """Structured error codes for observability and debugging."""

    # Log source errors (RP1xx)
    RP100 = "RP100"  # git executable not found / could not start
    RP101 = "RP101"  # git log exited non-zero
    RP102 = "RP102"  # Not a git repository

    # Parse errors (RP2xx)
    RP200 = "RP200"  # Malformed numstat line (recovered locally)
    RP201 = "RP201"  # Malformed commit header (record dropped)

    # Aggregation errors (RP3xx)
    RP300 = "RP300"  # Ownership shares read before finalize()

    # Identity merge errors (RP4xx)
    RP400 = "RP400"  # Merge mapping is not a flat disjoint set
    RP401 = "RP401"  # Alias or primary absent (recovered locally)


@dataclass
class PulseError(Exception):
    """Base exception with structured context.

    Attributes:
        message: Human-readable error description
        code: Structured error code for categorization
        context: Additional context (repository path, offending key, ...)
        recoverable: Whether the caller can carry on with other work
        recovery_hint: Suggested fix for the user
    """

    message: str
    code: ErrorCode
    context: dict[str, Any] = field(default_factory=dict)
    recoverable: bool = True
    recovery_hint: str | None = None

    def __str__(self) -> str:
        return f"[{self.code.value}] {self.message}"

    def __post_init__(self) -> None:
        super().__init__(str(self))

    def to_json(self) -> dict[str, Any]:
        """Structured logging format."""
        return {
            "error_code": self.code.value,
            "message": self.message,
            "context": self.context,
            "recoverable": self.recoverable,
            "recovery_hint": self.recovery_hint,
        }


class SourceUnavailableError(PulseError):
    """The log source could not run or exited in failure (RP1xx).

    Fatal to the scan of one repository. Commits emitted before the failure
    remain valid, and other repositories in a multi-repo scan are unaffected.
    """

    @property
    def repo_path(self) -> str:
        return str(self.context.get("repo_path", ""))


class StatsNotFinalizedError(PulseError):
    """A view needed values that only exist after finalize() (RP3xx)."""

    pass


class InvalidMergeMappingError(PulseError):
    """An identity merge mapping failed boundary validation (RP4xx)."""

    pass


class ScanCancelled(Exception):
    """Cooperative stop requested by the caller.

    A terminal condition rather than an error: it sits outside the error
    hierarchy so ``except PulseError`` never swallows a cancellation.
    """

    def __init__(self, commits_parsed: int = 0):
        super().__init__(f"scan cancelled after {commits_parsed} commits")
        self.commits_parsed = commits_parsed
