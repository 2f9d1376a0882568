"""Root of the user-facing error hierarchy."""

from typing import Mapping, Optional


class RepoPulseError(Exception):
    """A problem the user fixes before a scan can start.

    Bad settings and paths that are not repositories end up here. The CLI
    prints ``str(err)`` and exits 1, so ``details`` (rendered as
    ``key=value`` after the message) carry the offending path or key.
    Failures during a scan use :class:`~repo_pulse.exceptions.PulseError`.
    """

    def __init__(self, message: str, details: Optional[Mapping[str, object]] = None):
        super().__init__(message)
        self.message = message
        self.details = {key: str(value) for key, value in (details or {}).items()}

    def __str__(self) -> str:
        if not self.details:
            return self.message
        pairs = ", ".join(f"{key}={value}" for key, value in self.details.items())
        return f"{self.message} ({pairs})"
