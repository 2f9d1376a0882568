"""Errors raised while resolving settings and repository paths."""

from pathlib import Path
from typing import Any, Union

from .base import RepoPulseError


class ConfigurationError(RepoPulseError):
    """Settings or repository selection cannot be used."""


class InvalidPathError(ConfigurationError):
    """A ``--path`` entry cannot be scanned."""

    def __init__(self, path: Union[str, Path], reason: str):
        super().__init__(f"Invalid path: {path}", details={"path": path, "reason": reason})
        self.path = Path(path)
        self.reason = reason

    @classmethod
    def not_a_repository(cls, path: Union[str, Path]) -> "InvalidPathError":
        return cls(path, "not a git repository")


class InvalidConfigError(ConfigurationError):
    """A PulseConfig field holds a value outside its allowed range.

    ``key`` is the field name, which is also the TOML key and the suffix
    of the ``REPO_PULSE_*`` variable that set it.
    """

    def __init__(self, key: str, value: Any, reason: str):
        super().__init__(
            f"Invalid {key} = {value!r}",
            details={"key": key, "reason": reason},
        )
        self.key = key
        self.value = value
        self.reason = reason
