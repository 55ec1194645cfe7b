"""Exception hierarchy shared by the deflattening stages."""

from __future__ import annotations

from pathlib import Path


class DeflattenError(Exception):
    """Base class for fatal pipeline failures."""


class ParseFailure(DeflattenError):
    """Raised when the parser rejects the supplied source text."""

    def __init__(self, message: str, *, stage: str = "parse") -> None:
        super().__init__(message)
        self.message = message
        self.stage = stage


class SerializationFailure(DeflattenError):
    """Raised when a tree cannot be printed back to source text."""


class MissingInput(DeflattenError):
    """Raised when the input file does not exist."""

    def __init__(self, path: Path) -> None:
        super().__init__(f"missing input file: {path}")
        self.path = path


class ConfigError(DeflattenError):
    """Raised for unreadable or malformed option files."""


__all__ = [
    "DeflattenError",
    "ParseFailure",
    "SerializationFailure",
    "MissingInput",
    "ConfigError",
]
