# memento/errors.py
# Error taxonomy for the temporal progress engine.

from __future__ import annotations


class MementoError(Exception):
    """Base class for every error the engine raises on purpose."""


class InvalidParameter(MementoError, ValueError):
    """Non-positive life expectancy, bad tick interval, malformed milestone list."""


class ValidationError(MementoError, ValueError):
    """A goal failed add-time validation (empty title, bad or non-future target date)."""


class StorageError(MementoError, RuntimeError):
    """The persistence medium rejected a write (quota, I/O)."""

    def __init__(self, message: str, *, key: str | None = None) -> None:
        super().__init__(message)
        self.key = key


__all__ = ["MementoError", "InvalidParameter", "ValidationError", "StorageError"]
