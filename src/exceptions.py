"""
Project-wide custom exception hierarchy.
All modules raise subclasses of DualStoreError — never bare Exception.
"""

from typing import Optional

__all__ = [
    "DualStoreError",
    "StoreConfigError",
    "StoreError",
    "StoreUnavailableError",
    "ValidationFailedError",
    "PersistenceFailedError",
    "QueryError",
    "EngineError",
    "EngineOpenError",
    "DuplicateKeyError",
    "SerializationError",
]


class DualStoreError(Exception):
    """Root exception for all dualstore errors."""


# ── Configuration ─────────────────────────────────────────────────────────────

class StoreConfigError(DualStoreError):
    """Raised when a StoreConfig value (or its env override) is invalid."""


# ── Facade ────────────────────────────────────────────────────────────────────

class StoreError(DualStoreError):
    """Base class for errors surfaced by StoreFacade."""


class StoreUnavailableError(StoreError):
    """
    Raised when the facade has no usable storage handle.

    Fatal for the facade instance: build a new facade to recover.
    """


class ValidationFailedError(StoreError):
    """Raised when the attached validator rejects an object. Nothing was written."""


class PersistenceFailedError(StoreError):
    """
    Raised when the engine fails while applying or committing a write.

    The transaction has been rolled back; ``cause`` holds the engine error.
    """

    def __init__(self, message: str, cause: Optional[BaseException] = None) -> None:
        super().__init__(message)
        self.cause = cause


class QueryError(StoreError):
    """Raised for malformed read requests (e.g. sorting by an unknown field)."""


# ── Engine ────────────────────────────────────────────────────────────────────

class EngineError(StoreError):
    """Raised by the embedded storage engine layer."""


class EngineOpenError(EngineError):
    """Raised when a backing store cannot be opened."""


class DuplicateKeyError(EngineError):
    """Raised when an insert without overwrite hits an existing primary key."""


class SerializationError(EngineError):
    """Raised when an object or key cannot be encoded for storage."""
