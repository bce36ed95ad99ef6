"""Abstract base classes for the embedded storage engine boundary."""

from abc import ABC, abstractmethod
from typing import Any, Optional

from .models import SortSpec, TypeDescriptor

__all__ = ["AbstractEngine", "StorageHandle", "Transaction", "get_engine"]


class Transaction(ABC):
    """
    One atomic unit of write work against a StorageHandle.

    Must end in exactly one of commit() or rollback().
    """

    @abstractmethod
    def insert_or_replace(self, descriptor: TypeDescriptor, obj: Any, overwrite: bool) -> None:
        """
        Write *obj* into *descriptor*'s table.

        Raises:
            DuplicateKeyError: overwrite is False and the key already exists.
            SerializationError: obj or its key cannot be encoded.
            EngineError: any other engine failure.
        """
        ...

    @abstractmethod
    def delete_row(self, descriptor: TypeDescriptor, obj: Any) -> bool:
        """Delete the row keyed like *obj*. Returns True if a row was removed."""
        ...

    @abstractmethod
    def commit(self) -> None:
        ...

    @abstractmethod
    def rollback(self) -> None:
        """Discard all writes. Never raises."""
        ...


class StorageHandle(ABC):
    """An open session against exactly one backing store."""

    @property
    @abstractmethod
    def is_open(self) -> bool:
        ...

    @abstractmethod
    def begin(self) -> Transaction:
        ...

    @abstractmethod
    def fetch_by_key(self, descriptor: TypeDescriptor, key: Any) -> Optional[Any]:
        """Return the row with primary key *key*, or None."""
        ...

    @abstractmethod
    def fetch_all(self, descriptor: TypeDescriptor, sort: Optional[SortSpec] = None) -> list:
        """Return every row of *descriptor*, in insertion order unless *sort* is given."""
        ...

    @abstractmethod
    def count(self, descriptor: TypeDescriptor) -> int:
        ...

    @abstractmethod
    def table_names(self) -> list[str]:
        ...

    @abstractmethod
    def close(self) -> None:
        ...


class AbstractEngine(ABC):
    """
    Opens StorageHandles. One engine may serve many facades; each facade
    receives its own handle.
    """

    @abstractmethod
    def open_persistent(self, path: str) -> StorageHandle:
        """
        Raises:
            EngineOpenError: the on-disk store cannot be opened.
        """
        ...

    @abstractmethod
    def open_in_memory(self, namespace: str) -> StorageHandle:
        """
        Raises:
            EngineOpenError: the in-memory store cannot be created.
        """
        ...


def get_engine() -> "AbstractEngine":
    """
    Factory: return the default engine.

    Import is deferred to avoid circular imports between sub-modules.
    """
    from .sqlite_engine import SQLiteEngine

    return SQLiteEngine()
