"""
StoreFacade — transactional CRUD over one persistent or in-memory store.

Usage::

    with StoreFacade(StoreConfig(in_memory=True), validator=my_validator) as store:
        store.save(conn, update=True)
        same = store.object(Connection, conn.uuid)
        ordered = store.objects(Connection, sort_key="name")

        # Several mutations, one transaction
        store.update(lambda batch: (batch.add(a), batch.delete(b)))

Every write runs inside one transaction that either commits completely or is
rolled back. Failures are never hidden behind an empty result:

  StoreUnavailableError  — the store could not be opened, or was closed
  ValidationFailedError  — the validator refused an object; nothing written
  PersistenceFailedError — the engine failed; the transaction was rolled back
"""

import logging
from contextlib import contextmanager
from typing import Any, Callable, Iterable, Iterator, Optional, TypeVar

from src.engine.base import AbstractEngine, StorageHandle, Transaction
from src.engine.models import SortSpec, TypeDescriptor, describe
from src.exceptions import (
    EngineError,
    PersistenceFailedError,
    QueryError,
    SerializationError,
    StoreUnavailableError,
    ValidationFailedError,
)
from .config import StoreConfig
from .selector import StoreSelector
from .validator import Validator

__all__ = ["StoreFacade", "WriteBatch"]

logger = logging.getLogger(__name__)

T = TypeVar("T")


class WriteBatch:
    """
    Mutations staged inside StoreFacade.update().

    Bound to the facade's open transaction; do not keep a reference to it
    after the mutator returns.
    """

    def __init__(self, facade: "StoreFacade", txn: Transaction) -> None:
        self._facade = facade
        self._txn = txn

    def add(self, obj: Any, update: bool = False) -> None:
        self._facade._validate([obj])
        self._txn.insert_or_replace(self._facade._descriptor(type(obj)), obj, update)

    def add_all(self, objs: Iterable[Any], update: bool = False) -> None:
        items = list(objs)
        self._facade._validate(items)
        for obj in items:
            self._txn.insert_or_replace(self._facade._descriptor(type(obj)), obj, update)

    def delete(self, obj: Any) -> bool:
        self._facade._validate([obj])
        return self._txn.delete_row(self._facade._descriptor(type(obj)), obj)


class StoreFacade:
    """
    Owns one StorageHandle, chosen once from *config* at construction.

    If the store cannot be opened the facade is still created, but every
    operation raises StoreUnavailableError. Use it as a context manager (or
    call close()) to release the handle.
    """

    def __init__(
        self,
        config: Optional[StoreConfig] = None,
        validator: Optional[Validator] = None,
        engine: Optional[AbstractEngine] = None,
    ) -> None:
        self._config = config or StoreConfig()
        self._validator = validator
        self._handle: Optional[StorageHandle] = None
        self._unavailable: Optional[StoreUnavailableError] = None
        try:
            self._handle = StoreSelector(self._config, engine).resolve()
        except StoreUnavailableError as exc:
            logger.warning("%s", exc)
            self._unavailable = exc

    def __enter__(self) -> "StoreFacade":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def __repr__(self) -> str:
        state = "available" if self.is_available else "unavailable"
        return f"StoreFacade({self._config.describe()!r}, {state})"

    # ── Properties ────────────────────────────────────────────────────────

    @property
    def config(self) -> StoreConfig:
        return self._config

    @property
    def in_memory(self) -> bool:
        return self._config.in_memory

    @property
    def validator(self) -> Optional[Validator]:
        return self._validator

    @property
    def is_available(self) -> bool:
        return self._handle is not None and self._handle.is_open

    def close(self) -> None:
        """Release the storage handle. Later calls raise StoreUnavailableError."""
        if self._handle is not None:
            self._handle.close()

    # ── Internal helpers ──────────────────────────────────────────────────

    def _require_handle(self) -> StorageHandle:
        if self._handle is None:
            raise StoreUnavailableError(str(self._unavailable)) from self._unavailable
        if not self._handle.is_open:
            raise StoreUnavailableError(f"Store {self._config.describe()} has been closed")
        return self._handle

    @staticmethod
    def _descriptor(type_: Any) -> TypeDescriptor:
        try:
            descriptor = describe(type_)
        except TypeError as exc:
            raise QueryError(str(exc)) from exc
        if not descriptor.name:
            raise QueryError(f"{type_!r} has an empty type name")
        return descriptor

    def _validate(self, objs: list) -> None:
        if self._validator is None:
            return
        for obj in objs:
            try:
                ok = self._validator.is_validated(obj)
            except Exception as exc:
                raise ValidationFailedError(f"Validator raised for {obj!r}: {exc}") from exc
            if not ok:
                raise ValidationFailedError(f"Validator rejected {obj!r}")

    @contextmanager
    def _transaction(self, handle: StorageHandle) -> Iterator[Transaction]:
        """Begin → yield → commit; roll back on any failure."""
        try:
            txn = handle.begin()
        except EngineError as exc:
            raise PersistenceFailedError(f"Could not open transaction: {exc}", exc) from exc
        try:
            yield txn
            txn.commit()
        except EngineError as exc:
            txn.rollback()
            logger.debug("Rolled back after engine failure: %s", exc)
            raise PersistenceFailedError(f"Write failed and was rolled back: {exc}", exc) from exc
        except BaseException:
            txn.rollback()
            raise

    def _read(self, handle: StorageHandle, fn: Callable[[StorageHandle], T]) -> T:
        try:
            return fn(handle)
        except SerializationError as exc:
            raise QueryError(str(exc)) from exc
        except EngineError as exc:
            raise StoreUnavailableError(
                f"Read from {self._config.describe()} failed: {exc}"
            ) from exc

    # ── Write path ────────────────────────────────────────────────────────

    def save(self, obj: Any, update: bool = False) -> None:
        """
        Persist one object.

        update=False inserts and fails on an existing primary key
        (PersistenceFailedError caused by DuplicateKeyError);
        update=True replaces the existing row in place.
        """
        handle = self._require_handle()
        descriptor = self._descriptor(type(obj))
        self._validate([obj])
        with self._transaction(handle) as txn:
            txn.insert_or_replace(descriptor, obj, update)
        logger.debug("Saved %s %r", descriptor.name, descriptor.key_of(obj))

    def save_batch(self, objs: Iterable[Any], update: bool = False) -> None:
        """Persist every object in one transaction: all or none."""
        handle = self._require_handle()
        items = [(self._descriptor(type(o)), o) for o in objs]
        self._validate([o for _, o in items])
        with self._transaction(handle) as txn:
            for descriptor, obj in items:
                txn.insert_or_replace(descriptor, obj, update)
        logger.debug("Saved batch of %d objects", len(items))

    def update(self, mutator: Callable[[WriteBatch], T]) -> T:
        """
        Run *mutator* against a WriteBatch inside one transaction.

        Objects added or deleted through the batch are validated as they
        are staged.
        Any exception raised by the mutator rolls everything back and
        propagates unchanged.
        """
        handle = self._require_handle()
        with self._transaction(handle) as txn:
            result = mutator(WriteBatch(self, txn))
        return result

    def delete(self, obj: Any) -> bool:
        """Delete one object's row (validated like a save). Returns False if it was not stored."""
        handle = self._require_handle()
        descriptor = self._descriptor(type(obj))
        self._validate([obj])
        with self._transaction(handle) as txn:
            removed = txn.delete_row(descriptor, obj)
        logger.debug("Deleted %s %r: %s", descriptor.name, descriptor.key_of(obj), removed)
        return removed

    def delete_batch(self, objs: Iterable[Any]) -> int:
        """Delete every object in one transaction. Returns rows removed."""
        handle = self._require_handle()
        items = [(self._descriptor(type(o)), o) for o in objs]
        self._validate([o for _, o in items])
        removed = 0
        with self._transaction(handle) as txn:
            for descriptor, obj in items:
                if txn.delete_row(descriptor, obj):
                    removed += 1
        logger.debug("Deleted batch: %d of %d rows removed", removed, len(items))
        return removed

    # ── Read path ─────────────────────────────────────────────────────────

    def object(self, type_: Any, key: Any) -> Optional[Any]:
        """Return the row of *type_* with primary key *key*, or None."""
        handle = self._require_handle()
        descriptor = self._descriptor(type_)
        return self._read(handle, lambda h: h.fetch_by_key(descriptor, key))

    def objects(
        self,
        type_: Any,
        sort_key: Optional[str] = None,
        ascending: bool = True,
    ) -> list:
        """
        Return every row of *type_*.

        Without *sort_key* rows come back in insertion order. With it, rows
        are ordered by that field; equal values keep insertion order.
        """
        handle = self._require_handle()
        descriptor = self._descriptor(type_)
        sort = None
        if sort_key is not None:
            if not descriptor.has_field(sort_key):
                raise QueryError(f"{descriptor.name} has no field {sort_key!r}")
            sort = SortSpec(field=sort_key, ascending=ascending)
        return self._read(handle, lambda h: h.fetch_all(descriptor, sort))

    def count(self, type_: Any) -> int:
        handle = self._require_handle()
        descriptor = self._descriptor(type_)
        return self._read(handle, lambda h: h.count(descriptor))

    def stored_types(self) -> dict[str, int]:
        """Map every stored table name to its row count."""
        handle = self._require_handle()

        def _collect(handle: StorageHandle) -> dict[str, int]:
            return {
                name: handle.count(TypeDescriptor(name=name, primary_key=""))
                for name in handle.table_names()
            }
        return self._read(handle, _collect)

    # ── Validation ────────────────────────────────────────────────────────

    def is_validated(self, value: Any) -> bool:
        """Ask the attached validator about *value*; False when none is attached."""
        if self._validator is None:
            return False
        return self._validator.is_validated(value)
