"""
SQLiteEngine — stdlib sqlite3 implementation of the engine boundary.

Every stored type gets its own table::

    seq      INTEGER PRIMARY KEY   -- insertion order, tie-break for sorts
    pk       TEXT UNIQUE           -- JSON-encoded primary key
    payload  TEXT                  -- JSON object with every field

Usage::

    engine = SQLiteEngine()
    handle = engine.open_persistent("~/.dualstore/store.db")
    txn = handle.begin()
    try:
        txn.insert_or_replace(Connection.type_descriptor(), conn, overwrite=True)
        txn.commit()
    except EngineError:
        txn.rollback()
        raise

In-memory stores use SQLite's shared-cache URI form, so every handle opened
on the same namespace sees the same data until the last one closes.
"""

import json
import logging
import sqlite3
from pathlib import Path
from typing import Any, Optional
from urllib.parse import quote

from src.exceptions import (
    DuplicateKeyError,
    EngineError,
    EngineOpenError,
    SerializationError,
)
from .base import AbstractEngine, StorageHandle, Transaction
from .models import SortSpec, TypeDescriptor

__all__ = ["SQLiteEngine", "SQLiteHandle", "SQLiteTransaction"]

logger = logging.getLogger(__name__)


# ── Encoding helpers ──────────────────────────────────────────────────────────

def _quote_ident(name: str) -> str:
    return '"' + name.replace('"', '""') + '"'


def _encode_key(key: Any) -> str:
    try:
        return json.dumps(key, sort_keys=True)
    except (TypeError, ValueError) as exc:
        raise SerializationError(f"Primary key {key!r} is not encodable: {exc}") from exc


_JSON_SCALARS = (str, int, float, bool, type(None))


def _check_storable(value: Any, path: str) -> None:
    """Reject values that JSON would silently turn into something else."""
    if isinstance(value, _JSON_SCALARS):
        return
    if isinstance(value, list):
        for i, item in enumerate(value):
            _check_storable(item, f"{path}[{i}]")
        return
    if isinstance(value, dict):
        for k, item in value.items():
            if not isinstance(k, str):
                raise SerializationError(f"{path} has non-string key {k!r}")
            _check_storable(item, f"{path}.{k}")
        return
    raise SerializationError(
        f"{path} holds a {type(value).__name__}, which does not round-trip; "
        "use str, int, float, bool, None, list or dict"
    )


def _encode_payload(descriptor: TypeDescriptor, obj: Any) -> tuple[str, str]:
    try:
        key = descriptor.key_of(obj)
        payload = descriptor.dump(obj)
    except (AttributeError, KeyError) as exc:
        raise SerializationError(
            f"Object {obj!r} does not match type {descriptor.name!r}: {exc}"
        ) from exc
    for name, value in payload.items():
        _check_storable(value, f"{descriptor.name}.{name}")
    try:
        body = json.dumps(payload, sort_keys=True)
    except (TypeError, ValueError) as exc:
        raise SerializationError(
            f"{descriptor.name} row {key!r} has a field that cannot be stored: {exc}"
        ) from exc
    return _encode_key(key), body


def _decode(descriptor: TypeDescriptor, body: str) -> Any:
    return descriptor.load(json.loads(body))


def _ensure_table(conn: sqlite3.Connection, descriptor: TypeDescriptor) -> None:
    conn.execute(
        f"CREATE TABLE IF NOT EXISTS {_quote_ident(descriptor.name)} ("
        " seq INTEGER PRIMARY KEY,"
        " pk TEXT NOT NULL UNIQUE,"
        " payload TEXT NOT NULL)"
    )


def _table_exists(conn: sqlite3.Connection, name: str) -> bool:
    row = conn.execute(
        "SELECT 1 FROM sqlite_master WHERE type='table' AND name=?", (name,)
    ).fetchone()
    return row is not None


# ── Transaction ───────────────────────────────────────────────────────────────

class SQLiteTransaction(Transaction):
    """A BEGIN IMMEDIATE … COMMIT/ROLLBACK span on one connection."""

    def __init__(self, conn: sqlite3.Connection) -> None:
        self._conn = conn
        self._done = False

    def _check_active(self) -> None:
        if self._done:
            raise EngineError("Transaction already finished")

    def insert_or_replace(self, descriptor: TypeDescriptor, obj: Any, overwrite: bool) -> None:
        self._check_active()
        pk, body = _encode_payload(descriptor, obj)
        table = _quote_ident(descriptor.name)
        try:
            _ensure_table(self._conn, descriptor)
            if overwrite:
                self._conn.execute(
                    f"INSERT INTO {table} (pk, payload) VALUES (?, ?) "
                    "ON CONFLICT(pk) DO UPDATE SET payload = excluded.payload",
                    (pk, body),
                )
            else:
                self._conn.execute(
                    f"INSERT INTO {table} (pk, payload) VALUES (?, ?)", (pk, body)
                )
        except sqlite3.IntegrityError as exc:
            raise DuplicateKeyError(
                f"{descriptor.name} already has a row with primary key {pk}"
            ) from exc
        except sqlite3.Error as exc:
            raise EngineError(f"Insert into {descriptor.name} failed: {exc}") from exc

    def delete_row(self, descriptor: TypeDescriptor, obj: Any) -> bool:
        self._check_active()
        try:
            key = descriptor.key_of(obj)
        except (AttributeError, KeyError) as exc:
            raise SerializationError(
                f"Object {obj!r} does not match type {descriptor.name!r}: {exc}"
            ) from exc
        pk = _encode_key(key)
        try:
            if not _table_exists(self._conn, descriptor.name):
                return False
            cur = self._conn.execute(
                f"DELETE FROM {_quote_ident(descriptor.name)} WHERE pk=?", (pk,)
            )
        except sqlite3.Error as exc:
            raise EngineError(f"Delete from {descriptor.name} failed: {exc}") from exc
        return cur.rowcount > 0

    def commit(self) -> None:
        self._check_active()
        try:
            self._conn.execute("COMMIT")
        except sqlite3.Error as exc:
            raise EngineError(f"Commit failed: {exc}") from exc
        self._done = True

    def rollback(self) -> None:
        if self._done:
            return
        self._done = True
        if not self._conn.in_transaction:
            return
        try:
            self._conn.execute("ROLLBACK")
        except sqlite3.Error as exc:
            logger.warning("Rollback failed: %s", exc)


# ── Handle ────────────────────────────────────────────────────────────────────

class SQLiteHandle(StorageHandle):
    """
    One sqlite3 connection in autocommit mode; transactions are explicit.

    The connection keeps sqlite3's same-thread check: a handle belongs to the
    thread that opened it.
    """

    def __init__(self, conn: sqlite3.Connection, label: str) -> None:
        self._conn: Optional[sqlite3.Connection] = conn
        self.label = label

    def __repr__(self) -> str:
        state = "open" if self.is_open else "closed"
        return f"SQLiteHandle({self.label!r}, {state})"

    @property
    def is_open(self) -> bool:
        return self._conn is not None

    def _connection(self) -> sqlite3.Connection:
        if self._conn is None:
            raise EngineError(f"Storage handle {self.label!r} is closed")
        return self._conn

    def begin(self) -> SQLiteTransaction:
        conn = self._connection()
        try:
            conn.execute("BEGIN IMMEDIATE")
        except sqlite3.Error as exc:
            raise EngineError(f"Could not begin transaction: {exc}") from exc
        return SQLiteTransaction(conn)

    def fetch_by_key(self, descriptor: TypeDescriptor, key: Any) -> Optional[Any]:
        conn = self._connection()
        pk = _encode_key(key)
        try:
            if not _table_exists(conn, descriptor.name):
                return None
            row = conn.execute(
                f"SELECT payload FROM {_quote_ident(descriptor.name)} WHERE pk=?", (pk,)
            ).fetchone()
        except sqlite3.Error as exc:
            raise EngineError(f"Lookup in {descriptor.name} failed: {exc}") from exc
        return _decode(descriptor, row[0]) if row else None

    def fetch_all(self, descriptor: TypeDescriptor, sort: Optional[SortSpec] = None) -> list:
        conn = self._connection()
        sql = f"SELECT payload FROM {_quote_ident(descriptor.name)}"
        params: tuple = ()
        if sort is not None:
            direction = "ASC" if sort.ascending else "DESC"
            sql += f" ORDER BY json_extract(payload, ?) {direction}, seq ASC"
            params = ("$." + json.dumps(sort.field),)
        else:
            sql += " ORDER BY seq ASC"
        try:
            if not _table_exists(conn, descriptor.name):
                return []
            rows = conn.execute(sql, params).fetchall()
        except sqlite3.Error as exc:
            raise EngineError(f"Scan of {descriptor.name} failed: {exc}") from exc
        return [_decode(descriptor, r[0]) for r in rows]

    def count(self, descriptor: TypeDescriptor) -> int:
        conn = self._connection()
        try:
            if not _table_exists(conn, descriptor.name):
                return 0
            row = conn.execute(
                f"SELECT COUNT(*) FROM {_quote_ident(descriptor.name)}"
            ).fetchone()
        except sqlite3.Error as exc:
            raise EngineError(f"Count of {descriptor.name} failed: {exc}") from exc
        return row[0]

    def table_names(self) -> list[str]:
        conn = self._connection()
        try:
            rows = conn.execute(
                "SELECT name FROM sqlite_master "
                "WHERE type='table' AND name NOT LIKE 'sqlite_%' ORDER BY name"
            ).fetchall()
        except sqlite3.Error as exc:
            raise EngineError(f"Listing tables failed: {exc}") from exc
        return [r[0] for r in rows]

    def close(self) -> None:
        if self._conn is None:
            return
        conn, self._conn = self._conn, None
        if conn.in_transaction:
            conn.execute("ROLLBACK")
        conn.close()
        logger.debug("Closed storage handle %s", self.label)


# ── Engine ────────────────────────────────────────────────────────────────────

class SQLiteEngine(AbstractEngine):
    """Opens SQLite-backed handles, on disk or in a shared in-memory namespace."""

    def __init__(self, timeout: float = 10.0) -> None:
        self._timeout = timeout

    def open_persistent(self, path: str) -> SQLiteHandle:
        db_path = Path(path).expanduser()
        try:
            db_path.parent.mkdir(parents=True, exist_ok=True)
            conn = sqlite3.connect(
                str(db_path), timeout=self._timeout, isolation_level=None
            )
        except (OSError, sqlite3.Error) as exc:
            raise EngineOpenError(f"Cannot open store at {db_path}: {exc}") from exc
        try:
            conn.execute("PRAGMA journal_mode=WAL")
            conn.execute("PRAGMA foreign_keys=ON")
            # Forces a read of the header so corrupt files fail here.
            conn.execute("SELECT COUNT(*) FROM sqlite_master").fetchone()
        except sqlite3.Error as exc:
            conn.close()
            raise EngineOpenError(f"Cannot open store at {db_path}: {exc}") from exc
        logger.debug("Opened persistent store %s", db_path)
        return SQLiteHandle(conn, label=str(db_path))

    def open_in_memory(self, namespace: str) -> SQLiteHandle:
        if not namespace:
            raise EngineOpenError("In-memory store needs a non-empty namespace")
        uri = f"file:{quote(namespace, safe='')}?mode=memory&cache=shared"
        try:
            conn = sqlite3.connect(
                uri, uri=True, timeout=self._timeout, isolation_level=None
            )
            conn.execute("PRAGMA foreign_keys=ON")
        except sqlite3.Error as exc:
            raise EngineOpenError(
                f"Cannot open in-memory store {namespace!r}: {exc}"
            ) from exc
        logger.debug("Opened in-memory store %s", namespace)
        return SQLiteHandle(conn, label=f"memory:{namespace}")
