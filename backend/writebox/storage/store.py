"""Persistence store over four independent record collections."""

from __future__ import annotations

import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Iterator, Mapping

import orjson

from writebox.core.logging import get_logger
from writebox.core.metrics import STORE_ERRORS
from writebox.db.sqlite import SQLiteDatabase

logger = get_logger(__name__)

DOCUMENTS = "documents"
FILES = "files"
TRANSCRIPTIONS = "transcriptions"
CHAT_HISTORY = "chat_history"

COLLECTIONS = (DOCUMENTS, FILES, TRANSCRIPTIONS, CHAT_HISTORY)

Record = dict[str, Any]


class StoreError(RuntimeError):
    """Raised when the store cannot be opened or an operation fails."""


class UnknownCollectionError(StoreError):
    """Raised for a collection name outside :data:`COLLECTIONS`."""


class PersistenceStore:
    """Keyed record store with auto-incrementing ids per collection.

    Records are plain mappings. The ``id`` key is owned by the store: a record
    without one is inserted and receives the next id, a record carrying one
    overwrites the row with that id (upsert). Rows are returned in id order,
    which is insertion order because upserts keep their id.

    A collection may also hold *named slots*: rows addressed by a stable name
    instead of an id, for state that has exactly one current value. Slot rows
    are reachable only through the slot methods and never appear in ``get_all``.
    """

    def __init__(self, db_path: Path) -> None:
        self.db = SQLiteDatabase(db_path)

    @property
    def path(self) -> Path:
        return self.db.db_path

    async def init(self) -> None:
        try:
            self.db.connect()
            self.db.ensure_schema()
        except (sqlite3.Error, OSError) as exc:
            STORE_ERRORS.labels(collection="*", operation="init").inc()
            self.db.close()
            raise StoreError(f"Could not open store at {self.path}: {exc}") from exc
        logger.info("Persistence store ready at %s", self.path)

    async def close(self) -> None:
        self.db.close()

    async def save(self, collection: str, record: Mapping[str, Any]) -> int:
        table = _table(collection)
        body = dict(record)
        record_id = body.pop("id", None)
        payload = _dumps(body)
        with self._guard(collection, "save"):
            with self.db.transaction() as cursor:
                if record_id is None:
                    cursor.execute(f"INSERT INTO {table} (body) VALUES (?)", [payload])
                    return int(cursor.lastrowid)
                cursor.execute(
                    f"""
                    INSERT INTO {table} (id, body) VALUES (?, ?)
                    ON CONFLICT(id) DO UPDATE SET body = excluded.body
                    """,
                    [int(record_id), payload],
                )
                return int(record_id)

    async def get_all(self, collection: str) -> list[Record]:
        table = _table(collection)
        with self._guard(collection, "get_all"):
            rows = self.db.query(f"SELECT id, body FROM {table} WHERE slot IS NULL ORDER BY id", [])
        return [_row_to_record(row) for row in rows]

    async def get(self, collection: str, record_id: int) -> Record | None:
        table = _table(collection)
        with self._guard(collection, "get"):
            row = self.db.execute(
                f"SELECT id, body FROM {table} WHERE id = ?",
                [int(record_id)],
            ).fetchone()
        return _row_to_record(row) if row else None

    async def delete(self, collection: str, record_id: int) -> None:
        table = _table(collection)
        with self._guard(collection, "delete"):
            with self.db.transaction() as cursor:
                cursor.execute(f"DELETE FROM {table} WHERE id = ?", [int(record_id)])

    async def put_slot(self, collection: str, slot: str, record: Mapping[str, Any]) -> int:
        """Overwrite the single record held under ``slot``."""
        table = _table(collection)
        body = dict(record)
        body.pop("id", None)
        payload = _dumps(body)
        with self._guard(collection, "put_slot"):
            with self.db.transaction() as cursor:
                cursor.execute(
                    f"""
                    INSERT INTO {table} (slot, body) VALUES (?, ?)
                    ON CONFLICT(slot) DO UPDATE SET body = excluded.body
                    """,
                    [slot, payload],
                )
                row = cursor.execute(f"SELECT id FROM {table} WHERE slot = ?", [slot]).fetchone()
        return int(row["id"])

    async def get_slot(self, collection: str, slot: str) -> Record | None:
        table = _table(collection)
        with self._guard(collection, "get_slot"):
            row = self.db.execute(
                f"SELECT id, body FROM {table} WHERE slot = ?",
                [slot],
            ).fetchone()
        return _row_to_record(row) if row else None

    @contextmanager
    def _guard(self, collection: str, operation: str) -> Iterator[None]:
        try:
            yield
        except sqlite3.Error as exc:
            STORE_ERRORS.labels(collection=collection, operation=operation).inc()
            logger.warning("Store %s failed: %s", operation, exc, extra={"ctx_collection": collection})
            raise StoreError(f"{operation} on {collection} failed: {exc}") from exc


def _table(collection: str) -> str:
    if collection not in COLLECTIONS:
        raise UnknownCollectionError(f"Unknown collection: {collection!r}")
    return collection


def _dumps(body: Mapping[str, Any]) -> str:
    return orjson.dumps(body).decode("utf-8")


def _row_to_record(row: sqlite3.Row) -> Record:
    record: Record = orjson.loads(row["body"])
    record["id"] = row["id"]
    return record


__all__ = [
    "PersistenceStore",
    "StoreError",
    "UnknownCollectionError",
    "COLLECTIONS",
    "DOCUMENTS",
    "FILES",
    "TRANSCRIPTIONS",
    "CHAT_HISTORY",
]
