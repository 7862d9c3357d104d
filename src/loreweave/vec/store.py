"""Vector store contract and two implementations.

The store is a collaborator owned by the surrounding application; the
core only needs four operations:

    save_vectors(records)               upsert by record id
    get_all_vectors()                   every record, any type
    delete_vectors_by_related_id(id)    drop all records of one entity
    clear_all()                         wipe

InMemoryVectorStore: dict-backed, for tests and one-shot CLI runs.
SqliteVectorStore: persistent, stdlib sqlite3, vectors stored as JSON.
Neither is transactional across calls; delete-then-save is two calls.
"""

from __future__ import annotations

import asyncio
import json
import sqlite3
import threading
from pathlib import Path
from typing import Protocol, runtime_checkable

from loreweave.errors import StoreError
from loreweave.models import VectorRecord
from loreweave.observability.logging import get_logger
from loreweave.observability.tracing import traced

logger = get_logger(__name__)


@runtime_checkable
class VectorStore(Protocol):
    async def save_vectors(self, records: list[VectorRecord]) -> None: ...

    async def get_all_vectors(self) -> list[VectorRecord]: ...

    async def delete_vectors_by_related_id(self, related_id: str) -> None: ...

    async def clear_all(self) -> None: ...


class InMemoryVectorStore:
    """Dict-backed store. Insertion-ordered, upsert by record id."""

    def __init__(self, records: list[VectorRecord] | None = None) -> None:
        self._records: dict[str, VectorRecord] = {}
        for record in records or []:
            self._records[record.id] = record

    def __len__(self) -> int:
        return len(self._records)

    async def save_vectors(self, records: list[VectorRecord]) -> None:
        for record in records:
            self._records[record.id] = record

    async def get_all_vectors(self) -> list[VectorRecord]:
        return list(self._records.values())

    async def delete_vectors_by_related_id(self, related_id: str) -> None:
        stale = [rid for rid, rec in self._records.items() if rec.related_id == related_id]
        for rid in stale:
            del self._records[rid]

    async def clear_all(self) -> None:
        self._records.clear()


_SCHEMA = """
CREATE TABLE IF NOT EXISTS vectors (
    id TEXT PRIMARY KEY,
    related_id TEXT NOT NULL,
    type TEXT NOT NULL,
    text TEXT NOT NULL,
    vector TEXT NOT NULL,
    timestamp REAL NOT NULL,
    provider TEXT NOT NULL DEFAULT '',
    metadata TEXT NOT NULL DEFAULT '{}'
)
"""

_INDEX = "CREATE INDEX IF NOT EXISTS idx_vectors_related ON vectors(related_id)"


class SqliteVectorStore:
    """Persistent store in a single sqlite file (default: .loreweave/vectors.db).

    One connection, shared across worker threads (check_same_thread=False)
    and serialised by a lock. Blocking calls run in asyncio.to_thread.
    sqlite3 errors surface as StoreError.
    """

    def __init__(self, db_path: str = ".loreweave/vectors.db") -> None:
        self._db_path = db_path
        self._conn: sqlite3.Connection | None = None
        self._lock = threading.Lock()

    def _ensure_connection(self) -> sqlite3.Connection:
        if self._conn is not None:
            return self._conn
        if self._db_path != ":memory:":
            Path(self._db_path).parent.mkdir(parents=True, exist_ok=True)
        self._conn = sqlite3.connect(self._db_path, check_same_thread=False)
        self._conn.execute(_SCHEMA)
        self._conn.execute(_INDEX)
        self._conn.commit()
        return self._conn

    def _run(self, op: str, fn, *args):
        with self._lock:
            try:
                conn = self._ensure_connection()
                return fn(conn, *args)
            except sqlite3.Error as exc:
                logger.error("store.failed", op=op, path=self._db_path, error=str(exc))
                raise StoreError(f"{op} failed: {exc}") from exc

    # -- sync bodies -------------------------------------------------------

    @staticmethod
    def _save(conn: sqlite3.Connection, records: list[VectorRecord]) -> None:
        conn.executemany(
            "INSERT OR REPLACE INTO vectors"
            "(id, related_id, type, text, vector, timestamp, provider, metadata)"
            " VALUES (?, ?, ?, ?, ?, ?, ?, ?)",
            [
                (
                    r.id,
                    r.related_id,
                    r.type.value,
                    r.text,
                    json.dumps(r.vector),
                    r.timestamp,
                    r.provider,
                    json.dumps(r.metadata, ensure_ascii=False),
                )
                for r in records
            ],
        )
        conn.commit()

    @staticmethod
    def _get_all(conn: sqlite3.Connection) -> list[VectorRecord]:
        rows = conn.execute(
            "SELECT id, related_id, type, text, vector, timestamp, provider, metadata"
            " FROM vectors ORDER BY rowid"
        ).fetchall()
        return [
            VectorRecord.from_dict(
                {
                    "id": row[0],
                    "related_id": row[1],
                    "type": row[2],
                    "text": row[3],
                    "vector": json.loads(row[4]),
                    "timestamp": row[5],
                    "provider": row[6],
                    "metadata": json.loads(row[7]),
                }
            )
            for row in rows
        ]

    @staticmethod
    def _delete_related(conn: sqlite3.Connection, related_id: str) -> None:
        conn.execute("DELETE FROM vectors WHERE related_id = ?", (related_id,))
        conn.commit()

    @staticmethod
    def _clear(conn: sqlite3.Connection) -> None:
        conn.execute("DELETE FROM vectors")
        conn.commit()

    # -- async API ---------------------------------------------------------

    @traced("store.save_vectors", external=True)
    async def save_vectors(self, records: list[VectorRecord]) -> None:
        if records:
            await asyncio.to_thread(self._run, "save_vectors", self._save, records)

    @traced("store.get_all_vectors", external=True)
    async def get_all_vectors(self) -> list[VectorRecord]:
        return await asyncio.to_thread(self._run, "get_all_vectors", self._get_all)

    @traced("store.delete_vectors", external=True)
    async def delete_vectors_by_related_id(self, related_id: str) -> None:
        await asyncio.to_thread(
            self._run, "delete_vectors_by_related_id", self._delete_related, related_id
        )

    @traced("store.clear_all", external=True)
    async def clear_all(self) -> None:
        await asyncio.to_thread(self._run, "clear_all", self._clear)

    def close(self) -> None:
        with self._lock:
            if self._conn is not None:
                self._conn.close()
                self._conn = None
