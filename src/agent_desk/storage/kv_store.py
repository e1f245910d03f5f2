# src/agent_desk/storage/kv_store.py

from __future__ import annotations

import asyncio
import contextlib
import logging
import sqlite3
from pathlib import Path

logger = logging.getLogger(__name__)


class SqliteKeyValueStore:
    """
    SQLite-backed key-value store with whole-value read/write semantics.

    Thread-safety:
    - each operation opens its own SQLite connection
    - blocking work runs in a worker thread so the event loop keeps going
    """

    def __init__(self, db_path: str | Path = "store.sqlite3") -> None:
        self._db_path = Path(db_path)
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._ensure_schema()
        logger.info("KeyValueStore ready db=%s", self._db_path)

    # ---- low-level helpers ----

    def _get_conn(self) -> sqlite3.Connection:
        conn = sqlite3.connect(str(self._db_path), timeout=30.0)
        with contextlib.suppress(Exception):
            conn.execute("PRAGMA journal_mode=WAL")
        return conn

    def _ensure_schema(self) -> None:
        conn = self._get_conn()
        try:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS kv (
                    key TEXT PRIMARY KEY,
                    value TEXT NOT NULL
                )
                """
            )
            conn.commit()
        finally:
            conn.close()

    def _get_sync(self, key: str) -> str | None:
        conn = self._get_conn()
        try:
            row = conn.execute("SELECT value FROM kv WHERE key = ?", (key,)).fetchone()
            return None if row is None else str(row[0])
        finally:
            conn.close()

    def _put_sync(self, key: str, value: str) -> None:
        conn = self._get_conn()
        try:
            conn.execute(
                "INSERT INTO kv(key, value) VALUES (?, ?) "
                "ON CONFLICT(key) DO UPDATE SET value = excluded.value",
                (key, value),
            )
            conn.commit()
        finally:
            conn.close()

    def _list_sync(self, prefix: str) -> list[tuple[str, str]]:
        conn = self._get_conn()
        try:
            # substr() instead of LIKE: keys may contain '%' or '_'.
            rows = conn.execute(
                "SELECT key, value FROM kv WHERE substr(key, 1, ?) = ? ORDER BY key ASC",
                (len(prefix), prefix),
            ).fetchall()
            return [(str(k), str(v)) for k, v in rows]
        finally:
            conn.close()

    # ---- public API ----

    async def get(self, key: str) -> str | None:
        return await asyncio.to_thread(self._get_sync, key)

    async def put(self, key: str, value: str) -> None:
        await asyncio.to_thread(self._put_sync, key, value)
        logger.debug("kv put key=%s bytes=%d", key, len(value))

    async def list_by_prefix(self, prefix: str) -> list[tuple[str, str]]:
        return await asyncio.to_thread(self._list_sync, prefix)


class InMemoryKeyValueStore:
    """
    Process-local key-value store.

    Every operation yields to the event loop once, the way a real I/O-backed store
    would, so interleavings between concurrent writers are observable.
    """

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self._data: dict[str, str] = dict(initial or {})

    async def get(self, key: str) -> str | None:
        value = self._data.get(key)
        await asyncio.sleep(0)
        return value

    async def put(self, key: str, value: str) -> None:
        self._data[key] = value
        await asyncio.sleep(0)

    async def list_by_prefix(self, prefix: str) -> list[tuple[str, str]]:
        items = sorted((k, v) for k, v in self._data.items() if k.startswith(prefix))
        await asyncio.sleep(0)
        return items
