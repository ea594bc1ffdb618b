"""
SQLite-backed string key-value store.

The whole persistence layer is one table of (key, value) text pairs; each
collection is stored as a single JSON document under its own key.
"""

from __future__ import annotations

from typing import Optional

import aiosqlite

from . import config
from .logging_config import get_logger

logger = get_logger(__name__)

DB_PATH = config.DB_PATH

_SCHEMA = """
CREATE TABLE IF NOT EXISTS kv (
    key        TEXT PRIMARY KEY,
    value      TEXT NOT NULL,
    updated_at TEXT NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%fZ', 'now'))
)
"""


class KeyValueStore:
    def __init__(self, conn: aiosqlite.Connection, path: str):
        self._conn = conn
        self.path = path

    @classmethod
    async def open(cls, path: str) -> "KeyValueStore":
        conn = await aiosqlite.connect(path)
        await conn.execute(_SCHEMA)
        await conn.commit()
        logger.info("kv_store_opened", path=path)
        return cls(conn, path)

    async def get(self, key: str) -> Optional[str]:
        async with self._conn.execute("SELECT value FROM kv WHERE key = ?", (key,)) as cur:
            row = await cur.fetchone()
        return row[0] if row else None

    async def set(self, key: str, value: str) -> None:
        await self._conn.execute(
            "INSERT INTO kv (key, value) VALUES (?, ?) "
            "ON CONFLICT(key) DO UPDATE SET value = excluded.value, "
            "updated_at = strftime('%Y-%m-%dT%H:%M:%fZ', 'now')",
            (key, value),
        )
        await self._conn.commit()

    async def delete(self, key: str) -> None:
        await self._conn.execute("DELETE FROM kv WHERE key = ?", (key,))
        await self._conn.commit()

    async def close(self) -> None:
        await self._conn.close()


_db: Optional[KeyValueStore] = None


async def get_db() -> KeyValueStore:
    global _db
    if _db is None:
        _db = await KeyValueStore.open(DB_PATH)
    return _db


async def close_db() -> None:
    global _db
    if _db is not None:
        await _db.close()
        _db = None
