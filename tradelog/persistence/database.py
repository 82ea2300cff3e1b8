"""Async SQLite connection holding the journal key-value table."""

import logging
from pathlib import Path

import aiosqlite

logger = logging.getLogger(__name__)

# One JSON document per journal state key
KV_SCHEMA = """
CREATE TABLE IF NOT EXISTS kv_store (
    key TEXT PRIMARY KEY,
    value TEXT NOT NULL,
    updated_at INTEGER NOT NULL
)
"""


class Database:
    """Opens the journal database and creates ``kv_store`` on first use."""

    def __init__(self, path: Path) -> None:
        self._path = path
        self._connection: aiosqlite.Connection | None = None

    async def connect(self) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._connection = await aiosqlite.connect(self._path)
        self._connection.row_factory = aiosqlite.Row
        await self._connection.execute("PRAGMA journal_mode=WAL")
        await self._connection.execute(KV_SCHEMA)
        await self._connection.commit()
        logger.info("Journal database opened: %s", self._path)

    async def disconnect(self) -> None:
        if self._connection:
            await self._connection.close()
            self._connection = None
            logger.info("Journal database closed")

    async def __aenter__(self) -> "Database":
        await self.connect()
        return self

    async def __aexit__(self, *args) -> None:
        await self.disconnect()

    def _require(self) -> aiosqlite.Connection:
        if self._connection is None:
            raise RuntimeError("Database not connected")
        return self._connection

    async def execute(self, sql: str, parameters: tuple = ()) -> aiosqlite.Cursor:
        return await self._require().execute(sql, parameters)

    async def fetchone(self, sql: str, parameters: tuple = ()) -> aiosqlite.Row | None:
        cursor = await self.execute(sql, parameters)
        return await cursor.fetchone()

    async def commit(self) -> None:
        await self._require().commit()
