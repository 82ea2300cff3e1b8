"""SQLite-backed journal state storage."""

import json
import logging
import time

from tradelog.persistence.base import BaseStorage, JsonValue
from tradelog.persistence.database import Database

logger = logging.getLogger(__name__)


class Repository(BaseStorage):
    """Stores each journal state key as a JSON document in ``kv_store``."""

    def __init__(self, db: Database) -> None:
        self._db = db

    async def load(self, key: str) -> JsonValue | None:
        """Load and decode a stored document."""
        row = await self._db.fetchone(
            "SELECT value FROM kv_store WHERE key = ?",
            (key,),
        )
        if row is None:
            return None
        return json.loads(row["value"])

    async def save(self, key: str, value: JsonValue | None) -> None:
        """Save or delete a document."""
        if value is None:
            await self._db.execute("DELETE FROM kv_store WHERE key = ?", (key,))
        else:
            await self._db.execute(
                """
                INSERT OR REPLACE INTO kv_store (key, value, updated_at)
                VALUES (?, ?, ?)
                """,
                (key, json.dumps(value, ensure_ascii=False), int(time.time())),
            )
        await self._db.commit()
        logger.debug("Saved key %s", key)
