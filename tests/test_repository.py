"""Tests for the SQLite key/value repository."""

import json

import pytest

from tests.fixtures import create_trade
from tradelog.journal.store import INITIAL_CAPITAL_KEY, TRADES_KEY, JournalStore
from tradelog.persistence import Database, Repository


@pytest.mark.asyncio
async def test_save_load_and_delete(tmp_path):
    async with Database(tmp_path / "journal.db") as db:
        repo = Repository(db)

        assert await repo.load("missing") is None

        await repo.save("strategies", [{"id": "s1", "name": "Señal", "content": ""}])
        assert await repo.load("strategies") == [{"id": "s1", "name": "Señal", "content": ""}]

        await repo.save("strategies", [])
        assert await repo.load("strategies") == []

        await repo.save("strategies", None)
        assert await repo.load("strategies") is None


@pytest.mark.asyncio
async def test_corrupt_value_raises_value_error(tmp_path):
    async with Database(tmp_path / "journal.db") as db:
        await db.execute(
            "INSERT INTO kv_store (key, value, updated_at) VALUES (?, ?, ?)",
            ("trades", "{broken", 0),
        )
        await db.commit()

        with pytest.raises(ValueError):
            await Repository(db).load("trades")


@pytest.mark.asyncio
async def test_journal_survives_reconnect(tmp_path):
    """Test a store persisted to SQLite and loaded from a new connection."""
    print("\n" + "=" * 60)
    print("Test: Journal persistence across connections")
    print("=" * 60)

    path = tmp_path / "nested" / "journal.db"

    async with Database(path) as db:
        store = JournalStore(Repository(db))
        await store.load()
        await store.set_initial_capital(1000)
        await store.import_trades([create_trade(day=d) for d in (2, 1)])
        written = store.trades

    async with Database(path) as db:
        row = await db.fetchone("SELECT value FROM kv_store WHERE key = ?", (TRADES_KEY,))
        print(f"Stored trades document: {row['value'][:80]}...")
        assert len(json.loads(row["value"])) == 2

        reloaded = JournalStore(Repository(db))
        await reloaded.load()

        assert reloaded.trades == written
        assert await Repository(db).load(INITIAL_CAPITAL_KEY) == 1000.0
