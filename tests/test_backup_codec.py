"""Tests for backup serialization and restore validation."""

import json
from datetime import datetime, timezone
from decimal import Decimal

import pytest

from tests.fixtures import create_trade
from tradelog.backup.codec import (
    audit_from_dict,
    audit_to_dict,
    backup_filename,
    deserialize,
    dumps,
    serialize,
    trade_from_dict,
    trade_to_dict,
)
from tradelog.backup.schema import validate_snapshot
from tradelog.errors import InvalidSnapshotError
from tradelog.journal.ledger import TradeLedger
from tradelog.journal.types import Audit, AuditParameters, Strategy, TradeDirection

NOW = datetime(2024, 3, 1, 12, 0, tzinfo=timezone.utc)


def create_snapshot() -> dict:
    ledger = TradeLedger(
        [
            create_trade(day=2, asset="ETH/USDT", entry="2500", exit="2450", size="2",
                         direction=TradeDirection.SHORT, journal="fade"),
            create_trade(day=1, asset="BTC/USDT", entry="42000.5", exit=None, size="0.5"),
        ]
    )
    strategies = [Strategy(id="s1", name="Pullback", content="Buy the dip")]
    return serialize(ledger.trades, Decimal("1500"), strategies, "s1", now=NOW)


def test_trade_to_dict_shape():
    trade = create_trade(day=3, entry="100", exit="110.5", size="2", trade_id=4)
    data = trade_to_dict(trade)

    assert data["id"] == 4
    assert data["date"] == "2024-01-03T00:00:00+00:00"
    assert data["direction"] == "LONG"
    assert data["entryPrice"] == 100
    assert data["exitPrice"] == 110.5
    assert data["pnl"] == 21
    assert data["status"] == "closed"
    assert "stopLoss" not in data
    assert "analysis" not in data


def test_trade_dict_ignores_stored_status_and_pnl():
    data = trade_to_dict(create_trade(exit=None))
    data["status"] = "closed"
    data["pnl"] = 999

    trade = trade_from_dict(data)

    assert not trade.is_closed
    assert trade.pnl is None


def test_naive_dates_are_utc():
    data = trade_to_dict(create_trade())
    data["date"] = "2024-01-01T00:00:00"

    assert trade_from_dict(data).date.tzinfo is not None


def test_serialize_snapshot():
    snapshot = create_snapshot()

    assert snapshot["initialCapital"] == 1500
    assert snapshot["activeStrategyId"] == "s1"
    assert snapshot["timestamp"] == NOW.isoformat()
    assert [t["id"] for t in snapshot["trades"]] == [1, 2]
    assert snapshot["strategies"] == [{"id": "s1", "name": "Pullback", "content": "Buy the dip"}]


def test_restore_from_backup_text():
    """Test that dumped backup text restores the same journal."""
    print("\n" + "=" * 60)
    print("Test: Backup and restore")
    print("=" * 60)

    text = dumps(create_snapshot())
    state = deserialize(text)

    print(f"Restored {len(state.trades)} trades, capital {state.initial_capital}")

    assert state.initial_capital == Decimal("1500")
    assert state.active_strategy_id == "s1"
    assert state.strategies[0].name == "Pullback"
    assert state.timestamp == NOW.isoformat()

    btc, eth = state.trades
    assert (btc.id, btc.asset, btc.is_closed) == (1, "BTC/USDT", False)
    assert btc.entry_price == Decimal("42000.5")
    assert (eth.id, eth.direction, eth.pnl) == (2, TradeDirection.SHORT, Decimal("100"))
    assert eth.journal == "fade"


def test_restore_keeps_fifteen_significant_digits():
    trade = create_trade(entry="43125.1234567891", size="0.123456789012345", exit="43200.987654321")
    text = dumps(serialize([trade], Decimal("1234.56789012345"), [], None, now=NOW))

    state = deserialize(text)

    restored = state.trades[0]
    assert restored.entry_price == Decimal("43125.1234567891")
    assert restored.size == Decimal("0.123456789012345")
    assert restored.exit_price == Decimal("43200.987654321")
    assert state.initial_capital == Decimal("1234.56789012345")


def test_restore_renumbers_out_of_order_trades():
    snapshot = create_snapshot()
    snapshot["trades"].reverse()
    for trade in snapshot["trades"]:
        trade["id"] = 77

    state = deserialize(snapshot)

    assert [t.id for t in state.trades] == [1, 2]
    assert [t.asset for t in state.trades] == ["BTC/USDT", "ETH/USDT"]


@pytest.mark.parametrize("missing", ["trades", "initialCapital", "strategies", "timestamp"])
def test_restore_rejects_missing_fields(missing):
    snapshot = create_snapshot()
    del snapshot[missing]

    with pytest.raises(InvalidSnapshotError) as exc_info:
        deserialize(snapshot)

    assert any(missing in error for error in exc_info.value.errors)


def test_restore_rejects_wrong_types():
    snapshot = create_snapshot()
    snapshot["initialCapital"] = "1500"

    result = validate_snapshot(snapshot)

    assert not result.valid
    assert result.snapshot is None
    assert result.errors


def test_restore_rejects_bad_trade():
    snapshot = create_snapshot()
    snapshot["trades"][0]["direction"] = "SIDEWAYS"

    with pytest.raises(InvalidSnapshotError):
        deserialize(snapshot)


@pytest.mark.parametrize("data", ["not json", "[1, 2]", b"{}"])
def test_restore_rejects_non_objects(data):
    assert not validate_snapshot(data).valid


def test_active_strategy_id_is_optional():
    snapshot = create_snapshot()
    del snapshot["activeStrategyId"]

    assert deserialize(json.dumps(snapshot)).active_strategy_id is None


def test_audit_dict_round_trip():
    audit = Audit(
        id="2024-03-01T12:00:00+00:00",
        date="2024-03-01T12:00:00+00:00",
        parameters=AuditParameters(type="lastN", value={"n": 5}, trade_count=5, strategy_name="Default"),
        result="## Report",
    )

    data = audit_to_dict(audit)
    assert data["parameters"]["tradeCount"] == 5
    assert audit_from_dict(data) == audit
    assert audit.title == "Analysis of Last 5 Trades"


def test_backup_filename():
    assert backup_filename(NOW) == "trading-journal-backup-2024-03-01.json"
