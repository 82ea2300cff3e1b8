"""Tests for TradeLedger ordering and renumbering."""

from dataclasses import replace
from decimal import Decimal

from tests.fixtures import create_trade
from tradelog.journal.ledger import TradeLedger


def assert_sequenced(ledger: TradeLedger) -> None:
    trades = ledger.trades
    assert [t.id for t in trades] == list(range(1, len(trades) + 1))
    assert all(a.date <= b.date for a, b in zip(trades, trades[1:]))


def test_construction_sorts_and_numbers():
    ledger = TradeLedger([create_trade(day=5), create_trade(day=1), create_trade(day=3)])

    assert_sequenced(ledger)
    assert [t.date.day for t in ledger] == [1, 3, 5]


def test_insert_backdated_trade_renumbers():
    """A backdated insert takes the id of its chronological position."""
    print("\n" + "=" * 60)
    print("Test: Backdated insert")
    print("=" * 60)

    ledger = TradeLedger([create_trade(day=d, asset=f"A{d}") for d in (1, 3, 5)])
    stored = ledger.insert_closed(create_trade(day=2, asset="BACKDATED"))

    print(f"Stored as #{stored.id}: {[(t.id, t.asset) for t in ledger]}")

    assert stored.id == 2
    assert stored.asset == "BACKDATED"
    assert [t.asset for t in ledger] == ["A1", "BACKDATED", "A3", "A5"]
    assert_sequenced(ledger)


def test_same_date_keeps_insertion_order():
    ledger = TradeLedger()
    ledger.insert_closed(create_trade(day=1, asset="FIRST"))
    ledger.insert_closed(create_trade(day=1, asset="SECOND"))

    assert [t.asset for t in ledger] == ["FIRST", "SECOND"]


def test_identical_inserts_get_their_own_ids():
    """Repeated identical trades each come back with their own position."""
    ledger = TradeLedger([create_trade(day=5)])
    first = ledger.insert_closed(create_trade(day=1))
    second = ledger.insert_closed(create_trade(day=1))
    third = ledger.insert_open(create_trade(day=1, exit=None))

    assert (first.id, second.id, third.id) == (1, 2, 3)
    assert not third.is_closed
    assert len(ledger) == 4
    assert_sequenced(ledger)


def test_insert_open_drops_exit():
    ledger = TradeLedger()
    stored = ledger.insert_open(create_trade(exit="120"))

    assert not stored.is_closed
    assert stored.pnl is None


def test_insert_closed_without_exit_is_open():
    ledger = TradeLedger()
    stored = ledger.insert_closed(create_trade(exit=None))

    assert not stored.is_closed


def test_insert_many_single_pass():
    ledger = TradeLedger([create_trade(day=10)])
    added = ledger.insert_many([create_trade(day=d) for d in (12, 2, 7)])

    assert added == 3
    assert [t.date.day for t in ledger] == [2, 7, 10, 12]
    assert_sequenced(ledger)


def test_update_changing_date_moves_trade():
    ledger = TradeLedger([create_trade(day=d, asset=f"A{d}") for d in (1, 2, 3)])
    moved = ledger.get(1)
    ledger.update(replace(moved, date=moved.date.replace(day=9)))

    assert [t.asset for t in ledger] == ["A2", "A3", "A1"]
    assert_sequenced(ledger)


def test_update_unknown_id_is_noop():
    ledger = TradeLedger([create_trade(day=1)])
    before = ledger.trades

    assert not ledger.update(create_trade(day=2, trade_id=99))
    assert ledger.trades == before


def test_delete_renumbers():
    ledger = TradeLedger([create_trade(day=d, asset=f"A{d}") for d in (1, 2, 3, 4)])

    assert ledger.delete(2)
    assert [t.asset for t in ledger] == ["A1", "A3", "A4"]
    assert_sequenced(ledger)
    assert not ledger.delete(42)
    assert len(ledger) == 3


def test_next_id():
    assert TradeLedger().next_id() == 1
    assert TradeLedger([create_trade(), create_trade()]).next_id() == 3


def test_apply_analysis_same_trade():
    ledger = TradeLedger([create_trade(day=1), create_trade(day=2)])
    origin = ledger.get(2)

    assert ledger.apply_analysis(origin, "Looks good")
    assert ledger.get(2).analysis == "Looks good"


def test_apply_analysis_after_renumber_is_dropped():
    """The origin trade moved to #3, so #2 now names a different trade."""
    ledger = TradeLedger([create_trade(day=1), create_trade(day=5, entry="200")])
    origin = ledger.get(2)
    ledger.insert_closed(create_trade(day=3, entry="300"))

    assert not ledger.apply_analysis(origin, "stale")
    assert all(t.analysis is None for t in ledger)


def test_apply_analysis_after_delete_is_dropped():
    ledger = TradeLedger([create_trade(day=1)])
    origin = ledger.get(1)
    ledger.delete(1)

    assert not ledger.apply_analysis(origin, "stale")
    assert len(ledger) == 0


def test_trades_returns_copy():
    ledger = TradeLedger([create_trade()])
    snapshot = ledger.trades
    snapshot.clear()

    assert len(ledger) == 1
    assert ledger.get(1).entry_price == Decimal("100")
