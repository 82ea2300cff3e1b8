"""Tests for trade list filtering."""

from dataclasses import replace

import pytest

from tests.fixtures import create_closed_with_pnl, create_trade
from tradelog.journal.filters import apply_filters, is_filter_active, parse_id_filter
from tradelog.journal.ledger import TradeLedger
from tradelog.journal.types import FilterState, PnlOutcome


def create_ledger(count: int = 10) -> TradeLedger:
    assets = ["BTC/USDT", "ETH/USDT"]
    pnls = ["10", "-5"]
    return TradeLedger(
        create_closed_with_pnl(day, pnls[day % 2], asset=assets[day % 2])
        for day in range(1, count + 1)
    )


@pytest.mark.parametrize(
    "expression, expected",
    [("7", (7, 7)), ("4-9", (4, 9)), (" 2 - 3 ", (2, 3)), ("4-19", None), ("9-4", None),
     ("0", None), ("abc", None), ("1-", None), ("11", None)],
)
def test_parse_id_filter(expression, expected):
    assert parse_id_filter(expression, max_id=10) == expected


def test_id_filter_overrides_other_fields():
    ledger = create_ledger()
    state = FilterState(trade_id="3-5", asset="does-not-match", pnl_outcome=PnlOutcome.WIN)

    assert [t.id for t in apply_filters(ledger, state)] == [3, 4, 5]


@pytest.mark.parametrize("expression", ["4-19", "abc", "5-2"])
def test_invalid_id_filter_yields_empty(expression):
    """A broken id filter never falls back to the unfiltered list."""
    assert apply_filters(create_ledger(), FilterState(trade_id=expression)) == []


def test_date_range_is_inclusive():
    ledger = create_ledger()
    state = FilterState(start_date="2024-01-03", end_date="2024-01-05")

    assert [t.date.day for t in apply_filters(ledger, state)] == [3, 4, 5]


def test_end_date_covers_whole_day():
    trade = create_trade(day=5)
    late = replace(trade, date=trade.date.replace(hour=23, minute=59))

    assert apply_filters([late], FilterState(end_date="05/01/2024")) == [late]


def test_invalid_date_yields_empty():
    assert apply_filters(create_ledger(), FilterState(start_date="not a date")) == []


def test_asset_substring_case_insensitive():
    result = apply_filters(create_ledger(), FilterState(asset="eth"))

    assert result
    assert all(t.asset == "ETH/USDT" for t in result)


def test_outcome_filters():
    ledger = TradeLedger(
        [
            create_closed_with_pnl(1, "10"),
            create_closed_with_pnl(2, "0"),
            create_closed_with_pnl(3, "-4"),
            create_trade(day=4, exit=None),
        ]
    )

    wins = apply_filters(ledger, FilterState(pnl_outcome=PnlOutcome.WIN))
    losses = apply_filters(ledger, FilterState(pnl_outcome=PnlOutcome.LOSS))
    everything = apply_filters(ledger, FilterState())

    assert [t.id for t in wins] == [1]
    assert [t.id for t in losses] == [2, 3]
    assert len(everything) == 4


def test_filters_are_idempotent():
    ledger = create_ledger()
    state = FilterState(start_date="2024-01-02", asset="btc", pnl_outcome=PnlOutcome.WIN)

    once = apply_filters(ledger, state)
    twice = apply_filters(once, state)

    assert once == twice


def test_filtering_does_not_mutate_ledger():
    ledger = create_ledger()
    before = ledger.trades
    apply_filters(ledger, FilterState(asset="btc"))

    assert ledger.trades == before


def test_is_filter_active():
    assert not is_filter_active(FilterState())
    assert is_filter_active(FilterState(asset="btc"))
    assert is_filter_active(FilterState(pnl_outcome=PnlOutcome.LOSS))
