"""Tests for dashboard metrics."""

from decimal import Decimal

from tests.fixtures import create_closed_with_pnl, create_trade
from tradelog.journal.metrics import calculate_current_losing_streak, calculate_metrics


def test_all_wins_profit_factor_is_zero():
    """Test two winners on 1000 capital: no losses means profit factor 0."""
    print("\n" + "=" * 60)
    print("Test: All winning trades")
    print("=" * 60)

    trades = [create_closed_with_pnl(1, "10"), create_closed_with_pnl(2, "20")]
    metrics = calculate_metrics(trades, 1000)

    print(f"Total PnL: {metrics.total_pnl}")
    print(f"Win rate: {metrics.win_rate}")
    print(f"Profit factor: {metrics.profit_factor}")
    print(f"Equity: {[p.equity for p in metrics.equity_chart_data]}")

    assert metrics.total_pnl == Decimal("30")
    assert metrics.win_rate == 100
    assert metrics.loss_rate == 0
    assert metrics.profit_factor == 0
    assert metrics.average_win == Decimal("15")
    assert metrics.average_loss == 0
    assert [p.equity for p in metrics.equity_chart_data] == [1000, 1010, 1030]
    assert [p.pnl for p in metrics.chart_data] == [0, 10, 30]
    assert [p.name for p in metrics.chart_data] == ["Start", "Trade 1", "Trade 2"]
    assert metrics.current_streak.type == "win"
    assert metrics.current_streak.count == 2


def test_mixed_outcomes():
    trades = [
        create_closed_with_pnl(1, "30"),
        create_closed_with_pnl(2, "-10"),
        create_closed_with_pnl(3, "20"),
        create_closed_with_pnl(4, "-10"),
    ]
    metrics = calculate_metrics(trades)

    assert metrics.total_pnl == Decimal("30")
    assert metrics.total_trades == 4
    assert metrics.total_wins == 2
    assert metrics.total_losses == 2
    assert metrics.win_rate == 50
    assert metrics.average_win == Decimal("25")
    assert metrics.average_loss == Decimal("-10")
    assert metrics.profit_factor == Decimal("2.5")
    assert metrics.max_win_streak_trades == 1
    assert metrics.max_loss_streak_trades == 1
    assert metrics.current_streak.type == "loss"
    assert metrics.current_streak.count == 1


def test_zero_pnl_counts_as_loss():
    metrics = calculate_metrics([create_closed_with_pnl(1, "0")])

    assert metrics.total_losses == 1
    assert metrics.win_rate == 0
    assert metrics.current_streak.type == "loss"


def test_open_trades_are_ignored():
    trades = [create_closed_with_pnl(1, "10"), create_trade(day=2, exit=None)]
    metrics = calculate_metrics(trades)

    assert metrics.total_trades == 1
    assert len(metrics.chart_data) == 2


def test_metrics_follow_date_order():
    trades = [create_closed_with_pnl(5, "-10"), create_closed_with_pnl(1, "10")]
    metrics = calculate_metrics(trades)

    assert [p.pnl for p in metrics.chart_data] == [0, 10, 0]
    assert metrics.current_streak.type == "loss"


def test_streaks():
    outcomes = ["10", "10", "10", "-1", "-1", "5", "-1", "-1", "-1", "-1"]
    trades = [create_closed_with_pnl(day, pnl) for day, pnl in enumerate(outcomes, 1)]
    metrics = calculate_metrics(trades)

    assert metrics.max_win_streak_trades == 3
    assert metrics.max_loss_streak_trades == 4
    assert metrics.current_streak.count == 4


def test_losing_streak_resets_on_win():
    """Three losses give a streak of 3; a following win resets it."""
    losses = [create_closed_with_pnl(day, "-5") for day in (1, 2, 3)]
    assert calculate_current_losing_streak(losses) == 3

    with_win = losses + [create_closed_with_pnl(4, "10")]
    assert calculate_current_losing_streak(with_win) == 0


def test_losing_streak_skips_open_trades():
    trades = [
        create_closed_with_pnl(1, "-5"),
        create_closed_with_pnl(2, "-5"),
        create_trade(day=3, exit=None),
    ]
    assert calculate_current_losing_streak(trades) == 2


def test_empty_ledger():
    metrics = calculate_metrics([], 500)

    assert metrics.total_pnl == 0
    assert metrics.win_rate == 0
    assert metrics.total_trades == 0
    assert metrics.profit_factor == 0
    assert metrics.current_streak.type == "none"
    assert metrics.current_streak.count == 0
    assert [(p.name, p.pnl) for p in metrics.chart_data] == [("Start", 0)]
    assert [(p.name, p.equity) for p in metrics.equity_chart_data] == [("Start", 500)]


def test_float_capital_is_exact():
    metrics = calculate_metrics([create_closed_with_pnl(1, "0.1")], 0.2)
    assert metrics.equity_chart_data[-1].equity == Decimal("0.3")
