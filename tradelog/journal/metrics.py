"""Performance metrics over a ledger snapshot."""

from collections.abc import Iterable
from decimal import Decimal

from tradelog.journal.types import (
    DashboardMetrics,
    EquityPoint,
    PnlPoint,
    StreakInfo,
    Trade,
)

ZERO = Decimal("0")


def closed_in_order(trades: Iterable[Trade]) -> list[Trade]:
    """Closed trades, stably sorted by date ascending."""
    return sorted((t for t in trades if t.is_closed), key=lambda t: t.date)


def calculate_metrics(
    trades: Iterable[Trade], initial_capital: Decimal | float | int = 0
) -> DashboardMetrics:
    """
    Compute dashboard metrics. Only closed trades participate.

    Zero PnL is a loss. Profit factor is reported as 0 when there are no
    losing PnL to divide by, even if there are wins.
    """
    capital = Decimal(str(initial_capital))
    closed = closed_in_order(trades)

    if not closed:
        return DashboardMetrics(
            total_pnl=ZERO,
            win_rate=0.0,
            loss_rate=0.0,
            total_wins=0,
            total_losses=0,
            average_win=ZERO,
            average_loss=ZERO,
            profit_factor=ZERO,
            total_trades=0,
            max_win_streak_trades=0,
            max_loss_streak_trades=0,
            current_streak=StreakInfo(),
            chart_data=[PnlPoint("Start", ZERO)],
            equity_chart_data=[EquityPoint("Start", capital)],
        )

    wins = [t.pnl for t in closed if t.is_win]
    losses = [t.pnl for t in closed if not t.is_win]

    total_trades = len(closed)
    total_win_pnl = sum(wins, ZERO)
    total_loss_pnl = sum(losses, ZERO)

    profit_factor = abs(total_win_pnl / total_loss_pnl) if total_loss_pnl != 0 else ZERO

    chart_data = [PnlPoint("Start", ZERO)]
    equity_chart_data = [EquityPoint("Start", capital)]
    cumulative = ZERO
    for index, trade in enumerate(closed, 1):
        cumulative += trade.pnl
        chart_data.append(PnlPoint(f"Trade {index}", cumulative))
        equity_chart_data.append(EquityPoint(f"Trade {index}", capital + cumulative))

    max_win_streak, max_loss_streak = _max_streaks(closed)

    return DashboardMetrics(
        total_pnl=total_win_pnl + total_loss_pnl,
        win_rate=len(wins) / total_trades * 100,
        loss_rate=len(losses) / total_trades * 100,
        total_wins=len(wins),
        total_losses=len(losses),
        average_win=total_win_pnl / len(wins) if wins else ZERO,
        average_loss=total_loss_pnl / len(losses) if losses else ZERO,
        profit_factor=profit_factor,
        total_trades=total_trades,
        max_win_streak_trades=max_win_streak,
        max_loss_streak_trades=max_loss_streak,
        current_streak=_current_streak(closed),
        chart_data=chart_data,
        equity_chart_data=equity_chart_data,
    )


def calculate_current_losing_streak(trades: Iterable[Trade]) -> int:
    """Count consecutive losing closed trades, newest first."""
    streak = 0
    for trade in reversed(closed_in_order(trades)):
        if not trade.is_loss:
            break
        streak += 1
    return streak


def _max_streaks(closed: list[Trade]) -> tuple[int, int]:
    max_win = max_loss = 0
    win_run = loss_run = 0
    for trade in closed:
        if trade.is_win:
            win_run += 1
            loss_run = 0
        else:
            loss_run += 1
            win_run = 0
        max_win = max(max_win, win_run)
        max_loss = max(max_loss, loss_run)
    return max_win, max_loss


def _current_streak(closed: list[Trade]) -> StreakInfo:
    if not closed:
        return StreakInfo()

    last_is_win = closed[-1].is_win
    count = 0
    for trade in reversed(closed):
        if trade.is_win != last_is_win:
            break
        count += 1
    return StreakInfo(type="win" if last_is_win else "loss", count=count)
