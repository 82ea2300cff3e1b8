"""Data structures for the trade journal."""

from dataclasses import dataclass, field, replace
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Literal


class TradeDirection(Enum):
    """Position direction."""

    LONG = "LONG"
    SHORT = "SHORT"


class TradeStatus(Enum):
    """Trade lifecycle state, derived from the exit price."""

    OPEN = "open"
    CLOSED = "closed"


class PnlOutcome(Enum):
    """Outcome filter for closed trades."""

    ALL = "all"
    WIN = "win"
    LOSS = "loss"


@dataclass(frozen=True)
class Trade:
    """A single journal trade.

    ``status`` and ``pnl`` are derived from ``exit_price`` and never stored,
    so a trade is closed exactly when it has a pnl. An exit price that is not
    positive is treated as absent.

    ``id`` is a positional label assigned by the ledger (1..N in date order);
    candidates produced by parsers carry ``None``.
    """

    date: datetime
    asset: str
    direction: TradeDirection
    entry_price: Decimal
    size: Decimal
    exit_price: Decimal | None = None
    leverage: str = ""
    stop_loss: Decimal | None = None
    take_profit: Decimal | None = None
    journal: str = ""
    analysis: str | None = None
    id: int | None = None

    def __post_init__(self) -> None:
        if self.exit_price is not None and self.exit_price <= 0:
            object.__setattr__(self, "exit_price", None)

    @property
    def status(self) -> TradeStatus:
        if self.exit_price is not None:
            return TradeStatus.CLOSED
        return TradeStatus.OPEN

    @property
    def is_closed(self) -> bool:
        return self.status is TradeStatus.CLOSED

    @property
    def pnl(self) -> Decimal | None:
        """Realized PnL in quote currency, None while the trade is open."""
        if self.exit_price is None:
            return None
        if self.direction is TradeDirection.LONG:
            return (self.exit_price - self.entry_price) * self.size
        return (self.entry_price - self.exit_price) * self.size

    @property
    def is_win(self) -> bool:
        """Closed with positive PnL. Zero PnL counts as a loss."""
        pnl = self.pnl
        return pnl is not None and pnl > 0

    @property
    def is_loss(self) -> bool:
        pnl = self.pnl
        return pnl is not None and pnl <= 0

    @property
    def day(self) -> date:
        return self.date.date()

    def with_id(self, trade_id: int) -> "Trade":
        return replace(self, id=trade_id)

    def reopened(self) -> "Trade":
        """Copy with the exit price cleared (back to open, no pnl)."""
        return replace(self, exit_price=None)

    def same_origin(self, other: "Trade") -> bool:
        """Check whether two snapshots describe the same ledger entry."""
        return (
            self.id == other.id
            and self.date == other.date
            and self.asset == other.asset
            and self.direction is other.direction
            and self.entry_price == other.entry_price
        )


@dataclass(frozen=True)
class Strategy:
    """A named free-text trading plan."""

    id: str
    name: str
    content: str


AuditSelectionType = Literal["lastN", "dateRange", "idRange"]


@dataclass(frozen=True)
class AuditParameters:
    """How the trades of an audit were selected.

    Kept for display only, replaying an audit never re-selects trades.
    """

    type: AuditSelectionType
    value: dict[str, Any]
    trade_count: int
    strategy_name: str | None = None


@dataclass(frozen=True)
class Audit:
    """Immutable record of one AI audit run."""

    id: str
    date: str
    parameters: AuditParameters
    result: str

    @property
    def title(self) -> str:
        value = self.parameters.value
        if self.parameters.type == "lastN":
            return f"Analysis of Last {value.get('n')} Trades"
        if self.parameters.type == "dateRange":
            return f"Analysis from {value.get('startDate')} to {value.get('endDate')}"
        if self.parameters.type == "idRange":
            return f"Analysis of Trades #{value.get('startId')} to #{value.get('endId')}"
        return "Audit Report"


@dataclass(frozen=True)
class FilterState:
    """Declarative trade list query. Blank fields are inactive."""

    start_date: str = ""
    end_date: str = ""
    asset: str = ""
    pnl_outcome: PnlOutcome = PnlOutcome.ALL
    trade_id: str = ""


@dataclass(frozen=True)
class PnlPoint:
    """Cumulative PnL chart point."""

    name: str
    pnl: Decimal


@dataclass(frozen=True)
class EquityPoint:
    """Equity curve chart point."""

    name: str
    equity: Decimal


@dataclass(frozen=True)
class StreakInfo:
    """Current run of same-outcome closed trades."""

    type: Literal["win", "loss", "none"] = "none"
    count: int = 0


@dataclass
class DashboardMetrics:
    """Summary statistics over the closed trades of a ledger snapshot."""

    total_pnl: Decimal
    win_rate: float
    loss_rate: float
    total_wins: int
    total_losses: int
    average_win: Decimal
    average_loss: Decimal
    profit_factor: Decimal
    total_trades: int
    max_win_streak_trades: int
    max_loss_streak_trades: int
    current_streak: StreakInfo = field(default_factory=StreakInfo)
    chart_data: list[PnlPoint] = field(default_factory=list)
    equity_chart_data: list[EquityPoint] = field(default_factory=list)
