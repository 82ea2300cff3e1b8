"""Trade ledger, metrics and filtering."""

from tradelog.journal.ledger import TradeLedger
from tradelog.journal.types import (
    Audit,
    AuditParameters,
    DashboardMetrics,
    FilterState,
    PnlOutcome,
    StreakInfo,
    Strategy,
    Trade,
    TradeDirection,
    TradeStatus,
)

__all__ = [
    "Audit",
    "AuditParameters",
    "DashboardMetrics",
    "FilterState",
    "PnlOutcome",
    "StreakInfo",
    "Strategy",
    "Trade",
    "TradeDirection",
    "TradeLedger",
    "TradeStatus",
]
