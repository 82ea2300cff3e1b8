"""Conversion between journal objects and their JSON representation."""

import json
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any

from tradelog.backup.schema import (
    AuditRecord,
    StrategyRecord,
    TradeRecord,
    validate_snapshot,
)
from tradelog.errors import InvalidSnapshotError
from tradelog.journal.ledger import TradeLedger
from tradelog.journal.types import Audit, AuditParameters, Strategy, Trade

logger = logging.getLogger(__name__)


@dataclass
class RestoredState:
    """Journal state recovered from a backup snapshot."""

    trades: list[Trade]
    initial_capital: Decimal
    strategies: list[Strategy] = field(default_factory=list)
    active_strategy_id: str | None = None
    timestamp: str = ""


# --- Trades ---


def trade_to_dict(trade: Trade) -> dict[str, Any]:
    """JSON-ready dict of a trade, dates as ISO strings."""
    data: dict[str, Any] = {
        "id": trade.id,
        "date": trade.date.isoformat(),
        "asset": trade.asset,
        "direction": trade.direction.value,
        "entryPrice": _number(trade.entry_price),
        "size": _number(trade.size),
        "journal": trade.journal,
        "status": trade.status.value,
        "leverage": trade.leverage,
    }
    optional = {
        "exitPrice": trade.exit_price,
        "pnl": trade.pnl,
        "stopLoss": trade.stop_loss,
        "takeProfit": trade.take_profit,
    }
    for key, value in optional.items():
        if value is not None:
            data[key] = _number(value)
    if trade.analysis is not None:
        data["analysis"] = trade.analysis
    return data


def trade_from_record(record: TradeRecord) -> Trade:
    """Build a trade from a validated record. Naive dates are taken as UTC."""
    date = record.date
    if date.tzinfo is None:
        date = date.replace(tzinfo=timezone.utc)
    return Trade(
        id=record.id,
        date=date,
        asset=record.asset,
        direction=record.direction,
        entry_price=record.entry_price,
        size=record.size,
        exit_price=record.exit_price,
        leverage=record.leverage or "",
        stop_loss=record.stop_loss,
        take_profit=record.take_profit,
        journal=record.journal,
        analysis=record.analysis,
    )


def trade_from_dict(data: dict[str, Any]) -> Trade:
    """Validate and decode one trade dict."""
    return trade_from_record(TradeRecord.model_validate(data))


# --- Strategies and audits ---


def strategy_to_dict(strategy: Strategy) -> dict[str, Any]:
    return {"id": strategy.id, "name": strategy.name, "content": strategy.content}


def strategy_from_dict(data: dict[str, Any]) -> Strategy:
    record = StrategyRecord.model_validate(data)
    return Strategy(id=record.id, name=record.name, content=record.content)


def audit_to_dict(audit: Audit) -> dict[str, Any]:
    parameters: dict[str, Any] = {
        "type": audit.parameters.type,
        "value": dict(audit.parameters.value),
        "tradeCount": audit.parameters.trade_count,
    }
    if audit.parameters.strategy_name is not None:
        parameters["strategyName"] = audit.parameters.strategy_name
    return {
        "id": audit.id,
        "date": audit.date,
        "parameters": parameters,
        "result": audit.result,
    }


def audit_from_dict(data: dict[str, Any]) -> Audit:
    record = AuditRecord.model_validate(data)
    return Audit(
        id=record.id,
        date=record.date,
        parameters=AuditParameters(
            type=record.parameters.type,
            value=record.parameters.value,
            trade_count=record.parameters.trade_count,
            strategy_name=record.parameters.strategy_name,
        ),
        result=record.result,
    )


# --- Snapshots ---


def serialize(
    trades: list[Trade],
    initial_capital: Decimal | float,
    strategies: list[Strategy],
    active_strategy_id: str | None,
    now: datetime | None = None,
) -> dict[str, Any]:
    """Build a backup snapshot of the full journal state."""
    timestamp = (now or datetime.now(timezone.utc)).isoformat()
    return {
        "trades": [trade_to_dict(t) for t in trades],
        "initialCapital": _number(initial_capital),
        "strategies": [strategy_to_dict(s) for s in strategies],
        "activeStrategyId": active_strategy_id,
        "timestamp": timestamp,
    }


def dumps(snapshot: dict[str, Any]) -> str:
    """Backup file text."""
    return json.dumps(snapshot, ensure_ascii=False, indent=2)


def backup_filename(now: datetime | None = None) -> str:
    day = (now or datetime.now(timezone.utc)).strftime("%Y-%m-%d")
    return f"trading-journal-backup-{day}.json"


def deserialize(data: str | bytes | dict[str, Any]) -> RestoredState:
    """
    Decode and validate a backup snapshot.

    Validation is all-or-nothing: any missing or mistyped field rejects
    the whole snapshot. Restored trades are sorted and renumbered.

    Raises:
        InvalidSnapshotError: If the snapshot does not have the backup shape
    """
    result = validate_snapshot(data)
    if not result.valid:
        logger.warning("Backup rejected: %s", "; ".join(result.errors))
        raise InvalidSnapshotError(
            "Invalid backup file format. Missing required fields.",
            errors=result.errors,
        )

    snapshot = result.snapshot
    ledger = TradeLedger(trade_from_record(r) for r in snapshot.trades)
    return RestoredState(
        trades=ledger.trades,
        initial_capital=Decimal(str(snapshot.initial_capital)),
        strategies=[
            Strategy(id=s.id, name=s.name, content=s.content)
            for s in snapshot.strategies
        ],
        active_strategy_id=snapshot.active_strategy_id,
        timestamp=snapshot.timestamp,
    )


def _number(value: Decimal | float | int) -> float | int:
    """
    JSON number for a money or size value.

    Backups store plain JSON numbers, so non-integral values pass through a
    binary float: up to 15 significant digits survive a round trip exactly,
    anything past 17 is rounded.
    """
    if isinstance(value, Decimal) and value == value.to_integral_value():
        return int(value)
    return float(value)
