"""Shape validation for persisted and backed-up journal data."""

import json
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from tradelog.journal.types import TradeDirection


class TradeRecord(BaseModel):
    """Serialized trade. ``status`` and ``pnl`` are derived and ignored on input."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: int | None = None
    date: datetime
    asset: str
    direction: TradeDirection
    entry_price: Decimal = Field(alias="entryPrice")
    size: Decimal
    exit_price: Decimal | None = Field(default=None, alias="exitPrice")
    leverage: str | None = None
    stop_loss: Decimal | None = Field(default=None, alias="stopLoss")
    take_profit: Decimal | None = Field(default=None, alias="takeProfit")
    journal: str = ""
    analysis: str | None = None


class StrategyRecord(BaseModel):
    """Serialized strategy."""

    model_config = ConfigDict(extra="ignore")

    id: str
    name: str
    content: str = ""


class AuditParametersRecord(BaseModel):
    """Serialized audit selection parameters."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    type: Literal["lastN", "dateRange", "idRange"]
    value: dict[str, Any] = Field(default_factory=dict)
    trade_count: int = Field(alias="tradeCount")
    strategy_name: str | None = Field(default=None, alias="strategyName")


class AuditRecord(BaseModel):
    """Serialized audit."""

    model_config = ConfigDict(extra="ignore")

    id: str
    date: str
    parameters: AuditParametersRecord
    result: str


class BackupSnapshot(BaseModel):
    """Portable backup file contents."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    trades: list[TradeRecord]
    initial_capital: float = Field(alias="initialCapital", strict=True)
    strategies: list[StrategyRecord]
    active_strategy_id: str | None = Field(default=None, alias="activeStrategyId")
    timestamp: str = Field(strict=True)


@dataclass
class SnapshotValidation:
    """Structured result of validating a backup snapshot."""

    valid: bool
    snapshot: BackupSnapshot | None = None
    errors: list[str] = field(default_factory=list)

    @classmethod
    def accept(cls, snapshot: BackupSnapshot) -> "SnapshotValidation":
        return cls(valid=True, snapshot=snapshot)

    @classmethod
    def reject(cls, errors: list[str]) -> "SnapshotValidation":
        return cls(valid=False, errors=errors)


def validate_snapshot(data: str | bytes | dict) -> SnapshotValidation:
    """
    Validate backup data without raising.

    Args:
        data: Decoded JSON object, or the raw JSON text of a backup file
    """
    if isinstance(data, (str, bytes)):
        try:
            data = json.loads(data)
        except ValueError as e:
            return SnapshotValidation.reject([f"Not valid JSON: {e}"])

    if not isinstance(data, dict):
        return SnapshotValidation.reject(["Backup must be a JSON object"])

    try:
        snapshot = BackupSnapshot.model_validate(data)
    except ValidationError as e:
        return SnapshotValidation.reject(format_errors(e))
    return SnapshotValidation.accept(snapshot)


def format_errors(error: ValidationError) -> list[str]:
    """Flatten pydantic errors into ``path: message`` strings."""
    messages = []
    for item in error.errors():
        location = ".".join(str(part) for part in item["loc"]) or "<root>"
        messages.append(f"{location}: {item['msg']}")
    return messages
