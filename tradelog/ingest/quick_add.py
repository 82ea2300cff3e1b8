"""Quick-add grammar: one pasted comma-separated trade line.

Field order::

    date, asset, direction, leverage, entry, exit, stop loss, take profit, size[, journal...]
"""

import logging
import re
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal

from tradelog.errors import InvalidDateError, InvalidNumberError
from tradelog.ingest.normalize import parse_date, parse_direction, parse_optional_number
from tradelog.journal.forms import TradeForm
from tradelog.journal.types import TradeDirection

logger = logging.getLogger(__name__)

MIN_FIELDS = 8
STRUCTURED_FIELDS = 9

# Thousands-grouping comma: preceded by a digit, followed by exactly 3 digits
_GROUPING_COMMA = re.compile(r"(?<=\d),(?=\d{3}(?!\d))")


@dataclass
class QuickAddEntry:
    """Values recovered from a quick-add line. Numbers may be missing."""

    date: datetime
    asset: str
    direction: TradeDirection
    leverage: str
    entry_price: Decimal | None
    exit_price: Decimal | None
    stop_loss: Decimal | None
    take_profit: Decimal | None
    size: Decimal | None
    journal: str

    @property
    def has_exit(self) -> bool:
        return self.exit_price is not None and self.exit_price > 0

    def to_form(self) -> TradeForm:
        """Prefill a manual entry form for review."""
        return TradeForm(
            date=self.date.strftime("%Y-%m-%d"),
            asset=self.asset,
            direction=self.direction,
            leverage=self.leverage,
            entry_price=_form_value(self.entry_price),
            exit_price=_form_value(self.exit_price if self.has_exit else None),
            size=_form_value(self.size),
            stop_loss=_form_value(self.stop_loss),
            take_profit=_form_value(self.take_profit),
            journal=self.journal,
        )


def parse_quick_add(text: str) -> QuickAddEntry | None:
    """
    Parse a pasted quick-add line.

    Returns None when the line has fewer than 8 fields or an unusable date;
    no partial result is produced. Individual numeric fields that do not
    parse are left empty.
    """
    sanitized = _GROUPING_COMMA.sub("", text or "")
    parts = sanitized.split(",")
    if len(parts) < MIN_FIELDS:
        return None

    structured = [p.strip() for p in parts[:STRUCTURED_FIELDS]]
    structured += [""] * (STRUCTURED_FIELDS - len(structured))
    journal = ",".join(parts[STRUCTURED_FIELDS:]).strip()

    (
        date_str,
        asset,
        direction_str,
        leverage,
        entry_str,
        exit_str,
        stop_loss_str,
        take_profit_str,
        size_str,
    ) = structured

    try:
        date = parse_date(date_str)
    except InvalidDateError as e:
        logger.debug("Quick-add abandoned: %s", e)
        return None

    return QuickAddEntry(
        date=date,
        asset=asset,
        direction=parse_direction(direction_str, localized=False),
        leverage=leverage,
        entry_price=_lenient_number(entry_str),
        exit_price=_lenient_number(exit_str),
        stop_loss=_lenient_number(stop_loss_str),
        take_profit=_lenient_number(take_profit_str),
        size=_lenient_number(size_str),
        journal=journal,
    )


def _lenient_number(raw: str) -> Decimal | None:
    try:
        return parse_optional_number(raw.replace("$", ""))
    except InvalidNumberError:
        return None


def _form_value(value: Decimal | None) -> str:
    return "" if value is None else str(value)
