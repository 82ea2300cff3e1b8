"""Trade list filtering."""

import logging
import re
from collections.abc import Iterable
from datetime import timedelta

from tradelog.errors import InvalidDateError
from tradelog.ingest.normalize import parse_date
from tradelog.journal.types import FilterState, PnlOutcome, Trade

logger = logging.getLogger(__name__)

_ID_EXPRESSION = re.compile(r"^(\d+)(?:\s*-\s*(\d+))?$")


def parse_id_filter(expression: str, max_id: int | None = None) -> tuple[int, int] | None:
    """
    Parse ``"7"`` or ``"4-19"`` into inclusive id bounds.

    Args:
        expression: Non-blank id filter text
        max_id: Highest id in the ledger; bounds past it are invalid

    Returns:
        (start, end), or None when the expression does not give valid bounds
    """
    match = _ID_EXPRESSION.match(expression.strip())
    if not match:
        return None

    start = int(match.group(1))
    end = int(match.group(2)) if match.group(2) is not None else start

    if start < 1 or start > end:
        return None
    if max_id is not None and end > max_id:
        return None
    return start, end


def apply_filters(trades: Iterable[Trade], state: FilterState) -> list[Trade]:
    """
    Return the trades matching ``state`` without touching the input.

    A non-blank id filter overrides every other field. A broken id filter
    or an unparseable date bound yields an empty result rather than the
    unfiltered list.
    """
    trades = list(trades)

    id_expression = state.trade_id.strip()
    if id_expression:
        max_id = max((t.id or 0 for t in trades), default=0)
        bounds = parse_id_filter(id_expression, max_id=max_id)
        if bounds is None:
            logger.debug("Invalid id filter %r", id_expression)
            return []
        start, end = bounds
        return [t for t in trades if t.id is not None and start <= t.id <= end]

    try:
        start = parse_date(state.start_date) if state.start_date.strip() else None
        end = parse_date(state.end_date) if state.end_date.strip() else None
    except InvalidDateError as e:
        logger.debug("Invalid date filter: %s", e)
        return []

    # Inclusive end of day: 23:59:59.999
    end_of_day = end + timedelta(days=1) - timedelta(milliseconds=1) if end else None
    asset = state.asset.strip().lower()

    def matches(trade: Trade) -> bool:
        if start is not None and trade.date < start:
            return False
        if end_of_day is not None and trade.date > end_of_day:
            return False
        if asset and asset not in trade.asset.lower():
            return False
        if state.pnl_outcome is PnlOutcome.WIN and not trade.is_win:
            return False
        if state.pnl_outcome is PnlOutcome.LOSS and not trade.is_loss:
            return False
        return True

    return [t for t in trades if matches(t)]


def is_filter_active(state: FilterState) -> bool:
    """Check whether any filter field differs from its reset value."""
    return state != FilterState()
