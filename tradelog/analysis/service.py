"""Applies AI collaborator results to the journal."""

import logging
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any

from pydantic import ValidationError

from tradelog.analysis.base import (
    BaseAnalyst,
    OrderType,
    TradeSuggestion,
    parse_suggestion_text,
)
from tradelog.config import AuditConfig
from tradelog.errors import (
    AuditSelectionError,
    ExternalServiceError,
    InvalidDateError,
    InvalidNumberError,
    TradeValidationError,
)
from tradelog.ingest.normalize import parse_date, parse_number
from tradelog.journal.store import JournalStore
from tradelog.journal.types import (
    Audit,
    AuditParameters,
    AuditSelectionType,
    Trade,
    TradeDirection,
)

logger = logging.getLogger(__name__)

DEFAULT_STRATEGY_NAME = "Default"
NO_SETUP_PREFIX = "No trade setup found aligned with the strategy. Reason: "


class AnalysisService:
    """
    Runs trade analyses, audits and live suggestions.

    Every collaborator call happens outside the journal; results are applied
    afterwards as ordinary store updates. Collaborator failures are wrapped in
    ExternalServiceError and leave the journal untouched.
    """

    def __init__(
        self,
        store: JournalStore,
        analyst: BaseAnalyst,
        config: AuditConfig | None = None,
    ) -> None:
        self._store = store
        self._analyst = analyst
        self._config = config or AuditConfig()

    # --- Single trade analysis ---

    async def analyze_trade(self, trade_id: int) -> str:
        """
        Analyze one trade and cache the result on it.

        If the trade is deleted or renumbered while the call is in flight the
        result is discarded.

        Raises:
            KeyError: If no trade has that id
            ExternalServiceError: If the collaborator fails
        """
        trade = self._store.ledger.get(trade_id)
        if trade is None:
            raise KeyError(f"Trade #{trade_id} not found")

        try:
            analysis = await self._analyst.analyze(trade)
        except Exception as e:
            logger.error("Analysis of trade #%d failed: %s", trade_id, e)
            raise ExternalServiceError(
                "Failed to get a response from AI. Please try again."
            ) from e

        if not await self._store.apply_analysis(trade, analysis):
            logger.info("Discarded analysis for trade #%d, trade changed", trade_id)
        return analysis

    # --- Audits ---

    def select_trades(
        self,
        selection: AuditSelectionType,
        value: dict[str, Any],
    ) -> list[Trade]:
        """
        Resolve an audit selection to trades in ledger order.

        Raises:
            AuditSelectionError: If the selection is malformed, empty or too large
        """
        trades = self._store.trades

        if selection == "lastN":
            n = _selection_int(value.get("n", self._config.default_last_n), "Number of trades")
            if n < 1:
                raise AuditSelectionError("Number of trades must be at least 1.")
            selected = trades[-n:]
        elif selection == "dateRange":
            start_raw, end_raw = value.get("startDate"), value.get("endDate")
            if not start_raw or not end_raw:
                raise AuditSelectionError("Please select both a start and end date.")
            try:
                start = parse_date(start_raw).date()
                end = parse_date(end_raw).date()
            except InvalidDateError as e:
                raise AuditSelectionError(str(e)) from e
            selected = [t for t in trades if start <= t.day <= end]
        elif selection == "idRange":
            if value.get("startId") is None or value.get("endId") is None:
                raise AuditSelectionError("Please provide both a start and end ID.")
            start_id = _selection_int(value["startId"], "Start ID")
            end_id = _selection_int(value["endId"], "End ID")
            if start_id > end_id:
                raise AuditSelectionError("Start ID cannot be greater than End ID.")
            selected = [t for t in trades if start_id <= t.id <= end_id]
        else:
            raise AuditSelectionError(f"Unknown selection type '{selection}'")

        if not selected:
            raise AuditSelectionError(
                "No trades found for the selected criteria. Please adjust your selection."
            )
        if len(selected) > self._config.max_trades:
            raise AuditSelectionError(
                f"Audit is limited to a maximum of {self._config.max_trades} trades at a time."
            )
        return selected

    async def run_audit(
        self,
        selection: AuditSelectionType,
        value: dict[str, Any],
        now: datetime | None = None,
    ) -> Audit:
        """
        Audit a selection of trades against the active strategy and record it.

        Raises:
            AuditSelectionError: Before any collaborator call
            ExternalServiceError: If the collaborator fails
        """
        trades = self.select_trades(selection, value)
        strategy = self._store.active_strategy

        try:
            result = await self._analyst.audit(trades, strategy)
        except Exception as e:
            logger.error("Audit of %d trades failed: %s", len(trades), e)
            raise ExternalServiceError(
                "Failed to get a response from AI. Please try again."
            ) from e

        stamp = (now or datetime.now(timezone.utc)).isoformat()
        audit = Audit(
            id=stamp,
            date=stamp,
            parameters=AuditParameters(
                type=selection,
                value=dict(value),
                trade_count=len(trades),
                strategy_name=strategy.name if strategy else DEFAULT_STRATEGY_NAME,
            ),
            result=result,
        )
        await self._store.record_audit(audit)
        logger.info("Recorded audit '%s' over %d trades", audit.title, len(trades))
        return audit

    # --- Live suggestions ---

    async def get_suggestion(
        self,
        asset: str,
        image_5m: bytes,
        image_15m: bytes,
        image_1h: bytes,
        strategy_text: str | None = None,
    ) -> TradeSuggestion:
        """
        Ask for a trade suggestion on three chart timeframes.

        Uses the active strategy when ``strategy_text`` is not given. When no
        setup was found the rationale is prefixed to say so.

        Raises:
            ValueError: If asset, strategy or a chart is missing
            ExternalServiceError: If the collaborator fails or answers malformed
        """
        if strategy_text is None:
            active = self._store.active_strategy
            strategy_text = active.content if active else ""
        if not asset.strip():
            raise ValueError("Asset is required")
        if not strategy_text.strip():
            raise ValueError("A strategy is required")
        if not (image_5m and image_15m and image_1h):
            raise ValueError("Charts for 5M, 15M and 1H are required")

        try:
            raw = await self._analyst.suggest(
                asset.strip(), strategy_text, image_5m, image_15m, image_1h
            )
        except Exception as e:
            logger.error("Suggestion for %s failed: %s", asset, e)
            raise ExternalServiceError(
                "Failed to get a response from AI. Please try again."
            ) from e

        try:
            data = parse_suggestion_text(raw) if isinstance(raw, str) else raw
            suggestion = TradeSuggestion.model_validate(data)
        except (ValueError, ValidationError) as e:
            logger.error("Invalid suggestion payload for %s: %s", asset, e)
            raise ExternalServiceError("AI returned an invalid response format.") from e

        if not suggestion.has_setup:
            suggestion = suggestion.model_copy(
                update={"rationale": NO_SETUP_PREFIX + suggestion.rationale}
            )
        return suggestion

    async def accept_suggestion(
        self,
        suggestion: TradeSuggestion,
        asset: str,
        size: str,
        leverage: str,
        actual_entry: str | None = None,
        now: datetime | None = None,
    ) -> Trade:
        """
        Open a trade from a suggestion at the actual fill price.

        Raises:
            TradeValidationError: If size, leverage or entry are invalid
        """
        trade = build_suggested_trade(suggestion, asset, size, leverage, actual_entry, now)
        return await self._store.add_trade(trade)


def initial_entry(suggestion: TradeSuggestion) -> str:
    """Prefilled entry price: the LIMIT entry or the middle of the MARKET range."""
    if suggestion.order_type == OrderType.LIMIT:
        return str(suggestion.entry)
    if suggestion.min_entry and suggestion.max_entry:
        return str((suggestion.min_entry + suggestion.max_entry) / 2)
    return ""


def shifted_levels(suggestion: TradeSuggestion, entry: Decimal) -> tuple[Decimal, Decimal]:
    """Stop loss and take profit moved to keep their distance from ``entry``."""
    origin = suggestion.suggested_entry
    if origin is None:
        return suggestion.stop_loss, suggestion.take_profit

    if suggestion.direction == TradeDirection.LONG:
        return (
            entry - (origin - suggestion.stop_loss),
            entry + (suggestion.take_profit - origin),
        )
    return (
        entry + (suggestion.stop_loss - origin),
        entry - (origin - suggestion.take_profit),
    )


def build_suggested_trade(
    suggestion: TradeSuggestion,
    asset: str,
    size: str,
    leverage: str,
    actual_entry: str | None = None,
    now: datetime | None = None,
) -> Trade:
    """
    Raises:
        TradeValidationError: If size, leverage or entry are invalid
    """
    if actual_entry is None:
        actual_entry = initial_entry(suggestion)

    errors: dict[str, str] = {}
    size_value = _positive(size)
    if size_value is None:
        errors["size"] = "Size must be a positive number."
    if not leverage.strip():
        errors["leverage"] = "Leverage is required."
    entry = _positive(actual_entry)
    if entry is None:
        errors["actual_entry"] = "Entry Price must be a positive number."
    if errors:
        raise TradeValidationError(errors)

    stop_loss, take_profit = shifted_levels(suggestion, entry)
    return Trade(
        date=now or datetime.now(timezone.utc),
        asset=asset.strip(),
        direction=suggestion.direction,
        entry_price=entry,
        size=size_value,
        leverage=leverage.strip(),
        stop_loss=stop_loss if stop_loss > 0 else None,
        take_profit=take_profit if take_profit > 0 else None,
        journal=(
            f"Trade opened based on AI Suggestion ({suggestion.order_type.value} order)."
            f"\n\nRationale:\n{suggestion.rationale}"
        ),
    )


def _selection_int(raw: Any, label: str) -> int:
    try:
        return int(raw)
    except (TypeError, ValueError):
        raise AuditSelectionError(f"{label} must be a whole number.") from None


def _positive(raw: str) -> Decimal | None:
    try:
        value = parse_number(raw)
    except InvalidNumberError:
        return None
    return value if value > 0 else None
