"""Journal state owner with injected persistence."""

import logging
import re
from collections.abc import Iterable
from dataclasses import dataclass
from decimal import Decimal
from typing import Literal

from pydantic import ValidationError

from tradelog.backup.codec import (
    RestoredState,
    audit_from_dict,
    audit_to_dict,
    deserialize,
    serialize,
    strategy_from_dict,
    strategy_to_dict,
    trade_from_dict,
    trade_to_dict,
)
from tradelog.config import AuditConfig
from tradelog.journal.filters import apply_filters
from tradelog.journal.ledger import TradeLedger
from tradelog.journal.metrics import calculate_current_losing_streak, calculate_metrics
from tradelog.journal.types import Audit, DashboardMetrics, FilterState, Strategy, Trade
from tradelog.monitor.logger import get_trade_logger
from tradelog.persistence.base import BaseStorage

logger = logging.getLogger(__name__)
trade_logger = get_trade_logger()

TRADES_KEY = "trades"
INITIAL_CAPITAL_KEY = "initial_capital"
AUDITS_KEY = "audits"
STRATEGIES_KEY = "strategies"
ACTIVE_STRATEGY_KEY = "active_strategy_id"
DISMISSED_STREAK_KEY = "dismissed_streak_audit_until"

_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")


@dataclass(frozen=True)
class AuditNudge:
    """Suggestion to run an AI audit after new trades were logged."""

    kind: Literal["streak", "milestone"]
    trade_count: int
    losing_streak: int = 0

    @property
    def message(self) -> str:
        if self.kind == "streak":
            return (
                f"You've had {self.losing_streak} consecutive losing trades. "
                "This could be a good time to run an audit to identify patterns."
            )
        return (
            f"You've just logged your {self.trade_count}th trade. "
            "This is a great time to analyze your recent trades."
        )


class JournalStore:
    """
    Owns trades, capital, strategies and audits.

    Every mutation is applied to the in-memory state first and then saved
    under the key that owns it. Persistence goes through ``storage`` only,
    so the journal logic can run against any backend.
    """

    def __init__(
        self,
        storage: BaseStorage,
        audit_config: AuditConfig | None = None,
        default_capital: Decimal | float = 0,
    ) -> None:
        self._storage = storage
        self._audit_config = audit_config or AuditConfig()
        self._default_capital = Decimal(str(default_capital))
        self._ledger = TradeLedger()
        self._initial_capital = self._default_capital
        self._strategies: list[Strategy] = []
        self._active_strategy_id: str | None = None
        self._audits: list[Audit] = []
        self._dismissed_streak_until: int | None = None
        self.pending_nudge: AuditNudge | None = None

    # --- State access ---

    @property
    def ledger(self) -> TradeLedger:
        return self._ledger

    @property
    def trades(self) -> list[Trade]:
        return self._ledger.trades

    @property
    def initial_capital(self) -> Decimal:
        return self._initial_capital

    @property
    def strategies(self) -> list[Strategy]:
        return list(self._strategies)

    @property
    def active_strategy_id(self) -> str | None:
        return self._active_strategy_id

    @property
    def active_strategy(self) -> Strategy | None:
        return next((s for s in self._strategies if s.id == self._active_strategy_id), None)

    @property
    def audits(self) -> list[Audit]:
        """Audits, newest first."""
        return list(self._audits)

    @property
    def dismissed_streak_until(self) -> int | None:
        return self._dismissed_streak_until

    # --- Loading ---

    async def load(self) -> None:
        """Load every key independently. A corrupt key falls back to its default."""
        raw_trades = await self._load_key(TRADES_KEY)
        if isinstance(raw_trades, list):
            self._ledger.replace_all(self._decode_trades(raw_trades))

        raw_capital = await self._load_key(INITIAL_CAPITAL_KEY)
        if isinstance(raw_capital, (int, float)) and not isinstance(raw_capital, bool):
            self._initial_capital = Decimal(str(raw_capital))

        raw_audits = await self._load_key(AUDITS_KEY)
        if isinstance(raw_audits, list):
            self._audits = self._decode_all(raw_audits, audit_from_dict, "audit")

        raw_strategies = await self._load_key(STRATEGIES_KEY)
        if isinstance(raw_strategies, list):
            self._strategies = self._decode_all(raw_strategies, strategy_from_dict, "strategy")

        raw_active = await self._load_key(ACTIVE_STRATEGY_KEY)
        if isinstance(raw_active, str):
            self._active_strategy_id = raw_active

        raw_dismissed = await self._load_key(DISMISSED_STREAK_KEY)
        if isinstance(raw_dismissed, int) and not isinstance(raw_dismissed, bool):
            self._dismissed_streak_until = raw_dismissed

        logger.info(
            "Journal loaded: %d trades, %d strategies, %d audits",
            len(self._ledger),
            len(self._strategies),
            len(self._audits),
        )

    async def _load_key(self, key: str):
        try:
            return await self._storage.load(key)
        except ValueError as e:
            logger.error("Failed to load %s from storage: %s", key, e)
            return None

    def _decode_trades(self, raw: list) -> list[Trade]:
        # Entries without a date cannot be placed in the ledger order
        dated = [item for item in raw if isinstance(item, dict) and item.get("date")]
        if len(dated) < len(raw):
            logger.warning("Dropped %d stored trades without a date", len(raw) - len(dated))
        return self._decode_all(dated, trade_from_dict, "trade")

    @staticmethod
    def _decode_all(raw: list, decoder, label: str) -> list:
        decoded = []
        for item in raw:
            try:
                decoded.append(decoder(item))
            except ValidationError as e:
                logger.warning("Skipping stored %s: %s", label, e.errors()[0]["msg"])
        return decoded

    # --- Capital ---

    async def set_initial_capital(self, value: Decimal | float) -> None:
        self._initial_capital = Decimal(str(value))
        await self._storage.save(INITIAL_CAPITAL_KEY, float(self._initial_capital))

    # --- Trades ---

    async def add_trade(self, candidate: Trade) -> Trade:
        """Insert a candidate as open or closed according to its exit price."""
        previous = len(self._ledger)
        if candidate.is_closed:
            trade = self._ledger.insert_closed(candidate)
        else:
            trade = self._ledger.insert_open(candidate)
        _log_trade("Trade added", trade)
        await self._trades_changed(previous)
        return trade

    async def import_trades(self, candidates: Iterable[Trade]) -> int:
        """Bulk insert imported trades with one resequence pass."""
        previous = len(self._ledger)
        added = self._ledger.insert_many(candidates)
        if added:
            trade_logger.info("Trades imported", extra={"count": added})
            await self._trades_changed(previous)
        return added

    async def update_trade(self, trade: Trade) -> bool:
        """Replace the trade with the same id. False if the id is unknown."""
        previous = len(self._ledger)
        if not self._ledger.update(trade):
            return False
        _log_trade("Trade updated", trade)
        await self._trades_changed(previous)
        return True

    async def delete_trade(self, trade_id: int) -> bool:
        previous = len(self._ledger)
        if not self._ledger.delete(trade_id):
            return False
        trade_logger.info("Trade deleted", extra={"trade_id": trade_id})
        await self._trades_changed(previous)
        return True

    async def apply_analysis(self, origin: Trade, analysis: str) -> bool:
        """Store AI analysis on the trade it was requested for, if still present."""
        if not self._ledger.apply_analysis(origin, analysis):
            return False
        await self._save_trades()
        return True

    async def _trades_changed(self, previous_count: int) -> None:
        await self._save_trades()
        self.pending_nudge = await self.check_audit_nudge(previous_count)

    async def _save_trades(self) -> None:
        await self._storage.save(TRADES_KEY, [trade_to_dict(t) for t in self._ledger])

    # --- Audit nudges ---

    async def check_audit_nudge(self, previous_count: int | None) -> AuditNudge | None:
        """
        Decide whether the trade count change warrants suggesting an audit.

        A losing streak takes precedence over the every-N-trades milestone
        and can be silenced with ``dismiss_streak_nudge``.
        """
        count = len(self._ledger)
        config = self._audit_config

        if self._dismissed_streak_until is not None and count > self._dismissed_streak_until:
            self._dismissed_streak_until = None
            await self._storage.save(DISMISSED_STREAK_KEY, None)

        if previous_count is None or count <= previous_count:
            return None

        losing_streak = calculate_current_losing_streak(self._ledger)
        if losing_streak >= config.streak_threshold:
            if self._dismissed_streak_until is not None:
                return None
            return AuditNudge(kind="streak", trade_count=count, losing_streak=losing_streak)

        if count > 0 and count % config.milestone_every == 0:
            return AuditNudge(kind="milestone", trade_count=count)
        return None

    async def dismiss_streak_nudge(self) -> None:
        """Silence streak nudges for the next ``dismiss_window`` trades."""
        self._dismissed_streak_until = len(self._ledger) + self._audit_config.dismiss_window
        self.pending_nudge = None
        await self._storage.save(DISMISSED_STREAK_KEY, self._dismissed_streak_until)

    # --- Strategies ---

    async def save_strategy(self, strategy: Strategy) -> None:
        """Insert or replace a strategy and make it active."""
        for index, existing in enumerate(self._strategies):
            if existing.id == strategy.id:
                self._strategies[index] = strategy
                break
        else:
            self._strategies.append(strategy)
        await self._save_strategies()
        await self.set_active_strategy(strategy.id)

    async def delete_strategy(self, strategy_id: str) -> bool:
        remaining = [s for s in self._strategies if s.id != strategy_id]
        if len(remaining) == len(self._strategies):
            return False
        self._strategies = remaining
        await self._save_strategies()
        if self._active_strategy_id == strategy_id:
            await self.set_active_strategy(None)
        return True

    async def set_active_strategy(self, strategy_id: str | None) -> None:
        """
        Raises:
            ValueError: If no strategy has that id
        """
        if strategy_id is not None and not any(s.id == strategy_id for s in self._strategies):
            raise ValueError(f"Strategy '{strategy_id}' not found")
        self._active_strategy_id = strategy_id
        await self._storage.save(ACTIVE_STRATEGY_KEY, strategy_id)

    async def _save_strategies(self) -> None:
        await self._storage.save(STRATEGIES_KEY, [strategy_to_dict(s) for s in self._strategies])

    # --- Audits ---

    async def record_audit(self, audit: Audit) -> None:
        self._audits.insert(0, audit)
        await self._storage.save(AUDITS_KEY, [audit_to_dict(a) for a in self._audits])

    # --- Backup ---

    def snapshot(self) -> dict:
        """Backup snapshot of trades, capital and strategies."""
        return serialize(
            self._ledger.trades,
            self._initial_capital,
            self._strategies,
            self._active_strategy_id,
        )

    async def restore(self, data: str | bytes | dict) -> RestoredState:
        """
        Replace trades, capital and strategies from a backup.

        Raises:
            InvalidSnapshotError: If the backup is malformed; state is untouched
        """
        state = deserialize(data)
        previous = len(self._ledger)

        self._ledger.replace_all(state.trades)
        self._initial_capital = state.initial_capital
        self._strategies = list(state.strategies)
        self._active_strategy_id = state.active_strategy_id

        await self._save_trades()
        await self._storage.save(INITIAL_CAPITAL_KEY, float(self._initial_capital))
        await self._save_strategies()
        await self._storage.save(ACTIVE_STRATEGY_KEY, self._active_strategy_id)
        self.pending_nudge = await self.check_audit_nudge(previous)

        logger.info("Restored backup from %s (%d trades)", state.timestamp, len(self._ledger))
        return state

    # --- Queries ---

    def metrics(self) -> DashboardMetrics:
        return calculate_metrics(self._ledger, self._initial_capital)

    def filtered(self, state: FilterState) -> list[Trade]:
        return apply_filters(self._ledger, state)

    def filtered_metrics(self, state: FilterState) -> DashboardMetrics:
        """Summary of a filtered subview, computed without starting capital."""
        return calculate_metrics(self.filtered(state), 0)

    def unique_assets(self) -> list[str]:
        return sorted({t.asset.strip() for t in self._ledger if t.asset.strip()})

    def unique_leverages(self) -> list[str]:
        """Distinct leverage labels, numeric ones ordered by value."""
        labels = {t.leverage.strip() for t in self._ledger if t.leverage.strip()}

        def sort_key(label: str) -> tuple:
            match = _LEADING_INT.match(label)
            if match:
                return (0, int(match.group(1)), label)
            return (1, 0, label)

        return sorted(labels, key=sort_key)


def _log_trade(event: str, trade: Trade) -> None:
    trade_logger.info(
        event,
        extra={
            "trade_id": trade.id,
            "asset": trade.asset,
            "direction": trade.direction.value,
            "status": trade.status.value,
            "pnl": str(trade.pnl) if trade.pnl is not None else None,
        },
    )
