"""Authoritative ordered trade collection."""

import logging
from collections.abc import Iterable
from dataclasses import replace

from tradelog.journal.types import Trade

logger = logging.getLogger(__name__)


class TradeLedger:
    """
    In-memory trade ledger.

    Ids are positional labels, not durable keys: after every structural
    change the ledger is stably sorted by date and renumbered 1..N, so
    "trade #7" always means the 7th trade chronologically. An id held by a
    caller is only valid until the next mutation.
    """

    def __init__(self, trades: Iterable[Trade] = ()) -> None:
        self._trades: list[Trade] = list(trades)
        self.resequence()

    def __len__(self) -> int:
        return len(self._trades)

    def __iter__(self):
        return iter(self._trades)

    @property
    def trades(self) -> list[Trade]:
        """Snapshot of the trades in id order."""
        return list(self._trades)

    def get(self, trade_id: int) -> Trade | None:
        """Get a trade by its current id."""
        if 1 <= trade_id <= len(self._trades):
            trade = self._trades[trade_id - 1]
            if trade.id == trade_id:
                return trade
        return next((t for t in self._trades if t.id == trade_id), None)

    def next_id(self) -> int:
        """Temporary id for an appended trade (max id + 1, or 1)."""
        if not self._trades:
            return 1
        return max(t.id or 0 for t in self._trades) + 1

    def resequence(self) -> None:
        """Stable sort by date ascending and renumber 1..N."""
        ordered = sorted(self._trades, key=lambda t: t.date)
        self._trades = [
            t if t.id == index else t.with_id(index)
            for index, t in enumerate(ordered, 1)
        ]

    def insert_open(self, candidate: Trade) -> Trade:
        """Add a trade as open, ignoring any exit price it carries."""
        return self._insert(candidate.reopened())

    def insert_closed(self, candidate: Trade) -> Trade:
        """Add a closed trade.

        A candidate without a valid exit price cannot be closed and is
        stored as open.
        """
        if not candidate.is_closed:
            logger.warning(
                "Closed insert without exit price for %s, storing as open",
                candidate.asset,
            )
        return self._insert(candidate)

    def insert_many(self, candidates: Iterable[Trade]) -> int:
        """Bulk insert with a single resequence pass. Returns the count added."""
        added = 0
        for candidate in candidates:
            self._trades.append(candidate.with_id(self.next_id()))
            added += 1
        if added:
            self.resequence()
        return added

    def update(self, trade: Trade) -> bool:
        """
        Replace the trade with the same id.

        Returns:
            False (and leaves the ledger untouched) if no trade has that id
        """
        for index, existing in enumerate(self._trades):
            if existing.id == trade.id:
                self._trades[index] = trade
                self.resequence()
                return True
        logger.warning("Update ignored: no trade with id %s", trade.id)
        return False

    def delete(self, trade_id: int) -> bool:
        """Remove a trade by id. Returns False if it did not exist."""
        remaining = [t for t in self._trades if t.id != trade_id]
        if len(remaining) == len(self._trades):
            logger.warning("Delete ignored: no trade with id %s", trade_id)
            return False
        self._trades = remaining
        self.resequence()
        return True

    def replace_all(self, trades: Iterable[Trade]) -> None:
        """Atomically replace every trade (restore path)."""
        self._trades = list(trades)
        self.resequence()

    def apply_analysis(self, origin: Trade, analysis: str) -> bool:
        """
        Attach AI analysis text to the trade ``origin`` was taken from.

        The result is dropped when that trade was deleted or renumbered
        while the analysis was running.
        """
        current = self.get(origin.id) if origin.id is not None else None
        if current is None or not current.same_origin(origin):
            logger.info("Analysis for trade #%s discarded, trade changed", origin.id)
            return False
        self._trades[self._trades.index(current)] = replace(current, analysis=analysis)
        return True

    def _insert(self, candidate: Trade) -> Trade:
        trade = candidate.with_id(self.next_id())
        self._trades.append(trade)
        self.resequence()
        # The sort is stable, so the appended trade is the last one on its date
        position = max(i for i, t in enumerate(self._trades) if t.date == trade.date)
        return self._trades[position]
