"""AI collaborator interface and suggestion model."""

import json
from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable, Sequence
from decimal import Decimal
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from tradelog.analysis.prompts import analyze_prompt, audit_prompt, suggest_prompt
from tradelog.journal.types import Strategy, Trade, TradeDirection


class OrderType(Enum):
    """How a suggested trade should be entered."""

    LIMIT = "LIMIT"
    MARKET = "MARKET"


class TradeSuggestion(BaseModel):
    """Structured live trade suggestion returned by the collaborator."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    direction: TradeDirection
    order_type: OrderType = Field(alias="orderType")
    entry: Decimal = Field(default=Decimal("0"), ge=0)
    min_entry: Decimal = Field(default=Decimal("0"), alias="minEntry", ge=0)
    max_entry: Decimal = Field(default=Decimal("0"), alias="maxEntry", ge=0)
    stop_loss: Decimal = Field(alias="stopLoss", ge=0)
    take_profit: Decimal = Field(alias="takeProfit", ge=0)
    invalidation: str = ""
    rationale: str

    @property
    def suggested_entry(self) -> Decimal | None:
        """Entry price the levels were computed from, if any."""
        if self.order_type == OrderType.LIMIT:
            return self.entry if self.entry > 0 else None
        if self.min_entry > 0 and self.max_entry > 0:
            return (self.min_entry + self.max_entry) / 2
        return None

    @property
    def has_setup(self) -> bool:
        """False when the collaborator found no valid setup (all levels zero)."""
        return self.suggested_entry is not None


class BaseAnalyst(ABC):
    """Abstract AI collaborator used for analysis, audits and suggestions."""

    @abstractmethod
    async def analyze(self, trade: Trade) -> str:
        """
        Review a single trade.

        Returns:
            Free-form analysis text
        """
        pass

    @abstractmethod
    async def audit(self, trades: Sequence[Trade], strategy: Strategy | None = None) -> str:
        """
        Review a group of trades, optionally against a strategy.

        Returns:
            Markdown report
        """
        pass

    @abstractmethod
    async def suggest(
        self,
        asset: str,
        strategy_text: str,
        image_5m: bytes,
        image_15m: bytes,
        image_1h: bytes,
    ) -> dict[str, Any] | str:
        """
        Propose a trade from three chart screenshots.

        Returns:
            Suggestion as a dict or as JSON text, validated by the caller
        """
        pass


CompletionFn = Callable[[str, Sequence[bytes]], Awaitable[str]]


class PromptAnalyst(BaseAnalyst):
    """
    Analyst backed by a plain text completion function.

    ``complete(prompt, images)`` is any async callable that returns the model
    text. Images are passed 1H first, then 15M, then 5M.
    """

    def __init__(self, complete: CompletionFn) -> None:
        self._complete = complete

    async def analyze(self, trade: Trade) -> str:
        return await self._complete(analyze_prompt(trade), ())

    async def audit(self, trades: Sequence[Trade], strategy: Strategy | None = None) -> str:
        return await self._complete(audit_prompt(trades, strategy), ())

    async def suggest(
        self,
        asset: str,
        strategy_text: str,
        image_5m: bytes,
        image_15m: bytes,
        image_1h: bytes,
    ) -> dict[str, Any] | str:
        text = await self._complete(
            suggest_prompt(asset, strategy_text),
            (image_1h, image_15m, image_5m),
        )
        return _strip_code_fence(text)


def _strip_code_fence(text: str) -> str:
    stripped = text.strip()
    if stripped.startswith("```"):
        stripped = stripped.split("\n", 1)[1] if "\n" in stripped else ""
        stripped = stripped.rsplit("```", 1)[0]
    return stripped.strip()


def parse_suggestion_text(text: str) -> dict[str, Any]:
    """
    Raises:
        ValueError: If the text is not a JSON object
    """
    data = json.loads(text)
    if not isinstance(data, dict):
        raise ValueError("Suggestion is not a JSON object")
    return data
