"""Prompt rendering for the AI collaborator."""

from collections.abc import Iterable
from decimal import Decimal

from tradelog.journal.types import Strategy, Trade

METHODOLOGY = """\
- Pure price action analysis across 5M, 15M, and 1H timeframes.
- The EMA20 is your ONLY technical indicator, used for momentum, bias, and multi-timeframe confluence.
- Core concepts: Market structure, absorption, imbalance, liquidity voids, liquidity sweeps, and institutional rejection.
- Timeframe hierarchy: 1H for overall direction, 15M for primary trade execution, and 5M for entry triggers."""


def analyze_prompt(trade: Trade) -> str:
    """Prompt asking for a short review of one trade."""
    return f"""\
You are an expert crypto futures trading analyst. Analyze the following trade and provide concise, actionable insights.
Focus on potential patterns, mistakes, and successes based on the provided data and journal entry.

Trade Details:
- Asset: {trade.asset}
- Direction: {trade.direction.value}
- Leverage: {trade.leverage or 'Not set'}
- Entry Price: {trade.entry_price}
- Exit Price: {_or(trade.exit_price, 'Not set')}
- Stop Loss: {_or(trade.stop_loss, 'Not set')}
- Take Profit: {_or(trade.take_profit, 'Not set')}
- Size: {trade.size}
- PnL: {_money(trade.pnl)}
- Date: {trade.date.strftime('%Y-%m-%d')}

Trader's Journal/Notes:
"{trade.journal or 'No journal entry provided.'}"

Analysis:
Provide a brief analysis in 2-3 bullet points.
"""


def audit_prompt(trades: Iterable[Trade], strategy: Strategy | None = None) -> str:
    """Prompt asking for a forensic report over a group of trades."""
    formatted = "\n".join(_audit_entry(t) for t in trades)

    if strategy is not None:
        context = f"""\
The trader is operating under the following strategy. Your analysis MUST be in the context of these rules. Identify where the trader deviated from the plan and suggest improvements TO THE STRATEGY ITSELF based on the results.

USER'S STRATEGY: "{strategy.name}"
---
{strategy.content}
---"""
    else:
        context = (
            "The trader has not provided a specific strategy. Your analysis should be "
            "based on the general principles of the methodology defined below."
        )

    return f"""\
You are an elite trading advisor specializing in forensic trade analysis. Your methodology is STRICTLY limited to the following:
{METHODOLOGY}

**Objective**: Analyze the following set of trades to identify recurring patterns, both positive and negative.
{context}
Your goal is to propose strategic improvements to increase the Win Rate by suggesting ways to cut losses earlier or secure winning trades more effectively. Your suggestions must NOT be so restrictive that they would prevent a trader from taking valid setups in the future.

**Trades to Analyze**:
{formatted}

**Forensic Audit Report**:
Based on the provided trades and your specialized methodology, provide a detailed analysis in markdown format. Structure your report with the following sections:
1.  **### Positive Patterns & Adherence to Strategy**: Identify successful patterns or decisions that align with the strategy and should be repeated.
2.  **### Negative Patterns & Deviations**: Pinpoint recurring mistakes, deviations from the strategy, or strategic flaws that are costing money.
3.  **### Actionable Strategic Improvements**: Provide 2-3 concrete, actionable suggestions for improving the strategy itself based on the performance analysis.
"""


def suggest_prompt(asset: str, strategy_text: str) -> str:
    """Prompt sent alongside the 1H, 15M and 5M chart images."""
    return f"""\
You are an expert trading assistant providing precise execution plans. Analyze the provided multi-timeframe charts (1H, 15M, 5M) for {asset} based on the user's strategy.

Your task is to provide a SINGLE, actionable trade suggestion.
1.  Determine the Order Type: 'LIMIT' for precise entries, or 'MARKET' for immediate execution.
2.  For LIMIT orders, provide a specific 'entry' price and a clear 'invalidation' condition. Set minEntry/maxEntry to 0.
3.  For MARKET orders, provide a valid entry range ('minEntry', 'maxEntry'). The 'entry' price should be 0. The 'invalidation' string should be empty.
4.  ALWAYS provide a Direction, Stop Loss, Take Profit, and a detailed Rationale.
5.  If NO valid setup exists, set all numeric fields to 0, set direction to LONG, orderType to MARKET, and explain why in the rationale.

USER'S TRADING STRATEGY:
---
{strategy_text}
---

Respond with ONLY a JSON object with the keys: direction, orderType, entry, minEntry, maxEntry, stopLoss, takeProfit, invalidation, rationale.
"""


def _audit_entry(trade: Trade) -> str:
    return f"""\
---
Trade ID: {trade.id}
Date: {trade.date.strftime('%Y-%m-%d')}
Asset: {trade.asset}
Direction: {trade.direction.value}
Leverage: {trade.leverage or 'N/A'}
Entry: {trade.entry_price}
Exit: {_or(trade.exit_price, 'N/A')}
PnL: {_money(trade.pnl)}
Journal: "{trade.journal or 'No journal entry.'}"
---"""


def _or(value: Decimal | None, fallback: str) -> str:
    return fallback if value is None else str(value)


def _money(value: Decimal | None) -> str:
    return "N/A" if value is None else f"${value:.2f}"
