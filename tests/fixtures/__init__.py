"""Test fixtures for Tradelog."""

from tests.fixtures.storage import MemoryStorage
from tests.fixtures.trades import SAMPLE_SHEET, create_closed_with_pnl, create_trade

__all__ = [
    "MemoryStorage",
    "SAMPLE_SHEET",
    "create_closed_with_pnl",
    "create_trade",
]
