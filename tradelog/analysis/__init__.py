"""AI collaborator port and the service applying its results."""

from tradelog.analysis.base import BaseAnalyst, OrderType, PromptAnalyst, TradeSuggestion
from tradelog.analysis.service import AnalysisService

__all__ = [
    "AnalysisService",
    "BaseAnalyst",
    "OrderType",
    "PromptAnalyst",
    "TradeSuggestion",
]
