"""Logging setup."""

from tradelog.monitor.logger import LogContext, get_trade_logger, setup_logging

__all__ = ["LogContext", "get_trade_logger", "setup_logging"]
