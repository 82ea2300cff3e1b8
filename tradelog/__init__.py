"""Tradelog - derivatives trade journal with import, metrics and backup."""

__version__ = "0.1.0"
