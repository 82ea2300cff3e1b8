"""Tradelog - Derivatives Trade Journal Entry Point."""

import sys

from tradelog.cli import main

if __name__ == "__main__":
    sys.exit(main())
