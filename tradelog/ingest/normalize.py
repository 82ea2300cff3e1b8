"""Locale-tolerant number and date parsing for imported trade data."""

import re
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation

from tradelog.errors import InvalidDateError, InvalidDirectionError, InvalidNumberError
from tradelog.journal.types import TradeDirection

# Anything that is not a digit, separator or sign (currency symbols, spaces, NBSP)
_NON_NUMERIC = re.compile(r"[^\d,.\-]")
_DATE_SEPARATORS = re.compile(r"[/\-.]")


def parse_number(raw: str) -> Decimal:
    """
    Parse a locale-ambiguous numeric string.

    When both ``,`` and ``.`` appear, the rightmost one is the decimal point
    and the other is a thousands separator. A lone ``,`` is a decimal point.

    Raises:
        InvalidNumberError: If the value is blank or not numeric
    """
    if raw is None or not str(raw).strip():
        raise InvalidNumberError("" if raw is None else str(raw))

    text = _NON_NUMERIC.sub("", str(raw).strip())
    last_comma = text.rfind(",")
    last_period = text.rfind(".")

    if last_comma > -1 and last_period > -1:
        if last_comma > last_period:
            text = text.replace(".", "").replace(",", ".")
        else:
            text = text.replace(",", "")
    elif last_comma > -1:
        # Rightmost comma is the decimal point, any others group thousands
        text = text[:last_comma].replace(",", "") + "." + text[last_comma + 1:]

    try:
        value = Decimal(text)
    except InvalidOperation:
        raise InvalidNumberError(str(raw)) from None

    if not value.is_finite():
        raise InvalidNumberError(str(raw))
    return value


def parse_optional_number(raw: str | None) -> Decimal | None:
    """Parse a number, returning None for blank input."""
    if raw is None or not str(raw).strip():
        return None
    return parse_number(raw)


def parse_date(raw: str) -> datetime:
    """
    Parse ``DD/MM/YYYY`` or ``YYYY-MM-DD`` (any of ``/``, ``-``, ``.``).

    A four digit first component selects year-first order. Two digit years
    below 50 map to 20xx, the rest to 19xx. The result is UTC midnight.

    Raises:
        InvalidDateError: On wrong shape, out of range values or
            non-existent calendar dates
    """
    text = (raw or "").strip()
    if not text:
        raise InvalidDateError(text, "date is empty")

    parts = _DATE_SEPARATORS.split(text)
    if len(parts) != 3:
        raise InvalidDateError(text, "expected DD/MM/YYYY or YYYY-MM-DD")

    parts = [p.strip() for p in parts]
    # isdecimal: superscripts pass isdigit but int() rejects them
    if not all(p.isdecimal() for p in parts):
        raise InvalidDateError(text, "non-numeric component")

    p1, p2, p3 = (int(p) for p in parts)
    if len(parts[0]) == 4:
        year, month, day = p1, p2, p3
    else:
        day, month, year = p1, p2, p3

    if year < 100:
        year = 2000 + year if year < 50 else 1900 + year

    if not 1 <= month <= 12:
        raise InvalidDateError(text, f"month {month} out of range")
    if not 1 <= day <= 31:
        raise InvalidDateError(text, f"day {day} out of range")

    try:
        return datetime(year, month, day, tzinfo=timezone.utc)
    except ValueError as e:
        raise InvalidDateError(text, str(e)) from None


def parse_direction(raw: str, localized: bool = True) -> TradeDirection:
    """
    Map a direction token to LONG/SHORT.

    With ``localized`` the Spanish spreadsheet tokens ``compra``/``venta`` are
    accepted too and anything else is an error. Without it the quick-add rule
    applies: LONG if the token mentions "long", SHORT otherwise.
    """
    token = (raw or "").strip().lower()
    if not localized:
        return TradeDirection.LONG if "long" in token else TradeDirection.SHORT

    if "long" in token or "compra" in token:
        return TradeDirection.LONG
    if "short" in token or "venta" in token:
        return TradeDirection.SHORT
    raise InvalidDirectionError(raw or "")
