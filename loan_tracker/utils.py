"""Utility functions for the loan tracker.

This module provides helpers for parsing user input into Python data types and
for handling dates, including adding calendar months and parsing ISO dates
into ``datetime.date`` instances. Form fields arrive as text, so every parser
raises ``ParseError`` (a ``ValueError``) rather than returning a sentinel.
"""

from __future__ import annotations

import calendar
from datetime import date, datetime
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation, getcontext
from typing import Union

from .errors import ParseError

getcontext().prec = 28  # increase decimal precision to avoid rounding errors

Number = Union[int, float, str, Decimal]

CENT = Decimal("0.01")


def parse_date(value: Union[str, date]) -> date:
    """Parse a ``YYYY-MM-DD`` (or ``YYYY-MM``) string into a ``date``.

    Parameters
    ----------
    value: str or date
        ISO date text. A bare year-month is normalized to the first day of the
        month. ``date`` and ``datetime`` values are passed through.

    Raises
    ------
    ParseError
        If the string is not a valid date.
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        parts = str(value).strip()[:10].split("-")
        if len(parts) == 2:
            return date(int(parts[0]), int(parts[1]), 1)
        if len(parts) != 3:
            raise ValueError
        return date(int(parts[0]), int(parts[1]), int(parts[2]))
    except (TypeError, ValueError) as exc:
        raise ParseError(f"Invalid date: {value}") from exc


def add_months(dt: date, months: int) -> date:
    """Return a new date a number of months after ``dt``.

    The day of the month is clamped to the last valid day if needed (e.g.,
    adding one month to Jan 31 yields Feb 28 or 29).
    """
    year = dt.year + (dt.month - 1 + months) // 12
    month = (dt.month - 1 + months) % 12 + 1
    day = min(dt.day, calendar.monthrange(year, month)[1])
    return date(year, month, day)


def months_between(start: date, end: date) -> int:
    """Whole calendar months from ``start`` to ``end`` (negative if earlier)."""
    months = (end.year - start.year) * 12 + (end.month - start.month)
    if months > 0 and end < add_months(start, months):
        months -= 1
    return months


def decimal_from_str(value: str) -> Decimal:
    """Convert a numeric string into a ``Decimal``.

    The function strips any commas and surrounding whitespace and handles both
    integer and float-like strings. It raises ``ParseError`` if conversion
    fails or the value is not finite.
    """
    try:
        cleaned = str(value).replace(",", "").strip()
        result = Decimal(cleaned)
    except (InvalidOperation, TypeError, ValueError) as exc:
        raise ParseError(f"Invalid numeric value: {value}") from exc
    if not result.is_finite():
        raise ParseError(f"Invalid numeric value: {value}")
    return result


def to_decimal(value: Number) -> Decimal:
    """Coerce an ``int``/``float``/``str``/``Decimal`` to ``Decimal``.

    Floats go through ``str`` so ``0.1`` becomes ``Decimal("0.1")`` and not the
    binary expansion.
    """
    if isinstance(value, bool):
        raise ParseError(f"Invalid numeric value: {value}")
    if isinstance(value, Decimal):
        if not value.is_finite():
            raise ParseError(f"Invalid numeric value: {value}")
        return value
    if value is None:
        raise ParseError("Missing numeric value")
    return decimal_from_str(str(value))


def int_from_value(value: Number) -> int:
    """Parse a whole number, accepting ``"12"``, ``12`` and ``12.0``."""
    number = to_decimal(value)
    if number != number.to_integral_value():
        raise ParseError(f"Invalid whole number: {value}")
    return int(number)


def to_cents(value: Decimal) -> Decimal:
    """Round a money amount to cents, half up."""
    return value.quantize(CENT, rounding=ROUND_HALF_UP)
