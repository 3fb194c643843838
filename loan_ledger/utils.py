"""Utility functions for the loan ledger.

This module provides helpers for parsing loose user input (request bodies,
command-line options) into Python data types. Every parser is total: it either
returns a value or raises ``InvalidInput`` naming the offending field, so the
calculator never relies on implicit coercion.
"""

from __future__ import annotations

import math
from datetime import date, datetime, time, timezone
from typing import Any, Union

from .data_models import PERIOD_MONTH, PERIOD_TYPES


class InvalidInput(ValueError):
    """Raised when loan terms cannot be parsed into numbers or dates."""

    def __init__(self, field: str, value: Any, reason: str = "must be a valid number") -> None:
        self.field = field
        self.value = value
        super().__init__(f"Invalid input: {field} {reason} (got {value!r})")


def parse_number(value: Any, field: str) -> float:
    """Convert a number or numeric string into a finite ``float``.

    Commas and surrounding whitespace are stripped from strings, so
    ``"10,000"`` parses as ``10000.0``. Underscore digit separators, booleans,
    ``None``, NaN, infinities and integers too large for a float are rejected.
    """
    if isinstance(value, bool) or value is None:
        raise InvalidInput(field, value)
    if isinstance(value, str):
        cleaned = value.replace(",", "").strip()
        if "_" in cleaned:
            raise InvalidInput(field, value)
        try:
            number = float(cleaned)
        except ValueError as exc:
            raise InvalidInput(field, value) from exc
    else:
        try:
            number = float(value)
        except (TypeError, ValueError, OverflowError) as exc:
            raise InvalidInput(field, value) from exc
    if not math.isfinite(number):
        raise InvalidInput(field, value)
    return number


def parse_period(value: Any) -> int:
    """Parse the tenor as an integer, truncating fractions toward zero."""
    return int(parse_number(value, "period"))


def parse_partial_payment(value: Any) -> float:
    """Parse a partial payment; missing or blank values mean nothing was paid."""
    if value is None or (isinstance(value, str) and not value.strip()):
        return 0.0
    return parse_number(value, "partialPayment")


def parse_period_type(value: Any) -> str:
    """Normalize a period type. Anything other than ``"year"`` is a month."""
    normalized = str(value or PERIOD_MONTH).strip().lower()
    return normalized if normalized in PERIOD_TYPES else PERIOD_MONTH


def parse_start_date(value: Union[date, datetime, str]) -> datetime:
    """Return the start of a loan as a timezone-aware ``datetime``.

    Accepts ``date`` (interpreted as midnight UTC), ``datetime`` (naive values
    are treated as UTC) or an ISO-8601 string such as ``"2024-03-01"`` or
    ``"2024-03-01T10:00:00Z"``.

    Raises
    ------
    InvalidInput
        If the value is not a valid calendar date.
    """
    if isinstance(value, datetime):
        return as_utc(value)
    if isinstance(value, date):
        return datetime.combine(value, time(), tzinfo=timezone.utc)
    if not isinstance(value, str) or not value.strip():
        raise InvalidInput("startDate", value, "must be a valid date")
    text = value.strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError as exc:
        raise InvalidInput("startDate", value, "must be a valid date") from exc
    return as_utc(parsed)


def as_utc(moment: datetime) -> datetime:
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment
