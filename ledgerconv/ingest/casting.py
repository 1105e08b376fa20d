"""Cell casts shared by the provider converters.

Numbers arrive with currency symbols, thousands separators and signs
that carry no meaning (direction is encoded in the activity type), and
dates arrive either as calendar dates or as full timestamps.
"""

from __future__ import annotations

import logging
import re

import pandas as pd

from ledgerconv.ingest.headers import PLACEHOLDER

logger = logging.getLogger(__name__)

# 1 troy ounce in grams
GRAMS_PER_TROY_OUNCE = 31.1034768

_NON_NUMERIC = re.compile(r"[^\d.\-]")

_CALENDAR_DATE = "%Y-%m-%d"


def parse_amount(value: str | None, default: float = 0.0) -> float:
    """Parse a cell into a non-negative float.

    Args:
        value: Raw cell, e.g. "CHF -1'234.50" or "€ 12.00".
        default: Returned for unparsable input.

    Returns:
        Absolute value of the number. Empty cells and the placeholder
        marker yield 0.0.

    """
    if value is None:
        return 0.0
    stripped = str(value).strip()
    if not stripped or stripped == PLACEHOLDER:
        return 0.0
    cleaned = _NON_NUMERIC.sub("", stripped)
    if not cleaned:
        return 0.0
    try:
        return abs(float(cleaned))
    except ValueError:
        logger.debug("Unparsable number %r, using %s", value, default)
        return default


def cast_numeric(record: dict[str, str], columns: tuple[str, ...]) -> dict[str, object]:
    """Return a copy of ``record`` with ``columns`` cast to floats."""
    result: dict[str, object] = dict(record)
    for column in columns:
        result[column] = parse_amount(record.get(column))
    return result


def grams_to_troy_ounces(grams: float) -> float:
    """Convert a weight in grams to troy ounces."""
    return grams / GRAMS_PER_TROY_OUNCE


def per_gram_to_per_troy_ounce(price: float) -> float:
    """Convert a price per gram to a price per troy ounce."""
    return price * GRAMS_PER_TROY_OUNCE


def _to_timestamp(value: str) -> pd.Timestamp:
    ts = pd.Timestamp(value.strip())
    if pd.isna(ts):
        msg = f"Invalid date: {value!r}"
        raise ValueError(msg)
    return ts


def local_date_at(value: str, tz: str, hour: int) -> pd.Timestamp:
    """Anchor a calendar date to a fixed local time in ``tz``.

    Args:
        value: Calendar date (YYYY-MM-DD).
        tz: IANA time zone name.
        hour: Local hour of day.

    Returns:
        Time-zone aware timestamp.

    Raises:
        ValueError: If ``value`` is not a YYYY-MM-DD date.

    """
    msg = f"Invalid date: {value!r} (expected YYYY-MM-DD)"
    try:
        day = pd.to_datetime(str(value).strip(), format=_CALENDAR_DATE)
    except ValueError as exc:
        raise ValueError(msg) from exc
    if pd.isna(day):
        raise ValueError(msg)
    return (day + pd.Timedelta(hours=hour)).tz_localize(tz)


def parse_timestamp(value: str, tz: str) -> pd.Timestamp:
    """Parse an ISO timestamp and express it in ``tz``.

    Naive timestamps are taken to be local time in ``tz``.

    Raises:
        ValueError: If ``value`` is not a timestamp.

    """
    ts = _to_timestamp(value)
    if ts.tzinfo is None:
        return ts.tz_localize(tz)
    return ts.tz_convert(tz)


def format_timestamp(ts: pd.Timestamp) -> str:
    """Format as YYYY-MM-DDTHH:MM:SS+HH:MM (second precision)."""
    return ts.to_pydatetime().isoformat(timespec="seconds")
