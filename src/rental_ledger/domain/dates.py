"""Calendar helpers for monthly rent schedules.

All functions are pure and work on ``datetime.date``; time of day never
matters for rent.
"""

import calendar
from collections.abc import Iterator
from datetime import date, datetime

from dateutil.relativedelta import relativedelta  # type: ignore[import-untyped]


def parse_iso_date(value: date | datetime | str | None) -> date | None:
    """Parse ``YYYY-MM-DD`` (or pass a date through). Returns None if invalid."""
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    text = str(value).strip()
    if not text:
        return None
    try:
        return datetime.strptime(text[:10], "%Y-%m-%d").date()
    except ValueError:
        return None


def days_in_month(year: int, month: int) -> int:
    return calendar.monthrange(year, month)[1]


def clamp_day(year: int, month: int, day: int) -> date:
    """Return ``day`` of the given month, clamped to the month's last day.

    A due day of 31 lands on Feb 28 (29 in leap years), Apr 30, and so on.
    """
    return date(year, month, min(day, days_in_month(year, month)))


def month_key(year: int, month: int) -> str:
    return f"{year:04d}-{month:02d}"


def parse_month_key(value: str) -> tuple[int, int]:
    """Split a ``YYYY-MM`` key into (year, month)."""
    try:
        year_text, month_text = value.split("-")[:2]
        year, month = int(year_text), int(month_text)
    except ValueError:
        raise ValueError(f"Invalid month key: {value!r}") from None
    if not 1 <= month <= 12:
        raise ValueError(f"Invalid month key: {value!r}")
    return year, month


def iter_months(start: date, end: date) -> Iterator[tuple[int, int]]:
    """Yield (year, month) from start's month through end's month inclusive."""
    cursor = start.replace(day=1)
    last = end.replace(day=1)
    while cursor <= last:
        yield cursor.year, cursor.month
        cursor += relativedelta(months=1)


def format_date(value: date | str | None) -> str:
    """Format a date as ``Jan 1, 2024``. Missing or invalid dates render as '-'."""
    parsed = parse_iso_date(value)
    if parsed is None:
        return "-"
    return f"{parsed.strftime('%b')} {parsed.day}, {parsed.year}"


__all__ = [
    "clamp_day",
    "days_in_month",
    "format_date",
    "iter_months",
    "month_key",
    "parse_iso_date",
    "parse_month_key",
]
