"""Calendar-month helpers. Months are keyed as "YYYY-MM"."""

import calendar
from datetime import date, timedelta

from homebudget.models.ledger import MONTH_KEY_PATTERN


def month_key(day: date) -> str:
    return day.strftime("%Y-%m")


def parse_month_key(key: str) -> tuple[int, int]:
    """Split a month key into (year, month). Raises ValueError if malformed."""
    if not MONTH_KEY_PATTERN.match(key):
        raise ValueError(f"Invalid month key: {key!r}")
    year, month = key.split("-")
    return int(year), int(month)


def days_in_month(year: int, month: int) -> int:
    return calendar.monthrange(year, month)[1]


def next_month_key(key: str) -> str:
    year, month = parse_month_key(key)
    if month == 12:
        return f"{year + 1:04d}-01"
    return f"{year:04d}-{month + 1:02d}"


def previous_month_key(key: str) -> str:
    year, month = parse_month_key(key)
    if month == 1:
        return f"{year - 1:04d}-12"
    return f"{year:04d}-{month - 1:02d}"


def last_month_keys(today: date, count: int) -> list[str]:
    """The `count` month keys before today's month, most recent first."""
    keys = []
    key = month_key(today)
    for _ in range(count):
        key = previous_month_key(key)
        keys.append(key)
    return keys


def month_keys_between(start: date, end: date) -> list[str]:
    """Every month key from start's month to end's month, oldest first."""
    keys = []
    key, last = month_key(start), month_key(end)
    while key <= last:
        keys.append(key)
        key = next_month_key(key)
    return keys


def previous_period(start: date, end: date) -> tuple[date, date]:
    """
    The equally long period that ends the day before `start`.

    March 1-31 compares with January 30 - February 29 in a leap year.
    """
    if end < start:
        raise ValueError(f"Period ends ({end}) before it starts ({start})")
    previous_end = start - timedelta(days=1)
    return previous_end - (end - start), previous_end
