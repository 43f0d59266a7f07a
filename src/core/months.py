"""Calendar month helpers for ``YYYY-MM`` keys."""

from __future__ import annotations

import calendar
import re
from datetime import date, timedelta

from .errors import ValidationError

YEAR_MONTH_RE = re.compile(r"^(\d{4})-(\d{2})$")


def parse_year_month(year_month: str) -> tuple[int, int]:
    """Split a ``YYYY-MM`` key into (year, month), validating it."""
    match = YEAR_MONTH_RE.match(year_month or "")
    if not match:
        raise ValidationError(f"Invalid year_month '{year_month}', expected YYYY-MM")
    year, month = int(match.group(1)), int(match.group(2))
    if not 1 <= month <= 12:
        raise ValidationError(f"Invalid month in year_month '{year_month}'")
    return year, month


def validate_year_month(year_month: str) -> str:
    """Return the key unchanged if it is a valid ``YYYY-MM``."""
    parse_year_month(year_month)
    return year_month


def get_year_month(day: date) -> str:
    """Get the ``YYYY-MM`` key for a date."""
    return f"{day.year:04d}-{day.month:02d}"


def current_year_month(today: date | None = None) -> str:
    return get_year_month(today or date.today())


def last_months(count: int, today: date | None = None) -> list[str]:
    """Get the last ``count`` month keys, newest first, current month included."""
    today = today or date.today()
    year, month = today.year, today.month
    months = []
    for _ in range(count):
        months.append(f"{year:04d}-{month:02d}")
        month -= 1
        if month == 0:
            year -= 1
            month = 12
    return months


def month_bounds(year_month: str) -> tuple[date, date]:
    """First and last day of the month."""
    year, month = parse_year_month(year_month)
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, 1), date(year, month, last_day)


def month_days(year_month: str, until: date | None = None) -> list[date]:
    """All days of the month, optionally stopping at ``until`` (inclusive)."""
    first, last = month_bounds(year_month)
    if until is not None and until < last:
        last = until
    days = []
    day = first
    while day <= last:
        days.append(day)
        day += timedelta(days=1)
    return days
