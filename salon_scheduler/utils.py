"""Shared utilities used across the scheduler."""

import calendar
import re
from datetime import date
from typing import Optional

_HHMM = re.compile(r"^\s*(\d{1,2}):(\d{2})\s*$")


def parse_hhmm(value: Optional[str]) -> Optional[int]:
    """Convert an ``HH:MM`` string to minutes since midnight.

    Returns None for anything that is not a valid time of day.

    Examples:
        >>> parse_hhmm("09:30")
        570
        >>> parse_hhmm("25:00") is None
        True
    """
    if not value:
        return None
    match = _HHMM.match(value)
    if not match:
        return None
    hours, minutes = int(match.group(1)), int(match.group(2))
    if hours > 24 or minutes > 59 or (hours == 24 and minutes != 0):
        return None
    return hours * 60 + minutes


def format_hhmm(minutes: int) -> str:
    """Format minutes since midnight as ``HH:MM``.

    Examples:
        >>> format_hhmm(620)
        '10:20'
    """
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def add_months(day: date, months: int) -> date:
    """Shift a date by whole months, clamping to the last day of the month."""
    month_index = day.month - 1 + months
    year = day.year + month_index // 12
    month = month_index % 12 + 1
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, min(day.day, last_day))


def normalize_phone(value: str) -> str:
    """Normalize a phone number by stripping everything except digits and a leading +.

    Examples:
        >>> normalize_phone("06 12 34 56 78")
        '0612345678'
        >>> normalize_phone("+33 (6) 12-34-56-78")
        '+33612345678'
    """
    value = value.strip()
    if value.startswith("+"):
        return "+" + re.sub(r"[^\d]", "", value[1:])
    return re.sub(r"[^\d]", "", value)


def normalize_email(value: str) -> str:
    """Lower-case and trim an email address for duplicate detection."""
    return value.strip().lower()
