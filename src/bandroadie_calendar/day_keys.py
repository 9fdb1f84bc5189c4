"""
Day key codec.

A day key is the canonical ``YYYY-MM-DD`` string used to index per-day
calendar data. Keys are built from the value's own fields; no timezone
conversion happens here, the date is assumed to already be local.
"""

from datetime import date, datetime
import re
from typing import Union

from .exceptions import InvalidDayKeyError

DayKey = str

_DAY_KEY_RE = re.compile(r"^(\d{4})-(\d{1,2})-(\d{1,2})$")

# Parsed keys land on noon so later rendering never slips a day across DST.
REHYDRATE_HOUR = 12


def to_calendar_date(value: Union[date, datetime]) -> date:
    """Drop any time-of-day component."""
    if isinstance(value, datetime):
        return value.date()
    return value


def day_key(value: Union[date, datetime]) -> DayKey:
    """
    Format a date as a zero-padded day key.

    Examples:
        day_key(date(2025, 3, 5)) -> '2025-03-05'
    """
    return f"{value.year:04d}-{value.month:02d}-{value.day:02d}"


def parse_day_key(key: DayKey) -> datetime:
    """
    Parse a day key back to a local datetime at noon.

    Raises:
        InvalidDayKeyError: If the key is malformed or not a real date
    """
    match = _DAY_KEY_RE.match(key.strip()) if isinstance(key, str) else None
    if match is None:
        raise InvalidDayKeyError(str(key))
    year, month, day = (int(part) for part in match.groups())
    try:
        return datetime(year, month, day, REHYDRATE_HOUR)
    except ValueError as exc:
        raise InvalidDayKeyError(key) from exc


def parse_day_key_date(key: DayKey) -> date:
    return parse_day_key(key).date()
