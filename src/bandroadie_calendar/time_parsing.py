"""
Start/end time parsing.

Event times are stored as free text, usually 12-hour ("7:30 PM") but
sometimes 24-hour ("19:30"). Sorting needs minutes from midnight; display
needs a normalized 12-hour string.
"""

from __future__ import annotations

from dataclasses import dataclass
import logging
import re

logger = logging.getLogger(__name__)

_AM_PM_RE = re.compile(r"(\d{1,2}):(\d{2})\s*(AM|PM)", re.IGNORECASE)
_H24_RE = re.compile(r"(\d{1,2}):(\d{2})")

MINUTES_PER_DAY = 24 * 60


@dataclass(frozen=True)
class ParsedTime:
    """Parsed time components in 12-hour form."""

    hour: int  # 1-12
    minutes: int  # 0-59
    is_pm: bool

    @property
    def hour24(self) -> int:
        if self.is_pm and self.hour != 12:
            return self.hour + 12
        if not self.is_pm and self.hour == 12:
            return 0
        return self.hour

    @property
    def total_minutes(self) -> int:
        return self.hour24 * 60 + self.minutes

    def format(self) -> str:
        return f"{self.hour}:{self.minutes:02d} {'PM' if self.is_pm else 'AM'}"

    def __str__(self) -> str:
        return self.format()


DEFAULT_DISPLAY_TIME = ParsedTime(hour=7, minutes=0, is_pm=True)


def parse_time(text: str | None) -> ParsedTime | None:
    """
    Parse a 12-hour or 24-hour time string.

    Returns None for empty or unrecognized input.
    """
    if text is None or not text.strip():
        return None
    normalized = text.strip()

    match = _AM_PM_RE.search(normalized)
    if match:
        hour = int(match.group(1))
        minutes = int(match.group(2))
        if not 1 <= hour <= 12 or minutes > 59:
            return None
        return ParsedTime(hour=hour, minutes=minutes, is_pm=match.group(3).upper() == "PM")

    match = _H24_RE.search(normalized)
    if match:
        hour24 = int(match.group(1))
        minutes = int(match.group(2))
        if hour24 > 23 or minutes > 59:
            return None
        hour12 = hour24 % 12 or 12
        return ParsedTime(hour=hour12, minutes=minutes, is_pm=hour24 >= 12)

    logger.debug(f"Unparsable time string: {text!r}")
    return None


def start_minutes(text: str | None) -> int | None:
    """Minutes from midnight, or None when the time cannot be parsed."""
    parsed = parse_time(text)
    return parsed.total_minutes if parsed else None


def format_time(text: str | None) -> str:
    return (parse_time(text) or DEFAULT_DISPLAY_TIME).format()


def format_range(start: str | None, end: str | None) -> str:
    """
    Format a display range.

    Example: format_range("7:30 PM", "22:00") -> "7:30 PM - 10:00 PM"
    """
    return f"{format_time(start)} - {format_time(end)}"


def duration_minutes(start: str | None, end: str | None) -> int:
    """Duration between two times; an end before the start wraps past midnight."""
    start_total = (parse_time(start) or DEFAULT_DISPLAY_TIME).total_minutes
    end_total = (parse_time(end) or DEFAULT_DISPLAY_TIME).total_minutes
    if end_total < start_total:
        end_total += MINUTES_PER_DAY
    return end_total - start_total
