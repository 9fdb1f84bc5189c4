"""Calendar event aggregation, day markers and month caching for bands."""

from .block_out_spans import group_block_outs_into_spans
from .day_keys import day_key, parse_day_key
from .markers import BlockOutRange, build_calendar_markers
from .models import BlockOutSpan, CalendarDayMarkers, CalendarEvent, CalendarEventType, MonthData
from .month_cache import MonthEventCache
from .repository import CalendarRepository, SupabaseCalendarRepository
from .schemas import BlockOutRecord, Gig, Rehearsal
from .service import CalendarService
from .state import CalendarState, LoadStatus

__all__ = [
    "BlockOutRange",
    "BlockOutRecord",
    "BlockOutSpan",
    "CalendarDayMarkers",
    "CalendarEvent",
    "CalendarEventType",
    "CalendarRepository",
    "CalendarService",
    "CalendarState",
    "Gig",
    "LoadStatus",
    "MonthData",
    "MonthEventCache",
    "Rehearsal",
    "SupabaseCalendarRepository",
    "build_calendar_markers",
    "day_key",
    "group_block_outs_into_spans",
    "parse_day_key",
]
