"""
Calendar read model.

CalendarState is an immutable snapshot: the selected month, every event for
the active band, and the precomputed day markers. Month navigation only
swaps selected_month; events for all months are already present.
"""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass, field, replace
from datetime import date, datetime
from enum import Enum
from typing import Dict, Iterable, List, Mapping, Optional, Tuple, Union

from .day_keys import DayKey, day_key, to_calendar_date
from .models import CalendarDayMarkers, CalendarEvent
from .markers import get_markers_for_date
from .time_parsing import start_minutes

DateLike = Union[date, datetime]

NO_BAND_SELECTED = "No band selected"


class LoadStatus(str, Enum):
    """Load lifecycle of the calendar."""

    IDLE = "idle"  # No band selected
    LOADING = "loading"
    LOADED = "loaded"
    ERROR = "error"


def first_of_month(value: DateLike) -> date:
    return date(value.year, value.month, 1)


def shift_month(value: DateLike, months: int) -> date:
    """First day of the month `months` away from value's month."""
    index = value.year * 12 + (value.month - 1) + months
    return date(index // 12, index % 12 + 1, 1)


def event_sort_key(event: CalendarEvent) -> Tuple[date, int, int]:
    """Date, then start minutes; untimed events go last within their day."""
    minutes = start_minutes(event.start_time)
    if minutes is None:
        return (event.date, 1, 0)
    return (event.date, 0, minutes)


def sort_events(events: Iterable[CalendarEvent]) -> List[CalendarEvent]:
    return sorted(events, key=event_sort_key)


@dataclass(frozen=True)
class CalendarState:
    """Snapshot published by CalendarService."""

    selected_month: date
    band_id: Optional[str] = None
    status: LoadStatus = LoadStatus.IDLE
    all_events: Tuple[CalendarEvent, ...] = ()
    markers: Mapping[DayKey, CalendarDayMarkers] = field(default_factory=dict)
    error: Optional[str] = None

    @classmethod
    def initial(cls, today: DateLike, error: Optional[str] = None) -> "CalendarState":
        return cls(selected_month=first_of_month(today), error=error)

    @property
    def is_loading(self) -> bool:
        return self.status == LoadStatus.LOADING

    @property
    def events_for_month(self) -> List[CalendarEvent]:
        """Events in the selected month, sorted by date then start time."""
        month = self.selected_month
        return sort_events(
            event
            for event in self.all_events
            if event.date.year == month.year and event.date.month == month.month
        )

    @property
    def events_by_date(self) -> Dict[date, List[CalendarEvent]]:
        grouped: Dict[date, List[CalendarEvent]] = defaultdict(list)
        for event in self.all_events:
            grouped[event.date].append(event)
        return dict(grouped)

    def events_for_date(self, value: DateLike) -> List[CalendarEvent]:
        target = to_calendar_date(value)
        return [event for event in self.all_events if event.date == target]

    def has_events(self, value: DateLike) -> bool:
        return bool(self.events_for_date(value))

    def has_gig(self, value: DateLike) -> bool:
        marker = self.markers.get(day_key(value))
        if marker is not None:
            return marker.gig
        return any(event.is_gig for event in self.events_for_date(value))

    def has_rehearsal(self, value: DateLike) -> bool:
        marker = self.markers.get(day_key(value))
        if marker is not None:
            return marker.rehearsal
        return any(event.is_rehearsal for event in self.events_for_date(value))

    def has_block_out(self, value: DateLike) -> bool:
        marker = self.markers.get(day_key(value))
        return marker.block_out if marker is not None else False

    def get_markers(self, value: DateLike) -> CalendarDayMarkers:
        return get_markers_for_date(self.markers, value)

    def copy_with(self, *, clear_error: bool = False, **changes: object) -> "CalendarState":
        if clear_error:
            changes["error"] = None
        if "selected_month" in changes:
            changes["selected_month"] = first_of_month(changes["selected_month"])  # type: ignore[arg-type]
        return replace(self, **changes)  # type: ignore[arg-type]
