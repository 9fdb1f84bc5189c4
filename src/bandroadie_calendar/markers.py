"""
Calendar day markers.

Computes which days carry a gig, a rehearsal or block-outs so the month grid
can render indicators without rescanning the event list. Days without events
have no entry at all; callers treat a missing key as "no markers".
"""

from dataclasses import dataclass, replace
from datetime import date, datetime, timedelta
from typing import Dict, Iterable, List, Mapping, Optional, Union

from .day_keys import DayKey, day_key, to_calendar_date
from .models import BlockOutSpan, CalendarDayMarkers
from .schemas import Gig, Rehearsal

MarkerMap = Dict[DayKey, CalendarDayMarkers]


@dataclass(frozen=True)
class BlockOutRange:
    """A block-out covering start_date through until_date, inclusive."""

    start_date: Union[date, datetime]
    until_date: Optional[Union[date, datetime]] = None

    @classmethod
    def from_span(cls, span: BlockOutSpan) -> "BlockOutRange":
        return cls(start_date=span.start_date, until_date=span.end_date)

    def expand_to_day_keys(self) -> List[DayKey]:
        current = to_calendar_date(self.start_date)
        if self.until_date is None:
            return [day_key(current)]

        end = to_calendar_date(self.until_date)
        keys = [day_key(current)]
        current += timedelta(days=1)
        while current <= end:
            keys.append(day_key(current))
            current += timedelta(days=1)
        return keys


def build_calendar_markers(
    gigs: Iterable[Gig],
    rehearsals: Iterable[Rehearsal],
    block_outs: Iterable[BlockOutRange] = (),
) -> MarkerMap:
    """
    Build the day key -> markers map.

    Every block-out range adds one to block_out_count on each day it covers;
    overlapping ranges are counted separately.
    """
    markers: MarkerMap = {}
    empty = CalendarDayMarkers()

    for gig in gigs:
        key = day_key(gig.date)
        markers[key] = replace(markers.get(key, empty), gig=True)

    for rehearsal in rehearsals:
        key = day_key(rehearsal.date)
        markers[key] = replace(markers.get(key, empty), rehearsal=True)

    for block_out in block_outs:
        for key in block_out.expand_to_day_keys():
            marker = markers.get(key, empty)
            markers[key] = replace(
                marker, block_out=True, block_out_count=marker.block_out_count + 1
            )

    return markers


def get_markers_for_date(
    markers: Mapping[DayKey, CalendarDayMarkers], value: Union[date, datetime]
) -> CalendarDayMarkers:
    """Markers for a date; an empty marker when the day has none."""
    return markers.get(day_key(value)) or CalendarDayMarkers()


def has_markers_for_date(
    markers: Mapping[DayKey, CalendarDayMarkers], value: Union[date, datetime]
) -> bool:
    marker = markers.get(day_key(value))
    return marker.has_any if marker else False
