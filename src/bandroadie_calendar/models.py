"""
Derived calendar models.

Everything here is rebuilt from scratch on each successful load and is
frozen once built, so published snapshots cannot be changed by callers.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timedelta
from enum import Enum
from typing import Optional, Sequence

from .schemas import Gig, Rehearsal
from .time_parsing import format_range


class CalendarEventType(str, Enum):
    """Event kinds that can appear on the calendar."""

    GIG = "gig"
    REHEARSAL = "rehearsal"
    BLOCK_OUT = "block_out"


@dataclass(frozen=True)
class BlockOutSpan:
    """A contiguous run of block-out days for one member and one reason."""

    start_date: date
    end_date: date
    reason: str
    user_id: str
    user_name: str

    def __post_init__(self) -> None:
        if self.end_date < self.start_date:
            raise ValueError("BlockOutSpan end_date must not be before start_date")

    @property
    def is_multi_day(self) -> bool:
        return self.start_date != self.end_date

    @property
    def day_count(self) -> int:
        return (self.end_date - self.start_date).days + 1

    def days(self) -> list[date]:
        return [self.start_date + timedelta(days=i) for i in range(self.day_count)]


@dataclass(frozen=True)
class CalendarEvent:
    """Unified calendar entry wrapping a gig, a rehearsal or a block-out span."""

    id: str
    type: CalendarEventType
    date: date
    start_time: str = ""
    end_time: str = ""
    location: str = ""
    title: Optional[str] = None
    notes: Optional[str] = None
    gig: Optional[Gig] = None
    rehearsal: Optional[Rehearsal] = None
    block_out_span: Optional[BlockOutSpan] = None

    def __post_init__(self) -> None:
        payloads = {
            CalendarEventType.GIG: self.gig,
            CalendarEventType.REHEARSAL: self.rehearsal,
            CalendarEventType.BLOCK_OUT: self.block_out_span,
        }
        for kind, payload in payloads.items():
            if (kind == self.type) != (payload is not None):
                raise ValueError(
                    f"CalendarEvent {self.id!r} of type {self.type.value} "
                    f"has a mismatched {kind.value} payload"
                )

    @classmethod
    def from_gig(cls, gig: Gig) -> "CalendarEvent":
        return cls(
            id=gig.id,
            type=CalendarEventType.GIG,
            date=gig.date,
            start_time=gig.start_time,
            end_time=gig.end_time,
            location=gig.location,
            title=gig.name,
            notes=gig.notes,
            gig=gig,
        )

    @classmethod
    def from_rehearsal(cls, rehearsal: Rehearsal) -> "CalendarEvent":
        return cls(
            id=rehearsal.id,
            type=CalendarEventType.REHEARSAL,
            date=rehearsal.date,
            start_time=rehearsal.start_time,
            end_time=rehearsal.end_time,
            location=rehearsal.location,
            title="Rehearsal",
            notes=rehearsal.notes,
            rehearsal=rehearsal,
        )

    @classmethod
    def from_block_out_span(cls, span: BlockOutSpan) -> "CalendarEvent":
        # Block outs are all-day, so start/end times stay empty
        return cls(
            id=f"{span.user_id}_{span.start_date.isoformat()}",
            type=CalendarEventType.BLOCK_OUT,
            date=span.start_date,
            title=f"{span.user_name} Out",
            notes=span.reason or None,
            block_out_span=span,
        )

    @property
    def is_gig(self) -> bool:
        return self.type == CalendarEventType.GIG

    @property
    def is_rehearsal(self) -> bool:
        return self.type == CalendarEventType.REHEARSAL

    @property
    def is_block_out(self) -> bool:
        return self.type == CalendarEventType.BLOCK_OUT

    @property
    def is_potential_gig(self) -> bool:
        return self.is_gig and self.gig is not None and self.gig.is_potential

    @property
    def is_confirmed_gig(self) -> bool:
        return self.is_gig and self.gig is not None and not self.gig.is_potential

    @property
    def display_title(self) -> str:
        return self.title or "Event"

    @property
    def time_range(self) -> str:
        """Formatted time range, e.g. '6:00 PM - 9:00 PM'."""
        return format_range(self.start_time, self.end_time)

    @property
    def end_date(self) -> Optional[date]:
        """Last day of a multi-day block out; None for anything else."""
        if self.block_out_span is not None and self.block_out_span.is_multi_day:
            return self.block_out_span.end_date
        return None


@dataclass(frozen=True)
class CalendarDayMarkers:
    """Indicator flags for a single calendar day."""

    gig: bool = False
    rehearsal: bool = False
    block_out: bool = False
    # Number of block-out spans covering this day
    block_out_count: int = 0

    @property
    def has_any(self) -> bool:
        return self.gig or self.rehearsal or self.block_out

    @property
    def count(self) -> int:
        return int(self.gig) + int(self.rehearsal) + int(self.block_out)


@dataclass(frozen=True)
class MonthData:
    """Cached events for one band and one month."""

    events: Sequence[CalendarEvent]
    fetched_at: datetime

    def is_stale(self, now: datetime, ttl: timedelta) -> bool:
        return now - self.fetched_at > ttl
