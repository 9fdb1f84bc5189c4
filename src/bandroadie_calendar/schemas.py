"""
Row schemas for the remote tables the calendar reads.

Tables: public.gigs, public.rehearsals, public.block_dates, public.users.
Rows arrive as PostgREST JSON and are validated here before any
aggregation touches them.
"""

import datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, field_validator

from .config import DEFAULT_MEMBER_NAME

DateType = datetime.date


def _coerce_date(value: Any) -> Any:
    """Accept 'YYYY-MM-DD' or an ISO timestamp; keep only the date part."""
    if isinstance(value, datetime.datetime):
        return value.date()
    if isinstance(value, str) and "T" in value:
        return datetime.datetime.fromisoformat(value.replace("Z", "+00:00")).date()
    return value


class RowModel(BaseModel):
    """Base for table rows; unknown columns are ignored."""

    model_config = ConfigDict(extra="ignore", frozen=True, str_strip_whitespace=False)


class Gig(RowModel):
    """A gig (potential or confirmed) for a band."""

    id: str
    band_id: str
    name: str = ""
    date: DateType
    start_time: str = ""
    end_time: str = ""
    location: str = ""
    setlist_id: Optional[str] = None
    setlist_name: Optional[str] = None
    notes: Optional[str] = None
    is_potential: bool = False

    @field_validator("date", mode="before")
    @classmethod
    def _date_only(cls, v: Any) -> Any:
        return _coerce_date(v)

    @field_validator("start_time", "end_time", "location", "name", mode="before")
    @classmethod
    def _none_to_empty(cls, v: Any) -> Any:
        return "" if v is None else v

    @property
    def is_confirmed(self) -> bool:
        return not self.is_potential


class Rehearsal(RowModel):
    """A band rehearsal."""

    id: str
    band_id: str
    date: DateType
    start_time: str = ""
    end_time: str = ""
    location: str = ""
    notes: Optional[str] = None
    setlist_id: Optional[str] = None
    is_recurring: bool = False
    recurrence_frequency: Optional[str] = None
    parent_rehearsal_id: Optional[str] = None

    @field_validator("date", mode="before")
    @classmethod
    def _date_only(cls, v: Any) -> Any:
        return _coerce_date(v)

    @field_validator("start_time", "end_time", "location", mode="before")
    @classmethod
    def _none_to_empty(cls, v: Any) -> Any:
        return "" if v is None else v


class BlockOutRecord(RowModel):
    """
    One unavailable day for one member of one band.

    Unique on (user_id, band_id, date). The reason column is NOT NULL in the
    database; a null from older rows is read as an empty string.
    """

    id: str
    user_id: str
    band_id: str
    date: DateType
    reason: str = ""

    @field_validator("date", mode="before")
    @classmethod
    def _date_only(cls, v: Any) -> Any:
        return _coerce_date(v)

    @field_validator("reason", mode="before")
    @classmethod
    def _reason_never_null(cls, v: Any) -> Any:
        return "" if v is None else v


class UserNameRow(RowModel):
    """Name columns from public.users."""

    id: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None

    def display_name(self, fallback: str = DEFAULT_MEMBER_NAME) -> str:
        # First name, then last name, then the fallback
        if self.first_name:
            return self.first_name
        if self.last_name:
            return self.last_name
        return fallback
