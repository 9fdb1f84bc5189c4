"""Shared fixtures for calendar tests."""

import asyncio
from datetime import date, datetime, timedelta, timezone
from typing import Dict, List, Optional, Sequence

import pytest

from bandroadie_calendar.config import Settings
from bandroadie_calendar.month_cache import MonthEventCache
from bandroadie_calendar.schemas import BlockOutRecord, Gig, Rehearsal

BAND_ID = "band-a"


def make_gig(
    gig_id: str = "gig-1",
    on: date = date(2025, 6, 1),
    start_time: str = "8:00 PM",
    band_id: str = BAND_ID,
    **extra,
) -> Gig:
    return Gig(
        id=gig_id,
        band_id=band_id,
        name=extra.pop("name", "Friday Show"),
        date=on,
        start_time=start_time,
        end_time=extra.pop("end_time", "11:00 PM"),
        location=extra.pop("location", "The Basement"),
        **extra,
    )


def make_rehearsal(
    rehearsal_id: str = "reh-1",
    on: date = date(2025, 6, 1),
    start_time: str = "7:00 PM",
    band_id: str = BAND_ID,
    **extra,
) -> Rehearsal:
    return Rehearsal(
        id=rehearsal_id,
        band_id=band_id,
        date=on,
        start_time=start_time,
        end_time=extra.pop("end_time", "9:00 PM"),
        location=extra.pop("location", "Studio B"),
        **extra,
    )


def make_block_out(
    user_id: str = "u1",
    on: date = date(2025, 7, 10),
    reason: str = "vacation",
    band_id: str = BAND_ID,
) -> BlockOutRecord:
    return BlockOutRecord(
        id=f"{user_id}-{on.isoformat()}",
        user_id=user_id,
        band_id=band_id,
        date=on,
        reason=reason,
    )


class FakeClock:
    """Manually advanced clock for TTL tests."""

    def __init__(self, start: Optional[datetime] = None) -> None:
        self.now = start or datetime(2025, 6, 1, 12, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


class FakeRepository:
    """In-memory CalendarRepository keyed by band id."""

    def __init__(self) -> None:
        self.gigs: Dict[str, List[Gig]] = {}
        self.rehearsals: Dict[str, List[Rehearsal]] = {}
        self.block_outs: Dict[str, List[BlockOutRecord]] = {}
        self.names: Dict[str, str] = {}
        self.fail_on: Optional[str] = None
        self.names_error: Optional[Exception] = None
        self.calls: List[str] = []
        # Optional gate per band that fetches wait on before returning
        self.gates: Dict[str, asyncio.Event] = {}

    async def _wait(self, band_id: str) -> None:
        gate = self.gates.get(band_id)
        if gate is not None:
            await gate.wait()

    async def fetch_gigs_for_band(self, band_id: str) -> List[Gig]:
        self.calls.append(f"gigs:{band_id}")
        rows = list(self.gigs.get(band_id, []))
        await self._wait(band_id)
        if self.fail_on == "gigs":
            raise RuntimeError("gigs unavailable")
        return rows

    async def fetch_rehearsals_for_band(self, band_id: str) -> List[Rehearsal]:
        self.calls.append(f"rehearsals:{band_id}")
        rows = list(self.rehearsals.get(band_id, []))
        await self._wait(band_id)
        if self.fail_on == "rehearsals":
            raise RuntimeError("rehearsals unavailable")
        return rows

    async def fetch_block_outs_for_band(self, band_id: str) -> List[BlockOutRecord]:
        self.calls.append(f"block_outs:{band_id}")
        rows = list(self.block_outs.get(band_id, []))
        await self._wait(band_id)
        if self.fail_on == "block_outs":
            raise RuntimeError("block outs unavailable")
        return rows

    async def resolve_user_display_names(self, user_ids: Sequence[str]) -> Dict[str, str]:
        self.calls.append("names")
        if self.names_error is not None:
            raise self.names_error
        return {user_id: self.names[user_id] for user_id in user_ids if user_id in self.names}


@pytest.fixture
def settings() -> Settings:
    return Settings(
        supabase_url="https://project.supabase.test",
        supabase_anon_key="anon-key",
        timezone="America/Chicago",
        _env_file=None,
    )


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def month_cache(clock: FakeClock) -> MonthEventCache:
    return MonthEventCache(ttl_seconds=300, clock=clock)


@pytest.fixture
def repository() -> FakeRepository:
    return FakeRepository()
