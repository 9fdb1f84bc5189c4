"""Tests for the month event cache: keys, TTL, invalidation scope."""

from datetime import date

import pytest
from conftest import make_gig, make_rehearsal

from bandroadie_calendar.exceptions import NoBandSelectedError
from bandroadie_calendar.models import CalendarEvent
from bandroadie_calendar.month_cache import MonthEventCache


def _events():
    return [
        CalendarEvent.from_gig(make_gig("g1", on=date(2025, 6, 1))),
        CalendarEvent.from_gig(make_gig("g2", on=date(2025, 6, 20))),
        CalendarEvent.from_rehearsal(make_rehearsal("r1", on=date(2025, 7, 2))),
    ]


class TestMonthEventCache:
    def test_build_key(self):
        assert MonthEventCache.build_key("band-1", 2025, 6) == "band-1-2025-6"

    def test_put_writes_one_entry_per_month(self, month_cache):
        written = month_cache.put("A", _events())

        assert written == 2
        assert sorted(month_cache.keys()) == ["A-2025-6", "A-2025-7"]
        june = month_cache.get("A", 2025, 6)
        assert [event.id for event in june.events] == ["g1", "g2"]
        assert [event.id for event in month_cache.get("A", 2025, 7).events] == ["r1"]

    def test_absent_month_is_none(self, month_cache):
        month_cache.put("A", _events())
        assert month_cache.get("A", 2025, 8) is None
        assert month_cache.get("B", 2025, 6) is None

    def test_entry_fresh_just_before_ttl(self, month_cache, clock):
        month_cache.put("A", _events())

        clock.advance(minutes=4, seconds=59)

        assert month_cache.get("A", 2025, 6) is not None

    def test_entry_stale_just_after_ttl(self, month_cache, clock):
        month_cache.put("A", _events())

        clock.advance(minutes=5, seconds=1)

        assert month_cache.get("A", 2025, 6) is None
        # Stale entries are evicted on read
        assert "A-2025-6" not in month_cache
        assert month_cache.get_stats()["stale"] == 1

    def test_put_overwrites_and_restamps(self, month_cache, clock):
        month_cache.put("A", _events())
        clock.advance(minutes=4)
        month_cache.put("A", [CalendarEvent.from_gig(make_gig("g9", on=date(2025, 6, 9)))])
        clock.advance(minutes=4)

        june = month_cache.get("A", 2025, 6)
        assert [event.id for event in june.events] == ["g9"]
        # July was not rewritten, so it aged out
        assert month_cache.get("A", 2025, 7) is None

    def test_invalidate_only_touches_band_prefix(self, month_cache):
        month_cache.put("A", _events())
        month_cache.put("B", _events())

        removed = month_cache.invalidate("A")

        assert removed == 2
        assert all(key.startswith("B-") for key in month_cache.keys())
        assert month_cache.get("B", 2025, 6) is not None
        assert month_cache.get("A", 2025, 6) is None

    def test_clear_wipes_everything(self, month_cache):
        month_cache.put("A", _events())
        month_cache.put("B", _events())

        month_cache.clear()

        assert len(month_cache) == 0

    def test_empty_band_id(self, month_cache):
        assert month_cache.get("", 2025, 6) is None
        with pytest.raises(NoBandSelectedError):
            month_cache.put("", _events())
        with pytest.raises(NoBandSelectedError):
            month_cache.invalidate("")

    def test_stats(self, month_cache):
        month_cache.put("A", _events())
        month_cache.get("A", 2025, 6)
        month_cache.get("A", 2025, 9)

        stats = month_cache.get_stats()
        assert stats["hits"] == 1
        assert stats["misses"] == 1
        assert stats["sets"] == 2
        assert stats["entries"] == 2
        assert stats["hit_rate"] == pytest.approx(0.5)

        month_cache.reset_stats()
        assert month_cache.get_stats()["hits"] == 0
