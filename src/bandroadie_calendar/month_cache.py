"""
In-memory month cache for calendar events.

Entries are keyed by "{band_id}-{year}-{month}" and go stale after a fixed
TTL (5 minutes by default). A stale entry is never served; it is dropped on
the read that notices it. Failed refreshes never touch existing entries:
entries only change through put(), invalidate() or clear().
"""

from collections import defaultdict
from datetime import datetime, timedelta, timezone
import logging
from typing import Any, Callable, DefaultDict, Dict, Iterable, List, Optional, Tuple

from . import metrics
from .config import DEFAULT_MONTH_CACHE_TTL
from .exceptions import NoBandSelectedError
from .models import CalendarEvent, MonthData

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class MonthEventCache:
    """Per-(band, year, month) cache of aggregated calendar events."""

    def __init__(
        self,
        ttl_seconds: int = DEFAULT_MONTH_CACHE_TTL,
        clock: Optional[Clock] = None,
    ) -> None:
        self.ttl = timedelta(seconds=ttl_seconds)
        self._clock: Clock = clock or utc_now
        self._entries: Dict[str, MonthData] = {}
        self._stats: Dict[str, int] = {
            "hits": 0,
            "misses": 0,
            "stale": 0,
            "sets": 0,
            "invalidations": 0,
        }

    @staticmethod
    def build_key(band_id: str, year: int, month: int) -> str:
        """
        Build a cache key.

        Examples:
            build_key('band-1', 2025, 6) -> 'band-1-2025-6'
        """
        return f"{band_id}-{year}-{month}"

    @staticmethod
    def band_prefix(band_id: str) -> str:
        return f"{band_id}-"

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def get(self, band_id: str, year: int, month: int) -> Optional[MonthData]:
        """Cached month for a band, or None if absent or stale."""
        if not band_id:
            return None

        key = self.build_key(band_id, year, month)
        entry = self._entries.get(key)
        if entry is None:
            self._stats["misses"] += 1
            metrics.record_cache_lookup("miss")
            return None

        if entry.is_stale(self._clock(), self.ttl):
            del self._entries[key]
            self._stats["stale"] += 1
            metrics.record_cache_lookup("stale")
            logger.debug(f"[MONTH-CACHE] STALE {key}")
            return None

        self._stats["hits"] += 1
        metrics.record_cache_lookup("hit")
        return entry

    def put(self, band_id: str, events: Iterable[CalendarEvent]) -> int:
        """
        Write one entry per distinct month present in the events.

        Returns:
            Number of month entries written
        """
        if not band_id:
            raise NoBandSelectedError()

        by_month: DefaultDict[Tuple[int, int], List[CalendarEvent]] = defaultdict(list)
        for event in events:
            by_month[(event.date.year, event.date.month)].append(event)

        fetched_at = self._clock()
        for (year, month), month_events in by_month.items():
            self._entries[self.build_key(band_id, year, month)] = MonthData(
                events=tuple(month_events), fetched_at=fetched_at
            )

        self._stats["sets"] += len(by_month)
        logger.debug(f"[MONTH-CACHE] SET {len(by_month)} months for band {band_id}")
        return len(by_month)

    def invalidate(self, band_id: str) -> int:
        """
        Drop every entry for a band.

        Returns:
            Number of entries removed
        """
        if not band_id:
            raise NoBandSelectedError()

        prefix = self.band_prefix(band_id)
        keys_to_remove = [key for key in self._entries if key.startswith(prefix)]
        for key in keys_to_remove:
            del self._entries[key]

        self._stats["invalidations"] += len(keys_to_remove)
        logger.info(
            f"[MONTH-CACHE] Invalidated band {band_id}, cleared {len(keys_to_remove)} cached months"
        )
        return len(keys_to_remove)

    def clear(self) -> None:
        """Drop everything, e.g. on logout or band teardown."""
        count = len(self._entries)
        self._entries.clear()
        logger.debug(f"[MONTH-CACHE] Cleared {count} entries")

    def keys(self) -> List[str]:
        return list(self._entries)

    def get_stats(self) -> Dict[str, Any]:
        lookups = self._stats["hits"] + self._stats["misses"] + self._stats["stale"]
        return {
            **self._stats,
            "entries": len(self._entries),
            "hit_rate": (self._stats["hits"] / lookups) if lookups else 0.0,
        }

    def reset_stats(self) -> None:
        for key in self._stats:
            self._stats[key] = 0
