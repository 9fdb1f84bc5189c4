"""
Calendar service.

Owns the calendar state machine for the active band:

    IDLE (no band) -> LOADING -> LOADED | ERROR

LOADING can be re-entered from either terminal state on band change or
refresh. Every load captures a generation number; results from a load whose
generation is no longer current are discarded, so a slow fetch for an old
band can never overwrite newer state.
"""

import asyncio
from datetime import date, datetime
import logging
from typing import Callable, Dict, List, Optional, Sequence, Tuple

import pytz

from .base import BaseService
from .block_out_spans import group_block_outs_into_spans
from .config import Settings, get_settings
from .exceptions import CalendarFetchError
from .markers import BlockOutRange, MarkerMap, build_calendar_markers
from .models import CalendarEvent, MonthData
from .month_cache import MonthEventCache
from .repository import CalendarRepository
from .schemas import BlockOutRecord
from .state import NO_BAND_SELECTED, CalendarState, LoadStatus, shift_month, sort_events

logger = logging.getLogger(__name__)

StateListener = Callable[[CalendarState], None]
TodayProvider = Callable[[], date]


class CalendarService(BaseService):
    """Loads, aggregates and publishes calendar state for one active band."""

    def __init__(
        self,
        repository: CalendarRepository,
        cache: Optional[MonthEventCache] = None,
        settings: Optional[Settings] = None,
        today: Optional[TodayProvider] = None,
    ) -> None:
        super().__init__()
        self.settings = settings or get_settings()
        self.slow_operation_seconds = self.settings.slow_operation_threshold_seconds
        self.repository = repository
        self.cache = (
            cache
            if cache is not None
            else MonthEventCache(ttl_seconds=self.settings.month_cache_ttl_seconds)
        )
        self._today: TodayProvider = today or self._band_local_today

        self._band_id: Optional[str] = None
        self._last_loaded_band_id: Optional[str] = None
        self._generation = 0
        self._listeners: List[StateListener] = []
        self._state = CalendarState.initial(self._today(), error=NO_BAND_SELECTED)

    def _band_local_today(self) -> date:
        return datetime.now(pytz.timezone(self.settings.timezone)).date()

    # State publication

    @property
    def state(self) -> CalendarState:
        return self._state

    @property
    def band_id(self) -> Optional[str]:
        return self._band_id

    @property
    def generation(self) -> int:
        return self._generation

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        """
        Register a listener for published states.

        Returns:
            Callable that removes the listener
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _publish(self, state: CalendarState) -> None:
        self._state = state
        for listener in list(self._listeners):
            try:
                listener(state)
            except Exception as e:
                self.logger.error(f"[CALENDAR] State listener failed: {e}")

    # Band selection

    async def set_active_band(self, band_id: Optional[str]) -> CalendarState:
        """
        React to the active band changing.

        A missing band resets to IDLE. A new band triggers exactly one load;
        re-announcing the band that is already loaded or loading is a no-op.
        """
        if not band_id:
            self._band_id = None
            self._last_loaded_band_id = None
            self._generation += 1
            self._publish(CalendarState.initial(self._today(), error=NO_BAND_SELECTED))
            return self._state

        self._band_id = band_id
        if band_id == self._last_loaded_band_id:
            return self._state

        self._last_loaded_band_id = band_id
        return await self.load_events()

    # Loading

    @BaseService.measure_operation("load_events")
    async def load_events(self) -> CalendarState:
        """
        Run the full fetch-aggregate-publish pipeline for the active band.

        Without an active band this is a no-op.
        """
        band_id = self._band_id
        if not band_id:
            return self._state

        self._generation += 1
        generation = self._generation
        self._publish(
            self._state.copy_with(band_id=band_id, status=LoadStatus.LOADING, clear_error=True)
        )

        try:
            events, markers = await self._run_pipeline(band_id)
        except Exception as e:
            failure = CalendarFetchError(band_id, e)
            if not self._is_current(generation, band_id):
                self.logger.info(f"[CALENDAR] Dropping failure from stale load of band {band_id}")
                return self._state
            self.logger.error(f"[CALENDAR] Error loading events for band {band_id}: {e}")
            self._publish(
                self._state.copy_with(
                    status=LoadStatus.ERROR,
                    all_events=(),
                    markers={},
                    error=failure.message,
                )
            )
            return self._state

        if not self._is_current(generation, band_id):
            self.logger.info(
                f"[CALENDAR] Discarding stale results for band {band_id} "
                f"(generation {generation}, current {self._generation})"
            )
            return self._state

        # Stale loads never write the cache
        self.cache.put(band_id, events)
        self._publish(
            self._state.copy_with(
                band_id=band_id,
                status=LoadStatus.LOADED,
                all_events=tuple(events),
                markers=markers,
                clear_error=True,
            )
        )
        return self._state

    async def refresh(self) -> CalendarState:
        return await self.load_events()

    def _is_current(self, generation: int, band_id: str) -> bool:
        return generation == self._generation and band_id == self._band_id

    async def _run_pipeline(
        self, band_id: str
    ) -> Tuple[List[CalendarEvent], MarkerMap]:
        gigs, rehearsals, block_outs = await asyncio.gather(
            self.repository.fetch_gigs_for_band(band_id),
            self.repository.fetch_rehearsals_for_band(band_id),
            self.repository.fetch_block_outs_for_band(band_id),
        )

        user_names = await self._fetch_user_names(block_outs)

        with self.measure_operation_context("aggregate_events"):
            spans = group_block_outs_into_spans(
                block_outs, user_names, fallback_name=self.settings.fallback_member_name
            )
            events = sort_events(
                [
                    *(CalendarEvent.from_gig(gig) for gig in gigs),
                    *(CalendarEvent.from_rehearsal(rehearsal) for rehearsal in rehearsals),
                    *(CalendarEvent.from_block_out_span(span) for span in spans),
                ]
            )
            markers = build_calendar_markers(
                gigs, rehearsals, [BlockOutRange.from_span(span) for span in spans]
            )

        self.logger.info(
            f"[CALENDAR] Loaded {len(gigs)} gigs, {len(rehearsals)} rehearsals, "
            f"{len(block_outs)} block outs ({len(spans)} spans) for band {band_id}"
        )
        return events, markers

    async def _fetch_user_names(self, block_outs: Sequence[BlockOutRecord]) -> Dict[str, str]:
        """Display names for block-out authors; failures degrade to no names."""
        if not block_outs:
            return {}

        user_ids = sorted({block_out.user_id for block_out in block_outs})
        try:
            return dict(await self.repository.resolve_user_display_names(user_ids))
        except Exception as e:
            self.logger.warning(f"[CALENDAR] Failed to fetch user names: {e}")
            return {}

    # Cache access

    def get_cached_month(self, year: int, month: int) -> Optional[MonthData]:
        """Cached events for a month of the active band, if fresh."""
        if not self._band_id:
            return None
        return self.cache.get(self._band_id, year, month)

    async def invalidate_and_refresh(self, band_id: str) -> CalendarState:
        """
        Forget cached months for a band after an external mutation.

        Reloads when that band is the active one.
        """
        self.cache.invalidate(band_id)
        if band_id != self._band_id:
            return self._state
        return await self.load_events()

    def clear_cache(self) -> None:
        self.cache.clear()

    # Month navigation

    def previous_month(self) -> CalendarState:
        self._publish(
            self._state.copy_with(selected_month=shift_month(self._state.selected_month, -1))
        )
        return self._state

    def next_month(self) -> CalendarState:
        self._publish(
            self._state.copy_with(selected_month=shift_month(self._state.selected_month, 1))
        )
        return self._state

    def go_to_today(self) -> CalendarState:
        self._publish(self._state.copy_with(selected_month=self._today()))
        return self._state

    def reset(self) -> CalendarState:
        """Clear the cache and return to a fresh state without a band."""
        self.clear_cache()
        self._band_id = None
        self._last_loaded_band_id = None
        self._generation += 1
        self._publish(CalendarState.initial(self._today()))
        return self._state
