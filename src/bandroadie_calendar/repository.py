"""
Data access for calendar sources.

CalendarRepository is the contract CalendarService consumes. The Supabase
implementation talks to PostgREST directly over httpx.

BAND ISOLATION: every band-scoped fetch requires a non-empty band id.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, List, Mapping, Protocol, Sequence, TypeVar

import httpx
from pydantic import BaseModel, SecretStr, ValidationError

from .config import Settings, get_settings
from .exceptions import (
    BackendAuthError,
    BackendConnectionError,
    BackendNotFoundError,
    BackendRequestError,
    NoBandSelectedError,
)
from .schemas import BlockOutRecord, Gig, Rehearsal, UserNameRow

logger = logging.getLogger(__name__)

RowT = TypeVar("RowT", bound=BaseModel)

GIG_COLUMNS = (
    "id,band_id,name,date,start_time,end_time,location,"
    "setlist_id,setlist_name,notes,is_potential"
)


class CalendarRepository(Protocol):
    """Sources the calendar aggregates for one band."""

    async def fetch_gigs_for_band(self, band_id: str) -> List[Gig]: ...

    async def fetch_rehearsals_for_band(self, band_id: str) -> List[Rehearsal]: ...

    async def fetch_block_outs_for_band(self, band_id: str) -> List[BlockOutRecord]: ...

    async def resolve_user_display_names(self, user_ids: Sequence[str]) -> Dict[str, str]: ...


def _secret_value(value: SecretStr | str | None) -> str:
    if value is None:
        return ""
    if isinstance(value, SecretStr):
        return value.get_secret_value()
    return str(value)


def _require_band(band_id: str | None) -> str:
    if not band_id:
        raise NoBandSelectedError()
    return band_id


class SupabaseCalendarRepository:
    """PostgREST-backed CalendarRepository."""

    def __init__(
        self,
        settings: Settings | None = None,
        http: httpx.AsyncClient | None = None,
    ) -> None:
        self.settings = settings or get_settings()
        self.http = http or httpx.AsyncClient(
            base_url=f"{self.settings.supabase_url}/rest/v1",
            timeout=httpx.Timeout(self.settings.request_timeout_seconds),
        )

    async def aclose(self) -> None:
        await self.http.aclose()

    async def __aenter__(self) -> "SupabaseCalendarRepository":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    def _headers(self) -> Dict[str, str]:
        api_key = _secret_value(self.settings.supabase_anon_key)
        token = _secret_value(self.settings.supabase_access_token) or api_key
        return {
            "apikey": api_key,
            "Authorization": f"Bearer {token}",
            "Accept": "application/json",
        }

    async def _select(self, table: str, params: Mapping[str, str]) -> List[Dict[str, Any]]:
        try:
            response = await self.http.get(f"/{table}", params=dict(params), headers=self._headers())
        except httpx.TimeoutException as exc:
            raise BackendConnectionError(f"backend_timeout: Request to {table} timed out") from exc
        except httpx.HTTPError as exc:
            raise BackendConnectionError(f"backend_connection_failed: {exc}") from exc

        if response.status_code in {401, 403}:
            raise BackendAuthError("backend_auth_failed")
        if response.status_code == 404:
            raise BackendNotFoundError(f"backend_not_found: {table}")
        if response.status_code >= 400:
            raise BackendRequestError(f"backend_error_{response.status_code}")

        try:
            payload = response.json()
        except ValueError as exc:
            raise BackendRequestError(f"backend_invalid_json: {table}") from exc
        if not isinstance(payload, list):
            raise BackendRequestError(f"backend_unexpected_payload: {table}")
        return payload

    @staticmethod
    def _parse_rows(model: type[RowT], rows: Iterable[Dict[str, Any]], table: str) -> List[RowT]:
        try:
            return [model.model_validate(row) for row in rows]
        except ValidationError as exc:
            raise BackendRequestError(f"backend_invalid_row: {table}: {exc}") from exc

    async def fetch_gigs_for_band(self, band_id: str) -> List[Gig]:
        band_id = _require_band(band_id)
        rows = await self._select(
            "gigs",
            {"select": GIG_COLUMNS, "band_id": f"eq.{band_id}", "order": "date.asc"},
        )
        gigs = self._parse_rows(Gig, rows, "gigs")
        logger.debug(f"Fetched {len(gigs)} gigs for band {band_id}")
        return gigs

    async def fetch_rehearsals_for_band(self, band_id: str) -> List[Rehearsal]:
        band_id = _require_band(band_id)
        rows = await self._select(
            "rehearsals",
            {"select": "*", "band_id": f"eq.{band_id}", "order": "date.asc"},
        )
        rehearsals = self._parse_rows(Rehearsal, rows, "rehearsals")
        logger.debug(f"Fetched {len(rehearsals)} rehearsals for band {band_id}")
        return rehearsals

    async def fetch_block_outs_for_band(self, band_id: str) -> List[BlockOutRecord]:
        band_id = _require_band(band_id)
        rows = await self._select(
            "block_dates",
            {
                "select": "id,user_id,band_id,date,reason",
                "band_id": f"eq.{band_id}",
                "order": "date.asc",
            },
        )
        block_outs = self._parse_rows(BlockOutRecord, rows, "block_dates")
        logger.debug(f"Fetched {len(block_outs)} block dates for band {band_id}")
        return block_outs

    async def resolve_user_display_names(self, user_ids: Sequence[str]) -> Dict[str, str]:
        """
        Display names for a batch of users.

        Users without a row are left out; callers apply the fallback name.
        """
        unique_ids = sorted({user_id for user_id in user_ids if user_id})
        if not unique_ids:
            return {}

        rows = await self._select(
            "users",
            {"select": "id,first_name,last_name", "id": f"in.({','.join(unique_ids)})"},
        )
        fallback = self.settings.fallback_member_name
        return {
            row.id: row.display_name(fallback)
            for row in self._parse_rows(UserNameRow, rows, "users")
        }
