"""
Block-out span grouping.

Raw block-outs are stored one row per member per day. For display they are
coalesced into spans: a maximal run of consecutive days for one member with
the same reason. Reasons are compared exactly (no trimming, no case folding),
so "vacation" and "vacation " start separate spans.
"""

from datetime import date, timedelta
import logging
from typing import Iterable, List, Mapping, Optional

from .config import DEFAULT_MEMBER_NAME
from .models import BlockOutSpan
from .schemas import BlockOutRecord

logger = logging.getLogger(__name__)

_ONE_DAY = timedelta(days=1)


def _is_next_day(previous: date, candidate: date) -> bool:
    return candidate - previous == _ONE_DAY


def group_block_outs_into_spans(
    records: Iterable[BlockOutRecord],
    user_names: Optional[Mapping[str, str]] = None,
    fallback_name: str = DEFAULT_MEMBER_NAME,
) -> List[BlockOutSpan]:
    """
    Group per-day block-out records into contiguous spans.

    Args:
        records: Block-out rows for one band, in any order
        user_names: Display names keyed by user id
        fallback_name: Name used when a user id has no resolved name

    Returns:
        Spans ordered by (user_id, start_date)
    """
    names = user_names or {}
    ordered = sorted(records, key=lambda r: (r.user_id, r.date))
    if not ordered:
        return []

    spans: List[BlockOutSpan] = []

    def close(start: BlockOutRecord, end: BlockOutRecord) -> None:
        spans.append(
            BlockOutSpan(
                start_date=start.date,
                end_date=end.date,
                reason=start.reason,
                user_id=start.user_id,
                user_name=names.get(start.user_id) or fallback_name,
            )
        )

    span_start = ordered[0]
    span_end = ordered[0]
    for record in ordered[1:]:
        if (
            record.user_id == span_start.user_id
            and record.reason == span_start.reason
            and _is_next_day(span_end.date, record.date)
        ):
            span_end = record
            continue
        close(span_start, span_end)
        span_start = record
        span_end = record

    close(span_start, span_end)

    logger.debug(f"Grouped {len(ordered)} block-out rows into {len(spans)} spans")
    return spans


def expand_span_to_records(span: BlockOutSpan, band_id: str) -> List[BlockOutRecord]:
    """Expand a span back into one synthetic record per covered day."""
    return [
        BlockOutRecord(
            id=f"{span.user_id}_{day.isoformat()}",
            user_id=span.user_id,
            band_id=band_id,
            date=day,
            reason=span.reason,
        )
        for day in span.days()
    ]
