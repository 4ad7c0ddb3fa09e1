"""
Summary router.

GET /summary/today  — Today's running totals, equivalencies and quick insight
GET /summary/range  — Category / platform totals over today | week | month
"""
from __future__ import annotations

from fastapi import APIRouter, Depends, Query

from curbcarbon.core.deps import get_events
from curbcarbon.schemas.common import RangeKey
from curbcarbon.schemas.summary import (
    EquivalenciesResponse,
    RangeSummaryResponse,
    TodaySummaryResponse,
)
from curbcarbon.services.aggregator import DailySummaryAccumulator, lifetime_totals
from curbcarbon.services.emissions import equivalencies, quick_insight
from curbcarbon.services.records import date_key, now_ms, range_bounds_ms
from curbcarbon.services.store import SqlEventStore

router = APIRouter(prefix="/summary", tags=["summary"])


def _rounded(totals: dict[str, float]) -> dict[str, float]:
    return {k: round(v, 2) for k, v in totals.items()}


# ---------------------------------------------------------------------------
# GET /summary/today
# ---------------------------------------------------------------------------

@router.get(
    "/today",
    response_model=TodaySummaryResponse,
    summary="Today's carbon summary",
)
def today_summary(events: SqlEventStore = Depends(get_events)):
    """
    Read the incrementally maintained Daily Summary for the local calendar
    day. An empty summary (all zeros) is returned when nothing was recorded.
    """
    summary = DailySummaryAccumulator(events).get(date_key(now_ms()))
    total = round(summary.total_carbon, 2)
    return TodaySummaryResponse(
        date=summary.date,
        total_carbon=total,
        by_category=_rounded(summary.by_category),
        by_platform=_rounded(summary.by_platform),
        equivalencies=EquivalenciesResponse(**equivalencies(total)),
        insight=quick_insight(total),
    )


# ---------------------------------------------------------------------------
# GET /summary/range
# ---------------------------------------------------------------------------

@router.get(
    "/range",
    response_model=RangeSummaryResponse,
    summary="Carbon totals for a date range",
)
def range_summary(
    range: RangeKey = Query(default="week", description="today | week | month"),
    events: SqlEventStore = Depends(get_events),
):
    """Fold the event log for the range; every category key is present."""
    start, end = range_bounds_ms(range)
    items = events.in_range(start, end)
    totals = lifetime_totals(items)
    total = round(totals["total_carbon"], 2)
    return RangeSummaryResponse(
        range=range,
        start=start,
        end=end,
        event_count=len(items),
        total_carbon=total,
        by_category=_rounded(totals["by_category"]),
        by_platform=_rounded(totals["by_platform"]),
        equivalencies=EquivalenciesResponse(**equivalencies(total)),
    )
