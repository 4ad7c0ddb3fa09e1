"""
Events router — telemetry ingest and the event log.

POST /events  — Estimate and record one telemetry sample
GET  /events  — Event records for a date range
"""
from __future__ import annotations

from fastapi import APIRouter, Depends, Query, status

from curbcarbon.core.deps import get_events, get_tracker
from curbcarbon.schemas.common import ErrorResponse, RangeKey
from curbcarbon.schemas.telemetry import (
    EventListResponse,
    EventRecordResponse,
    TelemetryRequest,
)
from curbcarbon.services.records import EventRecord, range_bounds_ms
from curbcarbon.services.store import SqlEventStore
from curbcarbon.services.tracker import Tracker

router = APIRouter(prefix="/events", tags=["events"])


def _record_to_response(record: EventRecord) -> EventRecordResponse:
    return EventRecordResponse(**record.to_dict())


# ---------------------------------------------------------------------------
# POST /events
# ---------------------------------------------------------------------------

@router.post(
    "",
    response_model=EventRecordResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Record a telemetry sample",
    responses={
        201: {"description": "Event estimated and appended to the log."},
        422: {"model": ErrorResponse, "description": "Validation error."},
    },
)
async def record_event(payload: TelemetryRequest, tracker: Tracker = Depends(get_tracker)):
    """
    Convert measured activity into grams of CO2 and append an Event Record.

    - **type** is derived from `platform` unless a valid category is given.
    - Device draw comes from `deviceWatts`, else the stored device class.
    - Grid intensity comes from `carbonIntensity`, else the regional grid
      provider (cached for 10 minutes). Without regional data the global
      baseline of 475 gCO2/kWh applies.

    The grid context used is frozen into `data` so later reads do not
    depend on the provider.
    """
    record = await tracker.process(payload.to_payload())
    return _record_to_response(record)


# ---------------------------------------------------------------------------
# GET /events
# ---------------------------------------------------------------------------

@router.get(
    "",
    response_model=EventListResponse,
    summary="List event records for a date range",
)
def list_events(
    range: RangeKey = Query(default="today", description="today | week | month"),
    events: SqlEventStore = Depends(get_events),
):
    """Event records with timestamps inside the range, oldest first."""
    items = events.in_range(*range_bounds_ms(range))
    return EventListResponse(
        range=range,
        total=len(items),
        items=[_record_to_response(r) for r in items],
    )
