"""
Grid router.

GET /grid  — Current regional grid intensity (or the global baseline)
"""
from __future__ import annotations

from typing import Optional

import httpx
from fastapi import APIRouter, Depends

from curbcarbon.core.deps import get_grid_provider, get_http_client, get_locations
from curbcarbon.schemas.settings import GridResponse
from curbcarbon.services.emissions import BASELINE_INTENSITY
from curbcarbon.services.grid_intensity import (
    GridIntensityProvider,
    grid_multiplier,
    zone_display_name,
)
from curbcarbon.services.location import LocationResolver, reverse_geocode

router = APIRouter(prefix="/grid", tags=["grid"])


@router.get(
    "",
    response_model=GridResponse,
    summary="Current grid carbon intensity",
)
async def current_grid(
    grid: GridIntensityProvider = Depends(get_grid_provider),
    locations: LocationResolver = Depends(get_locations),
    client: Optional[httpx.AsyncClient] = Depends(get_http_client),
):
    """
    Returns the cached regional intensity when it is younger than 10 minutes,
    otherwise refreshes it from Electricity Maps. Without a token, a location
    or a reachable API the last known value is returned, and with no value at
    all the response reports the 475 gCO2/kWh baseline (`is_baseline: true`).

    `location_name` is reverse-geocoded from the last known location and is
    `null` when there is none or the geocoder is unreachable.
    """
    current = await grid.get_realtime_grid_intensity()

    location_name = None
    known = locations.cached()
    if known is not None:
        location_name = await reverse_geocode(known.lat, known.lon, client=client)

    if current is None:
        return GridResponse(
            intensity=BASELINE_INTENSITY,
            zone=None,
            zone_name=None,
            updated_at=None,
            is_estimated=None,
            multiplier=None,
            is_baseline=True,
            location_name=location_name,
        )
    return GridResponse(
        intensity=current.intensity,
        zone=current.zone,
        zone_name=zone_display_name(current.zone),
        updated_at=current.updated_at,
        is_estimated=current.is_estimated,
        multiplier=grid_multiplier(current.intensity),
        is_baseline=False,
        location_name=location_name,
    )
