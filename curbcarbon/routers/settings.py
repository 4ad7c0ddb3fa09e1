"""
Settings router.

GET /settings/device      — Device class used for device-energy estimates
PUT /settings/device      — Choose a device class (or "auto")
PUT /settings/grid-token  — Store the Electricity Maps API token
"""
from __future__ import annotations

from fastapi import APIRouter, Depends

from curbcarbon.core.deps import get_store
from curbcarbon.schemas.common import ErrorResponse
from curbcarbon.schemas.settings import (
    DeviceSettingsRequest,
    DeviceSettingsResponse,
    GridTokenRequest,
    GridTokenResponse,
)
from curbcarbon.services.store import SqlKeyValueStore, StoreKey
from curbcarbon.services.tracker import DevicePreferences

router = APIRouter(prefix="/settings", tags=["settings"])


def _device_response(prefs: DevicePreferences) -> DeviceSettingsResponse:
    current = prefs.get()
    return DeviceSettingsResponse(
        device_type=current["deviceType"],
        detected_device=current["detectedDevice"],
        resolved_device=prefs.resolved_type(),
        watts=prefs.watts(),
    )


@router.get(
    "/device",
    response_model=DeviceSettingsResponse,
    summary="Current device class",
)
def get_device(store: SqlKeyValueStore = Depends(get_store)):
    return _device_response(DevicePreferences(store))


@router.put(
    "/device",
    response_model=DeviceSettingsResponse,
    summary="Set the device class",
    responses={422: {"model": ErrorResponse, "description": "Unknown device type."}},
)
def set_device(payload: DeviceSettingsRequest, store: SqlKeyValueStore = Depends(get_store)):
    """
    `auto` uses the detected device when one has been reported, otherwise
    the configured default (laptop, 20 W).
    """
    prefs = DevicePreferences(store)
    prefs.set(payload.device_type, payload.detected_device)
    return _device_response(prefs)


@router.put(
    "/grid-token",
    response_model=GridTokenResponse,
    summary="Store the grid intensity API token",
)
def set_grid_token(payload: GridTokenRequest, store: SqlKeyValueStore = Depends(get_store)):
    """The stored token takes precedence over `ELECTRICITY_MAPS_TOKEN`."""
    store.put(StoreKey.GRID_TOKEN, {"token": payload.token.strip()})
    return GridTokenResponse(configured=bool(payload.token.strip()))
