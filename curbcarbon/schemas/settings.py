"""
Settings and grid schemas.

GET/PUT /settings/device      → DeviceSettingsResponse
PUT     /settings/grid-token  → GridTokenResponse
GET     /grid                 → GridResponse
"""
from typing import Optional

from pydantic import BaseModel, Field


class DeviceSettingsRequest(BaseModel):
    device_type: str = Field(
        description='"auto" | "phone" | "tablet" | "laptop" | "desktop" | "tv"'
    )
    detected_device: Optional[str] = Field(
        default=None, description="Device class detected by the host, used for \"auto\"."
    )


class DeviceSettingsResponse(BaseModel):
    device_type: str
    detected_device: Optional[str]
    resolved_device: str
    watts: float


class GridTokenRequest(BaseModel):
    token: str = Field(min_length=1, max_length=512)


class GridTokenResponse(BaseModel):
    configured: bool


class GridResponse(BaseModel):
    intensity: float = Field(description="gCO2/kWh; the baseline when no regional data.")
    zone: Optional[str]
    zone_name: Optional[str]
    updated_at: Optional[int]
    is_estimated: Optional[bool]
    multiplier: Optional[float]
    is_baseline: bool
    location_name: Optional[str] = Field(
        default=None,
        description="\"City, State, Country\" for the last known location, when resolvable.",
    )
