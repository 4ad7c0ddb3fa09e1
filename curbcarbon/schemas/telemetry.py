"""
Telemetry ingest schemas.

POST /events  → TelemetryRequest → EventRecordResponse
GET  /events  → EventListResponse

Field names on the wire follow the measurement payload (totalMB, videoMB,
timeActive …); snake_case names are accepted too.
"""
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field

from curbcarbon.services.categorizer import Category


class TelemetryRequest(BaseModel):
    """One session/tick of measured browsing activity."""
    model_config = ConfigDict(populate_by_name=True, use_enum_values=True, allow_inf_nan=False)

    platform: Optional[str] = Field(
        default=None,
        max_length=255,
        description="Domain the activity happened on. Defaults to \"unknown\".",
        examples=["www.youtube.com"],
    )
    type: Optional[Category] = Field(
        default=None,
        description="Explicit category. Derived from the platform when omitted.",
    )
    timestamp: Optional[int] = Field(
        default=None, ge=0, description="Epoch milliseconds. Defaults to now."
    )
    total_mb: float = Field(default=0.0, ge=0, alias="totalMB")
    video_mb: float = Field(default=0.0, ge=0, alias="videoMB")
    time_active: float = Field(default=0.0, ge=0, alias="timeActive", description="Minutes.")
    device_watts: Optional[float] = Field(default=None, gt=0, alias="deviceWatts")
    carbon_intensity: Optional[float] = Field(
        default=None, gt=0, alias="carbonIntensity", description="gCO2/kWh override."
    )
    resource_counts: Optional[dict[str, int]] = Field(default=None, alias="resourceCounts")

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


class EventRecordResponse(BaseModel):
    timestamp: int
    type: str
    platform: str
    data: dict[str, Any] = Field(
        description="Telemetry plus the grid context used at calculation time."
    )
    carbon_grams: float = Field(alias="carbonGrams")
    carbon_rate: Optional[float] = Field(
        default=None, alias="carbonRate",
        description="Grams CO2 per active hour.",
    )

    model_config = ConfigDict(populate_by_name=True)


class EventListResponse(BaseModel):
    range: str
    total: int
    items: list[EventRecordResponse]
