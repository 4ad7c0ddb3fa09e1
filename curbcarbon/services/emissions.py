"""
Emissions formula engine.

Converts measured browsing telemetry into grams of CO2.

  network = GiB transferred × NETWORK_KWH_PER_GB × grid intensity
  device  = hours active × kW drawn × grid intensity
  total   = network + device

Every function here is pure and total: negative, missing or non-finite
inputs contribute zero instead of raising or producing NaN. Results are
rounded to 2 decimals (grams) at each public boundary.

Video bytes are part of `total_mb` and are charged at the network rate only;
no separate decoding surcharge is applied.
"""
from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Optional


# ---------------------------------------------------------------------------
# Constants (IEA 2024, Carbon Trust 2021)
# ---------------------------------------------------------------------------

NETWORK_KWH_PER_GB = 0.016
BASELINE_INTENSITY = 475.0           # gCO2/kWh, global average
BYTES_PER_MB = 1024 * 1024
BYTES_PER_GB = 1024 ** 3

AVERAGE_DEVICE_WATTS = 20.0
DEVICE_WATTS: dict[str, float] = {
    "phone": 5.0,
    "tablet": 10.0,
    "laptop": 20.0,
    "desktop": 40.0,
    "tv": 100.0,
}

GRAMS_PER_MILE_DRIVEN = 404.0
GRAMS_PER_PHONE_CHARGE = 8.8
GRAMS_PER_TREE_YEAR = 21_000.0


# ---------------------------------------------------------------------------
# Input type
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Telemetry:
    """One session/tick of measured browsing activity."""
    total_mb: float = 0.0
    video_mb: float = 0.0
    time_active: float = 0.0              # minutes
    device_watts: Optional[float] = None
    carbon_intensity: Optional[float] = None
    resource_counts: Optional[dict[str, int]] = None

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> "Telemetry":
        """Build from the camelCase payload emitted by the measurement side."""
        return cls(
            total_mb=_finite_or_zero(payload.get("totalMB")),
            video_mb=_finite_or_zero(payload.get("videoMB")),
            time_active=_finite_or_zero(payload.get("timeActive")),
            device_watts=_positive_or_none(payload.get("deviceWatts")),
            carbon_intensity=_positive_or_none(payload.get("carbonIntensity")),
            resource_counts=payload.get("resourceCounts"),
        )

    def to_payload(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "totalMB": self.total_mb,
            "videoMB": self.video_mb,
            "timeActive": self.time_active,
        }
        if self.device_watts is not None:
            payload["deviceWatts"] = self.device_watts
        if self.carbon_intensity is not None:
            payload["carbonIntensity"] = self.carbon_intensity
        if self.resource_counts is not None:
            payload["resourceCounts"] = self.resource_counts
        return payload


# ---------------------------------------------------------------------------
# Numeric guards
# ---------------------------------------------------------------------------

def _finite_or_zero(value: Any) -> float:
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0.0
    if not math.isfinite(number):
        return 0.0
    return number


def _positive_or_none(value: Any) -> Optional[float]:
    number = _finite_or_zero(value)
    return number if number > 0 else None


def _intensity_or_baseline(intensity: Any) -> float:
    return _positive_or_none(intensity) or BASELINE_INTENSITY


def _watts_or_average(watts: Any) -> float:
    return _positive_or_none(watts) or AVERAGE_DEVICE_WATTS


# ---------------------------------------------------------------------------
# Formulas
# ---------------------------------------------------------------------------

def network_carbon(bytes_transferred: Any, intensity: Any = None) -> float:
    """Grams CO2 for moving `bytes_transferred` over the network."""
    size = _finite_or_zero(bytes_transferred)
    if size <= 0:
        return 0.0
    kwh = (size / BYTES_PER_GB) * NETWORK_KWH_PER_GB
    return round(kwh * _intensity_or_baseline(intensity), 2)


def device_carbon(active_minutes: Any, watts: Any = None, intensity: Any = None) -> float:
    """Grams CO2 for running the device for `active_minutes`."""
    minutes = _finite_or_zero(active_minutes)
    if minutes <= 0:
        return 0.0
    kwh = (minutes / 60) * (_watts_or_average(watts) / 1000)
    return round(kwh * _intensity_or_baseline(intensity), 2)


def total_carbon(
    telemetry: Telemetry,
    intensity: Any = None,
    watts: Any = None,
) -> float:
    return carbon_breakdown(telemetry, intensity, watts)["total"]


def carbon_rate(
    telemetry: Telemetry,
    intensity: Any = None,
    watts: Any = None,
) -> float:
    """Grams CO2 per active hour; 0 when no active time was measured."""
    minutes = _finite_or_zero(telemetry.time_active)
    if minutes <= 0:
        return 0.0
    return round(total_carbon(telemetry, intensity, watts) / (minutes / 60), 2)


def carbon_breakdown(
    telemetry: Telemetry,
    intensity: Any = None,
    watts: Any = None,
) -> dict[str, float]:
    network = network_carbon(_finite_or_zero(telemetry.total_mb) * BYTES_PER_MB, intensity)
    device = device_carbon(telemetry.time_active, watts, intensity)
    return {
        "network": network,
        "device": device,
        "total": round(network + device, 2),
    }


def equivalencies(total_grams: Any) -> dict[str, float]:
    """Everyday comparisons for an amount of CO2."""
    grams = max(_finite_or_zero(total_grams), 0.0)
    return {
        "miles_driven": round(grams / GRAMS_PER_MILE_DRIVEN, 2),
        "phones_charged": round(grams / GRAMS_PER_PHONE_CHARGE, 2),
        "trees_needed": round(grams / GRAMS_PER_TREE_YEAR, 4),
    }


def watts_for_device(device_type: Optional[str]) -> float:
    if device_type is None:
        return AVERAGE_DEVICE_WATTS
    return DEVICE_WATTS.get(device_type, AVERAGE_DEVICE_WATTS)


TYPICAL_DAY_GRAMS = 1000.0


def quick_insight(today_grams: Any, typical: float = TYPICAL_DAY_GRAMS) -> str:
    """One-line comparison of today's total against a typical browsing day."""
    grams = max(_finite_or_zero(today_grams), 0.0)
    if grams <= 0:
        return "No browsing activity recorded yet today."
    percent = (grams / typical) * 100
    if percent < 100:
        return f"Today's browsing is {100 - percent:.0f}% below a typical day."
    if percent == 100:
        return "Today's browsing matches a typical day."
    return f"Today's browsing is {percent - 100:.0f}% above a typical day."
