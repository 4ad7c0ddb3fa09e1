"""
Tracker: the telemetry → EventRecord pipeline.

process(payload)
----------------
  1. Parse telemetry; resolve the category (explicit type if valid, else
     categorize(platform)).
  2. Resolve device watts: payload override > stored device class > default.
  3. Resolve grid intensity: payload override > GridIntensityProvider.
  4. Compute emissions at the baseline intensity, then scale by the grid
     multiplier when regional data is available.
  5. Append the EventRecord (grid context frozen into `data`), update the
     day's summary, publish `event.recorded`.

evaluate_achievements()
-----------------------
  Run the weekly period check, build the achievement context, persist new
  unlocks and publish `achievements.unlocked` when there are any.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Optional

from curbcarbon.core.config import settings
from curbcarbon.core.errors import UnknownDeviceTypeError
from curbcarbon.services.achievements import (
    AchievementBook,
    AchievementContext,
    earned_ids,
)
from curbcarbon.services.aggregator import DailySummaryAccumulator, lifetime_totals
from curbcarbon.services.categorizer import normalize_category
from curbcarbon.services.emissions import (
    BASELINE_INTENSITY,
    DEVICE_WATTS,
    Telemetry,
    carbon_rate,
    total_carbon,
    watts_for_device,
)
from curbcarbon.services.event_bus import EventBus, Topic
from curbcarbon.services.goals import GoalTracker
from curbcarbon.services.grid_intensity import GridIntensityProvider, grid_multiplier
from curbcarbon.services.records import UNKNOWN_PLATFORM, EventRecord, now_ms
from curbcarbon.services.store import EventStore, KeyValueStore, StoreKey

logger = logging.getLogger(__name__)

AUTO_DEVICE = "auto"


# ---------------------------------------------------------------------------
# Device preferences
# ---------------------------------------------------------------------------

class DevicePreferences:
    def __init__(self, store: KeyValueStore, default: str = settings.DEFAULT_DEVICE_TYPE):
        self._store = store
        self._default = default

    def get(self) -> dict[str, Optional[str]]:
        stored = self._store.get(StoreKey.DEVICE_SETTINGS) or {}
        return {
            "deviceType": stored.get("deviceType") or AUTO_DEVICE,
            "detectedDevice": stored.get("detectedDevice"),
        }

    def set(self, device_type: str, detected: Optional[str] = None) -> dict[str, Optional[str]]:
        allowed = [AUTO_DEVICE, *DEVICE_WATTS]
        if device_type not in allowed:
            raise UnknownDeviceTypeError(device_type, allowed)
        if detected is not None and detected not in DEVICE_WATTS:
            raise UnknownDeviceTypeError(detected, list(DEVICE_WATTS))
        current = self.get()
        value = {
            "deviceType": device_type,
            "detectedDevice": detected if detected is not None else current["detectedDevice"],
        }
        self._store.put(StoreKey.DEVICE_SETTINGS, value)
        return value

    def resolved_type(self) -> str:
        prefs = self.get()
        device_type = prefs["deviceType"]
        if device_type == AUTO_DEVICE:
            device_type = prefs["detectedDevice"] or self._default
        return device_type

    def watts(self) -> float:
        return watts_for_device(self.resolved_type())


# ---------------------------------------------------------------------------
# Grid context
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class GridContext:
    intensity: Optional[float]
    zone: Optional[str]
    multiplier: Optional[float]
    is_estimated: Optional[bool]


# ---------------------------------------------------------------------------
# Tracker
# ---------------------------------------------------------------------------

class Tracker:
    def __init__(
        self,
        store: KeyValueStore,
        events: EventStore,
        grid: GridIntensityProvider,
        bus: EventBus,
        accumulator: Optional[DailySummaryAccumulator] = None,
        clock: Callable[[], int] = now_ms,
    ):
        self._store = store
        self._events = events
        self._grid = grid
        self._bus = bus
        self._accumulator = accumulator or DailySummaryAccumulator(events)
        self._clock = clock
        self.devices = DevicePreferences(store)
        self.goals = GoalTracker(store, events, clock=clock)
        self.achievements = AchievementBook(store, clock=clock)

    async def grid_context(self, telemetry: Telemetry) -> GridContext:
        if telemetry.carbon_intensity is not None:
            return GridContext(
                intensity=telemetry.carbon_intensity,
                zone=None,
                multiplier=grid_multiplier(telemetry.carbon_intensity),
                is_estimated=None,
            )
        grid = await self._grid.get_realtime_grid_intensity()
        if grid is None:
            return GridContext(intensity=None, zone=None, multiplier=None, is_estimated=None)
        return GridContext(
            intensity=grid.intensity,
            zone=grid.zone,
            multiplier=grid_multiplier(grid.intensity),
            is_estimated=grid.is_estimated,
        )

    async def process(self, payload: dict[str, Any]) -> EventRecord:
        telemetry = Telemetry.from_payload(payload)
        platform = payload.get("platform") or UNKNOWN_PLATFORM
        category = normalize_category(payload.get("type"), platform)
        watts = telemetry.device_watts or self.devices.watts()
        grid = await self.grid_context(telemetry)

        baseline_grams = total_carbon(telemetry, BASELINE_INTENSITY, watts)
        baseline_rate = carbon_rate(telemetry, BASELINE_INTENSITY, watts)
        if grid.multiplier is not None:
            grams = round(baseline_grams * grid.multiplier, 2)
            rate = round(baseline_rate * grid.multiplier, 2)
        else:
            grams, rate = baseline_grams, baseline_rate

        timestamp = payload.get("timestamp")
        record = EventRecord(
            timestamp=int(timestamp) if isinstance(timestamp, (int, float)) else self._clock(),
            type=category.value,
            platform=platform,
            data={
                **telemetry.to_payload(),
                "deviceWatts": watts,
                "gridIntensity": grid.intensity,
                "gridZone": grid.zone,
                "gridMultiplier": grid.multiplier,
                "gridIsEstimated": grid.is_estimated,
            },
            carbon_grams=grams,
            carbon_rate=rate,
        )

        self._events.append(record)
        await self._accumulator.record(record)
        logger.info(f"Event saved - {grams} g CO2 from {platform} (zone={grid.zone})")
        self._bus.publish(Topic.EVENT_RECORDED, record)
        return record

    def achievement_context(self) -> AchievementContext:
        return AchievementContext(
            goal=self.goals.get_goal(),
            history=self.goals.get_history(),
            lifetime_totals=lifetime_totals(self._events.all()),
            weekly_carbon=self.goals.week_carbon(),
        )

    def evaluate_achievements(self) -> tuple[list[str], list[str]]:
        """Returns (all currently earned ids, ids unlocked by this call)."""
        self.goals.check_period()
        earned = earned_ids(self.achievement_context())
        newly = self.achievements.save_newly_unlocked(earned)
        if newly:
            self._bus.publish(Topic.ACHIEVEMENTS_UNLOCKED, newly)
        return earned, newly
