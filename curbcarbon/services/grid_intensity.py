"""
Grid intensity provider — regional carbon intensity from Electricity Maps.

get_realtime_grid_intensity() resolution order
----------------------------------------------
  1. Cache younger than the TTL (10 min)          → return it, no network.
  2. A refresh already in flight                  → join it.
  3. No auth token (stored or configured)         → stale cache or None.
  4. Resolve location, GET the latest intensity, write a fresh cache entry.
  5. Any failure in 4                             → stale cache or None.

At most one outbound fetch runs at any time: refreshes go through a shared
SingleFlight, so events that all find the cache stale at once share a
single request. Failures never propagate to callers.

grid_multiplier(intensity) = intensity / BASELINE_INTENSITY (3 dp), used to
scale a baseline-computed estimate to regional conditions.
"""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Any, Callable, Optional

import httpx

from curbcarbon.core.config import settings
from curbcarbon.core.errors import GridIntensityError
from curbcarbon.services.emissions import BASELINE_INTENSITY
from curbcarbon.services.location import Location, LocationResolver
from curbcarbon.services.records import now_ms
from curbcarbon.services.single_flight import SingleFlight
from curbcarbon.services.store import KeyValueStore, StoreKey

logger = logging.getLogger(__name__)

# First numeric match wins.
INTENSITY_FIELDS = ("carbonIntensity", "carbonIntensityAvg", "intensity")

ZONE_NAMES: dict[str, str] = {
    # United States
    "US-NE-ISNE": "New England ISO",
    "US-NEISO": "New England ISO",
    "US-CAL": "California",
    "US-MIDA": "Mid-Atlantic",
    "US-NY": "New York",
    "US-PJM": "PJM Interconnection",
    "US-TEX": "Texas",
    "US-NW": "Northwest",
    "US-SE": "Southeast",
    "US-CENT": "Central",
    "US-FLA": "Florida",
    "US-MIDW": "Midwest",
    "US-CAR": "Carolinas",
    "US-TEN": "Tennessee",
    # Europe
    "GB": "Great Britain",
    "DE": "Germany",
    "FR": "France",
    "ES": "Spain",
    "IT": "Italy",
    "NL": "Netherlands",
    "BE": "Belgium",
    "CH": "Switzerland",
    "AT": "Austria",
    "DK": "Denmark",
    "NO": "Norway",
    "SE": "Sweden",
    "FI": "Finland",
    "PL": "Poland",
    "CZ": "Czech Republic",
    # Canada
    "CA-ON": "Ontario",
    "CA-QC": "Quebec",
    "CA-AB": "Alberta",
    "CA-BC": "British Columbia",
    # Australia
    "AU-NSW": "New South Wales",
    "AU-VIC": "Victoria",
    "AU-QLD": "Queensland",
}


def zone_display_name(zone: Optional[str]) -> Optional[str]:
    if zone is None:
        return None
    return ZONE_NAMES.get(zone, zone)


def _is_number(value: Any) -> bool:
    return (
        isinstance(value, (int, float))
        and not isinstance(value, bool)
        and math.isfinite(value)
    )


def grid_multiplier(intensity: Any, baseline: float = BASELINE_INTENSITY) -> Optional[float]:
    if not _is_number(intensity) or intensity < 0 or baseline <= 0:
        return None
    return round(intensity / baseline, 3)


@dataclass(frozen=True)
class GridIntensity:
    intensity: float                  # gCO2/kWh
    zone: Optional[str]
    updated_at: int                   # epoch ms
    is_estimated: Optional[bool]

    def to_dict(self) -> dict[str, Any]:
        return {
            "intensity": self.intensity,
            "zone": self.zone,
            "updatedAt": self.updated_at,
            "isEstimated": self.is_estimated,
        }

    @classmethod
    def parse(cls, payload: Any) -> Optional["GridIntensity"]:
        if not isinstance(payload, dict):
            return None
        intensity = payload.get("intensity")
        updated_at = payload.get("updatedAt")
        if not _is_number(intensity) or not _is_number(updated_at):
            return None
        zone = payload.get("zone")
        is_estimated = payload.get("isEstimated")
        return cls(
            intensity=float(intensity),
            zone=zone if isinstance(zone, str) else None,
            updated_at=int(updated_at),
            is_estimated=is_estimated if isinstance(is_estimated, bool) else None,
        )


def parse_intensity_response(data: Any, fetched_at: int) -> GridIntensity:
    """Extract a cache entry from an Electricity Maps JSON body."""
    if not isinstance(data, dict):
        raise GridIntensityError("Grid intensity response is not a JSON object.")
    intensity = next((data[f] for f in INTENSITY_FIELDS if _is_number(data.get(f))), None)
    if intensity is None:
        raise GridIntensityError(
            "Grid intensity response missing numeric carbon intensity.",
            details={"fields": list(INTENSITY_FIELDS)},
        )
    zone = data.get("zone")
    is_estimated = data.get("isEstimated")
    return GridIntensity(
        intensity=float(intensity),
        zone=zone if isinstance(zone, str) else None,
        updated_at=fetched_at,
        is_estimated=is_estimated if isinstance(is_estimated, bool) else None,
    )


class GridIntensityProvider:
    def __init__(
        self,
        store: KeyValueStore,
        locations: LocationResolver,
        client: Optional[httpx.AsyncClient] = None,
        token: Optional[str] = None,
        url: str = settings.ELECTRICITY_MAPS_URL,
        fallback_zone: str = settings.GRID_FALLBACK_ZONE,
        ttl_seconds: int = settings.GRID_INTENSITY_TTL_SECONDS,
        timeout_seconds: float = settings.GRID_FETCH_TIMEOUT_SECONDS,
        clock: Callable[[], int] = now_ms,
        flight: Optional[SingleFlight[GridIntensity]] = None,
    ):
        self._store = store
        self._locations = locations
        self._client = client
        self._configured_token = token if token is not None else settings.ELECTRICITY_MAPS_TOKEN
        self._url = url
        self._fallback_zone = fallback_zone
        self._ttl_ms = ttl_seconds * 1000
        self._timeout = timeout_seconds
        self._clock = clock
        # share one flight across request-scoped providers to keep the guard process-wide
        self._flight = flight if flight is not None else SingleFlight()

    # -- cache ----------------------------------------------------------

    def cached(self) -> Optional[GridIntensity]:
        return GridIntensity.parse(self._store.get(StoreKey.GRID_INTENSITY_CACHE))

    def is_fresh(self, entry: GridIntensity) -> bool:
        return self._clock() - entry.updated_at < self._ttl_ms

    def _token(self) -> Optional[str]:
        stored = self._store.get(StoreKey.GRID_TOKEN) or {}
        for candidate in (stored.get("token"), self._configured_token):
            if isinstance(candidate, str) and candidate.strip():
                return candidate.strip()
        return None

    # -- public ---------------------------------------------------------

    async def get_realtime_grid_intensity(self) -> Optional[GridIntensity]:
        cached = self.cached()
        if cached is not None and self.is_fresh(cached):
            return cached

        if self._flight.in_flight:
            try:
                return await self._flight.join()
            except Exception as exc:
                logger.warning(f"Shared grid refresh failed, using cache: {exc}")
                return cached

        token = self._token()
        if token is None:
            return cached

        try:
            return await self._flight.run(lambda: self._refresh(token))
        except Exception as exc:
            logger.warning(f"Grid intensity refresh failed, using cache: {exc}")
            return cached

    # -- refresh --------------------------------------------------------

    async def _refresh(self, token: str) -> GridIntensity:
        location = await self._locations.get_best_available_location()
        previous = self.cached()
        stamp = self._clock()
        if previous is not None and stamp <= previous.updated_at:
            stamp = previous.updated_at + 1
        fresh = await self._fetch(token, location, stamp)
        self._store.put(StoreKey.GRID_INTENSITY_CACHE, fresh.to_dict())
        logger.info(f"Grid intensity refreshed: {fresh.intensity} gCO2/kWh zone={fresh.zone}")
        return fresh

    def _query(self, location: Optional[Location]) -> dict[str, Any]:
        if location is not None:
            return {"lat": location.lat, "lon": location.lon}
        return {"zone": self._fallback_zone}

    async def _fetch(
        self,
        token: str,
        location: Optional[Location],
        fetched_at: int,
    ) -> GridIntensity:
        params = self._query(location)
        headers = {"auth-token": token}
        if self._client is not None:
            response = await self._client.get(self._url, params=params, headers=headers)
        else:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                response = await client.get(self._url, params=params, headers=headers)

        if not response.is_success:
            raise GridIntensityError(
                f"Electricity Maps request failed with status {response.status_code}",
                details={"status": response.status_code},
            )
        try:
            data = response.json()
        except ValueError as exc:
            raise GridIntensityError("Grid intensity response is not valid JSON.") from exc
        return parse_intensity_response(data, fetched_at)
