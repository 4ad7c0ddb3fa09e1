"""
Location resolver.

get_best_available_location() preference order:
  1. cached location younger than LOCATION_FRESH_SECONDS
  2. live lookup through the injected LocationSource, bounded by
     LOCATION_TIMEOUT_SECONDS (a timeout counts as "unavailable");
     a live hit replaces the cache
  3. any cached location, however old
  4. None

Never raises: lookup failures degrade to the next option.
"""
from __future__ import annotations

import asyncio
import logging
import math
from dataclasses import dataclass
from typing import Any, Callable, Optional, Protocol

import httpx

from curbcarbon.core.config import settings
from curbcarbon.services.records import now_ms
from curbcarbon.services.store import KeyValueStore, StoreKey

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Location:
    lat: float
    lon: float
    updated_at: Optional[int] = None    # epoch ms, set on cached entries

    @classmethod
    def parse(cls, payload: Any) -> Optional["Location"]:
        """Build from {lat, lon[, updatedAt]}; None unless both coords are finite."""
        if not isinstance(payload, dict):
            return None
        try:
            lat = float(payload.get("lat"))
            lon = float(payload.get("lon"))
        except (TypeError, ValueError):
            return None
        if not (math.isfinite(lat) and math.isfinite(lon)):
            return None
        updated_at = payload.get("updatedAt")
        return cls(
            lat=lat,
            lon=lon,
            updated_at=updated_at if isinstance(updated_at, (int, float)) else None,
        )

    def coords(self) -> "Location":
        return Location(lat=self.lat, lon=self.lon)


class LocationSource(Protocol):
    async def request_location(self) -> Optional[Location]: ...


class IpGeolocationSource:
    """Approximate location from the public IP; no permission prompt needed."""

    def __init__(
        self,
        url: str = settings.GEOLOCATION_URL,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self._url = url
        self._client = client

    async def request_location(self) -> Optional[Location]:
        try:
            if self._client is not None:
                response = await self._client.get(self._url)
            else:
                async with httpx.AsyncClient(timeout=settings.LOCATION_TIMEOUT_SECONDS) as client:
                    response = await client.get(self._url)
            response.raise_for_status()
            data = response.json()
        except (httpx.HTTPError, ValueError) as exc:
            logger.warning(f"IP geolocation failed: {exc}")
            return None
        if not isinstance(data, dict):
            return None
        return Location.parse({"lat": data.get("latitude"), "lon": data.get("longitude")})


class LocationResolver:
    def __init__(
        self,
        store: KeyValueStore,
        source: Optional[LocationSource] = None,
        fresh_seconds: int = settings.LOCATION_FRESH_SECONDS,
        timeout_seconds: float = settings.LOCATION_TIMEOUT_SECONDS,
        clock: Callable[[], int] = now_ms,
    ):
        self._store = store
        self._source = source
        self._fresh_ms = fresh_seconds * 1000
        self._timeout = timeout_seconds
        self._clock = clock

    def cached(self) -> Optional[Location]:
        return Location.parse(self._store.get(StoreKey.LAST_KNOWN_LOCATION))

    def remember(self, location: Location) -> None:
        self._store.put(StoreKey.LAST_KNOWN_LOCATION, {
            "lat": location.lat,
            "lon": location.lon,
            "updatedAt": self._clock(),
        })

    async def get_best_available_location(self) -> Optional[Location]:
        cached = self.cached()
        if cached and cached.updated_at is not None:
            if self._clock() - cached.updated_at < self._fresh_ms:
                return cached.coords()

        live = await self._request_live()
        if live is not None:
            self.remember(live)
            return live.coords()

        if cached is not None:
            return cached.coords()
        return None

    async def _request_live(self) -> Optional[Location]:
        if self._source is None:
            return None
        try:
            return await asyncio.wait_for(self._source.request_location(), self._timeout)
        except asyncio.TimeoutError:
            logger.warning(f"Live location lookup timed out after {self._timeout}s")
            return None
        except Exception as exc:  # collaborator failure is treated as "denied"
            logger.warning(f"Live location lookup failed: {exc}")
            return None


async def reverse_geocode(
    lat: float,
    lon: float,
    client: Optional[httpx.AsyncClient] = None,
) -> Optional[str]:
    """"City, State, Country" for a coordinate, or None on any failure."""
    params = {"lat": lat, "lon": lon, "format": "json"}
    headers = {"User-Agent": "curbcarbon/1.0"}
    try:
        if client is not None:
            response = await client.get(settings.GEOCODING_URL, params=params, headers=headers)
        else:
            async with httpx.AsyncClient(timeout=settings.LOCATION_TIMEOUT_SECONDS) as c:
                response = await c.get(settings.GEOCODING_URL, params=params, headers=headers)
        if response.status_code != 200:
            return None
        address = response.json().get("address") or {}
    except (httpx.HTTPError, ValueError, AttributeError) as exc:
        logger.warning(f"Reverse geocoding failed: {exc}")
        return None

    parts = []
    place = address.get("city") or address.get("town") or address.get("village")
    if place:
        parts.append(place)
    if address.get("state"):
        parts.append(address["state"])
    if address.get("country"):
        parts.append(address["country"])
    return ", ".join(parts) if parts else None
