"""
FastAPI dependency providers for the core services.

Stores and services are request-scoped (they hold the request's Session).
The grid refresh guard and the daily-summary locks are process-wide, so
concurrent requests share them.
"""
from typing import Optional

import httpx
from fastapi import Depends
from sqlalchemy.orm import Session

from curbcarbon.db.base import get_db
from curbcarbon.services.aggregator import DailySummaryAccumulator, KeyedLocks
from curbcarbon.services.event_bus import bus
from curbcarbon.services.grid_intensity import GridIntensity, GridIntensityProvider
from curbcarbon.services.location import IpGeolocationSource, LocationResolver
from curbcarbon.services.single_flight import SingleFlight
from curbcarbon.services.store import SqlEventStore, SqlKeyValueStore
from curbcarbon.services.tracker import Tracker

grid_flight: SingleFlight[GridIntensity] = SingleFlight()
summary_locks = KeyedLocks()


def get_http_client() -> Optional[httpx.AsyncClient]:
    """Outbound client for grid and location lookups; None opens one per call."""
    return None


def get_store(db: Session = Depends(get_db)) -> SqlKeyValueStore:
    return SqlKeyValueStore(db)


def get_events(db: Session = Depends(get_db)) -> SqlEventStore:
    return SqlEventStore(db)


def get_locations(
    store: SqlKeyValueStore = Depends(get_store),
    client: Optional[httpx.AsyncClient] = Depends(get_http_client),
) -> LocationResolver:
    return LocationResolver(store, source=IpGeolocationSource(client=client))


def get_grid_provider(
    store: SqlKeyValueStore = Depends(get_store),
    locations: LocationResolver = Depends(get_locations),
    client: Optional[httpx.AsyncClient] = Depends(get_http_client),
) -> GridIntensityProvider:
    return GridIntensityProvider(store, locations, client=client, flight=grid_flight)


def get_tracker(
    store: SqlKeyValueStore = Depends(get_store),
    events: SqlEventStore = Depends(get_events),
    grid: GridIntensityProvider = Depends(get_grid_provider),
) -> Tracker:
    return Tracker(
        store,
        events,
        grid,
        bus,
        accumulator=DailySummaryAccumulator(events, locks=summary_locks),
    )
