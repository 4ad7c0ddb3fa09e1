"""
Event aggregation and the incremental daily summary.

Pure folds over EventRecords:
  aggregate_by_category(events) -> {category: grams}, every category present
  aggregate_by_platform(events) -> {platform: grams}, open-ended keys
  lifetime_totals(events)       -> {total_carbon, by_category, by_platform}
  apply_event(summary, event)   -> summary (mutated and returned)

Sums are order-independent; shuffling the input gives the same totals.

DailySummaryAccumulator wraps apply_event with the store read-modify-write.
apply_event is NOT idempotent: feeding the same record twice counts it twice.
The accumulator serializes updates per day key so concurrent callers cannot
lose increments, but at-most-once delivery remains the caller's contract.
KeyedLocks drops a day's lock once no caller holds or awaits it, so a
long-running process keeps only the locks currently in use.
"""
from __future__ import annotations

import asyncio
import math
from collections import defaultdict
from contextlib import asynccontextmanager
from typing import AsyncIterator, Iterable, Optional

from curbcarbon.services.categorizer import CATEGORIES
from curbcarbon.services.records import (
    UNKNOWN_PLATFORM,
    DailySummary,
    EventRecord,
    date_key,
)
from curbcarbon.services.store import EventStore


def _grams(event: EventRecord) -> float:
    value = event.carbon_grams
    if value is None or not math.isfinite(value):
        return 0.0
    return value


def aggregate_by_category(events: Iterable[EventRecord]) -> dict[str, float]:
    totals: dict[str, float] = {c: 0.0 for c in CATEGORIES}
    for event in events:
        category = event.type or "browsing"
        totals[category] = totals.get(category, 0.0) + _grams(event)
    return totals


def aggregate_by_platform(events: Iterable[EventRecord]) -> dict[str, float]:
    totals: dict[str, float] = defaultdict(float)
    for event in events:
        totals[event.platform or UNKNOWN_PLATFORM] += _grams(event)
    return dict(totals)


def lifetime_totals(events: Iterable[EventRecord]) -> dict:
    events = list(events)
    by_category = aggregate_by_category(events)
    return {
        "total_carbon": sum(by_category.values()),
        "by_category": by_category,
        "by_platform": aggregate_by_platform(events),
    }


def top_platform(platform_totals: dict[str, float]) -> tuple[str, float] | None:
    if not platform_totals:
        return None
    return max(platform_totals.items(), key=lambda item: item[1])


def apply_event(summary: DailySummary, event: EventRecord) -> DailySummary:
    grams = _grams(event)
    category = event.type or "browsing"
    platform = event.platform or UNKNOWN_PLATFORM

    summary.total_carbon += grams
    summary.by_category.setdefault(category, 0.0)
    summary.by_category[category] += grams
    summary.by_platform.setdefault(platform, 0.0)
    summary.by_platform[platform] += grams
    return summary


class KeyedLocks:
    """One asyncio.Lock per key, kept only while something uses it."""

    def __init__(self):
        self._locks: dict[str, asyncio.Lock] = {}
        self._users: dict[str, int] = {}

    def __len__(self) -> int:
        return len(self._locks)

    @asynccontextmanager
    async def hold(self, key: str) -> AsyncIterator[None]:
        lock = self._locks.setdefault(key, asyncio.Lock())
        self._users[key] = self._users.get(key, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._users[key] -= 1
            if self._users[key] == 0:
                del self._users[key]
                del self._locks[key]


class DailySummaryAccumulator:
    """Keeps the per-day DailySummary rows current as events arrive."""

    def __init__(self, store: EventStore, locks: Optional[KeyedLocks] = None):
        self._store = store
        # pass a shared instance when accumulators are created per request
        self._locks = locks if locks is not None else KeyedLocks()

    async def record(self, event: EventRecord) -> DailySummary:
        key = date_key(event.timestamp)
        async with self._locks.hold(key):
            summary = self._store.get_daily_summary(key) or DailySummary(date=key)
            apply_event(summary, event)
            self._store.put_daily_summary(summary)
        return summary

    def get(self, key: str) -> DailySummary:
        """Summary for `key`; an empty one if nothing was recorded that day."""
        return self._store.get_daily_summary(key) or DailySummary(date=key)
