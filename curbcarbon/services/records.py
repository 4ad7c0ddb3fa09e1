"""
Persisted record shapes shared by the stores and the aggregation layer.

EventRecord  — one per reported session/tick. Append-only: never mutated
               after it is written; corrections are new records.
DailySummary — running totals for one local calendar day, keyed "YYYY-MM-DD".

Timestamps are epoch milliseconds. Day keys and ranges use local time.
"""
from __future__ import annotations

import time
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from types import MappingProxyType
from typing import Any, Mapping, Optional

from curbcarbon.services.categorizer import CATEGORIES

UNKNOWN_PLATFORM = "unknown"

RANGE_DAYS = {"today": 1, "week": 7, "month": 30}


def now_ms() -> int:
    return int(time.time() * 1000)


def date_key(timestamp_ms: float) -> str:
    """Local calendar day of an epoch-ms timestamp, as YYYY-MM-DD."""
    return datetime.fromtimestamp(timestamp_ms / 1000).strftime("%Y-%m-%d")


def day_bounds_ms(day: date) -> tuple[int, int]:
    """[local midnight, 23:59:59.999] of `day` in epoch ms."""
    start = datetime(day.year, day.month, day.day)
    end = start + timedelta(days=1)
    return int(start.timestamp() * 1000), int(end.timestamp() * 1000) - 1


def range_bounds_ms(range_key: str, now: Optional[int] = None) -> tuple[int, int]:
    """
    Bounds for "today" | "week" | "month": the last 1 / 7 / 30 calendar
    days ending today, inclusive.
    """
    days = RANGE_DAYS[range_key]
    today = datetime.fromtimestamp((now if now is not None else now_ms()) / 1000).date()
    start, _ = day_bounds_ms(today - timedelta(days=days - 1))
    _, end = day_bounds_ms(today)
    return start, end


# ---------------------------------------------------------------------------
# Event record
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class EventRecord:
    timestamp: int
    type: str
    platform: str
    data: Mapping[str, Any]
    carbon_grams: float
    carbon_rate: Optional[float] = None

    def __post_init__(self):
        # freeze the payload as well as the attributes
        object.__setattr__(self, "data", MappingProxyType(dict(self.data)))

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "timestamp": self.timestamp,
            "type": self.type,
            "platform": self.platform,
            "data": dict(self.data),
            "carbonGrams": self.carbon_grams,
        }
        if self.carbon_rate is not None:
            payload["carbonRate"] = self.carbon_rate
        return payload

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "EventRecord":
        return cls(
            timestamp=int(payload["timestamp"]),
            type=payload.get("type") or "browsing",
            platform=payload.get("platform") or UNKNOWN_PLATFORM,
            data=payload.get("data") or {},
            carbon_grams=float(payload.get("carbonGrams") or 0.0),
            carbon_rate=payload.get("carbonRate"),
        )


# ---------------------------------------------------------------------------
# Daily summary
# ---------------------------------------------------------------------------

def _empty_categories() -> dict[str, float]:
    return {c: 0.0 for c in CATEGORIES}


@dataclass
class DailySummary:
    date: str
    total_carbon: float = 0.0
    by_category: dict[str, float] = field(default_factory=_empty_categories)
    by_platform: dict[str, float] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "date": self.date,
            "totalCarbon": self.total_carbon,
            "byCategory": dict(self.by_category),
            "byPlatform": dict(self.by_platform),
        }

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "DailySummary":
        by_category = _empty_categories()
        by_category.update(payload.get("byCategory") or {})
        return cls(
            date=payload["date"],
            total_carbon=float(payload.get("totalCarbon") or 0.0),
            by_category=by_category,
            by_platform=dict(payload.get("byPlatform") or {}),
        )
