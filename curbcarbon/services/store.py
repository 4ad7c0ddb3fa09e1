"""
Record store interfaces and their implementations.

The core never reaches for global storage; every service receives the
stores it needs in its constructor.

KeyValueStore — singleton JSON records by key.
EventStore    — append-only EventRecords (range query by timestamp) and
                DailySummary rows by date key.

Memory*  — dict-backed, for library use and tests.
Sql*     — SQLAlchemy-backed. Each write commits immediately.
"""
from __future__ import annotations

import json
from typing import Any, Optional, Protocol

from sqlalchemy.orm import Session

from curbcarbon.models.daily_summary import DailySummaryRow
from curbcarbon.models.event_record import EventRecordRow
from curbcarbon.models.kv_record import KeyValueRecord
from curbcarbon.services.records import DailySummary, EventRecord


# ---------------------------------------------------------------------------
# Singleton keys
# ---------------------------------------------------------------------------

class StoreKey:
    GRID_INTENSITY_CACHE = "grid_intensity_cache"
    LAST_KNOWN_LOCATION  = "last_known_location"
    GOAL                 = "carbon_goal"
    GOAL_HISTORY         = "goal_history"
    ACHIEVEMENTS         = "achievements_unlocked"
    DEVICE_SETTINGS      = "device_settings"
    GRID_TOKEN           = "electricity_maps_token"


# ---------------------------------------------------------------------------
# Interfaces
# ---------------------------------------------------------------------------

class KeyValueStore(Protocol):
    def get(self, key: str) -> Optional[dict[str, Any]]: ...

    def put(self, key: str, value: dict[str, Any]) -> None: ...


class EventStore(Protocol):
    def append(self, record: EventRecord) -> None: ...

    def in_range(self, start_ms: int, end_ms: int) -> list[EventRecord]: ...

    def all(self) -> list[EventRecord]: ...

    def get_daily_summary(self, key: str) -> Optional[DailySummary]: ...

    def put_daily_summary(self, summary: DailySummary) -> None: ...


# ---------------------------------------------------------------------------
# In-memory
# ---------------------------------------------------------------------------

class MemoryKeyValueStore:
    def __init__(self, initial: Optional[dict[str, dict]] = None):
        self._data: dict[str, str] = {}
        for key, value in (initial or {}).items():
            self.put(key, value)

    def get(self, key: str) -> Optional[dict[str, Any]]:
        raw = self._data.get(key)
        # stored as JSON so callers never share mutable state with the store
        return json.loads(raw) if raw is not None else None

    def put(self, key: str, value: dict[str, Any]) -> None:
        self._data[key] = json.dumps(value)


class MemoryEventStore:
    def __init__(self):
        self._events: list[EventRecord] = []
        self._summaries: dict[str, dict] = {}

    def append(self, record: EventRecord) -> None:
        self._events.append(record)

    def in_range(self, start_ms: int, end_ms: int) -> list[EventRecord]:
        return [e for e in self._events if start_ms <= e.timestamp <= end_ms]

    def all(self) -> list[EventRecord]:
        return list(self._events)

    def get_daily_summary(self, key: str) -> Optional[DailySummary]:
        raw = self._summaries.get(key)
        return DailySummary.from_dict(raw) if raw is not None else None

    def put_daily_summary(self, summary: DailySummary) -> None:
        self._summaries[summary.date] = summary.to_dict()


# ---------------------------------------------------------------------------
# SQLAlchemy
# ---------------------------------------------------------------------------

def _jload(text: Optional[str]) -> dict:
    if not text:
        return {}
    try:
        result = json.loads(text)
        return result if isinstance(result, dict) else {}
    except (ValueError, TypeError):
        return {}


class SqlKeyValueStore:
    def __init__(self, db: Session):
        self._db = db

    def get(self, key: str) -> Optional[dict[str, Any]]:
        row = self._db.query(KeyValueRecord).filter(KeyValueRecord.key == key).first()
        if row is None:
            return None
        return _jload(row.value)

    def put(self, key: str, value: dict[str, Any]) -> None:
        row = self._db.query(KeyValueRecord).filter(KeyValueRecord.key == key).first()
        encoded = json.dumps(value, default=str)
        if row is None:
            self._db.add(KeyValueRecord(key=key, value=encoded))
        else:
            row.value = encoded
        self._db.commit()


def _row_to_event(row: EventRecordRow) -> EventRecord:
    return EventRecord(
        timestamp=row.timestamp,
        type=row.type,
        platform=row.platform,
        data=_jload(row.data),
        carbon_grams=row.carbon_grams,
        carbon_rate=row.carbon_rate,
    )


class SqlEventStore:
    def __init__(self, db: Session):
        self._db = db

    def append(self, record: EventRecord) -> None:
        self._db.add(EventRecordRow(
            timestamp=record.timestamp,
            type=record.type,
            platform=record.platform,
            data=json.dumps(dict(record.data), default=str),
            carbon_grams=record.carbon_grams,
            carbon_rate=record.carbon_rate,
        ))
        self._db.commit()

    def in_range(self, start_ms: int, end_ms: int) -> list[EventRecord]:
        rows = (
            self._db.query(EventRecordRow)
            .filter(EventRecordRow.timestamp >= start_ms, EventRecordRow.timestamp <= end_ms)
            .order_by(EventRecordRow.timestamp.asc(), EventRecordRow.id.asc())
            .all()
        )
        return [_row_to_event(r) for r in rows]

    def all(self) -> list[EventRecord]:
        rows = (
            self._db.query(EventRecordRow)
            .order_by(EventRecordRow.timestamp.asc(), EventRecordRow.id.asc())
            .all()
        )
        return [_row_to_event(r) for r in rows]

    def get_daily_summary(self, key: str) -> Optional[DailySummary]:
        row = self._db.query(DailySummaryRow).filter(DailySummaryRow.date == key).first()
        if row is None:
            return None
        return DailySummary.from_dict({
            "date": row.date,
            "totalCarbon": row.total_carbon,
            "byCategory": _jload(row.by_category),
            "byPlatform": _jload(row.by_platform),
        })

    def put_daily_summary(self, summary: DailySummary) -> None:
        row = self._db.query(DailySummaryRow).filter(DailySummaryRow.date == summary.date).first()
        if row is None:
            row = DailySummaryRow(date=summary.date)
            self._db.add(row)
        row.total_carbon = summary.total_carbon
        row.by_category = json.dumps(summary.by_category)
        row.by_platform = json.dumps(summary.by_platform)
        self._db.commit()
