"""
EventRecordRow — one finalized browsing event.

Append-only: rows are inserted by the tracker and never updated or deleted.
`data` holds the original telemetry plus the grid context captured at write
time (gridIntensity, gridZone, gridMultiplier, gridIsEstimated), JSON-encoded.
"""
from datetime import datetime
from sqlalchemy import BigInteger, Float, Integer, String, Text, DateTime, func
from sqlalchemy.orm import Mapped, mapped_column

from curbcarbon.db.base import Base


class EventRecordRow(Base):
    __tablename__ = "event_records"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    timestamp: Mapped[int] = mapped_column(BigInteger, nullable=False, index=True)
    type: Mapped[str] = mapped_column(String(16), nullable=False, index=True)
    platform: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    data: Mapped[str] = mapped_column(
        Text, nullable=False,
        comment="JSON-encoded telemetry + grid context at calculation time",
    )
    carbon_grams: Mapped[float] = mapped_column(Float, nullable=False)
    carbon_rate: Mapped[float | None] = mapped_column(Float, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
