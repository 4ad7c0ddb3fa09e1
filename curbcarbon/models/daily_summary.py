from datetime import datetime
from sqlalchemy import Float, Integer, String, Text, DateTime, func
from sqlalchemy.orm import Mapped, mapped_column

from curbcarbon.db.base import Base


class DailySummaryRow(Base):
    """Running carbon totals for one local calendar day."""

    __tablename__ = "daily_summaries"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    date: Mapped[str] = mapped_column(String(10), nullable=False, unique=True, index=True)
    total_carbon: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    by_category: Mapped[str] = mapped_column(Text, nullable=False, comment="JSON object")
    by_platform: Mapped[str] = mapped_column(Text, nullable=False, comment="JSON object")
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False
    )
