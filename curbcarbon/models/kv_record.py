"""
KeyValueRecord — singleton records (grid cache, location cache, goal,
goal history, achievement unlocks, settings), one row per key.

value: JSON-encoded dict stored as Text.
"""
from datetime import datetime
from sqlalchemy import Integer, String, Text, DateTime, func
from sqlalchemy.orm import Mapped, mapped_column

from curbcarbon.db.base import Base


class KeyValueRecord(Base):
    __tablename__ = "kv_records"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    key: Mapped[str] = mapped_column(String(64), nullable=False, unique=True, index=True)
    value: Mapped[str] = mapped_column(Text, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False
    )
