"""
Summary schemas.

GET /summary/today  → TodaySummaryResponse
GET /summary/range  → RangeSummaryResponse
"""
from pydantic import BaseModel, Field


class EquivalenciesResponse(BaseModel):
    miles_driven: float
    phones_charged: float
    trees_needed: float


class TodaySummaryResponse(BaseModel):
    date: str = Field(description="Local calendar day, YYYY-MM-DD.")
    total_carbon: float
    by_category: dict[str, float] = Field(description="Every category present, zero default.")
    by_platform: dict[str, float]
    equivalencies: EquivalenciesResponse
    insight: str


class RangeSummaryResponse(BaseModel):
    range: str = Field(description='"today" | "week" | "month"')
    start: int = Field(description="Epoch ms, inclusive.")
    end: int = Field(description="Epoch ms, inclusive.")
    event_count: int
    total_carbon: float
    by_category: dict[str, float]
    by_platform: dict[str, float]
    equivalencies: EquivalenciesResponse
