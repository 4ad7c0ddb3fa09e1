"""
Insight schemas.

GET /insights/achievements     → AchievementsResponse
GET /insights/recommendations  → RecommendationsResponse
"""
from typing import Optional

from pydantic import BaseModel, Field


class AchievementOut(BaseModel):
    id: str
    name: str
    description: str
    unlocked_at: Optional[str] = None


class AchievementsResponse(BaseModel):
    earned: list[AchievementOut] = Field(description="Currently earned, registry order.")
    newly_unlocked: list[str] = Field(description="Ids unlocked by this evaluation.")


class RecommendationOut(BaseModel):
    id: Optional[str] = None
    action: str
    impact: str
    description: str


class RecommendationsResponse(BaseModel):
    range: str
    items: list[RecommendationOut] = Field(description="Display priority order; never empty.")
