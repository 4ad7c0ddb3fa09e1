"""
Goal schemas.

GET/PUT /goal        → GoalResponse
GET /goal/progress   → ProgressResponse
GET /goal/history    → GoalHistoryResponse
"""
from typing import Optional

from pydantic import BaseModel, Field, model_validator


class GoalRequest(BaseModel):
    """Either an explicit amount or one of the presets."""
    amount: Optional[float] = Field(
        default=None,
        allow_inf_nan=False,
        description="Grams CO2 per week.",
        examples=[525],
    )
    preset: Optional[str] = Field(
        default=None, description='"eco_warrior" | "average" | "moderate"'
    )

    @model_validator(mode="after")
    def exactly_one_of(self):
        if (self.amount is None) == (self.preset is None):
            raise ValueError("Provide exactly one of 'amount' or 'preset'.")
        return self


class GoalResponse(BaseModel):
    amount: float
    period: str
    set_date: Optional[str]


class ProgressResponse(BaseModel):
    current: float
    goal: float
    percentage: float = Field(description="Capped at 100 for display.")
    remaining: float
    status: str = Field(description='"great" | "near" | "over"')
    message: str
    period_start: str


class GoalHistoryResponse(BaseModel):
    last_period_start: Optional[str]
    last_period_met: bool
    current_streak: int
    best_streak: int
    total_achieved: int
    half_goal_achieved: bool
