"""
Insights router.

GET /insights/achievements     — Evaluate, persist and list achievements
GET /insights/recommendations  — Ranked suggestions for a date range
"""
from __future__ import annotations

from fastapi import APIRouter, Depends, Query

from curbcarbon.core.deps import get_events, get_grid_provider, get_tracker
from curbcarbon.schemas.common import RangeKey
from curbcarbon.schemas.insights import (
    AchievementOut,
    AchievementsResponse,
    RecommendationOut,
    RecommendationsResponse,
)
from curbcarbon.services.achievements import ACHIEVEMENTS_BY_ID
from curbcarbon.services.grid_intensity import GridIntensityProvider
from curbcarbon.services.recommendations import build_context, generate
from curbcarbon.services.records import range_bounds_ms
from curbcarbon.services.store import SqlEventStore
from curbcarbon.services.tracker import Tracker

router = APIRouter(prefix="/insights", tags=["insights"])


# ---------------------------------------------------------------------------
# GET /insights/achievements
# ---------------------------------------------------------------------------

@router.get(
    "/achievements",
    response_model=AchievementsResponse,
    summary="Evaluate and list achievements",
)
def achievements(tracker: Tracker = Depends(get_tracker)):
    """
    Runs the weekly period check, evaluates every achievement and stores
    first-time unlocks. Unlocks are permanent; `newly_unlocked` lists only
    those recorded by this call.
    """
    earned, newly = tracker.evaluate_achievements()
    unlocked = tracker.achievements.unlocked()
    return AchievementsResponse(
        earned=[
            AchievementOut(
                id=a.id,
                name=a.name,
                description=a.description,
                unlocked_at=(unlocked.get(a.id) or {}).get("unlockedAt"),
            )
            for a in (ACHIEVEMENTS_BY_ID[i] for i in earned)
        ],
        newly_unlocked=newly,
    )


# ---------------------------------------------------------------------------
# GET /insights/recommendations
# ---------------------------------------------------------------------------

@router.get(
    "/recommendations",
    response_model=RecommendationsResponse,
    summary="Recommendations for a date range",
)
def recommendations(
    range: RangeKey = Query(default="today", description="today | week | month"),
    events: SqlEventStore = Depends(get_events),
    grid: GridIntensityProvider = Depends(get_grid_provider),
    tracker: Tracker = Depends(get_tracker),
):
    """
    Builds a context from the range's events, the last known grid intensity
    (no refresh is triggered) and the goal, then applies the rule list in
    priority order. Never empty: with nothing to suggest an all-clear entry
    is returned.
    """
    cached = grid.cached()
    context = build_context(
        events.in_range(*range_bounds_ms(range)),
        grid_intensity=cached.intensity if cached else None,
        goal=tracker.goals.get_goal(),
    )
    return RecommendationsResponse(
        range=range,
        items=[
            RecommendationOut(
                id=r.id, action=r.action, impact=r.impact, description=r.description
            )
            for r in generate(context)
        ],
    )
