"""
Goal router — weekly carbon budget, progress and streaks.

GET /goal           — Current weekly goal
PUT /goal           — Set the goal by amount or preset
GET /goal/progress  — Progress for the current Monday-to-Sunday week
GET /goal/history   — Streak record
"""
from __future__ import annotations

import math

from fastapi import APIRouter, Depends

from curbcarbon.core.deps import get_tracker
from curbcarbon.core.errors import GoalNotSetError, InvalidGoalError
from curbcarbon.schemas.common import ErrorResponse
from curbcarbon.schemas.goal import (
    GoalHistoryResponse,
    GoalRequest,
    GoalResponse,
    ProgressResponse,
)
from curbcarbon.services.goals import GOAL_PRESETS, Goal, GoalHistory, period_start
from curbcarbon.services.tracker import Tracker

router = APIRouter(prefix="/goal", tags=["goal"])


# ---------------------------------------------------------------------------
# Serialization helpers
# ---------------------------------------------------------------------------

def _goal_to_response(goal: Goal) -> GoalResponse:
    return GoalResponse(amount=goal.amount, period=goal.period, set_date=goal.set_date)


def _history_to_response(history: GoalHistory) -> GoalHistoryResponse:
    return GoalHistoryResponse(
        last_period_start=history.last_period_start,
        last_period_met=history.last_period_met,
        current_streak=history.current_streak,
        best_streak=history.best_streak,
        total_achieved=history.total_achieved,
        half_goal_achieved=history.half_goal_achieved,
    )


def _resolve_amount(payload: GoalRequest) -> float:
    if payload.preset is not None:
        if payload.preset not in GOAL_PRESETS:
            raise InvalidGoalError(preset=payload.preset)
        return GOAL_PRESETS[payload.preset]
    if not math.isfinite(payload.amount) or payload.amount <= 0:
        raise InvalidGoalError(amount=payload.amount)
    return payload.amount


# ---------------------------------------------------------------------------
# GET /goal
# ---------------------------------------------------------------------------

@router.get(
    "",
    response_model=GoalResponse,
    summary="Current weekly goal",
    responses={404: {"model": ErrorResponse, "description": "No goal has been set."}},
)
def get_goal(tracker: Tracker = Depends(get_tracker)):
    goal = tracker.goals.get_goal()
    if goal is None:
        raise GoalNotSetError()
    return _goal_to_response(goal)


# ---------------------------------------------------------------------------
# PUT /goal
# ---------------------------------------------------------------------------

@router.put(
    "",
    response_model=GoalResponse,
    summary="Set the weekly goal",
    responses={
        200: {"description": "Goal stored; achievements re-evaluated."},
        422: {"model": ErrorResponse, "description": "Non-positive amount or unknown preset."},
    },
)
def set_goal(payload: GoalRequest, tracker: Tracker = Depends(get_tracker)):
    """
    Store a weekly budget in grams CO2. Presets: `eco_warrior` (350),
    `average` (525), `moderate` (700).

    Setting a goal immediately re-evaluates achievements, so goal-based
    unlocks (First Step, Eco Warrior) are recorded right away.
    """
    goal = tracker.goals.set_goal(_resolve_amount(payload))
    tracker.evaluate_achievements()
    return _goal_to_response(goal)


# ---------------------------------------------------------------------------
# GET /goal/progress
# ---------------------------------------------------------------------------

@router.get(
    "/progress",
    response_model=ProgressResponse,
    summary="Progress toward the weekly goal",
    responses={404: {"model": ErrorResponse, "description": "No goal has been set."}},
)
def get_progress(tracker: Tracker = Depends(get_tracker)):
    """
    Carbon recorded since Monday 00:00 (local) against the goal.

    `status` is `great` below 80%, `near` from 80% up to and including 100%,
    and `over` above 100%. `percentage` is capped at 100 for display.
    """
    current = tracker.goals.current_progress()
    if current is None:
        raise GoalNotSetError()
    return ProgressResponse(
        current=round(current.current, 2),
        goal=current.goal,
        percentage=round(current.percentage, 1),
        remaining=round(current.remaining, 2),
        status=current.status,
        message=current.message,
        period_start=period_start().isoformat(),
    )


# ---------------------------------------------------------------------------
# GET /goal/history
# ---------------------------------------------------------------------------

@router.get(
    "/history",
    response_model=GoalHistoryResponse,
    summary="Weekly streak record",
)
def get_history(tracker: Tracker = Depends(get_tracker)):
    """Closes the previous week first if the calendar has moved on."""
    history = tracker.goals.check_period() or tracker.goals.get_history()
    return _history_to_response(history)
