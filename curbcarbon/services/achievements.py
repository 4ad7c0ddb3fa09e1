"""
Achievement evaluator.

ACHIEVEMENTS is an ordered registry of (id, predicate) pairs evaluated
against one immutable AchievementContext. A predicate that raises counts
as not earned and does not stop the remaining rules.

Unlocks are stored as {id: {"unlockedAt": "YYYY-MM-DD"}} and written once
per id; only ids not previously stored are reported as newly unlocked.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Optional

from curbcarbon.services.goals import GOAL_PRESETS, Goal, GoalHistory
from curbcarbon.services.records import now_ms
from curbcarbon.services.store import KeyValueStore, StoreKey

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AchievementContext:
    goal: Optional[Goal]
    history: GoalHistory
    lifetime_totals: dict[str, Any] = field(default_factory=dict)
    weekly_carbon: float = 0.0


@dataclass(frozen=True)
class Achievement:
    id: str
    name: str
    description: str
    check: Callable[[AchievementContext], bool]


def _lifetime_carbon(ctx: AchievementContext) -> float:
    return ctx.lifetime_totals.get("total_carbon", 0.0)


ACHIEVEMENTS: tuple[Achievement, ...] = (
    Achievement(
        "first_step", "First Step", "Set your first carbon goal",
        lambda ctx: ctx.goal is not None,
    ),
    Achievement(
        "on_track", "On Track", "Meet your weekly goal for the first time",
        lambda ctx: ctx.history.total_achieved >= 1,
    ),
    Achievement(
        "streak_starter", "Streak Starter", "Meet your weekly goal 2 weeks in a row",
        lambda ctx: ctx.history.best_streak >= 2,
    ),
    Achievement(
        "hat_trick", "Hat Trick", "Meet your weekly goal 3 weeks in a row",
        lambda ctx: ctx.history.best_streak >= 3,
    ),
    Achievement(
        "eco_warrior", "Eco Warrior", "Set the Eco Warrior goal (350g/week)",
        lambda ctx: ctx.goal is not None and ctx.goal.amount == GOAL_PRESETS["eco_warrior"],
    ),
    Achievement(
        "overachiever", "Overachiever", "Finish a week using less than 50% of your goal",
        lambda ctx: ctx.history.half_goal_achieved,
    ),
    Achievement(
        "data_nerd", "Data Nerd", "Track 500g of carbon total",
        lambda ctx: _lifetime_carbon(ctx) >= 500,
    ),
    Achievement(
        "carbon_conscious", "Carbon Conscious", "Track 5,000g of carbon total",
        lambda ctx: _lifetime_carbon(ctx) >= 5000,
    ),
)

ACHIEVEMENTS_BY_ID = {a.id: a for a in ACHIEVEMENTS}


def earned_ids(
    context: AchievementContext,
    registry: tuple[Achievement, ...] = ACHIEVEMENTS,
) -> list[str]:
    """Ids whose predicate holds for `context`, in registry order."""
    earned = []
    for achievement in registry:
        try:
            if achievement.check(context):
                earned.append(achievement.id)
        except Exception as exc:
            logger.debug(f"Achievement {achievement.id} check failed: {exc}")
    return earned


class AchievementBook:
    """Persisted unlock records."""

    def __init__(self, store: KeyValueStore, clock: Callable[[], int] = now_ms):
        self._store = store
        self._clock = clock

    def unlocked(self) -> dict[str, dict[str, str]]:
        return self._store.get(StoreKey.ACHIEVEMENTS) or {}

    def save_newly_unlocked(self, earned: list[str]) -> list[str]:
        existing = self.unlocked()
        newly = [i for i in earned if i not in existing]
        if not newly:
            return []

        today = datetime.fromtimestamp(self._clock() / 1000).date().isoformat()
        updated = dict(existing)
        for achievement_id in newly:
            updated[achievement_id] = {"unlockedAt": today}
        self._store.put(StoreKey.ACHIEVEMENTS, updated)
        logger.info(f"Achievements unlocked: {', '.join(newly)}")
        return newly
