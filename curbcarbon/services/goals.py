"""
Weekly goal, progress and streak tracking.

Period: Monday 00:00 → Sunday 23:59:59.999, local time.

Pure functions
--------------
period_start(today)                          -> date of the Monday starting the week
is_new_period(history, today)                -> bool
close_period(carbon, goal, history, today)   -> GoalHistory  (new value)
progress(current, goal)                      -> Progress

Streak rules (close_period)
---------------------------
  goal met  (carbon <= goal.amount):
      current_streak = current_streak + 1 if the previous period was met else 1
      total_achieved += 1
      best_streak    = max(best_streak, current_streak)
      carbon <= 50% of goal → half_goal_achieved = True (sticky)
  goal missed:
      current_streak = 0
  always:
      last_period_met = goal met; last_period_start = current week start

GoalTracker owns the persisted Goal / GoalHistory and is the only writer of
GoalHistory. Without a goal it is inert: progress and period checks return
None and nothing is written.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from datetime import date, datetime, timedelta
from typing import Any, Callable, Optional

from curbcarbon.services.records import day_bounds_ms, now_ms
from curbcarbon.services.store import EventStore, KeyValueStore, StoreKey

logger = logging.getLogger(__name__)

# grams CO2 per week
GOAL_PRESETS: dict[str, float] = {
    "eco_warrior": 350.0,
    "average": 525.0,
    "moderate": 700.0,
}

HALF_GOAL_RATIO = 0.5
GREAT_BELOW_PERCENT = 80.0
OVER_ABOVE_PERCENT = 100.0


# ---------------------------------------------------------------------------
# Types
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Goal:
    amount: float
    period: str = "week"
    set_date: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        return {"amount": self.amount, "period": self.period, "setDate": self.set_date}

    @classmethod
    def from_dict(cls, payload: Optional[dict]) -> Optional["Goal"]:
        if not payload or payload.get("amount") is None:
            return None
        return cls(
            amount=float(payload["amount"]),
            period=payload.get("period") or "week",
            set_date=payload.get("setDate"),
        )


@dataclass(frozen=True)
class GoalHistory:
    last_period_start: Optional[str] = None
    last_period_met: bool = False
    current_streak: int = 0
    best_streak: int = 0
    total_achieved: int = 0
    half_goal_achieved: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "lastPeriodStart": self.last_period_start,
            "lastPeriodMet": self.last_period_met,
            "currentStreak": self.current_streak,
            "bestStreak": self.best_streak,
            "totalAchieved": self.total_achieved,
            "halfGoalAchieved": self.half_goal_achieved,
        }

    @classmethod
    def from_dict(cls, payload: Optional[dict]) -> "GoalHistory":
        if not payload:
            return cls()
        return cls(
            last_period_start=payload.get("lastPeriodStart"),
            last_period_met=bool(payload.get("lastPeriodMet", False)),
            current_streak=int(payload.get("currentStreak", 0)),
            best_streak=int(payload.get("bestStreak", 0)),
            total_achieved=int(payload.get("totalAchieved", 0)),
            half_goal_achieved=bool(payload.get("halfGoalAchieved", False)),
        )


@dataclass(frozen=True)
class Progress:
    current: float
    goal: float
    percentage: float        # capped at 100 for display
    raw_percentage: float    # uncapped, drives status
    remaining: float
    status: str              # "great" | "near" | "over"
    message: str


# ---------------------------------------------------------------------------
# Pure functions
# ---------------------------------------------------------------------------

def _today() -> date:
    return datetime.now().date()


def period_start(today: Optional[date] = None) -> date:
    """Monday of the week containing `today` (Sunday maps back 6 days)."""
    today = today or _today()
    return today - timedelta(days=today.weekday())


def current_period_bounds_ms(today: Optional[date] = None) -> tuple[int, int]:
    """Epoch-ms bounds of the Monday-to-Sunday week containing `today`."""
    start = period_start(today)
    first, _ = day_bounds_ms(start)
    _, last = day_bounds_ms(start + timedelta(days=6))
    return first, last


def is_new_period(history: GoalHistory, today: Optional[date] = None) -> bool:
    if not history.last_period_start:
        return True
    last = date.fromisoformat(history.last_period_start)
    return period_start(today) > last


def close_period(
    period_carbon: float,
    goal: Goal,
    history: GoalHistory,
    today: Optional[date] = None,
) -> GoalHistory:
    goal_met = period_carbon <= goal.amount

    if goal_met:
        streak = history.current_streak + 1 if history.last_period_met else 1
        return replace(
            history,
            current_streak=streak,
            total_achieved=history.total_achieved + 1,
            best_streak=max(history.best_streak, streak),
            half_goal_achieved=(
                history.half_goal_achieved
                or period_carbon <= goal.amount * HALF_GOAL_RATIO
            ),
            last_period_met=True,
            last_period_start=period_start(today).isoformat(),
        )

    return replace(
        history,
        current_streak=0,
        last_period_met=False,
        last_period_start=period_start(today).isoformat(),
    )


def progress(current_carbon: float, goal: Goal) -> Progress:
    raw = (current_carbon / goal.amount) * 100 if goal.amount > 0 else float("inf")

    if raw < GREAT_BELOW_PERCENT:
        status = "great"
        message = f"Great! You're {100 - raw:.0f}% below your goal"
    elif raw <= OVER_ABOVE_PERCENT:
        status = "near"
        message = f"You're at {raw:.0f}% of your goal"
    else:
        status = "over"
        message = f"You're {raw - 100:.0f}% over your goal"

    return Progress(
        current=current_carbon,
        goal=goal.amount,
        percentage=min(raw, 100.0),
        raw_percentage=raw,
        remaining=goal.amount - current_carbon,
        status=status,
        message=message,
    )


# ---------------------------------------------------------------------------
# Store-backed tracker
# ---------------------------------------------------------------------------

class GoalTracker:
    def __init__(
        self,
        store: KeyValueStore,
        events: EventStore,
        clock: Callable[[], int] = now_ms,
    ):
        self._store = store
        self._events = events
        self._clock = clock

    def _today(self) -> date:
        return datetime.fromtimestamp(self._clock() / 1000).date()

    # -- goal -----------------------------------------------------------

    def get_goal(self) -> Optional[Goal]:
        return Goal.from_dict(self._store.get(StoreKey.GOAL))

    def set_goal(self, amount: float) -> Goal:
        goal = Goal(amount=float(amount), period="week", set_date=self._today().isoformat())
        self._store.put(StoreKey.GOAL, goal.to_dict())
        logger.info(f"Weekly goal set to {goal.amount} g")
        return goal

    # -- history --------------------------------------------------------

    def get_history(self) -> GoalHistory:
        return GoalHistory.from_dict(self._store.get(StoreKey.GOAL_HISTORY))

    def _carbon_between(self, start_ms: int, end_ms: int) -> float:
        return sum(e.carbon_grams for e in self._events.in_range(start_ms, end_ms))

    def week_carbon(self) -> float:
        return self._carbon_between(*current_period_bounds_ms(self._today()))

    def current_progress(self) -> Optional[Progress]:
        goal = self.get_goal()
        if goal is None:
            return None
        return progress(self.week_carbon(), goal)

    def check_period(self) -> Optional[GoalHistory]:
        """
        Close every week that has ended since the last check, oldest first,
        each against its own carbon total. `last_period_start` is the week
        that was still open at the last check; after closing week W the
        stamp moves to W + 7 days, so a skipped week that went over the
        goal still breaks the streak.

        The first check after a goal is set only stamps the current week;
        there is no completed period to judge yet.
        """
        goal = self.get_goal()
        if goal is None:
            return None

        today = self._today()
        history = self.get_history()
        if not is_new_period(history, today):
            return history

        current = period_start(today)
        if history.last_period_start is None:
            updated = replace(history, last_period_start=current.isoformat())
        else:
            updated = history
            week = period_start(date.fromisoformat(history.last_period_start))
            while week < current:
                carbon = self._carbon_between(*current_period_bounds_ms(week))
                updated = close_period(carbon, goal, updated, week + timedelta(days=7))
                logger.info(
                    f"Closed week of {week.isoformat()}: {carbon:.2f} g "
                    f"(goal {goal.amount} g, met={updated.last_period_met}, "
                    f"streak={updated.current_streak})"
                )
                week += timedelta(days=7)

        self._store.put(StoreKey.GOAL_HISTORY, updated.to_dict())
        return updated
