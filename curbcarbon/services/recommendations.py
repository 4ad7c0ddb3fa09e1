"""
Recommendation generator.

Same registry pattern as the achievement evaluator: each Rule has a
`check(ctx)` predicate and a `build(ctx)` producing a Recommendation.
Context building (build_context) is separate from evaluation (generate),
and generate is pure.

Output order follows registry order. If no rule fires the all-clear entry
is returned, so the result is never empty. A rule that raises in either
step is skipped.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable, Iterable, Optional

from curbcarbon.services.aggregator import (
    aggregate_by_category,
    aggregate_by_platform,
    top_platform,
)
from curbcarbon.services.emissions import BASELINE_INTENSITY
from curbcarbon.services.goals import Goal
from curbcarbon.services.records import EventRecord

logger = logging.getLogger(__name__)

TYPICAL_DAILY_GRAMS = 75.0


@dataclass(frozen=True)
class Recommendation:
    action: str
    impact: str
    description: str
    id: Optional[str] = None


@dataclass(frozen=True)
class RecommendationContext:
    category_totals: dict[str, float] = field(default_factory=dict)
    platform_totals: dict[str, float] = field(default_factory=dict)
    total: float = 0.0
    total_mb: float = 0.0
    video_mb: float = 0.0
    total_time: float = 0.0                          # minutes
    top_platform: Optional[tuple[str, float]] = None
    grid_intensity: float = BASELINE_INTENSITY
    goal: Optional[Goal] = None

    def category(self, name: str) -> float:
        return self.category_totals.get(name, 0.0)


@dataclass(frozen=True)
class Rule:
    id: str
    check: Callable[[RecommendationContext], bool]
    build: Callable[[RecommendationContext], Recommendation]


ALL_CLEAR = Recommendation(
    id="all_clear",
    action="Keep up the good work!",
    impact="Your usage is already efficient",
    description="Continue being mindful of your digital habits.",
)


def fmt_grams(grams: float) -> str:
    return f"{grams / 1000:.2f} kg" if grams >= 1000 else f"{grams:.1f} g"


def _share(part: float, total: float) -> str:
    return f"{(part / total) * 100:.0f}%"


RULES: tuple[Rule, ...] = (
    # ── Media / streaming ──────────────────────────────────────────
    Rule(
        "lower_video_quality",
        lambda c: c.category("media") > c.total * 0.3 and c.video_mb > 100,
        lambda c: Recommendation(
            id="lower_video_quality",
            action="Lower video quality",
            impact=f"Save ~{fmt_grams(c.category('media') * 0.3)} CO₂",
            description="Streaming at 720p instead of 1080p can reduce data transfer by 30–40%.",
        ),
    ),
    Rule(
        "disable_autoplay",
        lambda c: c.category("media") > c.total * 0.5,
        lambda c: Recommendation(
            id="disable_autoplay",
            action="Disable autoplay",
            impact=f"Save ~{fmt_grams(c.category('media') * 0.2)} CO₂",
            description=(
                "Autoplaying videos on social media and streaming sites silently "
                "consume data even when you're not watching."
            ),
        ),
    ),
    # ── Data / network ─────────────────────────────────────────────
    Rule(
        "use_ad_blocker",
        lambda c: c.total_mb > 500,
        lambda c: Recommendation(
            id="use_ad_blocker",
            action="Use an ad blocker",
            impact=f"Save ~{fmt_grams(c.total * 0.2)} CO₂",
            description=(
                "Ads and trackers account for ~20% of page weight. Blocking them "
                "reduces data transfer significantly."
            ),
        ),
    ),
    # ── Shopping ───────────────────────────────────────────────────
    Rule(
        "reduce_shopping_browsing",
        lambda c: c.total > 0 and c.category("shopping") > c.total * 0.3,
        lambda c: Recommendation(
            id="reduce_shopping_browsing",
            action="Reduce image-heavy browsing",
            impact=f"Save ~{fmt_grams(c.category('shopping') * 0.25)} CO₂",
            description=(
                "Shopping sites load many high-res images, making up "
                f"{_share(c.category('shopping'), c.total)} of your footprint. "
                "Using wishlists instead of browsing repeatedly helps."
            ),
        ),
    ),
    # ── Platform dominance ─────────────────────────────────────────
    Rule(
        "top_platform_dominance",
        lambda c: c.top_platform is not None and c.total > 0 and c.top_platform[1] > c.total * 0.5,
        lambda c: Recommendation(
            id="top_platform_dominance",
            action=f"Limit time on {c.top_platform[0]}",
            impact=f"Save ~{fmt_grams(c.top_platform[1] * 0.3)} CO₂",
            description=(
                f"{c.top_platform[0]} accounts for {_share(c.top_platform[1], c.total)} "
                "of your carbon this period. Even short breaks add up over a week."
            ),
        ),
    ),
    # ── Session length ─────────────────────────────────────────────
    Rule(
        "screen_breaks",
        lambda c: c.total_time > 120,
        lambda c: Recommendation(
            id="screen_breaks",
            action="Take regular screen breaks",
            impact=f"Save ~{fmt_grams(c.total * 0.15)} CO₂",
            description=(
                f"You've been browsing for {c.total_time / 60:.1f} hours. Closing idle "
                "tabs and taking breaks reduces both device energy use and carbon output."
            ),
        ),
    ),
    # ── Grid intensity ─────────────────────────────────────────────
    Rule(
        "off_peak_usage",
        lambda c: c.grid_intensity > BASELINE_INTENSITY * 1.1,
        lambda c: Recommendation(
            id="off_peak_usage",
            action="Shift heavy usage to off-peak hours",
            impact="Reduce grid carbon intensity",
            description=(
                f"Your regional grid ({c.grid_intensity:.0f} gCO₂/kWh) is "
                f"{(c.grid_intensity / BASELINE_INTENSITY - 1) * 100:.0f}% dirtier than "
                "average. Grids are typically cleaner late at night when renewable "
                "sources dominate."
            ),
        ),
    ),
    # ── Goal nudge ─────────────────────────────────────────────────
    Rule(
        "set_goal",
        lambda c: c.goal is None,
        lambda c: Recommendation(
            id="set_goal",
            action="Set a weekly carbon goal",
            impact="Build lasting habits",
            description=(
                "Users who set goals reduce their digital carbon footprint by an "
                "average of 15–20%. Use the goal tracker to get started."
            ),
        ),
    ),
    # ── Above average ──────────────────────────────────────────────
    Rule(
        "above_average",
        lambda c: c.total > TYPICAL_DAILY_GRAMS * 1.2,
        lambda c: Recommendation(
            id="above_average",
            action="Review your browsing habits",
            impact=f"{(c.total / TYPICAL_DAILY_GRAMS - 1) * 100:.0f}% above average",
            description=(
                "Your usage is higher than the typical user today. Check the platform "
                "breakdown to see where most of your carbon is coming from."
            ),
        ),
    ),
)


def _data_sum(events: list[EventRecord], key: str) -> float:
    total = 0.0
    for event in events:
        value = event.data.get(key)
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            total += value
    return total


def build_context(
    events: Iterable[EventRecord],
    grid_intensity: Optional[float] = None,
    goal: Optional[Goal] = None,
) -> RecommendationContext:
    events = list(events)
    category_totals = aggregate_by_category(events)
    platform_totals = aggregate_by_platform(events)
    return RecommendationContext(
        category_totals=category_totals,
        platform_totals=platform_totals,
        total=sum(category_totals.values()),
        total_mb=_data_sum(events, "totalMB"),
        video_mb=_data_sum(events, "videoMB"),
        total_time=_data_sum(events, "timeActive"),
        top_platform=top_platform(platform_totals),
        grid_intensity=grid_intensity if grid_intensity else BASELINE_INTENSITY,
        goal=goal,
    )


def generate(
    context: RecommendationContext,
    rules: tuple[Rule, ...] = RULES,
) -> list[Recommendation]:
    results: list[Recommendation] = []
    for rule in rules:
        try:
            if rule.check(context):
                results.append(rule.build(context))
        except Exception as exc:
            logger.debug(f"Recommendation {rule.id} skipped: {exc}")
    if not results:
        results.append(ALL_CLEAR)
    return results
