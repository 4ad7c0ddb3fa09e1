"""
Tests for aggregation folds and the incremental daily summary.
"""
import asyncio
import random
from datetime import datetime

import pytest

from curbcarbon.services.aggregator import (
    DailySummaryAccumulator,
    KeyedLocks,
    aggregate_by_category,
    aggregate_by_platform,
    apply_event,
    lifetime_totals,
    top_platform,
)
from curbcarbon.services.records import DailySummary, EventRecord, date_key

NOON = int(datetime(2026, 3, 11, 12, 0).timestamp() * 1000)


def _event(grams, type_="browsing", platform="example.com", ts=NOON):
    return EventRecord(timestamp=ts, type=type_, platform=platform, data={}, carbon_grams=grams)


@pytest.fixture()
def sample():
    return [
        _event(5.0, "media", "www.youtube.com"),
        _event(2.5, "media", "www.netflix.com"),
        _event(1.25, "shopping", "www.amazon.com"),
        _event(0.75, "browsing", "docs.python.org"),
        _event(3.0, "media", "www.youtube.com"),
    ]


class TestFolds:
    def test_by_category_has_every_key(self):
        totals = aggregate_by_category([])
        assert totals == {"media": 0.0, "shopping": 0.0, "browsing": 0.0}

    def test_by_category(self, sample):
        totals = aggregate_by_category(sample)
        assert totals == {"media": 10.5, "shopping": 1.25, "browsing": 0.75}

    def test_by_platform(self, sample):
        totals = aggregate_by_platform(sample)
        assert totals["www.youtube.com"] == 8.0
        assert totals["www.netflix.com"] == 2.5
        assert len(totals) == 4

    def test_missing_platform_is_unknown(self):
        totals = aggregate_by_platform([_event(1.0, platform="")])
        assert totals == {"unknown": 1.0}

    def test_order_independent(self, sample):
        shuffled = list(sample)
        random.Random(7).shuffle(shuffled)
        assert aggregate_by_category(shuffled) == pytest.approx(aggregate_by_category(sample))
        assert aggregate_by_platform(shuffled) == pytest.approx(aggregate_by_platform(sample))

    def test_category_sum_equals_platform_sum(self, sample):
        assert sum(aggregate_by_category(sample).values()) == pytest.approx(
            sum(aggregate_by_platform(sample).values())
        )

    def test_lifetime_totals(self, sample):
        totals = lifetime_totals(sample)
        assert totals["total_carbon"] == pytest.approx(12.5)
        assert totals["by_category"]["media"] == 10.5

    def test_top_platform(self, sample):
        assert top_platform(aggregate_by_platform(sample)) == ("www.youtube.com", 8.0)
        assert top_platform({}) is None


class TestApplyEvent:
    def test_updates_all_three_totals(self):
        summary = DailySummary(date="2026-03-11")
        apply_event(summary, _event(2.0, "media", "www.twitch.tv"))
        apply_event(summary, _event(1.0, "media", "www.twitch.tv"))
        assert summary.total_carbon == 3.0
        assert summary.by_category["media"] == 3.0
        assert summary.by_category["shopping"] == 0.0
        assert summary.by_platform == {"www.twitch.tv": 3.0}

    def test_summary_reconciles_with_event_log(self, sample):
        summary = DailySummary(date="2026-03-11")
        for e in sample:
            apply_event(summary, e)
        assert summary.total_carbon == pytest.approx(lifetime_totals(sample)["total_carbon"])
        assert summary.by_category == pytest.approx(aggregate_by_category(sample))
        assert summary.by_platform == pytest.approx(aggregate_by_platform(sample))


class TestDailySummaryAccumulator:
    @pytest.mark.asyncio
    async def test_record_creates_and_updates(self, events):
        acc = DailySummaryAccumulator(events)
        await acc.record(_event(1.5, "shopping", "www.ebay.com"))
        await acc.record(_event(0.5, "shopping", "www.ebay.com"))
        summary = acc.get(date_key(NOON))
        assert summary.total_carbon == 2.0
        assert summary.by_category["shopping"] == 2.0

    @pytest.mark.asyncio
    async def test_concurrent_records_lose_nothing(self, events):
        acc = DailySummaryAccumulator(events)
        await asyncio.gather(*(acc.record(_event(1.0)) for _ in range(25)))
        assert acc.get(date_key(NOON)).total_carbon == 25.0

    @pytest.mark.asyncio
    async def test_day_locks_are_released(self, events):
        locks = KeyedLocks()
        acc = DailySummaryAccumulator(events, locks=locks)
        next_day = NOON + 24 * 3600 * 1000
        await acc.record(_event(1.0))
        await acc.record(_event(2.0, ts=next_day))
        await asyncio.gather(*(acc.record(_event(1.0)) for _ in range(25)))
        assert len(locks) == 0
        assert acc.get(date_key(NOON)).total_carbon == 26.0
        assert acc.get(date_key(next_day)).total_carbon == 2.0

    @pytest.mark.asyncio
    async def test_held_lock_is_shared_then_dropped(self):
        locks = KeyedLocks()
        order = []

        async def worker(name):
            async with locks.hold("2026-03-11"):
                order.append(f"{name}-in")
                await asyncio.sleep(0)
                order.append(f"{name}-out")

        await asyncio.gather(worker("a"), worker("b"))
        assert order == ["a-in", "a-out", "b-in", "b-out"]
        assert len(locks) == 0

    @pytest.mark.asyncio
    async def test_days_are_separate(self, events):
        acc = DailySummaryAccumulator(events)
        next_day = NOON + 24 * 3600 * 1000
        await acc.record(_event(1.0))
        await acc.record(_event(4.0, ts=next_day))
        assert acc.get(date_key(NOON)).total_carbon == 1.0
        assert acc.get(date_key(next_day)).total_carbon == 4.0

    def test_unknown_day_is_empty(self, events):
        summary = DailySummaryAccumulator(events).get("1999-01-01")
        assert summary.total_carbon == 0
        assert summary.by_category == {"media": 0.0, "shopping": 0.0, "browsing": 0.0}
