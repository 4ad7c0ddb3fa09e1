"""
Tests for the in-process event bus.
"""
from curbcarbon.services.event_bus import EventBus, Topic


class TestEventBus:
    def test_delivers_in_subscription_order(self):
        bus = EventBus()
        seen = []
        bus.subscribe(Topic.EVENT_RECORDED, lambda p: seen.append(("a", p)))
        bus.subscribe(Topic.EVENT_RECORDED, lambda p: seen.append(("b", p)))
        assert bus.publish(Topic.EVENT_RECORDED, 1) == 2
        assert seen == [("a", 1), ("b", 1)]

    def test_topics_are_separate(self):
        bus = EventBus()
        seen = []
        bus.subscribe(Topic.ACHIEVEMENTS_UNLOCKED, seen.append)
        bus.publish(Topic.EVENT_RECORDED, "x")
        assert seen == []

    def test_failing_subscriber_is_isolated(self):
        bus = EventBus()
        seen = []

        def broken(payload):
            raise RuntimeError("subscriber bug")

        bus.subscribe(Topic.EVENT_RECORDED, broken)
        bus.subscribe(Topic.EVENT_RECORDED, seen.append)
        assert bus.publish(Topic.EVENT_RECORDED, "ok") == 1
        assert seen == ["ok"]

    def test_unsubscribe(self):
        bus = EventBus()
        seen = []
        unsubscribe = bus.subscribe(Topic.EVENT_RECORDED, seen.append)
        unsubscribe()
        unsubscribe()
        assert bus.publish(Topic.EVENT_RECORDED, 1) == 0
        assert seen == []
