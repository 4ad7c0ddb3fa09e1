"""
In-process publish/subscribe for signals the core emits to host layers.

Topics:
  event.recorded         payload: EventRecord
  achievements.unlocked  payload: list[str] of newly unlocked ids

Delivery is synchronous and in subscription order. A subscriber that raises
is logged and skipped; other subscribers and the publisher are unaffected.
"""
from __future__ import annotations

import logging
from collections import defaultdict
from typing import Any, Callable

logger = logging.getLogger(__name__)

Handler = Callable[[Any], None]


class Topic:
    EVENT_RECORDED        = "event.recorded"
    ACHIEVEMENTS_UNLOCKED = "achievements.unlocked"


class EventBus:
    def __init__(self):
        self._handlers: dict[str, list[Handler]] = defaultdict(list)

    def subscribe(self, topic: str, handler: Handler) -> Callable[[], None]:
        """Register `handler`; returns a callable that unsubscribes it."""
        self._handlers[topic].append(handler)

        def unsubscribe() -> None:
            if handler in self._handlers[topic]:
                self._handlers[topic].remove(handler)

        return unsubscribe

    def publish(self, topic: str, payload: Any) -> int:
        """Deliver `payload`; returns how many handlers ran without error."""
        delivered = 0
        for handler in list(self._handlers.get(topic, ())):
            try:
                handler(payload)
                delivered += 1
            except Exception:
                logger.exception(f"Subscriber for {topic} failed")
        return delivered


bus = EventBus()
