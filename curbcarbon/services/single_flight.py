"""
Single-flight coalescing for async operations.

At most one operation runs at a time per SingleFlight instance. Callers that
arrive while it is running join it and receive the same result (or the same
exception) instead of starting their own.
"""
from __future__ import annotations

import asyncio
from typing import Awaitable, Callable, Generic, Optional, TypeVar

T = TypeVar("T")


class SingleFlight(Generic[T]):
    def __init__(self):
        self._task: Optional[asyncio.Task[T]] = None

    @property
    def in_flight(self) -> bool:
        return self._task is not None

    async def run(self, factory: Callable[[], Awaitable[T]]) -> T:
        """Start `factory()` unless an operation is already running, then await it."""
        if self._task is None:
            self._task = asyncio.ensure_future(self._execute(factory))
        # shield: one caller being cancelled must not cancel the shared work
        return await asyncio.shield(self._task)

    async def join(self) -> Optional[T]:
        """Await the running operation, or return None if nothing is running."""
        task = self._task
        if task is None:
            return None
        return await asyncio.shield(task)

    async def _execute(self, factory: Callable[[], Awaitable[T]]) -> T:
        try:
            return await factory()
        finally:
            self._task = None
