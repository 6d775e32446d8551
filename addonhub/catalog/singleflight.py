# addonhub/catalog/singleflight.py
from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Hashable
from typing import Any, Generic, TypeVar

logger = logging.getLogger(__name__)

__all__ = ["SingleFlight"]


T = TypeVar("T")



class SingleFlight(Generic[T]):
    """
    Coalesces concurrent calls that share a key into one in-flight task.

    The first caller for a key starts `factory()`; callers arriving while it
    runs await the same task and get the same result (or exception). Once the
    task settles the key is forgotten, so the next call starts a new one.

    Waiters are shielded: cancelling one caller does not cancel the shared
    task for the others.
    """

    def __init__(self) -> None:
        self._inFlight: dict[Hashable, asyncio.Task[Any]] = {}

    def inFlight(self, key: Hashable) -> bool:
        return key in self._inFlight

    async def do(self, key: Hashable, factory: Callable[[], Awaitable[T]]) -> T:
        task = self._inFlight.get(key)
        if task is None:
            task = asyncio.ensure_future(factory())
            self._inFlight[key] = task
            task.add_done_callback(lambda done, key=key: self._forget(key, done))
        else:
            logger.debug("Joining in-flight request %r", key)
        return await asyncio.shield(task)

    def _forget(self, key: Hashable, task: asyncio.Task[Any]) -> None:
        if self._inFlight.get(key) is task:
            del self._inFlight[key]
        # Mark the exception retrieved even when every waiter was cancelled
        if not task.cancelled():
            task.exception()
