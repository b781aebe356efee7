"""
ClickSphere Persistence Layer - Memory Backend

In-memory counter store for development and testing.
Data is lost when the application restarts.
"""

import asyncio
import logging
from typing import Dict

from ..core.counter import Counter, utc_now
from .base import CounterStore

logger = logging.getLogger(__name__)


class MemoryCounterStore(CounterStore):
    """
    In-memory counter store.

    All read-modify-write cycles run under a single lock, so concurrent
    increments are serialized and none is lost.
    """

    def __init__(self):
        super().__init__()
        self._counters: Dict[str, Counter] = {}
        self._lock = asyncio.Lock()

    def _get_or_create_locked(self, name: str) -> Counter:
        counter = self._counters.get(name)
        if counter is None:
            counter = Counter.fresh(name)
            self._counters[name] = counter
            logger.info(f"Created new counter '{name}'")
        return counter

    async def get_or_create(self, name: str) -> Counter:
        async with self._lock:
            return self._get_or_create_locked(name)

    async def increment(self, name: str) -> Counter:
        async with self._lock:
            current = self._get_or_create_locked(name)
            updated = current.model_copy(update={
                "value": current.value + 1,
                "total_increments": current.total_increments + 1,
                "last_updated_at": utc_now(),
            })
            self._counters[name] = updated
        logger.debug(f"Counter '{name}' incremented to {updated.value}")
        return updated

    async def reset(self, name: str) -> Counter:
        async with self._lock:
            current = self._get_or_create_locked(name)
            updated = current.model_copy(update={"value": 0, "last_updated_at": utc_now()})
            self._counters[name] = updated
        logger.info(f"Counter '{name}' reset to 0")
        return updated
