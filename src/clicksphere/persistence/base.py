"""
ClickSphere Persistence Layer - Base Classes

Abstract interface for counter stores. A store owns exclusive write access to
its counters; callers only see immutable `Counter` snapshots and every
mutation goes through one of the store's atomic operations.
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Any

from pydantic import ValidationError

from ..core.counter import Counter, CounterStats
from ..core.errors import InvalidState, StoreUnavailable

logger = logging.getLogger(__name__)


def to_counter(record: Any) -> Counter:
    """Build a snapshot from a stored record, rejecting records that break the counter invariants."""
    try:
        return Counter.model_validate(record)
    except ValidationError as e:
        name = getattr(record, "name", None)
        logger.error(f"Counter '{name}' failed integrity check: {e}")
        raise InvalidState(f"Counter '{name}' is in an invalid state") from e


class CounterStore(ABC):
    """
    Abstract base class for durable counter stores.

    Implementations must make `increment` and `reset` atomic with respect to
    each other and to concurrent callers, and must create a counter at most
    once per name even under concurrent first access.
    """

    def __init__(self):
        self._started: bool = False

    @abstractmethod
    async def get_or_create(self, name: str) -> Counter:
        """
        Return the counter called `name`, creating it at zero if absent.

        Raises:
            StoreUnavailable: the backend could not be reached
        """
        pass

    @abstractmethod
    async def increment(self, name: str) -> Counter:
        """Atomically add one to `value` and `total_increments`."""
        pass

    @abstractmethod
    async def reset(self, name: str) -> Counter:
        """Atomically set `value` to zero, keeping `total_increments`."""
        pass

    async def stats(self, name: str) -> CounterStats:
        """Aggregate statistics for the counter called `name`."""
        counter = await self.get_or_create(name)
        return CounterStats.from_counter(counter)

    async def _connect(self) -> None:
        """Prepare the backend. Backends without setup keep the default."""
        pass

    async def start(self, retries: int = 0, delay: float = 0.0) -> None:
        """
        Prepare the backend, retrying failed connection attempts.

        Args:
            retries: Extra attempts after the first failure
            delay: Seconds to wait between attempts

        Raises:
            StoreUnavailable: every attempt failed
        """
        if self._started:
            return

        attempt = 0
        while True:
            try:
                await self._connect()
                break
            except StoreUnavailable as e:
                if attempt >= retries:
                    logger.error(f"{self.__class__.__name__}: all retries exhausted: {e}")
                    raise
                attempt += 1
                logger.warning(
                    f"{self.__class__.__name__}: connection failed, retrying in {delay}s "
                    f"({retries - attempt + 1} retries left)"
                )
                await asyncio.sleep(delay)

        self._started = True
        logger.info(f"{self.__class__.__name__} started")

    async def close(self) -> None:
        """Release backend resources."""
        self._started = False
