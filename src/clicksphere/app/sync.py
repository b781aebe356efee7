"""
Sync Protocol Adapter

Bridges client requests into counter store operations and store results into
hub broadcasts.

Authoritative requests (increment, reset) mutate the store first and only
broadcast once the mutation succeeded; a store failure propagates unchanged
and nothing is broadcast. Advisory notifications go the other way round: they
are re-broadcast as-is and never reach the store.
"""

import logging

from ..core.counter import DEFAULT_COUNTER_NAME, ChangeEvent, Counter, CounterStats, PeerNotification
from ..persistence.base import CounterStore
from ..realtime.hub import BroadcastHub

logger = logging.getLogger(__name__)


class SyncProtocolAdapter:
    """Request/response operations on one named counter, plus its push channel."""

    def __init__(self, store: CounterStore, hub: BroadcastHub, counter_name: str = DEFAULT_COUNTER_NAME):
        self.store = store
        self.hub = hub
        self.counter_name = counter_name

    async def request_increment(self) -> Counter:
        counter = await self.store.increment(self.counter_name)
        self.hub.broadcast(ChangeEvent.from_counter(counter, is_reset=False))
        return counter

    async def request_reset(self) -> Counter:
        counter = await self.store.reset(self.counter_name)
        self.hub.broadcast(ChangeEvent.from_counter(counter, is_reset=True))
        return counter

    async def request_snapshot(self) -> Counter:
        return await self.store.get_or_create(self.counter_name)

    async def request_stats(self) -> CounterStats:
        return await self.store.stats(self.counter_name)

    def receive_notification(self, connection_id: str, notification: PeerNotification) -> bool:
        """
        Re-broadcast a client's advisory change to every open connection.

        The sender gets its own echo back; clients drop notifications whose
        value matches what they already show.

        Returns:
            False when the sender is not an open connection and the
            notification was dropped
        """
        if not self.hub.is_open(connection_id):
            logger.warning(f"Ignoring notification from connection {connection_id}: not open")
            return False

        self.hub.broadcast(notification.to_change_event())
        return True
