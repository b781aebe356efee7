"""
ClickSphere Broadcast Hub

In-memory registry of live client connections and the fan-out broadcaster
that pushes counter changes to them.

Each connection owns a bounded event queue drained by its transport (the SSE
stream). Broadcasting only enqueues, so one stalled client can never hold up
the others: a closed connection or a full queue is a send failure that
removes that connection and nothing else.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, AsyncIterator, Dict, Optional
from uuid import uuid4

from ..core.counter import ChangeEvent, utc_now

logger = logging.getLogger(__name__)


class ConnectionState(Enum):
    """Connection state enumeration"""
    CONNECTING = "connecting"
    OPEN = "open"
    CLOSED = "closed"


class ConnectionClosed(Exception):
    """Raised when sending to a connection that is not open"""
    pass


@dataclass
class Connection:
    """One live client session, owned by the hub for its lifetime."""

    id: str = field(default_factory=lambda: str(uuid4()))
    queue_size: int = 100
    state: ConnectionState = ConnectionState.CONNECTING
    created_at: datetime = field(default_factory=utc_now)
    _queue: "asyncio.Queue[ChangeEvent]" = field(init=False, repr=False)

    def __post_init__(self):
        self._queue = asyncio.Queue(maxsize=self.queue_size)

    @property
    def is_open(self) -> bool:
        return self.state is ConnectionState.OPEN

    @property
    def pending(self) -> int:
        return self._queue.qsize()

    def send(self, event: ChangeEvent) -> None:
        """
        Enqueue an event without waiting.

        Raises:
            ConnectionClosed: the connection is not open
            asyncio.QueueFull: the consumer has stalled
        """
        if not self.is_open:
            raise ConnectionClosed(f"Connection {self.id} is {self.state.value}")
        self._queue.put_nowait(event)

    async def next_event(self, timeout: float) -> Optional[ChangeEvent]:
        """Wait for the next queued event; None when `timeout` passes first."""
        try:
            return await asyncio.wait_for(self._queue.get(), timeout=timeout)
        except asyncio.TimeoutError:
            return None


class BroadcastHub:
    """
    Tracks open connections and fans change events out to all of them.

    The registry is only mutated by `register` and `unregister`; `broadcast`
    iterates a snapshot, so a disconnect during a broadcast cannot disturb it.
    """

    def __init__(self, queue_size: int = 100, heartbeat_interval: float = 15.0):
        """
        Initialize the hub.

        Args:
            queue_size: Events buffered per connection before it counts as stalled
            heartbeat_interval: Idle seconds before a stream yields a heartbeat
        """
        self.queue_size = queue_size
        self.heartbeat_interval = heartbeat_interval
        self._connections: Dict[str, Connection] = {}
        self._metrics = {
            "connections_opened": 0,
            "connections_closed": 0,
            "events_broadcast": 0,
            "deliveries": 0,
            "deliveries_dropped": 0,
        }

    def connect(self, connection_id: Optional[str] = None) -> Connection:
        """Create a connection in the `CONNECTING` state; it receives nothing until registered."""
        if connection_id is None:
            return Connection(queue_size=self.queue_size)
        return Connection(id=connection_id, queue_size=self.queue_size)

    def register(self, connection: Connection) -> None:
        """Add a connection and open it. Registering the same id again is a no-op."""
        if connection.id in self._connections:
            return
        connection.state = ConnectionState.OPEN
        self._connections[connection.id] = connection
        self._metrics["connections_opened"] += 1
        logger.info(f"Connection opened: {connection.id} ({len(self._connections)} online)")

    def unregister(self, connection_id: str) -> None:
        """Remove and close a connection. Unknown or already-removed ids are ignored."""
        connection = self._connections.pop(connection_id, None)
        if connection is None:
            return
        connection.state = ConnectionState.CLOSED
        self._metrics["connections_closed"] += 1
        logger.info(f"Connection closed: {connection_id} ({len(self._connections)} online)")

    def is_open(self, connection_id: str) -> bool:
        connection = self._connections.get(connection_id)
        return connection is not None and connection.is_open

    @property
    def connection_count(self) -> int:
        return len(self._connections)

    def broadcast(self, event: ChangeEvent) -> int:
        """
        Deliver `event` to every registered connection.

        Never raises for a per-connection failure: the failing connection is
        unregistered and delivery continues with the rest.

        Returns:
            Number of connections the event reached
        """
        self._metrics["events_broadcast"] += 1
        delivered = 0

        for connection in list(self._connections.values()):
            try:
                connection.send(event)
            except (ConnectionClosed, asyncio.QueueFull) as e:
                self._metrics["deliveries_dropped"] += 1
                logger.warning(f"Dropping connection {connection.id}: {type(e).__name__}")
                self.unregister(connection.id)
                continue
            delivered += 1

        self._metrics["deliveries"] += delivered
        logger.debug(f"Broadcast value={event.value} reset={event.is_reset} to {delivered} connections")
        return delivered

    async def stream(self, connection: Connection) -> AsyncIterator[Optional[ChangeEvent]]:
        """
        Drain a connection's queue for its transport.

        Yields each event as it arrives, or None after `heartbeat_interval`
        idle seconds, and stops once the connection is closed. The transport
        that registered the connection unregisters it when the client goes
        away.
        """
        while connection.is_open:
            yield await connection.next_event(timeout=self.heartbeat_interval)

    def get_metrics(self) -> Dict[str, Any]:
        """Get hub metrics"""
        return {
            **self._metrics,
            "active_connections": len(self._connections),
            "heartbeat_interval": self.heartbeat_interval,
            "queue_size": self.queue_size,
        }

    def get_connection_info(self) -> list:
        """Get information about active connections"""
        return [
            {
                "id": conn.id,
                "state": conn.state.value,
                "created_at": conn.created_at.isoformat(),
                "pending": conn.pending,
            }
            for conn in self._connections.values()
        ]


__all__ = ["BroadcastHub", "Connection", "ConnectionState", "ConnectionClosed"]
