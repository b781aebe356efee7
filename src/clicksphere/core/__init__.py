"""
ClickSphere Core Module

Domain layer: counter snapshots, wire messages and the error taxonomy.
No storage or transport dependencies.
"""

from .counter import (
    DEFAULT_COUNTER_NAME,
    ChangeEvent,
    Counter,
    CounterStats,
    PeerNotification,
    as_utc,
    utc_now,
)
from .errors import ClickSphereError, InvalidState, StoreUnavailable

__all__ = [
    "DEFAULT_COUNTER_NAME",
    "Counter",
    "CounterStats",
    "ChangeEvent",
    "PeerNotification",
    "utc_now",
    "as_utc",
    "ClickSphereError",
    "StoreUnavailable",
    "InvalidState",
]
