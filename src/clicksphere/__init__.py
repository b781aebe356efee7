"""
ClickSphere - Shared Real-Time Counter

A single global counter that any client can increment, kept in a durable
store and pushed to every connected client as it changes.
"""

from .core import (
    DEFAULT_COUNTER_NAME,
    ChangeEvent,
    ClickSphereError,
    Counter,
    CounterStats,
    InvalidState,
    PeerNotification,
    StoreUnavailable,
)
from .persistence import CounterStore, MemoryCounterStore, SQLCounterStore, SQLConnectionConfig, create_store
from .realtime import BroadcastHub, Connection, ConnectionState
from .app import SyncProtocolAdapter, ApplicationConfig, Environment, get_config, set_config

__all__ = [
    # Core
    'DEFAULT_COUNTER_NAME',
    'Counter',
    'CounterStats',
    'ChangeEvent',
    'PeerNotification',
    'ClickSphereError',
    'StoreUnavailable',
    'InvalidState',

    # Persistence
    'CounterStore',
    'MemoryCounterStore',
    'SQLCounterStore',
    'SQLConnectionConfig',
    'create_store',

    # Realtime
    'BroadcastHub',
    'Connection',
    'ConnectionState',

    # Application service layer
    'SyncProtocolAdapter',
    'ApplicationConfig',
    'Environment',
    'get_config',
    'set_config',
]
