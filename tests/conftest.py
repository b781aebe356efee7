"""Shared fixtures for the ClickSphere test suite."""

from typing import List

import pytest
import pytest_asyncio

from clicksphere.app.sync import SyncProtocolAdapter
from clicksphere.core.counter import ChangeEvent
from clicksphere.core.errors import StoreUnavailable
from clicksphere.persistence import MemoryCounterStore, SQLConnectionConfig, SQLCounterStore
from clicksphere.persistence.base import CounterStore
from clicksphere.realtime.hub import BroadcastHub


class RecordingHub(BroadcastHub):
    """Hub that remembers every event it was asked to broadcast"""

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        self.events: List[ChangeEvent] = []

    def broadcast(self, event: ChangeEvent) -> int:
        self.events.append(event)
        return super().broadcast(event)


class UnavailableStore(CounterStore):
    """Store whose backend is always down"""

    async def get_or_create(self, name):
        raise StoreUnavailable("database is down")

    async def increment(self, name):
        raise StoreUnavailable("database is down")

    async def reset(self, name):
        raise StoreUnavailable("database is down")


@pytest.fixture
def memory_store():
    return MemoryCounterStore()


@pytest.fixture
def hub():
    return RecordingHub(queue_size=10, heartbeat_interval=0.05)


@pytest.fixture
def sync(memory_store, hub):
    return SyncProtocolAdapter(memory_store, hub)


@pytest.fixture
def database_url(tmp_path):
    return f"sqlite+aiosqlite:///{tmp_path / 'clicksphere.db'}"


@pytest_asyncio.fixture
async def sql_store(database_url):
    store = SQLCounterStore(SQLConnectionConfig(database_url=database_url))
    await store.start()
    yield store
    await store.close()


@pytest.fixture
def unavailable_store():
    return UnavailableStore()
