"""
ClickSphere Persistence Module

Counter store backends. The SQL store is the durable source of truth; the
memory store serves development and tests.
"""

from typing import Optional

from .base import CounterStore, to_counter
from .memory import MemoryCounterStore
from .sql import CounterRecord, SQLConnectionConfig, SQLCounterStore


def create_store(backend: str = "sql", database_url: Optional[str] = None, echo: bool = False) -> CounterStore:
    """
    Build a counter store for the named backend.

    Args:
        backend: "sql" or "memory"
        database_url: SQLAlchemy async URL, required for the SQL backend
        echo: Log emitted SQL statements
    """
    if backend == "memory":
        return MemoryCounterStore()
    if backend == "sql":
        if not database_url:
            raise ValueError("The sql backend needs a database_url")
        return SQLCounterStore(SQLConnectionConfig(database_url=database_url, echo=echo))
    raise ValueError(f"Unknown storage backend: {backend}")


__all__ = [
    "CounterStore",
    "to_counter",
    "MemoryCounterStore",
    "SQLCounterStore",
    "SQLConnectionConfig",
    "CounterRecord",
    "create_store",
]
