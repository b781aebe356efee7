"""
ClickSphere Persistence Layer - SQL Backend

Durable counter store on SQLModel tables and SQLAlchemy's async engine.

Increment and reset are single `UPDATE` statements evaluated by the database
(`value = value + 1`), so concurrent requests never lose an update. Creation
relies on the unique index on `name`: a concurrent duplicate insert fails with
an integrity error, and the loser re-reads the winner's row.
"""

import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, AsyncIterator, Dict, Optional

from sqlalchemy import Column, DateTime, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlmodel import Field, SQLModel

from ..core.counter import Counter, utc_now
from ..core.errors import InvalidState, StoreUnavailable
from .base import CounterStore, to_counter

logger = logging.getLogger(__name__)


class CounterRecord(SQLModel, table=True):
    """One row per named counter."""

    __tablename__ = "counter"
    __table_args__ = {"extend_existing": True}

    id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(index=True, unique=True, max_length=100)
    value: int = Field(default=0)
    total_increments: int = Field(default=0)
    created_at: datetime = Field(sa_column=Column(DateTime(timezone=True), nullable=False))
    last_updated_at: datetime = Field(sa_column=Column(DateTime(timezone=True), nullable=False))


@dataclass
class SQLConnectionConfig:
    """SQL database connection configuration"""
    database_url: str
    echo: bool = False
    connect_args: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        # Give concurrent SQLite writers time to queue up instead of failing fast
        if self.database_url.startswith("sqlite") and "timeout" not in self.connect_args:
            self.connect_args["timeout"] = 30


class SQLCounterStore(CounterStore):
    """
    SQL counter store.

    Any SQLAlchemy failure is reported as `StoreUnavailable` with the original
    error chained; no operation is retried here.
    """

    def __init__(self, config: SQLConnectionConfig):
        super().__init__()
        self.config = config
        self.engine = create_async_engine(
            config.database_url,
            echo=config.echo,
            connect_args=config.connect_args,
        )
        self.session_factory = async_sessionmaker(
            bind=self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )

    @asynccontextmanager
    async def _session(self, operation: str) -> AsyncIterator[AsyncSession]:
        try:
            async with self.session_factory() as session:
                yield session
        except SQLAlchemyError as e:
            logger.error(f"Counter store failed to {operation}: {e}")
            raise StoreUnavailable(f"Failed to {operation} counter") from e

    async def _connect(self) -> None:
        try:
            async with self.engine.begin() as conn:
                await conn.run_sync(SQLModel.metadata.create_all, tables=[CounterRecord.__table__])
        except (SQLAlchemyError, OSError) as e:
            raise StoreUnavailable(f"Could not connect to {self.engine.url}: {e}") from e
        logger.info(f"Counter table ready: {self.engine.url}")

    async def close(self) -> None:
        await self.engine.dispose()
        await super().close()

    async def _load(self, session: AsyncSession, name: str) -> Optional[CounterRecord]:
        result = await session.execute(select(CounterRecord).where(CounterRecord.name == name))
        return result.scalar_one_or_none()

    async def _create(self, session: AsyncSession, name: str) -> CounterRecord:
        now = utc_now()
        record = CounterRecord(name=name, value=0, total_increments=0, created_at=now, last_updated_at=now)
        session.add(record)
        try:
            await session.commit()
        except IntegrityError:
            # Lost a concurrent create; the winner's row is the counter
            await session.rollback()
            winner = await self._load(session, name)
            if winner is None:
                raise InvalidState(f"Counter '{name}' violated uniqueness but no row exists")
            logger.debug(f"Counter '{name}' was created concurrently, using existing row")
            return winner
        logger.info(f"Created new counter '{name}'")
        return record

    async def get_or_create(self, name: str) -> Counter:
        async with self._session("load") as session:
            record = await self._load(session, name)
            if record is None:
                record = await self._create(session, name)
            return to_counter(record)

    async def _apply(self, name: str, operation: str, **values: Any) -> Counter:
        await self.get_or_create(name)
        async with self._session(operation) as session:
            await session.execute(
                update(CounterRecord)
                .where(CounterRecord.name == name)
                .values(**values)
                .execution_options(synchronize_session=False)
            )
            record = await self._load(session, name)
            await session.commit()
        if record is None:
            raise InvalidState(f"Counter '{name}' disappeared during {operation}")
        return to_counter(record)

    async def increment(self, name: str) -> Counter:
        counter = await self._apply(
            name,
            "increment",
            value=CounterRecord.value + 1,
            total_increments=CounterRecord.total_increments + 1,
            last_updated_at=utc_now(),
        )
        logger.debug(f"Counter '{name}' incremented to {counter.value}")
        return counter

    async def reset(self, name: str) -> Counter:
        counter = await self._apply(name, "reset", value=0, last_updated_at=utc_now())
        logger.info(f"Counter '{name}' reset to 0")
        return counter
