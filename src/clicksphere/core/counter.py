"""
Counter Domain Models

Immutable snapshots of the shared counter and the messages exchanged with
clients. Everything here serializes to camelCase JSON so the wire shape is
`{value, lastUpdatedAt, totalIncrements, isReset}`.
"""

from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, TypeAdapter, ValidationError, field_validator
from pydantic.alias_generators import to_camel

DEFAULT_COUNTER_NAME = "global"

_TIMESTAMP = TypeAdapter(datetime)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes; everything we store is UTC
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class WireModel(BaseModel):
    """Base for frozen models exchanged with clients."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
        frozen=True,
    )

    def to_wire(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


class Counter(WireModel):
    """Read-only snapshot of a named counter as held by the store."""

    name: str = DEFAULT_COUNTER_NAME
    value: int = Field(default=0, ge=0)
    total_increments: int = Field(default=0, ge=0)
    created_at: datetime
    last_updated_at: datetime

    @field_validator("created_at", "last_updated_at")
    @classmethod
    def _normalize_timestamp(cls, value: datetime) -> datetime:
        return as_utc(value)

    @classmethod
    def fresh(cls, name: str, now: Optional[datetime] = None) -> "Counter":
        now = now or utc_now()
        return cls(name=name, value=0, total_increments=0, created_at=now, last_updated_at=now)


class ChangeEvent(WireModel):
    """
    New counter state pushed to every open connection.

    Only fields that were set go on the wire: clients apply events as signal
    patches, where a null would clear their current value.
    """

    value: int
    total_increments: Optional[int] = None
    last_updated_at: Optional[Union[datetime, str]] = None
    is_reset: bool = False

    @classmethod
    def from_counter(cls, counter: Counter, is_reset: bool = False) -> "ChangeEvent":
        return cls(
            value=counter.value,
            total_increments=counter.total_increments,
            last_updated_at=counter.last_updated_at,
            is_reset=is_reset,
        )

    def to_wire(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_unset=True)


class PeerNotification(WireModel):
    """
    Advisory change announced by a client (optimistic local echo).

    Never applied to the store; it is only re-broadcast so other clients can
    update their display early. Fields are relayed as the client sent them,
    including the exact `lastUpdatedAt` text.
    """

    value: int = Field(ge=0)
    total_increments: Optional[int] = Field(default=None, ge=0)
    last_updated_at: Optional[str] = None
    reset: bool = Field(default=False, validation_alias=AliasChoices("reset", "isReset"))

    @field_validator("last_updated_at")
    @classmethod
    def _check_timestamp(cls, value: Optional[str]) -> Optional[str]:
        if value is not None:
            try:
                _TIMESTAMP.validate_python(value)
            except ValidationError as e:
                raise ValueError(f"not an ISO 8601 timestamp: {value!r}") from e
        return value

    def to_change_event(self) -> ChangeEvent:
        sent = self.model_dump(include={"total_increments", "last_updated_at"}, exclude_unset=True)
        return ChangeEvent(value=self.value, is_reset=self.reset, **sent)


class CounterStats(WireModel):
    """Aggregate statistics derived from a counter snapshot."""

    value: int
    total_increments: int
    created_at: datetime
    last_updated_at: datetime
    days_since_created: int
    average_clicks_per_day: Union[int, float]

    @classmethod
    def from_counter(cls, counter: Counter, now: Optional[datetime] = None) -> "CounterStats":
        now = as_utc(now) if now else utc_now()
        days = max((now - counter.created_at) // timedelta(days=1), 0)
        if days > 0:
            average: Union[int, float] = round(counter.total_increments / days, 2)
        else:
            # Same-day counters report the raw total
            average = counter.total_increments
        return cls(
            value=counter.value,
            total_increments=counter.total_increments,
            created_at=counter.created_at,
            last_updated_at=counter.last_updated_at,
            days_since_created=days,
            average_clicks_per_day=average,
        )
