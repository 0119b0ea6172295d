"""Base model for domain event records.

Every record produced by an event factory is an instance of a model derived
from ``DomainEvent``. Records are frozen: once created, no field can be
reassigned and no attribute can be added.
"""

from collections.abc import Mapping
from datetime import datetime
from typing import Annotated, Any

import arrow
from pydantic import AfterValidator, BaseModel, ConfigDict, Field

_MISSING = object()


def utcnow() -> datetime:
    """Current time as a timezone-aware UTC datetime."""
    return arrow.utcnow().datetime


def to_utc(value: datetime) -> datetime:
    """Convert a datetime to UTC. Naive datetimes are taken to be UTC already."""
    return arrow.get(value).to("UTC").datetime


# Timestamps are always stored as timezone-aware UTC
UtcDatetime = Annotated[datetime, AfterValidator(to_utc)]


def _read(source: Any, name: str) -> Any:
    if isinstance(source, Mapping):
        return source.get(name, _MISSING)
    return getattr(source, name, _MISSING)


class DomainEvent(BaseModel):
    """Immutable record describing something that happened in the domain.

    Records carry the event ``type`` (the event name), a ``timestamp`` and the
    payload fields declared by the event schema.
    """

    model_config = ConfigDict(frozen=True)

    type: str = Field(..., description="Event name")
    timestamp: UtcDatetime = Field(default_factory=utcnow, description="When the event occurred")

    def equals(self, other: Any) -> bool:
        """Compare this record with another record or mapping.

        Two events are equal when they have the same type and every field of
        this record matches. Datetimes compare by instant.

        Args:
            other: Record, mapping or any object exposing the same attributes

        Returns:
            True if the events are equal
        """
        if other is None:
            return False

        if other is self:
            return True

        if _read(other, "type") != self.type:
            return False

        return all(_read(other, name) == getattr(self, name) for name in type(self).model_fields)

    def __str__(self) -> str:
        return f"{self.type}({self.model_dump_json()})"
