"""Domain event definitions.

This package provides the event factory used to define domain events, the
frozen record model all events derive from, and helpers for composing event
schemas.
"""

from .base import DomainEvent, UtcDatetime, utcnow
from .factory import CreateResult, EventFactory, domain_event
from .schema import build_schema, extend_schema, with_timestamp

__all__ = [
    "CreateResult",
    "DomainEvent",
    "EventFactory",
    "UtcDatetime",
    "build_schema",
    "domain_event",
    "extend_schema",
    "utcnow",
    "with_timestamp",
]
