"""Domain events and the event bus that distributes them."""

from .aggregates import EventSourcedMixin, publish_domain_events
from .event_bus import (
    AdapterError,
    EventBus,
    EventBusAdapter,
    EventBusError,
    EventEmissionError,
    EventHandler,
    HandlerRegistrationError,
    InMemoryAdapter,
    Subscription,
    create_event_bus,
)
from .events import CreateResult, DomainEvent, EventFactory, domain_event, extend_schema
from .exceptions import DomainError, ValidationError
from .settings import Settings, get_settings

__all__ = [
    "AdapterError",
    "CreateResult",
    "DomainError",
    "DomainEvent",
    "EventBus",
    "EventBusAdapter",
    "EventBusError",
    "EventEmissionError",
    "EventFactory",
    "EventHandler",
    "EventSourcedMixin",
    "HandlerRegistrationError",
    "InMemoryAdapter",
    "Settings",
    "Subscription",
    "ValidationError",
    "create_event_bus",
    "domain_event",
    "extend_schema",
    "get_settings",
    "publish_domain_events",
]
