"""Event Bus System for Domain Events.

This module provides the event bus that distributes domain events to the
handlers interested in them. It supports:

- **Ordered, Awaited Dispatch**: ``publish`` returns once every handler has finished
- **One-time Subscriptions**: ``once`` handlers run for the first matching event only
- **Transactional Batching**: a pending queue flushed after a unit of work commits
- **Pluggable Transports**: an adapter can replace in-memory dispatch
- **Dependency Injection**: class-based handlers receive services from a ServiceRegistry

## Quick Start

```python
from domain_events.event_bus import create_event_bus
from domain_events.events import domain_event

OrderPlaced = domain_event(name="OrderPlaced", schema={"order_id": (str, ...)})


async def send_confirmation(event) -> None:
    print(f"Order placed: {event.order_id}")


bus = create_event_bus()
bus.on(OrderPlaced, send_confirmation)
await bus.publish(OrderPlaced.create({"order_id": "o1"}))
```

For handler classes, subscriptions and the adapter contract, see `core.py`.
For the bus API reference, see `bus.py`.

"""

from .adapters import InMemoryAdapter
from .bus import EventBus, create_event_bus, resolve_event_type
from .core import (
    AdapterError,
    EventBusAdapter,
    EventBusError,
    EventEmissionError,
    EventHandler,
    HandlerRegistration,
    HandlerRegistrationError,
    Subscription,
)

__all__ = [
    "AdapterError",
    "EventBus",
    "EventBusAdapter",
    "EventBusError",
    "EventEmissionError",
    "EventHandler",
    "HandlerRegistration",
    "HandlerRegistrationError",
    "InMemoryAdapter",
    "Subscription",
    "create_event_bus",
    "resolve_event_type",
]
