"""Contracts between aggregates, repositories and the event bus.

The event bus knows nothing about aggregates or persistence. Aggregates record
the events they emit, and a repository publishes those events after a
successful save:

```python
class Order(EventSourcedMixin):
    def __init__(self, order_id: str):
        self.order_id = order_id

    def place(self) -> "Order":
        return self.emit_event(OrderPlaced, {"order_id": self.order_id})


order = Order("o1").place()
repository.save(order)
await publish_domain_events(bus, order)
```
"""

from collections.abc import Mapping
from typing import Any

from loguru import logger

from .event_bus.bus import EventBus
from .events.base import utcnow

_EVENTS_ATTRIBUTE = "_domain_events"


class EventSourcedMixin:
    """Gives an aggregate the ability to record domain events.

    Works with regular classes and dataclasses, including frozen ones; events
    are kept in the instance ``__dict__``.
    """

    def _recorded_events(self) -> list[Any]:
        return vars(self).setdefault(_EVENTS_ATTRIBUTE, [])

    def emit_event(self, event_type_or_factory: Any, payload: Mapping[str, Any] | None = None):
        """Record a new domain event.

        Args:
            event_type_or_factory: Event factory, or a plain event type name
            payload: Event data

        Returns:
            The aggregate, for chaining

        Raises:
            ValidationError: If a factory rejects the payload
            TypeError: If neither a factory nor a type name is given
        """
        payload = dict(payload or {})

        if isinstance(event_type_or_factory, str):
            event = {"type": event_type_or_factory, **payload, "timestamp": utcnow()}
        elif callable(getattr(event_type_or_factory, "create", None)):
            event = event_type_or_factory.create(payload)
        else:
            raise TypeError(f"Invalid event type or factory: {event_type_or_factory!r}")

        self._recorded_events().append(event)
        return self

    def get_domain_events(self) -> list[Any]:
        """Events emitted so far, in emission order (copy)."""
        return list(self._recorded_events())

    def clear_domain_events(self):
        vars(self)[_EVENTS_ATTRIBUTE] = []
        return self


async def publish_domain_events(bus: EventBus, *aggregates: EventSourcedMixin, clear: bool = True) -> list[Any]:
    """Publish the events of saved aggregates, then clear them.

    Events of all aggregates are published as one ordered batch. If publishing
    fails, the aggregates keep their events.

    Args:
        bus: Event bus to publish on
        *aggregates: Aggregates that were just persisted
        clear: Clear the aggregates' events after publishing

    Returns:
        The published events
    """
    events = [event for aggregate in aggregates for event in aggregate.get_domain_events()]
    if not events:
        return []

    logger.debug(f"Publishing {len(events)} domain events from {len(aggregates)} aggregates")
    await bus.publish_all(events)

    if clear:
        for aggregate in aggregates:
            aggregate.clear_domain_events()

    return events
