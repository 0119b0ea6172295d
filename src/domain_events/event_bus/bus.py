"""Event Bus Implementation.

This module provides the main EventBus class that handles handler registration,
event publication and the pending-event queue used for transactional batching.

## Key Features

- **Ordered Dispatch**: Handlers start in registration order; ``publish`` waits for all of them
- **One-time Subscriptions**: ``once`` handlers are removed after their first dispatch
- **Pending Queue**: Collect events during a unit of work and flush them after commit
- **Adapter Seam**: Delegate publish/subscribe to an external transport
- **ServiceRegistry Integration**: Class-based handlers get constructor injection

## Advanced Usage

```python
from domain_events.event_bus import create_event_bus

bus = create_event_bus()
bus.on(OrderPlaced, update_inventory)
bus.once("OrderPlaced", send_welcome_offer)

# Inside a unit of work
bus.add_pending_event(OrderPlaced.create({"order_id": "o1", "total": 10.0}))
bus.add_pending_event(PaymentReceived.create({"order_id": "o1", "amount": 10.0}))

# After the transaction commits
await bus.publish_pending_events()
```

"""

import asyncio
import inspect
from collections.abc import Mapping
from typing import Any

from loguru import logger

from ..events.base import DomainEvent
from ..services.registry import ServiceRegistry
from ..settings import Settings, get_settings
from .core import (
    AdapterError,
    EventBusAdapter,
    EventEmissionError,
    Handler,
    HandlerRegistration,
    HandlerRegistrationError,
    Subscription,
)

# Values that can never be an event object
_SCALAR_TYPES = (str, bytes, bytearray, int, float, complex, bool)


def resolve_event_type(event_type_or_factory: Any) -> str | None:
    """Resolve the event type name from a string, factory or event record class.

    Returns:
        The event type, or None if it cannot be resolved
    """
    if isinstance(event_type_or_factory, str):
        return event_type_or_factory or None

    if isinstance(event_type_or_factory, type) and issubclass(event_type_or_factory, DomainEvent):
        type_field = event_type_or_factory.model_fields.get("type")
        event_type = type_field.default if type_field is not None else None
    else:
        event_type = getattr(event_type_or_factory, "type", None)

    return event_type if isinstance(event_type, str) and event_type else None


def _check_event_object(event: Any) -> None:
    if event is None or isinstance(event, _SCALAR_TYPES):
        raise EventEmissionError("Invalid event object", context={"event": event})


def _event_type_of(event: Any) -> str:
    _check_event_object(event)
    event_type = event.get("type") if isinstance(event, Mapping) else getattr(event, "type", None)
    if not isinstance(event_type, str) or not event_type:
        raise EventEmissionError("Event type is required", context={"event": event})
    return event_type


class EventBus:
    """Event bus for publishing domain events and subscribing to them.

    Without an adapter the bus dispatches in memory. Once an adapter is set,
    publish and subscribe calls are delegated to it instead.

    Example:
        ```python
        bus = create_event_bus()
        subscription = bus.on("OrderPlaced", handle_order_placed)
        await bus.publish(OrderPlaced.create({"order_id": "o1", "total": 9.5}))
        subscription.unsubscribe()
        ```
    """

    def __init__(
        self,
        adapter: EventBusAdapter | None = None,
        registry: ServiceRegistry | None = None,
        settings: Settings | None = None,
    ) -> None:
        """Initialize a new EventBus instance.

        Args:
            adapter: Optional transport to delegate publish/subscribe to
            registry: Optional service registry for class-based handler injection
            settings: Settings to use (defaults to ``get_settings()``)
        """
        self._handlers: dict[str, list[HandlerRegistration]] = {}
        self._pending_events: list[Any] = []
        self._adapter: EventBusAdapter | None = None
        self._registry = registry
        self._settings = settings if settings is not None else get_settings()

        if adapter is not None:
            self.set_adapter(adapter)

        logger.debug(f"EventBus initialized (adapter={type(adapter).__name__ if adapter is not None else None})")

    @property
    def adapter(self) -> EventBusAdapter | None:
        return self._adapter

    @property
    def pending_events(self) -> tuple[Any, ...]:
        """Events waiting for the next ``publish_pending_events`` call."""
        return tuple(self._pending_events)

    def on(self, event_type_or_factory: Any, handler: Handler, *, once: bool = False) -> Subscription:
        """Register a handler for an event type.

        Args:
            event_type_or_factory: Event type name, event factory or event record class
            handler: Function, coroutine function, handler instance or ``EventHandler`` class
            once: Remove the handler after its first invocation

        Returns:
            Subscription whose ``unsubscribe`` removes exactly this registration

        Raises:
            HandlerRegistrationError: If the handler is not callable, the event
                type cannot be resolved, or the adapter fails to subscribe
        """
        if not callable(handler):
            raise HandlerRegistrationError(
                f"Event handler must be callable, got: {type(handler).__name__}",
                context={"handler": handler},
            )

        event_type = resolve_event_type(event_type_or_factory)
        if event_type is None:
            raise HandlerRegistrationError(
                "Invalid event type or factory",
                context={"event_type_or_factory": event_type_or_factory},
            )

        if self._adapter is not None:
            return self._subscribe_with_adapter(event_type, handler)

        registration = HandlerRegistration(handler=handler, once=once)
        self._handlers.setdefault(event_type, []).append(registration)
        logger.debug(f"Registered {'one-time ' if once else ''}handler for {event_type}: {handler}")

        return Subscription(event_type, lambda: self._remove_registration(event_type, registration))

    def once(self, event_type_or_factory: Any, handler: Handler) -> Subscription:
        """Register a handler that is removed after its first invocation."""
        return self.on(event_type_or_factory, handler, once=True)

    def clear_handlers(self, event_type_or_factory: Any = None) -> None:
        """Clear handlers for a specific event type or all events."""
        if event_type_or_factory is None:
            self._handlers.clear()
            logger.debug("Cleared all handlers")
            return

        event_type = resolve_event_type(event_type_or_factory)
        if event_type in self._handlers:
            del self._handlers[event_type]
            logger.debug(f"Cleared handlers for {event_type}")

    def get_handler_count(self, event_type_or_factory: Any) -> int:
        """Get the number of in-memory handlers registered for an event type."""
        return len(self._handlers.get(resolve_event_type(event_type_or_factory), ()))

    def get_registered_events(self) -> list[str]:
        """Get all event types that have in-memory handlers."""
        return list(self._handlers.keys())

    async def publish(self, event: Any) -> None:
        """Publish an event and wait for every handler to complete.

        Handlers of the event type are started in registration order and run
        concurrently. One-time handlers are deregistered as soon as they are
        scheduled, whether or not they succeed.

        Args:
            event: Event record, or any object/mapping with a ``type``

        Raises:
            EventEmissionError: If the event is invalid or the adapter fails
            Exception: The first exception raised by a handler
        """
        event_type = _event_type_of(event)

        if self._adapter is not None:
            await self._publish_with_adapter(event_type, event)
            return

        # Snapshot so handlers may subscribe or unsubscribe during dispatch
        registrations = list(self._handlers.get(event_type, ()))
        if not registrations:
            logger.debug(f"No handlers registered for {event_type}")
            return

        logger.debug(f"Publishing {event_type} to {len(registrations)} handlers")
        tasks = [asyncio.create_task(self._execute_handler(registration.handler, event)) for registration in registrations]

        for registration in registrations:
            if registration.once:
                self._remove_registration(event_type, registration)

        try:
            await asyncio.gather(*tasks)
        except Exception as e:
            if self._settings.log_handler_failures:
                logger.warning(f"Handler failed while publishing {event_type}: {type(e).__name__}: {e}")
            raise

        logger.trace(f"Event {event_type} processed by {len(tasks)} handlers")

    async def publish_all(self, events: list[Any] | tuple[Any, ...]) -> None:
        """Publish events one after another.

        Each event is fully handled before the next one is published. The first
        failure stops the batch; later events are not published.

        Raises:
            EventEmissionError: If ``events`` is not a list or tuple
        """
        if not isinstance(events, (list, tuple)):
            raise EventEmissionError("Events must be a list", context={"events": events})

        for event in events:
            await self.publish(event)

    def add_pending_event(self, event: Any) -> None:
        """Queue an event for the next ``publish_pending_events`` call."""
        _check_event_object(event)
        self._pending_events.append(event)
        logger.trace(f"Queued pending event ({len(self._pending_events)} pending)")

    def clear_pending_events(self) -> list[Any]:
        """Empty the pending queue.

        Returns:
            The events that were queued, in insertion order
        """
        events = list(self._pending_events)
        self._pending_events.clear()
        return events

    async def publish_pending_events(self) -> None:
        """Drain the pending queue and publish its events in insertion order.

        Events queued while the flush is running are kept for the next flush.
        """
        events = self.clear_pending_events()
        if events:
            logger.debug(f"Publishing {len(events)} pending events")
        await self.publish_all(events)

    def set_adapter(self, adapter: EventBusAdapter) -> None:
        """Route all future publish and subscribe calls through ``adapter``.

        In-memory handlers registered before the swap are not migrated. They
        stay registered but are not reached by ``publish`` while an adapter is
        set; subscribe them again through the bus to move them to the adapter.

        Raises:
            AdapterError: If the adapter lacks callable ``publish`` and ``subscribe``
        """
        if adapter is None:
            raise AdapterError("Invalid adapter", context={"adapter": adapter})

        if not (callable(getattr(adapter, "publish", None)) and callable(getattr(adapter, "subscribe", None))):
            raise AdapterError("Adapter must have publish and subscribe methods", context={"adapter": adapter})

        orphaned = self.get_registered_events()
        if orphaned and self._settings.warn_on_orphaned_handlers:
            logger.warning(f"Adapter installed while in-memory handlers exist; they will not receive events: {orphaned}")

        self._adapter = adapter
        logger.debug(f"Event bus adapter set to {type(adapter).__name__}")

    def reset(self) -> None:
        """Remove all handlers and pending events. The adapter is kept."""
        self._handlers.clear()
        self._pending_events.clear()
        logger.debug("EventBus reset")

    def _remove_registration(self, event_type: str, registration: HandlerRegistration) -> bool:
        registrations = self._handlers.get(event_type)
        if not registrations:
            return False

        try:
            registrations.remove(registration)
        except ValueError:
            return False

        if not registrations:
            del self._handlers[event_type]
        logger.trace(f"Removed handler for {event_type}: {registration.handler}")
        return True

    def _subscribe_with_adapter(self, event_type: str, handler: Handler) -> Subscription:
        try:
            unsubscribe = self._adapter.subscribe(event_type, handler)
        except Exception as e:
            raise HandlerRegistrationError(
                f'Failed to subscribe to event "{event_type}" using adapter',
                e,
                {"event_type": event_type, "handler": handler},
            ) from e

        logger.debug(f"Subscribed handler for {event_type} through {type(self._adapter).__name__}")

        def _unsubscribe() -> None:
            if callable(unsubscribe):
                unsubscribe()

        return Subscription(event_type, _unsubscribe)

    async def _publish_with_adapter(self, event_type: str, event: Any) -> None:
        try:
            result = self._adapter.publish(event)
            if inspect.isawaitable(result):
                await result
        except Exception as e:
            raise EventEmissionError(
                f'Failed to publish event "{event_type}" using adapter',
                e,
                {"event": event, "event_type": event_type},
            ) from e

        logger.trace(f"Published {event_type} through {type(self._adapter).__name__}")

    async def _execute_handler(self, handler: Handler, event: Any) -> Any:
        """Execute a single handler.

        Sync and async handlers are treated alike: a sync handler's exception
        and an async handler's exception both fail the task.
        """
        logger.trace(f"Executing handler {handler}")

        if inspect.isclass(handler):
            instance = self._instantiate_handler_class(handler)
            handle = getattr(instance, "handle", None)
            if handle is None:
                raise AttributeError(f"Handler class {handler.__name__} must have a 'handle' method")
            result = handle(event)
        else:
            result = handler(event)

        if inspect.isawaitable(result):
            result = await result
        return result

    def _instantiate_handler_class(self, handler_class: type) -> Any:
        """Instantiate a handler class, injecting constructor arguments by type annotation."""
        parameters = list(inspect.signature(handler_class.__init__).parameters.values())[1:]  # Skip 'self'

        kwargs = {}
        if self._registry is not None:
            for param in parameters:
                if param.kind in (param.VAR_POSITIONAL, param.VAR_KEYWORD):
                    continue
                if param.annotation is not inspect.Parameter.empty and self._registry.has(param.annotation):
                    kwargs[param.name] = self._registry.get(param.annotation)
                    logger.trace(f"Injected '{param.name}' into handler class {handler_class.__name__}")

        return handler_class(**kwargs)


def create_event_bus(
    adapter: EventBusAdapter | None = None,
    *,
    registry: ServiceRegistry | None = None,
    settings: Settings | None = None,
) -> EventBus:
    """Create an event bus.

    Call this once from the application entry point and pass the bus to the
    components that publish or subscribe. Tests create their own bus (or call
    ``reset``) for isolation.
    """
    return EventBus(adapter=adapter, registry=registry, settings=settings)
