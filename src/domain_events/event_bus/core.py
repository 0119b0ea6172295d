"""Core Event Bus Components.

This module contains the fundamental abstractions for the event bus system.

## Key Components

- **EventHandler**: Base class for dependency-injectable event handlers
- **HandlerRegistration**: A handler registered for an event type
- **Subscription**: Handle returned by ``on``/``once`` to deregister a handler
- **EventBusAdapter**: Contract for external transports
- **EventBusError**: Base exception for all event bus related errors

## Usage Example with Dependency Injection

```python
from domain_events.event_bus import EventHandler, create_event_bus
from domain_events.services import ServiceRegistry


class SendOrderConfirmation(EventHandler):
    def __init__(self, mailer: Mailer):
        self.mailer = mailer

    async def handle(self, event) -> None:
        await self.mailer.send_confirmation(event.order_id)


registry = ServiceRegistry()
registry.register_singleton(Mailer, Mailer())
bus = create_event_bus(registry=registry)
bus.on(OrderPlaced, SendOrderConfirmation)
```

"""

from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any, Generic, Protocol, TypeVar, runtime_checkable

from ..exceptions import DomainError

Handler = Callable[..., Any]
Unsubscribe = Callable[[], Any]

T_Event = TypeVar("T_Event")


class EventHandler(ABC, Generic[T_Event]):
    """Base class for dependency-injectable event handlers.

    Register the class itself (not an instance) to have the bus instantiate it
    for every dispatch, injecting constructor arguments from its
    ``ServiceRegistry`` by type annotation. Instances can also be registered
    directly; they are called like functions.
    """

    @abstractmethod
    def handle(self, event: T_Event) -> Any:
        """Handle the event.

        May be a coroutine function. Exceptions propagate to the publisher.
        """

    def __call__(self, event: T_Event) -> Any:
        return self.handle(event)


@dataclass(eq=False, slots=True)
class HandlerRegistration:
    """A handler registered for an event type.

    Registrations compare by identity so that removing one never removes
    another registration of the same handler.
    """

    handler: Handler
    once: bool = False


class Subscription:
    """Handle for a registered handler.

    Calling ``unsubscribe`` more than once has no further effect.
    """

    def __init__(self, event_type: str, unsubscribe: Unsubscribe):
        self.event_type = event_type
        self._unsubscribe = unsubscribe
        self._active = True

    @property
    def active(self) -> bool:
        return self._active

    def unsubscribe(self) -> None:
        if not self._active:
            return
        self._active = False
        self._unsubscribe()

    def __repr__(self) -> str:
        return f"Subscription(event_type={self.event_type!r}, active={self._active})"


@runtime_checkable
class EventBusAdapter(Protocol):
    """Contract for transports the event bus can delegate to.

    When an adapter is installed the bus routes every publish and subscribe
    call to it and no longer uses its in-memory registry. Adapters own wire
    encoding when bridging to a real message transport.
    """

    def publish(self, event: Any) -> Awaitable[None] | None: ...

    def subscribe(self, event_type: str, handler: Handler) -> Unsubscribe: ...


class EventBusError(DomainError):
    """Base exception for all event bus related errors.

    Use this for catching any event bus related error:
        ```python
        try:
            await bus.publish(event)
        except EventBusError as e:
            logger.error(f"Event bus error: {e}")
        ```
    """


class HandlerRegistrationError(EventBusError):
    """Raised when handler registration fails.

    This occurs when:
    - The handler is not callable
    - The event type cannot be resolved from the given type or factory
    - The adapter fails to subscribe the handler
    """


class EventEmissionError(EventBusError):
    """Raised when event emission fails.

    This occurs when:
    - The event is not an object or has no type
    - A batch of events is not a list
    - The adapter fails to publish the event
    """


class AdapterError(EventBusError):
    """Raised when an adapter does not provide callable ``publish`` and ``subscribe``."""
