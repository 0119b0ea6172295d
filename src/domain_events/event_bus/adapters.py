"""Reference adapter for the event bus.

``InMemoryAdapter`` satisfies the ``EventBusAdapter`` contract without any
external transport. Handlers are called one at a time in subscription order,
which makes it handy for tests and as a template for real transports
(message queues, streams) that need their own delivery loop.
"""

import inspect
from collections import defaultdict, deque
from collections.abc import Mapping
from typing import Any

from loguru import logger

from .core import Handler, Unsubscribe


class InMemoryAdapter:
    """In-memory transport delivering events sequentially.

    Keeps a bounded history of the most recently published events for
    inspection. Pass ``history_size=0`` to disable it.
    """

    def __init__(self, history_size: int = 100) -> None:
        # event type → handlers in subscription order
        self._handlers: dict[str, list[Handler]] = defaultdict(list)
        self._history: deque[Any] = deque(maxlen=history_size)

    async def publish(self, event: Any) -> None:
        """Deliver an event to every handler subscribed to its type."""
        event_type = event.get("type") if isinstance(event, Mapping) else getattr(event, "type", None)
        self._history.append(event)

        for handler in list(self._handlers.get(event_type, ())):
            result = handler(event)
            if inspect.isawaitable(result):
                await result

        logger.trace(f"InMemoryAdapter delivered {event_type}")

    def subscribe(self, event_type: str, handler: Handler) -> Unsubscribe:
        """Subscribe a handler; the returned function removes it again."""
        self._handlers[event_type].append(handler)

        def unsubscribe() -> None:
            handlers = self._handlers.get(event_type, [])
            if handler in handlers:
                handlers.remove(handler)

        return unsubscribe

    # ------------------------------------------------------------------
    # Testing helpers
    # ------------------------------------------------------------------

    @property
    def history(self) -> list[Any]:
        """Published events, oldest first (snapshot)."""
        return list(self._history)

    def clear_history(self) -> None:
        self._history.clear()
