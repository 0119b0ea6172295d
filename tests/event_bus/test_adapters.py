"""Tests for the in-memory adapter and its use through the event bus."""

from unittest.mock import Mock

import pytest

from domain_events.event_bus import EventBusAdapter, EventEmissionError, InMemoryAdapter, create_event_bus
from domain_events.settings import Settings


class TestInMemoryAdapter:
    """Test the adapter on its own."""

    def test_satisfies_adapter_protocol(self):
        """Test the runtime protocol check."""
        assert isinstance(InMemoryAdapter(), EventBusAdapter)
        assert not isinstance(object(), EventBusAdapter)

    @pytest.mark.asyncio
    async def test_delivers_sequentially_in_subscription_order(self):
        """Test that handlers run one after another."""
        adapter = InMemoryAdapter()
        calls = []

        async def first(event) -> None:
            calls.append("first")

        def second(event) -> None:
            calls.append("second")

        adapter.subscribe("OrderPlaced", first)
        adapter.subscribe("OrderPlaced", second)

        await adapter.publish({"type": "OrderPlaced"})

        assert calls == ["first", "second"]

    @pytest.mark.asyncio
    async def test_unsubscribe(self):
        """Test that the returned function removes the handler."""
        adapter = InMemoryAdapter()
        handler = Mock()
        unsubscribe = adapter.subscribe("OrderPlaced", handler)

        unsubscribe()
        unsubscribe()  # No further effect
        await adapter.publish({"type": "OrderPlaced"})

        handler.assert_not_called()

    @pytest.mark.asyncio
    async def test_history(self):
        """Test that published events are recorded, including unhandled ones."""
        adapter = InMemoryAdapter()
        event1 = {"type": "OrderPlaced"}
        event2 = {"type": "OrderShipped"}

        await adapter.publish(event1)
        await adapter.publish(event2)
        assert adapter.history == [event1, event2]

        adapter.clear_history()
        assert adapter.history == []

    @pytest.mark.asyncio
    async def test_history_is_bounded(self):
        """Test that only the most recent events are kept."""
        adapter = InMemoryAdapter(history_size=2)

        for number in range(5):
            await adapter.publish({"type": "OrderPlaced", "number": number})

        assert [event["number"] for event in adapter.history] == [3, 4]

    @pytest.mark.asyncio
    async def test_history_disabled(self):
        """Test that a history size of zero records nothing."""
        adapter = InMemoryAdapter(history_size=0)
        handler = Mock()
        adapter.subscribe("OrderPlaced", handler)

        await adapter.publish({"type": "OrderPlaced"})

        handler.assert_called_once()
        assert adapter.history == []


class TestBusWithInMemoryAdapter:
    """Test the event bus delegating to the in-memory adapter."""

    @pytest.mark.asyncio
    async def test_subscribe_and_publish_through_adapter(self):
        """Test that the bus routes on and publish to the adapter."""
        adapter = InMemoryAdapter()
        bus = create_event_bus(adapter, settings=Settings(_env_file=None))
        handler = Mock()

        subscription = bus.on("OrderPlaced", handler)
        await bus.publish({"type": "OrderPlaced", "order_id": "o1"})
        subscription.unsubscribe()
        await bus.publish({"type": "OrderPlaced", "order_id": "o2"})

        handler.assert_called_once()
        assert handler.call_args.args[0]["order_id"] == "o1"
        assert len(adapter.history) == 2
        assert bus.get_registered_events() == []

    @pytest.mark.asyncio
    async def test_handler_failure_is_wrapped(self):
        """Test that a failing adapter delivery surfaces as EventEmissionError."""
        bus = create_event_bus(InMemoryAdapter(), settings=Settings(_env_file=None))
        bus.on("OrderPlaced", Mock(side_effect=ValueError("boom")))

        with pytest.raises(EventEmissionError) as exc_info:
            await bus.publish({"type": "OrderPlaced"})

        assert isinstance(exc_info.value.cause, ValueError)
