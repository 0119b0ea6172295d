"""Tests for the error hierarchy."""

import pytest

from domain_events import (
    AdapterError,
    DomainError,
    EventBusError,
    EventEmissionError,
    HandlerRegistrationError,
    ValidationError,
)


def test_domain_error_defaults():
    error = DomainError("Something failed")

    assert str(error) == "Something failed"
    assert error.message == "Something failed"
    assert error.cause is None
    assert error.context == {}
    assert error.__cause__ is None


def test_domain_error_carries_cause_and_context():
    cause = OSError("disk full")
    error = DomainError("Could not save", cause, {"aggregate_id": "o1"})

    assert error.cause is cause
    assert error.__cause__ is cause
    assert error.context == {"aggregate_id": "o1"}


def test_validation_error_details():
    error = ValidationError("Invalid OrderPlaced event: total: bad", context={"event_type": "OrderPlaced"}, errors=["total: bad"])

    assert error.errors == ["total: bad"]
    assert error.event_type == "OrderPlaced"
    assert ValidationError("Invalid").event_type is None


@pytest.mark.parametrize("error_class", [HandlerRegistrationError, EventEmissionError, AdapterError])
def test_event_bus_errors_are_domain_errors(error_class: type[EventBusError]):
    error = error_class("bus failure", context={"event_type": "OrderPlaced"})

    assert isinstance(error, EventBusError)
    assert isinstance(error, DomainError)
    assert error.context["event_type"] == "OrderPlaced"
