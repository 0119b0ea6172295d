"""Event factories.

An event factory validates event data against a schema and produces frozen
``DomainEvent`` records. Factories are defined once, usually at module level,
and never change afterwards:

```python
from domain_events.events import domain_event, extend_schema

OrderPlaced = domain_event(
    name="OrderPlaced",
    schema={"order_id": (str, ...), "total": (float, ...)},
)
event = OrderPlaced.create({"order_id": "o1", "total": 9.5})

PriorityOrderPlaced = OrderPlaced.extend(
    name="PriorityOrderPlaced",
    schema=lambda base: extend_schema(base, priority=(int, 1)),
)
```
"""

from collections.abc import Callable, Mapping
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any

from loguru import logger
from pydantic import BaseModel, Field
from pydantic import ValidationError as PydanticValidationError
from pydantic import create_model as pydantic_create_model

from ..exceptions import ValidationError
from .base import DomainEvent
from .schema import build_schema, is_schema, with_timestamp

SchemaSource = type[BaseModel] | Mapping[str, Any]
SchemaTransform = Callable[[type[BaseModel]], SchemaSource]


@dataclass(frozen=True, slots=True)
class CreateResult:
    """Outcome of ``EventFactory.try_create``: either an event or the validation error."""

    event: DomainEvent | None = None
    error: ValidationError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


def _format_error(error: Mapping[str, Any]) -> str:
    location = ".".join(str(part) for part in error.get("loc", ()))
    return f"{location}: {error['msg']}" if location else error["msg"]


class EventFactory:
    """Validator and constructor for one kind of domain event.

    Use ``domain_event`` to build instances rather than calling this directly.
    Factories are immutable once constructed.

    Attributes:
        name: Event name, also used as the ``type`` of created records
        schema: Payload schema augmented with a defaulted ``timestamp``
        record_type: Frozen model class of the records this factory creates
        metadata: Read-only metadata; holds ``parent_event`` for extended events
    """

    __slots__ = ("name", "schema", "record_type", "metadata")

    def __init__(
        self,
        name: str,
        schema: type[BaseModel],
        record_type: type[DomainEvent],
        metadata: Mapping[str, Any] | None = None,
    ) -> None:
        object.__setattr__(self, "name", name)
        object.__setattr__(self, "schema", schema)
        object.__setattr__(self, "record_type", record_type)
        object.__setattr__(self, "metadata", MappingProxyType(dict(metadata or {})))

    def __setattr__(self, name: str, value: Any) -> None:
        raise AttributeError(f"{type(self).__name__} is immutable")

    def __delattr__(self, name: str) -> None:
        raise AttributeError(f"{type(self).__name__} is immutable")

    def __repr__(self) -> str:
        return f"EventFactory(name={self.name!r}, metadata={dict(self.metadata)!r})"

    @property
    def type(self) -> str:
        return self.name

    def create(self, data: Mapping[str, Any] | BaseModel) -> DomainEvent:
        """Create a new event record.

        Args:
            data: Event payload, as a mapping or a model instance. A ``timestamp``
                may be given; otherwise the current time is used.

        Returns:
            A frozen event record with ``type`` set to the factory name

        Raises:
            ValidationError: If the data does not satisfy the schema. All field
                violations are reported in ``errors``.
        """
        if isinstance(data, BaseModel):
            payload = data.model_dump()
        elif isinstance(data, Mapping):
            payload = dict(data)
        else:
            message = f"expected a mapping of event data, got {type(data).__name__}"
            raise ValidationError(
                f"Invalid {self.name} event: {message}",
                context={"event_type": self.name, "input": data},
                errors=[message],
            )

        payload["type"] = self.name

        try:
            event = self.record_type.model_validate(payload)
        except PydanticValidationError as e:
            errors = [_format_error(error) for error in e.errors()]
            raise ValidationError(
                f"Invalid {self.name} event: {', '.join(errors)}",
                e,
                {"event_type": self.name, "input": data},
                errors,
            ) from e

        logger.trace(f"Created event {event}")
        return event

    def try_create(self, data: Mapping[str, Any] | BaseModel) -> CreateResult:
        """Create a new event record without raising on invalid data."""
        try:
            return CreateResult(event=self.create(data))
        except ValidationError as e:
            return CreateResult(error=e)

    def extend(
        self,
        name: str,
        schema: SchemaTransform | None = None,
        metadata: Mapping[str, Any] | None = None,
    ) -> "EventFactory":
        """Derive a new event factory from this one.

        The parent factory is left untouched; the result is an independent
        factory whose metadata records ``parent_event``.

        Args:
            name: Name of the extended event
            schema: Function receiving this factory's (timestamp-augmented)
                schema and returning the schema of the extended event
            metadata: Additional metadata, merged over this factory's metadata

        Returns:
            A new factory for the extended event

        Raises:
            ValueError: If the name is missing
        """
        if not name:
            raise ValueError("Extended event name is required")

        extended_schema = schema(self.schema) if schema is not None else self.schema
        merged_metadata = {**self.metadata, **(metadata or {}), "parent_event": self.name}

        return domain_event(name=name, schema=extended_schema, metadata=merged_metadata)


def domain_event(name: str, schema: SchemaSource, metadata: Mapping[str, Any] | None = None) -> EventFactory:
    """Define a domain event.

    Domain events are immutable records of facts that occurred, named in the
    past tense (``OrderPlaced``, ``PaymentReceived``).

    Args:
        name: Name of the event
        schema: Payload schema, either a Pydantic model class or field
            definitions as ``{field_name: (annotation, default)}``
        metadata: Additional metadata about the event

    Returns:
        A factory creating validated, frozen records of this event

    Raises:
        ValueError: If the name or schema is missing
        TypeError: If the schema is neither a model class nor a mapping
    """
    if not name:
        raise ValueError("Event name is required")
    if schema is None:
        raise ValueError("Event schema is required")

    if isinstance(schema, Mapping):
        schema = build_schema(f"{name}Payload", schema)
    elif not is_schema(schema):
        raise TypeError(f"Event schema must be a Pydantic model or a field mapping, got: {type(schema).__name__}")

    enhanced_schema = with_timestamp(schema)
    record_type = pydantic_create_model(
        name,
        __base__=(enhanced_schema, DomainEvent),
        __module__=__name__,
        type=(str, Field(default=name, description="Event name")),
    )

    logger.debug(f"Defined event factory {name} with fields: {list(record_type.model_fields)}")
    return EventFactory(name=name, schema=enhanced_schema, record_type=record_type, metadata=metadata)
