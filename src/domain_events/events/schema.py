"""Schema helpers for building event payload models dynamically.

Payload schemas are plain Pydantic models. These helpers cover the three ways
the event factory needs to derive one model from another:

- ``build_schema``: turn ``{field: (annotation, default)}`` definitions into a model
- ``extend_schema``: structural extension, adding or overriding fields on a base model
- ``with_timestamp``: the augmentation applied to every event schema

Field definitions use the same format as ``pydantic.create_model``:
``name=(annotation, default)`` where ``default`` may be ``...`` (required)
or a ``Field(...)``.
"""

from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel, Field
from pydantic import create_model as pydantic_create_model

from .base import UtcDatetime, utcnow

TIMESTAMP_FIELD = "timestamp"


def build_schema(name: str, fields: Mapping[str, Any]) -> type[BaseModel]:
    """Create a payload model from field definitions.

    Args:
        name: Name for the new model
        fields: Field definitions as ``{field_name: (annotation, default)}``.
            A bare annotation is treated as a required field.

    Returns:
        New Pydantic model

    Example:
        ```python
        OrderPayload = build_schema("OrderPayload", {"order_id": (str, ...), "total": (float, 0.0)})
        ```
    """
    definitions = {key: value if isinstance(value, tuple) else (value, ...) for key, value in fields.items()}
    return pydantic_create_model(name, __module__=__name__, **definitions)


def extend_schema(base: type[BaseModel], model_name: str | None = None, **fields: Any) -> type[BaseModel]:
    """Create a subclass of ``base`` with additional or overridden fields.

    Args:
        base: The model to extend
        model_name: Optional name for the new model (defaults to the base name)
        **fields: Field definitions as ``field_name=(annotation, default)``

    Returns:
        New Pydantic model accepting everything ``base`` accepts plus ``fields``

    Example:
        ```python
        Extended = extend_schema(Base, flag=(bool, False))
        ```
    """
    return pydantic_create_model(model_name or base.__name__, __base__=base, __module__=__name__, **fields)


def with_timestamp(schema: type[BaseModel]) -> type[BaseModel]:
    """Augment a payload schema with a ``timestamp`` defaulting to now (UTC)."""
    return extend_schema(
        schema,
        **{TIMESTAMP_FIELD: (UtcDatetime, Field(default_factory=utcnow, description="When the event occurred"))},
    )


def is_schema(value: Any) -> bool:
    """Check whether ``value`` is a Pydantic model class usable as a schema."""
    return isinstance(value, type) and issubclass(value, BaseModel)
