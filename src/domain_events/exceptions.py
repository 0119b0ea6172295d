"""Common exceptions for domain events.

This module contains the base error type shared by the event factory and
the event bus, plus the validation error raised when event data is rejected.
"""

from typing import Any


class DomainError(Exception):
    """Base exception for all domain related errors.

    Carries the underlying cause (if any) and a free-form context dictionary
    with diagnostic details.
    """

    def __init__(self, message: str, cause: BaseException | None = None, context: dict[str, Any] | None = None):
        self.message = message
        self.cause = cause
        self.context = context if context is not None else {}
        super().__init__(message)
        if cause is not None:
            self.__cause__ = cause


class ValidationError(DomainError):
    """Raised when event data fails schema validation.

    Each field-level violation is kept in ``errors`` so callers can report
    all of them at once instead of fixing input one field at a time.
    """

    def __init__(
        self,
        message: str,
        cause: BaseException | None = None,
        context: dict[str, Any] | None = None,
        errors: list[str] | None = None,
    ):
        self.errors = errors if errors is not None else []
        super().__init__(message, cause, context)

    @property
    def event_type(self) -> str | None:
        """Name of the event whose data was rejected."""
        return self.context.get("event_type")
