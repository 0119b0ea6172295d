"""Service registry used to inject dependencies into class-based event handlers.

A registry is created by the application entry point and passed to the event
bus; there is no process-wide instance.
"""

from collections.abc import Callable
from typing import Any, TypeVar, cast

T = TypeVar("T")
ServiceFactory = Callable[[], T]
ServiceProvider = T | ServiceFactory[T]


class ServiceRegistry:
    """Registry for shared services with support for singletons and factories."""

    def __init__(self):
        self._services: dict[type, ServiceProvider[Any]] = {}
        self._factories: set[type] = set()

    def register_singleton(self, service_type: type[T], instance: T) -> None:
        """Register a singleton instance by its type.

        Args:
            service_type: The type of the service to register
            instance: The singleton instance to register
        """
        self._services[service_type] = instance
        self._factories.discard(service_type)

    def register_factory(self, service_type: type[T], factory: ServiceFactory[T]) -> None:
        """Register a factory function by its type. The factory runs on every lookup.

        Args:
            service_type: The type of the service to register
            factory: The factory function that creates instances of the service
        """
        self._services[service_type] = factory
        self._factories.add(service_type)

    def has(self, service_type: type) -> bool:
        return service_type in self._services

    def get(self, service_type: type[T]) -> T:
        """Get a service instance by type.

        Raises:
            KeyError: If the requested service is not registered
        """
        if service_type not in self._services:
            raise KeyError(f"Service {getattr(service_type, '__name__', service_type)} not registered")

        provider = self._services[service_type]
        if service_type in self._factories:
            return cast(ServiceFactory[T], provider)()
        return cast(T, provider)
