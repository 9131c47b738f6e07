"""Service registry — maps URL schemes to service factories.

The registry is an explicit value built at start-up (see
:func:`default_registry`) and handed to the router.  It is not mutated
while routing, so lookups need no locking.
"""

from __future__ import annotations

import logging
from collections.abc import Callable

from clarion.services import Service

logger = logging.getLogger(__name__)

ServiceFactory = Callable[[], Service]


class UnknownServiceError(LookupError):
    """Raised when a URL scheme has no registered service."""

    def __init__(self, scheme: str, known: list[str]) -> None:
        self.scheme = scheme
        self.known = known
        super().__init__(
            f"unknown service {scheme!r} (available services: {', '.join(known)})"
        )


class ServiceInitError(RuntimeError):
    """Raised when a service rejects its URL or config during initialization."""

    def __init__(self, scheme: str, message: str) -> None:
        self.scheme = scheme
        super().__init__(message)


def extract_service_name(url: str) -> tuple[str, str]:
    """Split *url* into its lower-cased scheme and the remainder.

    Raises
    ------
    ServiceInitError
        If *url* has no ``scheme://`` prefix.
    """
    scheme, sep, rest = url.partition("://")
    if not sep or not scheme:
        raise ServiceInitError("", "invalid service URL: missing 'scheme://' prefix")
    return scheme.lower(), rest


class ServiceRegistry:
    """Maps scheme names to zero-argument service factories.

    Examples
    --------
    >>> from clarion.services.logger import LoggerService
    >>> registry = ServiceRegistry()
    >>> registry.register("logger", LoggerService)
    >>> registry.list_services()
    ['logger']
    """

    def __init__(self) -> None:
        self._factories: dict[str, ServiceFactory] = {}

    def register(self, scheme: str, factory: ServiceFactory) -> None:
        """Associate *scheme* with *factory*.

        Raises
        ------
        ValueError
            If *scheme* is already registered.
        """
        scheme = scheme.lower()
        if scheme in self._factories:
            raise ValueError(f"service {scheme!r} is already registered")
        self._factories[scheme] = factory
        logger.debug("Registered service: %s", scheme)

    def __contains__(self, scheme: object) -> bool:
        return isinstance(scheme, str) and scheme.lower() in self._factories

    def list_services(self) -> list[str]:
        """Return the registered scheme names, sorted."""
        return sorted(self._factories)

    def new_service(self, scheme: str) -> Service:
        """Construct an uninitialized service for *scheme*.

        Raises
        ------
        UnknownServiceError
            If no factory is registered for *scheme*.
        """
        factory = self._factories.get(scheme.lower())
        if factory is None:
            raise UnknownServiceError(scheme, self.list_services())
        return factory()

    def locate(self, url: str, service_logger: logging.Logger | None = None) -> Service:
        """Construct and initialize the service addressed by *url*.

        Raises
        ------
        ServiceInitError
            If the URL is malformed or the service rejects it.
        UnknownServiceError
            If the scheme is not registered.
        """
        scheme, _ = extract_service_name(url)
        service = self.new_service(scheme)
        try:
            service.initialize(url, service_logger)
        except (ValueError, LookupError) as exc:
            raise ServiceInitError(
                scheme, f"failed to initialize {scheme} service: {exc}"
            ) from exc
        logger.debug("Located %s service", scheme)
        return service


def default_registry() -> ServiceRegistry:
    """Return a registry populated with every built-in destination."""
    from clarion.services.generic import GenericService
    from clarion.services.logger import LoggerService
    from clarion.services.smtp import SMTPService

    registry = ServiceRegistry()
    registry.register("generic", GenericService)
    registry.register("logger", LoggerService)
    registry.register("smtp", SMTPService)
    return registry
