"""ServiceRouter — sends one message to every configured destination.

The router has two phases:

* **Construction** resolves a list of service URLs into bound services.
  It is sequential and fails fast: the first URL that cannot be located
  aborts construction and no router is returned.
* **Dispatch** sends a message to every bound service, either in order
  (``send``) or concurrently (``send_async`` / ``send_items``).  It may be
  repeated any number of times.

A failing or slow destination never blocks or corrupts its siblings during
concurrent dispatch: each service sends from its own cloned config, and
every worker reports into a result queue sized to the number of services.
"""

from __future__ import annotations

import logging
import queue
import threading
from collections.abc import Iterable, Iterator
from concurrent.futures import ThreadPoolExecutor
from types import MappingProxyType

from pydantic import BaseModel, ConfigDict

from clarion.config import settings
from clarion.logs import resolve_logger
from clarion.router.registry import ServiceRegistry, default_registry
from clarion.services import Params, Service

logger = logging.getLogger(__name__)


class SendFailure(RuntimeError):
    """Raised (or reported) when a bound service fails to send."""

    def __init__(self, service_id: str, cause: BaseException) -> None:
        self.service_id = service_id
        self.cause = cause
        super().__init__(f"failed to send to {service_id}: {cause}")


class SendResult(BaseModel):
    """Outcome of one destination's send, paired with its identity."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    index: int
    service_id: str
    error: SendFailure | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


def remove_duplicates(urls: Iterable[str]) -> list[str]:
    """Drop repeated URLs, keeping the first occurrence of each in order."""
    return list(dict.fromkeys(urls))


def _freeze(params: Params | None) -> Params | None:
    if params is None:
        return None
    return MappingProxyType(dict(params))


class ServiceRouter:
    """Owns the bound services for one batch of destination URLs.

    Parameters
    ----------
    urls:
        Service URLs; duplicates are dropped, keeping first-occurrence order.
    registry:
        Where schemes are looked up.  Defaults to :func:`default_registry`.
    service_logger:
        Logger handed to every service.  ``None`` discards service output.
    max_workers:
        Thread cap for concurrent dispatch.  Defaults to
        ``settings.max_workers`` (one thread per destination when 0).

    Raises
    ------
    ServiceInitError, UnknownServiceError
        From the first URL that cannot be located.  Later URLs are not
        touched.

    Examples
    --------
    >>> router = ServiceRouter(["logger://", "logger://"])
    >>> len(router.services)
    1
    >>> list(router.send_async("hello"))
    [None]
    """

    def __init__(
        self,
        urls: Iterable[str] = (),
        *,
        registry: ServiceRegistry | None = None,
        service_logger: logging.Logger | None = None,
        max_workers: int | None = None,
    ) -> None:
        self._registry = registry if registry is not None else default_registry()
        self._logger = resolve_logger(service_logger)
        self._max_workers = max_workers
        self._queue: list[str] = []
        self._queue_lock = threading.Lock()

        unique = remove_duplicates(urls)
        services: list[Service] = []
        for url in unique:
            services.append(self._registry.locate(url, self._logger))
        self._services: tuple[Service, ...] = tuple(services)
        logger.info("Router ready with %d service(s)", len(self._services))

    @classmethod
    def new(
        cls,
        service_logger: logging.Logger | None,
        *urls: str,
        registry: ServiceRegistry | None = None,
    ) -> ServiceRouter:
        """Build a router from positional URLs."""
        return cls(urls, registry=registry, service_logger=service_logger)

    @property
    def services(self) -> tuple[Service, ...]:
        return self._services

    @property
    def registry(self) -> ServiceRegistry:
        return self._registry

    def __len__(self) -> int:
        return len(self._services)

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------

    def send(self, message: str, params: Params | None = None) -> None:
        """Send to every service in construction order.

        Stops at the first failure; later services are not attempted.

        Raises
        ------
        SendFailure
            Wrapping the first service error.
        """
        frozen = _freeze(params)
        for service in self._services:
            service_id = service.get_id()
            try:
                service.send(message, frozen)
            except Exception as exc:  # noqa: BLE001
                logger.error("Service %s failed: %s", service_id, exc)
                raise SendFailure(service_id, exc) from exc
            logger.debug("Service %s: sent", service_id)

    def send_async(self, message: str, params: Params | None = None) -> Iterator[SendFailure | None]:
        """Send to every service concurrently.

        Dispatch starts before this method returns.  The returned iterator
        yields exactly one item per service in completion order: ``None``
        for success, otherwise the :class:`SendFailure`.  It is exhausted
        once every service has reported.
        """
        return (result.error for result in self.send_items(message, params))

    def send_items(self, message: str, params: Params | None = None) -> Iterator[SendResult]:
        """Like :meth:`send_async`, but each outcome carries its service identity."""
        total = len(self._services)
        if total == 0:
            return iter(())

        frozen = _freeze(params)
        results: queue.Queue[SendResult] = queue.Queue(maxsize=total)
        width = settings.fanout_width(total) if self._max_workers is None else max(
            1, min(self._max_workers, total)
        )
        executor = ThreadPoolExecutor(max_workers=width, thread_name_prefix="clarion-send")
        try:
            for index, service in enumerate(self._services):
                executor.submit(self._send_one, index, service, message, frozen, results)
        finally:
            executor.shutdown(wait=False)
        logger.debug("Dispatched message to %d service(s) on %d thread(s)", total, width)
        return self._drain(results, total)

    @staticmethod
    def _send_one(
        index: int,
        service: Service,
        message: str,
        params: Params | None,
        results: queue.Queue[SendResult],
    ) -> None:
        service_id = type(service).__name__
        error: SendFailure | None = None
        try:
            service_id = str(service.get_id())
            service.send(message, params)
        except BaseException as exc:  # noqa: BLE001
            # SystemExit and friends end this worker only; report them as failures
            logger.error("Service %s failed: %s", service_id, exc)
            error = SendFailure(service_id, exc)
            error.__cause__ = exc
        finally:
            # exactly one result per worker
            results.put_nowait(SendResult(index=index, service_id=service_id, error=error))

    @staticmethod
    def _drain(results: queue.Queue[SendResult], total: int) -> Iterator[SendResult]:
        for _ in range(total):
            yield results.get()

    # ------------------------------------------------------------------
    # Message queue
    # ------------------------------------------------------------------

    def enqueue(self, message: str, *args: object) -> None:
        """Queue a %-formatted message for the next :meth:`flush`."""
        text = message % args if args else message
        with self._queue_lock:
            self._queue.append(text)

    def flush(self, params: Params | None = None) -> None:
        """Send all queued messages joined by newlines, then clear the queue.

        The queue is cleared even if the send fails.  Does nothing when the
        queue is empty.
        """
        with self._queue_lock:
            pending, self._queue = self._queue, []
        if not pending:
            return
        self.send("\n".join(pending), params)

    @property
    def queued(self) -> list[str]:
        with self._queue_lock:
            return list(self._queue)
