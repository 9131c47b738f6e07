"""Service protocol shared by every Clarion destination.

A Service is a handle for one destination.  The router only ever calls
the three methods of :class:`Service`: ``initialize`` once with the
destination URL, ``send`` any number of times (possibly concurrently),
and ``get_id`` for reporting.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Protocol, runtime_checkable

# Per-send overrides such as {"title": "..."}.  Read-only to services.
Params = Mapping[str, str]


class NotificationError(RuntimeError):
    """Raised by a service when the destination rejects or cannot take a message."""


@runtime_checkable
class Service(Protocol):
    """Protocol that every destination handle must implement."""

    def initialize(self, url: str, logger: logging.Logger | None = None) -> None:
        """Bind the service to the destination described by *url*.

        Raises if the URL cannot be decoded into a valid config.
        """
        ...

    def send(self, message: str, params: Params | None = None) -> None:
        """Deliver *message*, applying *params* to a private copy of the config.

        Implementations must not mutate *params* or the bound config.
        """
        ...

    def get_id(self) -> str:
        """Return the scheme this service is registered under."""
        ...


__all__ = ["NotificationError", "Params", "Service"]
