"""Clarion routing — resolves service URLs and fans messages out to them.

The :class:`ServiceRegistry` maps URL schemes to service factories; the
:class:`ServiceRouter` turns a batch of URLs into bound services and sends
one message to all of them, sequentially or concurrently.
"""

from clarion.router.registry import (
    ServiceInitError,
    ServiceRegistry,
    UnknownServiceError,
    default_registry,
    extract_service_name,
)
from clarion.router.router import SendFailure, SendResult, ServiceRouter, remove_duplicates

__all__ = [
    "SendFailure",
    "SendResult",
    "ServiceInitError",
    "ServiceRegistry",
    "ServiceRouter",
    "UnknownServiceError",
    "default_registry",
    "extract_service_name",
    "remove_duplicates",
]
