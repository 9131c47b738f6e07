"""Clarion: send one notification to many destinations described by URLs.

Each destination (SMTP mailbox, webhook, logger, ...) is configured by a
single service URL.  A schema-driven codec converts between URLs and typed
configs, and the router fans a message out to every destination
concurrently, reporting one outcome per destination.
"""

__version__ = "0.2.0"
__description__ = "URL-configured notification router for e-mail, webhooks and more"

from clarion.format.codec import ServiceConfig
from clarion.router import ServiceRegistry, ServiceRouter, default_registry

__all__ = [
    "ServiceConfig",
    "ServiceRegistry",
    "ServiceRouter",
    "default_registry",
    "__version__",
]
