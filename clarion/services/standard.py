"""Base class carrying the behaviour every concrete service shares.

Subclasses set ``config_class`` and implement ``deliver()``.  The
``send()`` wrapper is the same for all of them:

    clone bound config -> apply per-send params -> deliver

so no send call can leak param overrides into the bound config or into a
concurrent send on the same service.
"""

from __future__ import annotations

import abc
import logging
from typing import ClassVar, final

from clarion.format.codec import ServiceConfig
from clarion.format.schema import InvalidValueError, UnknownKeyError
from clarion.logs import resolve_logger
from clarion.services import NotificationError, Params


class StandardService(abc.ABC):
    """Abstract base for Clarion destination services."""

    config_class: ClassVar[type[ServiceConfig]]

    def __init__(self) -> None:
        self._config: ServiceConfig | None = None
        self._logger: logging.Logger = resolve_logger(None)

    # ------------------------------------------------------------------
    # Service protocol
    # ------------------------------------------------------------------

    def initialize(self, url: str, logger: logging.Logger | None = None) -> None:
        self.set_logger(logger)
        config = self.config_class.from_url(url)
        self.after_initialize(config)
        self._config = config

    def get_id(self) -> str:
        return self.config_class.scheme

    @final
    def send(self, message: str, params: Params | None = None) -> None:
        """Send *message* using a private clone of the bound config."""
        config = self.config.clone()
        try:
            config.resolver().update_config_from_params(params)
        except (UnknownKeyError, InvalidValueError) as exc:
            raise NotificationError(f"failed to apply send params: {exc}") from exc
        self.deliver(message, config)

    # ------------------------------------------------------------------
    # Subclass hooks
    # ------------------------------------------------------------------

    def after_initialize(self, config: ServiceConfig) -> None:
        """Adjust a freshly decoded config before it is bound.  No-op by default."""

    @abc.abstractmethod
    def deliver(self, message: str, config: ServiceConfig) -> None:
        """Perform the protocol-level send using *config*."""
        ...

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @property
    def config(self) -> ServiceConfig:
        if self._config is None:
            raise RuntimeError(f"{self.get_id()} service used before initialize()")
        return self._config

    def set_logger(self, logger: logging.Logger | None) -> None:
        self._logger = resolve_logger(logger)

    def logf(self, fmt: str, *args: object) -> None:
        self._logger.info(fmt, *args)
