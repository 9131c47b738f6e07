"""Logger destination — writes the message to the service logger.

``logger://`` is handy for dry runs: it exercises URL resolution and
fan-out without touching the network.  Output goes to whatever logger the
router was built with, so it is silent unless verbose logging is on.
"""

from __future__ import annotations

import logging
from enum import IntEnum
from typing import ClassVar, cast

from clarion.format.codec import ServiceConfig
from clarion.format.schema import ConfigSchema, FieldKind, FieldSpec
from clarion.services.standard import StandardService

SCHEME = "logger"


class LogLevel(IntEnum):
    DEBUG = logging.DEBUG
    INFO = logging.INFO
    WARNING = logging.WARNING
    ERROR = logging.ERROR


class LoggerConfig(ServiceConfig):
    scheme: ClassVar[str] = SCHEME
    config_schema: ClassVar[ConfigSchema] = ConfigSchema([
        FieldSpec(name="level", kind=FieldKind.ENUM, enum=LogLevel, keys=("level",),
                  default="INFO", description="Log level used for messages"),
        FieldSpec(name="title", keys=("title",), default="",
                  description="Prefix written before the message"),
    ])

    level: LogLevel = LogLevel.INFO
    title: str = ""


class LoggerService(StandardService):
    config_class: ClassVar[type[ServiceConfig]] = LoggerConfig

    def deliver(self, message: str, config: ServiceConfig) -> None:
        config = cast(LoggerConfig, config)
        if config.title:
            self._logger.log(config.level, "%s: %s", config.title, message)
        else:
            self._logger.log(config.level, "%s", message)
