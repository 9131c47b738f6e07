"""Generic webhook destination.

URL form::

    generic://[user:password@]host[:port]/path?contenttype=...&method=...

The message is posted to ``https://host[:port]/path`` (``http`` when
``disabletls=Yes``).  JSON content types get a small JSON document with
the message and optional title; anything else gets the raw message text.
"""

from __future__ import annotations

import json
import logging
from typing import ClassVar, cast

import httpx
from pydantic import field_validator

from clarion.config import settings
from clarion.format.codec import ServiceConfig
from clarion.format.schema import ConfigSchema, FieldKind, FieldSpec, UrlPart
from clarion.services import NotificationError
from clarion.services.standard import StandardService

logger = logging.getLogger(__name__)

SCHEME = "generic"
JSON_CONTENT_TYPE = "application/json"


class GenericConfig(ServiceConfig):
    """Settings for one webhook endpoint."""

    scheme: ClassVar[str] = SCHEME
    config_schema: ClassVar[ConfigSchema] = ConfigSchema([
        FieldSpec(name="host", url_part=UrlPart.HOST, required=True,
                  description="Webhook server hostname"),
        FieldSpec(name="port", kind=FieldKind.INTEGER, url_part=UrlPart.PORT,
                  description="Webhook server port, omitted for the scheme default"),
        FieldSpec(name="path", url_part=UrlPart.PATH, default="/",
                  description="Webhook path"),
        FieldSpec(name="username", url_part=UrlPart.USER, default="",
                  description="Basic auth username"),
        FieldSpec(name="password", url_part=UrlPart.PASSWORD, default="", secret=True,
                  description="Basic auth password"),
        FieldSpec(name="content_type", keys=("contenttype",),
                  default=JSON_CONTENT_TYPE,
                  description="Content-Type of the request body"),
        FieldSpec(name="method", keys=("method",), default="POST",
                  description="HTTP method"),
        FieldSpec(name="disable_tls", kind=FieldKind.BOOLEAN, keys=("disabletls",),
                  default="No", description="Use plain HTTP instead of HTTPS"),
        FieldSpec(name="title", keys=("title",), default="",
                  description="Title included in JSON payloads"),
        FieldSpec(name="message_key", keys=("messagekey",), default="message",
                  description="JSON key holding the message"),
        FieldSpec(name="title_key", keys=("titlekey",), default="title",
                  description="JSON key holding the title"),
    ])

    host: str = ""
    port: int | None = None
    path: str = "/"
    username: str = ""
    password: str = ""
    content_type: str = JSON_CONTENT_TYPE
    method: str = "POST"
    disable_tls: bool = False
    title: str = ""
    message_key: str = "message"
    title_key: str = "title"

    @field_validator("path")
    @classmethod
    def _leading_slash(cls, path: str) -> str:
        return path if path.startswith("/") else "/" + path

    @field_validator("method")
    @classmethod
    def _upper_method(cls, method: str) -> str:
        return method.upper()

    def webhook_url(self) -> str:
        scheme = "http" if self.disable_tls else "https"
        port = f":{self.port}" if self.port is not None else ""
        return f"{scheme}://{self.host}{port}{self.path}"

    def is_json(self) -> bool:
        return self.content_type.split(";")[0].strip().lower() == JSON_CONTENT_TYPE


class GenericService(StandardService):
    """Posts notifications to an arbitrary HTTP(S) webhook.

    Parameters
    ----------
    transport:
        Optional ``httpx`` transport; tests pass ``httpx.MockTransport``.
    """

    config_class: ClassVar[type[ServiceConfig]] = GenericConfig

    def __init__(self, transport: httpx.BaseTransport | None = None) -> None:
        super().__init__()
        self._transport = transport

    def deliver(self, message: str, config: ServiceConfig) -> None:
        config = cast(GenericConfig, config)
        if config.is_json():
            payload = {config.message_key: message}
            if config.title:
                payload[config.title_key] = config.title
            body = json.dumps(payload).encode("utf-8")
        else:
            body = message.encode("utf-8")

        auth = (config.username, config.password) if config.username else None
        target = config.webhook_url()
        logger.debug("%s %s (%d bytes)", config.method, target, len(body))
        try:
            with httpx.Client(
                transport=self._transport, timeout=settings.webhook_timeout_seconds
            ) as client:
                response = client.request(
                    config.method,
                    target,
                    content=body,
                    headers={"Content-Type": config.content_type},
                    auth=auth,
                )
        except httpx.HTTPError as exc:
            raise NotificationError(f"failed to reach webhook {target}: {exc}") from exc

        if response.status_code >= 400:
            raise NotificationError(
                f"webhook rejected message: status={response.status_code} "
                f"body={response.text[:200]!r}"
            )
        self.logf("Webhook accepted message (status %d)", response.status_code)
