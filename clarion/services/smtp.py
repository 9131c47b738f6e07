"""SMTP e-mail destination.

URL form::

    smtp://[user[:password]@]host[:port]/?fromaddress=...&toaddresses=...

One message is sent per recipient.  The connection is opened once per
``send()`` call with implicit TLS (port 465 / ``encryption=IMPLICITTLS``)
or plain TCP upgraded through STARTTLS when the server offers it.
"""

from __future__ import annotations

import logging
import smtplib
import socket
from collections.abc import Callable
from email.message import EmailMessage
from email.utils import formatdate, formataddr
from enum import IntEnum
from typing import ClassVar, cast

from clarion.config import settings
from clarion.format.codec import ConfigValidationError, ServiceConfig
from clarion.format.schema import ConfigSchema, FieldKind, FieldSpec, UrlPart
from clarion.services import NotificationError
from clarion.services.standard import StandardService

logger = logging.getLogger(__name__)

SCHEME = "smtp"
DEFAULT_SMTP_PORT = 25
IMPLICIT_TLS_PORT = 465


class AuthType(IntEnum):
    """SMTP authentication mechanisms."""

    NONE = 0
    PLAIN = 1
    CRAMMD5 = 2
    UNKNOWN = 3
    OAUTH2 = 4


class EncMethod(IntEnum):
    """Transport encryption methods."""

    NONE = 0
    EXPLICITTLS = 1
    IMPLICITTLS = 2
    AUTO = 3


class SMTPConfig(ServiceConfig):
    """Settings for one SMTP destination."""

    scheme: ClassVar[str] = SCHEME
    config_schema: ClassVar[ConfigSchema] = ConfigSchema([
        FieldSpec(name="host", url_part=UrlPart.HOST,
                  description="SMTP server hostname or IP address"),
        FieldSpec(name="username", url_part=UrlPart.USER, default="",
                  description="SMTP server username"),
        FieldSpec(name="password", url_part=UrlPart.PASSWORD, default="", secret=True,
                  description="SMTP server password or OAuth2 token"),
        FieldSpec(name="port", kind=FieldKind.INTEGER, url_part=UrlPart.PORT,
                  default=str(DEFAULT_SMTP_PORT),
                  description="SMTP server port, common ones are 25, 465, 587 or 2525"),
        FieldSpec(name="from_address", keys=("fromaddress", "from"), required=True,
                  description="E-mail address that the mail are sent from"),
        FieldSpec(name="from_name", keys=("fromname",),
                  description="Name of the sender"),
        FieldSpec(name="to_addresses", kind=FieldKind.STRING_LIST,
                  keys=("toaddresses", "to"), required=True,
                  description="List of recipient e-mails"),
        FieldSpec(name="subject", keys=("subject", "title"),
                  default="Clarion Notification",
                  description="The subject of the sent mail"),
        FieldSpec(name="auth", kind=FieldKind.ENUM, enum=AuthType, keys=("auth",),
                  default="UNKNOWN", description="SMTP authentication method"),
        FieldSpec(name="encryption", kind=FieldKind.ENUM, enum=EncMethod,
                  keys=("encryption",), default="AUTO",
                  description="Encryption method"),
        FieldSpec(name="use_start_tls", kind=FieldKind.BOOLEAN,
                  keys=("usestarttls", "starttls"), default="Yes",
                  description="Whether to use StartTLS encryption"),
        FieldSpec(name="use_html", kind=FieldKind.BOOLEAN, keys=("usehtml",),
                  default="No",
                  description="Whether the message being sent is in HTML"),
        FieldSpec(name="client_host", keys=("clienthost",), default="localhost",
                  description="SMTP client hostname, or 'auto' for the local hostname"),
    ])

    host: str = ""
    username: str = ""
    password: str = ""
    port: int = DEFAULT_SMTP_PORT
    from_address: str = ""
    from_name: str = ""
    to_addresses: list[str] = []
    subject: str = ""
    auth: AuthType = AuthType.UNKNOWN
    encryption: EncMethod = EncMethod.AUTO
    use_start_tls: bool = True
    use_html: bool = False
    client_host: str = "localhost"

    def validate_url_config(self) -> None:
        if not self.from_address:
            raise ConfigValidationError(SCHEME, "fromaddress missing from config URL")
        if not self.to_addresses:
            raise ConfigValidationError(SCHEME, "toaddresses missing from config URL")

    def fix_email_tags(self) -> None:
        """Restore '+' tags that query decoding turned into spaces."""
        self.from_address = self.from_address.replace(" ", "+")
        self.to_addresses = [addr.replace(" ", "+") for addr in self.to_addresses]

    def uses_implicit_tls(self) -> bool:
        if self.encryption is EncMethod.IMPLICITTLS:
            return True
        return self.encryption is EncMethod.AUTO and self.port == IMPLICIT_TLS_PORT


SMTPFactory = Callable[[SMTPConfig, float], smtplib.SMTP]


def _default_factory(config: SMTPConfig, timeout: float) -> smtplib.SMTP:
    if config.uses_implicit_tls():
        return smtplib.SMTP_SSL(config.host, config.port, timeout=timeout)
    return smtplib.SMTP(config.host, config.port, timeout=timeout)


class SMTPService(StandardService):
    """Sends notifications to e-mail recipients over SMTP.

    Parameters
    ----------
    smtp_factory:
        Builds a connected ``smtplib.SMTP`` client for a config.  Defaults
        to a real network connection; tests inject a fake.
    """

    config_class: ClassVar[type[ServiceConfig]] = SMTPConfig

    def __init__(self, smtp_factory: SMTPFactory | None = None) -> None:
        super().__init__()
        self._factory = smtp_factory or _default_factory

    def after_initialize(self, config: ServiceConfig) -> None:
        config = cast(SMTPConfig, config)
        if config.auth is AuthType.UNKNOWN:
            config.auth = AuthType.PLAIN if config.username else AuthType.NONE

    def deliver(self, message: str, config: ServiceConfig) -> None:
        config = cast(SMTPConfig, config)
        config.fix_email_tags()
        logger.debug(
            "Connecting to %s:%d (implicit TLS: %s)",
            config.host, config.port, config.uses_implicit_tls(),
        )
        try:
            client = self._factory(config, settings.smtp_timeout_seconds)
        except (OSError, smtplib.SMTPException) as exc:
            raise NotificationError(
                f"failed to connect to SMTP server {config.host}:{config.port}"
            ) from exc

        try:
            with client:
                self._handshake(client, config)
                for recipient in config.to_addresses:
                    client.send_message(self._build_message(message, recipient, config))
                    self.logf('Mail successfully sent to "%s"', recipient)
        except smtplib.SMTPException as exc:
            raise NotificationError(f"SMTP delivery failed: {exc}") from exc
        except OSError as exc:
            raise NotificationError(f"SMTP connection error: {exc}") from exc

    def _handshake(self, client: smtplib.SMTP, config: SMTPConfig) -> None:
        client.ehlo(self._client_host(config))
        if config.use_start_tls and not config.uses_implicit_tls():
            if client.has_extn("starttls"):
                client.starttls()
                client.ehlo(self._client_host(config))
            else:
                self.logf(
                    "Warning: StartTLS enabled, but server does not support it. "
                    "Connection is unencrypted"
                )
        self._authenticate(client, config)

    def _authenticate(self, client: smtplib.SMTP, config: SMTPConfig) -> None:
        if config.auth is AuthType.NONE:
            return
        client.user, client.password = config.username, config.password
        if config.auth is AuthType.PLAIN:
            client.auth("PLAIN", client.auth_plain)
        elif config.auth is AuthType.CRAMMD5:
            client.auth("CRAM-MD5", client.auth_cram_md5)
        elif config.auth is AuthType.OAUTH2:
            token = f"user={config.username}\x01auth=Bearer {config.password}\x01\x01"
            client.auth("XOAUTH2", lambda challenge=None: token)
        else:
            raise NotificationError(f"invalid SMTP auth type {config.auth.name}")

    def _client_host(self, config: SMTPConfig) -> str:
        if config.client_host != "auto":
            return config.client_host
        try:
            return socket.gethostname()
        except OSError as exc:
            self.logf("Failed to get hostname, falling back to localhost: %s", exc)
            return "localhost"

    @staticmethod
    def _build_message(message: str, recipient: str, config: SMTPConfig) -> EmailMessage:
        email = EmailMessage()
        email["Subject"] = config.subject
        email["Date"] = formatdate(localtime=True)
        email["From"] = formataddr((config.from_name, config.from_address))
        email["To"] = recipient
        email.set_content(message)
        if config.use_html:
            email.add_alternative(message, subtype="html")
        return email
