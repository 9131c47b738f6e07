"""URL codec — converts destination configs to and from service URLs.

A service URL has the shape::

    scheme://[user[:password]@]host[:port][/path][?key=value&...]

Fields whose :class:`~clarion.format.schema.FieldSpec` names a ``url_part``
travel in the authority (or path); every other field is rendered into the
query string through the :class:`~clarion.format.schema.PropKeyResolver`.
List fields are written as repeated keys.  The ``?`` is always emitted so
that ``decode(encode(config))`` is syntactically stable.
"""

from __future__ import annotations

import ipaddress
import logging
from typing import Any, ClassVar
from urllib.parse import parse_qsl, quote, unquote, urlencode, urlsplit

from pydantic import BaseModel, ConfigDict

from clarion.format.schema import (
    ConfigSchema,
    FieldKind,
    PropKeyResolver,
    UrlPart,
    format_value,
)

logger = logging.getLogger(__name__)

REDACTED = "REDACTED"


class ConfigValidationError(ValueError):
    """Raised when a decoded config is missing something the destination needs."""

    def __init__(self, scheme: str, message: str) -> None:
        self.scheme = scheme
        super().__init__(message)


def dummy_url(scheme: str) -> str:
    """The sentinel URL used for schema introspection; skips post-validation."""
    return f"{scheme}://dummy@dummy.com"


def is_dummy_url(url: str, scheme: str) -> bool:
    return url.rstrip("/").lower() == dummy_url(scheme)


# ---------------------------------------------------------------------------
# Config base model
# ---------------------------------------------------------------------------


class ServiceConfig(BaseModel):
    """Base class for every destination configuration.

    Subclasses declare their pydantic fields (zero values) plus two class
    attributes:

    * ``scheme`` — the registered URL scheme.
    * ``config_schema`` — the explicit :class:`ConfigSchema` table, which
      carries keys, defaults and URL placement for every field.

    Instances are mutable (assignment is validated) and are cloned before
    each send so concurrent sends never share state.
    """

    model_config = ConfigDict(validate_assignment=True, extra="forbid")

    scheme: ClassVar[str] = ""
    config_schema: ClassVar[ConfigSchema] = ConfigSchema(())

    @classmethod
    def with_defaults(cls) -> ServiceConfig:
        """Return a config with every declared default materialized."""
        config = cls()
        PropKeyResolver(config).apply_defaults()
        return config

    @classmethod
    def from_url(cls, url: str) -> ServiceConfig:
        """Apply defaults, then decode *url* on top of them."""
        config = cls.with_defaults()
        config.set_url(url)
        return config

    def resolver(self) -> PropKeyResolver:
        return PropKeyResolver(self)

    def get_url(self) -> str:
        return encode(self)

    def set_url(self, url: str) -> None:
        decode(self, url)

    def clone(self) -> ServiceConfig:
        """Return a deep, independent copy (list fields included)."""
        return self.model_copy(deep=True)

    def validate_url_config(self) -> None:
        """Post-decode validation hook.

        The default implementation rejects empty ``required`` fields.
        Destinations override this to report their own requirements.
        """
        for spec in self.config_schema:
            if spec.required and not getattr(self, spec.name):
                raise ConfigValidationError(
                    self.scheme, f"{spec.primary_key} missing from config URL"
                )

    def masked_url(self) -> str:
        """Encode a copy with every non-empty secret field redacted."""
        masked = self.clone()
        for spec in self.config_schema:
            if spec.secret and spec.kind is FieldKind.STRING and getattr(masked, spec.name):
                setattr(masked, spec.name, REDACTED)
        return masked.get_url()


# ---------------------------------------------------------------------------
# Encode / decode
# ---------------------------------------------------------------------------


def _part(config: ServiceConfig, part: UrlPart) -> Any:
    spec = type(config).config_schema.for_url_part(part)
    return None if spec is None else getattr(config, spec.name)


def _is_ipv6(host: str) -> bool:
    try:
        return ipaddress.ip_address(host).version == 6
    except ValueError:
        return False


def _quote_host(host: str) -> str:
    """Percent-quote *host* so ``decode`` recovers it unchanged.

    IPv6 literals are bracketed; every other reserved character is quoted.
    """
    if _is_ipv6(host):
        return f"[{quote(host, safe=':')}]"
    return quote(host, safe="")


def _split_host_port(hostinfo: str) -> tuple[str, str]:
    if hostinfo.startswith("["):
        host, _, rest = hostinfo[1:].partition("]")
        return host, rest[1:] if rest.startswith(":") else ""
    host, sep, port = hostinfo.rpartition(":")
    if not sep:
        return hostinfo, ""
    return host, port


def encode(config: ServiceConfig) -> str:
    """Render *config* as its service URL."""
    cls = type(config)

    user = _part(config, UrlPart.USER) or ""
    password = _part(config, UrlPart.PASSWORD) or ""
    userinfo = ""
    if user or password:
        userinfo = quote(user, safe="")
        if password:
            userinfo += ":" + quote(password, safe="")
        userinfo += "@"

    host = _quote_host(_part(config, UrlPart.HOST) or "")
    port = _part(config, UrlPart.PORT)
    netloc = userinfo + host + (f":{port}" if port is not None else "")

    path = _part(config, UrlPart.PATH) or "/"
    if not path.startswith("/"):
        path = "/" + path

    pairs: list[tuple[str, str]] = []
    for spec in cls.config_schema.query_fields():
        value = getattr(config, spec.name)
        if value is None:
            continue
        if spec.kind is FieldKind.STRING_LIST:
            pairs.extend((spec.primary_key, item) for item in value)
        else:
            pairs.append((spec.primary_key, format_value(spec, value)))

    query = urlencode(pairs, quote_via=quote)
    return f"{cls.scheme}://{netloc}{quote(path, safe='/')}?{query}"


def decode(config: ServiceConfig, url: str) -> None:
    """Update *config* in place from *url*.

    Authority parts are copied first, then query parameters are applied in
    order.  Unless *url* is the dummy sentinel, the config's
    ``validate_url_config`` hook runs last.

    Raises
    ------
    ConfigValidationError
        If the scheme does not match or post-validation fails.
    UnknownKeyError, InvalidValueError
        If a query parameter is rejected by the resolver.
    """
    cls = type(config)
    parts = urlsplit(url)
    if parts.scheme.lower() != cls.scheme:
        raise ConfigValidationError(
            cls.scheme, f"URL scheme {parts.scheme!r} does not match {cls.scheme!r}"
        )

    resolver = PropKeyResolver(config)
    schema = cls.config_schema

    userinfo, _, hostinfo = parts.netloc.rpartition("@")
    user, _, password = userinfo.partition(":")
    host, port = _split_host_port(hostinfo)
    authority = {
        UrlPart.USER: unquote(user),
        UrlPart.PASSWORD: unquote(password),
        UrlPart.HOST: unquote(host),
        UrlPart.PATH: unquote(parts.path) or "/",
    }
    for part, text in authority.items():
        spec = schema.for_url_part(part)
        if spec is not None:
            resolver.set_values(spec.name, [text])

    port_spec = schema.for_url_part(UrlPart.PORT)
    if port_spec is not None and port:
        resolver.set_values(port_spec.name, [port])

    resolver.apply_all(parse_qsl(parts.query, keep_blank_values=True))

    if not is_dummy_url(url, cls.scheme):
        config.validate_url_config()
    logger.debug("Decoded %s config from URL", cls.scheme)
