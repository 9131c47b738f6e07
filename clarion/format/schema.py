"""Declarative config schemas and the string-keyed property resolver.

Every destination config class declares an explicit :class:`ConfigSchema`
table, built once at class-definition time.  :class:`PropKeyResolver`
binds that table to one config instance and exposes its fields as a
case-insensitive, string-keyed property map with type coercion and enum
validation.

Query parsing, per-send params and the CLI ``generate`` command all go
through the resolver, so coercion rules live in exactly one place.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator, Mapping
from enum import Enum
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, ConfigDict, field_validator, model_validator

if TYPE_CHECKING:
    from clarion.format.codec import ServiceConfig

logger = logging.getLogger(__name__)

_TRUE_WORDS = ("yes", "true", "1", "on")
_FALSE_WORDS = ("no", "false", "0", "off")


class UnknownKeyError(LookupError):
    """Raised when a key does not resolve to any field of the schema."""

    def __init__(self, key: str, scheme: str = "") -> None:
        self.key = key
        self.scheme = scheme
        where = f" for service {scheme!r}" if scheme else ""
        super().__init__(f"unknown config key {key!r}{where}")


class InvalidValueError(ValueError):
    """Raised when a text value cannot be coerced to its field's type."""

    def __init__(
        self,
        key: str,
        value: str,
        reason: str = "",
        legal: Iterable[str] | None = None,
    ) -> None:
        self.key = key
        self.value = value
        self.legal = list(legal or [])
        message = f"invalid value {value!r} for key {key!r}"
        if reason:
            message += f": {reason}"
        if self.legal:
            message += f" (accepted values: {', '.join(self.legal)})"
        super().__init__(message)


# ---------------------------------------------------------------------------
# Field descriptions
# ---------------------------------------------------------------------------


class FieldKind(str, Enum):
    """The value types a config field can hold."""

    STRING = "string"
    INTEGER = "integer"
    BOOLEAN = "boolean"
    STRING_LIST = "string_list"
    ENUM = "enum"


class UrlPart(str, Enum):
    """Which part of the URL authority (or path) a field is encoded into."""

    HOST = "host"
    USER = "user"
    PASSWORD = "password"
    PORT = "port"
    PATH = "path"


class FieldSpec(BaseModel):
    """One addressable field of a destination config.

    ``name`` is the attribute on the config model.  ``keys`` are the
    query-string aliases; the first one is used when encoding.  Fields with
    a ``url_part`` are carried in the URL authority instead of the query.

    Examples
    --------
    >>> spec = FieldSpec(name="to_addresses", kind=FieldKind.STRING_LIST,
    ...                  keys=("toaddresses", "to"))
    >>> spec.primary_key
    'toaddresses'
    """

    model_config = ConfigDict(frozen=True)

    name: str
    kind: FieldKind = FieldKind.STRING
    keys: tuple[str, ...] = ()
    default: str | None = None
    required: bool = False
    url_part: UrlPart | None = None
    enum: type[Enum] | None = None
    secret: bool = False
    description: str = ""

    @field_validator("keys")
    @classmethod
    def _lowercase_keys(cls, keys: tuple[str, ...]) -> tuple[str, ...]:
        return tuple(key.lower() for key in keys)

    @model_validator(mode="after")
    def _enum_needs_type(self) -> FieldSpec:
        if self.kind is FieldKind.ENUM and self.enum is None:
            raise ValueError(f"enum field {self.name!r} declares no enum type")
        return self

    @property
    def primary_key(self) -> str:
        return self.keys[0] if self.keys else self.name.lower()

    @property
    def lookup_keys(self) -> tuple[str, ...]:
        canonical = self.name.lower()
        if canonical in self.keys:
            return self.keys
        return (canonical, *self.keys)

    @property
    def in_query(self) -> bool:
        return self.url_part is None

    def legal_values(self) -> list[str]:
        """Accepted spellings for enum and boolean fields, empty otherwise."""
        if self.kind is FieldKind.ENUM and self.enum is not None:
            return [member.name for member in self.enum]
        if self.kind is FieldKind.BOOLEAN:
            return ["Yes", "No"]
        return []


class ConfigSchema:
    """Ordered, immutable table of :class:`FieldSpec` entries.

    Raises ``ValueError`` at construction if two fields share a lookup key.
    """

    def __init__(self, fields: Iterable[FieldSpec]) -> None:
        self._fields: tuple[FieldSpec, ...] = tuple(fields)
        by_key: dict[str, FieldSpec] = {}
        for spec in self._fields:
            for key in spec.lookup_keys:
                existing = by_key.get(key)
                if existing is not None and existing.name != spec.name:
                    raise ValueError(
                        f"config key {key!r} is claimed by both "
                        f"{existing.name!r} and {spec.name!r}"
                    )
                by_key[key] = spec
        self._by_key = by_key
        self._by_part = {s.url_part: s for s in self._fields if s.url_part is not None}

    def __iter__(self) -> Iterator[FieldSpec]:
        return iter(self._fields)

    def __len__(self) -> int:
        return len(self._fields)

    @property
    def fields(self) -> tuple[FieldSpec, ...]:
        return self._fields

    def lookup(self, key: str) -> FieldSpec | None:
        return self._by_key.get(key.lower())

    def for_url_part(self, part: UrlPart) -> FieldSpec | None:
        return self._by_part.get(part)

    def query_fields(self) -> list[FieldSpec]:
        return [spec for spec in self._fields if spec.in_query]

    def keys(self) -> list[str]:
        """Primary keys of every field, in declaration order."""
        return [spec.primary_key for spec in self._fields]


# ---------------------------------------------------------------------------
# Coercion
# ---------------------------------------------------------------------------


def parse_value(spec: FieldSpec, text: str, key: str | None = None) -> Any:
    """Coerce *text* to the Python value for *spec*.

    Raises
    ------
    InvalidValueError
        If the text is not a legal value for the field.
    """
    key = key or spec.primary_key
    if spec.kind is FieldKind.STRING:
        return text
    if spec.kind is FieldKind.INTEGER:
        try:
            return int(text.strip())
        except ValueError:
            raise InvalidValueError(key, text, "expected an integer") from None
    if spec.kind is FieldKind.BOOLEAN:
        lowered = text.strip().lower()
        if lowered in _TRUE_WORDS:
            return True
        if lowered in _FALSE_WORDS:
            return False
        raise InvalidValueError(key, text, "expected a boolean", spec.legal_values())
    if spec.kind is FieldKind.STRING_LIST:
        return [item.strip() for item in text.split(",") if item.strip()]
    # FieldKind.ENUM; FieldSpec guarantees an enum type is declared
    wanted = text.strip().lower()
    for member in spec.enum or ():
        if member.name.lower() == wanted:
            return member
    raise InvalidValueError(key, text, "not a known option", spec.legal_values())


def format_value(spec: FieldSpec, value: Any) -> str:
    """Render a field value as text; enums render their symbolic name."""
    if value is None:
        return ""
    if spec.kind is FieldKind.BOOLEAN:
        return "Yes" if value else "No"
    if spec.kind is FieldKind.STRING_LIST:
        return ",".join(value)
    if spec.kind is FieldKind.ENUM:
        return value.name
    return str(value)


# ---------------------------------------------------------------------------
# Resolver
# ---------------------------------------------------------------------------


class PropKeyResolver:
    """String-keyed get/set access to one config instance.

    Parameters
    ----------
    config:
        Any :class:`~clarion.format.codec.ServiceConfig`; its class-level
        ``config_schema`` drives every lookup.

    Examples
    --------
    >>> from clarion.services.smtp import SMTPConfig
    >>> config = SMTPConfig()
    >>> resolver = PropKeyResolver(config)
    >>> resolver.set("Title", "Deploy finished")
    >>> config.subject
    'Deploy finished'
    """

    def __init__(self, config: ServiceConfig) -> None:
        self._config = config
        self._schema: ConfigSchema = type(config).config_schema

    @property
    def config(self) -> ServiceConfig:
        return self._config

    @property
    def schema(self) -> ConfigSchema:
        return self._schema

    def lookup(self, key: str) -> FieldSpec | None:
        """Return the field for *key*, or ``None`` if it is unknown."""
        return self._schema.lookup(key)

    def _require(self, key: str) -> FieldSpec:
        spec = self._schema.lookup(key)
        if spec is None:
            raise UnknownKeyError(key, type(self._config).scheme)
        return spec

    # -- Get / Set ------------------------------------------------------------

    def get(self, key: str) -> str:
        """Return the current value of *key* rendered as text.

        Raises
        ------
        UnknownKeyError
            If *key* is not a field name or alias.
        """
        spec = self._require(key)
        return format_value(spec, getattr(self._config, spec.name))

    def set(self, key: str, value: str) -> None:
        """Coerce *value* and store it in the field named by *key*.

        List fields are replaced by the comma-separated items of *value*.
        """
        spec = self._require(key)
        self._assign(spec, parse_value(spec, value, key))

    def set_values(self, key: str, values: Iterable[str]) -> None:
        """Assign from discrete values: list fields get all, scalars the last."""
        spec = self._require(key)
        values = list(values)
        if spec.kind is FieldKind.STRING_LIST:
            items: list[str] = []
            for value in values:
                items.extend(parse_value(spec, value, key))
            self._assign(spec, items)
        elif values:
            self._assign(spec, parse_value(spec, values[-1], key))

    def _assign(self, spec: FieldSpec, value: Any) -> None:
        try:
            setattr(self._config, spec.name, value)
        except ValueError as exc:
            raise InvalidValueError(
                spec.primary_key, format_value(spec, value), str(exc).splitlines()[0]
            ) from exc

    # -- Batches --------------------------------------------------------------

    def apply_defaults(self) -> None:
        """Set every field that declares a default to that default."""
        for spec in self._schema:
            if spec.default is not None:
                self._assign(spec, parse_value(spec, spec.default))

    def apply_all(self, pairs: Iterable[tuple[str, str]] | Mapping[str, str]) -> None:
        """Apply ``(key, value)`` pairs in encounter order.

        Repeated keys accumulate for list fields; scalar fields keep the
        last occurrence.  Application stops at the first failing key and
        that error is raised.  Fields applied before the failure keep
        their new values; nothing is rolled back.
        """
        if isinstance(pairs, Mapping):
            pairs = pairs.items()
        seen_lists: set[str] = set()
        for key, value in pairs:
            spec = self._require(key)
            parsed = parse_value(spec, value, key)
            if spec.kind is FieldKind.STRING_LIST:
                if spec.name in seen_lists:
                    parsed = [*getattr(self._config, spec.name), *parsed]
                seen_lists.add(spec.name)
            self._assign(spec, parsed)

    def update_config_from_params(self, params: Mapping[str, str] | None) -> None:
        """Apply per-send *params* onto the bound config, typically a fresh clone."""
        if params:
            self.apply_all(params)

    # -- Introspection --------------------------------------------------------

    def query_fields(self) -> list[FieldSpec]:
        return self._schema.query_fields()

    def keys(self) -> list[str]:
        return self._schema.keys()

    def items(self) -> list[tuple[FieldSpec, str]]:
        """Every field paired with its rendered current value."""
        return [
            (spec, format_value(spec, getattr(self._config, spec.name)))
            for spec in self._schema
        ]
