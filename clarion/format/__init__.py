"""Config schemas, the property resolver and the service URL codec."""

from clarion.format.codec import (
    ConfigValidationError,
    ServiceConfig,
    decode,
    dummy_url,
    encode,
)
from clarion.format.schema import (
    ConfigSchema,
    FieldKind,
    FieldSpec,
    InvalidValueError,
    PropKeyResolver,
    UnknownKeyError,
    UrlPart,
)

__all__ = [
    "ConfigSchema",
    "ConfigValidationError",
    "FieldKind",
    "FieldSpec",
    "InvalidValueError",
    "PropKeyResolver",
    "ServiceConfig",
    "UnknownKeyError",
    "UrlPart",
    "decode",
    "dummy_url",
    "encode",
]
