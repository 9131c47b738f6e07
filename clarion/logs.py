"""Logger contract shared by the router and every service.

Services receive a plain :class:`logging.Logger`.  When verbosity is
disabled they get :data:`DISCARD_LOGGER`, which has a ``NullHandler`` and
does not propagate, so nothing reaches the root logger.
"""

from __future__ import annotations

import logging
import sys

_PACKAGE_LOGGER = "clarion"
_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def _make_discard_logger() -> logging.Logger:
    discard = logging.getLogger(f"{_PACKAGE_LOGGER}.discard")
    discard.addHandler(logging.NullHandler())
    discard.propagate = False
    return discard


DISCARD_LOGGER: logging.Logger = _make_discard_logger()


def configure_logging(level: str | int = "WARNING") -> logging.Logger:
    """Attach a stderr handler to the ``clarion`` package logger.

    Calling this more than once only updates the level.
    """
    package_logger = logging.getLogger(_PACKAGE_LOGGER)
    package_logger.setLevel(level.upper() if isinstance(level, str) else level)
    if not any(getattr(h, "_clarion", False) for h in package_logger.handlers):
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter(_FORMAT))
        handler._clarion = True  # type: ignore[attr-defined]
        package_logger.addHandler(handler)
    return package_logger


def stderr_logger(prefix: str = "CLARION") -> logging.Logger:
    """Return a verbose service logger writing ``PREFIX <time> <line>`` to stderr."""
    verbose = logging.getLogger(f"{_PACKAGE_LOGGER}.verbose")
    verbose.setLevel(logging.DEBUG)
    verbose.propagate = False
    if not verbose.handlers:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter(f"{prefix} %(asctime)s %(message)s"))
        verbose.addHandler(handler)
    return verbose


def resolve_logger(logger: logging.Logger | None) -> logging.Logger:
    """Fall back to the discarding logger when *logger* is ``None``."""
    return DISCARD_LOGGER if logger is None else logger
