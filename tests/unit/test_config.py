"""Tests for runtime settings and the logging helpers."""

from __future__ import annotations

import logging

from clarion.config import ClarionSettings
from clarion.logs import DISCARD_LOGGER, configure_logging, resolve_logger, stderr_logger


class TestClarionSettings:
    def test_defaults(self, monkeypatch):
        for name in ("LOG_LEVEL", "VERBOSE", "MAX_WORKERS", "SMTP_TIMEOUT_SECONDS"):
            monkeypatch.delenv(f"CLARION_{name}", raising=False)
        config = ClarionSettings(_env_file=None)
        assert config.log_level == "WARNING"
        assert config.verbose is False
        assert config.smtp_timeout_seconds == 15.0
        assert config.webhook_timeout_seconds == 10.0
        assert config.max_workers == 0

    def test_env_override(self, monkeypatch):
        monkeypatch.setenv("CLARION_LOG_LEVEL", "DEBUG")
        monkeypatch.setenv("CLARION_MAX_WORKERS", "4")
        monkeypatch.setenv("CLARION_SMTP_TIMEOUT_SECONDS", "2.5")
        config = ClarionSettings(_env_file=None)
        assert config.log_level == "DEBUG"
        assert config.max_workers == 4
        assert config.smtp_timeout_seconds == 2.5

    def test_fanout_width_unbounded(self):
        config = ClarionSettings(_env_file=None, max_workers=0)
        assert config.fanout_width(7) == 7

    def test_fanout_width_capped(self):
        config = ClarionSettings(_env_file=None, max_workers=3)
        assert config.fanout_width(10) == 3
        assert config.fanout_width(2) == 2
        assert config.fanout_width(0) == 1


class TestLogging:
    def test_discard_logger_is_silent(self):
        assert DISCARD_LOGGER.propagate is False
        assert any(isinstance(h, logging.NullHandler) for h in DISCARD_LOGGER.handlers)

    def test_resolve_logger(self):
        custom = logging.getLogger("tests.custom")
        assert resolve_logger(None) is DISCARD_LOGGER
        assert resolve_logger(custom) is custom

    def test_configure_logging_is_idempotent(self):
        package_logger = configure_logging("info")
        configure_logging("DEBUG")
        marked = [h for h in package_logger.handlers if getattr(h, "_clarion", False)]
        assert len(marked) == 1
        assert package_logger.level == logging.DEBUG
        configure_logging("WARNING")

    def test_stderr_logger_prefix(self):
        verbose = stderr_logger()
        assert verbose.level == logging.DEBUG
        assert verbose.propagate is False
        assert verbose.handlers[0].formatter._fmt.startswith("CLARION ")
        assert stderr_logger() is verbose
        assert len(verbose.handlers) == 1
