"""Unit tests for ServiceRegistry and service URL resolution."""

from __future__ import annotations

import pytest

from clarion.router.registry import (
    ServiceInitError,
    ServiceRegistry,
    UnknownServiceError,
    default_registry,
    extract_service_name,
)
from clarion.services import Service
from clarion.services.logger import LoggerService
from clarion.services.smtp import AuthType, SMTPService
from conftest import RecordingService


class TestExtractServiceName:
    def test_lowercases_scheme(self):
        assert extract_service_name("SMTP://mx/?to=a") == ("smtp", "mx/?to=a")

    @pytest.mark.parametrize("url", ["mx.example.com", "://host", "smtp:/mx"])
    def test_missing_prefix(self, url: str):
        with pytest.raises(ServiceInitError, match="missing 'scheme://' prefix"):
            extract_service_name(url)


class TestServiceRegistry:
    def test_register_and_list(self):
        registry = ServiceRegistry()
        registry.register("Zeta", LoggerService)
        registry.register("alpha", LoggerService)
        assert registry.list_services() == ["alpha", "zeta"]
        assert "ZETA" in registry
        assert "beta" not in registry
        assert 3 not in registry

    def test_duplicate_registration(self):
        registry = ServiceRegistry()
        registry.register("logger", LoggerService)
        with pytest.raises(ValueError, match="already registered"):
            registry.register("LOGGER", LoggerService)

    def test_new_service_returns_fresh_instances(self, registry: ServiceRegistry):
        first = registry.new_service("record")
        second = registry.new_service("record")
        assert isinstance(first, RecordingService)
        assert first is not second

    def test_unknown_service(self, registry: ServiceRegistry):
        with pytest.raises(UnknownServiceError) as excinfo:
            registry.new_service("pager")
        err = excinfo.value
        assert err.scheme == "pager"
        assert err.known == ["logger", "record"]
        assert "available services: logger, record" in str(err)


class TestLocate:
    def test_locate_binds_config(self, registry: ServiceRegistry):
        service = registry.locate("record://inbox/?title=hello")
        assert isinstance(service, Service)
        assert service.get_id() == "record"
        assert service.config.host == "inbox"
        assert service.config.title == "hello"

    def test_locate_unknown_scheme(self, registry: ServiceRegistry):
        with pytest.raises(UnknownServiceError):
            registry.locate("pager://team")

    def test_locate_wraps_config_errors(self, registry: ServiceRegistry):
        with pytest.raises(ServiceInitError, match="failed to initialize record") as excinfo:
            registry.locate("record://inbox/?volume=11")
        assert excinfo.value.scheme == "record"
        assert "volume" in str(excinfo.value.__cause__)

    def test_locate_wraps_invalid_values(self, registry: ServiceRegistry):
        with pytest.raises(ServiceInitError, match="mode"):
            registry.locate("record://inbox/?mode=SHOUTING")

    def test_locate_malformed(self, registry: ServiceRegistry):
        with pytest.raises(ServiceInitError):
            registry.locate("not a url")


class TestDefaultRegistry:
    def test_builtin_services(self):
        assert default_registry().list_services() == ["generic", "logger", "smtp"]

    def test_each_call_is_independent(self):
        first = default_registry()
        first.register("extra", LoggerService)
        assert "extra" not in default_registry()

    def test_smtp_auth_resolved_on_initialize(self):
        registry = default_registry()
        with_user = registry.locate("smtp://bob:pw@mx/?from=a@b.c&to=d@e.f")
        anonymous = registry.locate("smtp://mx/?from=a@b.c&to=d@e.f")
        explicit = registry.locate("smtp://bob@mx/?from=a@b.c&to=d@e.f&auth=CRAMMD5")
        assert isinstance(with_user, SMTPService)
        assert with_user.config.auth is AuthType.PLAIN
        assert anonymous.config.auth is AuthType.NONE
        assert explicit.config.auth is AuthType.CRAMMD5

    def test_smtp_missing_recipients(self):
        with pytest.raises(ServiceInitError, match="toaddresses missing"):
            default_registry().locate("smtp://mx/?from=a@b.c")
