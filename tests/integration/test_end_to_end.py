"""Integration tests — URL building, routing and delivery across real services.

The SMTP and webhook services run their full code paths; only the
socket-level clients are replaced (a fake ``smtplib.SMTP`` and an
``httpx.MockTransport``).
"""

from __future__ import annotations

import json
import logging

import httpx
import pytest

from clarion import ServiceRouter
from clarion.router.registry import ServiceRegistry
from clarion.services.generic import GenericConfig, GenericService
from clarion.services.logger import LoggerService
from clarion.services.smtp import SMTPConfig, SMTPService


class _Mailbox:
    """Minimal SMTP client double shared by every connection."""

    def __init__(self) -> None:
        self.messages: list = []
        self.connections = 0

    def connect(self, config, timeout):
        self.connections += 1
        return self

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False

    def ehlo(self, name=""):
        pass

    def has_extn(self, name):
        return False

    def auth(self, mechanism, authobject):
        pass

    def auth_plain(self, challenge=None):
        return ""

    def send_message(self, msg):
        self.messages.append(msg)


@pytest.fixture
def mailbox() -> _Mailbox:
    return _Mailbox()


@pytest.fixture
def webhook_requests() -> list:
    return []


@pytest.fixture
def live_registry(mailbox: _Mailbox, webhook_requests: list) -> ServiceRegistry:
    def handler(request: httpx.Request) -> httpx.Response:
        webhook_requests.append(request)
        if request.url.path == "/down":
            return httpx.Response(500, text="maintenance")
        return httpx.Response(200)

    transport = httpx.MockTransport(handler)
    registry = ServiceRegistry()
    registry.register("smtp", lambda: SMTPService(smtp_factory=mailbox.connect))
    registry.register("generic", lambda: GenericService(transport=transport))
    registry.register("logger", LoggerService)
    return registry


def _smtp_url() -> str:
    config = SMTPConfig.with_defaults()
    resolver = config.resolver()
    resolver.apply_all([
        ("host", "mail.example.com"),
        ("username", "alerts"),
        ("password", "s3cret"),
        ("port", "587"),
        ("from", "alerts+prod@example.com"),
        ("fromname", "Prod Alerts"),
        ("to", "oncall@example.com,lead@example.com"),
    ])
    config.validate_url_config()
    return config.get_url()


def _webhook_url(path: str) -> str:
    config = GenericConfig.with_defaults()
    config.host = "hooks.example.com"
    config.path = path
    config.title = "prod"
    return config.get_url()


class TestEndToEnd:
    def test_broadcast_to_every_destination(
        self, live_registry, mailbox, webhook_requests, caplog
    ):
        audit = logging.getLogger("tests.e2e.audit")
        router = ServiceRouter(
            [_smtp_url(), _webhook_url("/notify"), "logger://?title=audit", _smtp_url()],
            registry=live_registry,
            service_logger=audit,
        )
        assert [s.get_id() for s in router.services] == ["smtp", "generic", "logger"]

        with caplog.at_level(logging.INFO, logger="tests.e2e.audit"):
            results = list(router.send_async("Database failover complete", {"title": "Failover"}))

        assert results == [None, None, None]
        assert mailbox.connections == 1
        assert [m["To"] for m in mailbox.messages] == ["oncall@example.com", "lead@example.com"]
        assert mailbox.messages[0]["Subject"] == "Failover"
        assert mailbox.messages[0]["From"] == "Prod Alerts <alerts+prod@example.com>"
        assert json.loads(webhook_requests[0].content) == {
            "message": "Database failover complete",
            "title": "Failover",
        }
        assert "Failover: Database failover complete" in caplog.messages

    def test_partial_outage(self, live_registry, mailbox, webhook_requests):
        router = ServiceRouter(
            [_webhook_url("/down"), _smtp_url()], registry=live_registry
        )
        items = sorted(router.send_items("status"), key=lambda r: r.index)
        assert [item.ok for item in items] == [False, True]
        assert "status=500" in str(items[0].error)
        assert len(mailbox.messages) == 2

    def test_bound_configs_survive_many_sends(self, live_registry, mailbox):
        router = ServiceRouter([_smtp_url()], registry=live_registry)
        for n in range(3):
            router.send(f"update {n}", {"title": f"Update {n}"})
        router.send("final")
        subjects = [m["Subject"] for m in mailbox.messages]
        assert subjects == [
            "Update 0", "Update 0", "Update 1", "Update 1",
            "Update 2", "Update 2", "Clarion Notification", "Clarion Notification",
        ]

    def test_generated_url_is_reusable(self, live_registry):
        url = _smtp_url()
        router = ServiceRouter([url], registry=live_registry)
        bound = router.services[0].config
        assert bound.get_url() != url  # auth UNKNOWN resolved to PLAIN
        assert "auth=PLAIN" in bound.get_url()
        assert SMTPConfig.from_url(bound.get_url()) == bound
        assert "s3cret" not in bound.masked_url()
