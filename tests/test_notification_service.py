"""
Email delivery: SMTP first, HTTP relay as fallback
"""
import smtplib
from functools import partial

import httpx
import pytest

from cardops.core.config import Settings
from cardops.services import notification_service
from cardops.services.notification_service import (
    EmailContent,
    EmailNotifier,
    Notifier,
    build_approval_requested,
    build_step_updated,
    deliver,
)


def _settings(**overrides):
    values = dict(SMTP_HOST=None, MAIL_RELAY_URL=None, MAIL_FROM="CardOps <no-reply@cardops.test>")
    values.update(overrides)
    return Settings(**values)


class FakeSMTP:
    sent = []

    def __init__(self, host, port, timeout=None):
        self.host = host

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False

    def starttls(self):
        pass

    def login(self, user, password):
        pass

    def send_message(self, message):
        FakeSMTP.sent.append(message)


class BrokenSMTP(FakeSMTP):

    def starttls(self):
        raise smtplib.SMTPException("TLS handshake failed")


@pytest.fixture
def relay(monkeypatch):
    """Route the relay's httpx client to an in-process handler"""
    calls = []
    reply = {"success": True}

    def handler(request):
        calls.append(request)
        return httpx.Response(200, json=reply)

    real_client = httpx.Client
    monkeypatch.setattr(
        notification_service.httpx,
        "Client",
        partial(real_client, transport=httpx.MockTransport(handler)),
    )
    return calls, reply


class TestEmailNotifier:

    def test_smtp(self, monkeypatch):
        FakeSMTP.sent = []
        monkeypatch.setattr(notification_service.smtplib, "SMTP", FakeSMTP)
        notifier = EmailNotifier(_settings(SMTP_HOST="smtp.cardops.test", SMTP_USER="mailer"))

        assert notifier.send("collector@example.com", "Hello", "Body") is True
        assert FakeSMTP.sent[0]["To"] == "collector@example.com"
        assert FakeSMTP.sent[0]["Subject"] == "Hello"

    def test_relay_used_when_smtp_fails(self, monkeypatch, relay):
        calls, _ = relay
        monkeypatch.setattr(notification_service.smtplib, "SMTP", BrokenSMTP)
        notifier = EmailNotifier(_settings(SMTP_HOST="smtp.cardops.test", MAIL_RELAY_URL="http://relay.test/"))

        assert notifier.send("collector@example.com", "Hello", "Body") is True
        assert len(calls) == 1
        assert str(calls[0].url) == "http://relay.test/api/send-email"

    def test_relay_refusal(self, relay):
        _, reply = relay
        reply["success"] = False
        notifier = EmailNotifier(_settings(MAIL_RELAY_URL="http://relay.test"))

        assert notifier.send("collector@example.com", "Hello", "Body") is False

    def test_nothing_configured(self):
        assert EmailNotifier(_settings()).send("collector@example.com", "Hello", "Body") is False

    def test_missing_recipient(self):
        assert EmailNotifier(_settings(MAIL_RELAY_URL="http://relay.test")).send("", "Hello", "Body") is False


class TestDeliver:

    def test_notifier_errors_do_not_escape(self):
        class Exploding(Notifier):
            def send(self, recipient, subject, body):
                raise RuntimeError("boom")

        assert deliver(Exploding(), EmailContent("a@example.com", "s", "b")) is False

    def test_none_is_ignored(self):
        assert deliver(EmailNotifier(_settings()), None) is False

    def test_notifier_requires_send(self):
        class Silent(Notifier):
            pass

        with pytest.raises(TypeError):
            Notifier()
        with pytest.raises(TypeError):
            Silent()


class TestBuilders:

    def test_step_update_names_the_step(self):
        email = build_step_updated(
            "collector@example.com", "Aki", "req-1", 3, "completed",
            notes="Please pay the agency fee", base_url="https://cards.test/",
        )
        assert email.subject == "Progress update: Agency fee payment"
        assert "https://cards.test/progress/req-1" in email.body
        assert "Please pay the agency fee" in email.body

    def test_approval_link(self):
        email = build_approval_requested(
            "collector@example.com", "Aki", "key123", 15000, base_url="https://cards.test"
        )
        assert "https://cards.test/approval/key123" in email.body
        assert "15,000" in email.body
