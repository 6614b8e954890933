import smtplib
from dataclasses import replace

import pytest

from services.email_service import EmailSender, reset_link_message, signup_otp_message
from services.exceptions import DeliveryError


@pytest.fixture
def smtp_settings(settings):
    return replace(
        settings,
        smtp_host="smtp.test",
        smtp_port=587,
        smtp_user="mailer@x.com",
        smtp_pass="secret",
        email_from="mailer@x.com",
    )


class FakeSMTP:
    sent = []
    fail = False

    def __init__(self, host, port):
        self.host, self.port = host, port

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False

    def starttls(self, context=None):
        pass

    def login(self, user, password):
        if FakeSMTP.fail:
            raise smtplib.SMTPAuthenticationError(535, b"bad credentials")

    def send_message(self, msg, from_addr=None, to_addrs=None):
        FakeSMTP.sent.append((msg, to_addrs))


@pytest.fixture
def fake_smtp(monkeypatch):
    FakeSMTP.sent = []
    FakeSMTP.fail = False
    monkeypatch.setattr(smtplib, "SMTP", FakeSMTP)
    return FakeSMTP


def test_send_builds_multipart_message(smtp_settings, fake_smtp):
    subject, body, html_body = signup_otp_message("123456", 10)
    EmailSender(smtp_settings).send("alice@x.com", subject, body, html_body)

    msg, to_addrs = fake_smtp.sent[0]
    assert to_addrs == ["alice@x.com"]
    assert msg["Subject"] == subject
    assert "123456" in msg.get_body(preferencelist=("plain",)).get_content()
    assert msg.get_body(preferencelist=("html",)) is not None


def test_transport_failure_becomes_delivery_error(smtp_settings, fake_smtp):
    fake_smtp.fail = True
    with pytest.raises(DeliveryError):
        EmailSender(smtp_settings).send("alice@x.com", "s", "b")


def test_missing_configuration(settings):
    with pytest.raises(DeliveryError):
        EmailSender(settings).send("alice@x.com", "s", "b")


def test_reset_link_message_escapes_html():
    subject, body, html_body = reset_link_message('http://x/reset/"abc', 60)
    assert 'http://x/reset/"abc' in body
    assert "&quot;abc" in html_body
