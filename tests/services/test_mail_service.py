from __future__ import annotations

import pytest

from pmadmin import create_app
from pmadmin.config import Config
from pmadmin.extensions import mail
from pmadmin.services.mail_service import MailDeliveryError, deliver_test_email


class MailTestConfig(Config):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = "sqlite:///:memory:"
    MAIL_DEFAULT_SENDER = "noreply@example.com"


@pytest.fixture()
def app(tmp_path):
    application = create_app(MailTestConfig, instance_path=tmp_path / "instance")
    with application.app_context():
        yield application


def test_deliver_test_email_records_message(app):
    with mail.record_messages() as outbox:
        message = deliver_test_email("pm@example.com")

    assert outbox == [message]
    assert message.recipients == ["pm@example.com"]
    assert message.sender == "noreply@example.com"
    assert "test email" in message.body


def test_deliver_test_email_wraps_transport_errors(app, monkeypatch):
    def refuse(message):
        raise ConnectionRefusedError("Connection refused")

    monkeypatch.setattr(mail, "send", refuse)

    with pytest.raises(MailDeliveryError, match="Connection refused"):
        deliver_test_email("pm@example.com")


def test_deliver_test_email_requires_recipient(app):
    with pytest.raises(MailDeliveryError):
        deliver_test_email("")
