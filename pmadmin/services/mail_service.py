from __future__ import annotations

import logging

from flask import current_app
from flask_mail import Message  # type: ignore

from ..extensions import mail

logger = logging.getLogger(__name__)


class MailDeliveryError(RuntimeError):
    """Raised when an email cannot be handed over to the mail server."""


def deliver_test_email(recipient: str) -> Message:
    """Send a short message to ``recipient`` to verify the mail settings."""
    if not recipient:
        raise MailDeliveryError("No recipient address.")

    base_url = current_app.config.get("SERVER_NAME") or "pm-admin"
    message = Message(
        subject="pm-admin test email",
        recipients=[recipient],
        body=(
            "This is a test email sent by pm-admin.\n\n"
            f"If you received it, outgoing mail for {base_url} works.\n"
        ),
    )
    try:
        mail.send(message)
    except Exception as exc:  # noqa: BLE001 - smtplib and socket errors vary
        raise MailDeliveryError(str(exc)) from exc

    logger.info("Test email sent to %s.", recipient)
    return message


__all__ = ["deliver_test_email", "MailDeliveryError"]
