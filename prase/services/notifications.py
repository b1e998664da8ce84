"""Outbound notifications (password reset mail and confirmations)."""

import logging
import smtplib
import ssl
from email.message import EmailMessage
from typing import Protocol

from prase.config import get_settings
from prase.errors import NotificationDeliveryError

logger = logging.getLogger("prase")


class Notifier(Protocol):
    def send(self, to: str, subject: str, body: str) -> None: ...


class LogNotifier:
    """Writes messages to the application log. Used when no SMTP host is configured."""

    def send(self, to: str, subject: str, body: str) -> None:
        logger.info("NOTIFICATION to=%s subject=%r\n%s", to, subject, body)


class SmtpNotifier:
    """Sends plain-text mail through an SMTP relay."""

    def __init__(self) -> None:
        settings = get_settings()
        self.host = settings.SMTP_HOST
        self.port = settings.SMTP_PORT
        self.user = settings.SMTP_USER
        self.password = settings.SMTP_PASSWORD
        self.use_tls = settings.SMTP_USE_TLS
        self.sender = settings.MAIL_FROM

    def send(self, to: str, subject: str, body: str) -> None:
        msg = EmailMessage()
        msg["Subject"] = subject
        msg["From"] = self.sender
        msg["To"] = to
        msg.set_content(body)

        try:
            with smtplib.SMTP(self.host, self.port, timeout=10) as client:
                if self.use_tls:
                    client.starttls(context=ssl.create_default_context())
                if self.user:
                    client.login(self.user, self.password)
                client.send_message(msg)
        except (smtplib.SMTPException, OSError) as exc:
            raise NotificationDeliveryError(to, str(exc)) from exc


_notifier: Notifier | None = None


def get_notifier() -> Notifier:
    """Get singleton notifier: SMTP when configured, otherwise the log."""
    global _notifier
    if _notifier is None:
        _notifier = SmtpNotifier() if get_settings().SMTP_HOST else LogNotifier()
    return _notifier
