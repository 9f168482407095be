from __future__ import annotations

import logging
import smtplib
from abc import ABC, abstractmethod
from email.message import EmailMessage
from functools import lru_cache
from typing import Optional

from .errors import NotificationError
from .settings import Settings, get_settings

logger = logging.getLogger(__name__)

SUBJECT = "Task Completed"


def build_message(sender: str, recipient: str, title: str, description: Optional[str]) -> EmailMessage:
    """Compose the "task completed" email."""
    msg = EmailMessage()
    msg["Subject"] = SUBJECT
    msg["From"] = sender
    msg["To"] = recipient
    body = [f'Your task "{title}" has been marked as completed.']
    if description:
        body.extend(["", description])
    msg.set_content("\n".join(body))
    return msg


# PUBLIC_INTERFACE
class Notifier(ABC):
    """Capability that tells a user one of their tasks was completed."""

    @abstractmethod
    def send(self, recipient: Optional[str], title: str, description: Optional[str]) -> None:
        """Send the notification. Raise NotificationError when delivery fails."""


class LogNotifier(Notifier):
    """
    Notifier that only writes the email to the log. Default for local runs.
    """

    def __init__(self, sender: str = "no-reply@localhost") -> None:
        self._sender = sender

    def send(self, recipient: Optional[str], title: str, description: Optional[str]) -> None:
        if not recipient:
            raise NotificationError("no recipient address for user")
        msg = build_message(self._sender, recipient, title, description)
        logger.info("Completion email to=%s subject=%s\n%s", recipient, msg["Subject"], msg.get_content())


class SmtpNotifier(Notifier):
    """
    Notifier delivering through an SMTP relay. Every send opens a fresh
    connection bounded by the configured timeout.
    """

    def __init__(
        self,
        host: str,
        port: int,
        sender: str,
        username: Optional[str] = None,
        password: Optional[str] = None,
        use_tls: bool = False,
        timeout: float = 10.0,
    ) -> None:
        self._host = host
        self._port = port
        self._sender = sender
        self._username = username
        self._password = password
        self._use_tls = use_tls
        self._timeout = timeout

    def send(self, recipient: Optional[str], title: str, description: Optional[str]) -> None:
        if not recipient:
            raise NotificationError("no recipient address for user")
        msg = build_message(self._sender, recipient, title, description)
        try:
            with smtplib.SMTP(self._host, self._port, timeout=self._timeout) as smtp:
                if self._use_tls:
                    smtp.starttls()
                if self._username and self._password:
                    smtp.login(self._username, self._password)
                smtp.send_message(msg)
        except (smtplib.SMTPException, OSError) as e:
            raise NotificationError(f"SMTP delivery failed: {e}", recipient=recipient) from e


def notifier_from_settings(settings: Settings) -> Notifier:
    if settings.mail_backend == "smtp":
        return SmtpNotifier(
            host=settings.smtp_host,
            port=settings.smtp_port,
            sender=settings.mail_from,
            username=settings.smtp_username,
            password=settings.smtp_password,
            use_tls=settings.smtp_use_tls,
            timeout=settings.smtp_timeout,
        )
    return LogNotifier(sender=settings.mail_from)


# PUBLIC_INTERFACE
@lru_cache(maxsize=1)
def get_notifier() -> Notifier:
    """Return the process-wide notifier configured by MAIL_BACKEND."""
    return notifier_from_settings(get_settings())
