"""Outbound account emails."""

import logging
import smtplib
from abc import ABC, abstractmethod
from email.message import EmailMessage

from meco_auth.config import Settings

logger = logging.getLogger("meco_auth")


class NotificationError(Exception):
    """The message could not be handed to the mail transport."""


class Notifier(ABC):
    """Delivers a plain-text message or raises NotificationError."""

    @abstractmethod
    def send(self, address: str, subject: str, body: str) -> None: ...


class ConsoleNotifier(Notifier):
    """Development backend: writes the message to the server log."""

    def send(self, address: str, subject: str, body: str) -> None:
        logger.info("MAIL to=%s subject=%s\n%s", address, subject, body)


class SMTPNotifier(Notifier):
    """Sends mail through an SMTP relay, one connection per message."""

    def __init__(
        self,
        host: str,
        port: int,
        sender: str,
        username: str = "",
        password: str = "",
        use_ssl: bool = True,
        timeout: float = 10.0,
    ) -> None:
        self._host = host
        self._port = port
        self._sender = sender
        self._username = username
        self._password = password
        self._use_ssl = use_ssl
        self._timeout = timeout

    def _new_connection(self) -> smtplib.SMTP:
        if self._use_ssl:
            return smtplib.SMTP_SSL(host=self._host, port=self._port, timeout=self._timeout)
        conn = smtplib.SMTP(host=self._host, port=self._port, timeout=self._timeout)
        try:
            conn.starttls()
        except (smtplib.SMTPException, OSError):
            conn.close()
            raise
        return conn

    def send(self, address: str, subject: str, body: str) -> None:
        message = EmailMessage()
        message["From"] = self._sender
        message["To"] = address
        message["Subject"] = subject
        message.set_content(body)
        try:
            with self._new_connection() as conn:
                if self._username:
                    conn.login(self._username, self._password)
                conn.send_message(message)
        except (smtplib.SMTPException, OSError) as e:
            raise NotificationError(f"Failed to send '{subject}' to {address}") from e


def build_notifier(settings: Settings) -> Notifier:
    """Pick the mail backend named by MAIL_BACKEND."""
    if settings.MAIL_BACKEND == "smtp":
        return SMTPNotifier(
            host=settings.SMTP_HOST,
            port=settings.SMTP_PORT,
            sender=settings.MAIL_FROM,
            username=settings.SMTP_USERNAME,
            password=settings.SMTP_PASSWORD,
            use_ssl=settings.SMTP_USE_SSL,
        )
    return ConsoleNotifier()
