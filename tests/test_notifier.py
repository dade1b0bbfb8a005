"""Tests for the mail backends."""

import logging
import smtplib
from unittest.mock import patch

import pytest

from meco_auth.config import Settings
from meco_auth.services.notifier import (
    ConsoleNotifier,
    NotificationError,
    SMTPNotifier,
    build_notifier,
)


class TestConsoleNotifier:
    def test_logs_message(self, caplog):
        with caplog.at_level(logging.INFO, logger="meco_auth"):
            ConsoleNotifier().send("alice@example.com", "Confirm Email", "Click http://x/?token=abc")
        assert "alice@example.com" in caplog.text
        assert "Confirm Email" in caplog.text
        assert "token=abc" in caplog.text


class TestSMTPNotifier:
    def _notifier(self, **overrides) -> SMTPNotifier:
        options = {
            "host": "smtp.example.com",
            "port": 465,
            "sender": '"Mini-Meco" <noreply@example.com>',
            "username": "mailer",
            "password": "secret",
        }
        options.update(overrides)
        return SMTPNotifier(**options)

    @patch("meco_auth.services.notifier.smtplib.SMTP_SSL")
    def test_send_over_ssl(self, mock_smtp_ssl):
        """Message is built and handed to an authenticated SSL connection."""
        self._notifier().send("alice@example.com", "Password Reset", "Reset here")

        mock_smtp_ssl.assert_called_once_with(host="smtp.example.com", port=465, timeout=10.0)
        conn = mock_smtp_ssl.return_value.__enter__.return_value
        conn.login.assert_called_once_with("mailer", "secret")
        conn.send_message.assert_called_once()
        message = conn.send_message.call_args.args[0]
        assert message["To"] == "alice@example.com"
        assert message["Subject"] == "Password Reset"
        assert message["From"].addresses[0].addr_spec == "noreply@example.com"
        assert message.get_content().strip() == "Reset here"

    @patch("meco_auth.services.notifier.smtplib.SMTP")
    def test_send_with_starttls(self, mock_smtp):
        self._notifier(use_ssl=False, port=587, username="").send("bob@example.com", "Confirm Email", "Hi")

        mock_smtp.return_value.starttls.assert_called_once()
        conn = mock_smtp.return_value.__enter__.return_value
        conn.login.assert_not_called()
        conn.send_message.assert_called_once()

    @patch("meco_auth.services.notifier.smtplib.SMTP")
    def test_starttls_failure_closes_connection(self, mock_smtp):
        """A plain connection that cannot be upgraded is closed before raising."""
        mock_smtp.return_value.starttls.side_effect = smtplib.SMTPException("STARTTLS not supported")
        with pytest.raises(NotificationError):
            self._notifier(use_ssl=False, port=587).send("bob@example.com", "Confirm Email", "Hi")

        mock_smtp.return_value.close.assert_called_once()
        mock_smtp.return_value.__enter__.assert_not_called()

    @patch("meco_auth.services.notifier.smtplib.SMTP_SSL")
    def test_connection_failure_raises_notification_error(self, mock_smtp_ssl):
        mock_smtp_ssl.side_effect = OSError("connection refused")
        with pytest.raises(NotificationError):
            self._notifier().send("alice@example.com", "Confirm Email", "Hi")


class TestBuildNotifier:
    def test_console_by_default(self):
        settings = Settings()
        settings.MAIL_BACKEND = "console"
        assert isinstance(build_notifier(settings), ConsoleNotifier)

    def test_smtp_backend(self):
        settings = Settings()
        settings.MAIL_BACKEND = "smtp"
        settings.SMTP_HOST = "smtp.example.com"
        assert isinstance(build_notifier(settings), SMTPNotifier)
