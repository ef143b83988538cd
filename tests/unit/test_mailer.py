"""
Unit tests for credvault.mailer
"""
import smtplib
from unittest.mock import patch

import pytest

from credvault.mailer import EmailNotifier, NotificationError, PURPOSE_RESET, PURPOSE_VERIFY


@pytest.fixture
def email_notifier():
    return EmailNotifier(server="smtp.test", port=2525, user="no-reply@example.com",
                         password="pw", timeout=3)


class TestEmailNotifier:
    """Tests for EmailNotifier.send_otp"""

    def test_sends_verification_code(self, email_notifier):
        with patch("credvault.mailer.smtplib.SMTP") as smtp_cls:
            email_notifier.send_otp("a@x.com", "Alice", "4821", PURPOSE_VERIFY)

        smtp_cls.assert_called_once_with("smtp.test", 2525, timeout=3)
        server = smtp_cls.return_value.__enter__.return_value
        server.starttls.assert_called_once()
        server.login.assert_called_once_with("no-reply@example.com", "pw")
        sender, recipient, message = server.sendmail.call_args.args
        assert sender == "no-reply@example.com"
        assert recipient == "a@x.com"
        assert "Welcome Alice!" in message
        assert "4821" in message

    def test_reset_uses_reset_template(self, email_notifier):
        with patch("credvault.mailer.smtplib.SMTP") as smtp_cls:
            email_notifier.send_otp("a@x.com", "Alice", "9034", PURPOSE_RESET)

        server = smtp_cls.return_value.__enter__.return_value
        message = server.sendmail.call_args.args[2]
        assert "Password Reset Request" in message
        assert "9034" in message

    def test_connection_failure_raises(self, email_notifier):
        with patch("credvault.mailer.smtplib.SMTP", side_effect=OSError("connection refused")):
            with pytest.raises(NotificationError):
                email_notifier.send_otp("a@x.com", "Alice", "4821", PURPOSE_VERIFY)

    def test_auth_failure_raises(self, email_notifier):
        with patch("credvault.mailer.smtplib.SMTP") as smtp_cls:
            server = smtp_cls.return_value.__enter__.return_value
            server.login.side_effect = smtplib.SMTPAuthenticationError(535, b"bad credentials")
            with pytest.raises(NotificationError) as exc_info:
                email_notifier.send_otp("a@x.com", "Alice", "4821", PURPOSE_VERIFY)
        assert exc_info.value.status_code == 503
