"""Unit tests for EmailService with smtplib patched out."""

import smtplib
from decimal import Decimal
from unittest.mock import MagicMock, patch

import pytest

from trek_shared.models.enums import CancellationType
from trek_shared.services.email_service import EmailService, EmailServiceError, SMTPSettings


# === Test Fixtures ===


@pytest.fixture
def settings() -> SMTPSettings:
    return SMTPSettings(
        host="smtp.example.com",
        port=587,
        username="bookings@example.com",
        password="secret",
        sender="bookings@example.com",
    )


@pytest.fixture
def mock_smtp():
    """Patched smtplib.SMTP returning a server that supports STARTTLS."""
    with patch("trek_shared.services.email_service.smtplib.SMTP") as smtp_class:
        server = MagicMock()
        server.has_extn.return_value = True
        smtp_class.return_value = server
        yield smtp_class


def _sent_message(mock_smtp: MagicMock):
    return mock_smtp.return_value.send_message.call_args.args[0]


# === Settings ===


class TestSMTPSettings:
    """Settings loaded from EMAIL_* variables."""

    def test_from_env(self, monkeypatch) -> None:
        monkeypatch.setenv("EMAIL_HOST", "smtp.gmail.com")
        monkeypatch.setenv("EMAIL_PORT", "465")
        monkeypatch.setenv("EMAIL_USER", "ops@example.com")
        monkeypatch.setenv("EMAIL_PASS", "app-password")
        monkeypatch.delenv("EMAIL_FROM", raising=False)

        settings = SMTPSettings.from_env()

        assert settings.host == "smtp.gmail.com"
        assert settings.use_ssl is True
        assert settings.sender == "ops@example.com"
        assert settings.is_configured

    def test_unconfigured(self, monkeypatch) -> None:
        for name in ("EMAIL_HOST", "EMAIL_PORT", "EMAIL_USER", "EMAIL_PASS", "EMAIL_FROM"):
            monkeypatch.delenv(name, raising=False)

        settings = SMTPSettings.from_env()

        assert settings.port == 587
        assert not settings.is_configured


# === Sending ===


class TestSend:
    """Low-level send and connection handling."""

    def test_send_uses_starttls_and_login(self, settings, mock_smtp) -> None:
        EmailService(settings).send("asha@example.com", "Hello", "Plain body", "<p>Body</p>")

        server = mock_smtp.return_value
        mock_smtp.assert_called_once_with("smtp.example.com", 587, timeout=10)
        server.starttls.assert_called_once()
        server.login.assert_called_once_with("bookings@example.com", "secret")
        server.quit.assert_called_once()
        message = _sent_message(mock_smtp)
        assert message["To"] == "asha@example.com"
        assert message["Subject"] == "Hello"
        assert message.is_multipart()

    def test_ssl_port_uses_smtp_ssl(self, settings) -> None:
        ssl_settings = settings.model_copy(update={"port": 465})

        with patch("trek_shared.services.email_service.smtplib.SMTP_SSL") as ssl_class:
            EmailService(ssl_settings).send("asha@example.com", "Hi", "Body")

        ssl_class.assert_called_once_with("smtp.example.com", 465, timeout=10)
        ssl_class.return_value.send_message.assert_called_once()

    def test_not_configured(self) -> None:
        service = EmailService(
            SMTPSettings(host=None, port=587, username=None, password=None, sender=None)
        )

        with pytest.raises(EmailServiceError):
            service.send("asha@example.com", "Hi", "Body")

    def test_smtp_failure_wrapped(self, settings, mock_smtp) -> None:
        mock_smtp.return_value.send_message.side_effect = smtplib.SMTPRecipientsRefused({})

        with pytest.raises(EmailServiceError) as exc_info:
            EmailService(settings).send("asha@example.com", "Hi", "Body")

        assert "asha@example.com" in str(exc_info.value)
        mock_smtp.return_value.quit.assert_called_once()

    def test_verify_connection_failure(self, settings, mock_smtp) -> None:
        mock_smtp.side_effect = OSError("connection refused")

        with pytest.raises(EmailServiceError) as exc_info:
            EmailService(settings).verify_connection()

        assert "verification failed" in str(exc_info.value)

    def test_send_test_email_goes_to_account(self, settings, mock_smtp) -> None:
        EmailService(settings).send_test_email()

        assert _sent_message(mock_smtp)["To"] == "bookings@example.com"


# === Booking e-mails ===


class TestBookingEmails:
    """Cancellation and auto-cancel notifications."""

    def test_entire_cancellation_with_refund(
        self, settings, mock_smtp, booking_model
    ) -> None:
        booking = booking_model()

        EmailService(settings).send_cancellation_email(
            booking, None, CancellationType.ENTIRE, [], Decimal("15000"), "Weather"
        )

        message = _sent_message(mock_smtp)
        body = message.get_body(preferencelist=("plain",)).get_content()
        assert message["Subject"] == "Booking cancellation - your trek"
        assert "Your booking has been cancelled." in body
        assert "₹15,000.00" in body
        assert "Reason: Weather" in body

    def test_individual_cancellation_without_refund(
        self, settings, mock_smtp, booking_model, trek
    ) -> None:
        booking = booking_model()

        EmailService(settings).send_cancellation_email(
            booking,
            trek,
            CancellationType.INDIVIDUAL,
            ["Trekker 1", "Trekker 2"],
            Decimal("0"),
            None,
        )

        message = _sent_message(mock_smtp)
        body = message.get_body(preferencelist=("plain",)).get_content()
        assert message["Subject"] == "Booking cancellation - Kedarkantha"
        assert "Trekker 1, Trekker 2" in body
        assert "No refund is applicable" in body

    def test_auto_cancel_email(self, settings, mock_smtp, booking_model) -> None:
        booking = booking_model()

        EmailService(settings).send_auto_cancel_email(booking, None)

        message = _sent_message(mock_smtp)
        assert message["Subject"] == "Booking auto-cancelled - your trek"
        assert booking.booking_id in message.get_content()
