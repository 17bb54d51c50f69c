"""Transactional e-mail over SMTP.

Configuration comes from the environment:
- EMAIL_HOST, EMAIL_PORT: SMTP server (port 465 uses implicit SSL,
  anything else upgrades with STARTTLS when the server supports it)
- EMAIL_USER, EMAIL_PASS: login credentials (optional for local relays)
- EMAIL_FROM: sender address, defaults to EMAIL_USER
"""

import os
import smtplib
from decimal import Decimal
from email.message import EmailMessage

from pydantic import BaseModel, ConfigDict

from trek_shared.models.booking import Booking
from trek_shared.models.catalog import Trek
from trek_shared.models.enums import CancellationType
from trek_shared.utils.logging import get_logger

logger = get_logger(__name__)

SMTP_TIMEOUT_SECONDS = 10


class EmailServiceError(Exception):
    """Raised when an e-mail cannot be sent."""

    pass


class SMTPSettings(BaseModel):
    """SMTP connection settings."""

    model_config = ConfigDict(frozen=True)

    host: str | None
    port: int
    username: str | None
    password: str | None
    sender: str | None

    @classmethod
    def from_env(cls) -> "SMTPSettings":
        username = os.getenv("EMAIL_USER") or None
        return cls(
            host=os.getenv("EMAIL_HOST") or None,
            port=int(os.getenv("EMAIL_PORT", "587")),
            username=username,
            password=os.getenv("EMAIL_PASS") or None,
            sender=os.getenv("EMAIL_FROM") or username,
        )

    @property
    def use_ssl(self) -> bool:
        return self.port == 465

    @property
    def is_configured(self) -> bool:
        return bool(self.host and self.sender)


def _format_inr(amount: Decimal) -> str:
    return f"₹{Decimal(amount):,.2f}"


class EmailService:
    """Builds and sends booking e-mails."""

    def __init__(self, settings: SMTPSettings | None = None) -> None:
        self.settings = settings or SMTPSettings.from_env()

    def _connect(self) -> smtplib.SMTP:
        if not self.settings.is_configured:
            raise EmailServiceError("SMTP is not configured (EMAIL_HOST/EMAIL_USER)")

        if self.settings.use_ssl:
            smtp: smtplib.SMTP = smtplib.SMTP_SSL(
                self.settings.host, self.settings.port, timeout=SMTP_TIMEOUT_SECONDS
            )
        else:
            smtp = smtplib.SMTP(
                self.settings.host, self.settings.port, timeout=SMTP_TIMEOUT_SECONDS
            )
            smtp.ehlo()
            if smtp.has_extn("starttls"):
                smtp.starttls()
                smtp.ehlo()

        if self.settings.username:
            smtp.login(self.settings.username, self.settings.password or "")
        return smtp

    def verify_connection(self) -> None:
        """Open and close an authenticated SMTP session.

        Raises:
            EmailServiceError: If the server cannot be reached or login fails.
        """
        try:
            smtp = self._connect()
            smtp.noop()
            smtp.quit()
        except (smtplib.SMTPException, OSError) as e:
            raise EmailServiceError(f"SMTP verification failed: {e}") from e

    def send(self, to_email: str, subject: str, text: str, html: str | None = None) -> None:
        """Send a message.

        Args:
            to_email: Recipient address
            subject: Subject line
            text: Plain text body
            html: Optional HTML alternative

        Raises:
            EmailServiceError: If SMTP is not configured or sending fails.
        """
        msg = EmailMessage()
        msg["From"] = self.settings.sender
        msg["To"] = to_email
        msg["Subject"] = subject
        msg.set_content(text)
        if html:
            msg.add_alternative(html, subtype="html")

        try:
            smtp = self._connect()
            try:
                smtp.send_message(msg)
            finally:
                smtp.quit()
        except (smtplib.SMTPException, OSError) as e:
            raise EmailServiceError(f"Failed to send e-mail to {to_email}: {e}") from e

        logger.info("E-mail sent: %s -> %s", subject, to_email)

    def send_cancellation_email(
        self,
        booking: Booking,
        trek: Trek | None,
        cancellation_type: CancellationType,
        cancelled_participant_names: list[str],
        refund_amount: Decimal,
        reason: str | None,
    ) -> None:
        """Tell the booking owner what was cancelled and what is refunded."""
        trek_name = trek.name if trek else "your trek"
        if cancellation_type == CancellationType.ENTIRE:
            scope = "Your booking has been cancelled."
        else:
            scope = (
                "The following participants have been cancelled: "
                + ", ".join(cancelled_participant_names)
                + "."
            )

        refund_line = (
            f"A refund of {_format_inr(refund_amount)} has been initiated and should "
            "reach your account in 5-7 working days."
            if refund_amount > 0
            else "No refund is applicable for this cancellation."
        )

        text = (
            f"Hello {booking.user_details.name},\n\n"
            f"{scope}\n"
            f"Trek: {trek_name}\n"
            f"Booking ID: {booking.booking_id}\n"
            f"Reason: {reason or 'Not specified'}\n\n"
            f"{refund_line}\n"
        )
        html = (
            f"<p>Hello {booking.user_details.name},</p>"
            f"<p>{scope}</p>"
            "<ul>"
            f"<li><strong>Trek:</strong> {trek_name}</li>"
            f"<li><strong>Booking ID:</strong> {booking.booking_id}</li>"
            f"<li><strong>Reason:</strong> {reason or 'Not specified'}</li>"
            "</ul>"
            f"<p>{refund_line}</p>"
        )
        self.send(
            str(booking.user_details.email),
            f"Booking cancellation - {trek_name}",
            text,
            html,
        )

    def send_auto_cancel_email(self, booking: Booking, trek: Trek | None) -> None:
        """Tell the owner a partial-payment booking was cancelled for non-payment."""
        trek_name = trek.name if trek else "your trek"
        due = booking.partial_payment.final_payment_due_date if booking.partial_payment else None
        due_text = due.strftime("%d %b %Y") if due else "the due date"
        text = (
            f"Hello {booking.user_details.name},\n\n"
            f"Your booking {booking.booking_id} for {trek_name} was cancelled because "
            f"the remaining balance was not paid by {due_text}.\n"
            "Please contact us if you would like to book again.\n"
        )
        self.send(
            str(booking.user_details.email),
            f"Booking auto-cancelled - {trek_name}",
            text,
        )

    def send_test_email(self) -> None:
        """Send a diagnostic message to the configured account itself."""
        if not self.settings.username:
            raise EmailServiceError("EMAIL_USER is not set")
        self.send(
            self.settings.username,
            "SMTP configuration test",
            "This is a test message from the trek booking backend.",
            "<p>This is a test message from the trek booking backend.</p>",
        )
