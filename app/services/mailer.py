"""Outbound mail for reservation confirmations (SMTP, or a log line when unconfigured)."""

import html
import logging
import smtplib
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from typing import Any

from app.core.config import Settings

logger = logging.getLogger(__name__)


def _redact_email(email: str) -> str:
    if "@" not in email:
        return "redacted"
    local, domain = email.split("@", 1)
    return f"{local[:2]}***@{domain}"


def render_confirmation(reservation: dict[str, Any]) -> tuple[str, str]:
    """Return (subject, html body) for a reservation confirmation."""
    esc = {key: html.escape(str(value or "")) for key, value in reservation.items()}
    subject = f"Your Table Reservation at {reservation['venue']}"
    body = (
        "<h2>Thank you for your booking!</h2>"
        f"<p>Hi {esc['name']},</p>"
        f"<p>Your reservation at <b>{esc['venue']}</b> is confirmed for <b>{esc['date']}</b> "
        f"at <b>{esc['time']}</b> for <b>{esc['guests']}</b> guest(s).</p>"
        f"<p>Location: {esc['venueLocation']}</p>"
        f"<p>Special Requests: {esc['specialRequests'] or 'None'}</p>"
        f"<p>Reservation ID: {esc['id']}</p>"
        "<p>We look forward to hosting you!</p>"
        "<br><small>This is an automated email. Please do not reply.</small>"
    )
    return subject, body


class Mailer:
    """SMTP sender; logs instead of sending when credentials are missing."""

    def __init__(
        self,
        *,
        host: str,
        port: int = 587,
        user: str | None = None,
        password: str | None = None,
        from_name: str = "Tablebook",
        enabled: bool = True,
    ) -> None:
        self.host = host
        self.port = port
        self.user = user
        self.password = password
        self.from_name = from_name
        self.enabled = enabled and bool(user and password)

    @classmethod
    def from_settings(cls, settings: Settings) -> "Mailer":
        mailer = cls(
            host=settings.SMTP_HOST,
            port=settings.SMTP_PORT,
            user=settings.EMAIL_USER,
            password=settings.EMAIL_PASS.get_secret_value() if settings.EMAIL_PASS else None,
            from_name=settings.EMAIL_FROM_NAME,
            enabled=settings.email_configured,
        )
        if not mailer.enabled:
            logger.warning(
                "Email service disabled: EMAIL_USER and EMAIL_PASS are not configured"
            )
        return mailer

    def send(self, to_email: str, subject: str, html_body: str) -> bool:
        """Send one HTML message. Returns False on failure; never raises."""
        if not self.enabled:
            logger.info("Email not sent (disabled) to=%s subject=%s", _redact_email(to_email), subject)
            return True
        msg = MIMEMultipart("alternative")
        msg["Subject"] = subject
        msg["From"] = f"{self.from_name} <{self.user}>"
        msg["To"] = to_email
        msg.attach(MIMEText(html_body, "html"))
        try:
            with smtplib.SMTP(self.host, self.port, timeout=30) as server:
                server.starttls()
                server.login(self.user, self.password)
                server.sendmail(self.user, [to_email], msg.as_string())
        except (smtplib.SMTPException, OSError) as exc:
            logger.error("Email send failed to=%s: %s", _redact_email(to_email), exc)
            return False
        logger.info("Email sent to=%s", _redact_email(to_email))
        return True

    def send_reservation_confirmation(self, reservation: dict[str, Any]) -> bool:
        subject, body = render_confirmation(reservation)
        return self.send(reservation["email"], subject, body)
