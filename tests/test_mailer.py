"""Unit tests for app.services.mailer: rendering, disabled mode, SMTP failures."""

import smtplib
import unittest
from unittest.mock import MagicMock, patch

from app.services.mailer import Mailer, _redact_email, render_confirmation
from tests.support import make_settings, reservation_details


def _reservation(**overrides) -> dict:
    return reservation_details(id="r1", **overrides)


class TestRenderConfirmation(unittest.TestCase):
    def test_subject_names_venue(self) -> None:
        subject, body = render_confirmation(_reservation())
        self.assertEqual(subject, "Your Table Reservation at Harbor Grill")
        self.assertIn("19:30", body)
        self.assertIn("Reservation ID: r1", body)

    def test_user_input_is_escaped(self) -> None:
        _, body = render_confirmation(_reservation(name="<script>x</script>"))
        self.assertNotIn("<script>", body)
        self.assertIn("&lt;script&gt;", body)

    def test_missing_special_requests_reads_none(self) -> None:
        _, body = render_confirmation(_reservation(specialRequests=None))
        self.assertIn("Special Requests: None", body)


class TestMailer(unittest.TestCase):
    def test_disabled_without_credentials(self) -> None:
        with self.assertLogs("app.services.mailer", level="WARNING"):
            mailer = Mailer.from_settings(make_settings())
        self.assertFalse(mailer.enabled)
        with patch("app.services.mailer.smtplib.SMTP") as smtp:
            self.assertTrue(mailer.send_reservation_confirmation(_reservation()))
        smtp.assert_not_called()

    def test_sends_when_configured(self) -> None:
        mailer = Mailer.from_settings(
            make_settings(EMAIL_USER="bookings@example.com", EMAIL_PASS="app-secret")
        )
        self.assertTrue(mailer.enabled)
        server = MagicMock()
        with patch("app.services.mailer.smtplib.SMTP") as smtp:
            smtp.return_value.__enter__.return_value = server
            self.assertTrue(mailer.send_reservation_confirmation(_reservation()))
        server.starttls.assert_called_once()
        server.login.assert_called_once_with("bookings@example.com", "app-secret")
        args = server.sendmail.call_args[0]
        self.assertEqual(args[1], ["diner@example.com"])

    def test_smtp_failure_returns_false(self) -> None:
        mailer = Mailer(host="smtp.example.com", user="u@example.com", password="p")
        with patch("app.services.mailer.smtplib.SMTP", side_effect=smtplib.SMTPException("down")):
            with self.assertLogs("app.services.mailer", level="ERROR"):
                self.assertFalse(mailer.send("diner@example.com", "Hi", "<p>Hi</p>"))

    def test_redacts_addresses_in_logs(self) -> None:
        self.assertEqual(_redact_email("diner@example.com"), "di***@example.com")
        self.assertEqual(_redact_email("nonsense"), "redacted")


if __name__ == "__main__":
    unittest.main()
