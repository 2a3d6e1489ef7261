import unittest
from unittest.mock import MagicMock, patch

from etce_auth.config import settings
from etce_auth.errors import EmailDeliveryError
from etce_auth.models import Role
from etce_auth.services import email_service
from etce_auth.services.email_service import build_otp_template, send_email_task


class TestOtpTemplate(unittest.TestCase):

    def test_student_template(self):
        subject, text, html = build_otp_template(Role.STUDENT, "A", "a@x.com", "123456")
        self.assertEqual(subject, "ETCE Student Registration OTP")
        self.assertIn("<h1>123456</h1>", html)
        self.assertIn("a@x.com", html)
        self.assertIn("valid for 5 minutes", html)
        self.assertIn("123456", text)

    def test_faculty_template_omits_email(self):
        subject, _, html = build_otp_template(Role.FACULTY, "Dr B", "b@x.com", "654321")
        self.assertEqual(subject, "ETCE Faculty Email Verification")
        self.assertIn("ETCE Faculty Registration", html)
        self.assertNotIn("b@x.com", html)

    def test_name_is_escaped(self):
        _, _, html = build_otp_template(Role.STUDENT, "<script>", "a@x.com", "123456")
        self.assertNotIn("<script>", html)
        self.assertIn("&lt;script&gt;", html)


class TestSendEmailTask(unittest.TestCase):

    def _configure(self):
        for name, value in (
            ("SENDGRID_API_KEY", "SG.test"),
            ("SENDGRID_FROM_EMAIL", "portal@etce.test"),
        ):
            p = patch.object(settings, name, value)
            p.start()
            self.addCleanup(p.stop)

    def test_unconfigured_outside_development_raises(self):
        with self.assertRaises(EmailDeliveryError):
            send_email_task("a@x.com", "s", "t", "<p>h</p>")

    def test_unconfigured_in_development_logs_instead(self):
        with patch.object(settings, "ENVIRONMENT", "development"):
            self.assertTrue(send_email_task("a@x.com", "s", "t", "<p>h</p>"))

    def test_sends_through_sendgrid(self):
        self._configure()
        client = MagicMock()
        client.send.return_value = MagicMock(status_code=202)
        with patch.object(email_service, "SendGridAPIClient", return_value=client) as factory:
            self.assertTrue(send_email_task("a@x.com", "Subject", "t", "<p>h</p>"))

        factory.assert_called_once_with("SG.test")
        message = client.send.call_args.args[0]
        self.assertEqual(message.from_email.email, "portal@etce.test")
        self.assertEqual(message.from_email.name, "ETCE Portal")

    def test_rejected_status_raises(self):
        self._configure()
        client = MagicMock()
        client.send.return_value = MagicMock(status_code=401)
        with patch.object(email_service, "SendGridAPIClient", return_value=client):
            with self.assertRaises(EmailDeliveryError):
                send_email_task("a@x.com", "s", "t", "<p>h</p>")

    def test_client_exception_wrapped(self):
        self._configure()
        client = MagicMock()
        client.send.side_effect = ConnectionError("timeout")
        with patch.object(email_service, "SendGridAPIClient", return_value=client):
            with self.assertRaises(EmailDeliveryError):
                send_email_task("a@x.com", "s", "t", "<p>h</p>")


if __name__ == "__main__":
    unittest.main()
