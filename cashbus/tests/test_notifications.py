"""
Tests for the email transport behind the escalation letters.
"""

from smtplib import SMTPException

from django.core import mail
from django.test import TestCase

from cashbus.escalation.notifications import EmailNotificationSender


class BrokenConnection:
    def send_messages(self, messages):
        raise SMTPException("Connection unexpectedly closed")


class SilentConnection:
    def send_messages(self, messages):
        return 0


class EmailNotificationSenderTests(TestCase):
    def test_delivered_letter_reports_message_id(self):
        sender = EmailNotificationSender(from_email="CashBus Legal <legal@cashbus.test>")

        result = sender.send("pniot@dan.test", "תזכורת", "<p>שלום <b>רב</b></p>")

        self.assertTrue(result.delivered)
        self.assertTrue(result.provider_message_id.startswith("<"))
        self.assertTrue(result.provider_message_id.endswith("@cashbus.test>"))
        self.assertIsNone(result.error)

        message = mail.outbox[0]
        self.assertEqual(message.to, ["pniot@dan.test"])
        self.assertEqual(message.bcc, ["legal-desk@cashbus.test"])
        self.assertEqual(message.body, "שלום רב")
        self.assertEqual(message.alternatives[0][1], "text/html")
        self.assertEqual(message.extra_headers["Message-ID"], result.provider_message_id)

    def test_admin_not_copied_on_letters_to_itself(self):
        sender = EmailNotificationSender()

        sender.send("legal-desk@cashbus.test", "subject", "<p>body</p>")

        self.assertEqual(mail.outbox[0].bcc, [])

    def test_smtp_failure_is_reported_not_raised(self):
        sender = EmailNotificationSender(connection=BrokenConnection())

        result = sender.send("pniot@dan.test", "subject", "<p>body</p>")

        self.assertFalse(result.delivered)
        self.assertIsNone(result.provider_message_id)
        self.assertIn("Connection unexpectedly closed", result.error)

    def test_backend_accepting_nothing_is_a_failure(self):
        sender = EmailNotificationSender(connection=SilentConnection())

        result = sender.send("pniot@dan.test", "subject", "<p>body</p>")

        self.assertFalse(result.delivered)
        self.assertEqual(result.error, "Email backend accepted no messages")
