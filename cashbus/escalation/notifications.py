"""
Notification Sender.

The escalation sweep only needs a success flag and an optional provider
reference from whoever transports its letters. Transport failures come back
as ``DeliveryResult(delivered=False)`` instead of exceptions so the sweep
can leave the timeline untouched and retry on its next run.
"""

from dataclasses import dataclass
from email.utils import make_msgid, parseaddr
import logging
from smtplib import SMTPException
from typing import List, Optional

from django.conf import settings
from django.core.mail import EmailMultiAlternatives
from django.utils.html import strip_tags

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DeliveryResult:
    delivered: bool
    provider_message_id: Optional[str] = None
    error: Optional[str] = None


class NotificationSender:
    """Base class for letter transports."""

    def send(self, to: str, subject: str, html_body: str) -> DeliveryResult:
        raise NotImplementedError


class EmailNotificationSender(NotificationSender):
    """
    Sends letters through Django's configured email backend.

    The generated Message-ID is returned as the provider reference, so a
    delivered letter can be matched to the operator's reply thread.
    """

    def __init__(
        self,
        from_email: Optional[str] = None,
        bcc: Optional[List[str]] = None,
        connection=None,
    ):
        self.from_email = from_email or settings.CASHBUS_LEGAL_FROM_EMAIL
        if bcc is None:
            admin = getattr(settings, "CASHBUS_LEGAL_ADMIN_EMAIL", "")
            bcc = [admin] if admin else []
        self.bcc = bcc
        self.connection = connection

    def _message_id(self) -> str:
        address = parseaddr(self.from_email)[1]
        domain = address.rpartition("@")[2] or None
        return make_msgid(domain=domain)

    def send(self, to, subject, html_body):
        message_id = self._message_id()
        email = EmailMultiAlternatives(
            subject=subject,
            body=strip_tags(html_body),
            from_email=self.from_email,
            to=[to],
            bcc=[address for address in self.bcc if address != to],
            headers={"Message-ID": message_id},
            connection=self.connection,
        )
        email.attach_alternative(html_body, "text/html")

        try:
            sent = email.send(fail_silently=False)
        except (SMTPException, OSError, ValueError) as e:
            logger.warning(f"Letter '{subject}' to {to} not delivered: {e}")
            return DeliveryResult(delivered=False, error=str(e))

        if not sent:
            return DeliveryResult(
                delivered=False, error="Email backend accepted no messages"
            )
        return DeliveryResult(delivered=True, provider_message_id=message_id)
