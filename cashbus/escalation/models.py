from django.db import models
from django.db.models import F, Q

from cashbus.constants import (
    DEFAULT_CLAIM_TIMEZONE,
    LETTER_CHOICES,
    TIMELINE_ACTIVE,
    TIMELINE_STATUS_CHOICES,
)
from cashbus.core.models import BaseModel


class ClaimTimeline(BaseModel):
    """
    Escalation state for one claim.

    Created when the initial demand letter is delivered (day 0). Stage slots
    fill strictly in ladder order; ``version`` increases on every change so
    writers can make their update conditional on the state they read.
    """

    claim = models.OneToOneField(
        "cashbus.Claim", on_delete=models.CASCADE, related_name="timeline"
    )
    initial_letter_sent_at = models.DateTimeField()
    status = models.CharField(
        max_length=30, choices=TIMELINE_STATUS_CHOICES, default=TIMELINE_ACTIVE
    )
    timezone_name = models.CharField(max_length=64, default=DEFAULT_CLAIM_TIMEZONE)

    first_reminder_sent_at = models.DateTimeField(null=True, blank=True)
    escalation_warning_sent_at = models.DateTimeField(null=True, blank=True)
    final_notice_sent_at = models.DateTimeField(null=True, blank=True)

    total_emails_sent = models.PositiveIntegerField(default=0)
    last_email_sent_at = models.DateTimeField(null=True, blank=True)
    version = models.PositiveIntegerField(default=0)
    sending_stage = models.CharField(
        max_length=30,
        blank=True,
        help_text="Stage a run has reserved and is currently sending",
    )
    sending_started_at = models.DateTimeField(null=True, blank=True)

    payment_received_at = models.DateTimeField(null=True, blank=True)
    company_responded = models.BooleanField(default=False)
    company_response_at = models.DateTimeField(null=True, blank=True)
    company_response_details = models.TextField(blank=True)
    lawsuit_filed_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        verbose_name = "Claim Timeline"
        verbose_name_plural = "Claim Timelines"
        ordering = ["initial_letter_sent_at"]
        indexes = [
            models.Index(
                fields=["status", "initial_letter_sent_at"],
                name="timeline_status_origin_idx",
            ),
        ]
        constraints = [
            models.CheckConstraint(
                condition=Q(escalation_warning_sent_at__isnull=True)
                | (
                    Q(first_reminder_sent_at__isnull=False)
                    & Q(first_reminder_sent_at__lte=F("escalation_warning_sent_at"))
                ),
                name="timeline_warning_after_reminder",
            ),
            models.CheckConstraint(
                condition=Q(final_notice_sent_at__isnull=True)
                | (
                    Q(escalation_warning_sent_at__isnull=False)
                    & Q(escalation_warning_sent_at__lte=F("final_notice_sent_at"))
                ),
                name="timeline_notice_after_warning",
            ),
        ]

    def __str__(self):
        return f"Timeline for {self.claim} ({self.status})"


class EscalationEmail(models.Model):
    """Append-only log of every letter delivery attempt."""

    timeline = models.ForeignKey(
        ClaimTimeline,
        on_delete=models.CASCADE,
        related_name="emails",
        null=True,
        blank=True,
    )
    claim = models.ForeignKey(
        "cashbus.Claim", on_delete=models.CASCADE, related_name="emails"
    )
    letter = models.CharField(max_length=30, choices=LETTER_CHOICES)
    recipient = models.EmailField()
    subject = models.CharField(max_length=255)
    delivered = models.BooleanField(default=False)
    provider_message_id = models.CharField(max_length=255, blank=True)
    error = models.TextField(blank=True)
    attempted_at = models.DateTimeField()

    class Meta:
        verbose_name = "Escalation Email"
        verbose_name_plural = "Escalation Emails"
        ordering = ["-attempted_at"]
        indexes = [
            models.Index(fields=["claim", "-attempted_at"], name="email_claim_date_idx"),
        ]

    def __str__(self):
        outcome = "delivered" if self.delivered else "failed"
        return f"{self.get_letter_display()} to {self.recipient} ({outcome})"
