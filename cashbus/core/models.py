from django.db import models


class BaseModel(models.Model):
    """Abstract base model with common fields for all CashBus models."""

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)
    created_by = models.ForeignKey(
        "auth.User",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="%(class)s_created",
    )
    updated_by = models.ForeignKey(
        "auth.User",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="%(class)s_updated",
    )

    class Meta:
        abstract = True


class DomainAuditEvent(models.Model):
    """Domain-specific audit events for tracking the legal workflow."""

    ACTION_CHOICES = [
        ("incident_reported", "Incident Reported"),
        ("claim_opened", "Claim Opened"),
        ("demand_letter_sent", "Demand Letter Sent"),
        ("demand_letter_failed", "Demand Letter Failed"),
        ("escalation_stage_sent", "Escalation Stage Sent"),
        ("escalation_delivery_failed", "Escalation Delivery Failed"),
        ("escalation_conflict", "Escalation Conflict"),
        ("claim_resolved", "Claim Resolved"),
        ("company_response_recorded", "Company Response Recorded"),
        ("lawsuit_assembled", "Lawsuit Assembled"),
    ]

    action = models.CharField(max_length=50, choices=ACTION_CHOICES)
    entity_type = models.CharField(max_length=100)
    entity_id = models.CharField(max_length=100, blank=True, null=True)
    timestamp = models.DateTimeField(auto_now_add=True)
    request_id = models.CharField(max_length=64, blank=True, null=True)
    metadata = models.JSONField(default=dict, blank=True)
    user = models.ForeignKey(
        "auth.User",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="domain_audit_events",
    )

    class Meta:
        verbose_name = "Domain Audit Event"
        verbose_name_plural = "Domain Audit Events"
        ordering = ["-timestamp"]
        indexes = [
            models.Index(
                fields=["entity_type", "entity_id", "-timestamp"],
                name="audit_entity_idx",
            ),
            models.Index(fields=["action", "-timestamp"], name="audit_action_date_idx"),
        ]

    def __str__(self):
        return (
            f"{self.action} - {self.entity_type}:{self.entity_id} at {self.timestamp}"
        )
