import uuid

from django.conf import settings
from django.db import models

from cashbus.constants import (
    CLAIM_STATUS_CHOICES,
    CLAIM_SUBMITTED,
    DAMAGE_NONE,
    DAMAGE_TYPE_CHOICES,
    INCIDENT_KIND_CHOICES,
    PAYMENT_METHOD_CHOICES,
)
from cashbus.core.models import BaseModel


class Profile(models.Model):
    """Claimant identity used in letters and court filings."""

    user = models.OneToOneField(
        settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="profile"
    )
    full_name = models.CharField(max_length=255)
    id_number = models.CharField(
        max_length=9, blank=True, help_text="Israeli national id (teudat zehut)"
    )
    email = models.EmailField(blank=True)
    phone = models.CharField(max_length=20, blank=True)
    address = models.CharField(max_length=255, blank=True)
    city = models.CharField(max_length=100, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        verbose_name = "Profile"
        verbose_name_plural = "Profiles"

    def __str__(self):
        return self.full_name


class Incident(BaseModel):
    """
    One reported bus-service failure.

    Incidents are priced by the compensation calculator before they are
    stored and are not edited afterwards; a claim bundles them once.
    """

    profile = models.ForeignKey(
        Profile, on_delete=models.CASCADE, related_name="incidents"
    )
    kind = models.CharField(max_length=20, choices=INCIDENT_KIND_CHOICES)
    incident_datetime = models.DateTimeField()
    scheduled_time = models.DateTimeField(null=True, blank=True)
    observed_time = models.DateTimeField(null=True, blank=True)
    delay_minutes = models.PositiveIntegerField(null=True, blank=True)

    bus_line = models.CharField(max_length=20)
    station_name = models.CharField(max_length=255)
    operator_id = models.CharField(max_length=50, db_index=True)

    reporter_latitude = models.DecimalField(
        max_digits=9, decimal_places=6, null=True, blank=True
    )
    reporter_longitude = models.DecimalField(
        max_digits=9, decimal_places=6, null=True, blank=True
    )
    gps_accuracy_meters = models.DecimalField(
        max_digits=7, decimal_places=2, null=True, blank=True
    )
    station_latitude = models.DecimalField(
        max_digits=9, decimal_places=6, null=True, blank=True
    )
    station_longitude = models.DecimalField(
        max_digits=9, decimal_places=6, null=True, blank=True
    )

    damage_type = models.CharField(
        max_length=30, choices=DAMAGE_TYPE_CHOICES, default=DAMAGE_NONE
    )
    damage_amount = models.DecimalField(
        max_digits=10, decimal_places=2, null=True, blank=True
    )
    damage_description = models.TextField(blank=True)

    transit_presence_verified = models.BooleanField(
        null=True,
        blank=True,
        help_text="True when the presence check confirmed the bus did not serve the stop",
    )
    receipt_urls = models.JSONField(default=list, blank=True)
    photo_urls = models.JSONField(default=list, blank=True)

    claim = models.ForeignKey(
        "cashbus.Claim",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="incidents",
    )

    class Meta:
        verbose_name = "Incident"
        verbose_name_plural = "Incidents"
        ordering = ["incident_datetime", "id"]
        indexes = [
            models.Index(fields=["profile", "-incident_datetime"], name="incident_profile_date_idx"),
            models.Index(fields=["operator_id", "claim"], name="incident_operator_claim_idx"),
        ]

    def __str__(self):
        return f"{self.get_kind_display()} - line {self.bus_line} at {self.station_name}"


class Claim(BaseModel):
    """
    Legal demand against one operator for one or more incidents.

    ``amount`` is the sum of the incidents' compensation at creation time
    and is never recomputed afterwards.
    """

    reference = models.UUIDField(default=uuid.uuid4, unique=True, editable=False)
    profile = models.ForeignKey(Profile, on_delete=models.PROTECT, related_name="claims")
    operator_id = models.CharField(max_length=50, db_index=True)
    amount = models.DecimalField(max_digits=10, decimal_places=2)
    status = models.CharField(
        max_length=20, choices=CLAIM_STATUS_CHOICES, default=CLAIM_SUBMITTED
    )
    company_contact_email = models.EmailField(blank=True)

    letter_sent_at = models.DateTimeField(null=True, blank=True)
    company_response_at = models.DateTimeField(null=True, blank=True)
    compensation_received_amount = models.DecimalField(
        max_digits=10, decimal_places=2, null=True, blank=True
    )
    compensation_received_at = models.DateTimeField(null=True, blank=True)
    payment_method = models.CharField(
        max_length=20, choices=PAYMENT_METHOD_CHOICES, blank=True
    )

    class Meta:
        verbose_name = "Claim"
        verbose_name_plural = "Claims"
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["status", "-created_at"], name="claim_status_date_idx"),
            models.Index(fields=["profile", "-created_at"], name="claim_profile_date_idx"),
        ]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(amount__gte=0), name="claim_amount_non_negative"
            ),
        ]

    def __str__(self):
        return f"Claim {self.short_reference} ({self.operator_id})"

    @property
    def short_reference(self) -> str:
        return self.reference.hex[:8].upper()


# Import models from submodules so they register under the cashbus app label
from cashbus.core.models import DomainAuditEvent  # noqa: F401, E402
from cashbus.escalation.models import (  # noqa: F401, E402
    ClaimTimeline,
    EscalationEmail,
)
from cashbus.lawsuits.models import LawsuitDocument  # noqa: F401, E402
