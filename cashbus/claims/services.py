"""
Claim lifecycle services.

Incidents are priced when reported, bundled into a claim whose amount is
locked at that moment, and the claim's timeline is seeded only once the
initial demand letter is confirmed delivered.
"""

from dataclasses import dataclass
from datetime import datetime
import logging
from typing import Iterable, Optional

from django.conf import settings
from django.db import transaction
from django.db.models import F
from django.utils import timezone

from cashbus.compensation.services import (
    calculate_claim_amount,
    calculate_compensation,
    calculate_for_incident,
)
from cashbus.constants import (
    CLAIM_COMPANY_REVIEW,
    CLAIM_PAID,
    CLAIM_SUBMITTED,
    LETTER_INITIAL,
    TIMELINE_ACTIVE,
    TIMELINE_PAID,
    TIMELINE_RESOLUTIONS,
)
from cashbus.core.services import audit_claim_resolved, create_audit_event
from cashbus.escalation.letters import render_initial_letter
from cashbus.escalation.notifications import DeliveryResult, NotificationSender
from cashbus.escalation.store import recipient_for
from cashbus.exceptions import ClaimError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DemandLetterResult:
    timeline: Optional[object]
    delivery: Optional[DeliveryResult]
    already_sent: bool = False

    @property
    def seeded(self) -> bool:
        return self.timeline is not None


def report_incident(profile, user=None, **facts):
    """
    Validate incident facts with the compensation calculator and store them.

    Raises CompensationValidationError before anything is written.
    """
    from cashbus.models import Incident

    breakdown = calculate_compensation(
        incident_kind=facts.get("kind"),
        delay_minutes=facts.get("delay_minutes"),
        damage_type=facts.get("damage_type"),
        damage_amount=facts.get("damage_amount"),
        operator_id=facts.get("operator_id", ""),
    )
    incident = Incident.objects.create(
        profile=profile, created_by=user, updated_by=user, **facts
    )
    create_audit_event(
        action="incident_reported",
        entity_type="Incident",
        entity_id=incident.pk,
        user=user,
        metadata={
            "kind": incident.kind,
            "operator_id": incident.operator_id,
            "total_compensation": str(breakdown.total_compensation),
        },
    )
    return incident


def open_claim(
    profile,
    incidents: Iterable,
    operator_id: Optional[str] = None,
    contact_email: Optional[str] = None,
    user=None,
):
    """
    Bundle unclaimed incidents against one operator into a claim.

    The claim amount is the sum of the incidents' compensation right now
    and is not recomputed later.
    """
    from cashbus.models import Claim, Incident

    incidents = list(incidents)
    operators = {incident.operator_id.lower() for incident in incidents}
    if len(operators) > 1:
        raise ClaimError(
            "All incidents in a claim must be against the same operator",
            details={"operators": sorted(operators)},
        )
    if incidents:
        operator_id = incidents[0].operator_id
    if not operator_id:
        raise ClaimError("A claim needs an operator or at least one incident")

    for incident in incidents:
        if incident.profile_id != profile.pk:
            raise ClaimError(f"Incident {incident.pk} belongs to another rider")
        if incident.claim_id is not None:
            raise ClaimError(f"Incident {incident.pk} is already part of a claim")

    contact = contact_email or settings.CASHBUS_OPERATOR_CONTACTS.get(operator_id.lower(), "")

    with transaction.atomic():
        claim = Claim.objects.create(
            profile=profile,
            operator_id=operator_id,
            amount=calculate_claim_amount(incidents),
            status=CLAIM_SUBMITTED,
            company_contact_email=contact,
            created_by=user,
            updated_by=user,
        )
        attached = Incident.objects.filter(
            pk__in=[incident.pk for incident in incidents], claim__isnull=True
        ).update(claim=claim)
        if attached != len(incidents):
            raise ClaimError("An incident was claimed concurrently; nothing was opened")

        create_audit_event(
            action="claim_opened",
            entity_type="Claim",
            entity_id=claim.reference,
            user=user,
            metadata={
                "operator_id": operator_id,
                "amount": str(claim.amount),
                "incident_count": len(incidents),
            },
        )

    logger.info(f"Claim {claim.short_reference} opened for {claim.amount} NIS")
    return claim


def send_initial_demand_letter(
    claim, sender: NotificationSender, now: Optional[datetime] = None
) -> DemandLetterResult:
    """
    Send the day-0 demand letter and seed the claim timeline on delivery.

    A claim that already has a timeline is left alone. A failed delivery
    seeds nothing, so the claim stays out of the escalation sweep until the
    letter is sent again.
    """
    from cashbus.models import ClaimTimeline, EscalationEmail

    now = now or timezone.now()

    existing = ClaimTimeline.objects.filter(claim=claim).first()
    if existing is not None:
        logger.info(f"Demand letter for claim {claim.short_reference} already sent, skipping")
        return DemandLetterResult(timeline=existing, delivery=None, already_sent=True)

    incidents = list(claim.incidents.all())
    breakdowns = [calculate_for_incident(incident) for incident in incidents]
    letter = render_initial_letter(claim, incidents, breakdowns, now)
    recipient = recipient_for(claim)

    delivery = sender.send(recipient, letter.subject, letter.html_body)
    EscalationEmail.objects.create(
        claim=claim,
        letter=LETTER_INITIAL,
        recipient=recipient,
        subject=letter.subject,
        delivered=delivery.delivered,
        provider_message_id=delivery.provider_message_id or "",
        error=delivery.error or "",
        attempted_at=now,
    )

    if not delivery.delivered:
        create_audit_event(
            action="demand_letter_failed",
            entity_type="Claim",
            entity_id=claim.reference,
            metadata={"recipient": recipient, "error": delivery.error},
        )
        logger.warning(
            f"Demand letter for claim {claim.short_reference} not delivered: {delivery.error}"
        )
        return DemandLetterResult(timeline=None, delivery=delivery)

    with transaction.atomic():
        timeline, created = ClaimTimeline.objects.get_or_create(
            claim=claim,
            defaults={
                "initial_letter_sent_at": now,
                "timezone_name": settings.CASHBUS_CLAIM_TIMEZONE,
            },
        )
        claim.letter_sent_at = now
        claim.save(update_fields=["letter_sent_at", "updated_at"])
        EscalationEmail.objects.filter(
            claim=claim, letter=LETTER_INITIAL, timeline__isnull=True
        ).update(timeline=timeline)
        create_audit_event(
            action="demand_letter_sent",
            entity_type="Claim",
            entity_id=claim.reference,
            metadata={
                "recipient": recipient,
                "provider_message_id": delivery.provider_message_id,
                "timeline_id": timeline.pk,
            },
        )

    logger.info(f"Demand letter sent for claim {claim.short_reference}; day 0 is {now.isoformat()}")
    return DemandLetterResult(timeline=timeline, delivery=delivery, already_sent=not created)


def resolve_claim(
    claim,
    resolution: str,
    user=None,
    amount_received=None,
    payment_method: str = "",
    resolved_at: Optional[datetime] = None,
):
    """
    Stop escalation for a claim: the operator paid or the claim was withdrawn.

    Bumps the timeline version so an escalation decision made against the
    old state can no longer be written.
    """
    from cashbus.models import ClaimTimeline

    if resolution not in TIMELINE_RESOLUTIONS:
        raise ClaimError(
            f"Unknown resolution {resolution!r}",
            details={"allowed": list(TIMELINE_RESOLUTIONS)},
        )
    resolved_at = resolved_at or timezone.now()

    with transaction.atomic():
        timeline_updates = {
            "status": resolution,
            "version": F("version") + 1,
            "updated_at": resolved_at,
            "updated_by": user,
        }
        if resolution == TIMELINE_PAID:
            timeline_updates["payment_received_at"] = resolved_at
        ClaimTimeline.objects.filter(claim=claim, status=TIMELINE_ACTIVE).update(
            **timeline_updates
        )

        # Save only the fields resolution owns; the sweep updates status directly
        update_fields = ["updated_by", "updated_at"]
        if resolution == TIMELINE_PAID:
            claim.status = CLAIM_PAID
            claim.compensation_received_at = resolved_at
            claim.compensation_received_amount = (
                amount_received if amount_received is not None else claim.amount
            )
            claim.payment_method = payment_method
            update_fields += [
                "status",
                "compensation_received_at",
                "compensation_received_amount",
                "payment_method",
            ]
        claim.updated_by = user
        claim.save(update_fields=update_fields)
        claim.refresh_from_db(fields=["status"])
        audit_claim_resolved(claim, resolution, user=user)

    logger.info(f"Claim {claim.short_reference} resolved as {resolution}")
    return claim


def record_company_response(claim, details: str, responded_at: Optional[datetime] = None, user=None):
    """Store the operator's reply. Escalation continues until the claim is resolved."""
    from cashbus.models import Claim, ClaimTimeline

    responded_at = responded_at or timezone.now()

    with transaction.atomic():
        ClaimTimeline.objects.filter(claim=claim).update(
            company_responded=True,
            company_response_at=responded_at,
            company_response_details=details,
            version=F("version") + 1,
            updated_at=responded_at,
        )
        Claim.objects.filter(pk=claim.pk, status=CLAIM_SUBMITTED).update(
            status=CLAIM_COMPANY_REVIEW, updated_at=responded_at
        )
        claim.company_response_at = responded_at
        claim.updated_by = user
        claim.save(update_fields=["company_response_at", "updated_by", "updated_at"])
        claim.refresh_from_db(fields=["status"])
        create_audit_event(
            action="company_response_recorded",
            entity_type="Claim",
            entity_id=claim.reference,
            user=user,
            metadata={"responded_at": responded_at.isoformat()},
        )
    return claim


__all__ = [
    "DemandLetterResult",
    "open_claim",
    "record_company_response",
    "report_incident",
    "resolve_claim",
    "send_initial_demand_letter",
]
