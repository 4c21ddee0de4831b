"""
Claim Timeline Store.

The persistence boundary of the escalation sweep. The sweep reads frozen
snapshots. A run reserves a stage with ``claim_stage`` before sending and
writes the result back through ``advance_stage``; both only apply if the
timeline still carries the version the caller read, so two overlapping
runs can never both send the same stage.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Dict, List, Optional

from django.conf import settings
from django.db import transaction
from django.db.models import F, Q
from django.utils import timezone

from cashbus.constants import (
    CLAIM_COMPANY_REVIEW,
    CLAIM_IN_COURT,
    CLAIM_SETTLED_STATUSES,
    CLAIM_SUBMITTED,
    TIMELINE_ACTIVE,
    TIMELINE_ESCALATION_COMPLETE,
)
from cashbus.logging_utils import get_logger

from .constants import (
    EARLIEST_STAGE_OFFSET,
    STAGE_LADDER,
    STAGE_RESERVATION_TIMEOUT,
    STAGES_BY_NAME,
    TERMINAL_STAGE,
)
from .schedule import compute_due_stage, stages_to_backfill

logger = get_logger(__name__)


class AdvanceResult(Enum):
    ADVANCED = "advanced"
    CONFLICT = "conflict"


@dataclass(frozen=True)
class TimelineSnapshot:
    """Read-only view of a timeline plus the claim facts its letters need."""

    timeline_id: int
    claim_id: int
    claim_reference: str
    short_reference: str
    status: str
    version: int
    initial_letter_sent_at: datetime
    timezone_name: str
    stage_sent_at: Dict[str, Optional[datetime]]
    total_emails_sent: int = 0
    last_email_sent_at: Optional[datetime] = None
    operator_id: str = ""
    claim_amount: Decimal = Decimal("0")
    claimant_name: str = ""
    recipient_email: str = ""
    company_responded: bool = False
    lawsuit_filed_at: Optional[datetime] = None
    sending_stage: str = ""
    sending_started_at: Optional[datetime] = None

    def sent_at(self, stage: str) -> Optional[datetime]:
        return self.stage_sent_at.get(stage)


class TimelineStore(ABC):
    """Storage interface the escalation sweep depends on."""

    @abstractmethod
    def get_active_timelines_due_for_escalation(
        self, as_of: datetime
    ) -> List[TimelineSnapshot]:
        """Active timelines with a stage due at ``as_of``, read fresh."""

    @abstractmethod
    def get_timeline(self, timeline_id: int) -> Optional[TimelineSnapshot]:
        pass

    @abstractmethod
    def claim_stage(
        self, timeline_id: int, stage: str, expected_version: int, started_at: datetime
    ) -> AdvanceResult:
        """
        Reserve ``stage`` for sending before any letter goes out.

        Applies only while the stored version equals ``expected_version``,
        the timeline is active, the stage slot is empty and no other run
        holds a live reservation. On success the version is bumped, so the
        caller finishes with ``advance_stage(..., expected_version + 1)``.
        """

    @abstractmethod
    def release_stage(self, timeline_id: int, stage: str, reserved_version: int) -> None:
        """Drop a reservation after a failed send, leaving the stage slots alone."""

    @abstractmethod
    def advance_stage(
        self, timeline_id: int, stage: str, sent_at: datetime, expected_version: int
    ) -> AdvanceResult:
        """
        Stamp ``stage`` (and any skipped earlier stages) with ``sent_at``
        and clear the reservation.

        Applies only while the stored version equals ``expected_version``
        and the timeline is still active; otherwise returns CONFLICT and
        changes nothing.
        """

    @abstractmethod
    def record_delivery(
        self, timeline: TimelineSnapshot, stage: str, subject: str, delivery, attempted_at: datetime
    ) -> None:
        """Append a delivery attempt to the audit trail."""


def recipient_for(claim) -> str:
    """Operator contact address, or the legal desk when none is on file."""
    return claim.company_contact_email or settings.CASHBUS_LEGAL_ADMIN_EMAIL


def snapshot_from_model(timeline) -> TimelineSnapshot:
    claim = timeline.claim
    return TimelineSnapshot(
        timeline_id=timeline.pk,
        claim_id=claim.pk,
        claim_reference=str(claim.reference),
        short_reference=claim.short_reference,
        status=timeline.status,
        version=timeline.version,
        initial_letter_sent_at=timeline.initial_letter_sent_at,
        timezone_name=timeline.timezone_name,
        stage_sent_at={
            definition.stage: getattr(timeline, definition.field)
            for definition in STAGE_LADDER
        },
        total_emails_sent=timeline.total_emails_sent,
        last_email_sent_at=timeline.last_email_sent_at,
        operator_id=claim.operator_id,
        claim_amount=claim.amount,
        claimant_name=claim.profile.full_name,
        recipient_email=recipient_for(claim),
        company_responded=timeline.company_responded,
        lawsuit_filed_at=timeline.lawsuit_filed_at,
        sending_stage=timeline.sending_stage,
        sending_started_at=timeline.sending_started_at,
    )


class DjangoTimelineStore(TimelineStore):
    """TimelineStore backed by the ClaimTimeline table."""

    def _queryset(self):
        from cashbus.models import ClaimTimeline

        return ClaimTimeline.objects.select_related("claim", "claim__profile")

    def get_active_timelines_due_for_escalation(self, as_of):
        # Coarse filter in SQL; whole-day arithmetic in the claim timezone
        # happens in compute_due_stage
        candidates = self._queryset().filter(
            status=TIMELINE_ACTIVE,
            final_notice_sent_at__isnull=True,
            initial_letter_sent_at__lte=as_of - EARLIEST_STAGE_OFFSET,
        ).order_by("initial_letter_sent_at", "pk")

        due = []
        for timeline in candidates:
            snapshot = snapshot_from_model(timeline)
            if compute_due_stage(snapshot, as_of) is not None:
                due.append(snapshot)
        return due

    def get_timeline(self, timeline_id):
        timeline = self._queryset().filter(pk=timeline_id).first()
        if timeline is None:
            return None
        return snapshot_from_model(timeline)

    def claim_stage(self, timeline_id, stage, expected_version, started_at):
        from cashbus.models import ClaimTimeline

        definition = STAGES_BY_NAME[stage]
        rows = (
            ClaimTimeline.objects.filter(
                pk=timeline_id,
                version=expected_version,
                status=TIMELINE_ACTIVE,
                **{f"{definition.field}__isnull": True},
            )
            .filter(
                Q(sending_stage="")
                | Q(sending_started_at__lte=started_at - STAGE_RESERVATION_TIMEOUT)
            )
            .update(
                sending_stage=stage,
                sending_started_at=started_at,
                version=F("version") + 1,
                updated_at=timezone.now(),
            )
        )
        if rows == 0:
            current = self._queryset().filter(pk=timeline_id).first()
            if current is None:
                return AdvanceResult.CONFLICT
            return self._conflict(current, stage, expected_version)

        logger.info(f"Timeline {timeline_id} reserved {stage} at version {expected_version + 1}")
        return AdvanceResult.ADVANCED

    def release_stage(self, timeline_id, stage, reserved_version):
        from cashbus.models import ClaimTimeline

        rows = ClaimTimeline.objects.filter(
            pk=timeline_id, version=reserved_version, sending_stage=stage
        ).update(
            sending_stage="",
            sending_started_at=None,
            version=F("version") + 1,
            updated_at=timezone.now(),
        )
        if rows:
            logger.info(f"Timeline {timeline_id} released {stage}")

    def advance_stage(self, timeline_id, stage, sent_at, expected_version):
        from cashbus.models import Claim, ClaimTimeline

        definition = STAGES_BY_NAME[stage]

        with transaction.atomic():
            current = self._queryset().filter(pk=timeline_id).first()
            if current is None:
                return AdvanceResult.CONFLICT
            if current.version != expected_version:
                return self._conflict(current, stage, expected_version)

            snapshot = snapshot_from_model(current)
            if snapshot.sent_at(stage) is not None:
                return self._conflict(current, stage, expected_version)

            updates = {
                definition.field: sent_at,
                "version": F("version") + 1,
                "total_emails_sent": F("total_emails_sent") + 1,
                "last_email_sent_at": sent_at,
                "sending_stage": "",
                "sending_started_at": None,
                "updated_at": timezone.now(),
            }
            for skipped in stages_to_backfill(snapshot, stage):
                updates[STAGES_BY_NAME[skipped].field] = sent_at
            if stage == TERMINAL_STAGE:
                updates["status"] = TIMELINE_ESCALATION_COMPLETE

            rows = ClaimTimeline.objects.filter(
                pk=timeline_id, version=expected_version, status=TIMELINE_ACTIVE
            ).update(**updates)
            if rows == 0:
                return self._conflict(current, stage, expected_version)

            claim_status = CLAIM_IN_COURT if stage == TERMINAL_STAGE else CLAIM_COMPANY_REVIEW
            claims = Claim.objects.filter(pk=current.claim_id).exclude(
                status__in=CLAIM_SETTLED_STATUSES
            )
            if claim_status == CLAIM_COMPANY_REVIEW:
                claims = claims.filter(status=CLAIM_SUBMITTED)
            claims.update(status=claim_status, updated_at=timezone.now())

        logger.info(
            f"Timeline {timeline_id} advanced to {stage} "
            f"(version {expected_version} -> {expected_version + 1})"
        )
        return AdvanceResult.ADVANCED

    def _conflict(self, current, stage, expected_version):
        from cashbus.core.services import create_audit_event

        create_audit_event(
            action="escalation_conflict",
            entity_type="ClaimTimeline",
            entity_id=current.pk,
            metadata={
                "stage": stage,
                "expected_version": expected_version,
                "found_version": current.version,
                "status": current.status,
                "sending_stage": current.sending_stage,
            },
        )
        return AdvanceResult.CONFLICT

    def record_delivery(self, timeline, stage, subject, delivery, attempted_at):
        from cashbus.core.services import create_audit_event
        from cashbus.models import EscalationEmail

        EscalationEmail.objects.create(
            timeline_id=timeline.timeline_id,
            claim_id=timeline.claim_id,
            letter=stage,
            recipient=timeline.recipient_email,
            subject=subject,
            delivered=delivery.delivered,
            provider_message_id=delivery.provider_message_id or "",
            error=delivery.error or "",
            attempted_at=attempted_at,
        )
        create_audit_event(
            action=(
                "escalation_stage_sent" if delivery.delivered else "escalation_delivery_failed"
            ),
            entity_type="ClaimTimeline",
            entity_id=timeline.timeline_id,
            metadata={
                "claim_reference": timeline.claim_reference,
                "stage": stage,
                "provider_message_id": delivery.provider_message_id,
                "error": delivery.error,
            },
        )
