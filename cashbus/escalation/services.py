"""
Escalation Scheduler.

One stateless sweep over active claim timelines. Each run re-reads every
timeline and sends at most one notice per claim. A stage is reserved with a
version-conditional write before the letter goes out and is only stamped
once delivery is confirmed. A failure for one claim is recorded in the run
summary and the sweep moves on.
"""

from dataclasses import asdict, dataclass, field
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional, Tuple
import uuid

from django.conf import settings
from django.utils import timezone
from django.utils.module_loading import import_string

from cashbus.constants import TIMELINE_ACTIVE
from cashbus.logging_utils import add_log_context, get_logger

from .constants import TERMINAL_STAGE
from .letters import render_stage_letter
from .notifications import NotificationSender
from .schedule import compute_due_stage
from .store import AdvanceResult, TimelineSnapshot, TimelineStore

logger = get_logger(__name__)

OUTCOME_SENT = "sent"
OUTCOME_SKIPPED = "skipped"
OUTCOME_DELIVERY_FAILED = "delivery_failed"
OUTCOME_CONFLICT = "conflict"
OUTCOME_ERROR = "error"


@dataclass(frozen=True)
class HandoffResult:
    """Outcome of handing a claim to the lawsuit assembler."""

    attempted: bool
    succeeded: bool
    error: Optional[str] = None


LawsuitTrigger = Callable[[int], HandoffResult]


@dataclass
class EscalationContext:
    """Collaborators for one scheduler; no module-level state is consulted."""

    store: TimelineStore
    sender: NotificationSender
    lawsuit_trigger: LawsuitTrigger
    clock: Callable[[], datetime] = timezone.now


@dataclass
class ClaimResult:
    timeline_id: int
    claim_reference: str
    outcome: str
    stage: Optional[str] = None
    error: Optional[str] = None
    handoff: Optional[HandoffResult] = None


@dataclass
class RunSummary:
    run_id: str
    started_at: datetime
    results: List[ClaimResult] = field(default_factory=list)

    def count(self, outcome: str) -> int:
        return sum(1 for result in self.results if result.outcome == outcome)

    @property
    def sent(self) -> int:
        return self.count(OUTCOME_SENT)

    @property
    def failed(self) -> int:
        return self.count(OUTCOME_DELIVERY_FAILED) + self.count(OUTCOME_ERROR)

    @property
    def conflicts(self) -> int:
        return self.count(OUTCOME_CONFLICT)

    def as_dict(self) -> Dict[str, Any]:
        return {
            "run_id": self.run_id,
            "started_at": self.started_at.isoformat(),
            "sent": self.sent,
            "failed": self.failed,
            "conflicts": self.conflicts,
            "skipped": self.count(OUTCOME_SKIPPED),
            "results": [asdict(result) for result in self.results],
        }


class EscalationScheduler:
    """Runs the escalation sweep against the collaborators in its context."""

    def __init__(self, context: EscalationContext):
        self.context = context

    def preview(self, now: Optional[datetime] = None) -> List[Tuple[TimelineSnapshot, str]]:
        """Timelines that would receive a notice at ``now``, without sending."""
        now = now or self.context.clock()
        due = []
        for timeline in self.context.store.get_active_timelines_due_for_escalation(now):
            stage = compute_due_stage(timeline, now)
            if stage is not None:
                due.append((timeline, stage))
        return due

    def run_once(self, now: Optional[datetime] = None) -> RunSummary:
        now = now or self.context.clock()
        summary = RunSummary(run_id=uuid.uuid4().hex[:12], started_at=now)

        with add_log_context(run_id=summary.run_id):
            candidates = self.context.store.get_active_timelines_due_for_escalation(now)
            logger.info(f"Escalation run started: {len(candidates)} timelines due")

            for candidate in candidates:
                summary.results.append(self._process(candidate, now))

            logger.info(
                f"Escalation run finished: {summary.sent} sent, "
                f"{summary.failed} failed, {summary.conflicts} conflicts"
            )
        return summary

    def _process(self, candidate: TimelineSnapshot, now: datetime) -> ClaimResult:
        with add_log_context(
            timeline_id=candidate.timeline_id,
            claim_reference=candidate.short_reference,
        ):
            try:
                return self._advance(candidate, now)
            except Exception as e:
                logger.exception(f"Escalation failed for timeline {candidate.timeline_id}")
                return ClaimResult(
                    timeline_id=candidate.timeline_id,
                    claim_reference=candidate.claim_reference,
                    outcome=OUTCOME_ERROR,
                    error=str(e),
                )

    def _advance(self, candidate: TimelineSnapshot, now: datetime) -> ClaimResult:
        store = self.context.store
        result = ClaimResult(
            timeline_id=candidate.timeline_id,
            claim_reference=candidate.claim_reference,
            outcome=OUTCOME_SKIPPED,
        )

        # Re-read: an admin may have resolved the claim since the scan
        timeline = store.get_timeline(candidate.timeline_id)
        if timeline is None or timeline.status != TIMELINE_ACTIVE:
            logger.info(f"Timeline {candidate.timeline_id} no longer active, skipping")
            return result

        stage = compute_due_stage(timeline, now)
        if stage is None:
            return result
        result.stage = stage

        letter = render_stage_letter(timeline, stage, now)

        claimed = store.claim_stage(timeline.timeline_id, stage, timeline.version, now)
        if claimed is AdvanceResult.CONFLICT:
            logger.warning(
                f"{stage} for timeline {timeline.timeline_id} is held by another run "
                f"or changed since version {timeline.version}; not sending"
            )
            result.outcome = OUTCOME_CONFLICT
            return result
        reserved_version = timeline.version + 1

        try:
            delivery = self.context.sender.send(
                timeline.recipient_email, letter.subject, letter.html_body
            )
        except Exception:
            store.release_stage(timeline.timeline_id, stage, reserved_version)
            raise
        store.record_delivery(timeline, stage, letter.subject, delivery, now)

        if not delivery.delivered:
            store.release_stage(timeline.timeline_id, stage, reserved_version)
            logger.warning(f"{stage} not delivered, will retry next run: {delivery.error}")
            result.outcome = OUTCOME_DELIVERY_FAILED
            result.error = delivery.error
            return result

        if store.advance_stage(timeline.timeline_id, stage, now, reserved_version) is AdvanceResult.CONFLICT:
            logger.warning(
                f"{stage} delivered but timeline {timeline.timeline_id} changed "
                f"since version {reserved_version}; not advancing"
            )
            result.outcome = OUTCOME_CONFLICT
            return result

        result.outcome = OUTCOME_SENT
        logger.info(f"{stage} sent for claim {timeline.short_reference}")

        if stage == TERMINAL_STAGE:
            result.handoff = self._trigger_lawsuit(timeline)
        return result

    def _trigger_lawsuit(self, timeline: TimelineSnapshot) -> HandoffResult:
        try:
            handoff = self.context.lawsuit_trigger(timeline.claim_id)
        except Exception as e:
            logger.exception(f"Lawsuit hand-off raised for claim {timeline.short_reference}")
            return HandoffResult(attempted=True, succeeded=False, error=str(e))

        if not handoff.succeeded:
            logger.error(
                f"Lawsuit hand-off failed for claim {timeline.short_reference}: {handoff.error}"
            )
        return handoff


def build_default_context() -> EscalationContext:
    """Database store, configured sender and the Celery lawsuit hand-off."""
    from cashbus.escalation.store import DjangoTimelineStore
    from cashbus.tasks import dispatch_lawsuit_assembly

    sender_class = import_string(settings.CASHBUS_NOTIFICATION_SENDER)
    return EscalationContext(
        store=DjangoTimelineStore(),
        sender=sender_class(),
        lawsuit_trigger=dispatch_lawsuit_assembly,
    )


def run_escalations() -> RunSummary:
    """Run the sweep once with the default collaborators."""
    return EscalationScheduler(build_default_context()).run_once()
