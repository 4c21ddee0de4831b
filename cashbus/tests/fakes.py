"""In-memory collaborators for exercising the escalation sweep without a database or network."""

from dataclasses import replace
from decimal import Decimal
from itertools import count

from cashbus.constants import TIMELINE_ACTIVE, TIMELINE_ESCALATION_COMPLETE
from cashbus.escalation.constants import STAGE_ORDER, STAGE_RESERVATION_TIMEOUT, TERMINAL_STAGE
from cashbus.escalation.notifications import DeliveryResult, NotificationSender
from cashbus.escalation.schedule import compute_due_stage, stages_to_backfill
from cashbus.escalation.services import HandoffResult
from cashbus.escalation.store import AdvanceResult, TimelineSnapshot, TimelineStore

_ids = count(1)


def make_snapshot(initial_letter_sent_at, **overrides):
    timeline_id = overrides.pop("timeline_id", next(_ids))
    stage_sent_at = {stage: None for stage in STAGE_ORDER}
    stage_sent_at.update(overrides.pop("stage_sent_at", {}))
    values = {
        "timeline_id": timeline_id,
        "claim_id": timeline_id,
        "claim_reference": f"00000000-0000-4000-8000-{timeline_id:012d}",
        "short_reference": f"{timeline_id:08d}",
        "status": TIMELINE_ACTIVE,
        "version": 0,
        "initial_letter_sent_at": initial_letter_sent_at,
        "timezone_name": "Asia/Jerusalem",
        "stage_sent_at": stage_sent_at,
        "operator_id": "dan",
        "claim_amount": Decimal("80"),
        "claimant_name": "ישראל ישראלי",
        "recipient_email": "pniot@dan.test",
    }
    values.update(overrides)
    return TimelineSnapshot(**values)


class InMemoryTimelineStore(TimelineStore):
    """TimelineStore over a dict, applying the same conditional-write rules."""

    def __init__(self, *snapshots):
        self.timelines = {snapshot.timeline_id: snapshot for snapshot in snapshots}
        self.deliveries = []
        self.conflicts = 0

    def get_active_timelines_due_for_escalation(self, as_of):
        return [
            timeline
            for timeline in self.timelines.values()
            if compute_due_stage(timeline, as_of) is not None
        ]

    def get_timeline(self, timeline_id):
        return self.timelines.get(timeline_id)

    def claim_stage(self, timeline_id, stage, expected_version, started_at):
        current = self.timelines.get(timeline_id)
        held = current is not None and current.sending_stage and (
            current.sending_started_at > started_at - STAGE_RESERVATION_TIMEOUT
        )
        if (
            current is None
            or current.version != expected_version
            or current.status != TIMELINE_ACTIVE
            or current.sent_at(stage) is not None
            or held
        ):
            self.conflicts += 1
            return AdvanceResult.CONFLICT

        self.timelines[timeline_id] = replace(
            current,
            sending_stage=stage,
            sending_started_at=started_at,
            version=current.version + 1,
        )
        return AdvanceResult.ADVANCED

    def release_stage(self, timeline_id, stage, reserved_version):
        current = self.timelines.get(timeline_id)
        if current is None or current.version != reserved_version or current.sending_stage != stage:
            return
        self.timelines[timeline_id] = replace(
            current, sending_stage="", sending_started_at=None, version=current.version + 1
        )

    def advance_stage(self, timeline_id, stage, sent_at, expected_version):
        current = self.timelines.get(timeline_id)
        if (
            current is None
            or current.version != expected_version
            or current.status != TIMELINE_ACTIVE
            or current.sent_at(stage) is not None
        ):
            self.conflicts += 1
            return AdvanceResult.CONFLICT

        stage_sent_at = dict(current.stage_sent_at)
        for skipped in stages_to_backfill(current, stage):
            stage_sent_at[skipped] = sent_at
        stage_sent_at[stage] = sent_at

        self.timelines[timeline_id] = replace(
            current,
            stage_sent_at=stage_sent_at,
            version=current.version + 1,
            total_emails_sent=current.total_emails_sent + 1,
            last_email_sent_at=sent_at,
            sending_stage="",
            sending_started_at=None,
            status=TIMELINE_ESCALATION_COMPLETE if stage == TERMINAL_STAGE else current.status,
        )
        return AdvanceResult.ADVANCED

    def record_delivery(self, timeline, stage, subject, delivery, attempted_at):
        self.deliveries.append((timeline.timeline_id, stage, delivery.delivered))

    def resolve(self, timeline_id, status):
        """What an admin action does: change status and bump the version."""
        current = self.timelines[timeline_id]
        self.timelines[timeline_id] = replace(
            current, status=status, version=current.version + 1
        )


class RecordingSender(NotificationSender):
    def __init__(self, fail_for=()):
        self.sent = []
        self.fail_for = set(fail_for)

    def send(self, to, subject, html_body):
        if to in self.fail_for:
            return DeliveryResult(delivered=False, error="mailbox unavailable")
        self.sent.append((to, subject, html_body))
        return DeliveryResult(delivered=True, provider_message_id=f"<msg-{len(self.sent)}@test>")


class FailingSender(NotificationSender):
    def __init__(self, error="SMTP timeout"):
        self.error = error
        self.calls = 0

    def send(self, to, subject, html_body):
        self.calls += 1
        return DeliveryResult(delivered=False, error=self.error)


class RaisingSender(NotificationSender):
    def send(self, to, subject, html_body):
        raise RuntimeError("template context exploded")


class RecordingLawsuitTrigger:
    def __init__(self, error=None):
        self.claim_ids = []
        self.error = error

    def __call__(self, claim_id):
        self.claim_ids.append(claim_id)
        if self.error:
            raise RuntimeError(self.error)
        return HandoffResult(attempted=True, succeeded=True)
