"""
Tests for the escalation sweep, run against in-memory collaborators.
"""

from dataclasses import replace
from datetime import datetime, timedelta, timezone as dt_timezone

from django.test import SimpleTestCase

from cashbus.escalation.services import (
    OUTCOME_CONFLICT,
    OUTCOME_DELIVERY_FAILED,
    OUTCOME_ERROR,
    OUTCOME_SENT,
    EscalationContext,
    EscalationScheduler,
)
from cashbus.tests.fakes import (
    FailingSender,
    InMemoryTimelineStore,
    RaisingSender,
    RecordingLawsuitTrigger,
    RecordingSender,
    make_snapshot,
)

UTC = dt_timezone.utc
DAY0 = datetime(2026, 3, 1, 7, 0, tzinfo=UTC)


def day(n, hours=0):
    return DAY0 + timedelta(days=n, hours=hours)


def build(*snapshots, sender=None, trigger=None):
    store = InMemoryTimelineStore(*snapshots)
    sender = sender or RecordingSender()
    trigger = trigger or RecordingLawsuitTrigger()
    scheduler = EscalationScheduler(
        EscalationContext(store=store, sender=sender, lawsuit_trigger=trigger)
    )
    return scheduler, store, sender, trigger


class StageProgressionTests(SimpleTestCase):
    def test_day_six_then_day_seven(self):
        timeline = make_snapshot(DAY0)
        scheduler, store, sender, _ = build(timeline)

        summary = scheduler.run_once(now=day(6))
        self.assertEqual(summary.results, [])
        self.assertEqual(sender.sent, [])

        summary = scheduler.run_once(now=day(7))
        self.assertEqual(summary.sent, 1)
        updated = store.get_timeline(timeline.timeline_id)
        self.assertEqual(updated.sent_at("first_reminder"), day(7))
        self.assertEqual(updated.total_emails_sent, 1)
        self.assertEqual(updated.last_email_sent_at, day(7))
        self.assertEqual(updated.version, 2)
        self.assertEqual(updated.sending_stage, "")

    def test_letter_uses_locked_amount_and_days_remaining(self):
        scheduler, _, sender, _ = build(make_snapshot(DAY0, claim_amount="260"))

        scheduler.run_once(now=day(7))

        to, subject, html = sender.sent[0]
        self.assertEqual(to, "pniot@dan.test")
        self.assertIn("טרם נענתה", subject)
        self.assertIn("260", html)
        self.assertIn("נותרו 14 ימים", html)
        self.assertIn('חברת דן בע"מ', html)

    def test_full_ladder_on_weekly_runs(self):
        timeline = make_snapshot(DAY0)
        scheduler, store, sender, trigger = build(timeline)

        for n in range(0, 30):
            scheduler.run_once(now=day(n))

        final = store.get_timeline(timeline.timeline_id)
        self.assertEqual(final.status, "escalation_complete")
        self.assertEqual(
            [final.sent_at(stage) for stage in ("first_reminder", "escalation_warning", "final_notice")],
            [day(7), day(14), day(21)],
        )
        self.assertEqual(final.total_emails_sent, 3)
        self.assertEqual(len(sender.sent), 3)
        self.assertEqual(trigger.claim_ids, [timeline.claim_id])


class CatchUpTests(SimpleTestCase):
    def test_outage_until_day_25_sends_only_final_notice(self):
        timeline = make_snapshot(
            DAY0, stage_sent_at={"first_reminder": day(7)}, version=1, total_emails_sent=1
        )
        scheduler, store, sender, trigger = build(timeline)

        summary = scheduler.run_once(now=day(25))

        self.assertEqual(summary.sent, 1)
        self.assertEqual(summary.results[0].stage, "final_notice")
        self.assertEqual(len(sender.sent), 1)
        self.assertIn("הודעה אחרונה", sender.sent[0][1])

        updated = store.get_timeline(timeline.timeline_id)
        self.assertEqual(updated.sent_at("first_reminder"), day(7))
        self.assertEqual(updated.sent_at("escalation_warning"), day(25))
        self.assertEqual(updated.sent_at("final_notice"), day(25))
        self.assertEqual(updated.status, "escalation_complete")
        self.assertEqual(updated.total_emails_sent, 2)
        self.assertEqual(trigger.claim_ids, [timeline.claim_id])
        self.assertTrue(summary.results[0].handoff.succeeded)

    def test_never_escalated_timeline_backfills_every_earlier_stage(self):
        timeline = make_snapshot(DAY0)
        scheduler, store, sender, _ = build(timeline)

        scheduler.run_once(now=day(25))

        updated = store.get_timeline(timeline.timeline_id)
        self.assertEqual(updated.sent_at("first_reminder"), day(25))
        self.assertEqual(updated.sent_at("escalation_warning"), day(25))
        self.assertEqual(updated.sent_at("final_notice"), day(25))
        self.assertEqual(len(sender.sent), 1)

    def test_one_stage_per_run(self):
        timeline = make_snapshot(DAY0)
        scheduler, store, sender, _ = build(timeline)

        summary = scheduler.run_once(now=day(15))

        self.assertEqual([result.stage for result in summary.results], ["escalation_warning"])
        self.assertEqual(len(sender.sent), 1)
        updated = store.get_timeline(timeline.timeline_id)
        self.assertEqual(updated.sent_at("first_reminder"), day(15))
        self.assertEqual(updated.sent_at("escalation_warning"), day(15))
        self.assertIsNone(updated.sent_at("final_notice"))
        self.assertEqual(updated.total_emails_sent, 1)


class ResolutionTests(SimpleTestCase):
    def test_paid_between_day_10_and_14_is_skipped(self):
        timeline = make_snapshot(DAY0)
        scheduler, store, sender, _ = build(timeline)
        scheduler.run_once(now=day(7))

        store.resolve(timeline.timeline_id, "paid")
        summary = scheduler.run_once(now=day(14))

        self.assertEqual(summary.results, [])
        self.assertEqual(len(sender.sent), 1)
        self.assertIsNone(store.get_timeline(timeline.timeline_id).sent_at("escalation_warning"))

    def test_resolved_after_scan_is_rechecked_before_sending(self):
        timeline = make_snapshot(DAY0)
        store = InMemoryTimelineStore(timeline)
        sender = RecordingSender()

        class ResolvingStore(InMemoryTimelineStore):
            def get_active_timelines_due_for_escalation(self, as_of):
                due = store.get_active_timelines_due_for_escalation(as_of)
                store.resolve(timeline.timeline_id, "cancelled")
                return due

            def get_timeline(self, timeline_id):
                return store.get_timeline(timeline_id)

        scheduler = EscalationScheduler(
            EscalationContext(
                store=ResolvingStore(), sender=sender, lawsuit_trigger=RecordingLawsuitTrigger()
            )
        )
        summary = scheduler.run_once(now=day(7))

        self.assertEqual(summary.results[0].outcome, "skipped")
        self.assertEqual(sender.sent, [])


class FailureIsolationTests(SimpleTestCase):
    def test_failed_delivery_leaves_state_for_retry(self):
        timeline = make_snapshot(DAY0)
        scheduler, store, sender, _ = build(timeline, sender=FailingSender())

        summary = scheduler.run_once(now=day(7))

        self.assertEqual(summary.results[0].outcome, OUTCOME_DELIVERY_FAILED)
        self.assertEqual(summary.results[0].error, "SMTP timeout")
        self.assertEqual(
            store.get_timeline(timeline.timeline_id), replace(timeline, version=2)
        )
        self.assertEqual(store.deliveries, [(timeline.timeline_id, "first_reminder", False)])

        scheduler.context.sender = RecordingSender()
        summary = scheduler.run_once(now=day(8))
        self.assertEqual(summary.sent, 1)
        self.assertEqual(store.get_timeline(timeline.timeline_id).sent_at("first_reminder"), day(8))

    def test_one_failing_claim_does_not_block_others(self):
        good = make_snapshot(DAY0, recipient_email="good@operator.test")
        bad = make_snapshot(DAY0, recipient_email="bad@operator.test")
        sender = RecordingSender(fail_for={"bad@operator.test"})
        scheduler, store, _, _ = build(good, bad, sender=sender)

        summary = scheduler.run_once(now=day(7))

        outcomes = {result.timeline_id: result.outcome for result in summary.results}
        self.assertEqual(outcomes[good.timeline_id], OUTCOME_SENT)
        self.assertEqual(outcomes[bad.timeline_id], OUTCOME_DELIVERY_FAILED)
        self.assertEqual(summary.sent, 1)
        self.assertEqual(summary.failed, 1)

    def test_unexpected_exception_recorded_as_error(self):
        timeline = make_snapshot(DAY0)
        scheduler, store, _, _ = build(timeline, sender=RaisingSender())

        with self.assertLogs("cashbus.escalation.services", level="ERROR"):
            summary = scheduler.run_once(now=day(7))

        self.assertEqual(summary.results[0].outcome, OUTCOME_ERROR)
        self.assertIn("exploded", summary.results[0].error)
        self.assertEqual(
            store.get_timeline(timeline.timeline_id), replace(timeline, version=2)
        )

    def test_lawsuit_handoff_failure_does_not_roll_back(self):
        timeline = make_snapshot(
            DAY0,
            stage_sent_at={"first_reminder": day(7), "escalation_warning": day(14)},
            version=2,
            total_emails_sent=2,
        )
        trigger = RecordingLawsuitTrigger(error="weasyprint missing")
        scheduler, store, _, _ = build(timeline, trigger=trigger)

        with self.assertLogs("cashbus.escalation.services", level="ERROR"):
            summary = scheduler.run_once(now=day(21))

        result = summary.results[0]
        self.assertEqual(result.outcome, OUTCOME_SENT)
        self.assertTrue(result.handoff.attempted)
        self.assertFalse(result.handoff.succeeded)
        self.assertIn("weasyprint", result.handoff.error)
        self.assertEqual(store.get_timeline(timeline.timeline_id).status, "escalation_complete")


class ConcurrencyTests(SimpleTestCase):
    def test_immediate_second_run_changes_nothing(self):
        timeline = make_snapshot(DAY0)
        scheduler, store, sender, _ = build(timeline)

        scheduler.run_once(now=day(7))
        state_after_first = store.get_timeline(timeline.timeline_id)
        summary = scheduler.run_once(now=day(7, hours=1))

        self.assertEqual(summary.results, [])
        self.assertEqual(store.get_timeline(timeline.timeline_id), state_after_first)
        self.assertEqual(len(sender.sent), 1)

    def test_second_run_during_send_does_not_send_again(self):
        timeline = make_snapshot(DAY0)
        store = InMemoryTimelineStore(timeline)
        inner_summaries = []

        class OverlappingSender(RecordingSender):
            """Starts another sweep before this delivery returns."""

            def send(self, to, subject, html_body):
                result = super().send(to, subject, html_body)
                inner = EscalationScheduler(
                    EscalationContext(
                        store=store, sender=self, lawsuit_trigger=RecordingLawsuitTrigger()
                    )
                )
                inner_summaries.append(inner.run_once(now=day(8)))
                return result

        sender = OverlappingSender()
        scheduler = EscalationScheduler(
            EscalationContext(
                store=store, sender=sender, lawsuit_trigger=RecordingLawsuitTrigger()
            )
        )
        summary = scheduler.run_once(now=day(8))

        self.assertEqual(len(sender.sent), 1)
        self.assertEqual(summary.results[0].outcome, OUTCOME_SENT)
        self.assertEqual(inner_summaries[0].results[0].outcome, OUTCOME_CONFLICT)
        updated = store.get_timeline(timeline.timeline_id)
        self.assertEqual(updated.sent_at("first_reminder"), day(8))
        self.assertEqual(updated.total_emails_sent, 1)
        self.assertEqual(updated.sending_stage, "")

    def test_abandoned_reservation_is_taken_over(self):
        timeline = make_snapshot(
            DAY0, sending_stage="first_reminder", sending_started_at=day(7)
        )
        scheduler, store, sender, _ = build(timeline)

        summary = scheduler.run_once(now=day(7, hours=0.5))
        self.assertEqual(summary.conflicts, 1)
        self.assertEqual(sender.sent, [])

        summary = scheduler.run_once(now=day(7, hours=2))
        self.assertEqual(summary.sent, 1)
        self.assertEqual(len(sender.sent), 1)

    def test_resolution_during_send_is_reported_as_conflict(self):
        timeline = make_snapshot(DAY0)
        store = InMemoryTimelineStore(timeline)

        class ResolvingSender(RecordingSender):
            """An admin marks the claim paid while the letter is in flight."""

            def send(self, to, subject, html_body):
                result = super().send(to, subject, html_body)
                store.resolve(timeline.timeline_id, "paid")
                return result

        scheduler = EscalationScheduler(
            EscalationContext(
                store=store,
                sender=ResolvingSender(),
                lawsuit_trigger=RecordingLawsuitTrigger(),
            )
        )
        summary = scheduler.run_once(now=day(7))

        self.assertEqual(summary.results[0].outcome, OUTCOME_CONFLICT)
        self.assertEqual(summary.conflicts, 1)
        updated = store.get_timeline(timeline.timeline_id)
        self.assertEqual(updated.status, "paid")
        self.assertIsNone(updated.sent_at("first_reminder"))
        self.assertEqual(updated.total_emails_sent, 0)


class PreviewTests(SimpleTestCase):
    def test_preview_lists_due_stage_without_sending(self):
        due_timeline = make_snapshot(DAY0)
        fresh = make_snapshot(day(3))
        scheduler, store, sender, _ = build(due_timeline, fresh)

        due = scheduler.preview(now=day(7))

        self.assertEqual(
            [(t.timeline_id, stage) for t, stage in due],
            [(due_timeline.timeline_id, "first_reminder")],
        )
        self.assertEqual(sender.sent, [])

    def test_summary_as_dict(self):
        scheduler, _, _, _ = build(make_snapshot(DAY0))
        data = scheduler.run_once(now=day(7)).as_dict()

        self.assertEqual(data["sent"], 1)
        self.assertEqual(data["results"][0]["stage"], "first_reminder")
        self.assertEqual(data["started_at"], day(7).isoformat())
