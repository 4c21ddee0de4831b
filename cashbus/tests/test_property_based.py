"""
Property-based testing with Hypothesis for the CashBus pricing and
escalation rules.

Properties covered:
- Compensation is deterministic, whole-shekel and never below zero
- Capped damage categories never exceed their cap
- Longer delays never earn less
- However the sweep is scheduled, stage notices go out in ladder order,
  at most one per run, never before their day and never closer than
  seven days apart

Run with: pytest cashbus/tests/test_property_based.py -v --hypothesis-show-statistics
"""

from datetime import datetime, timedelta, timezone as dt_timezone
from decimal import ROUND_HALF_UP, Decimal

from hypothesis import example, given, settings, strategies as st

from cashbus.compensation.constants import DAMAGE_RULES, INCIDENT_KINDS
from cashbus.compensation.services import calculate_compensation
from cashbus.escalation.constants import MIN_STAGE_INTERVAL, STAGE_ORDER, STAGES_BY_NAME
from cashbus.escalation.schedule import compute_due_stage, elapsed_days
from cashbus.escalation.services import EscalationContext, EscalationScheduler
from cashbus.tests.fakes import (
    InMemoryTimelineStore,
    RecordingLawsuitTrigger,
    RecordingSender,
    make_snapshot,
)

DAY0 = datetime(2026, 3, 1, 7, 0, tzinfo=dt_timezone.utc)

amounts = st.decimals(
    min_value=Decimal("0"), max_value=Decimal("100000"), places=2, allow_nan=False
)
kinds = st.sampled_from(sorted(INCIDENT_KINDS))
damage_types = st.sampled_from(sorted(DAMAGE_RULES) + ["none", None])
delays = st.one_of(st.none(), st.integers(min_value=0, max_value=24 * 60))


# =============================================================================
# Compensation Calculator
# =============================================================================


class TestCompensationProperties:
    @given(kinds, delays, damage_types, amounts)
    def test_deterministic_whole_and_non_negative(self, kind, delay, damage_type, amount):
        first = calculate_compensation(kind, delay, damage_type, amount)
        second = calculate_compensation(kind, delay, damage_type, amount)

        assert first == second
        assert first.total_compensation >= 0
        assert first.total_compensation == first.base_compensation + first.damage_compensation
        assert first.total_compensation == first.total_compensation.to_integral_value()

    @given(st.sampled_from(sorted(k for k, rule in DAMAGE_RULES.items() if rule.cap)), amounts)
    @example("lost_workday", Decimal("900"))
    def test_capped_damage_never_exceeds_cap(self, damage_type, amount):
        breakdown = calculate_compensation("no_stop", damage_type=damage_type, damage_amount=amount)

        assert breakdown.damage_compensation <= DAMAGE_RULES[damage_type].cap
        assert breakdown.damage_capped == (amount > DAMAGE_RULES[damage_type].cap)

    @given(amounts)
    def test_taxi_cost_reimbursed_in_full(self, amount):
        breakdown = calculate_compensation("no_arrival", damage_type="taxi_cost", damage_amount=amount)

        assert breakdown.damage_compensation == amount.quantize(Decimal("1"), rounding=ROUND_HALF_UP)
        assert not breakdown.damage_capped

    @given(st.integers(min_value=0, max_value=600), st.integers(min_value=0, max_value=600))
    def test_longer_delay_never_earns_less(self, a, b):
        shorter, longer = sorted((a, b))

        assert (
            calculate_compensation("delay", delay_minutes=shorter).base_compensation
            <= calculate_compensation("delay", delay_minutes=longer).base_compensation
        )


# =============================================================================
# Escalation Ladder
# =============================================================================

run_offsets = st.lists(
    st.integers(min_value=0, max_value=40 * 24 * 60), min_size=1, max_size=40, unique=True
)


class TestEscalationProperties:
    @settings(deadline=None, max_examples=50)
    @given(run_offsets)
    def test_any_run_schedule_respects_the_ladder(self, offsets):
        store = InMemoryTimelineStore(make_snapshot(DAY0, timeline_id=1))
        sender = RecordingSender()
        scheduler = EscalationScheduler(
            EscalationContext(
                store=store, sender=sender, lawsuit_trigger=RecordingLawsuitTrigger()
            )
        )

        sends = []
        for minutes in sorted(offsets):
            now = DAY0 + timedelta(minutes=minutes)
            summary = scheduler.run_once(now=now)
            assert summary.sent <= 1
            for result in summary.results:
                if result.outcome == "sent":
                    sends.append((now, result.stage))

        stages = [stage for _, stage in sends]
        assert len(stages) == len(set(stages))
        assert stages == sorted(stages, key=STAGE_ORDER.index)

        for now, stage in sends:
            assert elapsed_days(DAY0, now, "Asia/Jerusalem") >= STAGES_BY_NAME[stage].day_offset

        for (earlier, _), (later, _) in zip(sends, sends[1:]):
            assert later - earlier >= MIN_STAGE_INTERVAL

    @given(
        st.integers(min_value=0, max_value=60 * 24),
        st.lists(st.integers(min_value=7 * 24, max_value=40 * 24), max_size=3),
    )
    def test_nothing_due_within_a_week_of_the_last_notice(self, hours_after, sent_hours):
        sent_hours = sorted(sent_hours)
        stage_sent_at = {
            stage: DAY0 + timedelta(hours=hours)
            for stage, hours in zip(STAGE_ORDER, sent_hours)
        }
        timeline = make_snapshot(DAY0, stage_sent_at=stage_sent_at)
        last = max(stage_sent_at.values(), default=DAY0)
        now = last + timedelta(hours=hours_after)

        due = compute_due_stage(timeline, now)

        if due is not None and stage_sent_at:
            assert now - last >= MIN_STAGE_INTERVAL
        if due is not None:
            assert due not in stage_sent_at
