"""
Escalation schedule arithmetic.

Pure functions over a timeline snapshot and an explicit ``now``; no clock,
database or cron involved. A timeline argument needs ``status``,
``initial_letter_sent_at``, ``timezone_name`` and a ``stage_sent_at``
mapping of stage name to datetime or None.
"""

from datetime import date, datetime
from typing import List, Optional
from zoneinfo import ZoneInfo

from cashbus.constants import TIMELINE_ACTIVE

from .constants import MIN_STAGE_INTERVAL, STAGE_LADDER, STAGES_BY_NAME


def local_date(moment: datetime, timezone_name: str) -> date:
    return moment.astimezone(ZoneInfo(timezone_name)).date()


def elapsed_days(origin: datetime, now: datetime, timezone_name: str) -> int:
    """Whole calendar days between origin and now in the claim's timezone."""
    return (local_date(now, timezone_name) - local_date(origin, timezone_name)).days


def last_sent_index(timeline) -> int:
    """Ladder index of the most escalated stage already sent, or -1."""
    last = -1
    for index, definition in enumerate(STAGE_LADDER):
        if timeline.stage_sent_at.get(definition.stage) is not None:
            last = index
    return last


def compute_due_stage(timeline, now: datetime) -> Optional[str]:
    """
    Return the single stage to send now, or None.

    The due stage is the most escalated unsent stage whose day offset has
    been reached. Nothing is due while the previous stage notice is less
    than MIN_STAGE_INTERVAL old. Stages below the last sent one are never
    returned, so a run that missed days sends one catch-up notice, not a
    backlog.
    """
    if timeline.status != TIMELINE_ACTIVE:
        return None

    days = elapsed_days(timeline.initial_letter_sent_at, now, timeline.timezone_name)
    last_index = last_sent_index(timeline)

    if last_index >= 0:
        last_sent_at = timeline.stage_sent_at[STAGE_LADDER[last_index].stage]
        if now - last_sent_at < MIN_STAGE_INTERVAL:
            return None

    due = None
    for index, definition in enumerate(STAGE_LADDER):
        if index <= last_index:
            continue
        if days >= definition.day_offset:
            due = definition.stage
    return due


def stages_to_backfill(timeline, stage: str) -> List[str]:
    """Earlier stages with no timestamp that are stamped together with ``stage``."""
    target = STAGES_BY_NAME[stage]
    backfill = []
    for definition in STAGE_LADDER:
        if definition.stage == target.stage:
            break
        if timeline.stage_sent_at.get(definition.stage) is None:
            backfill.append(definition.stage)
    return backfill


def next_stage_date(timeline) -> Optional[date]:
    """
    Local date on which the next stage becomes eligible, for display.

    Returns None once the ladder is exhausted or the timeline is resolved.
    """
    if timeline.status != TIMELINE_ACTIVE:
        return None

    last_index = last_sent_index(timeline)
    if last_index + 1 >= len(STAGE_LADDER):
        return None

    origin = local_date(timeline.initial_letter_sent_at, timeline.timezone_name)
    by_offset = date.fromordinal(
        origin.toordinal() + STAGE_LADDER[last_index + 1].day_offset
    )
    if last_index < 0:
        return by_offset

    last_sent_at = timeline.stage_sent_at[STAGE_LADDER[last_index].stage]
    by_interval = local_date(last_sent_at + MIN_STAGE_INTERVAL, timeline.timezone_name)
    return max(by_offset, by_interval)
