"""
Escalation Ladder.

The demand-letter cycle runs 21 days from the initial letter (day 0), with
one notice per week. Stages are never closer than seven days apart; shorter
intervals were ruled to amount to harassment of the operator.
"""

from collections import namedtuple
from datetime import timedelta

from cashbus.constants import (
    STAGE_ESCALATION_WARNING,
    STAGE_FINAL_NOTICE,
    STAGE_FIRST_REMINDER,
)

StageDefinition = namedtuple(
    "StageDefinition", ["stage", "day_offset", "field", "template", "subject"]
)

# Ordered; each stage requires every earlier one
STAGE_LADDER = (
    StageDefinition(
        stage=STAGE_FIRST_REMINDER,
        day_offset=7,
        field="first_reminder_sent_at",
        template="cashbus/letters/first_reminder.html",
        subject="תזכורת - דרישת פיצוי מס' {reference} טרם נענתה",
    ),
    StageDefinition(
        stage=STAGE_ESCALATION_WARNING,
        day_offset=14,
        field="escalation_warning_sent_at",
        template="cashbus/letters/escalation_warning.html",
        subject="התראה לפני הגשת תביעה - דרישה {reference}",
    ),
    StageDefinition(
        stage=STAGE_FINAL_NOTICE,
        day_offset=21,
        field="final_notice_sent_at",
        template="cashbus/letters/final_notice.html",
        subject="הודעה אחרונה - כתב תביעה מוכן להגשה - {reference}",
    ),
)

STAGE_ORDER = tuple(definition.stage for definition in STAGE_LADDER)
STAGES_BY_NAME = {definition.stage: definition for definition in STAGE_LADDER}
TERMINAL_STAGE = STAGE_LADDER[-1].stage

# Minimum time between two consecutive stage notices
MIN_STAGE_INTERVAL = timedelta(days=7)

# Days the operator is given to pay, counted from day 0
RESPONSE_WINDOW_DAYS = STAGE_LADDER[-1].day_offset

# Rough database pre-filter: nothing can be due before the first offset.
# Two days of slack cover a letter sent late in the day plus a DST shift.
EARLIEST_STAGE_OFFSET = timedelta(days=STAGE_LADDER[0].day_offset - 2)

# A reservation older than this is treated as abandoned by a crashed run
STAGE_RESERVATION_TIMEOUT = timedelta(hours=1)

INITIAL_LETTER_TEMPLATE = "cashbus/letters/initial_demand.html"
INITIAL_LETTER_SUBJECT = "מכתב דרישה - קו {bus_line} - אסמכתא {reference}"
