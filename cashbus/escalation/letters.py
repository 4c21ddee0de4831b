"""Rendering of the demand letter and the three escalation notices."""

from dataclasses import dataclass
from datetime import datetime
from typing import Iterable

from django.conf import settings
from django.template.loader import render_to_string

from cashbus.compensation.services import get_operator_display_name

from .constants import (
    INITIAL_LETTER_SUBJECT,
    INITIAL_LETTER_TEMPLATE,
    RESPONSE_WINDOW_DAYS,
    STAGES_BY_NAME,
)
from .schedule import elapsed_days, local_date


@dataclass(frozen=True)
class RenderedLetter:
    subject: str
    html_body: str


def days_remaining(days_elapsed: int) -> int:
    return max(0, RESPONSE_WINDOW_DAYS - days_elapsed)


def render_stage_letter(timeline, stage: str, now: datetime) -> RenderedLetter:
    """
    Render the notice for ``stage`` from a timeline snapshot.

    Amounts come from the claim's locked amount; nothing is re-priced here.
    """
    definition = STAGES_BY_NAME[stage]
    days = elapsed_days(timeline.initial_letter_sent_at, now, timeline.timezone_name)
    context = {
        "operator_name": get_operator_display_name(timeline.operator_id),
        "claimant_name": timeline.claimant_name,
        "amount": timeline.claim_amount,
        "reference": timeline.short_reference,
        "full_reference": timeline.claim_reference,
        "days_elapsed": days,
        "days_remaining": days_remaining(days),
        "response_window_days": RESPONSE_WINDOW_DAYS,
        "initial_letter_date": local_date(
            timeline.initial_letter_sent_at, timeline.timezone_name
        ),
    }
    return RenderedLetter(
        subject=definition.subject.format(reference=timeline.short_reference),
        html_body=render_to_string(definition.template, context),
    )


def render_initial_letter(claim, incidents: Iterable, breakdowns: Iterable, now: datetime) -> RenderedLetter:
    """Render the day-0 demand letter for a freshly opened claim."""
    rows = list(zip(incidents, breakdowns))
    bus_line = rows[0][0].bus_line if rows else ""
    context = {
        "operator_name": get_operator_display_name(claim.operator_id),
        "claimant_name": claim.profile.full_name,
        "amount": claim.amount,
        "reference": claim.short_reference,
        "full_reference": str(claim.reference),
        "rows": rows,
        "response_window_days": RESPONSE_WINDOW_DAYS,
        "letter_date": local_date(now, settings.CASHBUS_CLAIM_TIMEZONE),
    }
    return RenderedLetter(
        subject=INITIAL_LETTER_SUBJECT.format(
            bus_line=bus_line, reference=claim.short_reference
        ),
        html_body=render_to_string(INITIAL_LETTER_TEMPLATE, context),
    )
