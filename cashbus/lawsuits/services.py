"""
Lawsuit Document Assembler.

Merges claim, incident and timeline facts into the structured content of a
small-claims filing. Assembly is a deterministic template fill: the only
decisions made here are which evidence lines are present.
"""

from datetime import date
import logging
import re
from typing import Any, Dict, List, Optional, Sequence
from zoneinfo import ZoneInfo

from django.conf import settings
from django.db import transaction
from django.utils import timezone

from cashbus.compensation.services import calculate_for_incident, get_operator_display_name
from cashbus.core.services import create_audit_event

from . import constants as text

logger = logging.getLogger(__name__)

FILENAME_UNSAFE = re.compile(r"[^a-zA-Z0-9\u0590-\u05FF]")
DATETIME_FORMAT = "%d/%m/%Y %H:%M"
DATE_FORMAT = "%d/%m/%Y"


def build_filename(claimant_name: str, reference: str, today: date) -> str:
    sanitized = FILENAME_UNSAFE.sub("_", claimant_name or "")
    compact = reference.replace("-", "")[:8]
    return f"lawsuit_{sanitized}_{today.isoformat()}_{compact}.pdf"


class LawsuitAssembler:
    """
    Builds the filing payload.

    Args:
        default_court_city: Court city used when the claimant has no city
        timezone_name: Zone in which incident and letter dates are printed
    """

    def __init__(self, default_court_city: str, timezone_name: str):
        self.default_court_city = default_court_city
        self.tz = ZoneInfo(timezone_name)

    def _format(self, value, fmt: str = DATETIME_FORMAT) -> str:
        if value is None:
            return ""
        return timezone.localtime(value, self.tz).strftime(fmt)

    def assemble(
        self,
        claim,
        incidents: Sequence,
        timeline,
        breakdowns: Sequence,
        today: date,
    ) -> Dict[str, Any]:
        profile = claim.profile
        ordered = sorted(zip(incidents, breakdowns), key=lambda pair: pair[0].incident_datetime)
        reference = str(claim.reference)

        return {
            "reference": reference,
            "short_reference": claim.short_reference,
            "court": {
                "name": text.COURT_NAME,
                "city": profile.city or self.default_court_city,
            },
            "title": text.DOCUMENT_TITLE,
            "subtitle": text.DOCUMENT_SUBTITLE,
            "plaintiff": {
                "name": profile.full_name,
                "id_number": profile.id_number,
                "address": profile.address,
                "city": profile.city,
                "phone": profile.phone,
            },
            "defendant": {
                "operator_id": claim.operator_id,
                "name": get_operator_display_name(claim.operator_id) + text.DEFENDANT_SUFFIX,
                "description": text.DEFENDANT_DESCRIPTION,
            },
            "introduction": list(text.INTRODUCTION),
            "facts": self._facts(ordered, timeline),
            "legal_basis": self._legal_basis(ordered),
            "damages": {
                "items": [self._damage_item(incident, breakdown) for incident, breakdown in ordered],
                "statement": text.AMOUNT_TO_BE_DETERMINED,
            },
            "relief": list(text.RELIEF),
            "evidence": self._evidence(incidents, timeline),
            "signature_date": today.strftime(DATE_FORMAT),
            "footer": text.FOOTER,
            "filename": build_filename(profile.full_name, reference, today),
        }

    def _facts(self, ordered, timeline) -> List[str]:
        facts = []
        for incident, _ in ordered:
            template = text.FACT_BY_KIND.get(incident.kind)
            if template is None:
                continue
            facts.append(template.format(
                date=self._format(incident.incident_datetime),
                bus_line=incident.bus_line,
                station=incident.station_name,
                delay=incident.delay_minutes or "",
            ))

        if timeline is not None:
            facts.append(text.FACT_INITIAL_LETTER.format(
                date=self._format(timeline.initial_letter_sent_at, DATE_FORMAT)
            ))
            facts.append(text.FACT_LETTERS_SENT.format(count=timeline.total_emails_sent))
            facts.append(
                text.FACT_COMPANY_RESPONDED if timeline.company_responded else text.FACT_NO_RESPONSE
            )
        return facts

    def _legal_basis(self, ordered) -> List[str]:
        lines: List[str] = []
        for incident, _ in ordered:
            for line in text.LEGAL_BASIS_BY_KIND.get(incident.kind, ()):
                if line not in lines:
                    lines.append(line)
        lines.extend(text.COMMON_LEGAL_BASIS)
        return lines

    def _damage_item(self, incident, breakdown) -> Dict[str, str]:
        return {
            "date": self._format(incident.incident_datetime, DATE_FORMAT),
            "description": breakdown.description,
            "legal_basis": breakdown.legal_basis,
        }

    def _evidence(self, incidents, timeline) -> List[str]:
        evidence = []

        accuracies = [i.gps_accuracy_meters for i in incidents if i.gps_accuracy_meters is not None]
        if accuracies:
            evidence.append(text.EVIDENCE_GPS.format(accuracy=min(accuracies)))

        verdicts = [i.transit_presence_verified for i in incidents if i.transit_presence_verified is not None]
        if verdicts:
            evidence.append(
                text.EVIDENCE_PRESENCE_CONFIRMED if any(verdicts) else text.EVIDENCE_PRESENCE_CONTRADICTED
            )

        receipts = sum(len(i.receipt_urls or []) for i in incidents)
        if receipts > 0:
            evidence.append(text.EVIDENCE_RECEIPTS.format(count=receipts))

        if timeline is not None:
            # Demand letter plus every escalation notice
            evidence.append(text.EVIDENCE_LETTERS.format(count=timeline.total_emails_sent + 1))
        return evidence


def default_assembler() -> LawsuitAssembler:
    return LawsuitAssembler(
        default_court_city=settings.CASHBUS_DEFAULT_COURT_CITY,
        timezone_name=settings.CASHBUS_CLAIM_TIMEZONE,
    )


def assemble_lawsuit_for_claim(claim, today: Optional[date] = None, user=None):
    """Assemble from stored facts and save, replacing any earlier document."""
    from cashbus.models import ClaimTimeline, LawsuitDocument

    assembler = default_assembler()
    today = today or timezone.localdate(timezone.now(), assembler.tz)
    incidents = list(claim.incidents.all())
    breakdowns = [calculate_for_incident(incident) for incident in incidents]
    timeline = ClaimTimeline.objects.filter(claim=claim).first()

    payload = assembler.assemble(claim, incidents, timeline, breakdowns, today)

    with transaction.atomic():
        document, created = LawsuitDocument.objects.update_or_create(
            claim=claim,
            defaults={
                "payload": payload,
                "filename": payload["filename"],
                "assembled_at": timezone.now(),
            },
        )
        create_audit_event(
            action="lawsuit_assembled",
            entity_type="Claim",
            entity_id=claim.reference,
            user=user,
            metadata={"filename": document.filename, "replaced": not created},
        )

    logger.info(f"Lawsuit document {document.filename} assembled for claim {claim.short_reference}")
    return document
