"""
Compensation Calculator.

Pure functions that price a reported incident under the statutory tables in
cashbus.compensation.constants. Nothing here touches the database; claim
amounts are locked by the claims service using calculate_claim_amount.
"""

from dataclasses import asdict, dataclass
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, Dict, Iterable, Optional

from cashbus.constants import DAMAGE_NONE, INCIDENT_DELAY
from cashbus.exceptions import CompensationValidationError

from .constants import (
    CLAIM_FILING_MIN_INCIDENTS,
    CLAIM_FILING_MIN_TOTAL,
    DAMAGE_RULES,
    DEFAULT_DELAY_MINUTES,
    DELAY_BUCKETS,
    DELAY_CITATION,
    FLAT_BASE_RULES,
    OPERATOR_NAMES,
)

WHOLE_UNIT = Decimal("1")


@dataclass(frozen=True)
class CompensationBreakdown:
    """Priced incident: statutory base plus capped collateral damage."""

    base_compensation: Decimal
    damage_compensation: Decimal
    total_compensation: Decimal
    legal_basis: str
    description: str
    operator_id: str = ""
    operator_name: str = ""
    damage_capped: bool = False

    @property
    def operator_citation(self) -> str:
        """Legal basis naming the operator, as quoted in letters."""
        if not self.operator_name:
            return self.legal_basis
        return f"{self.legal_basis} - {self.operator_name}"

    def as_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        for key in ("base_compensation", "damage_compensation", "total_compensation"):
            data[key] = str(data[key])
        return data


@dataclass(frozen=True)
class FilingEligibility:
    can_file: bool
    reason: str


def get_operator_display_name(operator_id: str) -> str:
    """Hebrew display name for an operator id; unknown ids display as given."""
    if not operator_id:
        return ""
    return OPERATOR_NAMES.get(operator_id.lower(), operator_id)


def _to_decimal(value: Any, field: str) -> Decimal:
    try:
        amount = Decimal(str(value))
    except (InvalidOperation, ValueError):
        raise CompensationValidationError(field, f"{field} must be a number, got {value!r}")
    if not amount.is_finite():
        raise CompensationValidationError(field, f"{field} must be finite")
    return amount


def _whole(amount: Decimal) -> Decimal:
    return amount.quantize(WHOLE_UNIT, rounding=ROUND_HALF_UP)


def _base_for(incident_kind: str, delay_minutes: Optional[int]):
    """Return (amount, citation, description) for the incident kind."""
    if incident_kind in FLAT_BASE_RULES:
        rule = FLAT_BASE_RULES[incident_kind]
        return rule.amount, rule.citation, rule.description

    if incident_kind == INCIDENT_DELAY:
        if delay_minutes is None:
            minutes = DEFAULT_DELAY_MINUTES
        else:
            minutes = _to_decimal(delay_minutes, "delay_minutes")
            if minutes < 0:
                raise CompensationValidationError(
                    "delay_minutes", "delay_minutes cannot be negative"
                )
        for bucket in DELAY_BUCKETS:
            if minutes >= bucket.min_minutes:
                return bucket.amount, DELAY_CITATION, bucket.description

    raise CompensationValidationError(
        "incident_kind", f"Unknown incident kind: {incident_kind!r}"
    )


def calculate_compensation(
    incident_kind: str,
    delay_minutes: Optional[int] = None,
    damage_type: Optional[str] = None,
    damage_amount: Any = None,
    operator_id: str = "",
) -> CompensationBreakdown:
    """
    Price one incident.

    Args:
        incident_kind: "delay", "no_stop" or "no_arrival"
        delay_minutes: Observed delay, only read for "delay"
        damage_type: Collateral damage category, or None/"none"
        damage_amount: Declared collateral damage in NIS
        operator_id: Operator id, used for the display name only

    Returns:
        CompensationBreakdown with whole-shekel amounts

    Raises:
        CompensationValidationError: Unknown kind or damage type, negative
            damage amount or negative delay
    """
    base, legal_basis, description = _base_for(incident_kind, delay_minutes)

    damage = Decimal("0")
    capped = False
    if damage_amount is not None and damage_amount != "":
        declared = _to_decimal(damage_amount, "damage_amount")
        if declared < 0:
            raise CompensationValidationError(
                "damage_amount", "damage_amount cannot be negative"
            )
    else:
        declared = Decimal("0")

    if damage_type and damage_type != DAMAGE_NONE:
        rule = DAMAGE_RULES.get(damage_type)
        if rule is None:
            raise CompensationValidationError(
                "damage_type", f"Unknown damage type: {damage_type!r}"
            )
        if declared > 0:
            damage = declared
            if rule.cap is not None and declared > rule.cap:
                damage = rule.cap
                capped = True
            description += rule.description
            legal_basis += rule.citation_suffix

    base = _whole(base)
    damage = _whole(damage)

    return CompensationBreakdown(
        base_compensation=base,
        damage_compensation=damage,
        total_compensation=base + damage,
        legal_basis=legal_basis,
        description=description,
        operator_id=operator_id or "",
        operator_name=get_operator_display_name(operator_id),
        damage_capped=capped,
    )


def calculate_for_incident(incident) -> CompensationBreakdown:
    """Price a stored Incident (or any object exposing the same fields)."""
    return calculate_compensation(
        incident_kind=incident.kind,
        delay_minutes=incident.delay_minutes,
        damage_type=incident.damage_type,
        damage_amount=incident.damage_amount,
        operator_id=incident.operator_id,
    )


def calculate_claim_amount(incidents: Iterable) -> Decimal:
    """Sum of per-incident totals. Called once, when a claim amount is locked."""
    total = Decimal("0")
    for incident in incidents:
        total += calculate_for_incident(incident).total_compensation
    return total


def can_file_claim(incident_count: int, total_compensation: Decimal) -> FilingEligibility:
    """
    Whether the rider has enough to file: at least 200 NIS or 3 incidents.
    """
    total = _to_decimal(total_compensation, "total_compensation")

    if total >= CLAIM_FILING_MIN_TOTAL:
        return FilingEligibility(True, "סכום פיצוי מספיק להגשת תביעה")

    if incident_count >= CLAIM_FILING_MIN_INCIDENTS:
        return FilingEligibility(True, "מספר אירועים מספיק להגשת תביעה מצטברת")

    need_more = CLAIM_FILING_MIN_INCIDENTS - max(incident_count, 0)
    return FilingEligibility(False, f"נדרשים עוד {need_more} אירועים להגשת תביעה")
