"""
CashBus Constants.

Closed vocabularies shared by models, services and the API. Amount tables
and citation text live with the calculator in cashbus.compensation.constants.
"""

# =============================================================================
# Incident Kinds
# =============================================================================

INCIDENT_DELAY = "delay"
INCIDENT_NO_STOP = "no_stop"
INCIDENT_NO_ARRIVAL = "no_arrival"

INCIDENT_KIND_CHOICES = [
    (INCIDENT_DELAY, "Delay"),
    (INCIDENT_NO_STOP, "Missed stop"),
    (INCIDENT_NO_ARRIVAL, "No arrival"),
]

# =============================================================================
# Collateral Damage Types
# =============================================================================

DAMAGE_NONE = "none"
DAMAGE_TAXI_COST = "taxi_cost"
DAMAGE_LOST_WORKDAY = "lost_workday"
DAMAGE_MISSED_EXAM = "missed_exam"
DAMAGE_MEDICAL_APPOINTMENT = "medical_appointment"
DAMAGE_OTHER = "other"

DAMAGE_TYPE_CHOICES = [
    (DAMAGE_NONE, "None"),
    (DAMAGE_TAXI_COST, "Taxi cost"),
    (DAMAGE_LOST_WORKDAY, "Lost workday"),
    (DAMAGE_MISSED_EXAM, "Missed exam"),
    (DAMAGE_MEDICAL_APPOINTMENT, "Missed medical appointment"),
    (DAMAGE_OTHER, "Other"),
]

# =============================================================================
# Claim Lifecycle
# =============================================================================

CLAIM_SUBMITTED = "submitted"
CLAIM_COMPANY_REVIEW = "company_review"
CLAIM_APPROVED = "approved"
CLAIM_REJECTED = "rejected"
CLAIM_PAID = "paid"
CLAIM_IN_COURT = "in_court"

CLAIM_STATUS_CHOICES = [
    (CLAIM_SUBMITTED, "Submitted"),
    (CLAIM_COMPANY_REVIEW, "Under operator review"),
    (CLAIM_APPROVED, "Approved"),
    (CLAIM_REJECTED, "Rejected"),
    (CLAIM_PAID, "Paid"),
    (CLAIM_IN_COURT, "In court"),
]

# Statuses set by people; escalation never overwrites them
CLAIM_SETTLED_STATUSES = (CLAIM_APPROVED, CLAIM_REJECTED, CLAIM_PAID)

PAYMENT_METHOD_CHOICES = [
    ("bank_transfer", "Bank transfer"),
    ("check", "Check"),
    ("cash", "Cash"),
]

# =============================================================================
# Claim Timeline Lifecycle
# =============================================================================

TIMELINE_ACTIVE = "active"
TIMELINE_PAID = "paid"
TIMELINE_CANCELLED = "cancelled"
TIMELINE_ESCALATION_COMPLETE = "escalation_complete"

TIMELINE_STATUS_CHOICES = [
    (TIMELINE_ACTIVE, "Active"),
    (TIMELINE_PAID, "Resolved - paid"),
    (TIMELINE_CANCELLED, "Resolved - cancelled"),
    (TIMELINE_ESCALATION_COMPLETE, "Escalation complete"),
]

# External resolutions an admin or payment webhook may apply
TIMELINE_RESOLUTIONS = (TIMELINE_PAID, TIMELINE_CANCELLED)

# =============================================================================
# Letters
# =============================================================================

LETTER_INITIAL = "initial"
STAGE_FIRST_REMINDER = "first_reminder"
STAGE_ESCALATION_WARNING = "escalation_warning"
STAGE_FINAL_NOTICE = "final_notice"

LETTER_CHOICES = [
    (LETTER_INITIAL, "Initial demand letter"),
    (STAGE_FIRST_REMINDER, "Day 7 - first reminder"),
    (STAGE_ESCALATION_WARNING, "Day 14 - escalation warning"),
    (STAGE_FINAL_NOTICE, "Day 21 - final notice"),
]

DEFAULT_CLAIM_TIMEZONE = "Asia/Jerusalem"
