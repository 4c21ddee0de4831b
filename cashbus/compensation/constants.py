"""
Compensation Tables.

Statutory base amounts, delay severity buckets, collateral damage caps and
operator display names. Every table here is closed: a key that is not listed
is rejected by the calculator rather than priced at a default.

Amounts are in NIS, whole shekels.
"""

from collections import namedtuple
from decimal import Decimal

from cashbus.constants import (
    DAMAGE_LOST_WORKDAY,
    DAMAGE_MEDICAL_APPOINTMENT,
    DAMAGE_MISSED_EXAM,
    DAMAGE_NONE,
    DAMAGE_OTHER,
    DAMAGE_TAXI_COST,
    INCIDENT_DELAY,
    INCIDENT_NO_ARRIVAL,
    INCIDENT_NO_STOP,
)

BaseRule = namedtuple("BaseRule", ["amount", "citation", "description"])
DelayBucket = namedtuple("DelayBucket", ["min_minutes", "amount", "description"])
DamageRule = namedtuple("DamageRule", ["cap", "description", "citation_suffix"])

# =============================================================================
# Base Compensation (Regulation 428g)
# =============================================================================

FLAT_BASE_RULES = {
    INCIDENT_NO_ARRIVAL: BaseRule(
        amount=Decimal("80"),
        citation="תקנה 428ז - אי הגעת אוטובוס לתחנה",
        description="פיצוי בסיס בגין אוטובוס שלא הגיע כלל לתחנה",
    ),
    INCIDENT_NO_STOP: BaseRule(
        amount=Decimal("70"),
        citation="תקנה 428ז - אי עצירה בתחנה",
        description="פיצוי בסיס בגין אוטובוס שלא עצר בתחנה למרות איתות",
    ),
}

DELAY_CITATION = "תקנה 428ז - עיכוב משמעותי בשירות"

# Checked top to bottom; the first bucket whose floor is reached applies
DELAY_BUCKETS = (
    DelayBucket(60, Decimal("100"), "פיצוי בגין עיכוב חמור (מעל שעה)"),
    DelayBucket(40, Decimal("60"), "פיצוי בגין עיכוב משמעותי (40-60 דקות)"),
    DelayBucket(20, Decimal("35"), "פיצוי בגין עיכוב (20-40 דקות)"),
    DelayBucket(0, Decimal("0"), "עיכוב של פחות מ-20 דקות אינו מזכה בפיצוי"),
)

# A delay report without a measured duration is priced as the shortest
# compensable delay
DEFAULT_DELAY_MINUTES = 20

INCIDENT_KINDS = frozenset(FLAT_BASE_RULES) | {INCIDENT_DELAY}

# =============================================================================
# Collateral Damage
# =============================================================================

# cap=None means the declared amount is reimbursed in full (receipt-backed)
DAMAGE_RULES = {
    DAMAGE_TAXI_COST: DamageRule(None, " + החזר הוצאות מונית בפועל", ""),
    DAMAGE_LOST_WORKDAY: DamageRule(Decimal("500"), " + אובדן שכר יומי", ""),
    DAMAGE_MISSED_EXAM: DamageRule(
        Decimal("1000"),
        " + נזק בגין החמצת בחינה",
        " + תקנות צרכנות (הגנת הצרכן)",
    ),
    DAMAGE_MEDICAL_APPOINTMENT: DamageRule(
        Decimal("300"), " + נזק בגין החמצת תור לרופא", ""
    ),
    DAMAGE_OTHER: DamageRule(Decimal("200"), " + נזק נוסף שנגרם", ""),
}

DAMAGE_TYPES = frozenset(DAMAGE_RULES) | {DAMAGE_NONE}

# =============================================================================
# Operators
# =============================================================================

OPERATOR_NAMES = {
    "egged": "אגד",
    "dan": "דן",
    "kavim": "קווים",
    "metropoline": "מטרופולין",
    "nateev_express": "נתיב אקספרס",
    "superbus": "סופרבוס",
    "egged_taavura": "אגד תעבורה",
    "afikim": "אפיקים",
    "golan": "גולן",
    "galim": "גלים",
    "tnufa": "תנופה",
    "other": "אחר",
}

# =============================================================================
# Claim Filing Threshold
# =============================================================================

CLAIM_FILING_MIN_TOTAL = Decimal("200")
CLAIM_FILING_MIN_INCIDENTS = 3
