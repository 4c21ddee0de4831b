"""
Logging filters for PII scrubbing.

Claim letters and lawsuit documents carry the claimant's national id number,
phone number and email address. These filters redact them from log records
before any handler writes them out.

Usage:
    # In settings LOGGING configuration:
    LOGGING = {
        'filters': {
            'pii_scrubber': {
                '()': 'cashbus.logging_filters.PIIScrubberFilter',
            },
        },
        'handlers': {
            'console': {
                'filters': ['pii_scrubber'],
            },
        },
    }
"""

import logging
import re
from typing import Any, Dict, Optional


# =============================================================================
# PII Detection Patterns
# =============================================================================

# Israeli national id number (teudat zehut): 9 digits, sometimes 8 without
# the leading zero
ID_NUMBER_PATTERNS = [
    re.compile(r"\b\d{8,9}\b"),
]

# Israeli phone numbers: 05X-XXXXXXX mobiles, 0X-XXXXXXX landlines and the
# +972 international form
PHONE_PATTERNS = [
    re.compile(r"(?:\+972[-\s]?|\b0)5\d[-\s]?\d{3}[-\s]?\d{4}\b"),
    re.compile(r"(?:\+972[-\s]?|\b0)[2-489][-\s]?\d{3}[-\s]?\d{4}\b"),
]

EMAIL_PATTERN = re.compile(r"\b[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}\b")

# Payment card numbers (payment confirmation webhooks)
CREDIT_CARD_PATTERNS = [
    re.compile(r"\b(?:\d{4}[-\s]?){3}\d{4}\b"),
]


# =============================================================================
# PII Scrubber Filter
# =============================================================================


class PIIScrubberFilter(logging.Filter):
    """
    Logging filter that redacts PII from log messages.

    Example:
        Input:  "Letter for 039123456 sent to rider@example.com"
        Output: "Letter for [REDACTED_ID] sent to [REDACTED_EMAIL]"
    """

    def __init__(self, name: str = ""):
        super().__init__(name)

        # Order matters: card and phone numbers before bare digit runs
        self.patterns: Dict[str, tuple] = {
            "CREDIT_CARD": (CREDIT_CARD_PATTERNS, "[REDACTED_CC]"),
            "EMAIL": ([EMAIL_PATTERN], "[REDACTED_EMAIL]"),
            "PHONE": (PHONE_PATTERNS, "[REDACTED_PHONE]"),
            "ID_NUMBER": (ID_NUMBER_PATTERNS, "[REDACTED_ID]"),
        }

    def filter(self, record: logging.LogRecord) -> bool:
        """Scrub the record in place; always lets it through."""
        if isinstance(record.msg, str):
            record.msg = self.scrub(record.msg)

        if record.args:
            if isinstance(record.args, dict):
                record.args = {
                    key: self.scrub(value) if isinstance(value, str) else value
                    for key, value in record.args.items()
                }
            else:
                record.args = tuple(
                    self.scrub(arg) if isinstance(arg, str) else arg
                    for arg in record.args
                )

        return True

    def scrub(self, text: str) -> str:
        if not text:
            return text

        scrubbed_text = text
        for patterns, replacement in self.patterns.values():
            for pattern in patterns:
                scrubbed_text = pattern.sub(replacement, scrubbed_text)

        return scrubbed_text


class SelectivePIIScrubberFilter(PIIScrubberFilter):
    """
    Scrubber for development that keeps email addresses visible.

    Letter routing bugs are much easier to debug when the recipient
    mailbox shows up in the console.
    """

    def __init__(self, name: str = ""):
        super().__init__(name)
        self.patterns.pop("EMAIL")


def scrub_dict(
    data: Dict[str, Any], scrubber: Optional[PIIScrubberFilter] = None
) -> Dict[str, Any]:
    """
    Scrub PII from a dictionary (used for Sentry payloads and audit metadata).

    Example:
        >>> scrub_dict({'id_number': '039123456', 'city': 'Haifa'})
        {'id_number': '[REDACTED_ID]', 'city': 'Haifa'}
    """
    if scrubber is None:
        scrubber = PIIScrubberFilter()

    scrubbed = {}
    for key, value in data.items():
        if isinstance(value, str):
            scrubbed[key] = scrubber.scrub(value)
        elif isinstance(value, dict):
            scrubbed[key] = scrub_dict(value, scrubber)
        elif isinstance(value, list):
            scrubbed[key] = [
                scrubber.scrub(item) if isinstance(item, str) else item
                for item in value
            ]
        else:
            scrubbed[key] = value

    return scrubbed
