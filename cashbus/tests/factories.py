"""
Factory classes for generating test data for CashBus models.

Uses factory_boy to create valid instances with sensible defaults. Claims
default to the "dan" operator, whose contact mailbox is configured in the
test settings.
"""

import factory
from factory.django import DjangoModelFactory
from django.contrib.auth.models import User
from django.utils import timezone
from decimal import Decimal

from cashbus.constants import DAMAGE_NONE, INCIDENT_NO_ARRIVAL, TIMELINE_ACTIVE
from cashbus.models import Claim, ClaimTimeline, Incident, Profile


class UserFactory(DjangoModelFactory):
    """Factory for Django User model."""

    class Meta:
        model = User
        django_get_or_create = ("username",)

    username = factory.Sequence(lambda n: f"rider{n}")
    email = factory.LazyAttribute(lambda obj: f"{obj.username}@example.com")
    is_active = True
    is_staff = False

    @factory.post_generation
    def password(obj, create, extracted, **kwargs):
        """Set password after creation."""
        if not create:
            return
        obj.set_password(extracted or "testpass123")


class ProfileFactory(DjangoModelFactory):
    class Meta:
        model = Profile

    user = factory.SubFactory(UserFactory)
    full_name = factory.Sequence(lambda n: f"ישראל ישראלי {n}")
    id_number = "039123456"
    email = factory.LazyAttribute(lambda obj: obj.user.email)
    phone = "050-1234567"
    address = "רחוב הרצל 1"
    city = "חיפה"


class IncidentFactory(DjangoModelFactory):
    """Factory for Incident model. Defaults to a priced no-arrival report."""

    class Meta:
        model = Incident

    profile = factory.SubFactory(ProfileFactory)
    kind = INCIDENT_NO_ARRIVAL
    incident_datetime = factory.LazyFunction(timezone.now)
    bus_line = "480"
    station_name = "תחנה מרכזית"
    operator_id = "dan"
    damage_type = DAMAGE_NONE

    class Params:
        with_evidence = factory.Trait(
            gps_accuracy_meters=Decimal("8.50"),
            transit_presence_verified=True,
            receipt_urls=["https://files.test/r1.jpg", "https://files.test/r2.jpg"],
        )


class ClaimFactory(DjangoModelFactory):
    class Meta:
        model = Claim

    profile = factory.SubFactory(ProfileFactory)
    operator_id = "dan"
    amount = Decimal("80.00")
    company_contact_email = "pniot@dan.test"


class ClaimTimelineFactory(DjangoModelFactory):
    """Factory for ClaimTimeline. ``initial_letter_sent_at`` is day 0."""

    class Meta:
        model = ClaimTimeline

    claim = factory.SubFactory(ClaimFactory)
    initial_letter_sent_at = factory.LazyFunction(timezone.now)
    status = TIMELINE_ACTIVE
    timezone_name = "Asia/Jerusalem"
