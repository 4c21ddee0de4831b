"""
Tests for the CashBus REST API.
"""

from decimal import Decimal

from django.core import mail
from django.urls import reverse
from django.utils import timezone
from rest_framework import status
from rest_framework.test import APITestCase

from cashbus.lawsuits.services import assemble_lawsuit_for_claim
from cashbus.models import Claim, ClaimTimeline, Incident
from cashbus.tests.factories import (
    ClaimFactory,
    ClaimTimelineFactory,
    IncidentFactory,
    ProfileFactory,
    UserFactory,
)


class APIBaseTestCase(APITestCase):
    def setUp(self):
        self.profile = ProfileFactory()
        self.user = self.profile.user
        self.client.force_authenticate(user=self.user)


class CompensationQuoteAPITests(APIBaseTestCase):
    url = reverse("compensation-quote")

    def test_quote(self):
        response = self.client.post(
            self.url,
            {
                "incident_kind": "delay",
                "delay_minutes": 45,
                "damage_type": "taxi_cost",
                "damage_amount": "120",
                "operator_id": "dan",
            },
            format="json",
        )

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["total_compensation"], "180")
        self.assertEqual(response.data["operator_name"], "דן")

    def test_unknown_kind_uses_error_envelope(self):
        response = self.client.post(
            self.url, {"incident_kind": "teleportation_failure"}, format="json"
        )

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        error = response.data["error"]
        self.assertEqual(error["code"], "compensation_validation_error")
        self.assertIn("incident_kind", error["details"])
        self.assertEqual(error["request_id"], response["X-Request-Id"])

    def test_missing_kind_is_a_validation_error(self):
        response = self.client.post(self.url, {}, format="json")

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data["error"]["code"], "validation_error")

    def test_requires_authentication(self):
        self.client.force_authenticate(user=None)

        response = self.client.post(self.url, {"incident_kind": "no_stop"}, format="json")

        self.assertIn(
            response.status_code, (status.HTTP_401_UNAUTHORIZED, status.HTTP_403_FORBIDDEN)
        )
        self.assertEqual(response.data["error"]["code"], "authentication_failed")


class IncidentAPITests(APIBaseTestCase):
    url = reverse("incident-list")

    def payload(self, **overrides):
        data = {
            "kind": "no_arrival",
            "incident_datetime": timezone.now().isoformat(),
            "bus_line": "480",
            "station_name": "תחנה מרכזית",
            "operator_id": "dan",
        }
        data.update(overrides)
        return data

    def test_create_prices_incident(self):
        response = self.client.post(self.url, self.payload(), format="json")

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data["compensation"]["total_compensation"], "80")
        self.assertEqual(Incident.objects.get().profile, self.profile)

    def test_negative_damage_rejected_by_calculator(self):
        response = self.client.post(
            self.url,
            self.payload(damage_type="taxi_cost", damage_amount="-5"),
            format="json",
        )

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data["error"]["code"], "compensation_validation_error")
        self.assertFalse(Incident.objects.exists())

    def test_list_only_own_incidents(self):
        own = IncidentFactory(profile=self.profile)
        IncidentFactory()

        response = self.client.get(self.url)

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([row["id"] for row in response.data["results"]], [own.pk])

    def test_user_without_profile_cannot_report(self):
        self.client.force_authenticate(user=UserFactory())

        response = self.client.post(self.url, self.payload(), format="json")

        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertEqual(response.data["error"]["code"], "permission_denied")


class ClaimAPITests(APIBaseTestCase):
    url = reverse("claim-list")

    def test_create_opens_claim_and_sends_letter(self):
        incidents = [
            IncidentFactory(profile=self.profile),
            IncidentFactory(
                profile=self.profile,
                kind="delay",
                delay_minutes=45,
                damage_type="taxi_cost",
                damage_amount=Decimal("120"),
            ),
        ]

        response = self.client.post(
            self.url, {"incident_ids": [i.pk for i in incidents]}, format="json"
        )

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertTrue(response.data["letter_delivered"])
        self.assertEqual(response.data["amount"], "260.00")
        self.assertEqual(response.data["timeline"]["status"], "active")
        self.assertEqual(sorted(response.data["incident_ids"]), sorted(i.pk for i in incidents))
        self.assertEqual(len(mail.outbox), 1)
        self.assertEqual(mail.outbox[0].to, ["pniot@dan.test"])

    def test_create_rejects_foreign_incident(self):
        other = IncidentFactory()

        response = self.client.post(self.url, {"incident_ids": [other.pk]}, format="json")

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertFalse(Claim.objects.exists())

    def test_create_rejects_mixed_operators(self):
        ids = [
            IncidentFactory(profile=self.profile, operator_id="dan").pk,
            IncidentFactory(profile=self.profile, operator_id="egged").pk,
        ]

        response = self.client.post(self.url, {"incident_ids": ids}, format="json")

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data["error"]["code"], "claim_error")

    def test_riders_see_only_their_claims(self):
        own = ClaimFactory(profile=self.profile)
        ClaimFactory()

        response = self.client.get(self.url)

        self.assertEqual([row["id"] for row in response.data["results"]], [own.pk])

    def test_resolve_requires_staff(self):
        claim = ClaimTimelineFactory(claim=ClaimFactory(profile=self.profile)).claim

        response = self.client.post(
            reverse("claim-resolve", args=[claim.pk]), {"resolution": "paid"}, format="json"
        )

        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertEqual(ClaimTimeline.objects.get(claim=claim).status, "active")

    def test_staff_resolves_claim(self):
        claim = ClaimTimelineFactory().claim
        self.client.force_authenticate(user=UserFactory(is_staff=True))

        response = self.client.post(
            reverse("claim-resolve", args=[claim.pk]),
            {"resolution": "paid", "payment_method": "bank_transfer"},
            format="json",
        )

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["status"], "paid")
        self.assertEqual(response.data["timeline"]["status"], "paid")

    def test_lawsuit_available_once_assembled(self):
        claim = ClaimFactory(profile=self.profile)
        IncidentFactory(profile=self.profile, claim=claim)
        url = reverse("claim-lawsuit", args=[claim.pk])

        response = self.client.get(url)
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.data["error"]["code"], "not_found")

        assemble_lawsuit_for_claim(claim)
        response = self.client.get(url)

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["document"]["reference"], str(claim.reference))
        self.assertTrue(response.data["filename"].startswith("lawsuit_"))


class HealthCheckAPITests(APITestCase):
    def test_health_check_is_public(self):
        response = self.client.get(reverse("api-health"))

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["status"], "healthy")
