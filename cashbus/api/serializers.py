"""
CashBus API serializers.

Incident input is validated twice: field shapes here, and pricing rules by
the compensation calculator in the service layer.
"""

from rest_framework import serializers

from cashbus.compensation.services import calculate_for_incident
from cashbus.constants import (
    DAMAGE_TYPE_CHOICES,
    INCIDENT_KIND_CHOICES,
    PAYMENT_METHOD_CHOICES,
    TIMELINE_RESOLUTIONS,
)

from ..models import Claim, ClaimTimeline, Incident


class CompensationQuoteSerializer(serializers.Serializer):
    """
    Calculator input. Kind and damage type are plain strings so unknown
    values reach the calculator and fail with its own error.
    """

    incident_kind = serializers.CharField()
    delay_minutes = serializers.IntegerField(required=False, allow_null=True)
    damage_type = serializers.CharField(required=False, allow_null=True, allow_blank=True)
    damage_amount = serializers.DecimalField(
        max_digits=10, decimal_places=2, required=False, allow_null=True
    )
    operator_id = serializers.CharField(required=False, allow_blank=True, default="")


class IncidentSerializer(serializers.ModelSerializer):
    kind = serializers.ChoiceField(choices=INCIDENT_KIND_CHOICES)
    damage_type = serializers.ChoiceField(choices=DAMAGE_TYPE_CHOICES, required=False)
    compensation = serializers.SerializerMethodField()

    class Meta:
        model = Incident
        fields = [
            "id",
            "kind",
            "incident_datetime",
            "scheduled_time",
            "observed_time",
            "delay_minutes",
            "bus_line",
            "station_name",
            "operator_id",
            "reporter_latitude",
            "reporter_longitude",
            "gps_accuracy_meters",
            "station_latitude",
            "station_longitude",
            "damage_type",
            "damage_amount",
            "damage_description",
            "transit_presence_verified",
            "receipt_urls",
            "photo_urls",
            "claim",
            "compensation",
            "created_at",
        ]
        read_only_fields = ["id", "claim", "compensation", "created_at"]

    def get_compensation(self, obj):
        return calculate_for_incident(obj).as_dict()


class ClaimTimelineSerializer(serializers.ModelSerializer):
    class Meta:
        model = ClaimTimeline
        fields = [
            "status",
            "initial_letter_sent_at",
            "first_reminder_sent_at",
            "escalation_warning_sent_at",
            "final_notice_sent_at",
            "total_emails_sent",
            "last_email_sent_at",
            "company_responded",
            "payment_received_at",
        ]
        read_only_fields = fields


class ClaimSerializer(serializers.ModelSerializer):
    short_reference = serializers.CharField(read_only=True)
    timeline = serializers.SerializerMethodField()
    incident_ids = serializers.SerializerMethodField()

    class Meta:
        model = Claim
        fields = [
            "id",
            "reference",
            "short_reference",
            "operator_id",
            "amount",
            "status",
            "company_contact_email",
            "letter_sent_at",
            "compensation_received_amount",
            "compensation_received_at",
            "incident_ids",
            "timeline",
            "created_at",
        ]
        read_only_fields = fields

    def get_timeline(self, obj):
        timeline = ClaimTimeline.objects.filter(claim=obj).first()
        if timeline is None:
            return None
        return ClaimTimelineSerializer(timeline).data

    def get_incident_ids(self, obj):
        return [incident.pk for incident in obj.incidents.all()]


class ClaimCreateSerializer(serializers.Serializer):
    incident_ids = serializers.ListField(
        child=serializers.IntegerField(), allow_empty=False
    )
    company_contact_email = serializers.EmailField(required=False, allow_blank=True)


class ClaimResolveSerializer(serializers.Serializer):
    resolution = serializers.ChoiceField(choices=TIMELINE_RESOLUTIONS)
    amount_received = serializers.DecimalField(
        max_digits=10, decimal_places=2, required=False, allow_null=True
    )
    payment_method = serializers.ChoiceField(
        choices=PAYMENT_METHOD_CHOICES, required=False, allow_blank=True, default=""
    )
