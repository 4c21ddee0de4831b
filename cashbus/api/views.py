"""
CashBus API Views

Riders see only their own incidents and claims; staff see every claim and
are the only callers allowed to resolve one.
"""

from rest_framework import mixins, status, viewsets
from rest_framework.decorators import action
from rest_framework.exceptions import NotFound, PermissionDenied, ValidationError
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView
from django.conf import settings
from django.utils import timezone
from django.utils.module_loading import import_string

from cashbus.claims.services import (
    open_claim,
    report_incident,
    resolve_claim,
    send_initial_demand_letter,
)
from cashbus.compensation.services import calculate_compensation

from ..models import Claim, Incident, LawsuitDocument, Profile
from .serializers import (
    ClaimCreateSerializer,
    ClaimResolveSerializer,
    ClaimSerializer,
    CompensationQuoteSerializer,
    IncidentSerializer,
)


def get_user_profile(user):
    """Return the claimant profile for a user, or None."""
    return Profile.objects.filter(user=user).first()


def require_profile(user):
    profile = get_user_profile(user)
    if profile is None:
        raise PermissionDenied("No claimant profile associated with user")
    return profile


class CompensationQuoteView(APIView):
    """Price an incident without storing it."""

    permission_classes = [IsAuthenticated]

    def post(self, request):
        serializer = CompensationQuoteSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        breakdown = calculate_compensation(**serializer.validated_data)
        return Response(breakdown.as_dict())


class IncidentViewSet(
    mixins.CreateModelMixin,
    mixins.ListModelMixin,
    mixins.RetrieveModelMixin,
    viewsets.GenericViewSet,
):
    serializer_class = IncidentSerializer
    permission_classes = [IsAuthenticated]

    def get_queryset(self):
        return Incident.objects.filter(profile__user=self.request.user).order_by(
            "-incident_datetime"
        )

    def create(self, request, *args, **kwargs):
        profile = require_profile(request.user)
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        incident = report_incident(profile, user=request.user, **serializer.validated_data)
        return Response(self.get_serializer(incident).data, status=status.HTTP_201_CREATED)


class ClaimViewSet(
    mixins.ListModelMixin,
    mixins.RetrieveModelMixin,
    viewsets.GenericViewSet,
):
    serializer_class = ClaimSerializer
    permission_classes = [IsAuthenticated]

    def get_queryset(self):
        queryset = Claim.objects.select_related("profile").prefetch_related("incidents")
        if self.request.user.is_staff:
            return queryset
        return queryset.filter(profile__user=self.request.user)

    def create(self, request, *args, **kwargs):
        """Open a claim from the rider's incidents and send the demand letter."""
        profile = require_profile(request.user)
        serializer = ClaimCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        ids = serializer.validated_data["incident_ids"]
        incidents = list(Incident.objects.filter(pk__in=ids, profile=profile))
        if len(incidents) != len(set(ids)):
            raise ValidationError({"incident_ids": ["Unknown incident id"]})

        claim = open_claim(
            profile,
            incidents,
            contact_email=serializer.validated_data.get("company_contact_email") or None,
            user=request.user,
        )
        sender = import_string(settings.CASHBUS_NOTIFICATION_SENDER)()
        letter = send_initial_demand_letter(claim, sender)
        claim.refresh_from_db()

        data = ClaimSerializer(claim).data
        data["letter_delivered"] = letter.seeded
        return Response(data, status=status.HTTP_201_CREATED)

    @action(detail=True, methods=["post"])
    def resolve(self, request, pk=None):
        """Stop escalation for a claim (staff only)."""
        if not request.user.is_staff:
            raise PermissionDenied("Only staff can resolve claims")
        claim = self.get_object()
        serializer = ClaimResolveSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        resolve_claim(
            claim,
            serializer.validated_data["resolution"],
            user=request.user,
            amount_received=serializer.validated_data.get("amount_received"),
            payment_method=serializer.validated_data.get("payment_method", ""),
            resolved_at=timezone.now(),
        )
        claim.refresh_from_db()
        return Response(ClaimSerializer(claim).data)

    @action(detail=True, methods=["get"])
    def lawsuit(self, request, pk=None):
        """Return the assembled lawsuit payload for a claim."""
        claim = self.get_object()
        document = LawsuitDocument.objects.filter(claim=claim).first()
        if document is None:
            raise NotFound("No lawsuit document has been assembled for this claim")
        return Response(
            {
                "filename": document.filename,
                "assembled_at": document.assembled_at.isoformat(),
                "document": document.payload,
            }
        )


class HealthCheckView(APIView):
    """API health check endpoint (no auth required)."""

    permission_classes = []

    def get(self, request):
        return Response(
            {
                "status": "healthy",
                "timestamp": timezone.now().isoformat(),
            }
        )
