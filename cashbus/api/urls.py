"""
CashBus API URL Configuration

RESTful API routes using DRF routers.
"""

from django.urls import path, include
from rest_framework.routers import DefaultRouter

from .views import ClaimViewSet, CompensationQuoteView, HealthCheckView, IncidentViewSet

router = DefaultRouter()
router.register(r"incidents", IncidentViewSet, basename="incident")
router.register(r"claims", ClaimViewSet, basename="claim")

urlpatterns = [
    path("compensation/quote/", CompensationQuoteView.as_view(), name="compensation-quote"),
    path("health/", HealthCheckView.as_view(), name="api-health"),
    path("", include(router.urls)),
]
