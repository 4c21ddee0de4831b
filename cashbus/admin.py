from django.contrib import admin, messages
from django.utils.html import format_html

from cashbus.claims.services import resolve_claim
from cashbus.constants import TIMELINE_ACTIVE, TIMELINE_CANCELLED, TIMELINE_PAID
from cashbus.lawsuits.services import assemble_lawsuit_for_claim

from .models import (
    Claim,
    ClaimTimeline,
    DomainAuditEvent,
    EscalationEmail,
    Incident,
    LawsuitDocument,
    Profile,
)


@admin.register(Profile)
class ProfileAdmin(admin.ModelAdmin):
    list_display = ("id", "full_name", "email", "city")
    search_fields = ("full_name", "email")


@admin.register(Incident)
class IncidentAdmin(admin.ModelAdmin):
    list_display = (
        "id",
        "profile",
        "kind",
        "operator_id",
        "bus_line",
        "station_name",
        "incident_datetime",
        "claim",
    )
    list_filter = ("kind", "operator_id", "damage_type")
    search_fields = ("bus_line", "station_name", "profile__full_name")
    date_hierarchy = "incident_datetime"


class ClaimTimelineInline(admin.StackedInline):
    model = ClaimTimeline
    extra = 0
    can_delete = False
    readonly_fields = (
        "initial_letter_sent_at",
        "first_reminder_sent_at",
        "escalation_warning_sent_at",
        "final_notice_sent_at",
        "total_emails_sent",
        "last_email_sent_at",
        "version",
        "sending_stage",
        "sending_started_at",
    )


@admin.register(Claim)
class ClaimAdmin(admin.ModelAdmin):
    list_display = (
        "short_reference",
        "profile",
        "operator_id",
        "amount",
        "status",
        "timeline_status_display",
        "created_at",
    )
    list_filter = ("status", "operator_id")
    search_fields = ("profile__full_name", "operator_id")
    date_hierarchy = "created_at"
    readonly_fields = ("reference", "amount")
    inlines = [ClaimTimelineInline]
    actions = ["mark_paid", "mark_cancelled", "assemble_lawsuit"]

    def timeline_status_display(self, obj):
        timeline = getattr(obj, "timeline", None)
        if timeline is None:
            return "-"
        color = "green" if timeline.status == TIMELINE_ACTIVE else "gray"
        return format_html(
            '<span style="color: {}; font-weight: bold;">{}</span>',
            color,
            timeline.get_status_display(),
        )

    timeline_status_display.short_description = "Escalation"

    def _resolve(self, request, queryset, resolution):
        for claim in queryset:
            resolve_claim(claim, resolution, user=request.user)
        self.message_user(request, f"{queryset.count()} claim(s) marked {resolution}")

    @admin.action(description="Mark selected claims as paid")
    def mark_paid(self, request, queryset):
        self._resolve(request, queryset, TIMELINE_PAID)

    @admin.action(description="Cancel escalation for selected claims")
    def mark_cancelled(self, request, queryset):
        self._resolve(request, queryset, TIMELINE_CANCELLED)

    @admin.action(description="Assemble lawsuit documents")
    def assemble_lawsuit(self, request, queryset):
        for claim in queryset.select_related("profile"):
            assemble_lawsuit_for_claim(claim, user=request.user)
        self.message_user(request, "Lawsuit documents assembled", level=messages.SUCCESS)


@admin.register(ClaimTimeline)
class ClaimTimelineAdmin(admin.ModelAdmin):
    list_display = (
        "id",
        "claim",
        "status",
        "initial_letter_sent_at",
        "total_emails_sent",
        "last_email_sent_at",
    )
    list_filter = ("status",)
    date_hierarchy = "initial_letter_sent_at"


@admin.register(EscalationEmail)
class EscalationEmailAdmin(admin.ModelAdmin):
    list_display = ("id", "claim", "letter", "recipient", "delivered", "attempted_at")
    list_filter = ("letter", "delivered")
    search_fields = ("recipient", "subject")


@admin.register(LawsuitDocument)
class LawsuitDocumentAdmin(admin.ModelAdmin):
    list_display = ("id", "claim", "filename", "assembled_at")


@admin.register(DomainAuditEvent)
class DomainAuditEventAdmin(admin.ModelAdmin):
    list_display = ("id", "action", "entity_type", "entity_id", "user", "timestamp")
    list_filter = ("action", "entity_type")
    search_fields = ("entity_id", "request_id")
    readonly_fields = ("metadata",)
