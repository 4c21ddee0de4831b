# Generated manually for the initial CashBus schema

import uuid

import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


def timestamp_fields():
    return [
        ("created_at", models.DateTimeField(auto_now_add=True)),
        ("updated_at", models.DateTimeField(auto_now=True)),
    ]


def user_fields():
    return [
        (
            "created_by",
            models.ForeignKey(
                blank=True,
                null=True,
                on_delete=django.db.models.deletion.SET_NULL,
                related_name="%(class)s_created",
                to=settings.AUTH_USER_MODEL,
            ),
        ),
        (
            "updated_by",
            models.ForeignKey(
                blank=True,
                null=True,
                on_delete=django.db.models.deletion.SET_NULL,
                related_name="%(class)s_updated",
                to=settings.AUTH_USER_MODEL,
            ),
        ),
    ]


def pk_field():
    return (
        "id",
        models.BigAutoField(
            auto_created=True, primary_key=True, serialize=False, verbose_name="ID"
        ),
    )


class Migration(migrations.Migration):
    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Profile",
            fields=[
                pk_field(),
                ("full_name", models.CharField(max_length=255)),
                (
                    "id_number",
                    models.CharField(
                        blank=True,
                        help_text="Israeli national id (teudat zehut)",
                        max_length=9,
                    ),
                ),
                ("email", models.EmailField(blank=True, max_length=254)),
                ("phone", models.CharField(blank=True, max_length=20)),
                ("address", models.CharField(blank=True, max_length=255)),
                ("city", models.CharField(blank=True, max_length=100)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                (
                    "user",
                    models.OneToOneField(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="profile",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "verbose_name": "Profile",
                "verbose_name_plural": "Profiles",
            },
        ),
        migrations.CreateModel(
            name="Claim",
            fields=[
                pk_field(),
                *timestamp_fields(),
                (
                    "reference",
                    models.UUIDField(default=uuid.uuid4, editable=False, unique=True),
                ),
                ("operator_id", models.CharField(db_index=True, max_length=50)),
                ("amount", models.DecimalField(decimal_places=2, max_digits=10)),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("submitted", "Submitted"),
                            ("company_review", "Under operator review"),
                            ("approved", "Approved"),
                            ("rejected", "Rejected"),
                            ("paid", "Paid"),
                            ("in_court", "In court"),
                        ],
                        default="submitted",
                        max_length=20,
                    ),
                ),
                ("company_contact_email", models.EmailField(blank=True, max_length=254)),
                ("letter_sent_at", models.DateTimeField(blank=True, null=True)),
                ("company_response_at", models.DateTimeField(blank=True, null=True)),
                (
                    "compensation_received_amount",
                    models.DecimalField(
                        blank=True, decimal_places=2, max_digits=10, null=True
                    ),
                ),
                ("compensation_received_at", models.DateTimeField(blank=True, null=True)),
                (
                    "payment_method",
                    models.CharField(
                        blank=True,
                        choices=[
                            ("bank_transfer", "Bank transfer"),
                            ("check", "Check"),
                            ("cash", "Cash"),
                        ],
                        max_length=20,
                    ),
                ),
                *user_fields(),
                (
                    "profile",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="claims",
                        to="cashbus.profile",
                    ),
                ),
            ],
            options={
                "verbose_name": "Claim",
                "verbose_name_plural": "Claims",
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(
                        fields=["status", "-created_at"], name="claim_status_date_idx"
                    ),
                    models.Index(
                        fields=["profile", "-created_at"], name="claim_profile_date_idx"
                    ),
                ],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(("amount__gte", 0)),
                        name="claim_amount_non_negative",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="Incident",
            fields=[
                pk_field(),
                *timestamp_fields(),
                (
                    "kind",
                    models.CharField(
                        choices=[
                            ("delay", "Delay"),
                            ("no_stop", "Missed stop"),
                            ("no_arrival", "No arrival"),
                        ],
                        max_length=20,
                    ),
                ),
                ("incident_datetime", models.DateTimeField()),
                ("scheduled_time", models.DateTimeField(blank=True, null=True)),
                ("observed_time", models.DateTimeField(blank=True, null=True)),
                ("delay_minutes", models.PositiveIntegerField(blank=True, null=True)),
                ("bus_line", models.CharField(max_length=20)),
                ("station_name", models.CharField(max_length=255)),
                ("operator_id", models.CharField(db_index=True, max_length=50)),
                (
                    "reporter_latitude",
                    models.DecimalField(blank=True, decimal_places=6, max_digits=9, null=True),
                ),
                (
                    "reporter_longitude",
                    models.DecimalField(blank=True, decimal_places=6, max_digits=9, null=True),
                ),
                (
                    "gps_accuracy_meters",
                    models.DecimalField(blank=True, decimal_places=2, max_digits=7, null=True),
                ),
                (
                    "station_latitude",
                    models.DecimalField(blank=True, decimal_places=6, max_digits=9, null=True),
                ),
                (
                    "station_longitude",
                    models.DecimalField(blank=True, decimal_places=6, max_digits=9, null=True),
                ),
                (
                    "damage_type",
                    models.CharField(
                        choices=[
                            ("none", "None"),
                            ("taxi_cost", "Taxi cost"),
                            ("lost_workday", "Lost workday"),
                            ("missed_exam", "Missed exam"),
                            ("medical_appointment", "Missed medical appointment"),
                            ("other", "Other"),
                        ],
                        default="none",
                        max_length=30,
                    ),
                ),
                (
                    "damage_amount",
                    models.DecimalField(blank=True, decimal_places=2, max_digits=10, null=True),
                ),
                ("damage_description", models.TextField(blank=True)),
                (
                    "transit_presence_verified",
                    models.BooleanField(
                        blank=True,
                        help_text="True when the presence check confirmed the bus did not serve the stop",
                        null=True,
                    ),
                ),
                ("receipt_urls", models.JSONField(blank=True, default=list)),
                ("photo_urls", models.JSONField(blank=True, default=list)),
                (
                    "claim",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="incidents",
                        to="cashbus.claim",
                    ),
                ),
                *user_fields(),
                (
                    "profile",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="incidents",
                        to="cashbus.profile",
                    ),
                ),
            ],
            options={
                "verbose_name": "Incident",
                "verbose_name_plural": "Incidents",
                "ordering": ["incident_datetime", "id"],
                "indexes": [
                    models.Index(
                        fields=["profile", "-incident_datetime"],
                        name="incident_profile_date_idx",
                    ),
                    models.Index(
                        fields=["operator_id", "claim"],
                        name="incident_operator_claim_idx",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="ClaimTimeline",
            fields=[
                pk_field(),
                *timestamp_fields(),
                ("initial_letter_sent_at", models.DateTimeField()),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("active", "Active"),
                            ("paid", "Resolved - paid"),
                            ("cancelled", "Resolved - cancelled"),
                            ("escalation_complete", "Escalation complete"),
                        ],
                        default="active",
                        max_length=30,
                    ),
                ),
                (
                    "timezone_name",
                    models.CharField(default="Asia/Jerusalem", max_length=64),
                ),
                ("first_reminder_sent_at", models.DateTimeField(blank=True, null=True)),
                ("escalation_warning_sent_at", models.DateTimeField(blank=True, null=True)),
                ("final_notice_sent_at", models.DateTimeField(blank=True, null=True)),
                ("total_emails_sent", models.PositiveIntegerField(default=0)),
                ("last_email_sent_at", models.DateTimeField(blank=True, null=True)),
                ("version", models.PositiveIntegerField(default=0)),
                ("payment_received_at", models.DateTimeField(blank=True, null=True)),
                ("company_responded", models.BooleanField(default=False)),
                ("company_response_at", models.DateTimeField(blank=True, null=True)),
                ("company_response_details", models.TextField(blank=True)),
                ("lawsuit_filed_at", models.DateTimeField(blank=True, null=True)),
                (
                    "claim",
                    models.OneToOneField(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="timeline",
                        to="cashbus.claim",
                    ),
                ),
                *user_fields(),
            ],
            options={
                "verbose_name": "Claim Timeline",
                "verbose_name_plural": "Claim Timelines",
                "ordering": ["initial_letter_sent_at"],
                "indexes": [
                    models.Index(
                        fields=["status", "initial_letter_sent_at"],
                        name="timeline_status_origin_idx",
                    ),
                ],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(
                            ("escalation_warning_sent_at__isnull", True),
                            models.Q(
                                ("first_reminder_sent_at__isnull", False),
                                (
                                    "first_reminder_sent_at__lte",
                                    models.F("escalation_warning_sent_at"),
                                ),
                            ),
                            _connector="OR",
                        ),
                        name="timeline_warning_after_reminder",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(
                            ("final_notice_sent_at__isnull", True),
                            models.Q(
                                ("escalation_warning_sent_at__isnull", False),
                                (
                                    "escalation_warning_sent_at__lte",
                                    models.F("final_notice_sent_at"),
                                ),
                            ),
                            _connector="OR",
                        ),
                        name="timeline_notice_after_warning",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="EscalationEmail",
            fields=[
                pk_field(),
                (
                    "letter",
                    models.CharField(
                        choices=[
                            ("initial", "Initial demand letter"),
                            ("first_reminder", "Day 7 - first reminder"),
                            ("escalation_warning", "Day 14 - escalation warning"),
                            ("final_notice", "Day 21 - final notice"),
                        ],
                        max_length=30,
                    ),
                ),
                ("recipient", models.EmailField(max_length=254)),
                ("subject", models.CharField(max_length=255)),
                ("delivered", models.BooleanField(default=False)),
                ("provider_message_id", models.CharField(blank=True, max_length=255)),
                ("error", models.TextField(blank=True)),
                ("attempted_at", models.DateTimeField()),
                (
                    "claim",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="emails",
                        to="cashbus.claim",
                    ),
                ),
                (
                    "timeline",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="emails",
                        to="cashbus.claimtimeline",
                    ),
                ),
            ],
            options={
                "verbose_name": "Escalation Email",
                "verbose_name_plural": "Escalation Emails",
                "ordering": ["-attempted_at"],
                "indexes": [
                    models.Index(
                        fields=["claim", "-attempted_at"], name="email_claim_date_idx"
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="LawsuitDocument",
            fields=[
                pk_field(),
                ("payload", models.JSONField(default=dict)),
                ("filename", models.CharField(max_length=255)),
                ("assembled_at", models.DateTimeField()),
                (
                    "claim",
                    models.OneToOneField(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="lawsuit_document",
                        to="cashbus.claim",
                    ),
                ),
            ],
            options={
                "verbose_name": "Lawsuit Document",
                "verbose_name_plural": "Lawsuit Documents",
                "ordering": ["-assembled_at"],
            },
        ),
        migrations.CreateModel(
            name="DomainAuditEvent",
            fields=[
                pk_field(),
                (
                    "action",
                    models.CharField(
                        choices=[
                            ("incident_reported", "Incident Reported"),
                            ("claim_opened", "Claim Opened"),
                            ("demand_letter_sent", "Demand Letter Sent"),
                            ("demand_letter_failed", "Demand Letter Failed"),
                            ("escalation_stage_sent", "Escalation Stage Sent"),
                            ("escalation_delivery_failed", "Escalation Delivery Failed"),
                            ("escalation_conflict", "Escalation Conflict"),
                            ("claim_resolved", "Claim Resolved"),
                            ("company_response_recorded", "Company Response Recorded"),
                            ("lawsuit_assembled", "Lawsuit Assembled"),
                        ],
                        max_length=50,
                    ),
                ),
                ("entity_type", models.CharField(max_length=100)),
                ("entity_id", models.CharField(blank=True, max_length=100, null=True)),
                ("timestamp", models.DateTimeField(auto_now_add=True)),
                ("request_id", models.CharField(blank=True, max_length=64, null=True)),
                ("metadata", models.JSONField(blank=True, default=dict)),
                (
                    "user",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="domain_audit_events",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "verbose_name": "Domain Audit Event",
                "verbose_name_plural": "Domain Audit Events",
                "ordering": ["-timestamp"],
                "indexes": [
                    models.Index(
                        fields=["entity_type", "entity_id", "-timestamp"],
                        name="audit_entity_idx",
                    ),
                    models.Index(
                        fields=["action", "-timestamp"], name="audit_action_date_idx"
                    ),
                ],
            },
        ),
    ]
