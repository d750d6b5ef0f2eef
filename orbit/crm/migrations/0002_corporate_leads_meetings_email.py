# Generated manually for corporate leads, meetings and email history

import django.core.validators
import django.db.models.deletion
from decimal import Decimal
from django.conf import settings
from django.db import migrations, models


SOURCE_CHOICES = [
    ("website", "Website"),
    ("social_media", "Social Media"),
    ("referral", "Referral"),
    ("walk_in", "Walk In"),
    ("campaign", "Campaign"),
    ("other", "Other"),
]

PRIORITY_CHOICES = [("low", "Low"), ("medium", "Medium"), ("high", "High")]


def _user_fk(related_name):
    return models.ForeignKey(
        blank=True,
        null=True,
        on_delete=django.db.models.deletion.SET_NULL,
        related_name=related_name,
        to=settings.AUTH_USER_MODEL,
    )


class Migration(migrations.Migration):

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
        ("academics", "0005_backfill_student_names"),
        ("crm", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="CorporateLead",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("company_name", models.CharField(max_length=255)),
                ("contact_person", models.CharField(max_length=255)),
                ("designation", models.CharField(blank=True, max_length=100)),
                ("email", models.EmailField(blank=True, max_length=254)),
                ("phone", models.CharField(max_length=20)),
                ("industry", models.CharField(blank=True, max_length=100)),
                ("employee_count", models.PositiveIntegerField(blank=True, null=True)),
                ("requirements", models.TextField(blank=True)),
                ("source", models.CharField(choices=SOURCE_CHOICES, default="website", max_length=20)),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("new", "New"),
                            ("contacted", "Contacted"),
                            ("proposal_sent", "Proposal Sent"),
                            ("negotiation", "Negotiation"),
                            ("won", "Won"),
                            ("lost", "Lost"),
                        ],
                        default="new",
                        max_length=20,
                    ),
                ),
                ("priority", models.CharField(choices=PRIORITY_CHOICES, default="medium", max_length=10)),
                (
                    "estimated_value",
                    models.DecimalField(
                        decimal_places=2,
                        default=Decimal("0.00"),
                        max_digits=12,
                        validators=[django.core.validators.MinValueValidator(0)],
                    ),
                ),
                ("notes", models.TextField(blank=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("consultant", _user_fk("corporate_leads")),
                ("created_by", _user_fk("created_corporate_leads")),
                ("updated_by", _user_fk("updated_corporate_leads")),
            ],
            options={
                "db_table": "corporate_leads",
                "ordering": ["-created_at"],
            },
        ),
        migrations.CreateModel(
            name="Meeting",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("title", models.CharField(max_length=255)),
                ("meeting_date", models.DateTimeField()),
                ("duration", models.PositiveIntegerField(default=30, help_text="Minutes")),
                ("location", models.CharField(blank=True, max_length=255)),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("scheduled", "Scheduled"),
                            ("completed", "Completed"),
                            ("cancelled", "Cancelled"),
                            ("rescheduled", "Rescheduled"),
                        ],
                        default="scheduled",
                        max_length=20,
                    ),
                ),
                ("notes", models.TextField(blank=True)),
                ("outcome", models.TextField(blank=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("assigned_to", _user_fk("assigned_meetings")),
                ("created_by", _user_fk("created_meetings")),
                ("updated_by", _user_fk("updated_meetings")),
                (
                    "lead",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="meetings",
                        to="crm.lead",
                    ),
                ),
                (
                    "corporate_lead",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="meetings",
                        to="crm.corporatelead",
                    ),
                ),
            ],
            options={
                "db_table": "crm_meetings",
                "ordering": ["meeting_date"],
            },
        ),
        migrations.CreateModel(
            name="EmailTemplate",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("name", models.CharField(max_length=255, unique=True)),
                (
                    "category",
                    models.CharField(
                        choices=[
                            ("general", "General"),
                            ("lead", "Lead"),
                            ("student", "Student"),
                            ("invoice", "Invoice"),
                            ("schedule", "Schedule"),
                        ],
                        default="general",
                        max_length=20,
                    ),
                ),
                ("subject", models.CharField(max_length=255)),
                ("body", models.TextField()),
                ("active", models.BooleanField(default=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("created_by", _user_fk("created_email_templates")),
            ],
            options={
                "db_table": "email_templates",
                "ordering": ["name"],
            },
        ),
        migrations.CreateModel(
            name="EmailLog",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("recipient", models.TextField(help_text="Comma-separated addresses")),
                ("subject", models.CharField(max_length=255)),
                ("body", models.TextField()),
                (
                    "status",
                    models.CharField(choices=[("sent", "Sent"), ("failed", "Failed")], default="sent", max_length=10),
                ),
                ("error", models.TextField(blank=True)),
                ("sent_at", models.DateTimeField(auto_now_add=True)),
                (
                    "template",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="emails",
                        to="crm.emailtemplate",
                    ),
                ),
                (
                    "lead",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="emails",
                        to="crm.lead",
                    ),
                ),
                (
                    "student",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="emails",
                        to="academics.student",
                    ),
                ),
                ("sent_by", _user_fk("sent_emails")),
            ],
            options={
                "db_table": "email_history",
                "ordering": ["-sent_at"],
                "indexes": [models.Index(fields=["status"], name="email_status_idx")],
            },
        ),
    ]
