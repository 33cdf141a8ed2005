import uuid

import django.db.models.deletion
import django.utils.timezone
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="Event",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("title", models.CharField(max_length=200, verbose_name="Title")),
                ("description", models.TextField(blank=True, default="", verbose_name="Description")),
                ("start_date", models.DateField(verbose_name="Start Date")),
                ("end_date", models.DateField(verbose_name="End Date")),
                ("start_hour", models.PositiveSmallIntegerField(verbose_name="Start Hour")),
                ("end_hour", models.PositiveSmallIntegerField(verbose_name="End Hour")),
                ("duration_minutes", models.PositiveIntegerField(default=60, verbose_name="Meeting Duration (minutes)")),
                ("created_by", models.CharField(default="anonymous", max_length=255, verbose_name="Created By")),
                (
                    "status",
                    models.CharField(
                        choices=[("active", "Active"), ("completed", "Completed"), ("cancelled", "Cancelled")],
                        default="active",
                        max_length=10,
                        verbose_name="Status",
                    ),
                ),
                ("created_at", models.DateTimeField(auto_now_add=True, verbose_name="Created At")),
            ],
            options={
                "verbose_name": "Event",
                "verbose_name_plural": "Events",
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(fields=["created_by"], name="scheduling_created_b1c2d3_idx"),
                    models.Index(fields=["status"], name="scheduling_status_4e5f6a_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="Participant",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("display_name", models.CharField(max_length=200, verbose_name="Display Name")),
                ("identity_key", models.CharField(max_length=255, verbose_name="Identity Key")),
                ("submitted_at", models.DateTimeField(default=django.utils.timezone.now, verbose_name="Submitted At")),
                (
                    "event",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="participants",
                        to="schedulingapp.event",
                        verbose_name="Event",
                    ),
                ),
            ],
            options={
                "verbose_name": "Participant",
                "verbose_name_plural": "Participants",
                "ordering": ["submitted_at"],
                "indexes": [
                    models.Index(fields=["identity_key"], name="scheduling_identit_7b8c9d_idx"),
                ],
                "constraints": [
                    models.UniqueConstraint(fields=("event", "identity_key"), name="unique_participant_identity"),
                ],
            },
        ),
        migrations.CreateModel(
            name="SlotResponse",
            fields=[
                ("id", models.BigAutoField(primary_key=True, serialize=False)),
                ("slot_id", models.CharField(max_length=16, verbose_name="Slot")),
                ("available", models.BooleanField(verbose_name="Available")),
                ("created_at", models.DateTimeField(default=django.utils.timezone.now, verbose_name="Created At")),
                (
                    "event",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="responses",
                        to="schedulingapp.event",
                        verbose_name="Event",
                    ),
                ),
                (
                    "participant",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="responses",
                        to="schedulingapp.participant",
                        verbose_name="Participant",
                    ),
                ),
            ],
            options={
                "verbose_name": "Slot Response",
                "verbose_name_plural": "Slot Responses",
                "ordering": ["created_at", "id"],
                "indexes": [
                    models.Index(fields=["event", "slot_id"], name="scheduling_event_i_0e1f2a_idx"),
                ],
                "constraints": [
                    models.UniqueConstraint(fields=("participant", "slot_id"), name="unique_participant_slot"),
                ],
            },
        ),
    ]
