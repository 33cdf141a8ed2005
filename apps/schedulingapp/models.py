import uuid

from django.db import models
from django.utils import timezone
from django.utils.translation import gettext_lazy as _

from algorithms.availability.slot_generator import SlotGenerator


class Event(models.Model):
    """
    A meeting poll created by a coordinator.

    The date/hour window defines the candidate slots: every hour in
    [start_hour, end_hour) on every date from start_date to end_date
    inclusive. The window is not edited after creation.
    """

    STATUS_ACTIVE = "active"
    STATUS_COMPLETED = "completed"
    STATUS_CANCELLED = "cancelled"

    STATUS_CHOICES = (
        (STATUS_ACTIVE, _("Active")),
        (STATUS_COMPLETED, _("Completed")),
        (STATUS_CANCELLED, _("Cancelled")),
    )

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    title = models.CharField(_("Title"), max_length=200)
    description = models.TextField(_("Description"), blank=True, default="")
    start_date = models.DateField(_("Start Date"))
    end_date = models.DateField(_("End Date"))
    start_hour = models.PositiveSmallIntegerField(_("Start Hour"))
    end_hour = models.PositiveSmallIntegerField(_("End Hour"))
    duration_minutes = models.PositiveIntegerField(_("Meeting Duration (minutes)"), default=60)
    created_by = models.CharField(_("Created By"), max_length=255, default="anonymous")
    status = models.CharField(
        _("Status"), max_length=10, choices=STATUS_CHOICES, default=STATUS_ACTIVE
    )
    created_at = models.DateTimeField(_("Created At"), auto_now_add=True)

    class Meta:
        verbose_name = _("Event")
        verbose_name_plural = _("Events")
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["created_by"], name="scheduling_created_b1c2d3_idx"),
            models.Index(fields=["status"], name="scheduling_status_4e5f6a_idx"),
        ]

    def __str__(self):
        return f"{self.title} ({self.start_date} - {self.end_date})"

    @property
    def is_accepting_responses(self):
        return self.status == self.STATUS_ACTIVE

    def slot_ids(self):
        return SlotGenerator.generate_for_event(self)


class Participant(models.Model):
    """
    One respondent of an event, identified by a stable identity key
    (authenticated user id or email). Resubmissions reuse the same row.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    event = models.ForeignKey(
        Event,
        on_delete=models.CASCADE,
        related_name="participants",
        verbose_name=_("Event"),
    )
    display_name = models.CharField(_("Display Name"), max_length=200)
    identity_key = models.CharField(_("Identity Key"), max_length=255)
    submitted_at = models.DateTimeField(_("Submitted At"), default=timezone.now)

    class Meta:
        verbose_name = _("Participant")
        verbose_name_plural = _("Participants")
        ordering = ["submitted_at"]
        constraints = [
            models.UniqueConstraint(
                fields=["event", "identity_key"], name="unique_participant_identity"
            ),
        ]
        indexes = [
            models.Index(fields=["identity_key"], name="scheduling_identit_7b8c9d_idx"),
        ]

    def __str__(self):
        return f"{self.display_name} → {self.event.title}"


class SlotResponse(models.Model):
    """A participant's yes/no answer for one slot of an event."""

    id = models.BigAutoField(primary_key=True)
    event = models.ForeignKey(
        Event,
        on_delete=models.CASCADE,
        related_name="responses",
        verbose_name=_("Event"),
    )
    participant = models.ForeignKey(
        Participant,
        on_delete=models.CASCADE,
        related_name="responses",
        verbose_name=_("Participant"),
    )
    slot_id = models.CharField(_("Slot"), max_length=16)
    available = models.BooleanField(_("Available"))
    created_at = models.DateTimeField(_("Created At"), default=timezone.now)

    class Meta:
        verbose_name = _("Slot Response")
        verbose_name_plural = _("Slot Responses")
        ordering = ["created_at", "id"]
        constraints = [
            models.UniqueConstraint(
                fields=["participant", "slot_id"], name="unique_participant_slot"
            ),
        ]
        indexes = [
            models.Index(fields=["event", "slot_id"], name="scheduling_event_i_0e1f2a_idx"),
        ]

    def __str__(self):
        state = "available" if self.available else "unavailable"
        return f"{self.slot_id}: {state}"
