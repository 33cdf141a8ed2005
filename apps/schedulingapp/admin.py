# apps/schedulingapp/admin.py
from django.contrib import admin
from django.utils.translation import gettext_lazy as _

from apps.schedulingapp.models import Event, Participant, SlotResponse


class ParticipantInline(admin.TabularInline):
    model = Participant
    extra = 0
    readonly_fields = ["identity_key", "submitted_at"]


@admin.register(Event)
class EventAdmin(admin.ModelAdmin):
    """Admin configuration for events"""

    list_display = [
        "title",
        "start_date",
        "end_date",
        "start_hour",
        "end_hour",
        "duration_minutes",
        "status",
        "created_by",
        "created_at",
    ]
    list_filter = ["status", "start_date"]
    search_fields = ["title", "created_by"]
    readonly_fields = ["id", "created_at"]
    inlines = [ParticipantInline]

    fieldsets = (
        (None, {"fields": ("id", "title", "description", "created_by", "status")}),
        (
            _("Window"),
            {"fields": ("start_date", "end_date", "start_hour", "end_hour", "duration_minutes")},
        ),
        (_("Timestamps"), {"fields": ("created_at",)}),
    )


@admin.register(Participant)
class ParticipantAdmin(admin.ModelAdmin):
    list_display = ["display_name", "identity_key", "event", "response_count", "submitted_at"]
    search_fields = ["display_name", "identity_key", "event__title"]
    readonly_fields = ["id", "submitted_at"]

    def response_count(self, obj):
        return obj.responses.count()

    response_count.short_description = _("Responses")


@admin.register(SlotResponse)
class SlotResponseAdmin(admin.ModelAdmin):
    list_display = ["slot_id", "participant", "event", "available", "created_at"]
    list_filter = ["available"]
    search_fields = ["slot_id", "participant__display_name"]
