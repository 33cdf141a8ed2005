# apps/schedulingapp/serializers.py
from django.conf import settings
from django.utils.translation import gettext_lazy as _
from rest_framework import serializers

from algorithms.availability.slot_generator import MAX_HOUR, MIN_HOUR
from apps.schedulingapp.models import Event, Participant
from apps.schedulingapp.services.scheduling_service import SchedulingService


class EventSerializer(serializers.ModelSerializer):
    """Serializer for events; validates the slot window on create"""

    status_display = serializers.CharField(source="get_status_display", read_only=True)
    slot_count = serializers.SerializerMethodField()
    participant_count = serializers.SerializerMethodField()

    class Meta:
        model = Event
        fields = [
            "id",
            "title",
            "description",
            "start_date",
            "end_date",
            "start_hour",
            "end_hour",
            "duration_minutes",
            "created_by",
            "status",
            "status_display",
            "slot_count",
            "participant_count",
            "created_at",
        ]
        read_only_fields = ["id", "status", "created_at"]
        extra_kwargs = {
            "start_hour": {"min_value": MIN_HOUR, "max_value": MAX_HOUR},
            "end_hour": {"min_value": MIN_HOUR, "max_value": MAX_HOUR},
            "duration_minutes": {"min_value": 1, "required": False},
            "created_by": {"required": False},
        }

    def get_slot_count(self, obj):
        return len(obj.slot_ids())

    def get_participant_count(self, obj):
        count = getattr(obj, "participant_count", None)
        if count is None:
            count = obj.participants.count()
        return count

    def validate(self, data):
        """Reject windows that produce no slots"""
        data.setdefault(
            "duration_minutes", settings.MEETPOLL.get("DEFAULT_DURATION_MINUTES", 60)
        )
        SchedulingService.validate_window(
            data["start_date"],
            data["end_date"],
            data["start_hour"],
            data["end_hour"],
            data["duration_minutes"],
        )
        return data


class EventUpdateSerializer(serializers.ModelSerializer):
    """Events keep their window once created; only descriptive fields change"""

    class Meta:
        model = Event
        fields = ["title", "description", "status"]


class ParticipantSerializer(serializers.ModelSerializer):
    class Meta:
        model = Participant
        fields = ["id", "event", "display_name", "submitted_at"]
        read_only_fields = fields


class AvailabilitySubmitSerializer(serializers.Serializer):
    """
    Payload of a participant submission.

    ``availability`` values are passed through unconverted so that only real
    booleans are accepted. Anonymous respondents must give an email, which
    becomes their identity for later resubmissions.
    """

    display_name = serializers.CharField(max_length=200, required=False, allow_blank=True)
    email = serializers.EmailField(max_length=255, required=False)
    availability = serializers.DictField(allow_empty=True)

    def validate(self, data):
        request = self.context.get("request")
        user = getattr(request, "user", None)

        if user is not None and user.is_authenticated:
            data["identity_key"] = str(user.pk)
            if not data.get("display_name"):
                data["display_name"] = user.get_full_name() or user.get_username()
            return data

        email = data.get("email")
        if not email:
            raise serializers.ValidationError(
                {"email": _("Email is required when responding without an account.")}
            )
        if not data.get("display_name"):
            raise serializers.ValidationError({"display_name": _("This field is required.")})

        data["identity_key"] = email.strip().lower()
        return data


class CalendarAvailabilitySerializer(serializers.Serializer):
    access_token = serializers.CharField()
    calendar_id = serializers.CharField(required=False, allow_blank=True)


class RecommendationQuerySerializer(serializers.Serializer):
    k = serializers.IntegerField(required=False, min_value=0)

    def validate_k(self, value):
        limit = settings.MEETPOLL.get("MAX_RECOMMENDATIONS", 50)
        if value > limit:
            raise serializers.ValidationError(
                _("At most %(limit)d recommendations can be requested.") % {"limit": limit}
            )
        return value
