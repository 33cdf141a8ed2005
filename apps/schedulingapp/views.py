"""
Scheduling app views for MeetPoll
Handles events, participant submissions, calendar import and slot recommendations
"""

from django.conf import settings
from django.db.models import Count
from django_filters.rest_framework import DjangoFilterBackend
from drf_yasg import openapi
from drf_yasg.utils import swagger_auto_schema
from rest_framework import permissions, status, viewsets
from rest_framework.decorators import action
from rest_framework.filters import OrderingFilter
from rest_framework.response import Response

from apps.schedulingapp.filters import EventFilter
from apps.schedulingapp.models import Event
from apps.schedulingapp.serializers import (
    AvailabilitySubmitSerializer,
    CalendarAvailabilitySerializer,
    EventSerializer,
    EventUpdateSerializer,
    ParticipantSerializer,
    RecommendationQuerySerializer,
)
from apps.schedulingapp.services.aggregation_service import AggregationService
from apps.schedulingapp.services.calendar_source import GoogleCalendarSource
from apps.schedulingapp.services.scheduling_service import SchedulingService

k_param = openapi.Parameter(
    "k",
    openapi.IN_QUERY,
    description="Maximum number of recommended slots",
    type=openapi.TYPE_INTEGER,
)


class EventViewSet(viewsets.ModelViewSet):
    """
    API endpoint for meeting polls.

    Besides CRUD on events it exposes:
    - the candidate slots of an event
    - participant submission and listing
    - calendar-based availability suggestions
    - aggregated analysis and ranked recommendations
    """

    queryset = Event.objects.all()
    serializer_class = EventSerializer
    permission_classes = [permissions.AllowAny]
    filter_backends = [DjangoFilterBackend, OrderingFilter]
    filterset_class = EventFilter
    ordering_fields = ["created_at", "start_date", "title"]
    ordering = ["-created_at"]

    def get_queryset(self):
        queryset = super().get_queryset()
        if self.action == "list":
            queryset = queryset.annotate(participant_count=Count("participants"))
        return queryset

    def get_serializer_class(self):
        if self.action in ("update", "partial_update"):
            return EventUpdateSerializer
        return EventSerializer

    def perform_create(self, serializer):
        user = self.request.user
        if user.is_authenticated:
            serializer.save(created_by=user.get_username())
        else:
            serializer.save()

    @swagger_auto_schema(operation_summary="List the candidate slots of an event")
    @action(detail=True, methods=["get"])
    def slots(self, request, pk=None):
        event = self.get_object()
        slot_ids = SchedulingService.generate_slots(event)
        return Response({"event_id": str(event.id), "count": len(slot_ids), "slots": slot_ids})

    @swagger_auto_schema(
        method="post",
        operation_summary="Submit or replace a participant's availability",
        request_body=AvailabilitySubmitSerializer,
        responses={
            201: "Created - first submission for this identity",
            200: "Success - previous submission replaced",
            422: "Validation failed",
        },
    )
    @swagger_auto_schema(method="get", operation_summary="List participants with statistics")
    @action(detail=True, methods=["get", "post"])
    def participants(self, request, pk=None):
        event = self.get_object()

        if request.method == "GET":
            return Response(AggregationService.get_participant_summary(event))

        serializer = AvailabilitySubmitSerializer(data=request.data, context={"request": request})
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        result = SchedulingService.submit_availability(
            event, data["identity_key"], data["display_name"], data["availability"]
        )

        return Response(
            {
                "participant": ParticipantSerializer(result.participant).data,
                "availability": result.stored_availability,
                "created": result.created,
            },
            status=status.HTTP_201_CREATED if result.created else status.HTTP_200_OK,
        )

    @swagger_auto_schema(
        operation_summary="Per-slot aggregation, recommendations and statistics",
        manual_parameters=[k_param],
    )
    @action(detail=True, methods=["get"])
    def analysis(self, request, pk=None):
        event = self.get_object()
        k = self._get_limit(request)
        return Response(AggregationService.get_analysis(event, k))

    @swagger_auto_schema(operation_summary="Ranked slot recommendations", manual_parameters=[k_param])
    @action(detail=True, methods=["get"])
    def recommendations(self, request, pk=None):
        event = self.get_object()
        k = self._get_limit(request)

        aggregation = AggregationService.get_event_aggregation(event)
        ranked = AggregationService.get_recommendations(event, k, aggregation=aggregation)
        n = aggregation.participant_count

        return Response(
            {
                "event_id": str(event.id),
                "participant_count": n,
                "slot_ids": [s.slot_id for s in ranked],
                "recommendations": [s.to_dict(n) for s in ranked],
            }
        )

    @swagger_auto_schema(
        method="post",
        operation_summary="Suggest availability from a Google calendar",
        request_body=CalendarAvailabilitySerializer,
    )
    @action(detail=True, methods=["post"], url_path="calendar-availability")
    def calendar_availability(self, request, pk=None):
        """Nothing is stored; the client submits the returned map if it accepts it"""
        event = self.get_object()

        serializer = CalendarAvailabilitySerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        source = GoogleCalendarSource(serializer.validated_data["access_token"])
        resolution = SchedulingService.resolve_calendar_availability(
            event, source, serializer.validated_data.get("calendar_id") or None
        )
        return Response({"event_id": str(event.id), **resolution.to_dict()})

    @staticmethod
    def _get_limit(request):
        query = RecommendationQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)
        return query.validated_data.get("k", settings.MEETPOLL.get("DEFAULT_RECOMMENDATIONS", 5))
