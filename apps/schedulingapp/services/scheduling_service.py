"""
Scheduling service

Entry point used by the API layer. Ties slot generation, calendar conflict
resolution, response reconciliation, aggregation and ranking together for
one event.
"""

import logging
from datetime import datetime, time, timedelta
from typing import Dict, List, Optional, Union

from django.conf import settings
from django.utils import timezone
from django.utils.translation import gettext_lazy as _

from algorithms.analytics.slot_aggregator import SlotStats
from algorithms.availability.conflict_detector import ConflictDetector
from algorithms.availability.slot_generator import InvalidWindowError, SlotGenerator
from core.exceptions import CalendarSourceUnavailable, ValidationException

from ..models import Event
from .aggregation_service import AggregationService
from .calendar_source import BaseCalendarSource
from .response_reconciler import ResponseReconciler, SubmissionResult

logger = logging.getLogger(__name__)


class CalendarResolution:
    """
    Availability derived from a calendar.

    ``degraded`` is set when the calendar could not be read; every slot is
    then reported unavailable and ``error`` holds the cause.
    """

    def __init__(self, availability: Dict[str, bool], degraded: bool = False, error=None):
        self.availability = availability
        self.degraded = degraded
        self.error = error

    def to_dict(self):
        data = {"availability": self.availability, "degraded": self.degraded}
        if self.error is not None:
            data["error"] = str(self.error)
        return data


class SchedulingService:
    @staticmethod
    def validate_window(start_date, end_date, start_hour, end_hour, duration_minutes=None):
        """
        Validate a proposed event window.

        Raises:
            ValidationException: the window yields no slots or the duration is
                not positive
        """
        strict = settings.MEETPOLL.get("STRICT_WINDOW_VALIDATION", True)
        try:
            slots = SlotGenerator.generate(start_date, end_date, start_hour, end_hour, strict=strict)
        except InvalidWindowError as e:
            raise ValidationException(str(e), errors={"window": [str(e)]})

        if duration_minutes is not None and duration_minutes <= 0:
            raise ValidationException(
                _("Meeting duration must be positive."),
                errors={"duration_minutes": ["must be greater than zero"]},
            )
        return slots

    @staticmethod
    def generate_slots(event: Event) -> List[str]:
        return SlotGenerator.generate_for_event(event)

    @staticmethod
    def submit_availability(
        event: Union[Event, str],
        identity_key: str,
        display_name: str,
        availability: Dict[str, bool],
    ) -> SubmissionResult:
        """
        Store a participant's complete availability and drop the event's
        cached aggregation once the write has committed.
        """
        event = ResponseReconciler.get_event(event)
        event_id = event.id
        return ResponseReconciler.submit(
            event,
            identity_key,
            display_name,
            availability,
            on_commit=[lambda: AggregationService.invalidate(event_id)],
        )

    @staticmethod
    def get_aggregation(event: Event) -> Dict[str, SlotStats]:
        return AggregationService.get_event_aggregation(event).stats

    @staticmethod
    def get_recommendations(event: Event, k: Optional[int] = None) -> List[str]:
        if k is None:
            k = settings.MEETPOLL.get("DEFAULT_RECOMMENDATIONS", 5)
        return [s.slot_id for s in AggregationService.get_recommendations(event, k)]

    @staticmethod
    def calendar_window(event: Event):
        """
        Aware datetime range covering every meeting that can start in the
        event window, for querying a calendar.
        """
        tz = timezone.get_default_timezone()
        start = timezone.make_aware(datetime.combine(event.start_date, time.min), tz)
        end = timezone.make_aware(
            datetime.combine(event.end_date + timedelta(days=1), time.min), tz
        )
        return start, end + timedelta(minutes=event.duration_minutes)

    @classmethod
    def resolve_calendar_availability(
        cls,
        event: Event,
        source: BaseCalendarSource,
        identity: Optional[str] = None,
    ) -> CalendarResolution:
        """
        Derive a participant's availability from their calendar.

        Nothing is stored; the result is meant to pre-fill a submission. If
        the calendar cannot be read every slot is reported unavailable.

        Args:
            event: The event
            source: Busy-interval provider
            identity: Calendar identity passed to the source

        Returns:
            CalendarResolution
        """
        slot_ids = cls.generate_slots(event)
        start, end = cls.calendar_window(event)

        try:
            busy_intervals = source.get_busy_intervals(identity, start, end)
        except CalendarSourceUnavailable as e:
            logger.warning(
                f"Calendar unavailable for event {event.id}, marking {len(slot_ids)} slots busy: {e}"
            )
            return CalendarResolution(ConflictDetector.fail_closed(slot_ids), True, e)

        availability = ConflictDetector().resolve_availability(
            slot_ids, event.duration_minutes, busy_intervals
        )
        return CalendarResolution(availability)
