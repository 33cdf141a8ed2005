# apps/schedulingapp/tests/test_services.py
import uuid
from datetime import date, datetime
from unittest.mock import MagicMock, patch

import requests
from django.core.cache import cache
from django.db import DatabaseError
from django.test import SimpleTestCase, TestCase

from algorithms.availability.conflict_detector import BusyInterval
from apps.schedulingapp.models import Event, Participant, SlotResponse
from apps.schedulingapp.services.aggregation_service import AggregationService
from apps.schedulingapp.services.calendar_source import (
    GoogleCalendarSource,
    StaticCalendarSource,
)
from apps.schedulingapp.services.response_reconciler import ResponseReconciler
from apps.schedulingapp.services.scheduling_service import SchedulingService
from core.exceptions import (
    CalendarSourceUnavailable,
    ResourceNotFoundException,
    StorageException,
    ValidationException,
)

SLOT_1 = "2024-01-01-09:00"
SLOT_2 = "2024-01-01-10:00"
SLOT_3 = "2024-01-02-09:00"
SLOT_4 = "2024-01-02-10:00"
ALL_SLOTS = [SLOT_1, SLOT_2, SLOT_3, SLOT_4]


def create_event(**kwargs):
    fields = {
        "title": "Planning",
        "start_date": date(2024, 1, 1),
        "end_date": date(2024, 1, 2),
        "start_hour": 9,
        "end_hour": 11,
    }
    fields.update(kwargs)
    return Event.objects.create(**fields)


def stored_map(participant):
    return dict(
        SlotResponse.objects.filter(participant=participant).values_list("slot_id", "available")
    )


class ResponseReconcilerTest(TestCase):
    """Test cases for the ResponseReconciler"""

    def setUp(self):
        """Set up test data"""
        self.event = create_event()

    def test_first_submission_creates_participant(self):
        """Test a new identity is registered with its responses"""
        result = ResponseReconciler.submit(
            self.event.id, "alice@example.com", "Alice", {SLOT_1: True, SLOT_2: False}
        )

        self.assertTrue(result.created)
        self.assertEqual(result.participant.display_name, "Alice")
        self.assertEqual(result.stored_availability, {SLOT_1: True, SLOT_2: False})
        self.assertEqual(stored_map(result.participant), {SLOT_1: True, SLOT_2: False})

    def test_resubmission_is_idempotent(self):
        """Test the same map twice keeps one participant and no duplicate rows"""
        availability = {SLOT_1: True, SLOT_2: True, SLOT_3: False}

        first = ResponseReconciler.submit(self.event, "alice@example.com", "Alice", availability)
        second = ResponseReconciler.submit(self.event, "alice@example.com", "Alice", availability)

        self.assertFalse(second.created)
        self.assertEqual(first.participant.id, second.participant.id)
        self.assertEqual(Participant.objects.filter(event=self.event).count(), 1)
        self.assertEqual(SlotResponse.objects.filter(event=self.event).count(), 3)

    def test_resubmission_replaces_previous_answers(self):
        """Test stale answers are removed, not merged"""
        participant = ResponseReconciler.submit(
            self.event, "alice@example.com", "Alice", {SLOT_1: True}
        ).participant

        ResponseReconciler.submit(
            self.event, "alice@example.com", "Alice", {SLOT_1: False, SLOT_2: True}
        )

        self.assertEqual(stored_map(participant), {SLOT_1: False, SLOT_2: True})

    def test_resubmission_updates_display_name(self):
        """Test the latest display name wins"""
        ResponseReconciler.submit(self.event, "alice@example.com", "Alice", {SLOT_1: True})
        result = ResponseReconciler.submit(self.event, "alice@example.com", "Alice B.", {})

        result.participant.refresh_from_db()
        self.assertEqual(result.participant.display_name, "Alice B.")

    def test_empty_map_clears_responses(self):
        """Test an empty submission leaves a participant with no answers"""
        ResponseReconciler.submit(self.event, "alice@example.com", "Alice", {SLOT_1: True})
        result = ResponseReconciler.submit(self.event, "alice@example.com", "Alice", {})

        self.assertEqual(result.responses, [])
        self.assertTrue(Participant.objects.filter(id=result.participant.id).exists())
        self.assertEqual(stored_map(result.participant), {})

    def test_non_boolean_value_rejected(self):
        """Test truthy strings and numbers are not accepted"""
        for value in ("true", 1, None):
            with self.assertRaises(ValidationException) as ctx:
                ResponseReconciler.submit(
                    self.event, "alice@example.com", "Alice", {SLOT_1: True, SLOT_2: value}
                )
            self.assertIn(SLOT_2, ctx.exception.errors)

        self.assertFalse(Participant.objects.exists())
        self.assertFalse(SlotResponse.objects.exists())

    def test_rejected_resubmission_keeps_previous_answers(self):
        """Test a failed validation has no side effects"""
        participant = ResponseReconciler.submit(
            self.event, "alice@example.com", "Alice", {SLOT_1: True}
        ).participant

        with self.assertRaises(ValidationException):
            ResponseReconciler.submit(self.event, "alice@example.com", "Alice", {SLOT_2: "yes"})

        self.assertEqual(stored_map(participant), {SLOT_1: True})

    def test_slot_outside_window_rejected(self):
        """Test slot ids that the event never generated"""
        with self.assertRaises(ValidationException) as ctx:
            ResponseReconciler.submit(
                self.event, "alice@example.com", "Alice", {"2024-01-03-09:00": True}
            )

        self.assertIn("2024-01-03-09:00", ctx.exception.errors)

    def test_malformed_slot_rejected(self):
        """Test ids not in canonical form"""
        with self.assertRaises(ValidationException):
            ResponseReconciler.submit(
                self.event, "alice@example.com", "Alice", {"2024-01-01 09:00": True}
            )

    def test_non_mapping_rejected(self):
        """Test a list instead of an object"""
        with self.assertRaises(ValidationException):
            ResponseReconciler.submit(self.event, "alice@example.com", "Alice", [SLOT_1])

    def test_identity_required(self):
        """Test blank identity and display name"""
        with self.assertRaises(ValidationException):
            ResponseReconciler.submit(self.event, "  ", "Alice", {})
        with self.assertRaises(ValidationException):
            ResponseReconciler.submit(self.event, "alice@example.com", "", {})

    def test_closed_event_rejects_submissions(self):
        """Test completed events do not accept responses"""
        self.event.status = Event.STATUS_COMPLETED
        self.event.save()

        with self.assertRaises(ValidationException):
            ResponseReconciler.submit(self.event.id, "alice@example.com", "Alice", {SLOT_1: True})

    def test_unknown_event(self):
        """Test unknown and malformed event ids"""
        with self.assertRaises(ResourceNotFoundException):
            ResponseReconciler.submit(uuid.uuid4(), "alice@example.com", "Alice", {})
        with self.assertRaises(ResourceNotFoundException):
            ResponseReconciler.submit("not-a-uuid", "alice@example.com", "Alice", {})

    def test_concurrent_create_redirects_to_update(self):
        """Test a unique violation on create falls through to the update path"""
        existing = Participant.objects.create(
            event=self.event, display_name="Alice", identity_key="alice@example.com"
        )
        SlotResponse.objects.create(
            event=self.event, participant=existing, slot_id=SLOT_1, available=True
        )

        real_select_for_update = Participant.objects.select_for_update
        calls = []

        def lookup_misses_first_time(*args, **kwargs):
            calls.append(1)
            if len(calls) == 1:
                return Participant.objects.none()
            return real_select_for_update(*args, **kwargs)

        with patch.object(
            Participant.objects, "select_for_update", side_effect=lookup_misses_first_time
        ):
            result = ResponseReconciler.submit(
                self.event, "alice@example.com", "Alice", {SLOT_2: True}
            )

        self.assertFalse(result.created)
        self.assertEqual(result.participant.id, existing.id)
        self.assertEqual(Participant.objects.filter(event=self.event).count(), 1)
        self.assertEqual(stored_map(existing), {SLOT_2: True})

    def test_storage_failure_raises_and_rolls_back(self):
        """Test database errors surface as StorageException with nothing written"""
        with patch.object(
            SlotResponse.objects, "bulk_create", side_effect=DatabaseError("disk full")
        ):
            with self.assertRaises(StorageException):
                ResponseReconciler.submit(self.event, "alice@example.com", "Alice", {SLOT_1: True})

        self.assertFalse(Participant.objects.exists())

    def test_on_commit_callbacks_run_after_commit(self):
        """Test callbacks fire only for committed submissions"""
        callback = MagicMock()

        with self.captureOnCommitCallbacks(execute=True):
            ResponseReconciler.submit(
                self.event, "alice@example.com", "Alice", {SLOT_1: True}, on_commit=[callback]
            )
        callback.assert_called_once_with()

        failed = MagicMock()
        with self.captureOnCommitCallbacks(execute=True) as callbacks:
            with self.assertRaises(ValidationException):
                ResponseReconciler.submit(
                    self.event, "alice@example.com", "Alice", {SLOT_1: "x"}, on_commit=[failed]
                )
        self.assertEqual(callbacks, [])
        failed.assert_not_called()


class AggregationServiceTest(TestCase):
    """Test cases for the cached aggregation"""

    def setUp(self):
        """Set up test data"""
        cache.clear()
        self.event = create_event()

    def submit(self, identity, availability):
        with self.captureOnCommitCallbacks(execute=True):
            return SchedulingService.submit_availability(
                self.event, identity, identity.split("@")[0], availability
            )

    def test_empty_event(self):
        """Test an event nobody answered"""
        aggregation = AggregationService.get_event_aggregation(self.event)

        self.assertEqual(aggregation.participant_count, 0)
        self.assertEqual(dict(aggregation.stats), {})
        self.assertEqual(AggregationService.get_recommendations(self.event), [])

    def test_aggregation_is_cached(self):
        """Test a second read is served from cache"""
        self.submit("a@example.com", {SLOT_1: True})
        AggregationService.get_event_aggregation(self.event)

        with patch.object(AggregationService, "build") as build:
            aggregation = AggregationService.get_event_aggregation(self.event)

        build.assert_not_called()
        self.assertEqual(aggregation.stats[SLOT_1].available_count, 1)

    def test_submission_invalidates_cache(self):
        """Test committed submissions are visible on the next read"""
        self.submit("a@example.com", {SLOT_1: True})
        self.assertEqual(
            SchedulingService.get_aggregation(self.event)[SLOT_1].available_count, 1
        )

        self.submit("b@example.com", {SLOT_1: True})

        self.assertEqual(
            SchedulingService.get_aggregation(self.event)[SLOT_1].available_count, 2
        )

    def test_rebuild_overlapping_commit_is_not_served_later(self):
        """Test a rebuild that read rows before a commit does not outlive it"""
        self.submit("a@example.com", {SLOT_1: True})
        load_rows = AggregationService.load_rows

        def load_then_commit(event_id):
            rows = load_rows(event_id)
            self.submit("b@example.com", {SLOT_1: True})
            return rows

        with patch.object(AggregationService, "load_rows", side_effect=load_then_commit):
            snapshot = AggregationService.get_event_aggregation(self.event)
        self.assertEqual(snapshot.stats[SLOT_1].available_count, 1)

        aggregation = AggregationService.get_event_aggregation(self.event)
        self.assertEqual(aggregation.participant_count, 2)
        self.assertEqual(aggregation.stats[SLOT_1].available_count, 2)

    def test_invalidate_bumps_generation(self):
        """Test invalidation moves readers to a new cache key"""
        before = AggregationService.cache_key(self.event.id)

        AggregationService.invalidate(self.event.id)
        AggregationService.invalidate(self.event.id)

        self.assertEqual(AggregationService.current_version(self.event.id), 2)
        self.assertNotEqual(AggregationService.cache_key(self.event.id), before)

    def test_participant_delete_invalidates_cache(self):
        """Test the delete signal drops the cached aggregation"""
        result = self.submit("a@example.com", {SLOT_1: True})
        self.submit("b@example.com", {SLOT_1: False})
        self.assertEqual(AggregationService.get_event_aggregation(self.event).participant_count, 2)

        with self.captureOnCommitCallbacks(execute=True):
            result.participant.delete()

        aggregation = AggregationService.get_event_aggregation(self.event)
        self.assertEqual(aggregation.participant_count, 1)
        self.assertEqual(aggregation.stats[SLOT_1].available_count, 0)
        self.assertEqual(aggregation.stats[SLOT_1].unavailable_count, 1)

    def test_analysis(self):
        """Test aggregation, recommendations and statistics together"""
        self.submit("a@example.com", {SLOT_1: True, SLOT_2: True})
        self.submit("b@example.com", {SLOT_1: True, SLOT_2: False})

        analysis = AggregationService.get_analysis(self.event, k=1)

        self.assertEqual(analysis["event_id"], str(self.event.id))
        self.assertEqual([s["slot_id"] for s in analysis["recommendations"]], [SLOT_1])
        self.assertEqual(analysis["recommendations"][0]["ratio"], 1.0)
        self.assertEqual(len(analysis["aggregation"]), 2)
        self.assertEqual(analysis["statistics"]["best_time_slot"], SLOT_1)
        self.assertEqual(analysis["statistics"]["participant_count"], 2)

    def test_participant_summary(self):
        """Test per-participant rates with display names"""
        self.submit("a@example.com", {SLOT_1: True, SLOT_2: True})
        self.submit("b@example.com", {SLOT_1: True, SLOT_2: False})

        summary = AggregationService.get_participant_summary(self.event)

        self.assertEqual(summary["participant_count"], 2)
        rates = {row["display_name"]: row["availability_rate"] for row in summary["participants"]}
        self.assertEqual(rates, {"a": 100, "b": 50})
        self.assertEqual(summary["average_availability_rate"], 75)


class SchedulingServiceTest(TestCase):
    """Test cases for the SchedulingService"""

    def setUp(self):
        """Set up test data"""
        cache.clear()
        self.event = create_event()

    def test_end_to_end(self):
        """Test slots, three participants, aggregation and the top recommendation"""
        self.assertEqual(SchedulingService.generate_slots(self.event), ALL_SLOTS)

        with self.captureOnCommitCallbacks(execute=True):
            SchedulingService.submit_availability(
                self.event, "p1@example.com", "P1", {slot: True for slot in ALL_SLOTS}
            )
            SchedulingService.submit_availability(
                self.event,
                "p2@example.com",
                "P2",
                {SLOT_1: True, SLOT_2: False, SLOT_3: False, SLOT_4: False},
            )
            SchedulingService.submit_availability(
                self.event, "p3@example.com", "P3", {slot: False for slot in ALL_SLOTS}
            )

        stats = SchedulingService.get_aggregation(self.event)[SLOT_1]
        self.assertEqual(stats.available_count, 2)
        self.assertEqual(stats.unavailable_count, 1)
        self.assertEqual(stats.total_responses, 3)

        self.assertEqual(SchedulingService.get_recommendations(self.event, 1), [SLOT_1])
        self.assertEqual(
            SchedulingService.get_recommendations(self.event),
            [SLOT_1, SLOT_2, SLOT_3, SLOT_4],
        )

    def test_validate_window(self):
        """Test strict window validation"""
        slots = SchedulingService.validate_window(date(2024, 1, 1), date(2024, 1, 1), 9, 10, 30)
        self.assertEqual(slots, [SLOT_1])

        with self.assertRaises(ValidationException):
            SchedulingService.validate_window(date(2024, 1, 2), date(2024, 1, 1), 9, 10)
        with self.assertRaises(ValidationException):
            SchedulingService.validate_window(date(2024, 1, 1), date(2024, 1, 1), 10, 9)
        with self.assertRaises(ValidationException):
            SchedulingService.validate_window(date(2024, 1, 1), date(2024, 1, 1), 9, 10, 0)

    def test_calendar_availability(self):
        """Test busy intervals mark overlapping slots unavailable"""
        source = StaticCalendarSource(
            [
                BusyInterval(datetime(2024, 1, 1, 10, 0), datetime(2024, 1, 1, 11, 0)),
                BusyInterval(datetime(2024, 1, 2, 9, 0), datetime(2024, 1, 2, 12, 0), cancelled=True),
            ]
        )

        resolution = SchedulingService.resolve_calendar_availability(self.event, source)

        self.assertFalse(resolution.degraded)
        self.assertEqual(
            resolution.availability,
            {SLOT_1: True, SLOT_2: False, SLOT_3: True, SLOT_4: True},
        )

    def test_calendar_failure_fails_closed(self):
        """Test an unreachable calendar marks every slot unavailable"""
        source = MagicMock()
        source.get_busy_intervals.side_effect = CalendarSourceUnavailable()

        resolution = SchedulingService.resolve_calendar_availability(
            self.event, source, "alice@example.com"
        )

        self.assertTrue(resolution.degraded)
        self.assertIsInstance(resolution.error, CalendarSourceUnavailable)
        self.assertEqual(resolution.availability, {slot: False for slot in ALL_SLOTS})
        self.assertTrue(resolution.to_dict()["degraded"])

    def test_calendar_resolution_writes_nothing(self):
        """Test calendar import only suggests availability"""
        SchedulingService.resolve_calendar_availability(self.event, StaticCalendarSource([]))

        self.assertFalse(Participant.objects.exists())

    def test_calendar_window_covers_event(self):
        """Test the query range spans the window plus one meeting"""
        start, end = SchedulingService.calendar_window(self.event)

        self.assertEqual(start.isoformat(), "2024-01-01T00:00:00+00:00")
        self.assertEqual(end.isoformat(), "2024-01-03T01:00:00+00:00")


class GoogleCalendarSourceTest(SimpleTestCase):
    """Test cases for the Google Calendar client"""

    def setUp(self):
        """Set up test data"""
        self.source = GoogleCalendarSource("token-123")
        self.start = datetime(2024, 1, 1)
        self.end = datetime(2024, 1, 3)

    def mock_response(self, status_code=200, payload=None):
        response = MagicMock()
        response.status_code = status_code
        response.text = ""
        response.json.return_value = payload if payload is not None else {}
        return response

    @patch("apps.schedulingapp.services.calendar_source.requests.get")
    def test_parses_events(self, mock_get):
        """Test timed, all-day and cancelled events"""
        mock_get.return_value = self.mock_response(
            payload={
                "items": [
                    {
                        "id": "1",
                        "status": "confirmed",
                        "start": {"dateTime": "2024-01-01T10:00:00+00:00"},
                        "end": {"dateTime": "2024-01-01T11:00:00+00:00"},
                    },
                    {
                        "id": "2",
                        "status": "cancelled",
                        "start": {"dateTime": "2024-01-01T12:00:00+00:00"},
                        "end": {"dateTime": "2024-01-01T13:00:00+00:00"},
                    },
                    {"id": "3", "start": {"date": "2024-01-02"}, "end": {"date": "2024-01-03"}},
                    {"id": "4", "start": {}},
                ]
            }
        )

        intervals = self.source.get_busy_intervals("alice@example.com", self.start, self.end)

        self.assertEqual(len(intervals), 3)
        self.assertFalse(intervals[0].cancelled)
        self.assertEqual(intervals[0].start.hour, 10)
        self.assertTrue(intervals[1].cancelled)
        self.assertTrue(intervals[2].all_day)
        self.assertEqual(intervals[2].start, date(2024, 1, 2))
        self.assertEqual(intervals[2].end, date(2024, 1, 3))

        args, kwargs = mock_get.call_args
        self.assertEqual(args[0], "https://calendar.test/v3/calendars/alice%40example.com/events")
        self.assertEqual(kwargs["params"]["singleEvents"], "true")
        self.assertEqual(kwargs["params"]["showDeleted"], "false")
        self.assertEqual(kwargs["params"]["orderBy"], "startTime")
        self.assertEqual(kwargs["headers"]["Authorization"], "Bearer token-123")
        self.assertEqual(kwargs["timeout"], 1)

    @patch("apps.schedulingapp.services.calendar_source.requests.get")
    def test_primary_calendar_by_default(self, mock_get):
        """Test no identity reads the primary calendar"""
        mock_get.return_value = self.mock_response(payload={"items": []})

        self.source.get_busy_intervals(None, self.start, self.end)

        self.assertTrue(mock_get.call_args[0][0].endswith("/calendars/primary/events"))

    @patch("apps.schedulingapp.services.calendar_source.requests.get")
    def test_follows_pages(self, mock_get):
        """Test nextPageToken pagination"""
        event = {
            "start": {"dateTime": "2024-01-01T10:00:00+00:00"},
            "end": {"dateTime": "2024-01-01T11:00:00+00:00"},
        }
        mock_get.side_effect = [
            self.mock_response(payload={"items": [event], "nextPageToken": "next"}),
            self.mock_response(payload={"items": [event]}),
        ]

        intervals = self.source.get_busy_intervals(None, self.start, self.end)

        self.assertEqual(len(intervals), 2)
        self.assertEqual(mock_get.call_args[1]["params"]["pageToken"], "next")

    @patch("apps.schedulingapp.services.calendar_source.requests.get")
    def test_http_error_raises(self, mock_get):
        """Test non-200 responses"""
        mock_get.return_value = self.mock_response(status_code=401)

        with self.assertRaises(CalendarSourceUnavailable):
            self.source.get_busy_intervals(None, self.start, self.end)

    @patch("apps.schedulingapp.services.calendar_source.requests.get")
    def test_timeout_raises(self, mock_get):
        """Test transport failures"""
        mock_get.side_effect = requests.Timeout("timed out")

        with self.assertRaises(CalendarSourceUnavailable):
            self.source.get_busy_intervals(None, self.start, self.end)

    @patch("apps.schedulingapp.services.calendar_source.requests.get")
    def test_invalid_json_raises(self, mock_get):
        """Test unreadable bodies"""
        response = self.mock_response()
        response.json.side_effect = ValueError("no json")
        mock_get.return_value = response

        with self.assertRaises(CalendarSourceUnavailable):
            self.source.get_busy_intervals(None, self.start, self.end)
