"""
Calendar sources

Busy-interval providers used to pre-fill a participant's availability. The
Google implementation reads the Calendar v3 events endpoint with an OAuth
access token supplied by the client; obtaining that token is outside this
service.
"""

import logging
from datetime import date, datetime
from typing import Any, Dict, Iterable, List, Optional
from urllib.parse import quote

import requests
from django.conf import settings
from django.utils.dateparse import parse_date, parse_datetime

from algorithms.availability.conflict_detector import BusyInterval
from core.exceptions import CalendarSourceUnavailable

logger = logging.getLogger(__name__)

DEFAULT_CALENDAR_ID = "primary"
MAX_PAGES = 10


def _parse(parser, value):
    try:
        return parser(value) if value else None
    except ValueError:
        return None


class BaseCalendarSource:
    """Interface for busy-interval providers."""

    def get_busy_intervals(
        self, identity: Optional[str], start: datetime, end: datetime
    ) -> List[BusyInterval]:
        """
        Return busy intervals overlapping [start, end).

        Raises:
            CalendarSourceUnavailable: the intervals could not be retrieved
        """
        raise NotImplementedError


class StaticCalendarSource(BaseCalendarSource):
    """Serves a fixed list of intervals, regardless of identity."""

    def __init__(self, intervals: Iterable[BusyInterval]):
        self.intervals = list(intervals)

    def get_busy_intervals(self, identity, start, end):
        return list(self.intervals)


class GoogleCalendarSource(BaseCalendarSource):
    """
    Client for the Google Calendar v3 events list.

    The identity passed to ``get_busy_intervals`` is used as the calendar id
    (an email address for a user's own calendar); ``primary`` when empty.
    """

    def __init__(self, access_token: str, base_url: Optional[str] = None, timeout=None):
        config = getattr(settings, "CALENDAR_SOURCE", {})
        self.access_token = access_token
        self.base_url = (base_url or config.get("BASE_URL", "")).rstrip("/")
        self.timeout = timeout or config.get("TIMEOUT", 10)
        self.max_results = config.get("MAX_RESULTS", 250)

    def _events_url(self, calendar_id: str) -> str:
        return f"{self.base_url}/calendars/{quote(calendar_id, safe='')}/events"

    def _fetch_page(self, url: str, params: Dict[str, Any]) -> Dict[str, Any]:
        headers = {
            "Authorization": f"Bearer {self.access_token}",
            "Accept": "application/json",
        }

        try:
            response = requests.get(url, params=params, headers=headers, timeout=self.timeout)
        except requests.RequestException as e:
            logger.error(f"Calendar request failed: {e}")
            raise CalendarSourceUnavailable(errors={"reason": str(e)}) from e

        if response.status_code != 200:
            logger.error(f"Calendar API returned {response.status_code}: {response.text[:200]}")
            raise CalendarSourceUnavailable(errors={"status": response.status_code})

        try:
            payload = response.json()
        except ValueError as e:
            logger.error(f"Calendar API returned invalid JSON: {e}")
            raise CalendarSourceUnavailable(errors={"reason": "invalid response body"}) from e

        if not isinstance(payload, dict):
            raise CalendarSourceUnavailable(errors={"reason": "unexpected response body"})
        return payload

    def get_busy_intervals(self, identity, start, end):
        calendar_id = identity or DEFAULT_CALENDAR_ID
        url = self._events_url(calendar_id)
        params = {
            "timeMin": start.isoformat(),
            "timeMax": end.isoformat(),
            "singleEvents": "true",
            "showDeleted": "false",
            "orderBy": "startTime",
            "maxResults": self.max_results,
        }

        intervals = []
        for _page in range(MAX_PAGES):
            payload = self._fetch_page(url, params)
            for item in payload.get("items", []):
                interval = self.parse_event(item)
                if interval is not None:
                    intervals.append(interval)

            page_token = payload.get("nextPageToken")
            if not page_token:
                break
            params["pageToken"] = page_token
        else:
            logger.warning(f"Stopped reading calendar {calendar_id} after {MAX_PAGES} pages")

        logger.info(f"Fetched {len(intervals)} busy intervals from calendar {calendar_id}")
        return intervals

    @staticmethod
    def parse_event(item: Dict[str, Any]) -> Optional[BusyInterval]:
        """
        Convert one Calendar API event into a BusyInterval.

        Timed events carry ``dateTime`` boundaries, all-day events carry
        ``date`` boundaries with an exclusive end date. Events without usable
        boundaries are skipped.
        """
        start = item.get("start") or {}
        end = item.get("end") or {}
        cancelled = item.get("status") == "cancelled"

        if start.get("dateTime"):
            start_value = _parse(parse_datetime, start["dateTime"])
            end_value = _parse(parse_datetime, end.get("dateTime"))
            if start_value is None or end_value is None:
                logger.warning(f"Skipping calendar event {item.get('id')} with unparsable times")
                return None
            return BusyInterval(start_value, end_value, cancelled=cancelled)

        if start.get("date"):
            start_day: Optional[date] = _parse(parse_date, start["date"])
            end_day = _parse(parse_date, end.get("date"))
            if start_day is None:
                logger.warning(f"Skipping calendar event {item.get('id')} with unparsable date")
                return None
            return BusyInterval(start_day, end_day, cancelled=cancelled, all_day=True)

        logger.warning(f"Skipping calendar event {item.get('id')} without start time")
        return None
