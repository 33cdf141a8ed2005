"""
Busy-interval conflict detection.

This module decides whether a participant is free for a proposed meeting
starting at a candidate slot, given the busy intervals imported from their
external calendar. It performs no I/O: callers fetch the intervals and, when
that fetch fails, use ``ConflictDetector.fail_closed`` instead of calling the
resolver with partial data.
"""

import logging
from datetime import date, datetime, time, timedelta
from typing import Dict, Iterable, List, Optional, Union

from django.utils import timezone

from .slot_generator import slot_start

logger = logging.getLogger(__name__)


class TimeRange:
    """Represents a half-open time range [start, end)."""

    def __init__(self, start: datetime, end: datetime):
        """
        Initialize a time range.

        Args:
            start: Start of the range (inclusive)
            end: End of the range (exclusive)
        """
        self.start = start
        self.end = end

    def __str__(self) -> str:
        """Return string representation."""
        return f"{self.start.strftime('%Y-%m-%d %H:%M')} - {self.end.strftime('%Y-%m-%d %H:%M')}"

    def __repr__(self) -> str:
        return f"TimeRange({self.start!r}, {self.end!r})"

    def overlaps(self, other: "TimeRange") -> bool:
        """
        Check if this time range overlaps with another.

        Ranges that only touch at a boundary do not overlap.
        """
        return (self.start < other.end) and (other.start < self.end)

    @staticmethod
    def for_meeting(slot_id: str, duration_minutes: int) -> "TimeRange":
        """
        Build the interval actually occupied by a meeting starting at a slot.

        The meeting may run past the slot's own one-hour bucket when the
        duration exceeds sixty minutes.
        """
        start = slot_start(slot_id)
        return TimeRange(start, start + timedelta(minutes=duration_minutes))

class BusyInterval:
    """A period during which a participant is occupied."""

    def __init__(
        self,
        start: Union[datetime, date],
        end: Union[datetime, date, None] = None,
        cancelled: bool = False,
        all_day: bool = False,
    ):
        self.start = start
        self.end = end
        self.cancelled = cancelled
        self.all_day = all_day

    def __repr__(self) -> str:
        flags = []
        if self.cancelled:
            flags.append("cancelled")
        if self.all_day:
            flags.append("all_day")
        return f"BusyInterval({self.start!r}, {self.end!r}{', ' + ', '.join(flags) if flags else ''})"

    def __eq__(self, other) -> bool:
        if not isinstance(other, BusyInterval):
            return NotImplemented
        return (
            self.start == other.start
            and self.end == other.end
            and self.cancelled == other.cancelled
            and self.all_day == other.all_day
        )

    def to_time_range(self, tz=None) -> Optional[TimeRange]:
        """
        Convert to a naive wall-clock ``TimeRange`` comparable with slots.

        All-day intervals cover whole days starting at midnight. An all-day
        end date is exclusive, and a single-day interval always covers at
        least [date 00:00, date+1 00:00). Aware datetimes are converted to
        ``tz`` (the project default timezone when omitted).

        Returns:
            The range, or None if the interval is empty or malformed
        """
        if self.all_day:
            first_day = _as_date(self.start, tz)
            last_day = _as_date(self.end, tz) if self.end is not None else None
            if first_day is None:
                return None
            if last_day is None or last_day <= first_day:
                last_day = first_day + timedelta(days=1)
            return TimeRange(
                datetime.combine(first_day, time.min),
                datetime.combine(last_day, time.min),
            )

        start = _as_naive(self.start, tz)
        end = _as_naive(self.end, tz)
        if start is None or end is None or end <= start:
            return None
        return TimeRange(start, end)

def _as_naive(value, tz=None) -> Optional[datetime]:
    if value is None:
        return None
    if not isinstance(value, datetime):
        # A bare date on a timed interval means midnight of that day
        return datetime.combine(value, time.min)
    if timezone.is_aware(value):
        return timezone.make_naive(value, tz or timezone.get_default_timezone())
    return value

def _as_date(value, tz=None) -> Optional[date]:
    if value is None:
        return None
    if isinstance(value, datetime):
        return _as_naive(value, tz).date()
    return value

class ConflictDetector:
    """
    Resolves per-slot availability of one participant against their busy
    intervals.
    """

    def __init__(self, tz=None):
        """
        Args:
            tz: Timezone used to read aware busy datetimes as wall-clock time;
                defaults to the project TIME_ZONE
        """
        self.tz = tz

    def _active_ranges(self, busy_intervals: Iterable[BusyInterval]) -> List[TimeRange]:
        ranges = []
        for interval in busy_intervals:
            if interval.cancelled:
                continue
            time_range = interval.to_time_range(self.tz)
            if time_range is None:
                logger.debug(f"Skipping empty busy interval {interval!r}")
                continue
            ranges.append(time_range)
        return ranges

    def is_slot_available(
        self,
        slot_id: str,
        duration_minutes: int,
        busy_intervals: Iterable[BusyInterval],
    ) -> bool:
        """
        Check whether a meeting starting at ``slot_id`` is free of conflicts.

        Args:
            slot_id: Canonical slot id
            duration_minutes: Meeting length in minutes
            busy_intervals: The participant's busy intervals

        Returns:
            True when no non-cancelled interval overlaps the meeting
        """
        meeting = TimeRange.for_meeting(slot_id, duration_minutes)
        return not any(
            meeting.overlaps(busy) for busy in self._active_ranges(busy_intervals)
        )

    def resolve_availability(
        self,
        slot_ids: Iterable[str],
        duration_minutes: int,
        busy_intervals: Iterable[BusyInterval],
    ) -> Dict[str, bool]:
        """
        Resolve availability for a batch of slots.

        Returns:
            Mapping of slot id to availability, in input order
        """
        busy_ranges = self._active_ranges(busy_intervals)
        availability = {}

        for slot_id in slot_ids:
            meeting = TimeRange.for_meeting(slot_id, duration_minutes)
            availability[slot_id] = not any(
                meeting.overlaps(busy) for busy in busy_ranges
            )

        logger.debug(
            f"Resolved {len(availability)} slots against {len(busy_ranges)} busy intervals"
        )
        return availability

    @staticmethod
    def fail_closed(slot_ids: Iterable[str]) -> Dict[str, bool]:
        """Mark every slot unavailable when busy intervals could not be read."""
        return {slot_id: False for slot_id in slot_ids}
