"""
Candidate slot enumeration.

Turns an event's date/hour window into the ordered list of canonical slot
identifiers. A slot id has the fixed form ``"{YYYY-MM-DD}-{HH}:00"`` and is
the only key the rest of the system uses to refer to a candidate time; other
layers must obtain slot ids from this module and never build them by hand.

Dates are plain calendar dates. No timezone conversion happens here, so a
daylight-saving transition never shifts or drops a slot.
"""

import logging
import re
from datetime import date, datetime, time, timedelta
from typing import Any, List, Tuple, Union

logger = logging.getLogger(__name__)

SLOT_ID_PATTERN = re.compile(r"^(\d{4}-\d{2}-\d{2})-(\d{2}):00$")

MIN_HOUR = 0
MAX_HOUR = 23


class InvalidWindowError(ValueError):
    """Raised in strict mode when a window is inverted, empty or out of range."""


class InvalidSlotIdError(ValueError):
    """Raised when a string is not a canonical slot id."""


def _coerce_date(value: Union[date, str]) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value))
    except ValueError as exc:
        raise InvalidWindowError(f"Invalid calendar date: {value!r}") from exc


def _coerce_hour(value: Any) -> int:
    if isinstance(value, bool):
        raise InvalidWindowError(f"Invalid hour: {value!r}")
    try:
        hour = int(value)
    except (TypeError, ValueError) as exc:
        raise InvalidWindowError(f"Invalid hour: {value!r}") from exc
    if hour != value and not isinstance(value, str):
        raise InvalidWindowError(f"Invalid hour: {value!r}")
    return hour


def build_slot_id(slot_date: date, hour: int) -> str:
    """Return the canonical id for ``hour`` on ``slot_date``."""
    return f"{slot_date.isoformat()}-{hour:02d}:00"


def parse_slot_id(slot_id: str) -> Tuple[date, int]:
    """
    Split a canonical slot id into its calendar date and hour.

    Raises:
        InvalidSlotIdError: if ``slot_id`` is not of the form YYYY-MM-DD-HH:00
    """
    match = SLOT_ID_PATTERN.match(slot_id) if isinstance(slot_id, str) else None
    if not match:
        raise InvalidSlotIdError(f"Malformed slot id: {slot_id!r}")

    try:
        slot_date = date.fromisoformat(match.group(1))
    except ValueError as exc:
        raise InvalidSlotIdError(f"Malformed slot id: {slot_id!r}") from exc

    hour = int(match.group(2))
    if hour > MAX_HOUR:
        raise InvalidSlotIdError(f"Hour out of range in slot id: {slot_id!r}")

    return slot_date, hour


def slot_start(slot_id: str) -> datetime:
    """Naive wall-clock datetime at which the slot starts."""
    slot_date, hour = parse_slot_id(slot_id)
    return datetime.combine(slot_date, time(hour=hour))


class SlotGenerator:
    """
    Generates hour-wide candidate slots for a date/hour window.

    Granularity is always one hour regardless of the meeting duration.
    """

    @classmethod
    def generate(
        cls,
        start_date: Union[date, str],
        end_date: Union[date, str],
        start_hour: int,
        end_hour: int,
        strict: bool = False,
    ) -> List[str]:
        """
        Enumerate slot ids for every date in [start_date, end_date] and every
        hour in [start_hour, end_hour), dates first.

        Args:
            start_date: First calendar date (inclusive)
            end_date: Last calendar date (inclusive)
            start_hour: First hour of each day (0-23)
            end_hour: Exclusive upper hour bound (0-23)
            strict: Raise instead of returning an empty list for a
                degenerate window

        Returns:
            Ordered list of slot ids

        Raises:
            InvalidWindowError: malformed input, or any degenerate window
                when ``strict`` is set
        """
        first = _coerce_date(start_date)
        last = _coerce_date(end_date)
        first_hour = _coerce_hour(start_hour)
        last_hour = _coerce_hour(end_hour)

        for hour in (first_hour, last_hour):
            if hour < MIN_HOUR or hour > MAX_HOUR:
                raise InvalidWindowError(
                    f"Hour {hour} outside {MIN_HOUR}-{MAX_HOUR}"
                )

        if last < first or first_hour >= last_hour:
            if strict:
                raise InvalidWindowError(
                    f"Empty window: {first}..{last}, hours {first_hour}-{last_hour}"
                )
            logger.debug(
                f"Degenerate window {first}..{last} {first_hour}-{last_hour}, no slots"
            )
            return []

        slots = []
        current = first
        while current <= last:
            for hour in range(first_hour, last_hour):
                slots.append(build_slot_id(current, hour))
            current += timedelta(days=1)

        return slots

    @classmethod
    def generate_for_event(cls, event, strict: bool = False) -> List[str]:
        """Enumerate the slots of an object carrying the event window fields."""
        return cls.generate(
            event.start_date,
            event.end_date,
            event.start_hour,
            event.end_hour,
            strict=strict,
        )

    @staticmethod
    def day_count(start_date: Union[date, str], end_date: Union[date, str]) -> int:
        """Number of calendar days in the inclusive range, 0 when inverted."""
        first = _coerce_date(start_date)
        last = _coerce_date(end_date)
        return max((last - first).days + 1, 0)
