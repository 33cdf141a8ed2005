"""
Availability calculation algorithms.

This package contains the algorithms that enumerate candidate meeting slots
and decide a participant's availability against their busy intervals.

Key components:
- SlotGenerator: Enumerates canonical hour-wide slot ids for an event window
- ConflictDetector: Tests candidate slots against external busy intervals
"""

from .conflict_detector import BusyInterval, ConflictDetector, TimeRange
from .slot_generator import (
    InvalidSlotIdError,
    InvalidWindowError,
    SlotGenerator,
    build_slot_id,
    parse_slot_id,
    slot_start,
)

__all__ = [
    "SlotGenerator",
    "ConflictDetector",
    "BusyInterval",
    "TimeRange",
    "InvalidWindowError",
    "InvalidSlotIdError",
    "build_slot_id",
    "parse_slot_id",
    "slot_start",
]
