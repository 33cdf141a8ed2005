"""
Analytics Module

Aggregation of participant responses into per-slot and per-participant
statistics.
"""

from .slot_aggregator import SlotAggregator, SlotStats

__all__ = [
    "SlotAggregator",
    "SlotStats",
]
