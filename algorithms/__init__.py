"""
MeetPoll Algorithms Package.

Pure scheduling logic shared by the API layer. Nothing here touches the
database or the cache.

The algorithms are organized into the following subpackages:
- availability: Slot generation and calendar conflict detection
- analytics: Per-slot response aggregation
- ranking: Slot recommendation ranking
"""

__version__ = "1.0.0"
