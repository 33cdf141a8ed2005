# apps/schedulingapp/services/aggregation_service.py
import logging
from collections import OrderedDict
from typing import Any, Dict, List, Optional

from django.conf import settings
from django.db import transaction

from algorithms.analytics.slot_aggregator import SlotAggregator, SlotStats
from algorithms.ranking.slot_ranker import DEFAULT_LIMIT, SlotRanker
from core.cache.cache_manager import CacheManager

from ..models import Event, Participant, SlotResponse

logger = logging.getLogger(__name__)


class EventAggregation:
    """Per-slot statistics of an event together with its participant count."""

    def __init__(self, participant_count: int, stats: Dict[str, SlotStats]):
        self.participant_count = participant_count
        self.stats = stats

    def to_cache(self) -> Dict[str, Any]:
        return {
            "participant_count": self.participant_count,
            "slots": [s.to_dict() for s in self.stats.values()],
        }

    @classmethod
    def from_cache(cls, data: Dict[str, Any]) -> "EventAggregation":
        stats = OrderedDict()
        for item in data["slots"]:
            slot = SlotStats.from_dict(item)
            stats[slot.slot_id] = slot
        return cls(data["participant_count"], stats)


class AggregationService:
    """
    Read-through cache of event aggregations.

    Entries are keyed by event id and the event's cache generation, and
    rebuilt from the database on a miss. Writers invalidate through
    ``invalidate`` after they commit, which bumps the generation. A rebuild
    that read its rows before that commit stores its result under the old
    generation, where no later reader looks. The TTL only bounds staleness if
    an invalidation is lost.
    """

    CACHE_PREFIX = "aggregation"
    VERSION_PREFIX = "aggregation_version"

    @classmethod
    def version_key(cls, event_id) -> str:
        return CacheManager.build_key(cls.VERSION_PREFIX, str(event_id))

    @classmethod
    def current_version(cls, event_id) -> int:
        return CacheManager.get(cls.version_key(event_id), 0)

    @classmethod
    def cache_key(cls, event_id, version: Optional[int] = None) -> str:
        if version is None:
            version = cls.current_version(event_id)
        return CacheManager.build_key(cls.CACHE_PREFIX, str(event_id), f"v{version}")

    @staticmethod
    def cache_ttl() -> int:
        return settings.MEETPOLL.get("AGGREGATION_CACHE_TTL", 300)

    @classmethod
    def invalidate(cls, event_id) -> None:
        stale_key = cls.cache_key(event_id)
        version = CacheManager.incr(cls.version_key(event_id))
        if version is None:
            CacheManager.delete(stale_key)
        logger.debug(f"Invalidated aggregation cache for event {event_id} (generation {version})")

    @staticmethod
    def load_rows(event_id):
        """
        Read an event's participants and responses in one transaction.

        Returns:
            Tuple of (participants, responses) as lists of dictionaries,
            responses in insertion order
        """
        with transaction.atomic():
            participants = list(
                Participant.objects.filter(event_id=event_id)
                .order_by("submitted_at", "id")
                .values("id", "display_name", "identity_key", "submitted_at")
            )
            responses = list(
                SlotResponse.objects.filter(event_id=event_id)
                .order_by("created_at", "id")
                .values("participant_id", "slot_id", "available")
            )
        return participants, responses

    @classmethod
    def build(cls, event_id) -> EventAggregation:
        participants, responses = cls.load_rows(event_id)
        stats = SlotAggregator.aggregate(participants, responses)
        logger.debug(
            f"Aggregated {len(responses)} responses into {len(stats)} slots for event {event_id}"
        )
        return EventAggregation(len(participants), stats)

    @classmethod
    def get_event_aggregation(cls, event: Event, use_cache: bool = True) -> EventAggregation:
        """
        Get the aggregation of an event, from cache when possible.

        Args:
            event: The event
            use_cache: Bypass the cache when False

        Returns:
            EventAggregation for the event
        """
        if not use_cache:
            return cls.build(event.id)

        data = CacheManager.get_or_set(
            cls.cache_key(event.id),
            lambda: cls.build(event.id).to_cache(),
            ttl=cls.cache_ttl(),
        )
        return EventAggregation.from_cache(data)

    @classmethod
    def get_recommendations(
        cls, event: Event, k: int = DEFAULT_LIMIT, aggregation: Optional[EventAggregation] = None
    ) -> List[SlotStats]:
        aggregation = aggregation or cls.get_event_aggregation(event)
        return SlotRanker.rank(aggregation.stats, aggregation.participant_count, k)

    @classmethod
    def get_analysis(cls, event: Event, k: int = DEFAULT_LIMIT) -> Dict[str, Any]:
        """
        Full analysis of an event: per-slot stats, ranked recommendations and
        event-level statistics.
        """
        aggregation = cls.get_event_aggregation(event)
        n = aggregation.participant_count
        recommendations = cls.get_recommendations(event, k, aggregation=aggregation)

        return {
            "event_id": str(event.id),
            "aggregation": [s.to_dict(n) for s in aggregation.stats.values()],
            "recommendations": [s.to_dict(n) for s in recommendations],
            "statistics": SlotAggregator.build_statistics(
                aggregation.stats, n, recommendations
            ),
        }

    @classmethod
    def get_participant_summary(cls, event: Event) -> Dict[str, Any]:
        """Participants of an event with their response statistics."""
        participants, responses = cls.load_rows(event.id)
        summary = SlotAggregator.summarize_participants(participants, responses)

        by_id = {str(p["id"]): p for p in participants}
        for row in summary["participants"]:
            participant = by_id[row["participant_id"]]
            row["display_name"] = participant["display_name"]
            row["submitted_at"] = participant["submitted_at"]

        summary["participant_count"] = len(participants)
        return summary
