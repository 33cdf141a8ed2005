import logging
from typing import Dict, List

from algorithms.analytics.slot_aggregator import SlotStats

logger = logging.getLogger(__name__)

DEFAULT_LIMIT = 5


class SlotRanker:
    """
    Selects the best candidate slots from an event's aggregation.

    Slots are ordered by available participants (descending), then by the
    share of all participants available (descending), then by slot id
    (ascending) so that ties always resolve the same way.
    """

    @staticmethod
    def sort_key(stats: SlotStats, participant_count: int):
        return (-stats.available_count, -stats.ratio(participant_count), stats.slot_id)

    @classmethod
    def rank(
        cls,
        stats: Dict[str, SlotStats],
        participant_count: int,
        k: int = DEFAULT_LIMIT,
    ) -> List[SlotStats]:
        """
        Rank slots and return the top ``k``.

        Args:
            stats: Mapping of slot id to aggregated statistics
            participant_count: Number of participants in the event
            k: Maximum number of slots to return

        Returns:
            Ranked list of at most ``k`` slots with at least one available
            participant; empty when there are no participants
        """
        if participant_count <= 0 or k <= 0:
            return []

        candidates = [s for s in stats.values() if s.available_count > 0]
        candidates.sort(key=lambda s: cls.sort_key(s, participant_count))

        logger.debug(
            f"Ranked {len(candidates)} candidate slots, returning top {min(k, len(candidates))}"
        )
        return candidates[:k]

    @classmethod
    def rank_slot_ids(
        cls,
        stats: Dict[str, SlotStats],
        participant_count: int,
        k: int = DEFAULT_LIMIT,
    ) -> List[str]:
        return [s.slot_id for s in cls.rank(stats, participant_count, k)]
