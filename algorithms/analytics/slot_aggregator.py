"""
Per-slot availability aggregation.

Rolls up every participant's responses for an event into per-slot counts and
participant lists. The functions here are pure: they read plain dictionaries
and never touch the database or the cache.
"""

import logging
from collections import OrderedDict
from typing import Any, Dict, Iterable, List, Optional

logger = logging.getLogger(__name__)


class SlotStats:
    """Aggregated responses for one slot."""

    def __init__(
        self,
        slot_id: str,
        available_count: int = 0,
        unavailable_count: int = 0,
        available_participant_ids: Optional[List[str]] = None,
        unavailable_participant_ids: Optional[List[str]] = None,
    ):
        self.slot_id = slot_id
        self.available_count = available_count
        self.unavailable_count = unavailable_count
        self.available_participant_ids = list(available_participant_ids or [])
        self.unavailable_participant_ids = list(unavailable_participant_ids or [])

    @property
    def total_responses(self) -> int:
        return self.available_count + self.unavailable_count

    def ratio(self, participant_count: int) -> float:
        """Share of all event participants available for this slot."""
        if participant_count <= 0:
            return 0.0
        return self.available_count / participant_count

    def add(self, participant_id: str, available: bool) -> None:
        if available:
            self.available_count += 1
            self.available_participant_ids.append(participant_id)
        else:
            self.unavailable_count += 1
            self.unavailable_participant_ids.append(participant_id)

    def to_dict(self, participant_count: Optional[int] = None) -> Dict[str, Any]:
        data = {
            "slot_id": self.slot_id,
            "available_count": self.available_count,
            "unavailable_count": self.unavailable_count,
            "total_responses": self.total_responses,
            "available_participant_ids": list(self.available_participant_ids),
            "unavailable_participant_ids": list(self.unavailable_participant_ids),
        }
        if participant_count is not None:
            data["ratio"] = self.ratio(participant_count)
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SlotStats":
        return cls(
            slot_id=data["slot_id"],
            available_count=data["available_count"],
            unavailable_count=data["unavailable_count"],
            available_participant_ids=data.get("available_participant_ids"),
            unavailable_participant_ids=data.get("unavailable_participant_ids"),
        )

    def __eq__(self, other) -> bool:
        if not isinstance(other, SlotStats):
            return NotImplemented
        return self.to_dict() == other.to_dict()

    def __repr__(self) -> str:
        return (
            f"SlotStats({self.slot_id!r}, available={self.available_count}, "
            f"unavailable={self.unavailable_count})"
        )


class SlotAggregator:
    """
    Aggregates slot responses across all participants of an event.

    Participants are dictionaries with an ``id`` key; responses are
    dictionaries with ``participant_id``, ``slot_id`` and ``available`` keys,
    supplied in response order.
    """

    @staticmethod
    def aggregate(
        participants: Iterable[Dict[str, Any]],
        responses: Iterable[Dict[str, Any]],
    ) -> Dict[str, SlotStats]:
        """
        Build per-slot statistics.

        Slots nobody answered are absent from the result; responses from
        unknown participants are ignored so that counts never exceed the
        participant total.

        Args:
            participants: All participants of the event
            responses: All slot responses of the event

        Returns:
            Ordered mapping of slot id to ``SlotStats``, in first-response order
        """
        known_ids = {str(participant["id"]) for participant in participants}
        stats: Dict[str, SlotStats] = OrderedDict()
        skipped = 0

        for response in responses:
            participant_id = str(response["participant_id"])
            if participant_id not in known_ids:
                skipped += 1
                continue

            slot_id = response["slot_id"]
            if slot_id not in stats:
                stats[slot_id] = SlotStats(slot_id)
            stats[slot_id].add(participant_id, bool(response["available"]))

        if skipped:
            logger.warning(f"Ignored {skipped} responses from unknown participants")

        return stats

    @staticmethod
    def summarize_participants(
        participants: Iterable[Dict[str, Any]],
        responses: Iterable[Dict[str, Any]],
    ) -> Dict[str, Any]:
        """
        Per-participant response statistics.

        Returns:
            Dictionary with:
            - participants: list of {participant_id, total_slots,
              available_slots, availability_rate} in participant order
            - average_availability_rate: rounded mean of the rates
        """
        participants = list(participants)
        totals = {str(p["id"]): [0, 0] for p in participants}

        for response in responses:
            counts = totals.get(str(response["participant_id"]))
            if counts is None:
                continue
            counts[0] += 1
            if response["available"]:
                counts[1] += 1

        rows = []
        for participant in participants:
            participant_id = str(participant["id"])
            total_slots, available_slots = totals[participant_id]
            rate = round(available_slots / total_slots * 100) if total_slots else 0
            rows.append(
                {
                    "participant_id": participant_id,
                    "total_slots": total_slots,
                    "available_slots": available_slots,
                    "availability_rate": rate,
                }
            )

        average = (
            round(sum(row["availability_rate"] for row in rows) / len(rows))
            if rows
            else 0
        )
        return {"participants": rows, "average_availability_rate": average}

    @staticmethod
    def build_statistics(
        stats: Dict[str, SlotStats],
        participant_count: int,
        recommendations: Optional[List[SlotStats]] = None,
    ) -> Dict[str, Any]:
        """
        Event-level summary of an aggregation.

        Args:
            stats: Output of ``aggregate``
            participant_count: Number of participants in the event
            recommendations: Ranked slots; the first one is reported as best

        Returns:
            Dictionary with participant_count, total_time_slots,
            response_rate, best_time_slot and average_availability
        """
        total_slots = len(stats)
        if total_slots and participant_count > 0:
            average = sum(s.ratio(participant_count) for s in stats.values()) / total_slots
        else:
            average = 0.0

        best = recommendations[0].slot_id if recommendations else None

        return {
            "participant_count": participant_count,
            "total_time_slots": total_slots,
            "response_rate": 100 if participant_count > 0 else 0,
            "best_time_slot": best,
            "average_availability": round(average, 4),
        }
