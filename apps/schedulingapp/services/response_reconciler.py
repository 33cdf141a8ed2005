"""
Participant response reconciliation.

A submission always carries a participant's complete answer set for an event.
Reconciling it upserts the participant by (event, identity_key), deletes every
response stored by an earlier submission and inserts the new ones, all inside
one database transaction, so readers only ever see a whole generation of
responses.
"""

import logging
from typing import Callable, Dict, Iterable, List, Optional, Tuple, Union

from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import DatabaseError, IntegrityError, transaction
from django.utils import timezone
from django.utils.translation import gettext_lazy as _

from algorithms.availability.slot_generator import InvalidSlotIdError, parse_slot_id
from core.exceptions import ResourceNotFoundException, StorageException, ValidationException

from ..models import Event, Participant, SlotResponse

logger = logging.getLogger(__name__)


class SubmissionResult:
    """Outcome of a reconciled submission."""

    def __init__(self, participant: Participant, responses: List[SlotResponse], created: bool):
        self.participant = participant
        self.responses = responses
        self.created = created

    @property
    def stored_availability(self) -> Dict[str, bool]:
        return {response.slot_id: response.available for response in self.responses}


class ResponseReconciler:
    """
    Transactional upsert of one participant's full response set.
    """

    @staticmethod
    def get_event(event: Union[Event, str]) -> Event:
        """
        Resolve an event instance or id.

        Raises:
            ResourceNotFoundException: unknown or malformed id
        """
        if isinstance(event, Event):
            return event
        try:
            return Event.objects.get(id=event)
        except (Event.DoesNotExist, DjangoValidationError, ValueError):
            raise ResourceNotFoundException(_("Event not found: %(id)s") % {"id": event})

    @staticmethod
    def validate_availability(event: Event, availability) -> Dict[str, bool]:
        """
        Check a submitted slot map before anything is written.

        Every key must be a canonical slot id of the event's window and every
        value a real boolean.

        Returns:
            The map, with key order preserved

        Raises:
            ValidationException: listing each offending slot
        """
        if not isinstance(availability, dict):
            raise ValidationException(
                _("Availability must be a mapping of slot id to boolean."),
                errors={"availability": ["expected an object"]},
            )

        event_slots = set(event.slot_ids())
        errors = {}

        for slot_id, available in availability.items():
            try:
                parse_slot_id(slot_id)
            except InvalidSlotIdError:
                errors[str(slot_id)] = "malformed slot id"
                continue
            if slot_id not in event_slots:
                errors[slot_id] = "slot is outside the event window"
            elif not isinstance(available, bool):
                errors[slot_id] = "value must be true or false"

        if errors:
            raise ValidationException(_("Invalid availability submitted."), errors=errors)

        return dict(availability)

    @staticmethod
    def _upsert_participant(
        event: Event, identity_key: str, display_name: str, submitted_at
    ) -> Tuple[Participant, bool]:
        """
        Lock and update the participant for this identity, or create it.

        Must run inside a transaction. A unique-constraint violation on create
        means another request created the row first; the call then falls
        through to the update path on the now-committed row.
        """
        participant = (
            Participant.objects.select_for_update()
            .filter(event=event, identity_key=identity_key)
            .first()
        )

        if participant is None:
            try:
                with transaction.atomic():
                    participant = Participant.objects.create(
                        event=event,
                        identity_key=identity_key,
                        display_name=display_name,
                        submitted_at=submitted_at,
                    )
                return participant, True
            except IntegrityError:
                logger.info(
                    f"Participant {identity_key} for event {event.id} created concurrently, updating"
                )
                participant = Participant.objects.select_for_update().get(
                    event=event, identity_key=identity_key
                )

        participant.display_name = display_name
        participant.submitted_at = submitted_at
        participant.save(update_fields=["display_name", "submitted_at"])
        return participant, False

    @classmethod
    def submit(
        cls,
        event: Union[Event, str],
        identity_key: str,
        display_name: str,
        availability: Dict[str, bool],
        on_commit: Optional[Iterable[Callable[[], None]]] = None,
    ) -> SubmissionResult:
        """
        Store a participant's complete availability for an event.

        Args:
            event: Event instance or id
            identity_key: Stable identity of the respondent (user id or email)
            display_name: Name shown to other participants
            availability: Mapping of slot id to availability; may be empty
            on_commit: Callbacks run after the transaction commits

        Returns:
            SubmissionResult with the participant, the stored responses and
            whether the participant was created

        Raises:
            ResourceNotFoundException: unknown event
            ValidationException: bad identity, inactive event or bad slot map
            StorageException: the transaction could not be committed
        """
        event = cls.get_event(event)

        identity_key = (identity_key or "").strip()
        display_name = (display_name or "").strip()
        if not identity_key:
            raise ValidationException(
                _("An identity is required to respond."), errors={"identity_key": ["required"]}
            )
        if not display_name:
            raise ValidationException(
                _("A display name is required."), errors={"display_name": ["required"]}
            )
        if not event.is_accepting_responses:
            raise ValidationException(
                _("This event is no longer accepting responses."),
                errors={"status": [event.status]},
            )

        validated = cls.validate_availability(event, availability)
        now = timezone.now()

        try:
            with transaction.atomic():
                participant, created = cls._upsert_participant(
                    event, identity_key, display_name, now
                )

                if not created:
                    deleted, _details = SlotResponse.objects.filter(
                        participant=participant
                    ).delete()
                    logger.debug(f"Replaced {deleted} responses of participant {participant.id}")

                responses = SlotResponse.objects.bulk_create(
                    [
                        SlotResponse(
                            event=event,
                            participant=participant,
                            slot_id=slot_id,
                            available=available,
                            created_at=now,
                        )
                        for slot_id, available in validated.items()
                    ]
                )

                for callback in on_commit or ():
                    transaction.on_commit(callback)
        except DatabaseError as e:
            logger.error(f"Failed to store responses for event {event.id}: {e}")
            raise StorageException() from e

        logger.info(
            f"{'Registered' if created else 'Updated'} participant {participant.id} "
            f"for event {event.id} with {len(responses)} responses"
        )
        return SubmissionResult(participant, responses, created)
