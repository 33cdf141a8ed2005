# apps/schedulingapp/signals.py
from django.db import transaction
from django.db.models.signals import post_delete
from django.dispatch import receiver

from apps.schedulingapp.models import Event, Participant
from apps.schedulingapp.services.aggregation_service import AggregationService


@receiver(post_delete, sender=Participant)
def participant_post_delete(sender, instance, **kwargs):
    """
    Drop the cached aggregation of the participant's event.
    Responses are removed by the cascade in the same transaction.
    """
    event_id = instance.event_id
    transaction.on_commit(lambda: AggregationService.invalidate(event_id))


@receiver(post_delete, sender=Event)
def event_post_delete(sender, instance, **kwargs):
    event_id = instance.id
    transaction.on_commit(lambda: AggregationService.invalidate(event_id))
