# apps/schedulingapp/filters.py
from django_filters import rest_framework as filters

from apps.schedulingapp.models import Event


class EventFilter(filters.FilterSet):
    status = filters.ChoiceFilter(field_name="status", choices=Event.STATUS_CHOICES)
    created_by = filters.CharFilter(field_name="created_by")
    title = filters.CharFilter(field_name="title", lookup_expr="icontains")

    # Window overlap
    from_date = filters.DateFilter(field_name="end_date", lookup_expr="gte")
    to_date = filters.DateFilter(field_name="start_date", lookup_expr="lte")

    class Meta:
        model = Event
        fields = ["status", "created_by", "title", "from_date", "to_date"]
