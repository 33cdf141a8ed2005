# apps/schedulingapp/urls.py
from django.urls import include, path
from rest_framework.routers import DefaultRouter

from apps.schedulingapp.views import EventViewSet

app_name = "schedulingapp"

router = DefaultRouter()
router.register(r"events", EventViewSet, basename="event")

urlpatterns = [
    path("", include(router.urls)),
]
