from django.apps import AppConfig
from django.utils.translation import gettext_lazy as _


class SchedulingAppConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "apps.schedulingapp"
    label = "schedulingapp"
    verbose_name = _("Meeting Scheduling")

    def ready(self):
        # Import signals to register them
        import apps.schedulingapp.signals  # noqa
