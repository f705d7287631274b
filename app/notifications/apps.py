"""Django app configuration for the notification pipeline."""

from django.apps import AppConfig


class NotificationsConfig(AppConfig):
    """Registers the Notification model and the processing task."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "notifications"
    verbose_name = "Notification dispatch"
