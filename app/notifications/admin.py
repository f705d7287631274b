"""
Django admin configuration for notification models.

Notifications are created by the task processor only, so the admin is a
read-only view for debugging and support.
"""

from django.contrib import admin

from notifications.models import Notification


@admin.register(Notification)
class NotificationAdmin(admin.ModelAdmin):
    """
    Admin configuration for Notification.

    Provides read-only view of notifications for debugging and support.
    """

    list_display = [
        "id",
        "recipient",
        "title",
        "is_read",
        "read_at",
        "created_at",
    ]
    list_filter = ["is_read", "created_at"]
    search_fields = ["title", "recipient__email", "idempotency_key"]
    ordering = ["-created_at"]
    readonly_fields = [
        "recipient",
        "title",
        "body",
        "url",
        "is_read",
        "read_at",
        "idempotency_key",
        "created_at",
        "updated_at",
    ]
    raw_id_fields = ["recipient"]

    def has_add_permission(self, request):
        return False
