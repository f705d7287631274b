"""
Serializers for notification API.

This module provides DRF serializers for the notification endpoints.

Serializers:
    NotificationSerializer: Read-only serializer for notification details
    UnreadCountSerializer: Response for unread count endpoint
    MarkReadResponseSerializer: Response for mark single read endpoint
    MarkAllReadResponseSerializer: Response for mark all read endpoint
    DispatchNotificationSerializer: Request body for the dispatch endpoint
    DispatchResponseSerializer: Response for an accepted dispatch

Usage:
    from notifications.serializers import NotificationSerializer

    serializer = NotificationSerializer(notification)
    data = serializer.data
"""

from __future__ import annotations

from rest_framework import serializers

from notifications.envelopes import (
    IDEMPOTENCY_KEY_MAX_LENGTH,
    TITLE_MAX_LENGTH,
    URL_MAX_LENGTH,
)
from notifications.models import Notification


class NotificationSerializer(serializers.ModelSerializer):
    """
    Serializer for Notification model.

    Read-only. url and read_at are rendered as null when absent.

    Usage:
        serializer = NotificationSerializer(notification)
        serializer = NotificationSerializer(notifications, many=True)
    """

    class Meta:
        model = Notification
        fields = [
            "id",
            "title",
            "body",
            "url",
            "is_read",
            "read_at",
            "created_at",
        ]
        read_only_fields = fields


class UnreadCountSerializer(serializers.Serializer):
    """
    Response serializer for unread count endpoint.

    Fields:
        unread_count: Integer count of unread notifications
    """

    unread_count = serializers.IntegerField()


class MarkReadResponseSerializer(serializers.Serializer):
    """
    Response serializer for mark single read endpoint.

    Fields:
        id: Notification id
        is_read: Always True after the call
        read_at: When the notification was first read
        already_read: True if the notification was read before this call
    """

    id = serializers.IntegerField()
    is_read = serializers.BooleanField()
    read_at = serializers.DateTimeField()
    already_read = serializers.BooleanField()


class MarkAllReadResponseSerializer(serializers.Serializer):
    """
    Response serializer for mark all read endpoint.

    Fields:
        marked_count: Integer count of notifications marked as read
    """

    marked_count = serializers.IntegerField()


class DispatchNotificationSerializer(serializers.Serializer):
    """
    Request serializer for dispatching a notification.

    The recipient is not looked up here: unknown recipients are discarded
    later by the task processor.

    Fields:
        recipient_id: Target user id
        title: Non-blank title
        body: Optional body text
        url: Optional deep link (null when omitted, "" kept as given)
        idempotency_key: Optional deduplication key
    """

    recipient_id = serializers.IntegerField(min_value=1)
    title = serializers.CharField(max_length=TITLE_MAX_LENGTH)
    body = serializers.CharField(required=False, allow_blank=True, default="")
    url = serializers.CharField(
        max_length=URL_MAX_LENGTH,
        required=False,
        allow_blank=True,
        trim_whitespace=False,
        allow_null=True,
        default=None,
    )
    idempotency_key = serializers.CharField(
        max_length=IDEMPOTENCY_KEY_MAX_LENGTH,
        required=False,
        allow_null=True,
        default=None,
    )


class DispatchResponseSerializer(serializers.Serializer):
    """
    Response serializer for an accepted dispatch.

    Fields:
        detail: Human-readable status
        recipient_id: Target user id echoed back
        idempotency_key: Key echoed back (null when not supplied)
    """

    detail = serializers.CharField()
    recipient_id = serializers.IntegerField()
    idempotency_key = serializers.CharField(allow_null=True)
