"""
Notification models.

This module defines the record produced by the notification pipeline:
- Notification: A message persisted for one user, created by the task processor

Design Decisions:
    - Notification inherits from BaseModel (created_at, updated_at, ordering)
    - url is nullable; None means "no link" and is never stored as ""
    - read_at is set exactly once; a check constraint keeps it in step
      with is_read
    - idempotency_key is optional; when present it is unique so a redelivered
      envelope carrying the same key cannot insert a second row

Usage:
    from notifications.models import Notification

    # Query user's unread notifications
    unread = Notification.objects.filter(recipient=user, is_read=False)

    # Mark as read (idempotent)
    read_at = notification.mark_as_read()
"""

from __future__ import annotations

from datetime import datetime

from django.conf import settings
from django.db import models
from django.utils import timezone

from core.models import BaseModel
from notifications.envelopes import (
    IDEMPOTENCY_KEY_MAX_LENGTH,
    TITLE_MAX_LENGTH,
    URL_MAX_LENGTH,
)


class Notification(BaseModel):
    """
    Individual notification record for a user.

    Title, body and url are copied from the task envelope at processing time
    and never edited afterwards. The only allowed mutation is the
    unread -> read transition performed by mark_as_read().

    Fields:
        recipient: User receiving the notification (scopes all queries)
        title: Short title, never empty
        body: Body text, may be empty
        url: Optional deep link (null when absent)
        is_read: Whether recipient has read this notification
        read_at: When it was first read (null while unread)
        idempotency_key: Optional producer-supplied deduplication key

    Inherits from BaseModel:
        created_at: Timestamp (auto, indexed)
        updated_at: Timestamp (auto)

    Note:
        - recipient CASCADE: account removal is handled by the account layer;
          the notification pipeline itself never deletes notifications
    """

    recipient = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="notifications",
        db_index=True,
        help_text="User receiving this notification",
    )

    title = models.CharField(
        max_length=TITLE_MAX_LENGTH,
        help_text="Notification title",
    )

    body = models.TextField(
        blank=True,
        default="",
        help_text="Notification body",
    )

    url = models.CharField(
        max_length=URL_MAX_LENGTH,
        null=True,
        blank=True,
        default=None,
        help_text="Optional deep link opened when the notification is clicked",
    )

    is_read = models.BooleanField(
        default=False,
        db_index=True,
        help_text="Whether recipient has read this notification",
    )

    read_at = models.DateTimeField(
        null=True,
        blank=True,
        help_text="When the recipient first read this notification",
    )

    idempotency_key = models.CharField(
        max_length=IDEMPOTENCY_KEY_MAX_LENGTH,
        null=True,
        blank=True,
        help_text="Idempotency key to prevent duplicate notifications",
    )

    class Meta:
        db_table = "notifications_notification"
        ordering = ["-created_at", "-id"]
        indexes = [
            # Primary query: user's unread notifications
            models.Index(
                fields=["recipient", "is_read", "-created_at"],
                name="notif_recipient_unread_idx",
            ),
        ]
        constraints = [
            models.UniqueConstraint(
                fields=["idempotency_key"],
                name="notif_idempotency_key_unique",
                condition=models.Q(idempotency_key__isnull=False),
            ),
            models.CheckConstraint(
                condition=(
                    models.Q(is_read=True, read_at__isnull=False)
                    | models.Q(is_read=False, read_at__isnull=True)
                ),
                name="notif_read_at_matches_is_read",
            ),
        ]

    def __str__(self) -> str:
        read_status = "read" if self.is_read else "unread"
        return f"Notification({self.pk}) -> User {self.recipient_id} [{read_status}]"

    def mark_as_read(self) -> datetime:
        """
        Mark the notification as read.

        Idempotent: only the first call writes. The write is conditional on
        the stored row still being unread, so concurrent callers holding
        stale copies cannot overwrite read_at. Later calls return the
        original read_at.

        Returns:
            The timestamp at which the notification was first read
        """
        if self.is_read:
            return self.read_at

        now = timezone.now()
        updated = Notification.objects.filter(pk=self.pk, is_read=False).update(
            is_read=True,
            read_at=now,
            updated_at=now,
        )
        if updated:
            self.is_read = True
            self.read_at = now
            self.updated_at = now
        else:
            # Another caller marked the row first
            self.refresh_from_db(fields=["is_read", "read_at", "updated_at"])
        return self.read_at
