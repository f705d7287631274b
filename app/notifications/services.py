"""
Notification service layer.

This module provides the producer and reader sides of the notification
system.

Services:
    Notifier: Fire-and-forget dispatch of notification envelopes
    NotificationService: Read status management for persisted notifications

Design Principles:
    - Notifier holds its queue explicitly; get_notifier() wires the default
    - notify() returns as soon as the queue accepts the envelope; it never
      touches the database and never checks that the recipient exists
    - Transport failures surface synchronously as DispatchError
    - NotificationService is stateless (class methods) and returns
      ServiceResult for expected failures

Usage:
    from notifications.services import NotificationService, get_notifier

    # Dispatch (returns immediately)
    task = get_notifier().notify(recipient_id=7, title="Test", body="hi")

    # Mark as read
    result = NotificationService.mark_as_read(notification, user)

    # Mark all as read
    result = NotificationService.mark_all_as_read(user)
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from django.db.models import QuerySet
from django.utils import timezone

from core.services import BaseService, ServiceResult

from notifications.envelopes import NotificationTask
from notifications.exceptions import DispatchError
from notifications.models import Notification
from notifications.queues import CeleryTaskQueue

if TYPE_CHECKING:
    from authentication.models import User
    from notifications.queues import TaskQueue

logger = logging.getLogger(__name__)


class Notifier:
    """
    Producer-facing entry point of the notification pipeline.

    Args:
        queue: TaskQueue that receives the envelopes

    Example:
        notifier = Notifier(InMemoryTaskQueue())
        notifier.notify(recipient_id=7, title="A", body="B")
    """

    def __init__(self, queue: TaskQueue) -> None:
        self.queue = queue

    def notify(
        self,
        recipient_id: int,
        title: str,
        body: str = "",
        url: str | None = None,
        idempotency_key: str | None = None,
    ) -> NotificationTask:
        """
        Request creation of a notification for a user.

        Builds the envelope and hands it to the queue. Processing happens
        later, possibly more than once; the caller gets no confirmation that
        the notification was stored.

        Args:
            recipient_id: Primary key of the target user
            title: Non-empty title
            body: Body text (may be empty)
            url: Optional deep link
            idempotency_key: Optional key deduplicating redeliveries

        Returns:
            The enqueued NotificationTask

        Raises:
            InvalidTaskError: If the fields do not form a valid envelope
            DispatchError: If the queue refuses the envelope
        """
        task = NotificationTask(
            recipient_id=recipient_id,
            title=title,
            body=body,
            url=url,
            idempotency_key=idempotency_key,
        )

        try:
            message_id = self.queue.enqueue(task)
        except DispatchError:
            logger.error(
                f"Failed to dispatch notification for recipient {recipient_id}"
            )
            raise

        logger.info(
            f"Dispatched notification for recipient {recipient_id}"
            + (f", message_id={message_id}" if message_id else "")
        )
        return task


def get_notifier() -> Notifier:
    """Build a Notifier publishing to Celery."""
    return Notifier(CeleryTaskQueue())


class NotificationService(BaseService):
    """
    Service for notification read status.

    Methods:
        list_unread: Unread notifications of a user, newest first
        mark_as_read: Mark a single notification as read
        mark_all_as_read: Mark all user's unread notifications as read
    """

    @classmethod
    def list_unread(cls, user: User) -> QuerySet[Notification]:
        """Return the user's unread notifications, newest first."""
        return Notification.objects.filter(recipient=user, is_read=False)

    @classmethod
    def mark_as_read(
        cls,
        notification: Notification,
        user: User,
    ) -> ServiceResult[Notification]:
        """
        Mark a single notification as read.

        Validates that the user owns the notification before marking.
        Operation is idempotent - marking an already-read notification
        succeeds and keeps the original read_at.

        Args:
            notification: The notification to mark as read
            user: The user making the request (for ownership validation)

        Returns:
            ServiceResult with updated Notification if successful

        Error codes:
            NOT_OWNER: User doesn't own the notification
        """
        if notification.recipient_id != user.id:
            cls.get_logger().warning(
                f"User {user.id} attempted to mark notification {notification.id} "
                f"owned by user {notification.recipient_id}"
            )
            return ServiceResult.failure(
                "Cannot mark notification you don't own",
                error_code="NOT_OWNER",
            )

        if not notification.is_read:
            notification.mark_as_read()
            cls.get_logger().debug(f"Marked notification {notification.id} as read")

        return ServiceResult.success(notification)

    @classmethod
    def mark_all_as_read(cls, user: User) -> ServiceResult[int]:
        """
        Mark all user's unread notifications as read.

        Performs a bulk update in a single query. All rows share the same
        read_at.

        Args:
            user: The user whose notifications to mark as read

        Returns:
            ServiceResult with count of notifications marked as read
        """
        now = timezone.now()
        count = Notification.objects.filter(
            recipient=user,
            is_read=False,
        ).update(is_read=True, read_at=now, updated_at=now)

        cls.get_logger().info(
            f"Marked {count} notifications as read for user {user.id}"
        )

        return ServiceResult.success(count)
