"""
Task processor turning queued envelopes into persisted notifications.

The processor consumes one NotificationTask at a time, resolves the
recipient, writes the Notification in a single transaction and reports what
happened as a ProcessingOutcome. It never raises: every failure is
classified so the queue layer knows whether to redeliver.

Classification:
    COMMITTED        - notification row exists (created now, or earlier for
                       the same idempotency_key)
    DISCARDED        - PermanentProcessingError (unknown recipient, malformed
                       payload) or a DataError (value too long for its
                       column); redelivery cannot change the result
    RETRY_REQUESTED  - anything else (database unavailable, lock timeout,
                       TransientProcessingError, unexpected exceptions)

Unknown exception types are retried rather than dropped: delivery is
at-least-once, so a duplicate row is preferred over a lost notification.

Usage:
    from notifications.processing import (
        DjangoNotificationStore,
        NotificationTaskProcessor,
        ProcessingOutcome,
    )

    processor = NotificationTaskProcessor(DjangoNotificationStore())
    outcome = processor.handle(task)
    if outcome is ProcessingOutcome.RETRY_REQUESTED:
        ...  # queue layer schedules redelivery
"""

from __future__ import annotations

import enum
import logging
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

from django.contrib.auth import get_user_model
from django.db import DataError, DatabaseError, transaction

from notifications.envelopes import NotificationTask
from notifications.exceptions import (
    PermanentProcessingError,
    RecipientNotFoundError,
    TransientProcessingError,
)
from notifications.models import Notification

if TYPE_CHECKING:
    from authentication.models import User

logger = logging.getLogger(__name__)


class ProcessingOutcome(str, enum.Enum):
    """Result of handling one envelope delivery."""

    COMMITTED = "committed"
    RETRY_REQUESTED = "retry_requested"
    DISCARDED = "discarded"


@runtime_checkable
class NotificationStore(Protocol):
    """
    Record store used by the task processor.

    Implementations must make persist() all-or-nothing: a partially written
    notification must never be observable.
    """

    def find_recipient(self, recipient_id: int) -> User | None:
        """Return the user with ``recipient_id`` or None if it does not exist."""
        ...

    def persist(
        self, task: NotificationTask, recipient: User
    ) -> tuple[Notification, bool]:
        """
        Create the notification described by ``task`` and commit it.

        Returns:
            (notification, created) - created is False when a row with the
            same idempotency_key already existed
        """
        ...


class DjangoNotificationStore:
    """NotificationStore backed by the Django ORM."""

    def find_recipient(self, recipient_id: int) -> User | None:
        return get_user_model().objects.filter(pk=recipient_id).first()

    def persist(
        self, task: NotificationTask, recipient: User
    ) -> tuple[Notification, bool]:
        fields = {
            "recipient": recipient,
            "title": task.title,
            "body": task.body,
            "url": task.url,
        }
        with transaction.atomic():
            if task.idempotency_key is None:
                return Notification.objects.create(**fields), True

            # get_or_create resolves the concurrent-insert race itself by
            # catching the IntegrityError and re-reading the winning row
            return Notification.objects.get_or_create(
                idempotency_key=task.idempotency_key,
                defaults=fields,
            )


class NotificationTaskProcessor:
    """
    Consume envelopes and classify the result.

    The processor holds no state besides its store, so one instance can be
    shared by a worker or several workers can each build their own.
    """

    def __init__(self, store: NotificationStore) -> None:
        self.store = store

    def handle(self, task: NotificationTask) -> ProcessingOutcome:
        """
        Process one envelope delivery.

        Flow:
            1. Resolve recipient by id
            2. Missing recipient -> DISCARDED (no write)
            3. Persist the notification atomically
            4. Data the database rejects -> DISCARDED (no write)
            5. Any other failure -> RETRY_REQUESTED (no write)
            6. Success -> COMMITTED

        Args:
            task: Envelope delivered by the queue

        Returns:
            The ProcessingOutcome for this delivery
        """
        try:
            recipient = self.store.find_recipient(task.recipient_id)
            if recipient is None:
                raise RecipientNotFoundError(
                    f"User with ID {task.recipient_id} does not exist",
                    details={"recipient_id": task.recipient_id},
                )
            notification, created = self.store.persist(task, recipient)

        except PermanentProcessingError as e:
            logger.warning(
                f"Discarding notification task for recipient {task.recipient_id}: {e}"
            )
            return ProcessingOutcome.DISCARDED

        except DataError as e:
            # Values the columns cannot hold
            logger.warning(
                f"Discarding notification task for recipient {task.recipient_id}, "
                f"data rejected by the database: {e}"
            )
            return ProcessingOutcome.DISCARDED

        except (TransientProcessingError, DatabaseError) as e:
            logger.warning(
                f"Transient failure creating notification for recipient "
                f"{task.recipient_id}: {e}, will retry"
            )
            return ProcessingOutcome.RETRY_REQUESTED

        except Exception as e:
            # Unexpected error - treat as transient for retry
            logger.exception(
                f"Unexpected error creating notification for recipient "
                f"{task.recipient_id}: {e}"
            )
            return ProcessingOutcome.RETRY_REQUESTED

        if created:
            logger.info(
                f"Created notification {notification.id} for user {recipient.pk}"
            )
        else:
            logger.info(
                f"Notification {notification.id} already exists for "
                f"idempotency_key={task.idempotency_key}, skipping insert"
            )
        return ProcessingOutcome.COMMITTED

    def handle_payload(self, payload: Any) -> ProcessingOutcome:
        """
        Decode a wire payload and process it.

        A payload that cannot be decoded is DISCARDED: redelivering the same
        bytes would fail the same way.
        """
        try:
            task = NotificationTask.from_payload(payload)
        except PermanentProcessingError as e:
            logger.warning(f"Discarding undecodable notification payload: {e}")
            return ProcessingOutcome.DISCARDED

        return self.handle(task)
