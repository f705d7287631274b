"""
Queue layer carrying notification envelopes to the task processor.

The dispatcher only knows the TaskQueue protocol. Two implementations exist:

    CeleryTaskQueue   - production; publishes the wire payload to the
                        process_notification_task Celery task on the
                        configured NOTIFICATION_QUEUE. Retry scheduling and
                        the retry budget live in the Celery task.
    InMemoryTaskQueue - local runs and tests; keeps envelopes in a deque and
                        applies the same retry/discard policy synchronously
                        when deliver() is called.

Delivery is at-least-once in both cases: an envelope may reach the processor
more than once, and no ordering between envelopes is guaranteed.

Usage:
    from notifications.queues import CeleryTaskQueue, InMemoryTaskQueue

    queue = CeleryTaskQueue()
    queue.enqueue(task)  # raises DispatchError if the broker is down

    # Tests
    queue = InMemoryTaskQueue(max_attempts=3)
    queue.enqueue(task)
    queue.deliver(NotificationTaskProcessor(DjangoNotificationStore()))
    assert not queue.dead_letters
"""

from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol, runtime_checkable

from django.conf import settings
from kombu.exceptions import OperationalError

from notifications.exceptions import DispatchError
from notifications.processing import ProcessingOutcome
from notifications.tasks import process_notification_task

if TYPE_CHECKING:
    from notifications.envelopes import NotificationTask
    from notifications.processing import NotificationTaskProcessor

logger = logging.getLogger(__name__)


@runtime_checkable
class TaskQueue(Protocol):
    """Transport accepting envelopes for asynchronous processing."""

    def enqueue(self, task: NotificationTask) -> str | None:
        """
        Hand ``task`` to the transport.

        Returns:
            A transport-specific message id, if the transport has one

        Raises:
            DispatchError: If the transport refuses the envelope
        """
        ...


class CeleryTaskQueue:
    """
    TaskQueue publishing envelopes to Celery.

    Args:
        queue_name: Celery queue to route to (default: NOTIFICATION_QUEUE)
    """

    def __init__(self, queue_name: str | None = None) -> None:
        self.queue_name = queue_name or settings.NOTIFICATION_QUEUE

    def enqueue(self, task: NotificationTask) -> str:
        try:
            result = process_notification_task.apply_async(
                args=[task.to_payload()],
                queue=self.queue_name,
            )
        except OperationalError as e:
            logger.error(
                f"Broker refused notification task for recipient "
                f"{task.recipient_id}: {e}"
            )
            raise DispatchError(
                "Notification queue is unavailable",
                details={"recipient_id": task.recipient_id, "queue": self.queue_name},
            ) from e

        return result.id


@dataclass
class PendingDelivery:
    """An envelope waiting in an InMemoryTaskQueue with its attempt count."""

    task: NotificationTask
    attempts: int = 0


class InMemoryTaskQueue:
    """
    Synchronous TaskQueue for local runs and tests.

    Policy applied by deliver():
        COMMITTED        -> done, recorded in ``delivered``
        RETRY_REQUESTED  -> re-enqueued until ``max_attempts`` deliveries,
                            then moved to ``dead_letters``
        DISCARDED        -> moved to ``dead_letters``, never redelivered

    Attributes:
        accepting: Set to False to make enqueue() raise DispatchError
        delivered: Envelopes whose delivery was COMMITTED
        dead_letters: Envelopes discarded or out of retry budget
    """

    def __init__(self, max_attempts: int | None = None) -> None:
        if max_attempts is None:
            # Initial delivery plus the Celery retry budget
            max_attempts = settings.NOTIFICATION_TASK_MAX_RETRIES + 1
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")

        self.max_attempts = max_attempts
        self.accepting = True
        self.pending: deque[PendingDelivery] = deque()
        self.delivered: list[NotificationTask] = []
        self.dead_letters: list[NotificationTask] = []

    def __len__(self) -> int:
        return len(self.pending)

    def enqueue(self, task: NotificationTask) -> None:
        if not self.accepting:
            raise DispatchError(
                "Notification queue is not accepting tasks",
                details={"recipient_id": task.recipient_id},
            )
        self.pending.append(PendingDelivery(task))

    def redeliver(self, task: NotificationTask) -> None:
        """
        Put an already-delivered envelope back on the queue.

        Simulates the broker redelivering a message whose acknowledgement was
        lost. Bypasses ``accepting`` since the message is already inside the
        transport.
        """
        self.pending.append(PendingDelivery(task))

    def deliver(
        self, processor: NotificationTaskProcessor
    ) -> list[ProcessingOutcome]:
        """
        Deliver pending envelopes until the queue is empty.

        Retried envelopes go to the back of the queue, so other envelopes
        may be processed between two attempts of the same one.

        Returns:
            Outcome of every delivery attempt, in order
        """
        outcomes = []
        while self.pending:
            entry = self.pending.popleft()
            entry.attempts += 1
            outcome = processor.handle(entry.task)
            outcomes.append(outcome)

            if outcome is ProcessingOutcome.COMMITTED:
                self.delivered.append(entry.task)
            elif outcome is ProcessingOutcome.DISCARDED:
                logger.warning(
                    f"Dead-lettering discarded notification task for recipient "
                    f"{entry.task.recipient_id}"
                )
                self.dead_letters.append(entry.task)
            elif entry.attempts < self.max_attempts:
                self.pending.append(entry)
            else:
                logger.error(
                    f"Notification task for recipient {entry.task.recipient_id} "
                    f"exhausted {self.max_attempts} attempts, dead-lettering"
                )
                self.dead_letters.append(entry.task)

        return outcomes
