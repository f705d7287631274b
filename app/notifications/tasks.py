"""
Celery tasks for notification processing.

This module is the worker side of the notification queue. The dispatcher
(notifications.queues.CeleryTaskQueue) publishes envelope payloads here.

Tasks:
    process_notification_task: Persist one notification from its payload

Design:
    - Tasks receive the envelope wire payload (a JSON dict), never model ids
    - The processor classifies the delivery; this task only schedules
    - acks_late + reject_on_worker_lost: a worker crash before the ack leads
      to redelivery, so the same payload can be processed more than once
    - Retry budget and exponential backoff are read from settings

Usage:
    from notifications.tasks import process_notification_task

    # Normally published by CeleryTaskQueue.enqueue()
    process_notification_task.delay(task.to_payload())
"""

from __future__ import annotations

import logging
from typing import Any

from celery import shared_task
from celery.exceptions import MaxRetriesExceededError
from django.conf import settings

from notifications.processing import (
    DjangoNotificationStore,
    NotificationTaskProcessor,
    ProcessingOutcome,
)

logger = logging.getLogger(__name__)


def retry_countdown(retries: int) -> int:
    """
    Seconds to wait before the next delivery attempt.

    Exponential: NOTIFICATION_RETRY_BACKOFF * 2**retries, capped at
    NOTIFICATION_RETRY_BACKOFF_MAX.
    """
    countdown = settings.NOTIFICATION_RETRY_BACKOFF * (2**retries)
    return min(countdown, settings.NOTIFICATION_RETRY_BACKOFF_MAX)


@shared_task(
    bind=True,
    acks_late=True,
    reject_on_worker_lost=True,
    max_retries=settings.NOTIFICATION_TASK_MAX_RETRIES,
)
def process_notification_task(self, payload: dict[str, Any]) -> str:
    """
    Persist the notification described by ``payload``.

    Flow:
        1. Decode the payload and hand it to the processor
        2. COMMITTED: done
        3. DISCARDED: dead-letter, no retry
        4. RETRY_REQUESTED: schedule a retry with backoff
        5. Retry budget exhausted: dead-letter

    Args:
        payload: NotificationTask.to_payload() output

    Returns:
        The ProcessingOutcome value of the final attempt

    Raises:
        celery.exceptions.Retry: When a retry has been scheduled
    """
    processor = NotificationTaskProcessor(DjangoNotificationStore())
    outcome = processor.handle_payload(payload)

    if outcome is ProcessingOutcome.COMMITTED:
        return outcome.value

    if outcome is ProcessingOutcome.DISCARDED:
        logger.warning(
            f"Notification task {self.request.id} discarded, payload={payload!r}"
        )
        return outcome.value

    countdown = retry_countdown(self.request.retries)
    logger.warning(
        f"Notification task {self.request.id} requested retry "
        f"{self.request.retries + 1}/{self.max_retries} in {countdown}s"
    )
    try:
        raise self.retry(countdown=countdown)
    except MaxRetriesExceededError:
        logger.error(
            f"Notification task {self.request.id} exhausted "
            f"{self.max_retries} retries, dead-lettering payload={payload!r}"
        )
        return outcome.value
