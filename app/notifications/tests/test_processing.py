"""
Tests for the task processor.

Verifies:
- Committed deliveries persist exactly the envelope's fields
- Unknown recipients and malformed payloads are discarded without writes,
  however many times they are delivered
- Values the database rejects are discarded, not retried
- Store failures are retried without writes, and nothing escapes handle()
- Duplicate deliveries without an idempotency_key create duplicate rows
- Duplicate deliveries with an idempotency_key create a single row
"""

import pytest
from django.db import DataError, OperationalError

from notifications.envelopes import NotificationTask
from notifications.exceptions import TransientProcessingError
from notifications.models import Notification
from notifications.processing import (
    DjangoNotificationStore,
    NotificationStore,
    NotificationTaskProcessor,
    ProcessingOutcome,
)


class TestCommit:
    """Tests for the COMMITTED path."""

    def test_creates_unread_notification_for_existing_recipient(
        self, db, user, processor
    ):
        """
        Given an envelope for an existing recipient with no url
        When the processor handles it
        Then exactly one unread notification with url=None is stored
        """
        task = NotificationTask(recipient_id=user.id, title="Test", body="hi")

        outcome = processor.handle(task)

        assert outcome is ProcessingOutcome.COMMITTED
        notification = Notification.objects.get(recipient=user)
        assert notification.title == "Test"
        assert notification.body == "hi"
        assert notification.url is None
        assert notification.is_read is False
        assert notification.read_at is None

    def test_persists_url(self, db, user, processor):
        """A url on the envelope is copied to the notification."""
        processor.handle(
            NotificationTask(recipient_id=user.id, title="Link", url="/posts/42")
        )

        assert Notification.objects.get(recipient=user).url == "/posts/42"

    def test_each_delivery_without_key_inserts_a_row(self, db, user, processor):
        """
        Given the same envelope delivered twice
        When no idempotency_key is set
        Then two notifications exist (at-least-once duplication)
        """
        task = NotificationTask(recipient_id=user.id, title="A", body="B")

        assert processor.handle(task) is ProcessingOutcome.COMMITTED
        assert processor.handle(task) is ProcessingOutcome.COMMITTED

        assert Notification.objects.filter(recipient=user).count() == 2

    def test_idempotency_key_deduplicates_redelivery(self, db, user, processor):
        """
        Given the same keyed envelope delivered twice
        When the processor handles both
        Then both are COMMITTED and a single row exists
        """
        task = NotificationTask(
            recipient_id=user.id, title="A", body="B", idempotency_key="order-1"
        )

        assert processor.handle(task) is ProcessingOutcome.COMMITTED
        assert processor.handle(task) is ProcessingOutcome.COMMITTED

        assert Notification.objects.filter(idempotency_key="order-1").count() == 1

    def test_idempotent_redelivery_keeps_read_state(self, db, user, processor):
        """A redelivered keyed envelope does not reset a notification already read."""
        task = NotificationTask(recipient_id=user.id, title="A", idempotency_key="k")
        processor.handle(task)
        Notification.objects.get(idempotency_key="k").mark_as_read()

        processor.handle(task)

        notification = Notification.objects.get(idempotency_key="k")
        assert notification.is_read is True
        assert notification.read_at is not None


class TestDiscard:
    """Tests for the DISCARDED path."""

    def test_unknown_recipient_discarded_without_write(self, db, store, processor):
        """
        Given an envelope for recipient 999 that does not exist
        When the processor handles it
        Then the outcome is DISCARDED and the store is never written
        """
        task = NotificationTask(recipient_id=999, title="x", body="y")

        outcome = processor.handle(task)

        assert outcome is ProcessingOutcome.DISCARDED
        assert store.persist_calls == 0
        assert Notification.objects.count() == 0

    def test_unknown_recipient_discarded_on_every_delivery(
        self, db, store, processor
    ):
        """
        Given the same envelope for missing recipient 999
        When it is handled several times
        Then every attempt is DISCARDED and no row is ever written
        """
        task = NotificationTask(recipient_id=999, title="x", body="y")

        outcomes = [processor.handle(task) for _ in range(3)]

        assert outcomes == [ProcessingOutcome.DISCARDED] * 3
        assert store.persist_calls == 0
        assert Notification.objects.count() == 0

    def test_value_rejected_by_database_is_discarded(self, db, user, mocker):
        """
        Given a store whose insert fails with a DataError
        When the processor handles an envelope
        Then the outcome is DISCARDED rather than retried
        """
        mocker.patch.object(
            DjangoNotificationStore,
            "persist",
            side_effect=DataError("value too long for type character varying(255)"),
        )
        processor = NotificationTaskProcessor(DjangoNotificationStore())

        outcome = processor.handle(NotificationTask(recipient_id=user.id, title="T"))

        assert outcome is ProcessingOutcome.DISCARDED
        assert Notification.objects.count() == 0

    def test_discard_is_logged(self, db, processor, caplog):
        """Discarding logs a warning naming the recipient."""
        with caplog.at_level("WARNING", logger="notifications.processing"):
            processor.handle(NotificationTask(recipient_id=999, title="x"))

        assert "recipient 999" in caplog.text

    @pytest.mark.parametrize(
        "payload",
        [
            None,
            {"title": "no recipient"},
            {"recipient_id": "7", "title": "Test"},
            {"recipient_id": 7, "title": ""},
            {"recipient_id": 7, "title": "x" * 300},
        ],
    )
    def test_undecodable_payload_discarded(self, db, store, processor, payload):
        """Malformed wire payloads are discarded before touching the store."""
        outcome = processor.handle_payload(payload)

        assert outcome is ProcessingOutcome.DISCARDED
        assert store.persist_calls == 0

    def test_handle_payload_commits_valid_payload(self, db, user, processor):
        """A well-formed payload is decoded and processed."""
        outcome = processor.handle_payload(
            {"recipient_id": user.id, "title": "Test", "body": "hi", "url": None}
        )

        assert outcome is ProcessingOutcome.COMMITTED


class TestRetry:
    """Tests for the RETRY_REQUESTED path."""

    def test_database_error_requests_retry_without_write(self, db, user, mocker):
        """
        Given a store whose commit fails with a database error
        When the processor handles an envelope
        Then the outcome is RETRY_REQUESTED and no row exists
        """
        mocker.patch.object(
            DjangoNotificationStore,
            "persist",
            side_effect=OperationalError("database is locked"),
        )
        processor = NotificationTaskProcessor(DjangoNotificationStore())

        outcome = processor.handle(NotificationTask(recipient_id=user.id, title="T"))

        assert outcome is ProcessingOutcome.RETRY_REQUESTED
        assert Notification.objects.count() == 0

    def test_transient_error_requests_retry(self, db, user, mocker):
        """TransientProcessingError is retried."""
        mocker.patch.object(
            DjangoNotificationStore,
            "find_recipient",
            side_effect=TransientProcessingError("replica lagging"),
        )
        processor = NotificationTaskProcessor(DjangoNotificationStore())

        outcome = processor.handle(NotificationTask(recipient_id=user.id, title="T"))

        assert outcome is ProcessingOutcome.RETRY_REQUESTED

    def test_unexpected_exception_does_not_escape(self, mocker):
        """Unknown exception types are classified as retryable, never raised."""
        store = mocker.Mock(spec=NotificationStore)
        store.find_recipient.side_effect = RuntimeError("boom")
        processor = NotificationTaskProcessor(store)

        outcome = processor.handle(NotificationTask(recipient_id=7, title="T"))

        assert outcome is ProcessingOutcome.RETRY_REQUESTED
        store.persist.assert_not_called()

    def test_unexpected_exception_logged_with_traceback(self, mocker, caplog):
        """Unexpected failures are logged with exception info."""
        store = mocker.Mock(spec=NotificationStore)
        store.find_recipient.side_effect = RuntimeError("boom")
        processor = NotificationTaskProcessor(store)

        with caplog.at_level("ERROR", logger="notifications.processing"):
            processor.handle(NotificationTask(recipient_id=7, title="T"))

        assert any(record.exc_info for record in caplog.records)

    def test_failed_persist_rolls_back(self, db, user, mocker):
        """A failure inside the store transaction leaves no partial row."""
        mocker.patch(
            "notifications.processing.Notification.objects.create",
            side_effect=OperationalError("disk I/O error"),
        )
        processor = NotificationTaskProcessor(DjangoNotificationStore())

        outcome = processor.handle(NotificationTask(recipient_id=user.id, title="T"))

        assert outcome is ProcessingOutcome.RETRY_REQUESTED
        assert Notification.objects.count() == 0


class TestDjangoNotificationStore:
    """Tests for the ORM store."""

    def test_find_recipient_returns_none_for_unknown_id(self, db):
        assert DjangoNotificationStore().find_recipient(424242) is None

    def test_find_recipient_returns_user(self, db, user):
        assert DjangoNotificationStore().find_recipient(user.id) == user

    def test_persist_reports_existing_row_for_same_key(self, db, user):
        """Second persist with the same key returns the first row, created=False."""
        store = DjangoNotificationStore()
        task = NotificationTask(recipient_id=user.id, title="A", idempotency_key="k")

        first, first_created = store.persist(task, user)
        second, second_created = store.persist(task, user)

        assert first_created is True
        assert second_created is False
        assert second.pk == first.pk

    def test_satisfies_store_protocol(self):
        assert isinstance(DjangoNotificationStore(), NotificationStore)
