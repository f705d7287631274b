"""
Test configuration and fixtures for notification tests.

This module provides:
- User fixtures (recipient, other user, staff dispatcher)
- Notification fixtures (read/unread, scoped to different users)
- Pipeline fixtures (store, processor, in-memory queue, notifier)
- API client helpers for authenticated requests

Usage:
    def test_example(user, unread_notification, authenticated_client):
        response = authenticated_client.get('/api/v1/notifications/')
        assert response.status_code == 200
"""

import pytest
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import RefreshToken

from authentication.tests.factories import UserFactory
from notifications.processing import DjangoNotificationStore, NotificationTaskProcessor
from notifications.queues import InMemoryTaskQueue
from notifications.services import Notifier
from notifications.tests.factories import NotificationFactory


class RecordingStore(DjangoNotificationStore):
    """DjangoNotificationStore that counts persist() calls."""

    def __init__(self):
        self.persist_calls = 0

    def persist(self, task, recipient):
        self.persist_calls += 1
        return super().persist(task, recipient)


# =============================================================================
# User Fixtures
# =============================================================================


@pytest.fixture
def user(db):
    """Create a basic user to receive notifications."""
    return UserFactory()


@pytest.fixture
def other_user(db):
    """Create another user for multi-user tests."""
    return UserFactory()


@pytest.fixture
def staff_user(db):
    """Create a staff user allowed to dispatch notifications."""
    return UserFactory(is_staff=True)


# =============================================================================
# Notification Fixtures
# =============================================================================


@pytest.fixture
def unread_notification(db, user):
    """Create an unread notification."""
    return NotificationFactory(
        recipient=user,
        title="Unread Notification",
        body="This notification has not been read.",
    )


@pytest.fixture
def read_notification(db, user):
    """Create a read notification."""
    return NotificationFactory(
        recipient=user,
        title="Read Notification",
        body="This notification has been read.",
        is_read=True,
    )


@pytest.fixture
def mixed_notifications(db, user):
    """
    Create a mix of read and unread notifications.

    Returns dict with 'unread', 'read', and 'all' keys.
    """
    unread = NotificationFactory.create_batch(3, recipient=user)
    read = NotificationFactory.create_batch(2, recipient=user, is_read=True)
    return {"unread": unread, "read": read, "all": unread + read}


@pytest.fixture
def other_user_notifications(db, other_user):
    """Create notifications for another user (for scoping tests)."""
    return NotificationFactory.create_batch(3, recipient=other_user)


# =============================================================================
# Pipeline Fixtures
# =============================================================================


@pytest.fixture
def store(db):
    """ORM store that records how many writes were attempted."""
    return RecordingStore()


@pytest.fixture
def processor(store):
    """Task processor backed by the recording store."""
    return NotificationTaskProcessor(store)


@pytest.fixture
def memory_queue():
    """In-memory queue allowing three delivery attempts per envelope."""
    return InMemoryTaskQueue(max_attempts=3)


@pytest.fixture
def notifier(memory_queue):
    """Notifier publishing to the in-memory queue."""
    return Notifier(memory_queue)


# =============================================================================
# API Client Fixtures
# =============================================================================


@pytest.fixture
def api_client():
    """Unauthenticated API client."""
    return APIClient()


@pytest.fixture
def authenticated_client_factory(db):
    """
    Factory to create authenticated clients for any user.

    Usage:
        def test_example(authenticated_client_factory, some_user):
            client = authenticated_client_factory(some_user)
            response = client.get('/api/v1/notifications/')
    """

    def _make(user):
        client = APIClient()
        refresh = RefreshToken.for_user(user)
        client.credentials(HTTP_AUTHORIZATION=f"Bearer {refresh.access_token}")
        return client

    return _make


@pytest.fixture
def authenticated_client(authenticated_client_factory, user):
    """API client authenticated with JWT token for the default user fixture."""
    return authenticated_client_factory(user)


@pytest.fixture
def staff_client(authenticated_client_factory, staff_user):
    """API client authenticated as a staff user."""
    return authenticated_client_factory(staff_user)
