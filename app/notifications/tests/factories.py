"""
Factory Boy factories for notification models.

Provides test data generation for:
- Notification: Individual user notifications (read or unread)

Usage:
    from notifications.tests.factories import NotificationFactory

    # Create an unread notification for a user
    notification = NotificationFactory(recipient=user)

    # Create a read notification (read_at is filled in)
    notification = NotificationFactory(recipient=user, is_read=True)
"""

import factory
from django.utils import timezone

from authentication.tests.factories import UserFactory


class NotificationFactory(factory.django.DjangoModelFactory):
    """
    Factory for Notification model.

    read_at follows is_read so generated rows always satisfy the
    read_at/is_read check constraint.

    Examples:
        notification = NotificationFactory()
        notification = NotificationFactory(url="/posts/1")
        notification = NotificationFactory(is_read=True)
    """

    class Meta:
        model = "notifications.Notification"

    recipient = factory.SubFactory(UserFactory)
    title = factory.Sequence(lambda n: f"Notification {n}")
    body = factory.Faker("sentence")
    url = None
    is_read = False
    read_at = factory.LazyAttribute(
        lambda o: timezone.now() if o.is_read else None
    )
    idempotency_key = None

