"""
Notifications app for asynchronous in-app notification creation.

This app provides:
- Notifier for fire-and-forget dispatch of notification envelopes
- Celery task and task processor that persist notifications at-least-once
- Notification model storing per-user notifications with read state
- REST API for listing notifications and marking them as read

Usage:
    from notifications.services import get_notifier

    # Queue a notification; the worker creates it later
    get_notifier().notify(recipient_id=user.id, title="Welcome", body="Hi!")
"""
