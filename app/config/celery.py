"""
Celery configuration for the Django application.

Celery carries notification envelopes from the dispatcher to the workers
that persist them. Redis is both the message broker and result backend.
Tasks are auto-discovered from all installed Django apps.

Delivery guarantees come from settings (see CELERY_TASK_ACKS_LATE and
CELERY_TASK_REJECT_ON_WORKER_LOST): a task is acknowledged only after it
returns, so a crashed worker leads to redelivery.

Usage:
    # Start a worker consuming the notification queue
    celery -A config worker -Q notifications -l info

For more information, see:
https://docs.celeryq.dev/en/stable/django/first-steps-with-django.html
"""

import os

from celery import Celery

# Set the default Django settings module for the Celery worker
os.environ.setdefault("DJANGO_SETTINGS_MODULE", "config.settings")

app = Celery("config")

# All Celery settings are prefixed with CELERY_ in settings.py
app.config_from_object("django.conf:settings", namespace="CELERY")

# Celery will look for a tasks.py module in each installed app
app.autodiscover_tasks()
