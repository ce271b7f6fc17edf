"""
Celery configuration for the messaging backend.

Celery runs the work that must not hold up a message append:
- Push alert dispatch (notifications.tasks.dispatch_message_push)

Redis is both the message broker and result backend. Tasks are
auto-discovered from all installed Django apps.

Worker:
    celery -A config worker --workdir app -l info

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

# Picks up notifications/tasks.py
app.autodiscover_tasks()
