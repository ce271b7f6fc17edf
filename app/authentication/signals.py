"""
Django signals for authentication.

profile_changed:
    Sent by ProfileStore after a profile is created or one of its identity
    fields changes (ensure_profile merge, update_display_name). Receivers get
    `profile` (the reloaded Profile), `created` and `fields` (names of the
    fields written). This is the server-side stream of profile changes;
    receiver failures are logged by the store and never fail the write.

The post_save receiver below logs first sign-ins. Profiles are only ever
created through ProfileStore.ensure_profile.

Usage:
    Signals are automatically connected when the app is ready.
    See apps.py for the import that triggers connection.
"""

import logging

from django.db.models.signals import post_save
from django.dispatch import Signal, receiver

from authentication.models import Profile

logger = logging.getLogger(__name__)

profile_changed = Signal()


@receiver(post_save, sender=Profile)
def log_profile_created(sender, instance, created, **kwargs):
    if created:
        logger.info(f"First sign-in for {instance.uid}")
