"""
Shared firebase-admin application.

Both the identity provider (ID token verification) and the push transport
(multicast sends) need an initialized firebase_admin App. It is created
lazily on first use from settings:

    FIREBASE_CREDENTIALS_FILE: Path to a service-account JSON file. When
        empty, Application Default Credentials are used.
    FIREBASE_PROJECT_ID: Optional project id override.

Usage:
    from core.firebase import get_firebase_app

    app = get_firebase_app()
    firebase_admin.messaging.send_each_for_multicast(message, app=app)
"""

from __future__ import annotations

import logging
import threading

import firebase_admin
from django.conf import settings
from firebase_admin import credentials

logger = logging.getLogger(__name__)

APP_NAME = "messaging-backend"

_lock = threading.Lock()


def get_firebase_app() -> firebase_admin.App:
    """Return the named firebase_admin App, initializing it once per process."""
    with _lock:
        try:
            return firebase_admin.get_app(APP_NAME)
        except ValueError:
            pass

        credentials_file = getattr(settings, "FIREBASE_CREDENTIALS_FILE", "")
        if credentials_file:
            credential = credentials.Certificate(credentials_file)
        else:
            credential = credentials.ApplicationDefault()

        options = {}
        project_id = getattr(settings, "FIREBASE_PROJECT_ID", "")
        if project_id:
            options["projectId"] = project_id

        logger.info(
            f"Initializing firebase app {APP_NAME} "
            f"(project={project_id or 'default'})"
        )
        return firebase_admin.initialize_app(credential, options, name=APP_NAME)
