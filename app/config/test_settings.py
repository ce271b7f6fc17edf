"""
Settings for the test suite.

Fills in the environment the main settings module requires, then imports it:
in-memory SQLite, local-memory cache, in-memory channel layer, eager Celery
and the logging push transport. Values already present in the environment
win, so CI can still point DATABASE_URL at PostgreSQL.

Usage (pyproject.toml):
    [tool.pytest.ini_options]
    DJANGO_SETTINGS_MODULE = "config.test_settings"
"""

import os
import tempfile

os.environ.setdefault("SECRET_KEY", "test-secret-key-not-for-production")
os.environ.setdefault("DEBUG", "False")
os.environ.setdefault("ALLOWED_HOSTS", "testserver,localhost")
os.environ.setdefault("DATABASE_URL", "sqlite://:memory:")
os.environ.setdefault("USE_IN_MEMORY_BACKENDS", "True")
os.environ.setdefault("CELERY_TASK_ALWAYS_EAGER", "True")
os.environ.setdefault("PUSH_TRANSPORT", "notifications.transport.LoggingPushTransport")
os.environ.setdefault("SECURE_SSL_REDIRECT", "False")
os.environ.setdefault("LOG_LEVEL", "WARNING")
os.environ.setdefault("LOG_DIR", os.path.join(tempfile.gettempdir(), "messaging-test-logs"))
os.environ.setdefault("MEDIA_ROOT", os.path.join(tempfile.gettempdir(), "messaging-test-media"))
os.environ.setdefault("ENV_FILE", os.devnull)

from config.settings import *  # noqa: E402,F401,F403

# Disable throttling during tests to prevent rate limit failures
REST_FRAMEWORK["DEFAULT_THROTTLE_CLASSES"] = []  # noqa: F405
REST_FRAMEWORK["DEFAULT_THROTTLE_RATES"] = {}  # noqa: F405

# Tasks run inline and re-raise, so failures surface in the test
CELERY_TASK_EAGER_PROPAGATES = True

# Retries in tests must not sleep
PUSH_RETRY_BASE_DELAY = 0.0

# Hashed static manifest is not built in tests
STORAGES = {
    **STORAGES,  # noqa: F405
    "staticfiles": {
        "BACKEND": "django.contrib.staticfiles.storage.StaticFilesStorage",
    },
}

PASSWORD_HASHERS = [
    "django.contrib.auth.hashers.MD5PasswordHasher",
]
