"""
Project-wide pytest fixtures.

Provides:
- Per-test isolation of the cache and channel layer
- The fake identity provider wired into settings
- API clients authenticated as a given profile
- The Ana (u1) and Beto (u2) profiles most tests talk between

App-specific fixtures are defined in each app's tests/conftest.py.
"""

import pytest
from asgiref.sync import async_to_sync
from channels.layers import InMemoryChannelLayer
from django.core.cache import cache
from rest_framework.test import APIClient

from authentication.tests.factories import ProfileFactory
from authentication.tests.fakes import FakeIdentityProvider


def pytest_collection_modifyitems(items):
    """
    Auto-mark tests based on filename patterns.

    Mapping:
    - test_integration.py → e2e (full message journey)
    - test_views.py, test_services.py, test_tasks.py, etc. → integration
    - test_models.py, test_identifiers.py, test_retry.py, etc. → unit
    - Unmatched files → integration (safe default for Django)

    Explicit markers on test functions/classes take precedence.
    """
    e2e_patterns = ["test_integration.py"]

    integration_patterns = [
        "test_views.py",
        "test_services.py",
        "test_tasks.py",
        "test_consumers.py",
        "test_subscriptions.py",
        "test_dispatcher.py",
        "test_token_lifecycle.py",
        "test_handlers.py",
    ]

    unit_patterns = [
        "test_models.py",
        "test_identifiers.py",
        "test_retry.py",
        "test_exceptions.py",
        "test_alerts.py",
        "test_presence.py",
        "test_transport.py",
        "test_identity.py",
    ]

    for item in items:
        existing_markers = {m.name for m in item.iter_markers()}
        if existing_markers & {"unit", "integration", "e2e"}:
            continue

        filename = str(item.fspath).split("/")[-1]

        if any(pattern in filename for pattern in e2e_patterns):
            item.add_marker(pytest.mark.e2e)
        elif any(pattern in filename for pattern in integration_patterns):
            item.add_marker(pytest.mark.integration)
        elif any(pattern in filename for pattern in unit_patterns):
            item.add_marker(pytest.mark.unit)
        else:
            item.add_marker(pytest.mark.integration)


# =============================================================================
# Isolation
# =============================================================================


@pytest.fixture(autouse=True)
def clear_cache():
    """Presence state and installation tokens must not leak between tests."""
    cache.clear()
    yield
    cache.clear()


@pytest.fixture
def channel_layer():
    """A fresh in-memory channel layer for one test."""
    return InMemoryChannelLayer()


@pytest.fixture(autouse=True)
def default_channel_layer():
    """Empty the process-wide channel layer that code without injection uses."""
    from channels.layers import get_channel_layer

    layer = get_channel_layer()
    yield layer
    async_to_sync(layer.flush)()


# =============================================================================
# Identity
# =============================================================================


@pytest.fixture(autouse=True)
def identity_provider(settings):
    """
    Route every credential check to FakeIdentityProvider.

    Register credentials with identity_provider.register("token", uid="u1").
    """
    settings.IDENTITY_PROVIDER = "authentication.tests.fakes.FakeIdentityProvider"
    FakeIdentityProvider.reset()
    yield FakeIdentityProvider
    FakeIdentityProvider.reset()


@pytest.fixture
def api_client():
    """Unauthenticated API client."""
    return APIClient()


@pytest.fixture
def client_for(identity_provider):
    """
    Factory returning an APIClient authenticated as a profile.

    Usage:
        client = client_for(profile)
        client.get("/api/v1/auth/profile/")
    """

    def make(profile):
        credential = f"token-{profile.uid}"
        identity_provider.register(
            credential,
            uid=profile.uid,
            email=profile.email,
            display_name=profile.display_name,
        )
        client = APIClient()
        client.credentials(HTTP_AUTHORIZATION=f"Bearer {credential}")
        return client

    return make


# =============================================================================
# Profiles
# =============================================================================


@pytest.fixture
def ana(db):
    """Profile u1 with a display name."""
    return ProfileFactory(uid="u1", display_name="Ana", email="ana@example.com")


@pytest.fixture
def beto(db):
    """Profile u2, Ana's usual peer."""
    return ProfileFactory(uid="u2", display_name="Beto", email="beto@example.com")
