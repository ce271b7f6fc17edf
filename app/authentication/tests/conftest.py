"""
Test configuration and fixtures for authentication tests.

This module provides:
- A ProfileStore wired to the fake identity provider with instant retries

The ana/beto profiles come from the project conftest.

Usage:
    def test_example(ana, store):
        profile = async_to_sync(store.get_profile)(ana.uid)
"""

import pytest

from authentication.services import ProfileStore
from authentication.tests.fakes import FakeIdentityProvider
from core.retry import RetryPolicy


@pytest.fixture
def store(db):
    """ProfileStore with the fake provider and a no-wait retry policy."""
    return ProfileStore(
        identity_provider=FakeIdentityProvider(),
        retry_policy=RetryPolicy(max_attempts=3, base_delay=0.0),
    )
