"""
Tests for authentication app.

This package contains test modules for:
- test_models.py: Profile, DeviceToken model tests
- test_services.py: ProfileStore tests
- test_identity.py: Firebase identity provider mapping
- test_views.py: Session, profile and contacts endpoints

Usage:
    pytest app/authentication/tests/
    pytest app/authentication/tests/test_services.py
"""
