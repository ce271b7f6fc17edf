"""
Identity & profile application.

Key components:
    - Profile model: One row per identity-provider user
    - DeviceToken model: The profile's push token set
    - ProfileStore: Async store for profiles and tokens
    - IdentityTokenAuthentication: DRF auth via identity-provider ID tokens

Usage:
    from authentication.models import Profile
    from authentication.services import ProfileStore
"""
