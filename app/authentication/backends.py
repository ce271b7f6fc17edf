"""
DRF authentication via identity-provider credentials.

Clients send the provider-issued ID token as a bearer token:

    Authorization: Bearer <id token>

The token is verified on every request and request.user becomes the
caller's Profile. Unknown uids get a profile created from the token claims,
so the first authenticated call also performs ensure_profile.
"""

from __future__ import annotations

import logging

from asgiref.sync import async_to_sync
from rest_framework import authentication, exceptions

from authentication.identity import get_identity_provider
from authentication.services import ProfileStore
from core.exceptions import (
    BaseApplicationError,
    PermissionDeniedError,
    TransientIOError,
)

logger = logging.getLogger(__name__)


class IdentityTokenAuthentication(authentication.BaseAuthentication):
    """Authenticate requests carrying an identity-provider ID token."""

    keyword = "Bearer"

    def authenticate(self, request):
        header = authentication.get_authorization_header(request).split()
        if not header or header[0].lower() != self.keyword.lower().encode():
            return None

        if len(header) != 2:
            raise exceptions.AuthenticationFailed("Invalid bearer header.")

        try:
            credential = header[1].decode()
        except UnicodeError:
            raise exceptions.AuthenticationFailed("Invalid bearer token encoding.") from None

        return self.authenticate_credentials(credential)

    def authenticate_credentials(self, credential: str):
        try:
            claims = get_identity_provider().verify(credential)
            profile = async_to_sync(ProfileStore().ensure_profile)(claims)
        except TransientIOError:
            # Let the exception handler answer 503 so the client retries
            raise
        except PermissionDeniedError as e:
            logger.info(f"Rejected identity credential: {e.details.get('reason', e.error_code)}")
            raise exceptions.AuthenticationFailed("Invalid or expired credential.") from e
        except BaseApplicationError as e:
            raise exceptions.AuthenticationFailed(e.message) from e
        return (profile, credential)

    def authenticate_header(self, request):
        return self.keyword
