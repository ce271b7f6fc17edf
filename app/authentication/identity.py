"""
Identity provider boundary.

The backend never handles passwords or sign-in flows. Clients authenticate
with the identity provider and present the resulting credential (a Firebase
ID token); this module turns it into verified claims.

Usage:
    from authentication.identity import get_identity_provider

    claims = get_identity_provider().verify(id_token)
    claims.uid, claims.email, claims.display_name

Configuration:
    IDENTITY_PROVIDER: Dotted path to an IdentityProvider class
        (default: authentication.identity.FirebaseIdentityProvider)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Protocol, runtime_checkable

from django.conf import settings
from django.utils.module_loading import import_string
from firebase_admin import auth as firebase_auth

from core.exceptions import PermissionDeniedError, TransientIOError, ValidationError
from core.firebase import get_firebase_app

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class IdentityClaims:
    """
    Verified identity of the caller.

    Attributes:
        uid: Stable user id assigned by the provider
        email: Verified email, or "" when the account has none
        phone: Verified phone, or ""
        display_name: Provider-side display name, or ""
        photo_url: Provider-side avatar URL, or None
    """

    uid: str
    email: str = ""
    phone: str = ""
    display_name: str = ""
    photo_url: str | None = None


@runtime_checkable
class IdentityProvider(Protocol):
    """Verifies an opaque client credential and returns its claims."""

    def verify(self, credential: str) -> IdentityClaims:
        """
        Raises:
            ValidationError: credential is blank
            PermissionDeniedError: credential is invalid, expired or revoked
            TransientIOError: provider could not be reached
        """
        ...


class FirebaseIdentityProvider:
    """
    IdentityProvider backed by Firebase Authentication ID tokens.

    Uses firebase_admin.auth.verify_id_token, which checks signature,
    audience and expiry against Google's public certificates.
    """

    def __init__(self, check_revoked: bool = False):
        self.check_revoked = check_revoked

    def verify(self, credential: str) -> IdentityClaims:
        if not credential or not credential.strip():
            raise ValidationError("Identity credential is required", error_code="BLANK_CREDENTIAL")

        try:
            decoded = firebase_auth.verify_id_token(
                credential,
                app=get_firebase_app(),
                check_revoked=self.check_revoked,
            )
        except firebase_auth.CertificateFetchError as e:
            logger.warning(f"Could not fetch identity certificates: {e}")
            raise TransientIOError(
                "Identity provider unavailable",
                error_code="IDENTITY_UNAVAILABLE",
            ) from e
        except (
            firebase_auth.ExpiredIdTokenError,
            firebase_auth.RevokedIdTokenError,
            firebase_auth.UserDisabledError,
            firebase_auth.InvalidIdTokenError,
        ) as e:
            raise PermissionDeniedError(
                "Identity credential rejected",
                error_code="INVALID_CREDENTIAL",
                details={"reason": e.__class__.__name__},
            ) from e
        except ValueError as e:
            raise ValidationError(
                "Malformed identity credential",
                error_code="MALFORMED_CREDENTIAL",
            ) from e

        return IdentityClaims(
            uid=decoded["uid"],
            email=decoded.get("email") or "",
            phone=decoded.get("phone_number") or "",
            display_name=decoded.get("name") or "",
            photo_url=decoded.get("picture") or None,
        )


def get_identity_provider() -> IdentityProvider:
    """Instantiate the provider configured in settings.IDENTITY_PROVIDER."""
    provider_path = getattr(
        settings,
        "IDENTITY_PROVIDER",
        "authentication.identity.FirebaseIdentityProvider",
    )
    return import_string(provider_path)()
