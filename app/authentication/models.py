"""
Identity and profile models.

This module defines the records owned by the profile store:
- Profile: One row per identity-provider user, keyed by the provider uid
- DeviceToken: Push tokens registered for a profile

Related files:
    - services.py: ProfileStore (merge-if-absent creation, token set updates)
    - identity.py: Identity provider boundary (Firebase ID tokens)
    - backends.py: DRF authentication resolving a Profile per request

Invariants:
    - uid uniquely determines at most one Profile
    - email/phone are filled from the identity provider once, never overwritten
    - last_seen never moves backwards
    - a DeviceToken is inserted or deleted, never updated
    - a token belongs to at most one profile (many-to-one token -> profile)
"""

from django.core.exceptions import ValidationError
from django.db import models

from authentication.constants import DEFAULT_SENDER_NAME, UID_MAX_LENGTH, UID_REGEX
from core.models import BaseModel


def validate_uid(value):
    """Validate an identity-provider uid (no blanks, no "_")."""
    if not UID_REGEX.match(value or ""):
        raise ValidationError(
            "User id must be 1-128 characters of letters, digits, '.', ':' or '-'."
        )


class Profile(BaseModel):
    """
    Messaging profile for one identity-provider user.

    Fields:
        uid: Identity-provider user id (primary key, immutable)
        display_name: Canonical name shown to peers and used as push title
        legacy_name: Deprecated alias for display_name written by old clients
        email: Verified email from the identity provider (set once)
        phone: Verified phone from the identity provider (set once)
        photo_url: Avatar URL (opaque)
        last_seen: Epoch milliseconds of the latest session refresh

    Usage:
        profile = await ProfileStore().ensure_profile(claims)
        profile.resolved_name  # "Ana", or "Usuario" when nothing is set

    Note:
        Profile doubles as request.user for API and WebSocket requests,
        hence is_authenticated / is_anonymous.
    """

    uid = models.CharField(
        max_length=UID_MAX_LENGTH,
        primary_key=True,
        validators=[validate_uid],
        help_text="Identity-provider user id",
    )
    display_name = models.CharField(
        max_length=150,
        blank=True,
        default="",
        help_text="Canonical display name",
    )
    legacy_name = models.CharField(
        max_length=150,
        blank=True,
        default="",
        help_text="Deprecated name alias, read only as a fallback for display_name",
    )
    email = models.EmailField(
        max_length=254,
        blank=True,
        default="",
        db_index=True,
        help_text="Email from the identity provider (never overwritten once set)",
    )
    phone = models.CharField(
        max_length=32,
        blank=True,
        default="",
        help_text="Phone from the identity provider (never overwritten once set)",
    )
    photo_url = models.URLField(
        max_length=2048,
        blank=True,
        null=True,
        help_text="Avatar URL",
    )
    last_seen = models.BigIntegerField(
        default=0,
        help_text="Epoch milliseconds of the last session refresh (monotonic)",
    )

    class Meta:
        db_table = "authentication_profile"
        verbose_name = "profile"
        verbose_name_plural = "profiles"
        ordering = ["display_name", "uid"]

    def __str__(self) -> str:
        return f"{self.resolved_name} ({self.uid})"

    @property
    def resolved_name(self) -> str:
        """display_name, then legacy_name, then the default sender name."""
        return (
            self.display_name.strip()
            or self.legacy_name.strip()
            or DEFAULT_SENDER_NAME
        )

    @property
    def is_authenticated(self) -> bool:
        return True

    @property
    def is_anonymous(self) -> bool:
        return False


class DeviceToken(BaseModel):
    """
    Push token registered for a profile.

    The set of a profile's DeviceToken rows is its push token set. A token
    belongs to at most one profile: registering it for another profile
    (a different account signing in on the same device) deletes the old row
    and inserts a new one. Rows are added with INSERT ... ON CONFLICT DO
    NOTHING and removed with a single DELETE, never updated in place.

    Fields:
        profile: Owner of the token
        token: Opaque token issued by the push platform
    """

    profile = models.ForeignKey(
        Profile,
        on_delete=models.CASCADE,
        related_name="device_tokens",
        help_text="Profile this token delivers to",
    )
    token = models.CharField(
        max_length=512,
        unique=True,
        help_text="Opaque push token, owned by one profile at a time",
    )

    class Meta:
        db_table = "authentication_device_token"
        verbose_name = "device token"
        verbose_name_plural = "device tokens"
        ordering = ["created_at", "id"]

    def __str__(self) -> str:
        return f"{self.token[:12]}... -> {self.profile_id}"
