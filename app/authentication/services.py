"""
Identity & profile store.

ProfileStore owns Profile rows and their push token sets. Every operation is
a coroutine so WebSocket consumers and async views can call it directly.

Related files:
    - models.py: Profile, DeviceToken
    - identity.py: IdentityClaims and the identity provider boundary
    - notifications/services.py: TokenLifecycleManager and PushDispatcher,
      the two actors that add and remove tokens through this store

Concurrency:
    - Field merges are conditional UPDATEs (WHERE field = ''), not
      read-modify-write, so concurrent ensure_profile calls cannot blank a
      field another call already filled
    - Token adds are one transaction: DELETE the tokens from any other
      profile, then INSERT ... ON CONFLICT DO NOTHING; removals are a single
      DELETE ... WHERE token IN (...). Rows are never updated in place

Usage:
    from authentication.services import ProfileStore

    store = ProfileStore()
    profile = await store.ensure_profile(claims)
    await store.add_push_tokens(profile.uid, ["fcm-token"])
    name = await store.resolve_display_name(profile.uid)
"""

from __future__ import annotations

import time
from typing import TYPE_CHECKING

from asgiref.sync import sync_to_async
from django.db.models import Q

from authentication.constants import (
    DEFAULT_SENDER_NAME,
    SESSION_REFRESH_CONFIG,
    UID_REGEX,
)
from authentication.identity import IdentityClaims, get_identity_provider
from authentication.models import DeviceToken, Profile
from authentication.signals import profile_changed
from core.exceptions import NotFoundError, ValidationError
from core.retry import RetryPolicy, retry_async
from core.services import BaseService

if TYPE_CHECKING:
    from collections.abc import Iterable

    from authentication.identity import IdentityProvider


def now_ms() -> int:
    """Current wall-clock time as epoch milliseconds."""
    return int(time.time() * 1000)


def clean_uid(uid: str | None) -> str:
    """
    Validate a profile id and return it stripped.

    Raises:
        ValidationError: uid is blank or contains characters outside the
            identity-provider alphabet
    """
    uid = (uid or "").strip()
    if not uid:
        raise ValidationError("Profile id is required", error_code="BLANK_UID")
    if not UID_REGEX.match(uid):
        raise ValidationError(
            "Profile id contains unsupported characters",
            error_code="INVALID_UID",
            details={"uid": uid},
        )
    return uid


def _clean_tokens(tokens: Iterable[str]) -> list[str]:
    # Order-preserving de-duplication; blanks are dropped
    seen = {}
    for token in tokens:
        token = (token or "").strip()
        if token:
            seen.setdefault(token, None)
    return list(seen)


class ProfileStore(BaseService):
    """
    Async store for profiles and their push tokens.

    Args:
        identity_provider: Used by refresh_session; defaults to the provider
            configured in settings.IDENTITY_PROVIDER
        retry_policy: Backoff for transient identity-provider failures
    """

    def __init__(
        self,
        identity_provider: IdentityProvider | None = None,
        retry_policy: RetryPolicy | None = None,
    ):
        self._identity_provider = identity_provider
        self.retry_policy = retry_policy or RetryPolicy(
            max_attempts=SESSION_REFRESH_CONFIG["MAX_ATTEMPTS"],
            base_delay=SESSION_REFRESH_CONFIG["BASE_DELAY_SECONDS"],
        )

    @property
    def identity_provider(self) -> IdentityProvider:
        if self._identity_provider is None:
            self._identity_provider = get_identity_provider()
        return self._identity_provider

    # =========================================================================
    # Profiles
    # =========================================================================

    async def ensure_profile(self, claims: IdentityClaims) -> Profile:
        """
        Create the profile for claims.uid, or merge into the existing one.

        Merge-if-absent: a field already holding a value is never overwritten,
        and a blank claim never clears a stored value. Calling this twice with
        the same uid never creates a second row.
        """
        uid = clean_uid(claims.uid)
        fields = {
            "email": (claims.email or "").strip(),
            "phone": (claims.phone or "").strip(),
            "display_name": (claims.display_name or "").strip(),
        }
        photo_url = (claims.photo_url or "").strip() or None

        with self.translate_io_errors("ensure profile"):
            profile, created = await Profile.objects.aget_or_create(
                uid=uid,
                defaults={**fields, "photo_url": photo_url, "last_seen": now_ms()},
            )
            if created:
                self.get_logger().info(f"Created profile {uid}")
                await self._announce_change(
                    profile, created=True, fields=[*fields, "photo_url"]
                )
                return profile

            filled = []
            for name, value in fields.items():
                if not value:
                    continue
                updated = await Profile.objects.filter(uid=uid, **{name: ""}).aupdate(
                    **{name: value}
                )
                if updated:
                    filled.append(name)
            if photo_url:
                updated = await Profile.objects.filter(
                    Q(photo_url__isnull=True) | Q(photo_url=""), uid=uid
                ).aupdate(photo_url=photo_url)
                if updated:
                    filled.append("photo_url")

            if filled:
                self.get_logger().info(f"Merged {filled} into profile {uid}")
                profile = await Profile.objects.aget(uid=uid)
        if filled:
            await self._announce_change(profile, created=False, fields=filled)
        return profile

    async def get_profile(self, uid: str) -> Profile:
        """
        Raises:
            NotFoundError: no profile exists for uid
        """
        uid = clean_uid(uid)
        with self.translate_io_errors("load profile"):
            try:
                return await Profile.objects.aget(uid=uid)
            except Profile.DoesNotExist:
                raise NotFoundError(
                    f"Profile {uid} not found",
                    error_code="PROFILE_NOT_FOUND",
                    details={"uid": uid},
                ) from None

    async def find_profile(self, uid: str) -> Profile | None:
        """Like get_profile but returns None for unknown uids."""
        try:
            return await self.get_profile(uid)
        except NotFoundError:
            return None

    async def update_display_name(self, uid: str, display_name: str) -> Profile:
        """
        Set the canonical display name.

        legacy_name is written with the same value so clients that still read
        the old field see the change.
        """
        uid = clean_uid(uid)
        display_name = (display_name or "").strip()
        if not display_name:
            raise ValidationError(
                "Display name cannot be blank", error_code="BLANK_DISPLAY_NAME"
            )

        with self.translate_io_errors("update display name"):
            updated = await Profile.objects.filter(uid=uid).aupdate(
                display_name=display_name,
                legacy_name=display_name,
            )
        if not updated:
            raise NotFoundError(
                f"Profile {uid} not found",
                error_code="PROFILE_NOT_FOUND",
                details={"uid": uid},
            )
        self.get_logger().info(f"Updated display name for {uid}")
        profile = await self.get_profile(uid)
        await self._announce_change(
            profile, created=False, fields=["display_name", "legacy_name"]
        )
        return profile

    async def touch_last_seen(self, uid: str, at_ms: int | None = None) -> bool:
        """
        Advance last_seen to at_ms (default: now).

        Returns False when the stored value is already newer, so last_seen
        never moves backwards under out-of-order refreshes.
        """
        uid = clean_uid(uid)
        at_ms = now_ms() if at_ms is None else at_ms
        with self.translate_io_errors("touch last seen"):
            updated = await Profile.objects.filter(
                uid=uid, last_seen__lt=at_ms
            ).aupdate(last_seen=at_ms)
        return bool(updated)

    async def resolve_display_name(self, uid: str) -> str:
        """display_name, then legacy_name, then "Usuario"; unknown uids get the default."""
        profile = await self.find_profile(uid)
        if profile is None:
            return DEFAULT_SENDER_NAME
        return profile.resolved_name

    async def list_contacts(self, uid: str) -> list[Profile]:
        """Every other profile, ordered by name."""
        uid = clean_uid(uid)
        with self.translate_io_errors("list contacts"):
            return [
                profile
                async for profile in Profile.objects.exclude(uid=uid).order_by(
                    "display_name", "uid"
                )
            ]

    async def refresh_session(self, credential: str) -> Profile:
        """
        Verify a client credential and bring its profile up to date.

        Identity-provider outages are retried with the store's RetryPolicy
        (3 attempts by default). The profile is created or merged from the
        verified claims and last_seen is advanced.
        """
        verify = sync_to_async(self.identity_provider.verify, thread_sensitive=False)
        claims = await retry_async(lambda: verify(credential), policy=self.retry_policy)
        profile = await self.ensure_profile(claims)
        if await self.touch_last_seen(profile.uid):
            await profile.arefresh_from_db(fields=["last_seen"])
        return profile

    async def _announce_change(
        self, profile: Profile, *, created: bool, fields: list[str]
    ) -> None:
        responses = await profile_changed.asend_robust(
            sender=Profile, profile=profile, created=created, fields=fields
        )
        for receiver, response in responses:
            if isinstance(response, Exception):
                self.get_logger().error(
                    f"profile_changed receiver {receiver!r} failed for "
                    f"{profile.uid}: {response!r}"
                )

    # =========================================================================
    # Push tokens
    # =========================================================================

    async def push_tokens(self, uid: str) -> list[str]:
        """Registered tokens for uid, oldest first."""
        uid = clean_uid(uid)
        with self.translate_io_errors("read push tokens"):
            return [
                token
                async for token in DeviceToken.objects.filter(profile_id=uid)
                .order_by("created_at", "id")
                .values_list("token", flat=True)
            ]

    async def add_push_tokens(self, uid: str, tokens: Iterable[str]) -> int:
        """
        Set-union tokens into the profile's token set.

        Already-registered tokens are ignored, so repeating the call is a
        no-op. A token currently registered to another profile is removed
        from that profile first (same device, different account), in the
        same transaction. Returns how many tokens were newly added.

        Raises:
            NotFoundError: the profile does not exist
        """
        uid = clean_uid(uid)
        tokens = _clean_tokens(tokens)
        if not tokens:
            return 0

        with self.translate_io_errors("add push tokens"):
            if not await Profile.objects.filter(uid=uid).aexists():
                raise NotFoundError(
                    f"Profile {uid} not found",
                    error_code="PROFILE_NOT_FOUND",
                    details={"uid": uid},
                )
            added = await sync_to_async(self._claim_tokens)(uid, tokens)

        if added > 0:
            self.get_logger().info(f"Registered {added} push token(s) for {uid}")
        return max(added, 0)

    def _claim_tokens(self, uid: str, tokens: list[str]) -> int:
        with self.atomic():
            moved, _ = (
                DeviceToken.objects.filter(token__in=tokens)
                .exclude(profile_id=uid)
                .delete()
            )
            before = DeviceToken.objects.filter(profile_id=uid).count()
            DeviceToken.objects.bulk_create(
                [DeviceToken(profile_id=uid, token=token) for token in tokens],
                ignore_conflicts=True,
            )
            added = DeviceToken.objects.filter(profile_id=uid).count() - before
        if moved:
            self.get_logger().info(f"Moved {moved} push token(s) from other profiles to {uid}")
        return added

    async def remove_push_tokens(self, uid: str, tokens: Iterable[str]) -> int:
        """Set-difference tokens out of the profile's token set. Returns rows removed."""
        uid = clean_uid(uid)
        tokens = _clean_tokens(tokens)
        if not tokens:
            return 0

        with self.translate_io_errors("remove push tokens"):
            removed, _ = await DeviceToken.objects.filter(
                profile_id=uid, token__in=tokens
            ).adelete()

        if removed:
            self.get_logger().info(f"Removed {removed} push token(s) from {uid}")
        return removed
