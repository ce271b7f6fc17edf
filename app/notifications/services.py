"""
Push notification services.

This module contains the two actors that touch a profile's push tokens from
the notification side:

PushDispatcher:
    Reacts to an appended chat message. Resolves the receiver and their
    tokens, suppresses the alert when the receiver is looking at the
    conversation, sends one multicast and prunes the tokens it rejected.
    dispatch() never raises; every outcome is a ServiceResult.

TokenLifecycleManager:
    Tracks the push token of one app installation. The most recently issued
    token is cached outside the profile store so it can be attached to the
    profile whenever sign-in happens, before or after issuance.

Token set updates go through ProfileStore.add_push_tokens (set-union) and
ProfileStore.remove_push_tokens (set-difference) only.

Usage:
    from notifications.services import PushDispatcher, TokenLifecycleManager

    result = await PushDispatcher().dispatch(message)
    if not result and result.retryable:
        ...  # schedule another attempt

    manager = TokenLifecycleManager(installation_id)
    await manager.store_issued(fcm_token)
    await manager.sync_with_profile(profile.uid)
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from asgiref.sync import sync_to_async
from django.conf import settings
from django.core.cache import cache as default_cache
from django.utils import timezone

from authentication.services import ProfileStore, clean_uid
from chat.presence import PresenceTracker
from core.exceptions import BaseApplicationError, ValidationError
from core.services import BaseService, ServiceResult
from notifications.alerts import compose_alert
from notifications.constants import TOKEN_CACHE_CONFIG, idempotency_key_for
from notifications.models import MessageNotification, NotificationStatus, SkipReason
from notifications.transport import PushRequest, get_push_transport

if TYPE_CHECKING:
    from chat.models import Message
    from core.protocols import CacheBackend
    from notifications.transport import PushTransport


@dataclass(frozen=True)
class DispatchOutcome:
    """
    What a dispatch did.

    Attributes:
        status: Final NotificationStatus of the message's record
        skipped_reason: SkipReason when status is skipped
        sent: Tokens the transport accepted
        failed: Tokens the transport rejected
        pruned: Rejected tokens removed from the receiver
        duplicate: The message had already been dispatched
    """

    status: str
    skipped_reason: str = ""
    sent: int = 0
    failed: int = 0
    pruned: int = 0
    duplicate: bool = False


# =============================================================================
# Push Dispatcher
# =============================================================================


class PushDispatcher(BaseService):
    """
    Sends the push alert for one appended message.

    Args:
        profile_store: Source of profiles and token sets
        transport: PushTransport; defaults to settings.PUSH_TRANSPORT
        presence_cache: Cache holding presence state (default Django cache)
    """

    def __init__(
        self,
        profile_store: ProfileStore | None = None,
        transport: PushTransport | None = None,
        presence_cache: CacheBackend | None = None,
    ):
        self.profile_store = profile_store or ProfileStore()
        self._transport = transport
        self.presence_cache = presence_cache

    @property
    def transport(self) -> PushTransport:
        if self._transport is None:
            self._transport = get_push_transport()
        return self._transport

    async def dispatch(self, message: Message) -> ServiceResult[DispatchOutcome]:
        """
        Deliver the alert for message to every token of its receiver.

        A message whose record is already sent or skipped is not sent again.
        Failures of the whole batch are recorded on the record and returned
        as a failed result, retryable when the cause was transient.
        """
        context = f"Push dispatch for message {message.id}"
        try:
            with self.translate_io_errors("load notification record"):
                record, _ = await MessageNotification.objects.aget_or_create(
                    idempotency_key=idempotency_key_for(message.id),
                    defaults={
                        "message_id": message.id,
                        "recipient_id": message.receiver_id,
                    },
                )
        except BaseApplicationError as e:
            return self.handle_exception(e, context)

        if record.is_final:
            self.get_logger().info(
                f"{context} already {record.status}; not sending again"
            )
            return ServiceResult.success(
                DispatchOutcome(
                    status=record.status,
                    skipped_reason=record.skipped_reason,
                    sent=record.success_count,
                    failed=record.failure_count,
                    pruned=record.pruned_count,
                    duplicate=True,
                )
            )

        try:
            outcome = await self._dispatch(message, record)
        except Exception as e:
            await self._mark_failed(record, e)
            return self.handle_exception(e, context)
        return ServiceResult.success(outcome)

    async def _dispatch(
        self, message: Message, record: MessageNotification
    ) -> DispatchOutcome:
        logger = self.get_logger()
        receiver_id = message.receiver_id

        if message.sender_id == receiver_id:
            return await self._mark_skipped(record, SkipReason.SELF_MESSAGE)

        if await self.profile_store.find_profile(receiver_id) is None:
            return await self._mark_skipped(record, SkipReason.RECIPIENT_NOT_FOUND)

        if await self._is_viewing(receiver_id, message.conversation_id):
            return await self._mark_skipped(record, SkipReason.RECIPIENT_VIEWING)

        tokens = await self.profile_store.push_tokens(receiver_id)
        if not tokens:
            return await self._mark_skipped(record, SkipReason.NO_DEVICE_TOKEN)

        sender_name = await self.profile_store.resolve_display_name(message.sender_id)
        alert = compose_alert(message, sender_name)
        request = PushRequest(
            tokens=tokens,
            title=alert.title,
            body=alert.body,
            data={
                "senderId": message.sender_id,
                "senderName": sender_name,
                "message": alert.body,
                "conversationId": message.conversation_id,
                "messageId": str(message.id),
            },
            collapse_key=record.idempotency_key,
        )

        results = await sync_to_async(
            self.transport.send_multicast, thread_sensitive=False
        )(request)

        succeeded = [result.token for result in results if result.success]
        failed = [result.token for result in results if not result.success]
        pruned = await self._prune(receiver_id, failed)

        logger.info(
            f"Push for message {message.id} to {receiver_id}: "
            f"{len(succeeded)} sent, {len(failed)} failed, {pruned} pruned"
        )

        record.title = alert.title[:150]
        record.body = alert.body[:255]
        record.status = NotificationStatus.SENT
        record.success_count = len(succeeded)
        record.failure_count = len(failed)
        record.pruned_count = pruned
        record.attempt_count += 1
        record.last_error = ""
        record.sent_at = timezone.now()
        await record.asave(
            update_fields=[
                "title",
                "body",
                "status",
                "success_count",
                "failure_count",
                "pruned_count",
                "attempt_count",
                "last_error",
                "sent_at",
                "updated_at",
            ]
        )
        return DispatchOutcome(
            status=record.status,
            sent=len(succeeded),
            failed=len(failed),
            pruned=pruned,
        )

    async def _is_viewing(self, receiver_id: str, conversation_id: str) -> bool:
        # An unreadable presence store must not cost the receiver the alert
        try:
            return await sync_to_async(PresenceTracker.is_viewing)(
                receiver_id, conversation_id, cache=self.presence_cache
            )
        except Exception as e:
            self.get_logger().warning(
                f"Presence check for {receiver_id} failed, sending anyway: {e}"
            )
            return False

    async def _prune(self, receiver_id: str, tokens: list[str]) -> int:
        """Remove rejected tokens. Best effort: failures are logged, not retried."""
        if not tokens:
            return 0
        try:
            return await self.profile_store.remove_push_tokens(receiver_id, tokens)
        except BaseApplicationError as e:
            self.get_logger().warning(
                f"Could not prune {len(tokens)} token(s) from {receiver_id}: {e}"
            )
            return 0

    async def _mark_skipped(
        self, record: MessageNotification, reason: str
    ) -> DispatchOutcome:
        record.status = NotificationStatus.SKIPPED
        record.skipped_reason = reason
        await record.asave(update_fields=["status", "skipped_reason", "updated_at"])
        self.get_logger().info(
            f"Push for {record.idempotency_key} skipped: {reason}"
        )
        return DispatchOutcome(status=record.status, skipped_reason=reason)

    async def _mark_failed(self, record: MessageNotification, error: Exception) -> None:
        record.status = NotificationStatus.FAILED
        record.last_error = str(error)
        record.attempt_count += 1
        try:
            await record.asave(
                update_fields=["status", "last_error", "attempt_count", "updated_at"]
            )
        except Exception:
            self.get_logger().exception(
                f"Could not record failure for {record.idempotency_key}"
            )


# =============================================================================
# Token Lifecycle
# =============================================================================


def clean_token(token: str | None) -> str:
    """
    Raises:
        ValidationError: token is blank or too long
    """
    token = (token or "").strip()
    if not token:
        raise ValidationError("Push token is required", error_code="BLANK_TOKEN")
    if len(token) > TOKEN_CACHE_CONFIG.MAX_TOKEN_LENGTH:
        raise ValidationError(
            f"Push token exceeds {TOKEN_CACHE_CONFIG.MAX_TOKEN_LENGTH} characters",
            error_code="TOKEN_TOO_LONG",
        )
    return token


class TokenLifecycleManager(BaseService):
    """
    Push token lifecycle for one app installation.

    Args:
        installation_id: Client-generated id of the app install. May be None
            for a signed-in caller that only registers tokens; the cache
            operations then raise ValidationError
        profile_store: Store the tokens are registered in
        cache: Where the latest issued token is kept (default Django cache)
        ttl: Lifetime of the cached token in seconds
    """

    def __init__(
        self,
        installation_id: str | None,
        profile_store: ProfileStore | None = None,
        cache: CacheBackend | None = None,
        ttl: int | None = None,
    ):
        if installation_id is not None:
            installation_id = installation_id.strip()
            if not installation_id:
                raise ValidationError(
                    "Installation id is required", error_code="BLANK_INSTALLATION_ID"
                )
        max_length = TOKEN_CACHE_CONFIG.MAX_INSTALLATION_ID_LENGTH
        if installation_id and len(installation_id) > max_length:
            raise ValidationError(
                "Installation id is too long", error_code="INVALID_INSTALLATION_ID"
            )

        self.installation_id = installation_id
        self.profile_store = profile_store or ProfileStore()
        self.cache = cache if cache is not None else default_cache
        self.ttl = (
            ttl
            if ttl is not None
            else getattr(
                settings,
                "INSTALLATION_TOKEN_TTL_SECONDS",
                TOKEN_CACHE_CONFIG.TTL_SECONDS,
            )
        )

    @property
    def cache_key(self) -> str:
        if self.installation_id is None:
            raise ValidationError(
                "installation_id is required to cache a push token",
                error_code="INSTALLATION_ID_REQUIRED",
            )
        return f"{TOKEN_CACHE_CONFIG.KEY_PREFIX}:{self.installation_id}"

    async def store_issued(self, token: str) -> str:
        """Remember token as this installation's latest. Returns the cleaned token."""
        token = clean_token(token)
        await self.cache.aset(self.cache_key, token, self.ttl)
        self.get_logger().debug(f"Cached push token for installation {self.installation_id}")
        return token

    async def current_token(self) -> str | None:
        return await self.cache.aget(self.cache_key)

    async def register_token(self, profile_id: str, token: str) -> bool:
        """
        Union token into the profile's token set.

        Registering a token the profile already has is a no-op. Returns True
        when the token was new.
        """
        profile_id = clean_uid(profile_id)
        token = clean_token(token)
        added = await self.profile_store.add_push_tokens(profile_id, [token])
        return added > 0

    async def rotate_token(
        self, old_token: str | None, new_token: str, profile_id: str | None = None
    ) -> bool:
        """
        Handle a platform-issued token rotation.

        The new token becomes the cached one and, when the profile is known,
        is registered. The old token stays registered until a send rejects
        it and the dispatcher prunes it.
        """
        new_token = await self.store_issued(new_token)
        self.get_logger().info(
            f"Push token rotated for installation {self.installation_id} "
            f"(had previous: {bool((old_token or '').strip())})"
        )
        if not profile_id:
            return False
        return await self.register_token(profile_id, new_token)

    async def sync_with_profile(self, profile_id: str) -> bool:
        """Register the cached token with profile_id; no-op when nothing is cached."""
        token = await self.current_token()
        if not token:
            return False
        added = await self.register_token(profile_id, token)
        if added:
            self.get_logger().info(
                f"Attached installation {self.installation_id} token to {profile_id}"
            )
        return added
