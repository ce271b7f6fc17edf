"""
Push transport boundary.

The dispatcher hands one PushRequest per message to a PushTransport and gets
back one TokenResult per token, in request order.

Implementations:
    FirebasePushTransport: firebase_admin.messaging.send_each_for_multicast
    LoggingPushTransport: Logs and reports every token as delivered; the
        default when no push credentials are configured (local dev, tests)

Errors:
    A per-token rejection is a TokenResult(success=False), never an exception.
    Only failures of the whole batch raise:
        TransientIOError: transport unreachable or overloaded; retry later
        PermissionDeniedError: this sender may not send; retrying won't help

Configuration:
    PUSH_TRANSPORT: Dotted path to a PushTransport class
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Protocol, runtime_checkable

from django.conf import settings
from django.utils.module_loading import import_string
from firebase_admin import exceptions as firebase_exceptions
from firebase_admin import messaging

from core.exceptions import PermissionDeniedError, TransientIOError
from core.firebase import get_firebase_app
from notifications.constants import PERMANENT_TRANSPORT_CODES

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PushRequest:
    """
    One multicast send.

    Attributes:
        tokens: Device tokens to deliver to
        title: Notification title
        body: Notification body
        data: String key/value payload delivered to the app
        collapse_key: Devices show one alert per key; a repeated send with
            the same key replaces the earlier alert instead of adding one
    """

    tokens: list[str]
    title: str
    body: str
    data: dict[str, str] = field(default_factory=dict)
    collapse_key: str = ""


@dataclass(frozen=True)
class TokenResult:
    token: str
    success: bool
    error: str = ""


@runtime_checkable
class PushTransport(Protocol):
    """Sends one notification to many device tokens in a single call."""

    def send_multicast(self, request: PushRequest) -> list[TokenResult]:
        ...


def _android_config(collapse_key: str) -> messaging.AndroidConfig | None:
    if not collapse_key:
        return None
    return messaging.AndroidConfig(
        collapse_key=collapse_key,
        notification=messaging.AndroidNotification(tag=collapse_key),
    )


def _apns_config(collapse_key: str) -> messaging.APNSConfig | None:
    if not collapse_key:
        return None
    return messaging.APNSConfig(headers={"apns-collapse-id": collapse_key})


class FirebasePushTransport:
    """PushTransport backed by Firebase Cloud Messaging."""

    def __init__(self, app=None, dry_run: bool = False):
        self._app = app
        self.dry_run = dry_run

    @property
    def app(self):
        if self._app is None:
            self._app = get_firebase_app()
        return self._app

    def send_multicast(self, request: PushRequest) -> list[TokenResult]:
        if not request.tokens:
            return []

        message = messaging.MulticastMessage(
            tokens=list(request.tokens),
            notification=messaging.Notification(title=request.title, body=request.body),
            data={key: str(value) for key, value in request.data.items()},
            android=_android_config(request.collapse_key),
            apns=_apns_config(request.collapse_key),
        )

        try:
            batch = messaging.send_each_for_multicast(
                message, dry_run=self.dry_run, app=self.app
            )
        except (
            messaging.SenderIdMismatchError,
            messaging.ThirdPartyAuthError,
        ) as e:
            raise PermissionDeniedError(
                f"Push sender rejected: {e}",
                error_code="PUSH_SENDER_REJECTED",
            ) from e
        except firebase_exceptions.FirebaseError as e:
            if e.code in PERMANENT_TRANSPORT_CODES:
                raise PermissionDeniedError(
                    f"Push sender rejected: {e}",
                    error_code="PUSH_SENDER_REJECTED",
                    details={"code": e.code},
                ) from e
            raise TransientIOError(
                f"Push transport unavailable: {e}",
                error_code="PUSH_TRANSPORT_UNAVAILABLE",
                details={"code": e.code},
            ) from e

        results = []
        for token, response in zip(request.tokens, batch.responses):
            if response.success:
                results.append(TokenResult(token=token, success=True))
            else:
                error = response.exception
                results.append(
                    TokenResult(
                        token=token,
                        success=False,
                        error=getattr(error, "code", "") or str(error),
                    )
                )

        logger.info(
            f"FCM multicast: {batch.success_count} delivered, "
            f"{batch.failure_count} failed"
        )
        return results


class LoggingPushTransport:
    """Development transport: logs the alert and accepts every token."""

    def send_multicast(self, request: PushRequest) -> list[TokenResult]:
        logger.info(
            f"Push to {len(request.tokens)} token(s): "
            f"{request.title!r} / {request.body!r} data={request.data} "
            f"collapse_key={request.collapse_key!r}"
        )
        return [TokenResult(token=token, success=True) for token in request.tokens]


def get_push_transport() -> PushTransport:
    """Instantiate the transport named by settings.PUSH_TRANSPORT."""
    path = getattr(
        settings,
        "PUSH_TRANSPORT",
        "notifications.transport.LoggingPushTransport",
    )
    return import_string(path)()
