"""
Constants for push notifications and device-token handling.

Alert copy is Spanish because the client app ships in Spanish only.

Import example:
    from notifications.constants import ALERT_COPY, TOKEN_CACHE_CONFIG
"""

from typing import Final


# =============================================================================
# Alert Copy
# =============================================================================


class ALERT_COPY:
    """Fixed strings used when composing a message alert."""

    # Body when the message carries an image
    IMAGE_BODY: Final[str] = "Te envió una imagen"

    # Body when the message has neither text nor image worth showing
    FALLBACK_BODY: Final[str] = "Tienes un nuevo mensaje"


# =============================================================================
# Idempotency
# =============================================================================


def idempotency_key_for(message_id: int) -> str:
    """Key of the MessageNotification record guarding a message's push."""
    return f"message:{message_id}"


# =============================================================================
# Installation Token Cache
# =============================================================================


class TOKEN_CACHE_CONFIG:
    """Local cache of the push token most recently issued to an installation."""

    KEY_PREFIX: Final[str] = "push:installation"

    # Default lifetime; settings.INSTALLATION_TOKEN_TTL_SECONDS overrides it
    TTL_SECONDS: Final[int] = 60 * 60 * 24 * 30  # 30 days

    MAX_TOKEN_LENGTH: Final[int] = 512
    MAX_INSTALLATION_ID_LENGTH: Final[int] = 128


# =============================================================================
# Push Transport Error Codes
# =============================================================================

# Codes that mean the sender itself cannot send; retrying will not help
PERMANENT_TRANSPORT_CODES: Final[frozenset] = frozenset(
    {
        "PERMISSION_DENIED",
        "UNAUTHENTICATED",
        "INVALID_ARGUMENT",
    }
)
