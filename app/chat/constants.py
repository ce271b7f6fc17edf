"""
Constants and configuration for the chat module.

This module centralizes configuration values for:
- Conversation ids and channel-layer group names
- Message limits
- Attachment uploads
- Presence tracking

Import example:
    from chat.constants import MESSAGE_CONFIG, PRESENCE_CONFIG
"""

from typing import Final


# =============================================================================
# Conversation Configuration
# =============================================================================


class CONVERSATION_CONFIG:
    """Conversation identity and fan-out naming."""

    # Joins the sorted participant pair into a conversation id
    ID_SEPARATOR: Final[str] = "_"

    # Channel-layer group per conversation; suffix is a digest of the id
    # since group names are limited to 100 ASCII characters
    GROUP_PREFIX: Final[str] = "chat."


# =============================================================================
# Message Configuration
# =============================================================================


class MESSAGE_CONFIG:
    """Configuration for message operations."""

    MAX_BODY_LENGTH: Final[int] = 10000  # Characters
    DEFAULT_HISTORY_LIMIT: Final[int] = 500
    MAX_HISTORY_LIMIT: Final[int] = 1000


# =============================================================================
# Attachment Configuration
# =============================================================================


class ATTACHMENT_CONFIG:
    """Configuration for image attachments."""

    # Blob paths: chat_images/<conversation_id>/<file name>
    UPLOAD_PREFIX: Final[str] = "chat_images"
    MAX_SIZE_BYTES: Final[int] = 10 * 1024 * 1024  # 10 MB
    ALLOWED_CONTENT_TYPES: Final[tuple] = (
        "image/jpeg",
        "image/png",
        "image/gif",
        "image/webp",
        "image/heic",
    )


# =============================================================================
# Presence Configuration
# =============================================================================


class PRESENCE_CONFIG:
    """Configuration for presence tracking."""

    # How long a session's foreground state survives without a refresh
    SESSION_TTL_SECONDS: Final[int] = 90

    # Cache key prefixes
    KEY_PREFIX_SESSION: Final[str] = "presence:session"
    KEY_PREFIX_SESSIONS: Final[str] = "presence:sessions"

    # Connected sockets refresh their session state this often; must stay
    # well below SESSION_TTL_SECONDS
    HEARTBEAT_INTERVAL_SECONDS: Final[int] = 30
