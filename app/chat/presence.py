"""
Presence tracking: which conversation a client session has foregrounded.

Each session records at most one active conversation. The push dispatcher
asks whether *any* of the receiver's sessions is viewing the conversation
a message belongs to; if so the alert is redundant because fan-out already
delivered the message live.

Storage (Django cache, Redis in production):
    presence:session:<uid>:<session id>  -> conversation id
    presence:sessions:<uid>              -> ids of the user's known sessions

Only the per-session keys decide whether someone is viewing. Each carries
its own TTL, so a session that dies without clearing its state stops
counting once its key expires, whatever the other sessions do. The session
registry is an index for is_viewing; an entry whose session key is gone is
ignored and dropped on the next write. Connected WebSocket sessions are
refreshed every PRESENCE_CONFIG.HEARTBEAT_INTERVAL_SECONDS (see
chat.consumers.ChatConsumer).

Usage:
    tracker = PresenceTracker(user_id="u2", session_id="phone-1")
    tracker.set_active("u1_u2")
    tracker.get_active()                          # "u1_u2"
    PresenceTracker.is_viewing("u2", "u1_u2")     # True
    tracker.set_active(None)
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from django.conf import settings
from django.core.cache import cache as default_cache

from chat.constants import PRESENCE_CONFIG

if TYPE_CHECKING:
    from core.protocols import CacheBackend

logger = logging.getLogger(__name__)


def _ttl() -> int:
    return getattr(settings, "PRESENCE_TTL_SECONDS", PRESENCE_CONFIG.SESSION_TTL_SECONDS)


def _session_key(user_id: str, session_id: str) -> str:
    return f"{PRESENCE_CONFIG.KEY_PREFIX_SESSION}:{user_id}:{session_id}"


def _registry_key(user_id: str) -> str:
    return f"{PRESENCE_CONFIG.KEY_PREFIX_SESSIONS}:{user_id}"


class PresenceTracker:
    """Foreground-conversation state of one client session."""

    def __init__(
        self,
        user_id: str,
        session_id: str,
        cache: CacheBackend | None = None,
        ttl: int | None = None,
    ):
        self.user_id = user_id
        self.session_id = session_id
        self.cache = cache if cache is not None else default_cache
        self.ttl = ttl if ttl is not None else _ttl()

    @property
    def session_key(self) -> str:
        return _session_key(self.user_id, self.session_id)

    def get_active(self) -> str | None:
        """Conversation currently foregrounded by this session, if any."""
        return self.cache.get(self.session_key)

    def set_active(self, conversation_id: str | None) -> None:
        """
        Foreground conversation_id, or background everything with None.

        Setting the same conversation again only refreshes the TTL.
        """
        previous = self.get_active()

        if conversation_id is None:
            self.cache.delete(self.session_key)
            self._update_registry(present=False)
        else:
            self.cache.set(self.session_key, conversation_id, self.ttl)
            self._update_registry(present=True)

        if previous != conversation_id:
            logger.debug(
                f"Presence {self.user_id}/{self.session_id}: {previous} -> {conversation_id}"
            )

    def refresh(self) -> bool:
        """
        Extend the TTL of the current state without changing it.

        Returns False when nothing is foregrounded (or the state already
        expired), in which case nothing is written.
        """
        conversation_id = self.get_active()
        if conversation_id is None:
            return False
        self.set_active(conversation_id)
        return True

    def _update_registry(self, present: bool) -> None:
        # Read-modify-write: a lost concurrent update only hides a session
        # from is_viewing, which errs towards sending the alert.
        key = _registry_key(self.user_id)
        known = self.cache.get(key) or []
        others = [session_id for session_id in known if session_id != self.session_id]
        if others:
            alive = self.cache.get_many([_session_key(self.user_id, s) for s in others])
            others = [s for s in others if _session_key(self.user_id, s) in alive]

        sessions = [*others, self.session_id] if present else others
        if sessions:
            self.cache.set(key, sessions, self.ttl)
        else:
            self.cache.delete(key)

    @staticmethod
    def is_viewing(
        user_id: str,
        conversation_id: str,
        cache: CacheBackend | None = None,
    ) -> bool:
        """Whether any live session of user_id has conversation_id foregrounded."""
        cache = cache if cache is not None else default_cache
        sessions = cache.get(_registry_key(user_id)) or []
        if not sessions:
            return False
        active = cache.get_many([_session_key(user_id, s) for s in sessions])
        return conversation_id in active.values()
