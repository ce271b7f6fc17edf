"""
Deterministic conversation identifiers.

A conversation between two users is identified by the sorted pair of their
uids joined with "_", so both participants derive the same id without
coordination:

    conversation_id_for("u2", "u1") == conversation_id_for("u1", "u2") == "u1_u2"

uids never contain "_" (see authentication.constants.UID_REGEX), which keeps
the join reversible.
"""

from __future__ import annotations

import hashlib

from authentication.constants import UID_REGEX
from chat.constants import CONVERSATION_CONFIG
from core.exceptions import ValidationError


def clean_participant_id(value: str | None) -> str:
    """
    Return a stripped participant uid.

    Raises:
        ValidationError: blank, or outside the uid alphabet
    """
    value = (value or "").strip()
    if not value:
        raise ValidationError("Participant id is required", error_code="BLANK_PARTICIPANT")
    if not UID_REGEX.match(value):
        raise ValidationError(
            "Participant id contains unsupported characters",
            error_code="INVALID_PARTICIPANT",
            details={"participant_id": value},
        )
    return value


def conversation_id_for(a: str, b: str) -> str:
    """Canonical id for the conversation between a and b (order independent)."""
    first, second = sorted([clean_participant_id(a), clean_participant_id(b)])
    return f"{first}{CONVERSATION_CONFIG.ID_SEPARATOR}{second}"


def participants_of(conversation_id: str) -> tuple[str, str]:
    """
    Split a canonical conversation id back into its (lower, higher) pair.

    Raises:
        ValidationError: the id is not a canonical pair id
    """
    parts = (conversation_id or "").split(CONVERSATION_CONFIG.ID_SEPARATOR)
    if len(parts) != 2:
        raise ValidationError(
            "Malformed conversation id",
            error_code="INVALID_CONVERSATION_ID",
            details={"conversation_id": conversation_id},
        )
    first, second = (clean_participant_id(part) for part in parts)
    if conversation_id_for(first, second) != conversation_id:
        raise ValidationError(
            "Conversation id is not canonical",
            error_code="INVALID_CONVERSATION_ID",
            details={"conversation_id": conversation_id},
        )
    return first, second


def group_name_for(conversation_id: str) -> str:
    """Channel-layer group that receives append notifications for a conversation."""
    digest = hashlib.sha1(conversation_id.encode()).hexdigest()
    return f"{CONVERSATION_CONFIG.GROUP_PREFIX}{digest}"
