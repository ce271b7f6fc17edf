"""
Protocol definitions for infrastructure the domain apps depend on.

Protocols let the stores take their collaborators as constructor arguments
(the Django cache, the default file storage) while tests pass in-memory
doubles without inheritance.

Available Protocols:
    CacheBackend: Key/value cache with TTLs (presence, token cache)
    BlobStore: Write-only binary store returning a public URL (attachments)

Usage:
    from django.core.cache import cache
    from core.protocols import CacheBackend

    class PresenceTracker:
        def __init__(self, user_id, session_id, cache: CacheBackend = cache):
            ...

Note:
    - @runtime_checkable allows isinstance() checks in tests
    - Protocols for the push transport and identity provider live next to
      their implementations (notifications.transport, authentication.identity)
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from typing import Any


@runtime_checkable
class CacheBackend(Protocol):
    """
    Protocol for cache backends.

    Compatible with Django's cache interface (locmem, django-redis).
    get_many returns only the keys that exist and have not expired.
    """

    def get(self, key: str, default: Any = None) -> Any:
        ...

    def set(self, key: str, value: Any, timeout: int | None = None) -> None:
        ...

    def get_many(self, keys: list[str]) -> dict[str, Any]:
        ...

    def delete(self, key: str) -> bool:
        ...

    async def aget(self, key: str, default: Any = None) -> Any:
        ...

    async def aset(self, key: str, value: Any, timeout: int | None = None) -> None:
        ...


@runtime_checkable
class BlobStore(Protocol):
    """
    Protocol for attachment storage.

    put() persists the bytes and returns an opaque URL that clients can
    fetch. Implementations raise core.exceptions.TransientIOError when the
    backend is unavailable.
    """

    def put(self, data: bytes, filename: str, conversation_id: str) -> str:
        ...
