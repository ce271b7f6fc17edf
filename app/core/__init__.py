"""
Core Application - Infrastructure & Base Classes

Shared building blocks for the profile, chat and notification apps.

Models (import from core.models):
    - BaseModel: Abstract model with timestamps (created_at, updated_at)

Services (import from core.services):
    - BaseService: Base class for service layer
    - ServiceResult: Standard result wrapper for success/failure handling

Exceptions (import from core.exceptions):
    - BaseApplicationError: Base exception with error codes
    - ValidationError: Input validation failures
    - NotFoundError: Resource not found
    - PermissionDeniedError: Authorization and push-policy failures
    - ExternalServiceError: Third-party service failures
    - TransientIOError: Retryable backend unavailability

Retry (import from core.retry):
    - RetryPolicy / RetryState: Bounded exponential backoff state machine
    - retry_async: Await a coroutine factory under a RetryPolicy

Protocols (import from core.protocols):
    - CacheBackend: Cache interface with TTLs
    - BlobStore: Attachment storage interface

Note:
    Django models are NOT imported here to avoid AppRegistryNotReady
    errors. Import them directly from core.models.
"""

from .exceptions import (
    BaseApplicationError,
    ExternalServiceError,
    NotFoundError,
    PermissionDeniedError,
    TransientIOError,
    ValidationError,
)
from .protocols import BlobStore, CacheBackend
from .services import BaseService, ServiceResult

__all__ = [
    # Services
    "BaseService",
    "ServiceResult",
    # Exceptions
    "BaseApplicationError",
    "ValidationError",
    "NotFoundError",
    "PermissionDeniedError",
    "ExternalServiceError",
    "TransientIOError",
    # Protocols
    "CacheBackend",
    "BlobStore",
]
