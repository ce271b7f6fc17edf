"""
Base exception classes for application-wide error handling.

The messaging backend distinguishes four kinds of failure, each with its own
handling rule:

Exception Hierarchy:
    BaseApplicationError (base)
    ├── ValidationError - Blank or malformed input, rejected before persisting
    ├── NotFoundError - Referenced profile/conversation absent
    ├── PermissionDeniedError - Caller lacks rights (logged, never retried)
    └── ExternalServiceError - Backend or third-party failure
        └── TransientIOError - Network/backend unavailable, safe to retry

Usage:
    from core.exceptions import TransientIOError, ValidationError

    if not uid.strip():
        raise ValidationError("Profile id is required", error_code="BLANK_UID")

    try:
        ...
    except OperationalError as e:
        raise TransientIOError("Database unavailable") from e

    # In a view
    except BaseApplicationError as e:
        return Response(e.to_dict(), status=e.http_status)

Note:
    These exceptions are for domain errors raised by the stores and services.
    DRF still owns request-level errors (serialization, authentication).
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from typing import Any


class BaseApplicationError(Exception):
    """
    Base exception for all application-specific errors.

    Attributes:
        message: Human-readable error description
        error_code: Machine-readable code for client-side handling
        details: Additional error context (field errors, ids, etc.)
        retryable: Whether the caller may retry the same operation
        http_status: Status code used when the error reaches a view
    """

    default_error_code: str = "APPLICATION_ERROR"
    retryable: bool = False
    http_status: int = 400

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        self.message = message
        self.error_code = error_code or self.default_error_code
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        """
        Convert exception to dictionary for API response.

        Example:
            {
                "error": "Conversation id does not match participants",
                "error_code": "CONVERSATION_MISMATCH",
                "retryable": false
            }
        """
        result: dict[str, Any] = {
            "error": self.message,
            "error_code": self.error_code,
            "retryable": self.retryable,
        }
        if self.details:
            result["details"] = self.details
        return result

    def __str__(self) -> str:
        return f"[{self.error_code}] {self.message}"

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"message={self.message!r}, "
            f"error_code={self.error_code!r}, "
            f"details={self.details!r})"
        )


class ValidationError(BaseApplicationError):
    """
    Raised when input validation fails.

    Validation failures are rejected synchronously and never persisted:
    blank profile ids, malformed participant ids, a message with neither
    text nor attachment.
    """

    default_error_code: str = "VALIDATION_ERROR"


class NotFoundError(BaseApplicationError):
    """
    Raised when a referenced profile or conversation does not exist.

    Push dispatch treats this as a no-op; views turn it into a 404.
    """

    default_error_code: str = "NOT_FOUND"
    http_status: int = 404


class PermissionDeniedError(BaseApplicationError):
    """
    Raised when the caller lacks rights for an operation.

    Also used for push-platform policy outcomes (sender id mismatch,
    quota). Those are logged and not retried since they are not user errors.
    """

    default_error_code: str = "PERMISSION_DENIED"
    http_status: int = 403


class ExternalServiceError(BaseApplicationError):
    """
    Raised when an external service call fails.

    Covers the push transport, the identity provider and the blob store.
    Log the original error but don't expose internals to clients.
    """

    default_error_code: str = "EXTERNAL_SERVICE_ERROR"
    http_status: int = 502


class TransientIOError(ExternalServiceError):
    """
    Raised when a backend is temporarily unavailable.

    Callers retry these with bounded backoff (see core.retry). The append
    path surfaces it to the sender as a retryable failure.

    Example:
        try:
            message = store.append_sync(conversation_id, draft)
        except OperationalError as e:
            raise TransientIOError(
                "Message store unavailable",
                details={"conversation_id": conversation_id},
            ) from e
    """

    default_error_code: str = "TRANSIENT_IO_ERROR"
    retryable: bool = True
    http_status: int = 503
