"""
Base service layer patterns for business logic encapsulation.

This module provides foundational patterns for the service layer:
- ServiceResult: Result wrapper for outcomes the caller must not crash on
- BaseService: Base class with logging and transaction helpers

Pattern Comparison:
    - ServiceResult: Push dispatch and other fire-and-forget paths, where
      a failure is recorded and logged but never propagates
    - Exceptions (core.exceptions): Store operations, where the caller must
      see a typed failure (validation, not found, transient IO)

Usage:
    from core.services import BaseService, ServiceResult

    class PushDispatcher(BaseService):
        def dispatch(self, message) -> ServiceResult[DispatchOutcome]:
            try:
                outcome = self._send(message)
            except Exception as e:
                return self.handle_exception(e, f"dispatch message {message.id}")
            return ServiceResult.success(outcome)
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Generic, TypeVar

from django.db import InterfaceError, OperationalError, transaction

from core.exceptions import BaseApplicationError, TransientIOError

if TYPE_CHECKING:
    from collections.abc import Generator
    from typing import Any

T = TypeVar("T")


@dataclass
class ServiceResult(Generic[T]):
    """
    Standard result wrapper for service operations.

    Attributes:
        success: Whether the operation succeeded
        data: Result data if successful (None if failed)
        error: Error message if failed (None if successful)
        error_code: Machine-readable error code for client handling
        errors: Field-level errors for validation failures
        retryable: Whether the failed operation may be retried
    """

    success: bool
    data: T | None = None
    error: str | None = None
    error_code: str | None = None
    errors: dict[str, list[str]] | None = field(default=None)
    retryable: bool = False

    @classmethod
    def success(cls, data: T) -> ServiceResult[T]:
        return cls(success=True, data=data)

    @classmethod
    def failure(
        cls,
        error: str,
        error_code: str | None = None,
        errors: dict[str, list[str]] | None = None,
        retryable: bool = False,
    ) -> ServiceResult[T]:
        """
        Create a failed result.

        Example:
            return ServiceResult.failure(
                "Push transport unavailable",
                error_code="TRANSIENT_IO_ERROR",
                retryable=True,
            )
        """
        return cls(
            success=False,
            error=error,
            error_code=error_code,
            errors=errors,
            retryable=retryable,
        )

    @classmethod
    def from_exception(cls, exc: Exception, error_code: str | None = None) -> ServiceResult[T]:
        """
        Create a failed result from an exception.

        Application errors keep their own error code and retry flag. Anything
        else is reported under its class name and treated as non-retryable.
        """
        if isinstance(exc, BaseApplicationError):
            return cls(
                success=False,
                error=exc.message,
                error_code=error_code or exc.error_code,
                retryable=exc.retryable,
            )
        return cls(
            success=False,
            error=str(exc),
            error_code=error_code or exc.__class__.__name__.upper(),
        )

    def to_response(self) -> dict[str, Any]:
        """Convert to API response format."""
        if self.success:
            return {"success": True, "data": self.data}

        response: dict[str, Any] = {
            "success": False,
            "error": self.error,
        }
        if self.error_code:
            response["error_code"] = self.error_code
        if self.errors:
            response["errors"] = self.errors
        return response

    def __bool__(self) -> bool:
        return self.success


class BaseService:
    """
    Base class for service layer classes.

    Provides common utilities for services:
    - Logging setup per service
    - Database transaction management
    - Exception to ServiceResult conversion

    Design Notes:
        - Stores and dispatchers take their collaborators in __init__ so
          tests can inject fakes; helpers here are classmethods
        - Use ServiceResult where failures must be contained
        - Raise core.exceptions where the caller must react
    """

    @classmethod
    def get_logger(cls) -> logging.Logger:
        """
        Get logger for this service.

        Returns a logger named after the service class for
        easy filtering in logs.
        """
        return logging.getLogger(f"{cls.__module__}.{cls.__name__}")

    @classmethod
    @contextmanager
    def atomic(cls) -> Generator[None, None, None]:
        """
        Execute operations in a database transaction.

        Thin wrapper around Django's transaction.atomic() that makes
        transaction boundaries explicit in service code.

        Example:
            with cls.atomic():
                conversation = Conversation.objects.select_for_update().get(pk=cid)
                Message.objects.create(conversation=conversation, ...)
        """
        with transaction.atomic():
            yield

    @classmethod
    @contextmanager
    def translate_io_errors(cls, operation: str) -> Generator[None, None, None]:
        """
        Re-raise database connectivity failures as TransientIOError.

        Wraps both sync and awaited ORM calls; integrity and programming
        errors pass through unchanged since retrying cannot fix them.

        Example:
            with cls.translate_io_errors("append message"):
                message = await sync_to_async(cls._append)(draft)
        """
        try:
            yield
        except (OperationalError, InterfaceError) as e:
            cls.get_logger().warning(f"{operation}: storage unavailable: {e}")
            raise TransientIOError(
                f"Could not {operation}: storage unavailable",
                details={"operation": operation},
            ) from e

    @classmethod
    def handle_exception(
        cls,
        exc: Exception,
        context: str = "",
        log_level: int = logging.ERROR,
    ) -> ServiceResult:
        """
        Convert exception to ServiceResult with logging.

        Application errors are logged without a traceback since they are
        expected outcomes; anything else keeps the traceback.
        """
        logger = cls.get_logger()
        message = f"{context}: {exc}" if context else str(exc)
        logger.log(
            log_level,
            message,
            exc_info=not isinstance(exc, BaseApplicationError),
        )
        return ServiceResult.from_exception(exc)

