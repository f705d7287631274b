"""
Base exception classes for application-wide error handling.

This module provides the exception hierarchy shared by all apps:
- Consistent error payloads for API responses
- Machine-readable error codes for clients and log filtering
- Optional details for debugging

Exception Hierarchy:
    BaseApplicationError (base)
    └── ExternalServiceError - Broker, database or third-party failures

Usage:
    from core.exceptions import ExternalServiceError

    raise ExternalServiceError(
        "Notification queue is unavailable",
        error_code="DISPATCH_FAILED",
        details={"queue": "notifications"},
    )

    try:
        ...
    except BaseApplicationError as e:
        return Response(e.to_dict(), status=400)

Note:
    Domain apps subclass these (see notifications.exceptions).
    DRF handles API-layer exceptions (serialization, authentication, etc.).
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
        details: Additional error context (ids, metadata, etc.)

    Example:
        try:
            notifier.notify(recipient_id=7, title="Hi")
        except BaseApplicationError as e:
            logger.warning(f"Dispatch failed: {e.error_code}")
            return Response(e.to_dict(), status=503)
    """

    default_error_code: str = "APPLICATION_ERROR"

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

        Returns:
            Dict with error, error_code, and details (when present)
        """
        result: dict[str, Any] = {
            "error": self.message,
            "error_code": self.error_code,
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


class ExternalServiceError(BaseApplicationError):
    """
    Raised when an external service call fails.

    Use for:
    - Message broker unavailability
    - Network timeouts
    - Unexpected responses from collaborators

    Note:
        Log the original error but don't expose internal details to clients.
        HTTP 503 Service Unavailable is the appropriate status.
    """

    default_error_code: str = "EXTERNAL_SERVICE_ERROR"
