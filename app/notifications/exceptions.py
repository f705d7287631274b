"""
Error taxonomy for the notification pipeline.

Exception Hierarchy:
    ExternalServiceError
    └── DispatchError - queue refused the envelope (surfaced to notify() callers)
    BaseApplicationError
    ├── PermanentProcessingError - retrying cannot help, task is discarded
    │   ├── RecipientNotFoundError - recipient id does not resolve
    │   └── InvalidTaskError - envelope or wire payload is malformed
    └── TransientProcessingError - explicitly retryable processing failure

Processing errors never leave the task processor: they are classified into
a ProcessingOutcome (see notifications.processing). Only DispatchError and
InvalidTaskError reach callers of Notifier.notify().
"""

from __future__ import annotations

from core.exceptions import BaseApplicationError, ExternalServiceError


class DispatchError(ExternalServiceError):
    """The queue could not accept an envelope (broker down, connection refused)."""

    default_error_code: str = "DISPATCH_FAILED"


class PermanentProcessingError(BaseApplicationError):
    """Processing failure that no amount of redelivery will fix."""

    default_error_code: str = "PERMANENT_PROCESSING_ERROR"


class RecipientNotFoundError(PermanentProcessingError):
    """The envelope's recipient id does not reference an existing user."""

    default_error_code: str = "RECIPIENT_NOT_FOUND"


class InvalidTaskError(PermanentProcessingError):
    """The envelope fields or the serialized payload are malformed."""

    default_error_code: str = "INVALID_TASK"


class TransientProcessingError(BaseApplicationError):
    """Processing failure expected to succeed on a later delivery."""

    default_error_code: str = "TRANSIENT_PROCESSING_ERROR"
