"""
Core Application - Infrastructure & Base Classes

Generic, reusable base classes shared by the domain apps. Business logic
does not belong here.

Models (import from core.models):
    - BaseModel: Abstract model with timestamps (created_at, updated_at)

Services (import from core.services):
    - BaseService: Base class for service layer
    - ServiceResult: Standard result wrapper for success/failure handling

Exceptions (import from core.exceptions):
    - BaseApplicationError: Base exception with error codes
    - ExternalServiceError: Broker and third-party failures

Views (import from core.views):
    - health_check: Database health probe

Note:
    Models are NOT imported here to avoid AppRegistryNotReady errors.
    Import them directly: from core.models import BaseModel
"""

# Exceptions (no Django dependencies)
from .exceptions import (
    BaseApplicationError,
    ExternalServiceError,
)

__all__ = [
    "BaseApplicationError",
    "ExternalServiceError",
]
