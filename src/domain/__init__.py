"""
Domain layer - Enterprise Business Rules.

This is the innermost layer containing business entities, value objects,
and domain exceptions. It has no dependencies on other layers.
"""

from src.domain.entities import ResourceEntity
from src.domain.enums import BypassScope, DocumentStatus, ResourceType
from src.domain.exceptions import (AccessControlException, AccessDeniedError,
                                   DanglingParentError, ResourceCycleError,
                                   ResourceNotFoundException,
                                   StoreUnavailableError, StructuralError,
                                   UserNotFoundException)
from src.domain.value_objects import (CapabilitySet, KnownCapability,
                                      RoutePattern)

__all__ = [
    # Entities
    "ResourceEntity",
    # Value Objects
    "CapabilitySet",
    "KnownCapability",
    "RoutePattern",
    # Enums
    "BypassScope",
    "DocumentStatus",
    "ResourceType",
    # Exceptions
    "AccessControlException",
    "AccessDeniedError",
    "DanglingParentError",
    "ResourceCycleError",
    "ResourceNotFoundException",
    "StoreUnavailableError",
    "StructuralError",
    "UserNotFoundException",
]
