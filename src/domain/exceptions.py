"""
Domain exceptions for the access-control engine.

This module defines domain-level exceptions that represent business rule violations.
These exceptions are independent of infrastructure concerns.
"""

from typing import Any


class AccessControlException(Exception):
    """
    Base exception for all access-control errors.

    All custom exceptions should inherit from this class to allow
    for consistent error handling and logging.

    Attributes:
        message: Human-readable error description
        error_code: Machine-readable error code for API responses
        details: Additional error context
    """

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        self.message = message
        self.error_code = error_code or self.__class__.__name__
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to dictionary for API responses."""
        return {
            "error": self.error_code,
            "message": self.message,
            "details": self.details,
        }


class UserNotFoundException(AccessControlException):
    """Raised when the user itself does not exist (distinct from a user with no roles)."""

    def __init__(self, user_id: str):
        super().__init__(
            f"User not found: {user_id}",
            "USER_NOT_FOUND",
            {"user_id": user_id},
        )


class ResourceNotFoundException(AccessControlException):
    """No active resource governs the requested path."""

    def __init__(self, resource_type: str, path: str):
        super().__init__(
            f"No {resource_type} resource matches {path}",
            "RESOURCE_NOT_FOUND",
            {"resource_type": resource_type, "path": path},
        )


class StructuralError(AccessControlException):
    """Resource records do not form a valid forest. Raised at (re)build time only."""

    pass


class ResourceCycleError(StructuralError):
    """A resource is its own ancestor."""

    def __init__(self, resource_type: str, resource_id: str, path: list[str]):
        super().__init__(
            f"Cycle detected in {resource_type} resources at {resource_id}",
            "RESOURCE_CYCLE",
            {"resource_type": resource_type, "resource_id": resource_id, "path": path},
        )


class DanglingParentError(StructuralError):
    """A parent_id does not reference an existing resource of the same type."""

    def __init__(self, resource_type: str, resource_id: str, parent_id: str):
        super().__init__(
            f"Resource {resource_id} references missing {resource_type} parent {parent_id}",
            "RESOURCE_DANGLING_PARENT",
            {
                "resource_type": resource_type,
                "resource_id": resource_id,
                "parent_id": parent_id,
            },
        )


class StoreUnavailableError(AccessControlException):
    """Backing store could not be read. Always resolved to a denial."""

    def __init__(self, operation: str, reason: str):
        super().__init__(
            f"Access store unavailable during {operation}",
            "STORE_UNAVAILABLE",
            {"operation": operation, "reason": reason},
        )


class AccessDeniedError(AccessControlException):
    """Access denied - caller lacks the capability or the resource is not reachable."""

    def __init__(
        self,
        message: str = "Access denied",
        capability: str | None = None,
        path: str | None = None,
    ):
        details: dict[str, Any] = {}
        if capability:
            details["capability"] = capability
        if path:
            details["path"] = path
        super().__init__(message, "ACCESS_DENIED", details)
