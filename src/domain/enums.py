"""Domain enumerations for the access-control engine."""

from enum import Enum


class ResourceType(str, Enum):
    """Kind of protected resource. Each type forms its own forest."""

    NAVIGATION = "navigation"
    ROUTE = "route"
    API = "api"

    @classmethod
    def values(cls) -> list[str]:
        """Get all valid values"""
        return [resource_type.value for resource_type in cls]


class BypassScope(str, Enum):
    """Domain in which a bypass capability short-circuits ordinary checks"""

    RESOURCE_TREE = "resource_tree"  # routes, apis, navigation pruning
    DOCUMENT_VISIBILITY = "document_visibility"  # ownership / visibility gates only

    @classmethod
    def values(cls) -> list[str]:
        """Get all valid values"""
        return [scope.value for scope in cls]


class DocumentStatus(str, Enum):
    """Document lifecycle status as seen by visibility checks"""

    DRAFT = "DRAFT"
    PENDING_REVIEW = "PENDING_REVIEW"
    IN_REVIEW = "IN_REVIEW"
    PENDING_APPROVAL = "PENDING_APPROVAL"
    APPROVED = "APPROVED"
    PUBLISHED = "PUBLISHED"
    REJECTED = "REJECTED"
    ARCHIVED = "ARCHIVED"
    EXPIRED = "EXPIRED"

    @classmethod
    def values(cls) -> list[str]:
        """Get all valid values"""
        return [status.value for status in cls]
