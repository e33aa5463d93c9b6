from src.infrastructure.persistence.models.capability import (Capability,
                                                              RoleCapabilityAssignment,
                                                              UserRole)
# Mixins for model composition
from src.infrastructure.persistence.models.mixins import (AccessModel,
                                                          CuidMixin,
                                                          TimestampMixin)
from src.infrastructure.persistence.models.resource import Resource
from src.infrastructure.persistence.models.role import Role
from src.infrastructure.persistence.models.user import User

__all__ = [
    # Models
    "User",
    "Role",
    "Capability",
    "RoleCapabilityAssignment",
    "UserRole",
    "Resource",
    # Mixins
    "CuidMixin",
    "TimestampMixin",
    "AccessModel",
]
