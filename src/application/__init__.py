"""
Application layer - Application Business Rules.

This layer contains application-specific business rules, including:
- Interfaces (ports) for infrastructure dependencies
- Access decision services (tree builder, resolver, bypass policy, engine)
- Use cases that orchestrate domain logic
"""

from src.application.interfaces import IAccessCache, IAccessStore, ISharedCache
from src.application.services import (AccessControlService, BypassPolicy,
                                      CapabilityResolver, ResourceForest)
from src.application.use_cases import (DocumentAccessContext,
                                       DocumentAccessPolicy)

__all__ = [
    # Interfaces
    "IAccessStore",
    "IAccessCache",
    "ISharedCache",
    # Services
    "AccessControlService",
    "BypassPolicy",
    "CapabilityResolver",
    "ResourceForest",
    # Use Cases
    "DocumentAccessContext",
    "DocumentAccessPolicy",
]
