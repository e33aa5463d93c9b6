"""
Application layer interfaces (ports).

These protocols define the contracts between the application layer
and the infrastructure layer, following the Dependency Inversion Principle.
"""

from src.application.interfaces.repositories import IAccessStore
from src.application.interfaces.services import Expiring, IAccessCache, ISharedCache

__all__ = [
    # Repository interfaces
    "IAccessStore",
    # Cache interfaces
    "IAccessCache",
    "ISharedCache",
    "Expiring",
]
