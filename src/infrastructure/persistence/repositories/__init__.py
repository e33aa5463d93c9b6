""" Repository module for the persistence layer. """

from src.infrastructure.persistence.repositories.access_store import SqlAlchemyAccessStore
from src.infrastructure.persistence.repositories.base import BaseRepository
from src.infrastructure.persistence.repositories.capability_repo import (
    CapabilityRepository,
    RoleCapabilityRepository,
)
from src.infrastructure.persistence.repositories.resource_repo import ResourceRepository
from src.infrastructure.persistence.repositories.role_repo import RoleRepository
from src.infrastructure.persistence.repositories.user_role_repo import UserRoleRepository

__all__ = [
    "BaseRepository",
    "SqlAlchemyAccessStore",
    "CapabilityRepository",
    "RoleCapabilityRepository",
    "ResourceRepository",
    "RoleRepository",
    "UserRoleRepository",
]
