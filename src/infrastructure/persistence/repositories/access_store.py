"""
SQLAlchemy implementation of the read-only access store.

The access engine is a long-lived singleton, so the store opens a short
session per call instead of borrowing the request session. Every driver or
connection failure surfaces as StoreUnavailableError so callers can fail
closed.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING, TypeVar

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError

from src.domain.entities.resource import ResourceEntity
from src.domain.enums import ResourceType
from src.domain.exceptions import StoreUnavailableError
from src.infrastructure.persistence.models.capability import (Capability,
                                                              RoleCapabilityAssignment,
                                                              UserRole)
from src.infrastructure.persistence.models.resource import Resource
from src.infrastructure.persistence.models.role import Role
from src.infrastructure.persistence.models.user import User

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

logger = logging.getLogger(__name__)

T = TypeVar("T")


def resource_to_entity(resource: Resource) -> ResourceEntity:
    """Convert ORM model to domain entity"""
    return ResourceEntity(
        id=resource.id,
        type=ResourceType(resource.type),
        path=resource.path,
        name=resource.name,
        parent_id=resource.parent_id,
        required_capability=resource.required_capability,
        sort_order=resource.sort_order or 0,
        metadata=dict(resource.resource_metadata or {}),
        description=resource.description,
        icon=resource.icon,
        is_active=resource.is_active,
    )


class SqlAlchemyAccessStore:
    """IAccessStore backed by the relational database"""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self.session_factory = session_factory

    async def _run(self, operation: str, query: Callable[[AsyncSession], Awaitable[T]]) -> T:
        try:
            async with self.session_factory() as session:
                return await query(session)
        except (SQLAlchemyError, OSError) as e:
            logger.error(f"Access store {operation} failed: {e}")
            raise StoreUnavailableError(operation, str(e)) from e

    async def user_exists(self, user_id: str) -> bool:
        async def query(session: AsyncSession) -> bool:
            result = await session.execute(select(User.id).where(User.id == user_id))
            return result.scalar_one_or_none() is not None

        return await self._run("user_exists", query)

    async def get_active_role_ids(self, user_id: str) -> list[str]:
        """Active memberships whose role is itself active"""

        async def query(session: AsyncSession) -> list[str]:
            result = await session.execute(
                select(UserRole.role_id)
                .join(Role, Role.id == UserRole.role_id)
                .where(
                    UserRole.user_id == user_id,
                    UserRole.is_active.is_(True),
                    Role.is_active.is_(True),
                )
                .distinct()
            )
            return list(result.scalars().all())

        return await self._run("get_active_role_ids", query)

    async def get_role_capability_names(self, role_id: str) -> set[str]:
        async def query(session: AsyncSession) -> set[str]:
            result = await session.execute(
                select(Capability.name)
                .join(
                    RoleCapabilityAssignment,
                    RoleCapabilityAssignment.capability_id == Capability.id,
                )
                .where(RoleCapabilityAssignment.role_id == role_id)
            )
            return set(result.scalars().all())

        return await self._run("get_role_capability_names", query)

    async def list_resources(
        self, resource_type: ResourceType | None = None
    ) -> list[ResourceEntity]:
        async def query(session: AsyncSession) -> list[ResourceEntity]:
            statement = select(Resource)
            if resource_type is not None:
                statement = statement.where(Resource.type == resource_type.value)
            statement = statement.order_by(Resource.type, Resource.sort_order, Resource.id)
            result = await session.execute(statement)
            return [resource_to_entity(resource) for resource in result.scalars().all()]

        return await self._run("list_resources", query)

    async def list_capability_names(self) -> set[str]:
        async def query(session: AsyncSession) -> set[str]:
            result = await session.execute(select(Capability.name))
            return set(result.scalars().all())

        return await self._run("list_capability_names", query)
