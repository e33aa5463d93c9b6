from __future__ import annotations

from typing import TYPE_CHECKING

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.domain.enums import ResourceType
from src.infrastructure.persistence.models.resource import Resource
from src.infrastructure.persistence.repositories.base import (BaseRepository, Change,
                                                             Invalidation)

if TYPE_CHECKING:
    from src.application.services.access_control_service import AccessControlService


class ResourceRepository(BaseRepository[Resource]):
    """Repository for navigation / route / api resources."""

    def __init__(self, db: AsyncSession, access_control: AccessControlService | None = None):
        super().__init__(db, Resource, access_control)

    async def get_by_type(self, resource_type: ResourceType) -> list[Resource]:
        result = await self.db.execute(
            select(Resource)
            .where(Resource.type == resource_type.value)
            .order_by(Resource.sort_order, Resource.id)
        )
        return list(result.scalars().all())

    async def get_children(self, parent_id: str) -> list[Resource]:
        result = await self.db.execute(
            select(Resource)
            .where(Resource.parent_id == parent_id)
            .order_by(Resource.sort_order, Resource.id)
        )
        return list(result.scalars().all())

    async def get_by_path(self, resource_type: ResourceType, path: str) -> list[Resource]:
        """Resources registered for an exact path (api resources may differ by method)"""
        result = await self.db.execute(
            select(Resource).where(Resource.type == resource_type.value, Resource.path == path)
        )
        return list(result.scalars().all())

    def _invalidation(
        self, access_control: AccessControlService, obj: Resource, change: Change
    ) -> Invalidation:
        return access_control.invalidate_resources
