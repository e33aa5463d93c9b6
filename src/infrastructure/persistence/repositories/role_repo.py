from __future__ import annotations

from typing import TYPE_CHECKING

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.infrastructure.persistence.models.role import Role
from src.infrastructure.persistence.repositories.base import (BaseRepository, Change,
                                                             Invalidation)

if TYPE_CHECKING:
    from src.application.services.access_control_service import AccessControlService


class RoleRepository(BaseRepository[Role]):
    """Repository for Role operations with capability cache invalidation."""

    def __init__(self, db: AsyncSession, access_control: AccessControlService | None = None):
        super().__init__(db, Role, access_control)

    async def get_by_name(self, name: str) -> Role | None:
        result = await self.db.execute(select(Role).where(Role.name == name))
        return result.scalar_one_or_none()

    async def get_active(self, skip: int = 0, limit: int = 100) -> list[Role]:
        """Active roles, most senior first"""
        result = await self.db.execute(
            select(Role)
            .where(Role.is_active.is_(True))
            .order_by(Role.level.desc(), Role.name)
            .offset(skip)
            .limit(limit)
        )
        return list(result.scalars().all())

    async def set_active(self, role_id: str, is_active: bool) -> Role | None:
        """Activate or deactivate a role; every holder's capabilities change"""
        role = await self.get_by_id(role_id)
        if not role:
            return None
        role.is_active = is_active
        return await self.update(role)

    def _invalidation(
        self, access_control: AccessControlService, obj: Role, change: Change
    ) -> Invalidation | None:
        # A new role has no holders yet; any other change reaches every holder's set
        if change == "create":
            return None
        return access_control.invalidate_capabilities
