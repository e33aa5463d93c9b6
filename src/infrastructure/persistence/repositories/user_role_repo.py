from __future__ import annotations

from functools import partial
from typing import TYPE_CHECKING

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.infrastructure.persistence.models.capability import UserRole
from src.infrastructure.persistence.models.role import Role
from src.infrastructure.persistence.repositories.base import (BaseRepository, Change,
                                                             Invalidation)

if TYPE_CHECKING:
    from src.application.services.access_control_service import AccessControlService


class UserRoleRepository(BaseRepository[UserRole]):
    """Role memberships; each change invalidates only the affected user."""

    def __init__(self, db: AsyncSession, access_control: AccessControlService | None = None):
        super().__init__(db, UserRole, access_control)

    async def get_membership(self, user_id: str, role_id: str) -> UserRole | None:
        result = await self.db.execute(
            select(UserRole).where(UserRole.user_id == user_id, UserRole.role_id == role_id)
        )
        return result.scalar_one_or_none()

    async def get_user_roles(self, user_id: str, include_inactive: bool = False) -> list[Role]:
        """Roles held by a user"""
        query = (
            select(Role)
            .join(UserRole, UserRole.role_id == Role.id)
            .where(UserRole.user_id == user_id)
        )
        if not include_inactive:
            query = query.where(UserRole.is_active.is_(True), Role.is_active.is_(True))
        result = await self.db.execute(query.order_by(Role.level.desc(), Role.name))
        return list(result.scalars().all())

    async def assign_role(
        self, user_id: str, role_id: str, assigned_by: str | None = None
    ) -> UserRole:
        """Assign a role to a user, reactivating a previous membership if present"""
        membership = await self.get_membership(user_id, role_id)
        if membership:
            if membership.is_active:
                return membership
            membership.is_active = True
            membership.assigned_by = assigned_by
            return await self.update(membership)
        return await self.create(
            UserRole(user_id=user_id, role_id=role_id, assigned_by=assigned_by, is_active=True)
        )

    async def deactivate_role(self, user_id: str, role_id: str) -> bool:
        """Keep the membership row but stop it granting anything"""
        membership = await self.get_membership(user_id, role_id)
        if not membership or not membership.is_active:
            return False
        membership.is_active = False
        await self.update(membership)
        return True

    async def remove_role(self, user_id: str, role_id: str) -> bool:
        membership = await self.get_membership(user_id, role_id)
        if not membership:
            return False
        await self.delete(membership)
        return True

    def _invalidation(
        self, access_control: AccessControlService, obj: UserRole, change: Change
    ) -> Invalidation:
        return partial(access_control.invalidate_user, obj.user_id)
