from __future__ import annotations

from typing import TYPE_CHECKING

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.infrastructure.persistence.models.capability import (Capability,
                                                              RoleCapabilityAssignment)
from src.infrastructure.persistence.repositories.base import (BaseRepository, Change,
                                                             Invalidation)

if TYPE_CHECKING:
    from src.application.services.access_control_service import AccessControlService


class CapabilityRepository(BaseRepository[Capability]):
    """
    Repository for Capability definitions.

    Renaming or removing a capability changes both resolved capability sets
    and which resource requirements dangle, so every change clears all caches.
    """

    def __init__(self, db: AsyncSession, access_control: AccessControlService | None = None):
        super().__init__(db, Capability, access_control)

    async def get_by_name(self, name: str) -> Capability | None:
        result = await self.db.execute(select(Capability).where(Capability.name == name))
        return result.scalar_one_or_none()

    async def get_by_category(self, category: str) -> list[Capability]:
        result = await self.db.execute(
            select(Capability).where(Capability.category == category).order_by(Capability.name)
        )
        return list(result.scalars().all())

    def _invalidation(
        self, access_control: AccessControlService, obj: Capability, change: Change
    ) -> Invalidation:
        return access_control.invalidate_all


class RoleCapabilityRepository(BaseRepository[RoleCapabilityAssignment]):
    """Assign and revoke capabilities on roles."""

    def __init__(self, db: AsyncSession, access_control: AccessControlService | None = None):
        super().__init__(db, RoleCapabilityAssignment, access_control)

    async def get_assignment(
        self, role_id: str, capability_id: str
    ) -> RoleCapabilityAssignment | None:
        result = await self.db.execute(
            select(RoleCapabilityAssignment).where(
                RoleCapabilityAssignment.role_id == role_id,
                RoleCapabilityAssignment.capability_id == capability_id,
            )
        )
        return result.scalar_one_or_none()

    async def get_capabilities_for_role(self, role_id: str) -> list[Capability]:
        """Get all capabilities assigned to a role"""
        result = await self.db.execute(
            select(Capability)
            .join(RoleCapabilityAssignment, RoleCapabilityAssignment.capability_id == Capability.id)
            .where(RoleCapabilityAssignment.role_id == role_id)
            .order_by(Capability.name)
        )
        return list(result.scalars().all())

    async def assign(self, role_id: str, capability_id: str) -> RoleCapabilityAssignment:
        """Assign a capability to a role (idempotent)"""
        existing = await self.get_assignment(role_id, capability_id)
        if existing:
            return existing
        return await self.create(
            RoleCapabilityAssignment(role_id=role_id, capability_id=capability_id)
        )

    async def revoke(self, role_id: str, capability_id: str) -> bool:
        """Remove a capability from a role"""
        existing = await self.get_assignment(role_id, capability_id)
        if not existing:
            return False
        await self.delete(existing)
        return True

    # Role holders are not tracked in the cache, so clear every user's set
    def _invalidation(
        self,
        access_control: AccessControlService,
        obj: RoleCapabilityAssignment,
        change: Change,
    ) -> Invalidation:
        return access_control.invalidate_capabilities
