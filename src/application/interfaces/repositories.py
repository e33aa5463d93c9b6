"""
Repository interfaces (ports) for the application layer.

The access-control engine only ever reads through these protocols; mutations
happen in administrative flows that call the engine's invalidation hooks.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from src.domain.entities.resource import ResourceEntity
    from src.domain.enums import ResourceType


class IAccessStore(Protocol):
    """Protocol for the read-only access store (DIP)"""

    async def user_exists(self, user_id: str) -> bool:
        """Whether the user record exists (regardless of roles)"""
        ...

    async def get_active_role_ids(self, user_id: str) -> list[str]:
        """Ids of active roles held through active user-role memberships"""
        ...

    async def get_role_capability_names(self, role_id: str) -> set[str]:
        """Names of all capabilities assigned to a role"""
        ...

    async def list_resources(
        self, resource_type: ResourceType | None = None
    ) -> list[ResourceEntity]:
        """All resources, optionally restricted to one type"""
        ...

    async def list_capability_names(self) -> set[str]:
        """Names of every capability that exists"""
        ...
