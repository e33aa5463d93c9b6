"""Capability resolver: effective capability set of a user from their roles."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from src.domain.exceptions import UserNotFoundException
from src.domain.value_objects.capability import CapabilitySet

if TYPE_CHECKING:
    from src.application.interfaces.repositories import IAccessStore

logger = logging.getLogger(__name__)


class CapabilityResolver:
    """
    Computes a user's effective capabilities as the union over active roles.

    A user with roles {R1, R2} can do anything either role permits; there are
    no negative or conflicting permissions. Each role costs one store
    round-trip, and every round-trip is an await point, so a cancelled caller
    stops before the next one is issued.
    """

    def __init__(self, store: IAccessStore):
        self.store = store

    async def resolve(self, user_id: str) -> CapabilitySet:
        """
        Resolve the effective capability set for a user.

        Returns:
            CapabilitySet: Union of every active role's capabilities
                (empty when the user holds no active roles)

        Raises:
            UserNotFoundException: The user itself does not exist
            StoreUnavailableError: The backing store failed
        """
        if not await self.store.user_exists(user_id):
            raise UserNotFoundException(user_id)

        role_ids = await self.store.get_active_role_ids(user_id)

        names: set[str] = set()
        for role_id in dict.fromkeys(role_ids):
            names |= await self.store.get_role_capability_names(role_id)

        capabilities = CapabilitySet.of(names)
        logger.debug(
            f"Resolved {len(capabilities)} capabilities for user {user_id} "
            f"from {len(role_ids)} active roles"
        )
        return capabilities
