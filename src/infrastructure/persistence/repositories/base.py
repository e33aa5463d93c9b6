from __future__ import annotations

import inspect
from abc import ABC
from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING, Any, Generic, Literal, TypeVar

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import object_session

from src.infrastructure.persistence.database import Base

if TYPE_CHECKING:
    from src.application.services.access_control_service import AccessControlService

ModelType = TypeVar("ModelType", bound=Base)

Change = Literal["create", "update", "delete"]

# Sync or async call that drops cached access data
Invalidation = Callable[[], Awaitable[None] | None]

PENDING_INVALIDATIONS = "access_control.pending_invalidations"


async def commit_and_invalidate(db: AsyncSession) -> None:
    """
    Commit the session, then run the cache invalidations queued on it.

    Caches are cleared only once the new rows are visible to other sessions,
    so a concurrent reader cannot re-cache the rows being replaced. A failed
    commit drops the queue.
    """
    pending: list[Invalidation] = db.info.pop(PENDING_INVALIDATIONS, [])
    await db.commit()
    for invalidation in pending:
        result = invalidation()
        if inspect.isawaitable(result):
            await result


class BaseRepository(ABC, Generic[ModelType]):
    """
    Base repository for the administrative tables behind access decisions.

    The access engine serves these tables from caches. Every mutation asks
    `_invalidation` which caches it touches and queues the answer on the
    session; `commit()` runs the queue after the transaction commits.
    """

    def __init__(
        self,
        db: AsyncSession,
        model: type[ModelType],
        access_control: AccessControlService | None = None,
    ):
        self.db = db
        self.model = model
        self.access_control = access_control

    async def get_by_id(self, id: str) -> ModelType | None:
        # id comes from CuidMixin
        model: Any = self.model
        result = await self.db.execute(select(self.model).where(model.id == id))
        return result.scalar_one_or_none()

    async def create(self, obj: ModelType) -> ModelType:
        self.db.add(obj)
        await self.db.flush()
        await self.db.refresh(obj)
        self._queue(obj, "create")
        return obj

    async def update(self, obj: ModelType) -> ModelType:
        """Flush changes to a record, merging it back first when detached"""
        if object_session(obj) is None:
            obj = await self.db.merge(obj)
        await self.db.flush()
        await self.db.refresh(obj)
        self._queue(obj, "update")
        return obj

    async def delete(self, obj: ModelType) -> None:
        # Arguments are bound now, while the row is still loaded
        self._queue(obj, "delete")
        await self.db.delete(obj)
        await self.db.flush()

    async def commit(self) -> None:
        await commit_and_invalidate(self.db)

    def _queue(self, obj: ModelType, change: Change) -> None:
        if self.access_control is None:
            return
        invalidation = self._invalidation(self.access_control, obj, change)
        if invalidation is not None:
            self.db.info.setdefault(PENDING_INVALIDATIONS, []).append(invalidation)

    def _invalidation(
        self, access_control: AccessControlService, obj: ModelType, change: Change
    ) -> Invalidation | None:
        """The cache invalidation a change needs once committed. Default: none."""
        return None
