"""
Document access use case.

Decides what a user may do with a single document by combining the user's
capability set with the document's ownership, visibility, access groups and
workflow status. The document-visibility bypass widens who can see and change
documents; it never grants PDF download, upload or workflow transitions.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from src.domain.enums import BypassScope, DocumentStatus
from src.domain.value_objects.capability import (CapabilityLike, CapabilitySet,
                                                 KnownCapability)

if TYPE_CHECKING:
    from src.application.services.access_control_service import \
        AccessControlService

logger = logging.getLogger(__name__)

# Statuses any viewer may see; everything else needs DOCUMENT_MANAGE or ownership
PUBLICLY_VISIBLE_STATUSES = frozenset({DocumentStatus.APPROVED, DocumentStatus.PUBLISHED})

# Statuses in which no one may edit the document
EDIT_LOCKED_STATUSES = frozenset({DocumentStatus.ARCHIVED, DocumentStatus.EXPIRED})


@dataclass(frozen=True)
class DocumentAccessContext:
    """The parts of a document that access decisions look at"""

    id: str
    owner_id: str
    status: DocumentStatus
    is_public: bool = False
    access_groups: frozenset[str] = field(default_factory=frozenset)

    def __post_init__(self):
        if not isinstance(self.status, DocumentStatus):
            object.__setattr__(self, "status", DocumentStatus(self.status))
        if not isinstance(self.access_groups, frozenset):
            object.__setattr__(self, "access_groups", frozenset(self.access_groups))

    def is_owned_by(self, user_id: str) -> bool:
        return self.owner_id == user_id


class DocumentAccessPolicy:
    """
    Per-document decisions on top of the access decision engine.

    Every method resolves the user's capabilities through the engine. An
    unknown user or an unavailable store denies every action, public
    documents included.
    """

    def __init__(self, access_control: AccessControlService):
        self.access_control = access_control

    async def _capabilities(self, user_id: str) -> CapabilitySet | None:
        """None when the user cannot be resolved; every decision is then a denial"""
        return await self.access_control.try_resolve_capabilities(user_id)

    def _bypasses(self, capabilities: CapabilitySet) -> bool:
        return self.access_control.bypass_policy.bypasses(
            capabilities, BypassScope.DOCUMENT_VISIBILITY
        )

    @staticmethod
    def _status_visible(document: DocumentAccessContext, capabilities: CapabilitySet) -> bool:
        return document.status in PUBLICLY_VISIBLE_STATUSES or capabilities.has(
            KnownCapability.DOCUMENT_MANAGE
        )

    def _view_decision(
        self,
        user_id: str,
        document: DocumentAccessContext,
        capabilities: CapabilitySet,
        user_groups: frozenset[str],
    ) -> bool:
        if self._bypasses(capabilities):
            return True
        if document.is_owned_by(user_id):
            return True

        if document.access_groups:
            # Group-restricted documents ignore is_public and DOCUMENT_VIEW
            if document.access_groups.isdisjoint(user_groups):
                return False
            return self._status_visible(document, capabilities)

        if document.is_public or capabilities.has(KnownCapability.DOCUMENT_VIEW):
            return self._status_visible(document, capabilities)
        return False

    async def can_view(
        self,
        user_id: str,
        document: DocumentAccessContext,
        user_groups: Iterable[str] = (),
    ) -> bool:
        """
        Whether the user may see the document.

        Order of rules:
        1. Document-visibility bypass
        2. Owner
        3. Access groups, when the document lists any
        4. Public documents, or DOCUMENT_VIEW holders
        Non-owners only see APPROVED / PUBLISHED documents unless they hold
        DOCUMENT_MANAGE.
        """
        capabilities = await self._capabilities(user_id)
        if capabilities is None:
            return False
        allowed = self._view_decision(user_id, document, capabilities, frozenset(user_groups))
        logger.debug(
            f"Document {document.id} view {'granted' if allowed else 'denied'} for user {user_id}"
        )
        return allowed

    async def can_edit(self, user_id: str, document: DocumentAccessContext) -> bool:
        """Archived and expired documents are read-only for everyone"""
        if document.status in EDIT_LOCKED_STATUSES:
            return False
        capabilities = await self._capabilities(user_id)
        if capabilities is None:
            return False
        if self._bypasses(capabilities):
            return True
        is_manager = document.is_owned_by(user_id) or capabilities.has(
            KnownCapability.DOCUMENT_MANAGE
        )
        return is_manager and capabilities.has(KnownCapability.DOCUMENT_EDIT)

    async def can_delete(self, user_id: str, document: DocumentAccessContext) -> bool:
        capabilities = await self._capabilities(user_id)
        if capabilities is None:
            return False
        if self._bypasses(capabilities):
            return True
        return document.is_owned_by(user_id) and capabilities.has(KnownCapability.DOCUMENT_DELETE)

    async def can_download(
        self,
        user_id: str,
        document: DocumentAccessContext,
        user_groups: Iterable[str] = (),
    ) -> bool:
        """Needs view access plus PDF_DOWNLOAD, which no bypass implies"""
        capabilities = await self._capabilities(user_id)
        if capabilities is None or not capabilities.has(KnownCapability.PDF_DOWNLOAD):
            return False
        return self._view_decision(user_id, document, capabilities, frozenset(user_groups))

    async def can_upload(self, user_id: str) -> bool:
        capabilities = await self._capabilities(user_id)
        return capabilities is not None and capabilities.has(KnownCapability.DOCUMENT_UPLOAD)

    async def can_transition(
        self,
        user_id: str,
        document: DocumentAccessContext,
        capability: CapabilityLike,
        user_groups: Iterable[str] = (),
    ) -> bool:
        """A workflow transition needs view access plus the transition's own capability"""
        capabilities = await self._capabilities(user_id)
        if capabilities is None or not capabilities.has(capability):
            return False
        return self._view_decision(user_id, document, capabilities, frozenset(user_groups))
