"""Tests for per-document access decisions"""
import pytest

from src.application.use_cases.documents.document_access import (DocumentAccessContext,
                                                                 DocumentAccessPolicy)
from src.domain.enums import DocumentStatus
from src.domain.value_objects.capability import KnownCapability


@pytest.fixture
def policy(access_control) -> DocumentAccessPolicy:
    return DocumentAccessPolicy(access_control)


def document(status=DocumentStatus.PUBLISHED, owner="someone-else", **kwargs) -> DocumentAccessContext:
    return DocumentAccessContext(id="doc-1", owner_id=owner, status=status, **kwargs)


class TestCanView:
    async def test_bypass_sees_non_owned_private_draft(self, policy):
        """
        GIVEN a user whose only role grants DOCUMENT_FULL_ACCESS
        WHEN they open someone else's private draft
        THEN the visibility bypass lets them see it.
        """
        private_draft = document(status=DocumentStatus.DRAFT, access_groups={"legal"})

        assert await policy.can_view("ppd-user", private_draft) is True

    async def test_owner_sees_own_draft(self, policy):
        assert await policy.can_view("no-role-user", document(DocumentStatus.DRAFT, owner="no-role-user"))

    async def test_viewer_sees_published_but_not_drafts(self, policy):
        assert await policy.can_view("viewer-user", document(DocumentStatus.PUBLISHED)) is True
        assert await policy.can_view("viewer-user", document(DocumentStatus.APPROVED)) is True
        assert await policy.can_view("viewer-user", document(DocumentStatus.DRAFT)) is False
        assert await policy.can_view("viewer-user", document(DocumentStatus.ARCHIVED)) is False

    async def test_manager_sees_any_status(self, policy):
        assert await policy.can_view("manager-user", document(DocumentStatus.IN_REVIEW)) is True

    async def test_public_document_needs_no_view_capability(self, policy):
        assert await policy.can_view("no-role-user", document(is_public=True)) is True
        assert await policy.can_view("no-role-user", document()) is False

    async def test_access_groups_restrict_visibility(self, policy):
        restricted = document(access_groups={"legal"}, is_public=True)

        assert await policy.can_view("viewer-user", restricted) is False
        assert await policy.can_view("viewer-user", restricted, user_groups=["legal"]) is True

    async def test_unknown_user_sees_nothing(self, policy):
        assert await policy.can_view("ghost", document(is_public=True)) is False


class TestActions:
    async def test_bypass_does_not_grant_download(self, policy):
        """Visibility bypass without PDF_DOWNLOAD: can view, cannot download."""
        private_doc = document(status=DocumentStatus.DRAFT)

        assert await policy.can_view("ppd-user", private_doc) is True
        assert await policy.can_download("ppd-user", private_doc) is False

    async def test_download_needs_view_and_pdf_download(self, policy):
        assert await policy.can_download("editor-user", document()) is True
        assert await policy.can_download("editor-user", document(DocumentStatus.DRAFT)) is False
        assert await policy.can_download("viewer-user", document()) is False

    async def test_edit_locks_apply_even_with_bypass(self, policy):
        archived = document(DocumentStatus.ARCHIVED)

        assert await policy.can_edit("ppd-user", archived) is False
        assert await policy.can_edit("ppd-user", document(DocumentStatus.DRAFT)) is True

    async def test_edit_requires_ownership_or_manage(self, policy):
        assert await policy.can_edit("editor-user", document(DocumentStatus.DRAFT)) is False
        assert await policy.can_edit("editor-user", document(DocumentStatus.DRAFT, owner="editor-user"))
        assert await policy.can_edit("manager-user", document(DocumentStatus.DRAFT)) is True

    async def test_delete(self, policy, store):
        store.grant("editor", KnownCapability.DOCUMENT_DELETE)

        assert await policy.can_delete("editor-user", document(owner="editor-user")) is True
        assert await policy.can_delete("editor-user", document()) is False
        assert await policy.can_delete("ppd-user", document()) is True

    async def test_upload_is_never_bypassed(self, policy):
        assert await policy.can_upload("editor-user") is True
        assert await policy.can_upload("ppd-user") is False
        assert await policy.can_upload("admin-user") is False

    async def test_transition_needs_view_and_capability(self, policy, store):
        store.grant("ppd.pusat", KnownCapability.DOCUMENT_APPROVE)
        pending = document(DocumentStatus.PENDING_APPROVAL)

        assert await policy.can_transition("ppd-user", pending, KnownCapability.DOCUMENT_APPROVE)
        assert not await policy.can_transition("ppd-user", pending, KnownCapability.DOCUMENT_PUBLISH)
        assert not await policy.can_transition("viewer-user", pending, "DOCUMENT_APPROVE")


def test_context_coerces_status_and_groups():
    context = DocumentAccessContext(id="d", owner_id="u", status="PUBLISHED", access_groups=["a"])

    assert context.status is DocumentStatus.PUBLISHED
    assert context.access_groups == frozenset({"a"})


async def test_store_outage_denies_even_public_documents(policy, store):
    store.available = False

    assert await policy.can_view("viewer-user", document(is_public=True)) is False
    assert await policy.can_view("viewer-user", document(owner="viewer-user")) is False
