"""Tests for the capability set value object"""
import pytest

from src.domain.value_objects.capability import CapabilitySet, KnownCapability, capability_token


class TestCapabilitySet:
    def test_membership_accepts_enum_and_string(self):
        capabilities = CapabilitySet.of([KnownCapability.DOCUMENT_VIEW, "CUSTOM_REPORT"])

        assert capabilities.has("DOCUMENT_VIEW")
        assert capabilities.has(KnownCapability.DOCUMENT_VIEW)
        assert "CUSTOM_REPORT" in capabilities

    def test_membership_is_exact(self):
        capabilities = CapabilitySet.of(["DOCUMENT_VIEW"])

        assert not capabilities.has("document_view")
        assert not capabilities.has("DOCUMENT")
        assert not capabilities.has("")
        assert None not in capabilities

    def test_union_has_no_negative_permissions(self):
        viewer = CapabilitySet.of(["DOCUMENT_VIEW"])
        editor = CapabilitySet.of(["DOCUMENT_VIEW", "DOCUMENT_EDIT"])

        combined = viewer.union(editor).union(["PDF_VIEW"])

        assert combined.to_list() == ["DOCUMENT_EDIT", "DOCUMENT_VIEW", "PDF_VIEW"]
        assert len(combined) == 3

    def test_any_and_all(self):
        capabilities = CapabilitySet.of(["DOCUMENT_VIEW", "PDF_VIEW"])

        assert capabilities.has_any(["PDF_DOWNLOAD", "PDF_VIEW"])
        assert not capabilities.has_any(["PDF_DOWNLOAD"])
        assert capabilities.has_all(["DOCUMENT_VIEW", KnownCapability.PDF_VIEW])
        assert not capabilities.has_all(["DOCUMENT_VIEW", "PDF_DOWNLOAD"])

    def test_empty_set(self):
        assert len(CapabilitySet.empty()) == 0
        assert list(CapabilitySet.empty()) == []

    def test_empty_name_is_rejected_when_building(self):
        with pytest.raises(ValueError):
            capability_token("")
        with pytest.raises(ValueError):
            CapabilitySet.of(["DOCUMENT_VIEW", ""])
