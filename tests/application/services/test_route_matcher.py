"""Tests for route / api resource matching"""
from src.application.services.route_matcher import find_best_match, matching_resources
from tests.factories import api, route


class TestFindBestMatch:
    def test_static_route_beats_parameterized_route(self):
        """
        GIVEN "/documents/:id" and "/documents/new"
        WHEN "/documents/new" is matched
        THEN the pattern with fewer parameter segments wins.
        """
        resources = [
            route("detail", "/documents/:id", "DOCUMENT_VIEW"),
            route("new", "/documents/new", "DOCUMENT_CREATE", sort_order=5),
        ]

        assert find_best_match(resources, "/documents/new").id == "new"
        assert find_best_match(resources, "/documents/42").id == "detail"

    def test_ties_broken_by_sort_order_then_id(self):
        resources = [
            route("b", "/documents/:id"),
            route("a", "/documents/[docId]"),
            route("c", "/documents/:slug", sort_order=-1),
        ]

        assert [r.id for r in matching_resources(resources, "/documents/1")] == ["c", "a", "b"]

    def test_unknown_path_has_no_match(self):
        assert find_best_match([route("r", "/documents")], "/reports") is None

    def test_api_matching_filters_by_method(self):
        resources = [
            api("list", "/api/documents", "GET", "DOCUMENT_VIEW"),
            api("create", "/api/documents", "POST", "DOCUMENT_CREATE"),
        ]

        assert find_best_match(resources, "/api/documents", "post").id == "create"
        assert find_best_match(resources, "/api/documents", "GET").id == "list"
        assert find_best_match(resources, "/api/documents", "DELETE") is None

    def test_malformed_stored_path_never_matches(self):
        resources = [route("broken", "documents/:id"), route("ok", "/documents/:id")]

        assert find_best_match(resources, "/documents/1").id == "ok"
        assert find_best_match([route("broken", "documents")], "documents") is None

    def test_untagged_api_resource_matches_no_method(self):
        resources = [api("untagged", "/api/documents", None, "DOCUMENT_VIEW")]

        assert find_best_match(resources, "/api/documents", "GET") is None
        assert find_best_match(resources, "/api/documents", "POST") is None
