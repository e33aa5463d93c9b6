"""Tests for the resource entity"""
import pytest

from tests.factories import api, nav, route


def test_api_method_is_uppercased_and_absent_when_untagged():
    assert api("a", "/api/x", "post").method == "POST"
    assert api("u", "/api/x", None).method is None
    assert route("r", "/x").method is None


def test_public_when_no_capability_required():
    assert nav("n", "/home").is_public
    assert not nav("n", "/admin", "ADMIN_ACCESS").is_public


def test_sort_key_orders_by_sort_order_then_id():
    resources = [nav("b", "/b", sort_order=1), nav("c", "/c"), nav("a", "/a", sort_order=1)]

    assert [r.id for r in sorted(resources, key=lambda r: r.sort_key())] == ["c", "a", "b"]


def test_validate_rejects_self_parent_and_relative_path():
    with pytest.raises(ValueError):
        nav("n", "/x", parent="n").validate()
    with pytest.raises(ValueError):
        route("r", "relative").validate()
    assert route("r", "/documents/:id").validate() is True
