"""Tests for the capability resolver"""
import pytest

from src.application.services.capability_resolver import CapabilityResolver
from src.domain.exceptions import StoreUnavailableError, UserNotFoundException


@pytest.fixture
def resolver(store) -> CapabilityResolver:
    return CapabilityResolver(store)


class TestCapabilityResolver:
    async def test_union_over_active_roles(self, resolver, store):
        """
        GIVEN a user holding viewer, editor and an inactive role
        WHEN capabilities are resolved
        THEN the result is the union of the active roles only.
        """
        capabilities = await resolver.resolve("multi-user")

        expected = store.role_capabilities["viewer"] | store.role_capabilities["editor"]
        assert capabilities.names == frozenset(expected)
        assert not capabilities.has("USER_MANAGE")

    async def test_user_without_roles_gets_empty_set(self, resolver):
        capabilities = await resolver.resolve("no-role-user")

        assert len(capabilities) == 0

    async def test_inactive_membership_grants_nothing(self, resolver, store):
        store.deactivate_membership("viewer-user", "viewer")

        assert len(await resolver.resolve("viewer-user")) == 0

    async def test_unknown_user_is_an_error(self, resolver):
        with pytest.raises(UserNotFoundException) as exc_info:
            await resolver.resolve("ghost")

        assert exc_info.value.error_code == "USER_NOT_FOUND"

    async def test_one_round_trip_per_role(self, resolver, store):
        await resolver.resolve("multi-user")

        assert store.calls["get_role_capability_names"] == 2

    async def test_store_failure_propagates(self, resolver, store):
        store.available = False

        with pytest.raises(StoreUnavailableError):
            await resolver.resolve("viewer-user")
