"""Shared test fixtures for pytest"""
import pytest

from src.application.services.access_control_service import AccessControlService
from src.infrastructure.cache.memory_cache import TTLCache
from tests.factories import FakeAccessStore, FakeClock, seed_store


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def store() -> FakeAccessStore:
    """Fake store seeded with the standard roles, users and resources"""
    return seed_store(FakeAccessStore())


@pytest.fixture
def access_control(store, clock) -> AccessControlService:
    """Access decision engine over the fake store with a controllable clock"""
    return AccessControlService(
        store=store,
        capability_cache=TTLCache(ttl_seconds=300, clock=clock),
        resource_cache=TTLCache(ttl_seconds=300, clock=clock),
    )
