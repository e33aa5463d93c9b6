"""Test doubles and seed data shared by the test suite"""
import asyncio
import fnmatch
import json
import time
from collections import Counter
from typing import Any

from src.domain.entities.resource import ResourceEntity
from src.domain.enums import ResourceType
from src.domain.exceptions import StoreUnavailableError
from src.domain.value_objects.capability import KnownCapability


class FakeClock:
    """Manually advanced monotonic clock"""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeAccessStore:
    """In-memory IAccessStore with call counting and failure injection"""

    def __init__(self):
        self.users: set[str] = set()
        self.roles: dict[str, bool] = {}
        self.role_capabilities: dict[str, set[str]] = {}
        self.memberships: dict[tuple[str, str], bool] = {}
        self.resources: list[ResourceEntity] = []
        self.capabilities: set[str] = set(KnownCapability.values())
        self.available = True
        self.delay = 0.0
        self.calls: Counter[str] = Counter()
        # operation -> event a call waits on after reading, before returning
        self.gates: dict[str, asyncio.Event] = {}

    async def _enter(self, operation: str) -> None:
        self.calls[operation] += 1
        if self.delay:
            await asyncio.sleep(self.delay)
        if not self.available:
            raise StoreUnavailableError(operation, "connection refused")

    async def _hold(self, operation: str) -> None:
        gate = self.gates.get(operation)
        if gate is not None:
            await gate.wait()

    # Seeding helpers
    def add_role(self, role_id: str, *capabilities: Any, is_active: bool = True) -> None:
        self.roles[role_id] = is_active
        self.role_capabilities[role_id] = {
            capability.value if isinstance(capability, KnownCapability) else capability
            for capability in capabilities
        }

    def add_user(self, user_id: str, *role_ids: str) -> None:
        self.users.add(user_id)
        for role_id in role_ids:
            self.memberships[(user_id, role_id)] = True

    def grant(self, role_id: str, capability: Any) -> None:
        name = capability.value if isinstance(capability, KnownCapability) else capability
        self.role_capabilities.setdefault(role_id, set()).add(name)

    def deactivate_membership(self, user_id: str, role_id: str) -> None:
        self.memberships[(user_id, role_id)] = False

    # IAccessStore
    async def user_exists(self, user_id: str) -> bool:
        await self._enter("user_exists")
        return user_id in self.users

    async def get_active_role_ids(self, user_id: str) -> list[str]:
        await self._enter("get_active_role_ids")
        return [
            role_id
            for (member_id, role_id), is_active in self.memberships.items()
            if member_id == user_id and is_active and self.roles.get(role_id, False)
        ]

    async def get_role_capability_names(self, role_id: str) -> set[str]:
        await self._enter("get_role_capability_names")
        names = set(self.role_capabilities.get(role_id, set()))
        await self._hold("get_role_capability_names")
        return names

    async def list_resources(self, resource_type: ResourceType | None = None) -> list[ResourceEntity]:
        await self._enter("list_resources")
        return [
            resource
            for resource in self.resources
            if resource_type is None or resource.type == resource_type
        ]

    async def list_capability_names(self) -> set[str]:
        await self._enter("list_capability_names")
        return set(self.capabilities)


class FakeSharedCache:
    """In-memory ISharedCache with JSON values and Redis-style expiry on the wall clock"""

    def __init__(self):
        self.entries: dict[str, tuple[str, float]] = {}
        self.available = True

    def _read(self, key: str) -> Any | None:
        entry = self.entries.get(key)
        if entry is None:
            return None
        raw, expires_at = entry
        if time.time() >= expires_at:
            del self.entries[key]
            return None
        return json.loads(raw)

    def is_available(self) -> bool:
        return self.available

    async def get(self, key: str) -> Any | None:
        return self._read(key)

    async def get_many(self, keys: list[str]) -> list[Any | None]:
        return [self._read(key) for key in keys]

    async def set(self, key: str, value: Any, ttl: int = 300) -> bool:
        self.entries[key] = (json.dumps(value), time.time() + ttl)
        return True

    async def delete(self, key: str) -> bool:
        self.entries.pop(key, None)
        return True

    async def delete_pattern(self, pattern: str) -> int:
        keys = [key for key in self.entries if fnmatch.fnmatchcase(key, pattern)]
        for key in keys:
            del self.entries[key]
        return len(keys)

    async def incr(self, key: str, ttl: int) -> int | None:
        value = (self._read(key) or 0) + 1
        await self.set(key, value, ttl)
        return value

def nav(id: str, path: str, capability: Any = None, parent: str | None = None, **kwargs) -> ResourceEntity:
    return _resource(ResourceType.NAVIGATION, id, path, capability, parent, **kwargs)


def route(id: str, path: str, capability: Any = None, parent: str | None = None, **kwargs) -> ResourceEntity:
    return _resource(ResourceType.ROUTE, id, path, capability, parent, **kwargs)


def api(
    id: str, path: str, method: str | None, capability: Any = None, parent: str | None = None, **kwargs
) -> ResourceEntity:
    metadata = {"method": method, **kwargs.pop("metadata", {})}
    return _resource(ResourceType.API, id, path, capability, parent, metadata=metadata, **kwargs)


def _resource(resource_type, id, path, capability, parent, **kwargs) -> ResourceEntity:
    if isinstance(capability, KnownCapability):
        capability = capability.value
    return ResourceEntity(
        id=id,
        type=resource_type,
        path=path,
        name=kwargs.pop("name", id),
        parent_id=parent,
        required_capability=capability,
        **kwargs,
    )


C = KnownCapability


def seed_resources() -> list[ResourceEntity]:
    """A small document-management resource set covering all three types"""
    return [
        # Navigation
        nav("nav-dashboard", "/dashboard", sort_order=0),
        nav("nav-documents", "/documents", C.DOCUMENT_VIEW, sort_order=1),
        nav("nav-documents-upload", "/documents/upload", C.DOCUMENT_UPLOAD, parent="nav-documents"),
        nav("nav-admin", "/admin", C.ADMIN_ACCESS, sort_order=9),
        nav("nav-admin-users", "/admin/users", C.USER_MANAGE, parent="nav-admin", sort_order=0),
        nav("nav-admin-roles", "/admin/roles", C.ROLE_MANAGE, parent="nav-admin", sort_order=1),
        # Routes
        route("route-dashboard", "/dashboard"),
        route("route-documents", "/documents", C.DOCUMENT_VIEW),
        route("route-document-detail", "/documents/:id", C.DOCUMENT_VIEW, parent="route-documents"),
        route("route-document-new", "/documents/new", C.DOCUMENT_CREATE, parent="route-documents"),
        route("route-document-edit", "/documents/[id]/edit", C.DOCUMENT_EDIT, parent="route-documents"),
        route("route-admin", "/admin", C.ADMIN_ACCESS),
        route("route-admin-users", "/admin/users", C.USER_MANAGE, parent="route-admin"),
        # APIs
        api("api-documents-list", "/api/documents", "GET", C.DOCUMENT_VIEW),
        api("api-documents-create", "/api/documents", "POST", C.DOCUMENT_CREATE),
        api("api-document-get", "/api/documents/:id", "GET", C.DOCUMENT_VIEW),
        api("api-document-download", "/api/documents/:id/download", "GET", C.PDF_DOWNLOAD),
        api("api-health", "/api/health", "GET"),
    ]


def seed_store(store: FakeAccessStore) -> FakeAccessStore:
    """Roles and users used across engine, document and route tests"""
    store.resources = seed_resources()

    store.add_role("viewer", C.DOCUMENT_VIEW)
    store.add_role("admin", C.ADMIN_ACCESS, C.USER_VIEW)
    store.add_role("ppd.pusat", C.DOCUMENT_FULL_ACCESS)
    store.add_role(
        "editor",
        C.DOCUMENT_VIEW,
        C.DOCUMENT_CREATE,
        C.DOCUMENT_EDIT,
        C.DOCUMENT_UPLOAD,
        C.PDF_DOWNLOAD,
    )
    store.add_role("manager", C.DOCUMENT_VIEW, C.DOCUMENT_MANAGE, C.DOCUMENT_EDIT)
    store.add_role("retired", C.USER_MANAGE, is_active=False)

    store.add_user("viewer-user", "viewer")
    store.add_user("admin-user", "admin")
    store.add_user("ppd-user", "ppd.pusat")
    store.add_user("editor-user", "editor")
    store.add_user("manager-user", "manager")
    store.add_user("multi-user", "viewer", "editor", "retired")
    store.add_user("no-role-user")
    return store
