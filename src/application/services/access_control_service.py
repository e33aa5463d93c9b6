from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Awaitable, Iterable
from dataclasses import dataclass
from typing import TYPE_CHECKING, TypeVar

from src.application.interfaces.services import Expiring
from src.application.services.bypass_policy import (BypassPolicy,
                                                    default_bypass_policy)
from src.application.services.capability_resolver import CapabilityResolver
from src.application.services.resource_tree import (ResourceForest,
                                                    build_forests)
from src.application.services.route_matcher import find_best_match
from src.domain.entities.resource import ResourceEntity
from src.domain.enums import BypassScope, ResourceType
from src.domain.exceptions import (AccessControlException, AccessDeniedError,
                                   ResourceNotFoundException, StructuralError)
from src.domain.value_objects.capability import (CapabilityLike, CapabilitySet,
                                                 capability_token)
from src.shared.telemetry.tracing import add_span_attributes, traced

if TYPE_CHECKING:
    from src.application.interfaces.repositories import IAccessStore
    from src.application.interfaces.services import IAccessCache, ISharedCache

logger = logging.getLogger(__name__)

T = TypeVar("T")

CAPABILITIES_PREFIX = "capabilities:"
RESOURCE_FORESTS_KEY = "resource-forests"
# Shared-tier counters; bumped by invalidation, stamped into every shared entry
CAPABILITIES_VERSION_KEY = "capabilities-version"


def capabilities_key(user_id: str) -> str:
    return f"{CAPABILITIES_PREFIX}{user_id}"


def capabilities_version_key(user_id: str) -> str:
    return f"{CAPABILITIES_VERSION_KEY}:{user_id}"


def _counter(value: object) -> int:
    return value if isinstance(value, int) else 0


@dataclass(frozen=True)
class ResourceAccess:
    """A route or api resource together with the caller's access to it"""

    resource: ResourceEntity
    is_accessible: bool


@dataclass(frozen=True)
class RouteRequirement:
    """What opening a route demands, independent of any user"""

    resource: ResourceEntity

    @property
    def required_capability(self) -> str | None:
        return self.resource.required_capability

    @property
    def is_protected(self) -> bool:
        return self.resource.required_capability is not None


class AccessControlService:
    """
    Access decision engine - the public query surface.

    Follow principle: "Check capabilities, not roles". Every decision is a
    function of the cached capability set and resource forests; any internal
    failure (missing user, store outage, timeout, broken tree) resolves to
    deny / empty, never to allow.

    Cache TTL: 5 minutes by default (configurable per cache)
    """

    def __init__(
        self,
        store: IAccessStore,
        capability_cache: IAccessCache,
        resource_cache: IAccessCache,
        *,
        shared_cache: ISharedCache | None = None,
        shared_cache_ttl: int = 300,
        bypass_policy: BypassPolicy | None = None,
        store_timeout: float | None = None,
    ):
        self.store = store
        self.resolver = CapabilityResolver(store)
        self.capability_cache = capability_cache
        self.resource_cache = resource_cache
        self.shared_cache = shared_cache
        self.shared_cache_ttl = shared_cache_ttl
        # Counters outlive every shared entry stamped with an older value
        self._version_ttl = 2 * shared_cache_ttl
        self.bypass_policy = bypass_policy or default_bypass_policy()
        self.store_timeout = store_timeout
        self._last_good_forests: dict[ResourceType, ResourceForest] | None = None
        self._dangling_capabilities: dict[str, list[str]] = {}

    # ------------------------------------------------------------------
    # Loading (cache-checked)
    # ------------------------------------------------------------------

    async def _bounded(self, awaitable: Awaitable[T]) -> T:
        """Apply the optional store timeout to a cache-or-store call"""
        if self.store_timeout is None:
            return await awaitable
        async with asyncio.timeout(self.store_timeout):
            return await awaitable

    def _shared_cache_ready(self) -> bool:
        return self.shared_cache is not None and self.shared_cache.is_available()

    def _shared_hit(self, payload: object, version: list[int]) -> Expiring[CapabilitySet] | None:
        if not isinstance(payload, dict) or payload.get("version") != version:
            return None
        stored_at = payload.get("stored_at")
        if not isinstance(stored_at, (int, float)):
            return None
        remaining = self.shared_cache_ttl - (time.time() - stored_at)
        if remaining <= 0:
            return None
        return Expiring(CapabilitySet.of(payload.get("capabilities") or []), remaining)

    async def _load_capabilities(self, user_id: str) -> CapabilitySet | Expiring[CapabilitySet]:
        """
        Resolve a user's capabilities, going through the shared tier when connected.

        Shared entries carry the global and per-user version counters read
        before the resolve started. Invalidation bumps those counters, so an
        entry written by a resolve that raced an invalidation, here or in
        another process, reads as a miss. A shared hit is kept in memory only
        for what is left of its shared lifetime.
        """
        shared_cache = self.shared_cache
        if shared_cache is None or not shared_cache.is_available():
            return await self.resolver.resolve(user_id)

        key = capabilities_key(user_id)
        generation = self.capability_cache.generation(key)
        payload, *counters = await shared_cache.get_many(
            [key, CAPABILITIES_VERSION_KEY, capabilities_version_key(user_id)]
        )
        version = [_counter(value) for value in counters]
        hit = self._shared_hit(payload, version)
        if hit is not None:
            return hit

        capabilities = await self.resolver.resolve(user_id)

        if self.capability_cache.generation(key) != generation:
            logger.debug(f"Not publishing {key}: invalidated while resolving")
            return capabilities
        await shared_cache.set(
            key,
            {"capabilities": capabilities.to_list(), "version": version, "stored_at": time.time()},
            ttl=self.shared_cache_ttl,
        )
        return capabilities

    async def _load_forests(self, strict: bool = False) -> dict[ResourceType, ResourceForest]:
        resources = await self.store.list_resources()
        try:
            forests = build_forests(resources)
        except StructuralError as e:
            if strict:
                raise
            if self._last_good_forests is not None:
                logger.error(
                    f"Resource tree rebuild failed ({e.error_code}): {e.message}. "
                    f"Serving last good tree."
                )
                return self._last_good_forests
            logger.error(
                f"Resource tree rebuild failed ({e.error_code}): {e.message}. "
                f"No previous tree - tree-based access is denied until fixed."
            )
            return {resource_type: ResourceForest.empty(resource_type) for resource_type in ResourceType}

        known = await self.store.list_capability_names()
        dangling: dict[str, list[str]] = {}
        for forest in forests.values():
            for name, resource_ids in forest.dangling_capabilities(known).items():
                dangling.setdefault(name, []).extend(resource_ids)
        for name, resource_ids in sorted(dangling.items()):
            logger.warning(
                f"Resources {resource_ids} require unknown capability {name}; "
                f"only administrators can reach them"
            )
        self._dangling_capabilities = dangling
        self._last_good_forests = forests
        return forests

    async def resolve_capabilities(self, user_id: str) -> CapabilitySet:
        """
        Get all capabilities for a user (aggregated from all active roles).

        Raises:
            UserNotFoundException: The user does not exist
            StoreUnavailableError: The backing store failed
            TimeoutError: The store timeout elapsed
        """
        return await self._bounded(
            self.capability_cache.get_or_compute(
                capabilities_key(user_id), lambda: self._load_capabilities(user_id)
            )
        )

    async def get_resource_forests(self) -> dict[ResourceType, ResourceForest]:
        """All three forests (cached singleton entry)"""
        return await self._bounded(
            self.resource_cache.get_or_compute(RESOURCE_FORESTS_KEY, self._load_forests)
        )

    async def try_resolve_capabilities(self, user_id: str) -> CapabilitySet | None:
        """Resolved set, or None when resolution failed for any reason (logged)"""
        try:
            return await self.resolve_capabilities(user_id)
        except (AccessControlException, TimeoutError) as e:
            reason = e.message if isinstance(e, AccessControlException) else "store timeout"
            logger.warning(f"Capability resolution failed for user {user_id}: {reason}. Denying.")
            return None

    async def _forest_or_none(self, resource_type: ResourceType) -> ResourceForest | None:
        try:
            forests = await self.get_resource_forests()
        except (AccessControlException, TimeoutError) as e:
            reason = e.message if isinstance(e, AccessControlException) else "store timeout"
            logger.warning(f"Resource tree unavailable: {reason}. Denying.")
            return None
        return forests[resource_type]

    # ------------------------------------------------------------------
    # Capability predicates
    # ------------------------------------------------------------------

    async def get_capabilities(self, user_id: str) -> CapabilitySet:
        """Fail-closed capability set: empty on any error"""
        capabilities = await self.try_resolve_capabilities(user_id)
        return capabilities if capabilities is not None else CapabilitySet.empty()

    @traced("access.has_capability")
    async def has_capability(self, user_id: str, name: CapabilityLike) -> bool:
        """Exact membership test against the resolved set"""
        capabilities = await self.try_resolve_capabilities(user_id)
        return capabilities is not None and capabilities.has(name)

    @traced("access.has_any_capability")
    async def has_any_capability(self, user_id: str, names: Iterable[CapabilityLike]) -> bool:
        capabilities = await self.try_resolve_capabilities(user_id)
        return capabilities is not None and capabilities.has_any(names)

    @traced("access.has_all_capabilities")
    async def has_all_capabilities(self, user_id: str, names: Iterable[CapabilityLike]) -> bool:
        """
        Subset test. An empty `names` holds for any user whose capabilities
        resolve; an unknown user or a store failure is still denied.
        """
        capabilities = await self.try_resolve_capabilities(user_id)
        return capabilities is not None and capabilities.has_all(names)

    async def bypasses(self, user_id: str, scope: BypassScope) -> bool:
        """Whether the user holds a bypass capability for `scope`"""
        capabilities = await self.try_resolve_capabilities(user_id)
        return capabilities is not None and self.bypass_policy.bypasses(capabilities, scope)

    # ------------------------------------------------------------------
    # Resource tree queries
    # ------------------------------------------------------------------

    @staticmethod
    def _is_granted(resource: ResourceEntity, capabilities: CapabilitySet) -> bool:
        return resource.is_public or capabilities.has(resource.required_capability)

    @traced("access.get_navigation_for_user")
    async def get_navigation_for_user(self, user_id: str) -> ResourceForest:
        """
        Navigation forest pruned to what the user may see.

        A node is kept when it needs no capability, when the user holds its
        capability, or when at least one descendant stays visible (so a hidden
        parent still renders above a visible grandchild).
        """
        empty = ResourceForest.empty(ResourceType.NAVIGATION)
        capabilities = await self.try_resolve_capabilities(user_id)
        if capabilities is None:
            return empty
        forest = await self._forest_or_none(ResourceType.NAVIGATION)
        if forest is None:
            return empty

        if self.bypass_policy.bypasses(capabilities, BypassScope.RESOURCE_TREE):
            return forest.active()
        return forest.prune(lambda resource: self._is_granted(resource, capabilities))

    async def _can_access(
        self, user_id: str, resource_type: ResourceType, path: str, method: str | None
    ) -> bool:
        capabilities = await self.try_resolve_capabilities(user_id)
        if capabilities is None:
            return False
        if self.bypass_policy.bypasses(capabilities, BypassScope.RESOURCE_TREE):
            add_span_attributes(**{"access.bypass": True})
            return True

        forest = await self._forest_or_none(resource_type)
        if forest is None:
            return False

        resource = find_best_match(forest.active_resources(), path, method)
        if resource is None:
            logger.debug(f"No {resource_type.value} resource matches {method or ''} {path}; denying")
            return False

        allowed = self._is_granted(resource, capabilities)
        add_span_attributes(**{"access.resource_id": resource.id, "access.allowed": allowed})
        logger.debug(
            f"{resource_type.value} access {'granted' if allowed else 'denied'} "
            f"for user {user_id} on {method or ''} {path} via {resource.id}"
        )
        return allowed

    @traced("access.can_access_route")
    async def can_access_route(self, user_id: str, path: str) -> bool:
        """Unknown routes are denied; a route without a requirement is open to any caller"""
        return await self._can_access(user_id, ResourceType.ROUTE, path, None)

    @traced("access.can_access_api")
    async def can_access_api(self, user_id: str, path: str, method: str) -> bool:
        """Same matching as routes, restricted to resources tagged with `method`"""
        return await self._can_access(user_id, ResourceType.API, path, method)

    async def _accessible(self, user_id: str, resource_type: ResourceType) -> list[ResourceAccess]:
        capabilities = await self.try_resolve_capabilities(user_id)
        if capabilities is None:
            return []
        forest = await self._forest_or_none(resource_type)
        if forest is None:
            return []
        bypass = self.bypass_policy.bypasses(capabilities, BypassScope.RESOURCE_TREE)
        return [
            ResourceAccess(
                resource=resource,
                is_accessible=bypass or self._is_granted(resource, capabilities),
            )
            for resource in forest.active_resources()
        ]

    async def get_accessible_routes(self, user_id: str) -> list[ResourceAccess]:
        """Every active route resource with the user's access flag"""
        return await self._accessible(user_id, ResourceType.ROUTE)

    async def get_accessible_apis(self, user_id: str) -> list[ResourceAccess]:
        """Every active api resource with the user's access flag"""
        return await self._accessible(user_id, ResourceType.API)

    async def match_route(self, path: str) -> ResourceEntity | None:
        """Route resource governing `path`, independent of any user"""
        forest = await self._forest_or_none(ResourceType.ROUTE)
        if forest is None:
            return None
        return find_best_match(forest.active_resources(), path)

    async def match_api(self, path: str, method: str) -> ResourceEntity | None:
        """Api resource governing `method path`, independent of any user"""
        forest = await self._forest_or_none(ResourceType.API)
        if forest is None:
            return None
        return find_best_match(forest.active_resources(), path, method)

    async def get_route_requirement(self, path: str) -> RouteRequirement:
        """
        Requirement of the route governing `path`.

        Unlike the predicates this raises, so callers can tell an unregistered
        route apart from a store outage.

        Raises:
            ResourceNotFoundException: No active route matches `path`
            StoreUnavailableError: The forests could not be loaded
            TimeoutError: The store timeout elapsed
        """
        forests = await self.get_resource_forests()
        resource = find_best_match(forests[ResourceType.ROUTE].active_resources(), path)
        if resource is None:
            raise ResourceNotFoundException(ResourceType.ROUTE.value, path)
        return RouteRequirement(resource)

    @property
    def configuration_warnings(self) -> dict[str, list[str]]:
        """Unknown capability names referenced by resources at the last rebuild"""
        return {name: list(ids) for name, ids in self._dangling_capabilities.items()}

    # ------------------------------------------------------------------
    # Enforcement helpers
    # ------------------------------------------------------------------

    async def require_capability(self, user_id: str, name: CapabilityLike) -> None:
        """Raise AccessDeniedError if the user lacks the capability"""
        if not await self.has_capability(user_id, name):
            raise AccessDeniedError(capability=capability_token(name))

    async def require_route_access(self, user_id: str, path: str) -> None:
        if not await self.can_access_route(user_id, path):
            raise AccessDeniedError(path=path)

    async def require_api_access(self, user_id: str, path: str, method: str) -> None:
        if not await self.can_access_api(user_id, path, method):
            raise AccessDeniedError(path=f"{method.upper()} {path}")

    # ------------------------------------------------------------------
    # Invalidation hooks (called by administrative mutation flows)
    # ------------------------------------------------------------------

    async def invalidate_user(self, user_id: str) -> None:
        """
        Invalidate cached capabilities for a specific user

        Call this when:
        - User roles are assigned/revoked/deactivated
        - User is deactivated or deleted
        """
        key = capabilities_key(user_id)
        self.capability_cache.invalidate(key)
        if self.shared_cache is not None and self._shared_cache_ready():
            await self.shared_cache.incr(capabilities_version_key(user_id), ttl=self._version_ttl)
            await self.shared_cache.delete(key)

    async def invalidate_capabilities(self) -> None:
        """
        Invalidate every user's cached capabilities

        Call this when:
        - A capability is added to or removed from any role
        - A role is activated/deactivated
        """
        self.capability_cache.invalidate_prefix(CAPABILITIES_PREFIX)
        if self.shared_cache is not None and self._shared_cache_ready():
            await self.shared_cache.incr(CAPABILITIES_VERSION_KEY, ttl=self._version_ttl)
            await self.shared_cache.delete_pattern(f"{CAPABILITIES_PREFIX}*")

    def invalidate_resources(self) -> None:
        """Invalidate the resource forests (call when any Resource row changes)"""
        self.resource_cache.invalidate(RESOURCE_FORESTS_KEY)

    async def invalidate_all(self) -> None:
        """Invalidate capabilities and resource forests"""
        await self.invalidate_capabilities()
        self.resource_cache.invalidate_all()

    async def refresh_resources(self) -> dict[ResourceType, ResourceForest]:
        """
        Rebuild the resource forests now (startup / after bulk changes).

        Unlike request-time loading, structural errors and store failures are
        raised to the caller instead of being turned into denials.
        """
        self.invalidate_resources()
        return await self._bounded(
            self.resource_cache.get_or_compute(
                RESOURCE_FORESTS_KEY, lambda: self._load_forests(strict=True)
            )
        )
