from fastapi import Depends, HTTPException, Request, status

from src.application.services.access_control_service import AccessControlService
from src.application.use_cases.documents.document_access import DocumentAccessPolicy
from src.domain.value_objects.capability import CapabilityLike, capability_token
from src.infrastructure.cache.memory_cache import TTLCache
from src.infrastructure.cache.redis_cache import CacheService
from src.infrastructure.config.settings import get_settings
from src.infrastructure.persistence.database import AsyncSessionLocal
from src.infrastructure.persistence.repositories.access_store import SqlAlchemyAccessStore
from src.shared.context import get_current_actor_id

# Global service instances (singletons)
_cache_service: CacheService | None = None
_access_control_service: AccessControlService | None = None

ACCESS_DENIED = "Access denied"


# Cache service dependencies (defined early for use in other dependencies)
async def get_cache_service() -> CacheService:
    """
    Cache service dependency (singleton)

    Returns global cache service instance.
    Initialized on app startup in main.py
    """
    global _cache_service
    if _cache_service is None:
        # Not connected: is_available() stays False until connect() runs on startup
        _cache_service = CacheService()
    return _cache_service


def set_cache_service(cache_service: CacheService | None):
    """Set global cache service (called on app startup)"""
    global _cache_service
    _cache_service = cache_service


def build_access_control_service(
    cache_service: CacheService | None = None, store=None
) -> AccessControlService:
    """
    Construct the access decision engine from settings.

    Args:
        cache_service: Shared Redis tier, used only when connected
        store: IAccessStore override (defaults to the SQLAlchemy store)
    """
    settings = get_settings()
    return AccessControlService(
        store=store or SqlAlchemyAccessStore(AsyncSessionLocal),
        capability_cache=TTLCache(
            ttl_seconds=settings.cache_ttl_permissions,
            max_entries=settings.cache_max_entries,
        ),
        resource_cache=TTLCache(ttl_seconds=settings.cache_ttl_resources),
        shared_cache=cache_service if settings.redis_enabled else None,
        shared_cache_ttl=settings.cache_ttl_permissions,
        store_timeout=settings.access_store_timeout_seconds,
    )


async def get_access_control_service() -> AccessControlService:
    """
    Access decision engine dependency (singleton)

    Built on app startup in main.py; built lazily here when the lifespan did
    not run (e.g. scripts).
    """
    global _access_control_service
    if _access_control_service is None:
        _access_control_service = build_access_control_service(_cache_service)
    return _access_control_service


def set_access_control_service(service: AccessControlService | None):
    """Set global access decision engine (called on app startup and in tests)"""
    global _access_control_service
    _access_control_service = service


async def get_document_access_policy(
    access: AccessControlService = Depends(get_access_control_service),
) -> DocumentAccessPolicy:
    """Per-document access decisions on top of the shared engine"""
    return DocumentAccessPolicy(access)


async def get_current_user_id() -> str:
    """
    Caller id from the request context (set by the identity middleware).

    Authentication happens upstream; no identity means 401.
    """
    user_id = get_current_actor_id()
    if not user_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
        )
    return user_id


def _deny() -> HTTPException:
    return HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=ACCESS_DENIED)


def require_capability(capability: CapabilityLike):
    """
    Dependency factory for route-level capability checking.

    Usage:
        @router.post("/cache/invalidate", dependencies=[Depends(require_capability("ADMIN_ACCESS"))])
        async def invalidate_cache(...):
            ...
    """
    name = capability_token(capability)

    async def capability_checker(
        user_id: str = Depends(get_current_user_id),
        access: AccessControlService = Depends(get_access_control_service),
    ) -> str:
        if not await access.has_capability(user_id, name):
            raise _deny()
        return user_id

    return capability_checker


def require_route_access(path: str):
    """Dependency factory guarding an endpoint by a UI route's requirement"""

    async def route_checker(
        user_id: str = Depends(get_current_user_id),
        access: AccessControlService = Depends(get_access_control_service),
    ) -> str:
        if not await access.can_access_route(user_id, path):
            raise _deny()
        return user_id

    return route_checker


def require_api_access():
    """
    Dependency factory guarding an endpoint by the api resource registered
    for the incoming method and path.

    Usage:
        @router.get("/documents/{id}", dependencies=[Depends(require_api_access())])
    """

    async def api_checker(
        request: Request,
        user_id: str = Depends(get_current_user_id),
        access: AccessControlService = Depends(get_access_control_service),
    ) -> str:
        if not await access.can_access_api(user_id, request.url.path, request.method):
            raise _deny()
        return user_id

    return api_checker
