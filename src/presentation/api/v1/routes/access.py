from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query, status

from src.application.services.access_control_service import (AccessControlService,
                                                             ResourceAccess)
from src.application.services.resource_tree import ResourceNode
from src.domain.enums import ResourceType
from src.domain.exceptions import ResourceNotFoundException
from src.domain.value_objects.capability import KnownCapability
from src.presentation.api.dependencies import (get_access_control_service,
                                               get_current_user_id,
                                               require_capability)
from src.presentation.api.v1.schemas.access import (AccessCheckResponse,
                                                    ApiCheckRequest,
                                                    CacheInvalidateRequest,
                                                    CacheInvalidateResponse,
                                                    CapabilitiesResponse,
                                                    CapabilityCheckRequest,
                                                    CapabilityCheckResponse,
                                                    NavigationNode,
                                                    NavigationResponse,
                                                    ResourceAccessResponse,
                                                    RouteCheckRequest,
                                                    RouteRequirementResponse)

router = APIRouter()

CurrentUser = Annotated[str, Depends(get_current_user_id)]
AccessControl = Annotated[AccessControlService, Depends(get_access_control_service)]


def _to_navigation_node(node: ResourceNode) -> NavigationNode:
    resource = node.resource
    return NavigationNode(
        id=resource.id,
        name=resource.name,
        path=resource.path,
        icon=resource.icon,
        description=resource.description,
        required_capability=resource.required_capability,
        sort_order=resource.sort_order,
        children=[_to_navigation_node(child) for child in node.children],
    )


def _to_resource_access(item: ResourceAccess) -> ResourceAccessResponse:
    resource = item.resource
    return ResourceAccessResponse(
        id=resource.id,
        name=resource.name,
        path=resource.path,
        method=resource.method if resource.type == ResourceType.API else None,
        required_capability=resource.required_capability,
        is_accessible=item.is_accessible,
    )


@router.get("/me/capabilities", response_model=CapabilitiesResponse)
async def get_my_capabilities(user_id: CurrentUser, access: AccessControl):
    """Effective capabilities of the caller (empty when they cannot be resolved)"""
    capabilities = await access.get_capabilities(user_id)
    return CapabilitiesResponse(user_id=user_id, capabilities=capabilities.to_list())


@router.get("/me/navigation", response_model=NavigationResponse)
async def get_my_navigation(user_id: CurrentUser, access: AccessControl):
    """Navigation tree pruned to what the caller may see"""
    forest = await access.get_navigation_for_user(user_id)
    return NavigationResponse(items=[_to_navigation_node(root) for root in forest.roots])


@router.get("/me/routes", response_model=list[ResourceAccessResponse])
async def get_my_routes(user_id: CurrentUser, access: AccessControl):
    """Every active UI route with the caller's access flag"""
    return [_to_resource_access(item) for item in await access.get_accessible_routes(user_id)]


@router.get("/me/apis", response_model=list[ResourceAccessResponse])
async def get_my_apis(user_id: CurrentUser, access: AccessControl):
    """Every active api endpoint with the caller's access flag"""
    return [_to_resource_access(item) for item in await access.get_accessible_apis(user_id)]


@router.post("/check/route", response_model=AccessCheckResponse)
async def check_route(data: RouteCheckRequest, user_id: CurrentUser, access: AccessControl):
    """Whether the caller may open a UI route (unknown routes are denied)"""
    return AccessCheckResponse(allowed=await access.can_access_route(user_id, data.path))


@router.post("/check/api", response_model=AccessCheckResponse)
async def check_api(data: ApiCheckRequest, user_id: CurrentUser, access: AccessControl):
    """Whether the caller may call an api endpoint (unknown endpoints are denied)"""
    return AccessCheckResponse(
        allowed=await access.can_access_api(user_id, data.path, data.method)
    )


@router.get("/routes/requirement", response_model=RouteRequirementResponse)
async def get_route_requirement(
    user_id: CurrentUser,
    access: AccessControl,
    path: str = Query(..., min_length=1, description="Concrete UI path, e.g. /documents/42"),
):
    """Which route governs a path and what it requires (404 when unregistered)"""
    try:
        requirement = await access.get_route_requirement(path)
    except ResourceNotFoundException:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Route not found")
    return RouteRequirementResponse(
        path=requirement.resource.path,
        resource_id=requirement.resource.id,
        required_capability=requirement.required_capability,
        is_protected=requirement.is_protected,
    )


@router.post("/check/capabilities", response_model=CapabilityCheckResponse)
async def check_capabilities(
    data: CapabilityCheckRequest, user_id: CurrentUser, access: AccessControl
):
    """Test several capabilities against the caller's set in one call"""
    capabilities = await access.get_capabilities(user_id)
    results = {name: capabilities.has(name) for name in data.capabilities}
    if data.mode == "any":
        allowed = await access.has_any_capability(user_id, data.capabilities)
    else:
        allowed = await access.has_all_capabilities(user_id, data.capabilities)
    return CapabilityCheckResponse(allowed=allowed, results=results)


@router.post(
    "/cache/invalidate",
    response_model=CacheInvalidateResponse,
    dependencies=[Depends(require_capability(KnownCapability.ADMIN_ACCESS))],
)
async def invalidate_cache(data: CacheInvalidateRequest, access: AccessControl):
    """Drop cached access data (requires ADMIN_ACCESS)"""
    if data.scope == "user":
        if not data.user_id:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="user_id is required for scope 'user'",
            )
        await access.invalidate_user(data.user_id)
    elif data.scope == "capabilities":
        await access.invalidate_capabilities()
    elif data.scope == "resources":
        access.invalidate_resources()
    else:
        await access.invalidate_all()

    return CacheInvalidateResponse(
        message="Access cache invalidated",
        scope=data.scope,
        user_id=data.user_id if data.scope == "user" else None,
    )
