from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


# Capability Schemas
class CapabilitiesResponse(BaseModel):
    """Effective capabilities of the caller"""

    user_id: str
    capabilities: list[str] = Field(default_factory=list, description="Sorted capability names")


class CapabilityCheckRequest(BaseModel):
    """Schema for checking several capabilities at once"""

    capabilities: list[str] = Field(..., min_length=1, description="Capability names to test")
    mode: Literal["any", "all"] = Field("all", description="Require any or all of them")


class CapabilityCheckResponse(BaseModel):
    allowed: bool
    results: dict[str, bool] = Field(default_factory=dict, description="Per-capability result")


# Resource Schemas
class NavigationNode(BaseModel):
    """One visible navigation entry with its visible children"""

    id: str
    name: str
    path: str
    icon: str | None = None
    description: str | None = None
    required_capability: str | None = None
    sort_order: int = 0
    children: list[NavigationNode] = Field(default_factory=list)

    model_config = ConfigDict(from_attributes=True)


class NavigationResponse(BaseModel):
    items: list[NavigationNode] = Field(default_factory=list)


class ResourceAccessResponse(BaseModel):
    """A route or api resource and whether the caller may reach it"""

    id: str
    name: str
    path: str
    method: str | None = None
    required_capability: str | None = None
    is_accessible: bool


# Check Schemas
class RouteCheckRequest(BaseModel):
    path: str = Field(..., min_length=1, description="Concrete UI path, e.g. /documents/42")


class ApiCheckRequest(BaseModel):
    path: str = Field(..., min_length=1, description="Concrete API path, e.g. /api/documents/42")
    method: str = Field("GET", min_length=1, max_length=16, description="HTTP method")


class AccessCheckResponse(BaseModel):
    allowed: bool


class RouteRequirementResponse(BaseModel):
    """Route governing a path and the capability it needs"""

    path: str
    resource_id: str
    required_capability: str | None = None
    is_protected: bool


# Cache Schemas
class CacheInvalidateRequest(BaseModel):
    """
    Schema for invalidating access caches.

    scope "user" needs a user_id; the other scopes ignore it.
    """

    scope: Literal["user", "capabilities", "resources", "all"] = "all"
    user_id: str | None = None


class CacheInvalidateResponse(BaseModel):
    message: str
    scope: str
    user_id: str | None = None
