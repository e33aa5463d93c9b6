"""
Resource domain entity.

A protected navigation item, UI route or API endpoint, optionally gated by one
required capability.
"""

from dataclasses import dataclass, field
from functools import cached_property
from typing import Any

from src.domain.enums import ResourceType
from src.domain.value_objects.route_pattern import RoutePattern

@dataclass(frozen=True)
class ResourceEntity:
    """
    Domain entity for Resource (SRP - business logic separate from persistence)

    `required_capability` of None means any authenticated user.
    """

    id: str
    type: ResourceType
    path: str
    name: str
    parent_id: str | None = None
    required_capability: str | None = None
    sort_order: int = 0
    metadata: dict[str, Any] = field(default_factory=dict, compare=False, hash=False)
    description: str | None = None
    icon: str | None = None
    is_active: bool = True

    def validate(self) -> bool:
        """Validate resource business rules"""
        if not self.id:
            raise ValueError("Resource ID is required")
        if self.parent_id == self.id:
            raise ValueError(f"Resource {self.id} cannot be its own parent")
        # RoutePattern validates the path itself
        _ = self.pattern
        return True

    @property
    def is_public(self) -> bool:
        """No capability required - visible to any authenticated user"""
        return self.required_capability is None

    @property
    def method(self) -> str | None:
        """
        HTTP method tag for api resources, upper-cased.

        None when untagged; an untagged api resource matches no request.
        """
        method = (self.metadata or {}).get("method")
        return str(method).upper() if method else None

    @cached_property
    def pattern(self) -> RoutePattern:
        return RoutePattern(self.path)

    def sort_key(self) -> tuple[int, str]:
        """Sibling order: sort_order ascending, ties broken by id"""
        return (self.sort_order, self.id)
