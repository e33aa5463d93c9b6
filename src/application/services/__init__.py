"""Application services."""

from src.application.services.access_control_service import (
    AccessControlService,
    ResourceAccess,
    RouteRequirement,
)
from src.application.services.bypass_policy import (
    BypassPolicy,
    BypassRule,
    default_bypass_policy,
)
from src.application.services.capability_resolver import CapabilityResolver
from src.application.services.resource_tree import (
    ResourceForest,
    ResourceNode,
    build_forests,
    build_tree,
)
from src.application.services.route_matcher import find_best_match, matching_resources

__all__ = [
    "AccessControlService",
    "ResourceAccess",
    "RouteRequirement",
    "BypassPolicy",
    "BypassRule",
    "default_bypass_policy",
    "CapabilityResolver",
    "ResourceForest",
    "ResourceNode",
    "build_forests",
    "build_tree",
    "find_best_match",
    "matching_resources",
]
