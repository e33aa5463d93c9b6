"""Domain value objects."""

from src.domain.value_objects.capability import (CapabilityLike, CapabilitySet,
                                                 KnownCapability,
                                                 capability_token)
from src.domain.value_objects.route_pattern import (RoutePattern,
                                                    is_parameter_segment,
                                                    split_path)

__all__ = [
    "CapabilityLike",
    "CapabilitySet",
    "KnownCapability",
    "capability_token",
    "RoutePattern",
    "is_parameter_segment",
    "split_path",
]
