"""
Route matching over route / api resources.

Stateless functions: given candidate resources and a concrete request path, pick
the resource that governs it. Fewest parameter segments wins; remaining ties
go to the lower (sort_order, id) so the choice is deterministic.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

from src.domain.entities.resource import ResourceEntity

logger = logging.getLogger(__name__)


def _pattern_matches(resource: ResourceEntity, path: str) -> bool:
    try:
        return resource.pattern.matches(path)
    except ValueError as e:
        # A malformed stored pattern can never grant access
        logger.warning(f"Skipping resource {resource.id} with invalid path: {e}")
        return False


def _specificity(resource: ResourceEntity) -> tuple[int, int, str]:
    return (resource.pattern.parameter_count, resource.sort_order, resource.id)


def matching_resources(
    resources: Iterable[ResourceEntity], path: str, method: str | None = None
) -> list[ResourceEntity]:
    """
    All resources whose pattern matches `path`, most specific first.

    When `method` is given only resources tagged with that HTTP method
    (case-insensitive) are considered, so untagged resources never match.
    """
    wanted_method = method.upper() if method is not None else None
    matches = [
        resource
        for resource in resources
        if (wanted_method is None or resource.method == wanted_method)
        and _pattern_matches(resource, path)
    ]
    return sorted(matches, key=_specificity)


def find_best_match(
    resources: Iterable[ResourceEntity], path: str, method: str | None = None
) -> ResourceEntity | None:
    """The single resource governing `path` (and `method`), or None"""
    matches = matching_resources(resources, path, method)
    return matches[0] if matches else None
