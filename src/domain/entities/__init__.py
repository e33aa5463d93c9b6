"""Domain entities."""

from src.domain.entities.resource import ResourceEntity

__all__ = [
    "ResourceEntity",
]
