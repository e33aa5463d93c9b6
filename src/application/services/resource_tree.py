"""
Resource tree builder.

Assembles the flat set of Resource records into one forest per resource type
(navigation / route / api), validating that each type is acyclic and that every
parent reference resolves within the same type. Built once per cache refresh
and shared read-only by every request; pruning returns new nodes.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Iterator
from dataclasses import dataclass, field

from src.domain.entities.resource import ResourceEntity
from src.domain.enums import ResourceType
from src.domain.exceptions import DanglingParentError, ResourceCycleError

logger = logging.getLogger(__name__)


@dataclass
class ResourceNode:
    """One resource plus its ordered children"""

    resource: ResourceEntity
    children: list[ResourceNode] = field(default_factory=list)

    @property
    def id(self) -> str:
        return self.resource.id

    def walk(self) -> Iterator[ResourceNode]:
        """Depth-first, pre-order traversal of this subtree"""
        yield self
        for child in self.children:
            yield from child.walk()


@dataclass(frozen=True)
class ResourceForest:
    """
    Ordered root nodes of one resource type plus an index by id.

    Roots and siblings are ordered by (sort_order, id).
    """

    resource_type: ResourceType
    roots: tuple[ResourceNode, ...] = ()
    index: dict[str, ResourceNode] = field(default_factory=dict, compare=False)

    @classmethod
    def empty(cls, resource_type: ResourceType) -> ResourceForest:
        return cls(resource_type=resource_type)

    def __iter__(self) -> Iterator[ResourceNode]:
        for root in self.roots:
            yield from root.walk()

    def __len__(self) -> int:
        return len(self.index)

    def __contains__(self, resource_id: object) -> bool:
        return resource_id in self.index

    def get(self, resource_id: str) -> ResourceNode | None:
        return self.index.get(resource_id)

    def active_resources(self) -> list[ResourceEntity]:
        """Resources in depth-first order, skipping inactive subtrees"""
        result: list[ResourceEntity] = []
        stack = list(reversed(self.roots))
        while stack:
            node = stack.pop()
            if not node.resource.is_active:
                continue
            result.append(node.resource)
            stack.extend(reversed(node.children))
        return result

    def dangling_capabilities(self, known: Iterable[str]) -> dict[str, list[str]]:
        """Map each unknown required capability to the resource ids that reference it"""
        known_names = set(known)
        dangling: dict[str, list[str]] = {}
        for node in self:
            required = node.resource.required_capability
            if required is not None and required not in known_names:
                dangling.setdefault(required, []).append(node.id)
        return dangling

    def prune(self, is_visible: Callable[[ResourceEntity], bool]) -> ResourceForest:
        """
        Return a new forest holding only the visible part of this one.

        A node is kept when it is active and either visible itself or has at
        least one kept descendant. Inactive nodes are dropped with their whole
        subtree. Sibling order is preserved.
        """
        index: dict[str, ResourceNode] = {}

        def prune_node(node: ResourceNode) -> ResourceNode | None:
            if not node.resource.is_active:
                return None
            kept_children = [
                pruned
                for pruned in (prune_node(child) for child in node.children)
                if pruned is not None
            ]
            if not kept_children and not is_visible(node.resource):
                return None
            copy = ResourceNode(resource=node.resource, children=kept_children)
            index[copy.id] = copy
            return copy

        roots = tuple(
            pruned for pruned in (prune_node(root) for root in self.roots) if pruned is not None
        )
        return ResourceForest(resource_type=self.resource_type, roots=roots, index=index)

    def active(self) -> ResourceForest:
        """Forest without inactive subtrees"""
        return self.prune(lambda resource: True)


def _check_acyclic(index: dict[str, ResourceEntity], resource_type: ResourceType) -> None:
    """Walk from every node toward its root; bounded by the node count."""
    limit = len(index)
    reaches_root: set[str] = set()

    for start in index:
        path: list[str] = []
        seen: set[str] = set()
        current: str | None = start
        while current is not None and current not in reaches_root:
            if current in seen or len(path) > limit:
                raise ResourceCycleError(resource_type.value, start, path + [current])
            seen.add(current)
            path.append(current)
            current = index[current].parent_id
        reaches_root.update(path)


def build_tree(resources: Iterable[ResourceEntity], resource_type: ResourceType) -> ResourceForest:
    """
    Build the forest of one resource type.

    Args:
        resources: Resource records of any type
        resource_type: Type whose forest to build

    Returns:
        ResourceForest: Ordered roots with ordered children

    Raises:
        DanglingParentError: A parent_id is missing or belongs to another type
        ResourceCycleError: A resource is its own ancestor
    """
    typed = [resource for resource in resources if resource.type == resource_type]
    index = {resource.id: resource for resource in typed}

    for resource in typed:
        if resource.parent_id is not None and resource.parent_id not in index:
            raise DanglingParentError(resource_type.value, resource.id, resource.parent_id)

    _check_acyclic(index, resource_type)

    nodes = {resource.id: ResourceNode(resource=resource) for resource in typed}
    roots: list[ResourceNode] = []
    # Appending in sorted order keeps every sibling list sorted
    for resource in sorted(typed, key=ResourceEntity.sort_key):
        node = nodes[resource.id]
        if resource.parent_id is None:
            roots.append(node)
        else:
            nodes[resource.parent_id].children.append(node)

    return ResourceForest(resource_type=resource_type, roots=tuple(roots), index=nodes)


def build_forests(resources: Iterable[ResourceEntity]) -> dict[ResourceType, ResourceForest]:
    """Build the navigation, route and api forests in one pass."""
    resource_list = list(resources)
    forests = {
        resource_type: build_tree(resource_list, resource_type) for resource_type in ResourceType
    }
    sizes = {resource_type.value: len(forest) for resource_type, forest in forests.items()}
    logger.debug(f"Built resource forests: {sizes}")
    return forests
