"""
Bypass policy.

Single table of domain-scoped override capabilities. A bypass short-circuits
the ordinary checks of its scope only:

- RESOURCE_TREE: route, API and navigation checks (user is treated as holding
  every capability for tree purposes)
- DOCUMENT_VISIBILITY: ownership / visibility gates inside the document domain

A bypass never implies an action capability. PDF_DOWNLOAD, DOCUMENT_UPLOAD and
workflow transitions stay gated by their own capability checks.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

from src.domain.enums import BypassScope
from src.domain.value_objects.capability import (CapabilityLike, CapabilitySet,
                                                 KnownCapability,
                                                 capability_token)


@dataclass(frozen=True)
class BypassRule:
    """One override capability and the scopes it short-circuits"""

    capability: str
    scopes: frozenset[BypassScope]
    description: str = ""

    def __post_init__(self):
        object.__setattr__(self, "capability", capability_token(self.capability))
        if not self.scopes:
            raise ValueError(f"Bypass rule {self.capability} must cover at least one scope")


class BypassPolicy:
    """Consulted by the access decision engine and the document domain"""

    def __init__(self, rules: Iterable[BypassRule]):
        self._rules: dict[str, BypassRule] = {}
        for rule in rules:
            if rule.capability in self._rules:
                raise ValueError(f"Duplicate bypass rule for {rule.capability}")
            self._rules[rule.capability] = rule

    @property
    def rules(self) -> list[BypassRule]:
        return list(self._rules.values())

    def covers(self, capability: CapabilityLike, scope: BypassScope) -> bool:
        """Whether holding `capability` bypasses checks in `scope`"""
        rule = self._rules.get(capability_token(capability))
        return rule is not None and scope in rule.scopes

    def bypass_capabilities(self, scope: BypassScope) -> list[str]:
        return sorted(rule.capability for rule in self._rules.values() if scope in rule.scopes)

    def bypasses(self, capabilities: CapabilitySet, scope: BypassScope) -> bool:
        """Whether any held capability bypasses checks in `scope`"""
        return capabilities.has_any(self.bypass_capabilities(scope))


DEFAULT_BYPASS_RULES: tuple[BypassRule, ...] = (
    BypassRule(
        capability=KnownCapability.ADMIN_ACCESS.value,
        scopes=frozenset({BypassScope.RESOURCE_TREE, BypassScope.DOCUMENT_VISIBILITY}),
        description="Administrators see every route, API, menu entry and document",
    ),
    BypassRule(
        capability=KnownCapability.DOCUMENT_FULL_ACCESS.value,
        scopes=frozenset({BypassScope.DOCUMENT_VISIBILITY}),
        description="Every document is visible, editable and deletable; actions stay gated",
    ),
)


def default_bypass_policy() -> BypassPolicy:
    return BypassPolicy(DEFAULT_BYPASS_RULES)
