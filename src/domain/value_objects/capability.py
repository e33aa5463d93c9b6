import sys
from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field
from enum import Enum


class KnownCapability(str, Enum):
    """
    Capability tokens referenced from code.

    Capabilities are data-driven (any name may exist in the store); this enum
    covers the names that code checks directly so call sites never spell them
    by hand.
    """

    ADMIN_ACCESS = "ADMIN_ACCESS"
    USER_VIEW = "USER_VIEW"
    USER_MANAGE = "USER_MANAGE"
    ROLE_MANAGE = "ROLE_MANAGE"
    PERMISSION_MANAGE = "PERMISSION_MANAGE"
    SYSTEM_CONFIGURE = "SYSTEM_CONFIGURE"
    AUDIT_VIEW = "AUDIT_VIEW"
    DOCUMENT_VIEW = "DOCUMENT_VIEW"
    DOCUMENT_CREATE = "DOCUMENT_CREATE"
    DOCUMENT_EDIT = "DOCUMENT_EDIT"
    DOCUMENT_DELETE = "DOCUMENT_DELETE"
    DOCUMENT_UPLOAD = "DOCUMENT_UPLOAD"
    DOCUMENT_APPROVE = "DOCUMENT_APPROVE"
    DOCUMENT_PUBLISH = "DOCUMENT_PUBLISH"
    DOCUMENT_MANAGE = "DOCUMENT_MANAGE"
    DOCUMENT_FULL_ACCESS = "DOCUMENT_FULL_ACCESS"
    PDF_VIEW = "PDF_VIEW"
    PDF_DOWNLOAD = "PDF_DOWNLOAD"
    PDF_PRINT = "PDF_PRINT"

    @classmethod
    def values(cls) -> list[str]:
        """Get all valid values"""
        return [capability.value for capability in cls]


CapabilityLike = str | KnownCapability


def capability_token(name: CapabilityLike) -> str:
    """Normalize a capability reference to its interned string token."""
    if isinstance(name, KnownCapability):
        return name.value
    if not isinstance(name, str) or not name:
        raise ValueError("Capability name must be a non-empty string")
    return sys.intern(name)


@dataclass(frozen=True)
class CapabilitySet:
    """
    Value object for a user's effective capabilities (hash-set membership).

    Built as the union of every active role's capabilities; there are no
    negative permissions, so union is the only combining operation.
    """

    names: frozenset[str] = field(default_factory=frozenset)

    @classmethod
    def of(cls, names: Iterable[CapabilityLike]) -> "CapabilitySet":
        return cls(frozenset(capability_token(name) for name in names))

    @classmethod
    def empty(cls) -> "CapabilitySet":
        return cls()

    def has(self, name: CapabilityLike) -> bool:
        """Exact, case-sensitive membership; malformed names are never held"""
        if isinstance(name, KnownCapability):
            return name.value in self.names
        return isinstance(name, str) and name in self.names

    def has_any(self, names: Iterable[CapabilityLike]) -> bool:
        return any(self.has(name) for name in names)

    def has_all(self, names: Iterable[CapabilityLike]) -> bool:
        return all(self.has(name) for name in names)

    def union(self, other: "CapabilitySet | Iterable[CapabilityLike]") -> "CapabilitySet":
        if isinstance(other, CapabilitySet):
            return CapabilitySet(self.names | other.names)
        return CapabilitySet(self.names | CapabilitySet.of(other).names)

    def to_list(self) -> list[str]:
        """Sorted list form (JSON-friendly, deterministic)"""
        return sorted(self.names)

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and self.has(name)

    def __iter__(self) -> Iterator[str]:
        return iter(self.to_list())

    def __len__(self) -> int:
        return len(self.names)
