from typing import Any

from sqlalchemy import JSON, Boolean, CheckConstraint, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from src.domain.enums import ResourceType
from src.infrastructure.persistence.database import Base
from src.infrastructure.persistence.models.mixins import AccessModel

_TYPE_VALUES = ", ".join(f"'{value}'" for value in ResourceType.values())


class Resource(AccessModel, Base):
    """
    Protected navigation item, UI route or API endpoint.

    Resources of one type form a forest through parent_id. A null
    required_capability means any authenticated user may reach the resource.
    """

    __tablename__ = "resource"

    type: Mapped[str] = mapped_column(String, nullable=False)  # navigation | route | api
    path: Mapped[str] = mapped_column(String, nullable=False)  # e.g., '/documents/:id'
    name: Mapped[str] = mapped_column(String, nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    icon: Mapped[str | None] = mapped_column(String, nullable=True)
    parent_id: Mapped[str | None] = mapped_column(
        String, ForeignKey("resource.id", ondelete="CASCADE"), nullable=True
    )
    required_capability: Mapped[str | None] = mapped_column(
        String, nullable=True
    )  # Capability name, not id, so a dangling name fails closed
    sort_order: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    # 'metadata' is reserved on declarative classes
    resource_metadata: Mapped[dict[str, Any] | None] = mapped_column(
        "metadata", JSON, nullable=True
    )  # e.g., {"method": "POST"} for api resources
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    __table_args__ = (
        CheckConstraint(f"type IN ({_TYPE_VALUES})", name="ck_resource_type"),
        Index("ix_resource_type_parent", "type", "parent_id"),
    )
