from datetime import datetime

from sqlalchemy import Boolean, DateTime, ForeignKey, Index, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func

from src.infrastructure.persistence.database import Base
from src.infrastructure.persistence.models.mixins import AccessModel, CuidMixin


class Capability(AccessModel, Base):
    """
    Atomic named right (e.g., 'DOCUMENT_VIEW', 'ADMIN_ACCESS').

    The name is the stable token checked by the engine; category is free-form
    grouping for administration screens.
    """

    __tablename__ = "capability"

    name: Mapped[str] = mapped_column(String, unique=True, nullable=False)
    category: Mapped[str | None] = mapped_column(
        String, nullable=True, index=True
    )  # e.g., 'document', 'system', 'pdf'
    description: Mapped[str | None] = mapped_column(Text, nullable=True)


class RoleCapabilityAssignment(CuidMixin, Base):
    """
    Many-to-many: roles ←→ capabilities.

    Sole source of what a role can do.
    """

    __tablename__ = "role_capability_assignment"

    role_id: Mapped[str] = mapped_column(
        String, ForeignKey("role.id", ondelete="CASCADE"), nullable=False
    )
    capability_id: Mapped[str] = mapped_column(
        String, ForeignKey("capability.id", ondelete="CASCADE"), nullable=False
    )
    assigned_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    __table_args__ = (
        UniqueConstraint("role_id", "capability_id", name="uq_role_capability"),
        Index("ix_role_capability_lookup", "role_id"),
    )


class UserRole(CuidMixin, Base):
    """
    Many-to-many: users ←→ roles.

    A user may hold any number of simultaneously active roles.
    """

    __tablename__ = "user_role"

    user_id: Mapped[str] = mapped_column(
        String, ForeignKey("user.id", ondelete="CASCADE"), nullable=False
    )
    role_id: Mapped[str] = mapped_column(
        String, ForeignKey("role.id", ondelete="CASCADE"), nullable=False
    )
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    # Role assignment metadata
    assigned_by: Mapped[str | None] = mapped_column(
        String, ForeignKey("user.id", ondelete="SET NULL"), nullable=True
    )
    assigned_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    __table_args__ = (
        UniqueConstraint("user_id", "role_id", name="uq_user_role"),
        Index("ix_user_role_lookup", "user_id", "is_active"),
    )
