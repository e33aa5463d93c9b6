"""Column mixins shared by the access-control tables."""
from datetime import datetime

from sqlalchemy import DateTime, String
from sqlalchemy.orm import Mapped, declared_attr, mapped_column
from sqlalchemy.sql import func

from src.shared.utils.generators import generate_cuid


class CuidMixin:
    """String primary key filled with a CUID on insert"""

    @declared_attr
    def id(cls) -> Mapped[str]:
        return mapped_column(String, primary_key=True, default=generate_cuid)


class TimestampMixin:
    """Server-side created_at / updated_at (timezone-aware)"""

    @declared_attr
    def created_at(cls) -> Mapped[datetime]:
        return mapped_column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    @declared_attr
    def updated_at(cls) -> Mapped[datetime]:
        return mapped_column(
            DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False
        )


class AccessModel(CuidMixin, TimestampMixin):
    """
    Abstract base for users, roles, capabilities and resources.

    Usage:
        class Role(AccessModel, Base):
            __tablename__ = "role"
    """

    __abstract__ = True
