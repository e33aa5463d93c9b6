from sqlalchemy import Boolean, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from src.infrastructure.persistence.database import Base
from src.infrastructure.persistence.models.mixins import AccessModel


class Role(AccessModel, Base):
    """
    Named bundle of capabilities (e.g., 'admin', 'editor', 'viewer').

    Inherits from AccessModel:
        - id: CUID primary key
        - created_at: Creation timestamp
        - updated_at: Last update timestamp
    """

    __tablename__ = "role"

    name: Mapped[str] = mapped_column(String, unique=True, nullable=False)
    display_name: Mapped[str | None] = mapped_column(String, nullable=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    level: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0
    )  # Seniority for display/sorting only; never consulted by access checks
    is_active: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=True
    )  # Inactive roles grant nothing
