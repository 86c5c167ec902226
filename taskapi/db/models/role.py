"""
Role model - a team role users are assigned to.
"""

from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import String, DateTime, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from taskapi.db.base import Base

if TYPE_CHECKING:
    from taskapi.db.models.user import User


class Role(Base):
    """Role entity. Name uniqueness is case-sensitive and enforced by a constraint."""

    __tablename__ = "roles"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(100), unique=True, nullable=False)
    is_active: Mapped[bool] = mapped_column(default=True, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())

    users: Mapped[list["User"]] = relationship("User", back_populates="role", lazy="noload")

    def __repr__(self) -> str:
        return f"<Role(id={self.id}, name={self.name})>"
