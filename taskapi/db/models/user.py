"""
User model - identity, credentials and session bookkeeping.
"""

from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import String, DateTime, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column, relationship

from taskapi.db.base import Base

if TYPE_CHECKING:
    from taskapi.db.models.role import Role


class User(Base):
    """
    User entity. Email is stored normalized (trimmed, lowercase).
    Timestamps are written by the service, never by the store: a narrow write
    (e.g. last_token_issue_at on logout) must leave every other column untouched.
    """

    __tablename__ = "users"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    email: Mapped[str] = mapped_column(String(255), unique=True, index=True, nullable=False)
    hashed_password: Mapped[str] = mapped_column(String(255), nullable=False)
    full_name: Mapped[str] = mapped_column(String(255), nullable=False)
    role_id: Mapped[int] = mapped_column(ForeignKey("roles.id"), nullable=False, index=True)
    is_active: Mapped[bool] = mapped_column(default=True, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    last_token_issue_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    role: Mapped["Role"] = relationship("Role", back_populates="users", lazy="noload")

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email={self.email})>"
