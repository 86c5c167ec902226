"""
User repository - encapsulates all user data access (SOLID: Single Responsibility).
Challenge: Keep queries in one place for optimization and reuse, including the
raw-SQL write used when the ORM update is rejected by store-side triggers.
"""

from datetime import datetime

from sqlalchemy import bindparam, func, text

from taskapi.db.models.user import User
from taskapi.db.repositories.base_repository import BaseRepository

# Targets a single column; no OUTPUT/RETURNING clause for triggers to trip over
_WRITE_TOKEN_TIMESTAMP = text(
    "UPDATE users SET last_token_issue_at = :issued_at WHERE id = :user_id"
).bindparams(
    bindparam("issued_at", type_=User.__table__.c.last_token_issue_at.type),
    bindparam("user_id"),
)


class UserRepository(BaseRepository[User]):
    """User-specific queries. Extends base CRUD with domain logic."""

    def __init__(self, session):
        super().__init__(session, User)

    async def list_active(self) -> list[User]:
        return await self.list_all(User.is_active.is_(True))

    async def get_active_by_id(self, id: int) -> User | None:
        return await self.find_first(User.id == id, User.is_active.is_(True))

    async def get_by_email(self, email: str) -> User | None:
        """Exact match on the stored value; callers normalize if they need to."""
        return await self.find_first(User.email == email)

    async def get_by_normalized_email(self, normalized_email: str) -> User | None:
        """Case-insensitive match - used for authentication."""
        return await self.find_first(func.lower(User.email) == normalized_email)

    async def email_exists(self, normalized_email: str, exclude_id: int | None = None) -> bool:
        criteria = [func.lower(User.email) == normalized_email]
        if exclude_id is not None:
            criteria.append(User.id != exclude_id)
        return await self.exists(*criteria)

    async def write_token_timestamp_raw(self, user_id: int, issued_at: datetime) -> int:
        """Set last_token_issue_at with a plain UPDATE. Returns affected rows."""
        return await self.execute_raw(
            _WRITE_TOKEN_TIMESTAMP, {"issued_at": issued_at, "user_id": user_id}
        )
