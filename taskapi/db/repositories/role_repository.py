"""
Role repository - role data access and reporting queries (SOLID: Single Responsibility).
Challenge: User counts in one grouped query instead of one COUNT per role (N+1).
"""

from sqlalchemy import and_, func, select

from taskapi.db.models.role import Role
from taskapi.db.models.user import User
from taskapi.db.repositories.base_repository import BaseRepository


class RoleRepository(BaseRepository[Role]):
    """Role-specific queries. Name comparisons are case-sensitive."""

    def __init__(self, session):
        super().__init__(session, Role)

    def _with_user_count(self):
        # Outer join keeps roles nobody is assigned to (count 0); only active users count
        return (
            select(Role, func.count(User.id).label("user_count"))
            .outerjoin(User, and_(User.role_id == Role.id, User.is_active.is_(True)))
            .group_by(Role.id)
            .order_by(Role.id)
        )

    async def list_with_user_counts(self) -> list[tuple[Role, int]]:
        result = await self._execute(self._with_user_count())
        return [(role, count) for role, count in result.all()]

    async def get_with_user_count(self, id: int) -> tuple[Role, int] | None:
        result = await self._execute(self._with_user_count().where(Role.id == id))
        row = result.first()
        return (row[0], row[1]) if row else None

    async def name_taken(self, name: str, exclude_id: int | None = None) -> bool:
        """True if another role already uses exactly this name."""
        criteria = [Role.name == name]
        if exclude_id is not None:
            criteria.append(Role.id != exclude_id)
        return await self.exists(*criteria)

    async def count_users(self, role_id: int) -> int:
        """All users referencing the role, active or not (the FK does not care)."""
        result = await self._execute(
            select(func.count()).select_from(User).where(User.role_id == role_id)
        )
        return int(result.scalar_one())
