"""
Role service - business logic for roles (SOLID: Single Responsibility).
Challenge: Case-sensitive name uniqueness that also holds under concurrent creates,
and read-only reporting over the role list.
Design: Dependencies come in through the constructor; outcomes are ServiceResult values.
"""

from structlog.stdlib import BoundLogger

from taskapi.core.errors import StorageConflictError
from taskapi.core.logging import get_logger
from taskapi.db.models.role import Role
from taskapi.db.repositories.role_repository import RoleRepository
from taskapi.schemas.role import RoleRead, RoleShare, RoleStatistics
from taskapi.services.results import ServiceErrorKind, ServiceResult, not_implemented


def _role_to_read(role: Role, user_count: int) -> RoleRead:
    return RoleRead(
        id=role.id,
        name=role.name,
        is_active=role.is_active,
        user_count=user_count,
        created_at=role.created_at,
    )


def compute_role_statistics(roles: list[RoleRead]) -> RoleStatistics:
    """
    Aggregate over the full role list.
    percentage = user_count / total_users * 100 rounded to 2 places, 0 when nobody is assigned.
    Distribution is ordered by user_count descending; ties keep list order.
    """
    total_users = sum(r.user_count for r in roles)
    distribution = [
        RoleShare(
            role_name=r.name,
            user_count=r.user_count,
            percentage=round(r.user_count / total_users * 100, 2) if total_users > 0 else 0,
        )
        for r in roles
    ]
    distribution.sort(key=lambda share: share.user_count, reverse=True)
    most_popular = max(roles, key=lambda r: r.user_count).name if roles else "N/A"
    return RoleStatistics(
        total_roles=len(roles),
        active_roles=sum(1 for r in roles if r.is_active),
        total_users=total_users,
        role_distribution=distribution,
        most_popular_role=most_popular,
    )


def _invalid_id() -> ServiceResult:
    return ServiceResult.failure(
        ServiceErrorKind.VALIDATION, "Invalid role id", "The id must be a number greater than 0"
    )


class RoleService:
    """Handles role use cases: listing, lookup, creation, statistics."""

    def __init__(
        self,
        role_repo: RoleRepository,
        logger: BoundLogger | None = None,
        *,
        solutions_enabled: bool = False,
        default_role_id: int = 4,
    ):
        self.role_repo = role_repo
        self.logger = logger or get_logger(__name__)
        self.solutions_enabled = solutions_enabled
        self.default_role_id = default_role_id

    async def list_roles(self) -> list[RoleRead]:
        rows = await self.role_repo.list_with_user_counts()
        self.logger.info("Roles listed", count=len(rows))
        return [_role_to_read(role, count) for role, count in rows]

    async def get_role(self, id: int) -> RoleRead | None:
        """None means not found; the caller decides what that means (404)."""
        row = await self.role_repo.get_with_user_count(id)
        if row is None:
            self.logger.info("Role not found", role_id=id)
            return None
        return _role_to_read(*row)

    async def get_statistics(self) -> RoleStatistics:
        return compute_role_statistics(await self.list_roles())

    async def create_role(self, name: str) -> ServiceResult[RoleRead]:
        name = name.strip()
        self.logger.info("Creating role", role_name=name)
        if await self.role_repo.name_taken(name):
            self.logger.warning("Duplicate role name rejected", role_name=name)
            return self._duplicate(name)

        try:
            role = await self.role_repo.add(Role(name=name, is_active=True))
            await self.role_repo.commit()
        except StorageConflictError:
            # Lost a race against a concurrent create; the unique constraint had the last word
            self.logger.warning("Duplicate role name rejected by constraint", role_name=name)
            return self._duplicate(name)
        self.logger.info("Role created", role_id=role.id, role_name=role.name)
        return ServiceResult.success(_role_to_read(role, 0))

    async def update_role(self, id: int, name: str) -> ServiceResult[RoleRead]:
        """Workshop exercise. Reference solution: exists -> unique among others -> write."""
        if not self.solutions_enabled:
            return not_implemented("update_role")
        if id <= 0:
            return _invalid_id()

        name = name.strip()
        row = await self.role_repo.get_with_user_count(id)
        if row is None:
            return ServiceResult.failure(ServiceErrorKind.NOT_FOUND, "Role not found", f"No role exists with id {id}")
        role, user_count = row
        if role.name != name:
            if await self.role_repo.name_taken(name, exclude_id=id):
                self.logger.warning("Duplicate role name rejected", role_id=id, role_name=name)
                return self._duplicate(name)
            role.name = name
            self.role_repo.update(role)
            try:
                await self.role_repo.commit()
            except StorageConflictError:
                return self._duplicate(name)
            self.logger.info("Role renamed", role_id=id, role_name=name)
        return ServiceResult.success(_role_to_read(role, user_count))

    async def delete_role(self, id: int) -> ServiceResult[bool]:
        """Workshop exercise. Reference solution: exists -> not the default role -> no users -> delete."""
        if not self.solutions_enabled:
            return not_implemented("delete_role")
        if id <= 0:
            return _invalid_id()

        role = await self.role_repo.get_by_id(id)
        if role is None:
            return ServiceResult.failure(ServiceErrorKind.NOT_FOUND, "Role not found", f"No role exists with id {id}")
        if role.id == self.default_role_id:
            return ServiceResult.failure(
                ServiceErrorKind.CONFLICT,
                "Role cannot be deleted",
                "The default role is assigned to users without a team",
            )
        assigned = await self.role_repo.count_users(id)
        if assigned:
            self.logger.warning("Role still has users", role_id=id, user_count=assigned)
            return ServiceResult.failure(
                ServiceErrorKind.CONFLICT,
                "Role cannot be deleted",
                f"{assigned} user(s) are still assigned to this role",
            )
        await self.role_repo.delete(role)
        try:
            await self.role_repo.commit()
        except StorageConflictError:
            # A user was assigned after the count; the foreign key refused the delete
            self.logger.warning("Role delete rejected by constraint", role_id=id)
            return ServiceResult.failure(
                ServiceErrorKind.CONFLICT,
                "Role cannot be deleted",
                "Users are still assigned to this role",
            )
        self.logger.info("Role deleted", role_id=id)
        return ServiceResult.success(True)

    @staticmethod
    def _duplicate(name: str) -> ServiceResult[RoleRead]:
        return ServiceResult.failure(
            ServiceErrorKind.CONFLICT, "Data conflict", f"A role named '{name}' already exists"
        )
