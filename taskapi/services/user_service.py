"""
User service - business logic for users (SOLID: Single Responsibility).
Challenge: Email uniqueness under normalization and concurrency, password hashing,
and a narrow token-timestamp write that survives store-side triggers.
Design: Service depends on abstractions (repositories, hasher); easy to test with fakes.
"""

from collections.abc import Callable
from datetime import datetime

from structlog.stdlib import BoundLogger

from taskapi.core.errors import StorageConflictError, StorageError, TriggerConflictError
from taskapi.core.logging import get_logger
from taskapi.core.security import hash_password, utcnow, verify_password
from taskapi.db.models.user import User
from taskapi.db.repositories.role_repository import RoleRepository
from taskapi.db.repositories.user_repository import UserRepository
from taskapi.schemas.user import UserRead, UserUpdate
from taskapi.services.results import ServiceErrorKind, ServiceResult, not_implemented


def normalize_email(email: str) -> str:
    return email.strip().lower()


def _invalid_id() -> ServiceResult:
    return ServiceResult.failure(
        ServiceErrorKind.VALIDATION, "Invalid user id", "The id must be a number greater than 0"
    )


class UserService:
    """Handles user use cases: lookup, registration, authentication, logout bookkeeping."""

    def __init__(
        self,
        user_repo: UserRepository,
        role_repo: RoleRepository,
        logger: BoundLogger | None = None,
        *,
        password_hasher: Callable[[str], str] = hash_password,
        solutions_enabled: bool = False,
        default_role_id: int = 4,
    ):
        self.user_repo = user_repo
        self.role_repo = role_repo
        self.logger = logger or get_logger(__name__)
        self.password_hasher = password_hasher
        self.solutions_enabled = solutions_enabled
        self.default_role_id = default_role_id

    async def list_users(self) -> list[UserRead]:
        users = await self.user_repo.list_active()
        return [UserRead.model_validate(u) for u in users]

    async def get_user(self, id: int) -> UserRead | None:
        user = await self.user_repo.get_active_by_id(id)
        return UserRead.model_validate(user) if user else None

    async def get_user_by_email(self, email: str) -> UserRead | None:
        """Exact match on the stored (normalized) value."""
        self.logger.info("Looking up user by email", email=email)
        user = await self.user_repo.get_by_email(email)
        if user is None:
            self.logger.info("No user with email", email=email)
            return None
        self.logger.info("User found", user_id=user.id)
        return UserRead.model_validate(user)

    async def email_exists(self, email: str, exclude_id: int | None = None) -> bool:
        """exclude_id lets a user keep their own email during an update."""
        exists = await self.user_repo.email_exists(normalize_email(email), exclude_id=exclude_id)
        self.logger.info("Email existence checked", email=email, exclude_id=exclude_id, exists=exists)
        return exists

    async def create_user(
        self,
        email: str,
        password: str,
        full_name: str,
        role_id: int | None = None,
    ) -> ServiceResult[UserRead]:
        self.logger.info("Creating user", email=email)
        normalized = normalize_email(email)
        # Checked again here even if the caller already did: narrows the race window
        if await self.user_repo.email_exists(normalized):
            self.logger.warning("Duplicate email rejected", email=normalized)
            return self._duplicate_email()

        if role_id is None:
            role_id = self.default_role_id
        elif await self.role_repo.get_by_id(role_id) is None:
            return ServiceResult.failure(
                ServiceErrorKind.VALIDATION, "Invalid input data", f"Role {role_id} does not exist"
            )

        now = utcnow()
        user = User(
            email=normalized,
            hashed_password=self.password_hasher(password),
            full_name=full_name.strip(),
            role_id=role_id,
            is_active=True,
            created_at=now,
            updated_at=now,
            last_token_issue_at=now,
        )
        try:
            user = await self.user_repo.add(user)
            await self.user_repo.commit()
        except StorageConflictError:
            self.logger.warning("Duplicate email rejected by constraint", email=normalized)
            return self._duplicate_email()
        self.logger.info("User created", user_id=user.id)
        return ServiceResult.success(UserRead.model_validate(user))

    async def authenticate(self, email: str, password: str) -> User | None:
        """Active user whose password matches, else None."""
        user = await self.user_repo.get_by_normalized_email(normalize_email(email))
        if user is None or not user.is_active:
            return None
        if not verify_password(password, user.hashed_password):
            return None
        return user

    async def update_user_token_timestamp(self, user_id: int, issued_at: datetime) -> bool:
        """
        Write only last_token_issue_at. False when the user does not exist.
        Stores with triggers on `users` reject the ORM's UPDATE (row-return clause);
        in that case the same write is retried as a plain parameterized UPDATE.
        """
        existing = await self.user_repo.get_by_id(user_id)
        if existing is None:
            self.logger.warning("User not found for token timestamp update", user_id=user_id)
            return False

        existing.last_token_issue_at = issued_at
        self.user_repo.update(existing)
        try:
            written = await self.user_repo.commit()
        except TriggerConflictError:
            self.logger.warning("Update rejected by table trigger, retrying with raw SQL", user_id=user_id)
            written = await self.user_repo.write_token_timestamp_raw(user_id, issued_at)
        except StorageError:
            self.logger.exception("Token timestamp update failed", user_id=user_id)
            raise

        if written > 0:
            self.logger.info("Token timestamp updated", user_id=user_id)
            return True
        self.logger.warning("Token timestamp update affected no rows", user_id=user_id)
        return False

    async def update_user(self, id: int, changes: UserUpdate) -> ServiceResult[UserRead]:
        """Workshop exercise. Reference solution: active user -> email free -> role exists -> write."""
        if not self.solutions_enabled:
            return not_implemented("update_user")
        if id <= 0:
            return _invalid_id()

        user = await self.user_repo.get_active_by_id(id)
        if user is None:
            return ServiceResult.failure(ServiceErrorKind.NOT_FOUND, "User not found", f"No active user with id {id}")

        # All checks run before the entity is touched, so a rejection leaves nothing dirty
        normalized = normalize_email(changes.email) if changes.email is not None else None
        if normalized is not None and await self.user_repo.email_exists(normalized, exclude_id=id):
            return self._duplicate_email()
        if changes.role_id is not None and await self.role_repo.get_by_id(changes.role_id) is None:
            return ServiceResult.failure(
                ServiceErrorKind.VALIDATION, "Invalid input data", f"Role {changes.role_id} does not exist"
            )

        if normalized is not None:
            user.email = normalized
        if changes.role_id is not None:
            user.role_id = changes.role_id
        if changes.full_name is not None:
            user.full_name = changes.full_name.strip()
        user.updated_at = utcnow()

        self.user_repo.update(user)
        try:
            await self.user_repo.commit()
        except StorageConflictError:
            return self._duplicate_email()
        self.logger.info("User updated", user_id=id)
        return ServiceResult.success(UserRead.model_validate(user))

    async def delete_user(self, id: int) -> ServiceResult[bool]:
        """Workshop exercise. Reference solution: soft delete (is_active = False)."""
        if not self.solutions_enabled:
            return not_implemented("delete_user")
        if id <= 0:
            return _invalid_id()

        user = await self.user_repo.get_active_by_id(id)
        if user is None:
            return ServiceResult.failure(ServiceErrorKind.NOT_FOUND, "User not found", f"No active user with id {id}")
        user.is_active = False
        user.updated_at = utcnow()
        self.user_repo.update(user)
        await self.user_repo.commit()
        self.logger.info("User deactivated", user_id=id)
        return ServiceResult.success(True)

    @staticmethod
    def _duplicate_email() -> ServiceResult[UserRead]:
        return ServiceResult.failure(ServiceErrorKind.CONFLICT, "Data conflict", "Email is already in use")
