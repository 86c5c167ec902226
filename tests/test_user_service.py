"""
User service tests - email identity, hashing, and the token-timestamp write.
"""

from datetime import timedelta

import pytest
from sqlalchemy import select

from taskapi.core.errors import TriggerConflictError
from taskapi.core.security import as_utc, utcnow, verify_password
from taskapi.db.models import User
from taskapi.db.repositories.role_repository import RoleRepository
from taskapi.db.repositories.user_repository import UserRepository
from taskapi.schemas.user import UserUpdate
from taskapi.services.results import ServiceErrorKind
from taskapi.services.user_service import UserService, normalize_email


class TriggeredUserRepository(UserRepository):
    """Rejects the first ORM commit the way a store with table triggers does."""

    def __init__(self, session):
        super().__init__(session)
        self.rejected = 0

    async def commit(self) -> int:
        if self.rejected == 0:
            self.rejected += 1
            await self.session.rollback()
            raise TriggerConflictError(
                "The target table 'users' of the DML statement cannot have any enabled "
                "triggers if the statement contains an OUTPUT clause without INTO clause."
            )
        return await super().commit()


class RacingUserRepository(UserRepository):
    async def email_exists(self, normalized_email, exclude_id=None):
        return False


def make_service(session, user_repo=None) -> UserService:
    return UserService(user_repo or UserRepository(session), RoleRepository(session))


async def stored_row(session, user_id):
    return (await session.execute(select(User.__table__).where(User.id == user_id))).one()


def test_normalize_email():
    assert normalize_email("  Foo@Bar.COM ") == "foo@bar.com"


@pytest.mark.asyncio
async def test_create_user_normalizes_and_rejects_duplicates(session, seeded_roles):
    service = make_service(session)
    created = await service.create_user("Foo@Bar.com ", "secret1", "Foo")
    assert created.ok
    assert created.value.email == "foo@bar.com"
    assert created.value.role_id == 4

    duplicate = await service.create_user("FOO@bar.com", "secret2", "Other Foo")
    assert duplicate.error.kind is ServiceErrorKind.CONFLICT
    assert duplicate.error.detail == "Email is already in use"


@pytest.mark.asyncio
async def test_passwords_are_salted_hashes(session, seeded_roles):
    service = make_service(session)
    a = await service.create_user("a@example.com", "same-password", "A")
    b = await service.create_user("b@example.com", "same-password", "B")
    hash_a = (await stored_row(session, a.value.id)).hashed_password
    hash_b = (await stored_row(session, b.value.id)).hashed_password

    assert hash_a != "same-password"
    assert hash_a != hash_b
    assert verify_password("same-password", hash_a)
    assert not verify_password("other-password", hash_a)


@pytest.mark.asyncio
async def test_email_exists_can_exclude_the_owner(session, user_factory):
    user = await user_factory("owner@example.com")
    service = make_service(session)
    assert await service.email_exists(" OWNER@example.com")
    assert not await service.email_exists("owner@example.com", exclude_id=user.id)
    assert not await service.email_exists("nobody@example.com")


@pytest.mark.asyncio
async def test_get_user_by_email_is_exact(session, user_factory):
    await user_factory("exact@example.com")
    service = make_service(session)
    assert (await service.get_user_by_email("exact@example.com")).email == "exact@example.com"
    assert await service.get_user_by_email("Exact@example.com") is None


@pytest.mark.asyncio
async def test_authenticate(session, test_user):
    service = make_service(session)
    assert (await service.authenticate(" Test@Example.com", "password123")).id == test_user.id
    assert await service.authenticate("test@example.com", "nope") is None
    assert await service.authenticate("ghost@example.com", "password123") is None


@pytest.mark.asyncio
async def test_token_timestamp_for_missing_user(session, seeded_roles):
    service = make_service(session)
    assert await service.update_user_token_timestamp(999, utcnow()) is False


@pytest.mark.asyncio
async def test_token_timestamp_touches_only_that_column(session, test_user):
    before = await stored_row(session, test_user.id)
    issued_at = utcnow() + timedelta(seconds=5)

    service = make_service(session)
    assert await service.update_user_token_timestamp(test_user.id, issued_at) is True

    after = await stored_row(session, test_user.id)
    assert as_utc(after.last_token_issue_at) == issued_at
    for column in ("email", "hashed_password", "full_name", "role_id", "is_active", "created_at", "updated_at"):
        assert getattr(after, column) == getattr(before, column)


@pytest.mark.asyncio
async def test_token_timestamp_falls_back_to_raw_update(session, test_user):
    # The rejected commit rolls back and expires test_user
    user_id = test_user.id
    repo = TriggeredUserRepository(session)
    issued_at = utcnow() + timedelta(seconds=5)

    service = make_service(session, repo)
    assert await service.update_user_token_timestamp(user_id, issued_at) is True
    assert repo.rejected == 1

    row = await stored_row(session, user_id)
    assert as_utc(row.last_token_issue_at) == issued_at


@pytest.mark.asyncio
async def test_unique_constraint_wins_a_registration_race(session, user_factory):
    await user_factory("taken@example.com")
    service = make_service(session, RacingUserRepository(session))
    result = await service.create_user("taken@example.com", "secret1", "Late")
    assert result.error.kind is ServiceErrorKind.CONFLICT


@pytest.mark.asyncio
async def test_update_user_checks_before_writing(session, user_factory):
    user = await user_factory("keep@example.com")
    service = UserService(UserRepository(session), RoleRepository(session), solutions_enabled=True)

    result = await service.update_user(user.id, UserUpdate(email="changed@example.com", role_id=99))
    assert result.error.kind is ServiceErrorKind.VALIDATION
    assert (await stored_row(session, user.id)).email == "keep@example.com"
