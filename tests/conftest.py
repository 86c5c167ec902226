"""
Pytest fixtures - test DB, client, auth.
Challenge: Isolated tests; every test gets its own in-memory database.
"""

from datetime import datetime, timezone
from typing import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from taskapi.core.dependencies import get_role_service, get_user_service
from taskapi.core.security import create_access_token, hash_password
from taskapi.db.base import Base
from taskapi.db.models import Role, User
from taskapi.db.repositories.role_repository import RoleRepository
from taskapi.db.repositories.user_repository import UserRepository
from taskapi.db.session import get_db
from taskapi.main import app
from taskapi.services.role_service import RoleService
from taskapi.services.user_service import UserService

# One shared in-memory connection per test (StaticPool), so every session sees the same data
TEST_DATABASE_URL = "sqlite+aiosqlite://"

SEED_ROLES = [
    (1, "Administrator"),
    (2, "Team Lead"),
    (3, "Developer"),
    (4, "User without Team"),
]


@pytest_asyncio.fixture
async def engine():
    engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def session(engine) -> AsyncGenerator[AsyncSession, None]:
    async_session = async_sessionmaker(
        engine, class_=AsyncSession, expire_on_commit=False
    )
    async with async_session() as s:
        yield s


@pytest_asyncio.fixture
async def seeded_roles(session: AsyncSession) -> list[Role]:
    roles = [Role(id=id, name=name, is_active=True) for id, name in SEED_ROLES]
    session.add_all(roles)
    await session.commit()
    return roles


@pytest_asyncio.fixture
async def client(session: AsyncSession, seeded_roles):
    async def override_get_db():
        yield session

    app.dependency_overrides[get_db] = override_get_db
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac
    app.dependency_overrides.clear()


@pytest.fixture
def reference_solutions(session: AsyncSession, client):
    """Run the update/delete reference solutions instead of the 501 stubs."""
    app.dependency_overrides[get_role_service] = lambda: RoleService(
        RoleRepository(session), solutions_enabled=True
    )
    app.dependency_overrides[get_user_service] = lambda: UserService(
        UserRepository(session), RoleRepository(session), solutions_enabled=True
    )


async def _make_user(
    session: AsyncSession,
    email: str,
    *,
    password: str = "password123",
    role_id: int = 4,
    is_active: bool = True,
) -> User:
    hashed = hash_password(password)
    now = datetime.now(timezone.utc)
    user = User(
        email=email,
        hashed_password=hashed,
        full_name="Test User",
        role_id=role_id,
        is_active=is_active,
        created_at=now,
        updated_at=now,
        last_token_issue_at=now,
    )
    session.add(user)
    await session.commit()
    await session.refresh(user)
    return user


@pytest.fixture
def user_factory(session: AsyncSession, seeded_roles):
    """Insert users directly, bypassing the service (arrange step for API tests)."""

    async def _factory(email: str, **kwargs) -> User:
        return await _make_user(session, email, **kwargs)

    return _factory


@pytest_asyncio.fixture
async def test_user(session: AsyncSession, seeded_roles) -> User:
    return await _make_user(session, "test@example.com")


@pytest.fixture
def auth_headers(test_user: User) -> dict:
    token = create_access_token(test_user.id)
    return {"Authorization": f"Bearer {token}"}
