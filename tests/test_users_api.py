"""
User API tests - registration, lookups and the exercise stubs.
"""

import pytest
from httpx import AsyncClient
from sqlalchemy import select

from taskapi.core.security import verify_password
from taskapi.db.models import User


async def register(client: AsyncClient, email: str, **overrides):
    payload = {"email": email, "password": "s3cret-pass", "full_name": "Ada Lovelace"}
    payload.update(overrides)
    return await client.post("/api/v1/users/create", json=payload)


@pytest.mark.asyncio
async def test_create_user(client: AsyncClient, session):
    response = await register(client, "  Ada@Example.COM ")
    assert response.status_code == 201
    body = response.json()
    assert body["success"] is True
    user = body["data"]
    assert user["email"] == "ada@example.com"
    assert user["role_id"] == 4
    assert user["is_active"] is True
    assert "password" not in user
    assert "hashed_password" not in user
    assert "s3cret-pass" not in response.text
    assert response.headers["location"].endswith(f"/api/v1/users/getById/{user['id']}")

    stored = (await session.execute(select(User).where(User.id == user["id"]))).scalar_one()
    assert stored.hashed_password != "s3cret-pass"
    assert verify_password("s3cret-pass", stored.hashed_password)


@pytest.mark.asyncio
async def test_create_user_with_role(client: AsyncClient):
    response = await register(client, "lead@example.com", role_id=2)
    assert response.status_code == 201
    assert response.json()["data"]["role_id"] == 2


@pytest.mark.asyncio
async def test_create_user_with_unknown_role(client: AsyncClient):
    response = await register(client, "lost@example.com", role_id=99)
    assert response.status_code == 400
    assert response.json()["errors"] == ["Role 99 does not exist"]


@pytest.mark.asyncio
async def test_email_identity_ignores_case_and_whitespace(client: AsyncClient):
    first = await register(client, "Foo@Bar.com ")
    second = await register(client, "foo@bar.com")
    assert first.status_code == 201
    assert second.status_code == 409
    body = second.json()
    assert body["success"] is False
    assert body["data"] is None


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "overrides",
    [
        {"email": "not-an-email"},
        {"password": "123"},
        {"password": "x" * 73},
        {"password": "\u00e9" * 40},
        {"full_name": ""},
        {"role_id": 0},
    ],
)
async def test_create_user_validation(client: AsyncClient, overrides):
    payload = {"email": "ok@example.com", "password": "s3cret-pass", "full_name": "Ada"}
    payload.update(overrides)
    response = await client.post("/api/v1/users/create", json=payload)
    assert response.status_code == 400
    assert response.json()["message"] == "Invalid input data"


@pytest.mark.asyncio
async def test_get_all_users_returns_active_only(client: AsyncClient, user_factory):
    await user_factory("active@example.com")
    await user_factory("inactive@example.com", is_active=False)
    response = await client.get("/api/v1/users/getAll")
    assert response.status_code == 200
    assert [u["email"] for u in response.json()["data"]] == ["active@example.com"]


@pytest.mark.asyncio
async def test_get_user_by_id(client: AsyncClient, user_factory):
    user = await user_factory("someone@example.com")
    inactive = await user_factory("former@example.com", is_active=False)

    assert (await client.get(f"/api/v1/users/getById/{user.id}")).status_code == 200
    assert (await client.get(f"/api/v1/users/getById/{inactive.id}")).status_code == 404
    assert (await client.get("/api/v1/users/getById/999")).status_code == 404
    assert (await client.get("/api/v1/users/getById/0")).status_code == 400


@pytest.mark.asyncio
async def test_get_user_by_email_is_exact(client: AsyncClient, user_factory):
    await user_factory("exact@example.com")
    found = await client.get("/api/v1/users/getByEmail", params={"email": "exact@example.com"})
    assert found.status_code == 200
    assert found.json()["data"]["email"] == "exact@example.com"

    other_case = await client.get("/api/v1/users/getByEmail", params={"email": "EXACT@example.com"})
    assert other_case.status_code == 404


@pytest.mark.asyncio
async def test_update_and_delete_user_are_stubs(client: AsyncClient, user_factory):
    user = await user_factory("stub@example.com")
    update = await client.put(f"/api/v1/users/update/{user.id}", json={"full_name": "New Name"})
    delete = await client.delete(f"/api/v1/users/delete/{user.id}")
    for response in (update, delete):
        assert response.status_code == 501
        assert response.json()["success"] is False
        assert response.json()["message"] == "Method not implemented"


@pytest.mark.asyncio
async def test_update_user_reference_solution(client: AsyncClient, reference_solutions, user_factory):
    user = await user_factory("mover@example.com")
    await user_factory("taken@example.com")

    response = await client.put(
        f"/api/v1/users/update/{user.id}",
        json={"email": "Mover@Example.com", "full_name": "Moved", "role_id": 3},
    )
    assert response.status_code == 200
    data = response.json()["data"]
    assert data["email"] == "mover@example.com"
    assert data["full_name"] == "Moved"
    assert data["role_id"] == 3

    conflict = await client.put(f"/api/v1/users/update/{user.id}", json={"email": "taken@example.com"})
    assert conflict.status_code == 409

    bad_role = await client.put(f"/api/v1/users/update/{user.id}", json={"role_id": 99})
    assert bad_role.status_code == 400
    assert (await client.put("/api/v1/users/update/999", json={"full_name": "X"})).status_code == 404


@pytest.mark.asyncio
async def test_delete_user_reference_solution_is_soft(
    client: AsyncClient, reference_solutions, user_factory, session
):
    user = await user_factory("leaving@example.com")

    response = await client.delete(f"/api/v1/users/delete/{user.id}")
    assert response.status_code == 200
    assert (await client.get(f"/api/v1/users/getById/{user.id}")).status_code == 404
    assert (await client.delete(f"/api/v1/users/delete/{user.id}")).status_code == 404

    # Row is still there, only flagged inactive
    row = (await session.execute(select(User.__table__).where(User.id == user.id))).one()
    assert row.is_active is False


@pytest.mark.asyncio
async def test_password_limit_counts_bytes(client: AsyncClient):
    # 36 two-byte characters sit exactly on bcrypt's 72-byte limit
    response = await register(client, "accents@example.com", password="é" * 36)
    assert response.status_code == 201
