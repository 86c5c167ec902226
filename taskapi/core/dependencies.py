"""
FastAPI dependencies - injection for services and auth (SOLID: Dependency Inversion).
Challenge: Reusable auth, consistent error responses, one place that wires services.
"""

from typing import Annotated

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from taskapi.config import get_settings
from taskapi.core.logging import get_logger
from taskapi.core.security import decode_access_token, token_is_revoked
from taskapi.db.session import DbSession
from taskapi.db.repositories.role_repository import RoleRepository
from taskapi.db.repositories.user_repository import UserRepository
from taskapi.services.role_service import RoleService
from taskapi.services.user_service import UserService

security = HTTPBearer(auto_error=False)


def get_role_service(session: DbSession) -> RoleService:
    """Factory for service with repository injection (Dependency Inversion)."""
    settings = get_settings()
    return RoleService(
        RoleRepository(session),
        get_logger("taskapi.services.role_service"),
        solutions_enabled=settings.reference_solutions_enabled,
        default_role_id=settings.default_role_id,
    )


def get_user_service(session: DbSession) -> UserService:
    settings = get_settings()
    return UserService(
        UserRepository(session),
        RoleRepository(session),
        get_logger("taskapi.services.user_service"),
        solutions_enabled=settings.reference_solutions_enabled,
        default_role_id=settings.default_role_id,
    )


RoleServiceDep = Annotated[RoleService, Depends(get_role_service)]
UserServiceDep = Annotated[UserService, Depends(get_user_service)]


async def get_current_user_id(
    session: DbSession,
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
) -> int:
    """Resolve JWT to user id. Raises 401 if missing, invalid, or issued before the last logout."""
    if not credentials:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    payload = decode_access_token(credentials.credentials)
    if not payload or "sub" not in payload:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
        )
    repo = UserRepository(session)
    user = await repo.get_by_id(int(payload["sub"]))
    if not user or not user.is_active:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="User not found or inactive")
    if token_is_revoked(payload, user.last_token_issue_at):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Token has been revoked")
    return user.id


CurrentUserId = Annotated[int, Depends(get_current_user_id)]
