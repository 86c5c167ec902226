"""
Auth endpoints - login issues a JWT, logout revokes every token issued before it.
"""

from fastapi import APIRouter, HTTPException, status

from taskapi.api.responses import not_found_response
from taskapi.core.dependencies import CurrentUserId, UserServiceDep
from taskapi.core.logging import get_logger
from taskapi.core.security import create_access_token, utcnow
from taskapi.schemas.auth import LoginRequest, TokenResponse
from taskapi.schemas.common import ApiResponse
from taskapi.schemas.user import UserRead

router = APIRouter()
logger = get_logger(__name__)


@router.post("/login", response_model=ApiResponse[TokenResponse])
async def login(svc: UserServiceDep, data: LoginRequest):
    """Authenticate and return JWT."""
    user = await svc.authenticate(data.email, data.password)
    if user is None:
        logger.warning("Failed login", email=data.email)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid email or password",
        )
    token = create_access_token(user.id)
    logger.info("User logged in", user_id=user.id)
    return ApiResponse.ok(TokenResponse(access_token=token), "Login successful")


@router.post("/logout", response_model=ApiResponse[None])
async def logout(svc: UserServiceDep, user_id: CurrentUserId):
    """Bump last_token_issue_at; tokens issued earlier stop validating."""
    updated = await svc.update_user_token_timestamp(user_id, utcnow())
    if not updated:
        logger.warning("Logout did not update token timestamp", user_id=user_id)
    return ApiResponse.ok(None, "Logout successful")


@router.get("/me", response_model=ApiResponse[UserRead])
async def me(svc: UserServiceDep, user_id: CurrentUserId):
    user = await svc.get_user(user_id)
    if user is None:
        return not_found_response("user", user_id)
    return ApiResponse.ok(user, "Current user retrieved")
