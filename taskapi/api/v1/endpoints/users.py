"""
User endpoints - listing, lookup and registration (RESTful API).
Challenge: Email uniqueness, password never echoed back, clear status codes.
"""

from fastapi import APIRouter, Query, Request, Response, status

from taskapi.api.responses import envelope_error, invalid_id_response, not_found_response, service_error_response
from taskapi.core.dependencies import UserServiceDep
from taskapi.core.logging import get_logger
from taskapi.schemas.common import ApiResponse
from taskapi.schemas.user import UserCreate, UserRead, UserUpdate

router = APIRouter()
logger = get_logger(__name__)


@router.get("/getAll", response_model=ApiResponse[list[UserRead]])
async def get_all_users(svc: UserServiceDep):
    """Active users only."""
    users = await svc.list_users()
    return ApiResponse.ok(users, f"Retrieved {len(users)} users")


@router.get("/getById/{id}", response_model=ApiResponse[UserRead])
async def get_user_by_id(svc: UserServiceDep, id: int):
    if id <= 0:
        return invalid_id_response("user", id)
    user = await svc.get_user(id)
    if user is None:
        return not_found_response("user", id)
    return ApiResponse.ok(user, "User retrieved")


@router.get("/getByEmail", response_model=ApiResponse[UserRead])
async def get_user_by_email(svc: UserServiceDep, email: str = Query(..., min_length=1)):
    user = await svc.get_user_by_email(email)
    if user is None:
        return envelope_error(status.HTTP_404_NOT_FOUND, "User not found", f"No user registered with {email}")
    return ApiResponse.ok(user, "User retrieved")


@router.post("/create", response_model=ApiResponse[UserRead], status_code=status.HTTP_201_CREATED)
async def create_user(svc: UserServiceDep, data: UserCreate, request: Request, response: Response):
    """Register a user. Returns the user without any password material."""
    if await svc.email_exists(data.email):
        logger.warning("Registration with existing email", email=data.email)
        return envelope_error(status.HTTP_409_CONFLICT, "Data conflict", "Email is already in use")
    result = await svc.create_user(data.email, data.password, data.full_name, role_id=data.role_id)
    if not result.ok:
        return service_error_response(result.error)
    user = result.value
    response.headers["Location"] = str(request.url_for("get_user_by_id", id=user.id))
    return ApiResponse.ok(user, "User created")


@router.put("/update/{id}", response_model=ApiResponse[UserRead])
async def update_user(svc: UserServiceDep, id: int, data: UserUpdate):
    """Exercise: answers 501 until reference solutions are enabled."""
    result = await svc.update_user(id, data)
    if not result.ok:
        return service_error_response(result.error)
    return ApiResponse.ok(result.value, "User updated")


@router.delete("/delete/{id}", response_model=ApiResponse[None])
async def delete_user(svc: UserServiceDep, id: int):
    """Exercise: soft delete; answers 501 until reference solutions are enabled."""
    result = await svc.delete_user(id)
    if not result.ok:
        return service_error_response(result.error)
    return ApiResponse.ok(None, "User deactivated")
