"""
Role endpoints - the fully worked workshop example (GET/POST, plus update/delete exercises).
Challenge: Input validation before the service, consistent envelopes, clear status codes.
Design: Thin controller; service layer holds business logic and returns ServiceResult.
"""

from fastapi import APIRouter, Request, Response, status

from taskapi.api.responses import invalid_id_response, not_found_response, service_error_response
from taskapi.core.dependencies import RoleServiceDep
from taskapi.core.logging import get_logger
from taskapi.schemas.common import ApiResponse
from taskapi.schemas.role import RoleCreate, RoleRead, RoleStatistics, RoleUpdate

router = APIRouter()
logger = get_logger(__name__)


@router.get("/getAll", response_model=ApiResponse[list[RoleRead]])
async def get_all_roles(svc: RoleServiceDep):
    logger.info("Request to list all roles")
    roles = await svc.list_roles()
    return ApiResponse.ok(roles, f"Retrieved {len(roles)} roles")


@router.get("/getById/{id}", response_model=ApiResponse[RoleRead])
async def get_role_by_id(svc: RoleServiceDep, id: int):
    """404 when missing, 400 for non-positive ids (rejected before any query)."""
    if id <= 0:
        return invalid_id_response("role", id)
    logger.info("Request for role", role_id=id)
    role = await svc.get_role(id)
    if role is None:
        return not_found_response("role", id)
    return ApiResponse.ok(role, f"Role '{role.name}' retrieved")


@router.get("/getStatistics", response_model=ApiResponse[RoleStatistics])
async def get_role_statistics(svc: RoleServiceDep):
    logger.info("Request for role statistics")
    stats = await svc.get_statistics()
    return ApiResponse.ok(stats, "Role statistics retrieved")


@router.post("/create", response_model=ApiResponse[RoleRead], status_code=status.HTTP_201_CREATED)
async def create_role(svc: RoleServiceDep, data: RoleCreate, request: Request, response: Response):
    """201 with Location pointing at getById; 409 when the name is taken."""
    result = await svc.create_role(data.name)
    if not result.ok:
        return service_error_response(result.error)
    role = result.value
    response.headers["Location"] = str(request.url_for("get_role_by_id", id=role.id))
    return ApiResponse.ok(role, "Role created")


@router.put("/update/{id}", response_model=ApiResponse[RoleRead])
async def update_role(svc: RoleServiceDep, id: int, data: RoleUpdate):
    """Exercise: answers 501 until reference solutions are enabled."""
    result = await svc.update_role(id, data.name)
    if not result.ok:
        return service_error_response(result.error)
    return ApiResponse.ok(result.value, "Role updated")


@router.delete("/delete/{id}", response_model=ApiResponse[None])
async def delete_role(svc: RoleServiceDep, id: int):
    """Exercise: answers 501 until reference solutions are enabled."""
    result = await svc.delete_role(id)
    if not result.ok:
        return service_error_response(result.error)
    return ApiResponse.ok(None, "Role deleted")
