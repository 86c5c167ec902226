"""
Health checks - for load balancers, Kubernetes, and monitoring.
Challenge: Fast liveness; readiness also proves the database answers.
"""

from fastapi import APIRouter, status
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from taskapi.api.responses import envelope_error
from taskapi.config import get_settings
from taskapi.core.logging import get_logger
from taskapi.db.session import DbSession
from taskapi.schemas.common import ApiResponse

router = APIRouter()
settings = get_settings()
logger = get_logger(__name__)


@router.get("")
async def health():
    """Liveness: is the process up?"""
    return ApiResponse.ok({"status": "ok", "app": settings.app_name}, "Service is up")


@router.get("/ready")
async def ready(session: DbSession):
    """Readiness: can accept traffic? (DB must answer a trivial query.)"""
    try:
        await session.execute(text("SELECT 1"))
    except (SQLAlchemyError, OSError) as exc:
        logger.warning("Database not reachable", error=str(exc))
        return envelope_error(status.HTTP_503_SERVICE_UNAVAILABLE, "Service not ready", "Database unavailable")
    return ApiResponse.ok({"status": "ready"}, "Service is ready")
