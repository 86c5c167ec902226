"""
Envelope helpers and exception handlers for the HTTP boundary.
Challenge: Every response - including validation errors, auth failures and crashes -
has the same {success, message, errors, data} shape, and internals never leak.
"""

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from taskapi.core.errors import StorageError
from taskapi.core.logging import get_logger
from taskapi.schemas.common import ApiResponse
from taskapi.services.results import ServiceError, ServiceErrorKind

logger = get_logger(__name__)

ERROR_STATUS: dict[ServiceErrorKind, int] = {
    ServiceErrorKind.VALIDATION: status.HTTP_400_BAD_REQUEST,
    ServiceErrorKind.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ServiceErrorKind.CONFLICT: status.HTTP_409_CONFLICT,
    ServiceErrorKind.NOT_IMPLEMENTED: status.HTTP_501_NOT_IMPLEMENTED,
}

INTERNAL_ERROR_MESSAGE = "Internal server error"
INTERNAL_ERROR_DETAIL = "Contact the system administrator"


def envelope_error(
    status_code: int,
    message: str,
    errors: list[str] | str | None = None,
    headers: dict[str, str] | None = None,
) -> JSONResponse:
    body = ApiResponse[None].fail(message, errors)
    return JSONResponse(status_code=status_code, content=jsonable_encoder(body), headers=headers)


def service_error_response(error: ServiceError) -> JSONResponse:
    """Translate a service outcome to its HTTP status via ERROR_STATUS."""
    return envelope_error(ERROR_STATUS[error.kind], error.message, error.detail)


def invalid_id_response(resource: str, id: int) -> JSONResponse:
    logger.warning("Invalid id", resource=resource, id=id)
    return envelope_error(
        status.HTTP_400_BAD_REQUEST, f"Invalid {resource} id", "The id must be a number greater than 0"
    )


def not_found_response(resource: str, id: int) -> JSONResponse:
    logger.warning("Resource not found", resource=resource, id=id)
    return envelope_error(
        status.HTTP_404_NOT_FOUND, f"{resource.capitalize()} not found", f"No {resource} exists with id {id}"
    )


def _validation_messages(exc: RequestValidationError) -> list[str]:
    messages = []
    for err in exc.errors():
        field = ".".join(str(part) for part in err.get("loc", ()) if part not in ("body", "path", "query"))
        messages.append(f"{field}: {err['msg']}" if field else err["msg"])
    return messages


def register_exception_handlers(app: FastAPI) -> None:
    """Wire envelope rendering for framework, storage and unexpected errors."""

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        messages = _validation_messages(exc)
        logger.warning("Invalid input data", path=request.url.path, errors=messages)
        return envelope_error(status.HTTP_400_BAD_REQUEST, "Invalid input data", messages)

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        return envelope_error(exc.status_code, str(exc.detail), headers=getattr(exc, "headers", None))

    @app.exception_handler(StorageError)
    async def storage_exception_handler(request: Request, exc: StorageError):
        logger.error(
            "Storage failure",
            path=request.url.path,
            method=request.method,
            error=str(exc),
            exc_type=type(exc).__name__,
            exc_info=exc,
        )
        return envelope_error(status.HTTP_500_INTERNAL_SERVER_ERROR, INTERNAL_ERROR_MESSAGE, INTERNAL_ERROR_DETAIL)

    # Last resort for errors raised outside the request logging middleware
    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        return unhandled_error_response(request, exc)


def unhandled_error_response(request: Request, exc: Exception) -> JSONResponse:
    """Log the crash and answer with the generic 500 envelope."""
    logger.error(
        "Unhandled exception",
        path=request.url.path,
        method=request.method,
        error=str(exc),
        exc_type=type(exc).__name__,
        exc_info=exc,
    )
    return envelope_error(status.HTTP_500_INTERNAL_SERVER_ERROR, INTERNAL_ERROR_MESSAGE, INTERNAL_ERROR_DETAIL)
