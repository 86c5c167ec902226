"""
FastAPI application entry point.
Challenge: Mount routes, middleware (CORS, request logging, Prometheus), envelope error handlers.
"""

import time
import uuid
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from prometheus_client import make_asgi_app

from taskapi.api.responses import register_exception_handlers, unhandled_error_response
from taskapi.api.v1.router import api_router
from taskapi.config import get_settings
from taskapi.core.logging import bind_correlation_id, clear_context, configure_logging, get_logger
from taskapi.db.session import engine

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup: log the effective mode. Shutdown: release pooled connections."""
    settings = get_settings()
    logger.info(
        "Starting application",
        app=settings.app_name,
        reference_solutions=settings.reference_solutions_enabled,
    )
    yield
    await engine.dispose()


def create_app() -> FastAPI:
    settings = get_settings()
    configure_logging(settings)
    app = FastAPI(
        title=settings.app_name,
        description="Workshop backend: role and user CRUD with uniform response envelopes.",
        version="1.0.0",
        lifespan=lifespan,
    )

    # CORS for frontend/API consumers
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def logging_middleware(request: Request, call_next):
        """Correlation id per request (from X-Correlation-ID or generated), start/finish logs."""
        correlation_id = request.headers.get("X-Correlation-ID", f"cid_{uuid.uuid4().hex[:12]}")
        bind_correlation_id(correlation_id)
        started = time.perf_counter()
        logger.info("Request started", method=request.method, path=request.url.path)
        try:
            try:
                response = await call_next(request)
            except Exception as exc:
                # Logged here, while the correlation id is still bound
                response = unhandled_error_response(request, exc)
            logger.info(
                "Request finished",
                method=request.method,
                path=request.url.path,
                status_code=response.status_code,
                duration_ms=round((time.perf_counter() - started) * 1000, 2),
            )
            response.headers["X-Correlation-ID"] = correlation_id
            return response
        finally:
            clear_context()

    register_exception_handlers(app)

    # Prometheus metrics at /metrics (monitoring & observability)
    metrics_app = make_asgi_app()
    app.mount("/metrics", metrics_app)

    app.include_router(api_router, prefix="/api")

    return app


app = create_app()
