"""
FastAPI Application Setup.

Main application factory for the WorkerMap hub: WebSocket channel for
viewers plus read-only inspection endpoints.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI
from fastapi.responses import JSONResponse

from workermap import __version__
from workermap.api.middleware.cors import add_cors_middleware
from workermap.api.middleware.logging import RequestLoggingMiddleware
from workermap.api.routes import health, metrics, realtime, workers
from workermap.api.schemas.exceptions import APIException
from workermap.core.config import HubSettings, get_settings
from workermap.hub.core import RegistryHub

logger = logging.getLogger(__name__)


def configure_logging(level: str = "INFO") -> None:
    """Configure root logging for the service."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


def create_app(settings: HubSettings | None = None, *, title: str = "WorkerMap Hub") -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        settings: Hub settings (default: read from the environment)
        title: Application title for OpenAPI docs

    Returns:
        Configured FastAPI application instance
    """
    settings = settings or get_settings()
    configure_logging(settings.log_level)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        """Load the registry on startup; flush pending writes on shutdown."""
        logger.info(f"WorkerMap hub starting up (version {__version__})")
        hub = RegistryHub(settings)
        await hub.start()
        app.state.hub = hub

        yield

        logger.info("WorkerMap hub shutting down...")
        await hub.close()

    app = FastAPI(
        title=title,
        description="Shared worker registry with real-time fan-out",
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )
    app.state.settings = settings

    app.add_middleware(RequestLoggingMiddleware)
    add_cors_middleware(app, allow_origins=settings.cors_origins)

    app.include_router(health.router, prefix="/health", tags=["Health"])
    app.include_router(workers.router, prefix="/api/v1/workers", tags=["Workers"])
    app.include_router(metrics.router, prefix="/metrics", tags=["Metrics"])
    app.include_router(realtime.router, tags=["Realtime"])

    @app.exception_handler(APIException)
    async def api_exception_handler(request, exc: APIException) -> JSONResponse:
        """Handle API exceptions with proper error responses."""
        return JSONResponse(
            status_code=exc.status_code,
            content={
                "error": {
                    "type": exc.error_type,
                    "message": exc.message,
                    "detail": exc.detail,
                }
            },
        )

    @app.exception_handler(Exception)
    async def general_exception_handler(request, exc: Exception) -> JSONResponse:
        """Handle unexpected exceptions."""
        logger.exception(f"Unhandled exception: {exc}")
        return JSONResponse(
            status_code=500,
            content={
                "error": {
                    "type": "internal_error",
                    "message": "An unexpected error occurred",
                    "detail": str(exc) if logger.isEnabledFor(logging.DEBUG) else None,
                }
            },
        )

    @app.get("/", tags=["Root"])
    async def root() -> dict[str, object]:
        """Root endpoint with service information."""
        return {
            "name": "WorkerMap Hub",
            "version": __version__,
            "status": "operational",
            "realtime": "/ws",
            "workers": "/api/v1/workers",
            "health": "/health",
            "metrics": "/metrics",
        }

    return app
