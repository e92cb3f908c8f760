"""
Service Desk API - FastAPI application

Builds the app, mounts the routers under /api, and maps service errors to
``{"message": ...}`` JSON responses.

Run with:
    python -m servicedesk.main
"""

import logging
from contextlib import asynccontextmanager
from typing import Optional

import uvicorn
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from servicedesk import __version__
from servicedesk.exceptions import ServiceDeskError
from servicedesk.models.api import HealthCheckResponse
from servicedesk.models.domain import utcnow
from servicedesk.routes import routers
from servicedesk.services.container import ServiceContainer, get_container, reset_container
from servicedesk.utils.config import get_settings

logger = logging.getLogger(__name__)


def _validation_message(exc: RequestValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return "Invalid request"
    first = errors[0]
    location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    message = first.get("msg", "Invalid value")
    return f"{location}: {message}" if location else message


def create_app(container: Optional[ServiceContainer] = None) -> FastAPI:
    """
    Create the FastAPI application.

    Args:
        container: Prebuilt services (tests pass one backed by in-memory
            repositories); by default the global container from
            get_container(), reset on shutdown
    """
    owns_container = container is None
    container = container or get_container()
    settings = container.settings

    logging.basicConfig(
        level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info(f"Service Desk API {__version__} starting")
        yield
        if owns_container:
            reset_container()
        logger.info("Service Desk API stopped")

    app = FastAPI(
        title="Service Desk API",
        description="Projects, complaints, invoices and maintenance contracts for field service staff",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.container = container

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(ServiceDeskError)
    async def service_error_handler(request: Request, exc: ServiceDeskError):
        if exc.status_code >= 500:
            logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
        return JSONResponse(status_code=exc.status_code, content={"message": exc.message})

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        return JSONResponse(status_code=400, content={"message": _validation_message(exc)})

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        logger.exception(f"Unhandled error on {request.method} {request.url.path}")
        return JSONResponse(status_code=500, content={"message": str(exc) or "Internal server error"})

    for router in routers:
        app.include_router(router, prefix="/api")

    @app.get("/", tags=["system"])
    def root():
        return {"message": "Service Desk API is running", "version": __version__}

    @app.get("/health", response_model=HealthCheckResponse, tags=["system"])
    def health():
        database = container.database_status()
        status = "unhealthy" if database == "disconnected" else "healthy"
        return HealthCheckResponse(status=status, database=database, timestamp=utcnow())

    return app


if __name__ == "__main__":
    settings = get_settings()
    uvicorn.run(
        "servicedesk.main:create_app",
        factory=True,
        host=settings.API_HOST,
        port=settings.API_PORT,
    )
