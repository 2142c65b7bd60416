"""
FastAPI Main Application
ASGI entry point: `uvicorn claimportal.api.main:app`
Source: https://fastapi.tiangolo.com/
"""

from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from claimportal.api.config import settings
from claimportal.api.exception_handlers import register_exception_handlers
from claimportal.api.routes import (
    appointments,
    auth,
    claims,
    documents,
    health,
    patient_reports,
    patients,
    payments,
    uploads,
    users,
)
from claimportal.db.connection import close_db_connection
from claimportal.utils.logging import get_logger, setup_logging

API_VERSION = "1.0.0"

ROUTERS = (
    health.router,
    auth.router,
    users.router,
    appointments.router,
    patients.router,
    patient_reports.router,
    claims.router,
    payments.router,
    documents.router,
    uploads.router,
)

setup_logging(level=settings.LOG_LEVEL, log_file=settings.LOG_FILE, json_logs=settings.is_production)
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):  # type: ignore[no-untyped-def]  # noqa: ARG001
    """
    Startup and shutdown hooks.

    Source: https://fastapi.tiangolo.com/advanced/events/
    """
    logger.info(
        f"{settings.APP_NAME} {API_VERSION} starting ({settings.ENVIRONMENT}, debug={settings.DEBUG})"
    )
    yield
    await close_db_connection()
    logger.info(f"{settings.APP_NAME} stopped")


def create_app() -> FastAPI:
    """Build the application with middleware, error handlers and routers."""
    # Interactive docs are not served in production
    docs_enabled = not settings.is_production

    application = FastAPI(
        title=settings.APP_NAME,
        description="Insurance claims portal for patients, doctors, insurers and banks",
        version=API_VERSION,
        docs_url="/docs" if docs_enabled else None,
        redoc_url="/redoc" if docs_enabled else None,
        openapi_url="/openapi.json" if docs_enabled else None,
        lifespan=lifespan,
    )

    # Source: https://fastapi.tiangolo.com/tutorial/cors/
    application.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=settings.CORS_CREDENTIALS,
        allow_methods=settings.CORS_METHODS,
        allow_headers=settings.CORS_HEADERS,
    )
    register_exception_handlers(application)

    for router in ROUTERS:
        application.include_router(router)

    @application.get("/")
    async def root() -> dict[str, Any]:
        """Service name, version and where the docs live."""
        return {
            "name": settings.APP_NAME,
            "version": API_VERSION,
            "environment": settings.ENVIRONMENT,
            "docs": "/docs" if docs_enabled else "disabled",
        }

    return application


app = create_app()
