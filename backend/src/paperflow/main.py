"""PaperFlow Backend - Main FastAPI Application

Examination paper moderation workflow.

This module creates and configures the FastAPI application, including:
- Papers API and realtime change feed
- Middleware (request ID correlation, CORS)
- Exception handlers mapping workflow errors to status codes
- Health and observability endpoints
- Static serving of locally stored attachments
"""

import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Dict, Optional

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from sqlalchemy.exc import SQLAlchemyError

from .config import Settings, get_settings
from .database import init_db
from .domain.papers.errors import PaperWorkflowError
from .observability.logging_config import configure_logging
from .observability.middleware import RequestIDMiddleware
from .observability.router import router as observability_router
from .papers.router import router as papers_router
from .realtime.router import router as realtime_router

logger = logging.getLogger(__name__)

API_PREFIX = "/api/v1"

ERROR_STATUS_CODES: Dict[str, int] = {
    "validation_error": status.HTTP_422_UNPROCESSABLE_ENTITY,
    "not_found": status.HTTP_404_NOT_FOUND,
    "authorization_error": status.HTTP_403_FORBIDDEN,
    "invalid_transition": status.HTTP_409_CONFLICT,
    "storage_error": status.HTTP_503_SERVICE_UNAVAILABLE,
}


async def workflow_exception_handler(request: Request, exc: PaperWorkflowError) -> JSONResponse:
    """Turn a workflow error into a response carrying its kind and message."""
    status_code = ERROR_STATUS_CODES.get(exc.kind, status.HTTP_400_BAD_REQUEST)
    if status_code >= 500:
        logger.error(f"{exc.kind} on {request.method} {request.url.path}: {exc.message}")
    else:
        logger.info(f"{exc.kind} on {request.method} {request.url.path}: {exc.message}")
    return JSONResponse(status_code=status_code, content=exc.to_dict())


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Handle request validation errors with field-level details."""
    logger.warning(f"Validation error on {request.method} {request.url.path}")
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={
            "error": "validation_error",
            "message": "Request validation failed",
            "details": jsonable_encoder(exc.errors()),
        },
    )


async def database_exception_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    """Log the full database error, return a generic message."""
    logger.error(f"Database error on {request.method} {request.url.path}", exc_info=exc)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "error": "database_error",
            "message": "A database error occurred. Please try again later.",
        },
    )


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error(f"Unhandled exception on {request.method} {request.url.path}", exc_info=exc)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "error": "internal_error",
            "message": "An unexpected error occurred. Please try again later.",
        },
    )


def create_app(settings: Optional[Settings] = None, create_tables: bool = True) -> FastAPI:
    """Build the application.

    Args:
        settings: Settings to use (default: cached environment settings)
        create_tables: Create missing tables on startup
    """
    settings = settings or get_settings()
    configure_logging(level=settings.LOG_LEVEL, json_format=settings.LOG_JSON)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("PaperFlow API starting up...")
        logger.info(f"Environment: {settings.ENV}, storage backend: {settings.STORAGE_BACKEND}")
        if create_tables:
            init_db()
        yield
        logger.info("PaperFlow API shutting down...")

    app = FastAPI(
        title="PaperFlow API",
        description="Examination paper moderation and approval workflow",
        version="0.1.0",
        docs_url=None if settings.is_production else "/docs",
        redoc_url=None if settings.is_production else "/redoc",
        openapi_url=None if settings.is_production else "/openapi.json",
        lifespan=lifespan,
    )

    # Request ID Middleware (must be first for proper correlation)
    app.add_middleware(RequestIDMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID"],
    )

    app.add_exception_handler(PaperWorkflowError, workflow_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(SQLAlchemyError, database_exception_handler)
    app.add_exception_handler(Exception, generic_exception_handler)

    app.include_router(papers_router, prefix=API_PREFIX)
    app.include_router(realtime_router)
    app.include_router(observability_router)

    if settings.STORAGE_BACKEND.lower() == "local":
        upload_dir = Path(settings.UPLOAD_DIR)
        upload_dir.mkdir(parents=True, exist_ok=True)
        app.mount(
            "/" + settings.UPLOAD_URL_PREFIX.strip("/"),
            StaticFiles(directory=str(upload_dir)),
            name="attachments",
        )

    @app.get("/", include_in_schema=False)
    def root():
        return {"name": "PaperFlow API", "version": "0.1.0", "docs": app.docs_url}

    return app


app = create_app()
