"""
Application factory for FastAPI.

This module provides the create_app() function that creates and configures
the FastAPI application instance.
"""

import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from api.v1 import api_router
from app.routes import health_router, root_router
from core.config import settings
from core.lifespan import lifespan
from core.middleware import CorrelationIdMiddleware
from core.middleware.correlation import CORRELATION_HEADER

logger = logging.getLogger(__name__)


async def database_error_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    """Answer uncaught datastore failures with an opaque 500."""
    logger.error(
        f"Database error on {request.method} {request.url.path}: "
        f"{type(exc).__name__}: {exc}"
    )
    return JSONResponse(status_code=500, content={"detail": "Internal database error"})


def create_app() -> FastAPI:
    """
    Application factory function.

    Creates and configures the FastAPI application with middleware,
    exception handlers and routes.

    Returns:
        FastAPI: Configured FastAPI application instance
    """
    app = FastAPI(
        title=settings.api.app_name,
        version=settings.api.app_version,
        description="Tracks associate accommodation requests and seated shift occupancy",
        lifespan=lifespan,
        docs_url=f"{settings.api.api_prefix}/docs",
        redoc_url=f"{settings.api.api_prefix}/redoc",
        openapi_url=f"{settings.api.api_prefix}/openapi.json",
    )

    app.add_exception_handler(SQLAlchemyError, database_error_handler)

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors.origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PATCH", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "Accept", "Origin", "X-Requested-With", CORRELATION_HEADER],
        expose_headers=[CORRELATION_HEADER],
    )

    # Correlation id (added last so it wraps every other middleware)
    app.add_middleware(CorrelationIdMiddleware)

    # Include routers
    app.include_router(root_router)
    app.include_router(health_router)
    app.include_router(api_router, prefix=settings.api.api_prefix)

    return app
