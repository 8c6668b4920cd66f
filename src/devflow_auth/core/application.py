"""Application factory for creating and configuring the FastAPI application.

This module provides a factory function to create a properly configured FastAPI application
with all necessary middleware, exception handlers, and routers registered.
"""

from fastapi import FastAPI

from devflow_auth.adapters.api import api_router
from devflow_auth.core.config.settings import settings
from devflow_auth.core.handlers import register_exception_handlers
from devflow_auth.core.lifecycle import create_lifespan_manager
from devflow_auth.core.middleware import configure_middleware


def create_application() -> FastAPI:
    """Create and configure the FastAPI application.

    Returns:
        FastAPI: The configured FastAPI application instance
    """
    app = FastAPI(
        title=settings.PROJECT_NAME,
        version=settings.VERSION,
        description="Gatekeeping pipeline in front of the DevFlow authentication handler.",
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
        lifespan=create_lifespan_manager(),
    )

    configure_middleware(app)

    register_exception_handlers(app)

    app.include_router(api_router, prefix="/api")

    return app
