"""
Her Homes API - FastAPI application entry point.

Serves the listings search used by the browse UI and proxies listing
detail, account, financing, favorites, contact and developer property
management calls to the Her Homes backend.
"""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from herhomes.api import router
from herhomes.config import Settings, get_settings
from herhomes.services.listings_service import HerHomesService

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.

    Creates the upstream service on startup and closes its HTTP client
    on shutdown.
    """
    settings: Settings = app.state.settings
    logger.info("Starting %s v%s", settings.app_name, settings.app_version)

    if not getattr(app.state, "service", None):
        app.state.service = HerHomesService(settings)
    logger.info("Using listings API at %s", settings.listings_api_base_url)

    yield

    await app.state.service.close()
    logger.info("Shutting down %s", settings.app_name)


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        settings: Settings to use instead of the environment-loaded ones.

    Returns:
        Configured FastAPI application instance.
    """
    settings = settings or get_settings()

    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        description=(
            "Listings search and account pass-through API for the Her Homes "
            "marketing site and dashboards."
        ),
        debug=settings.debug,
        lifespan=lifespan,
    )
    app.state.settings = settings

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(router)

    @app.get("/health", tags=["health"])
    async def health_check() -> dict:
        """
        Health check endpoint.

        Returns basic application status for monitoring and load balancers.
        """
        return {
            "status": "healthy",
            "app": settings.app_name,
            "version": settings.app_version,
        }

    @app.get("/", tags=["root"])
    async def root() -> dict:
        """Root endpoint with API information."""
        return {
            "name": settings.app_name,
            "version": settings.app_version,
            "docs": "/docs",
            "health": "/health",
        }

    return app


# Create the application instance
app = create_app()
