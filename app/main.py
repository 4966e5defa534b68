"""Zabbix deviation service - FastAPI application."""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI

from deviation.config import get_settings
from app.api import deviation_router, health_router
from app.api.routes import set_configuration, set_reader


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler.

    Configuration and the API session are resolved lazily on the first
    request; shutdown drops them so a restart logs in again.
    """
    settings = get_settings()
    logging.basicConfig(level=logging.DEBUG if settings.debug else logging.INFO)

    yield

    set_reader(None)
    set_configuration(None)


def create_app() -> FastAPI:
    """Create and configure the FastAPI application.

    Returns:
        Configured FastAPI application instance
    """
    settings = get_settings()

    app = FastAPI(
        title="Zabbix Deviation Service",
        description=(
            "Discovers Zabbix items and computes their week-over-week deviation, "
            "returning trapper ingestion lines. Nothing is written back to Zabbix."
        ),
        version=settings.service_version,
        lifespan=lifespan,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
    )

    # Include routers
    app.include_router(health_router)
    app.include_router(deviation_router, prefix=settings.api_prefix)

    return app


# Application instance
app = create_app()


@app.get("/")
async def root() -> dict:
    """Root endpoint with service information."""
    settings = get_settings()
    return {
        "service": settings.service_name,
        "version": settings.service_version,
        "algorithm_version": settings.algorithm_version,
        "description": "Week-over-week deviation of Zabbix items",
        "status": "operational",
    }
