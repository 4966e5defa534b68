"""API module."""

from app.api.health import router as health_router
from app.api.routes import router as deviation_router

__all__ = ["deviation_router", "health_router"]
