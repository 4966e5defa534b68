"""Health check endpoints."""

from datetime import datetime, timezone

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from app.api import routes
from deviation.config import get_settings

router = APIRouter(tags=["Health"])


def _status(status: str, **extra: object) -> dict:
    return {
        "status": status,
        "service": get_settings().service_name,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        **extra,
    }


@router.get("/health")
async def health_check() -> dict:
    """Health check endpoint."""
    return _status("healthy")


@router.get("/ready")
async def readiness_check() -> JSONResponse:
    """Readiness probe endpoint.

    Ready once a run configuration is known, either set explicitly or
    through DEVIATION_CONFIG.
    """
    configured = routes._configuration is not None or bool(get_settings().config_path)
    return JSONResponse(
        status_code=200 if configured else 503,
        content=_status("ready" if configured else "unconfigured", configured=configured),
    )


@router.get("/live")
async def liveness_check() -> dict:
    """Liveness probe endpoint."""
    return _status("alive")
