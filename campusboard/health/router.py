"""Health check endpoints."""

from fastapi import APIRouter, Request

from campusboard.config import get_settings


router = APIRouter(prefix="/health", tags=["health"])


@router.get("/live")
async def liveness() -> dict[str, str]:
    """Liveness probe - checks if the application is running."""
    return {"status": "alive"}


@router.get("/ready")
async def readiness(request: Request) -> dict[str, str | bool]:
    """Readiness probe - checks if the board services are wired."""
    settings = get_settings()
    ready = getattr(request.app.state, "post_service", None) is not None
    return {
        "status": "ready" if ready else "starting",
        "environment": settings.environment,
        "storage_backend": settings.storage_backend,
        "cache_enabled": getattr(request.app.state, "redis", None) is not None,
        "debug": settings.debug,
    }


@router.get("")
async def health() -> dict[str, str]:
    """General health check endpoint."""
    settings = get_settings()
    return {
        "status": "healthy",
        "app_name": settings.app_name,
        "version": settings.app_version,
        "environment": settings.environment,
    }
