from fastapi import APIRouter

from api.config import settings
from ingest.config import settings as hotspot_settings

internal_router = APIRouter(tags=["internal"])


@internal_router.get("/health")
async def healthcheck() -> dict:
    """Liveness check for the scheduler and the container platform."""
    return {"status": "ok"}


@internal_router.get("/version")
async def version() -> dict:
    """Deployment metadata plus the feed and timezone this instance polls with."""
    return {
        "name": settings.app_name,
        "version": settings.version,
        "git_commit": settings.git_commit,
        "environment": settings.environment,
        "sources": hotspot_settings.sources,
        "timezone": hotspot_settings.timezone,
    }
