"""Health check endpoint — public, no auth required."""

from __future__ import annotations

from fastapi import APIRouter

from healthsync.dependencies import AppServices
from healthsync.models.base import utc_now

router = APIRouter(tags=["system"])


@router.get("/health")
async def health_check(services: AppServices) -> dict:
    """Liveness probe. Returns 200 if the API process is up.

    Also reports local sync state so a UI can render it without extra calls.
    """
    settings = services.settings
    last_sync = services.state.last_sync_at

    return {
        "status": "healthy",
        "version": settings.app_version,
        "environment": settings.environment,
        "health_store": services.store.DISPLAY_NAME,
        "health_access_granted": services.state.health_access_granted,
        "authenticated": services.auth.is_authenticated,
        "last_sync_at": last_sync.isoformat() if last_sync else None,
        "timestamp": utc_now().isoformat(),
    }
