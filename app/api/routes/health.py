from __future__ import annotations

from fastapi import APIRouter

from app.core.config import settings

router = APIRouter(tags=["Health"])


@router.get("/health")
def health_check() -> dict:
    """Liveness check; exempt from authentication and rate limiting.

    Returns:
        dict: ``status`` set to "ok" plus the active rate limit policy.
    """

    return {
        "status": "ok",
        "rate_limit": {
            "enabled": settings.app.rate_limit_enabled,
            "requests": settings.app.rate_limit_requests,
            "window_seconds": settings.app.rate_limit_window_seconds,
        },
    }
