from __future__ import annotations

from app.api.routes.health import router as health_router
from app.api.routes.yunhei import router as yunhei_router

__all__ = ["health_router", "yunhei_router"]
