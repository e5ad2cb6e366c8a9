"""Application factory for FastAPI app.

Centralizes app construction (metadata, middleware, handlers, routers,
lifespan) so tests and the ASGI entrypoint build the app the same way.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import AsyncIterator

from fastapi import FastAPI

from app.api.routes import health_router, yunhei_router
from app.api.routes.yunhei import close_yunhei_client
from app.core.config import settings
from app.core.exception_handlers import setup_exception_handlers
from app.core.logging import configure_logging
from app.core.middleware import request_id_middleware
from app.core.openapi import apply_openapi_customizations
from app.core.rate_limit import run_periodic_reset
from app.utils.masking import mask_secret

logger = logging.getLogger(__name__)


@contextlib.asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Start the rate limit reset timer; release resources on shutdown."""
    reset_task: asyncio.Task | None = None
    if settings.app.rate_limit_enabled:
        reset_task = asyncio.create_task(run_periodic_reset())

    logger.debug(
        "yunhei.config_loaded",
        extra={
            "endpoint": settings.yunhei.endpoint,
            "rate_limit": settings.app.rate_limit_requests,
            "rate_limit_window_s": settings.app.rate_limit_window_seconds,
            "masked_key": mask_secret(settings.yunhei.api_key),
        },
    )
    try:
        yield
    finally:
        if reset_task is not None:
            reset_task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await reset_task
        await close_yunhei_client()
        logger.info("yunhei.shutdown")


def create_app() -> FastAPI:
    """Create and configure the FastAPI application instance.

    Returns:
        Configured FastAPI app with middleware, handlers, routers and docs.
    """
    # Logging first so subsequent init logs are formatted as desired
    configure_logging(settings.log)

    app = FastAPI(
        title="Yunhei Lookup API",
        description=(
            "Looks identifiers up in the Yunhei cloud blacklist and returns a "
            "human-readable summary: bound accounts, activity, and blacklist "
            "status. Requires X-API-Key and rate-limits each caller "
            "(X-User-ID) per minute."
        ),
        version="0.1.0",
        lifespan=lifespan,
        license_info={
            "name": "MIT License",
            "url": "https://opensource.org/licenses/MIT",
        },
    )

    app.middleware("http")(request_id_middleware)

    setup_exception_handlers(app)

    app.include_router(yunhei_router, prefix="/v1")
    app.include_router(health_router)

    # OpenAPI customizations (security scheme, tags, exemptions)
    apply_openapi_customizations(app)

    return app
