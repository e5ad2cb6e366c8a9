"""Rate limiting dependency for FastAPI routes.

This module wires the rate limiting adapter into the HTTP layer.

Rate limiting strategy:
- Fixed window per caller, cleared wholesale every window (default 60s).
- The caller is identified by the X-User-ID header; requests without one
  share the "system" bucket.
- A background task resets the counters on a timer so memory does not
  grow with the number of distinct callers.
"""

from __future__ import annotations

import asyncio
import hashlib
import logging
from typing import Annotated, Callable

from fastapi import Depends, Header, HTTPException, Query, status

from app.adapters.rate_limit.base import AbstractRateLimiter
from app.adapters.rate_limit.in_memory import InMemoryFixedWindowRateLimiter
from app.core.config import settings
from app.services.yunhei_service import normalize_query_id

logger = logging.getLogger(__name__)

SYSTEM_CALLER = "system"

_limiter: AbstractRateLimiter | None = None
_limiter_config: tuple[int, int] | None = None


def get_rate_limiter() -> AbstractRateLimiter:
    """Return a process-wide rate limiter instance.

    The instance is cached in-module to preserve state across requests.
    If configuration changes (primarily in tests), the limiter is rebuilt.

    Returns:
        AbstractRateLimiter: Configured limiter instance.
    """

    global _limiter, _limiter_config

    config = (
        settings.app.rate_limit_requests,
        settings.app.rate_limit_window_seconds,
    )

    if _limiter is None or _limiter_config != config:
        _limiter = InMemoryFixedWindowRateLimiter(
            limit=settings.app.rate_limit_requests,
            window_seconds=settings.app.rate_limit_window_seconds,
        )
        _limiter_config = config

    return _limiter


def build_caller_key(user_id: str | None) -> str:
    """Build the limiter key for a caller.

    Args:
        user_id: Value of the X-User-ID header, if any.

    Returns:
        str: Namespaced limiter key.
    """

    user_id = (user_id or "").strip()
    if user_id:
        return f"user:{user_id}"
    return SYSTEM_CALLER


def _hash_limiter_key(key: str) -> str:
    """Hash the rate limit key for logging without exposing caller ids."""
    return hashlib.sha256(key.encode()).hexdigest()[:16]


async def get_query_id(
    query_id: Annotated[
        str | None,
        Query(alias="id", description="Identifier to look up in Yunhei"),
    ] = None,
) -> str:
    """FastAPI dependency returning the validated lookup identifier.

    Raises:
        ValidationAppError: If the identifier is missing or too long.
    """
    return normalize_query_id(query_id)


async def enforce_rate_limit(
    query_id: Annotated[str, Depends(get_query_id)],
    x_user_id: Annotated[str | None, Header(alias="X-User-ID")] = None,
) -> None:
    """FastAPI dependency enforcing the per-caller lookup budget.

    Depends on ``get_query_id`` so a missing identifier is reported before
    the request is counted.

    Args:
        query_id: Validated lookup identifier.
        x_user_id: Caller id from the X-User-ID header.

    Raises:
        HTTPException: 429 Too Many Requests when the budget is exhausted.
    """

    if not settings.app.rate_limit_enabled:
        return

    limiter = get_rate_limiter()
    key = build_caller_key(x_user_id)
    log_context = {
        "query_id": query_id,
        "caller_type": "user" if key != SYSTEM_CALLER else SYSTEM_CALLER,
        "key_hash": _hash_limiter_key(key),
    }

    result = limiter.consume(key)
    if result.allowed:
        logger.debug(
            "rate_limit.allowed",
            extra={
                **log_context,
                "limit": result.limit,
                "remaining": result.remaining,
            },
        )
        return

    retry_after = result.retry_after_seconds or 0
    logger.warning(
        "rate_limit.exceeded",
        extra={
            **log_context,
            "count": result.count,
            "limit": result.limit,
            "window_s": settings.app.rate_limit_window_seconds,
            "retry_after_s": retry_after,
        },
    )

    headers: dict[str, str] = {}
    if settings.app.rate_limit_include_headers:
        headers["Retry-After"] = str(retry_after)
        headers["X-RateLimit-Limit"] = str(result.limit)
        headers["X-RateLimit-Remaining"] = str(result.remaining)
        headers["X-RateLimit-Reset"] = str(result.reset_at)

    raise HTTPException(
        status_code=status.HTTP_429_TOO_MANY_REQUESTS,
        detail=f"查询操作过于频繁 ({query_id})，请稍后再试",
        headers=headers or None,
    )


async def run_periodic_reset(
    limiter_provider: Callable[[], AbstractRateLimiter] = get_rate_limiter,
    interval_seconds: float | None = None,
) -> None:
    """Clear all rate limit counters every ``interval_seconds`` until cancelled.

    Args:
        limiter_provider: Callable returning the limiter to reset; looked up
            on every tick so a rebuilt limiter is picked up.
        interval_seconds: Reset period; defaults to the configured window.
    """
    interval = interval_seconds or settings.app.rate_limit_window_seconds
    while True:
        await asyncio.sleep(interval)
        limiter_provider().reset()
        logger.debug("rate_limit.reset", extra={"interval_s": interval})
