"""Tests for the rate limit dependency helpers and the periodic reset task."""

import asyncio
from unittest.mock import Mock, patch

import pytest
from fastapi import HTTPException

from app.core import rate_limit
from app.core.config import settings
from app.core.rate_limit import (
    build_caller_key,
    enforce_rate_limit,
    get_rate_limiter,
    run_periodic_reset,
)


@pytest.mark.parametrize(
    ("user_id", "expected"),
    [
        ("alice", "user:alice"),
        ("  alice ", "user:alice"),
        ("", "system"),
        ("   ", "system"),
        (None, "system"),
    ],
)
def test_build_caller_key(user_id, expected) -> None:
    assert build_caller_key(user_id) == expected


def test_limiter_is_cached_until_config_changes() -> None:
    first = get_rate_limiter()
    assert get_rate_limiter() is first

    with patch.object(settings.app, "rate_limit_requests", 5):
        rebuilt = get_rate_limiter()

    assert rebuilt is not first
    assert rebuilt.limit == 5


@pytest.mark.asyncio
async def test_enforce_rate_limit_raises_429_with_query_id() -> None:
    with patch.object(settings.app, "rate_limit_requests", 1):
        await enforce_rate_limit(query_id="10001", x_user_id="carol")

        with pytest.raises(HTTPException) as exc_info:
            await enforce_rate_limit(query_id="10002", x_user_id="carol")

    assert exc_info.value.status_code == 429
    assert exc_info.value.detail == "查询操作过于频繁 (10002)，请稍后再试"
    assert exc_info.value.headers["X-RateLimit-Limit"] == "1"


@pytest.mark.asyncio
async def test_headers_can_be_disabled() -> None:
    with patch.object(settings.app, "rate_limit_requests", 1), patch.object(
        settings.app, "rate_limit_include_headers", False
    ):
        await enforce_rate_limit(query_id="1", x_user_id="dave")
        with pytest.raises(HTTPException) as exc_info:
            await enforce_rate_limit(query_id="1", x_user_id="dave")

    assert exc_info.value.headers is None


@pytest.mark.asyncio
async def test_periodic_reset_clears_limiter_on_each_tick() -> None:
    limiter = Mock()
    task = asyncio.create_task(
        run_periodic_reset(limiter_provider=lambda: limiter, interval_seconds=0.01)
    )

    await asyncio.sleep(0.1)
    task.cancel()
    with pytest.raises(asyncio.CancelledError):
        await task

    assert limiter.reset.call_count >= 2


@pytest.mark.asyncio
async def test_periodic_reset_uses_current_limiter() -> None:
    get_rate_limiter().consume("user:erin")
    assert len(rate_limit._limiter) == 1

    task = asyncio.create_task(run_periodic_reset(interval_seconds=0.01))
    await asyncio.sleep(0.05)
    task.cancel()
    with pytest.raises(asyncio.CancelledError):
        await task

    assert len(rate_limit._limiter) == 0


def test_lifespan_starts_and_stops_cleanly() -> None:
    from fastapi.testclient import TestClient

    from app.core.app_factory import create_app

    closed = Mock()

    async def fake_close() -> None:
        closed()

    with patch("app.core.app_factory.close_yunhei_client", fake_close):
        with TestClient(create_app()) as client:
            assert client.get("/health").status_code == 200

    closed.assert_called_once()
