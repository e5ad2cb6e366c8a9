"""Pytest configuration and fixtures shared across all test modules.

This file is automatically loaded by pytest before running any tests.
Environment defaults must be in place before anything imports
app.core.config, because settings are resolved at import time.
"""

import os

import pytest

# CRITICAL: Set this before any imports that might load settings
os.environ["TESTING"] = "true"
os.environ.setdefault("APP_ENV", "testing")

os.environ.setdefault("YUNHEI_API_KEY", "yh-test-key-0001")
os.environ.setdefault("YUNHEI_ENDPOINT", "http://yunhei.test/OpenAPI.php")
os.environ.setdefault("APP_API_KEY_REQUIRED", "true")
os.environ.setdefault("APP_API_KEYS", "test-api-key-123,test-api-key-456")


@pytest.fixture(autouse=True)
def _fresh_rate_limiter():
    """Give every test an empty rate limiter."""
    from app.core import rate_limit

    rate_limit._limiter = None
    rate_limit._limiter_config = None
    yield
    rate_limit._limiter = None
    rate_limit._limiter_config = None
