"""Tests for sensitive data filtering in logs."""

from __future__ import annotations

import json
import logging
from io import StringIO

import pytest

from app.core.logging import (
    JsonFormatter,
    RequestIdFilter,
    SensitiveDataFilter,
    clear_request_id,
    set_request_id,
)


@pytest.fixture
def log_stream():
    """Logger wired with the production filters/formatter, writing to a buffer."""
    logger = logging.getLogger("test_redaction")
    logger.setLevel(logging.INFO)
    logger.handlers.clear()

    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.addFilter(RequestIdFilter())
    handler.addFilter(SensitiveDataFilter())
    handler.setFormatter(JsonFormatter(ensure_ascii=False))
    logger.addHandler(handler)

    yield logger, stream

    logger.handlers.clear()
    clear_request_id()


def test_sensitive_filter_redacts_api_keys(log_stream):
    """Ensure SensitiveDataFilter redacts both service and upstream keys."""
    logger, stream = log_stream

    logger.info(
        "test_event",
        extra={
            "api_key": "sk-secret-123",
            "x-api-key": "another-secret",
            "yunhei_api_key": "yh-upstream-secret",
            "safe_field": "visible",
        },
    )

    output = stream.getvalue()

    assert "sk-secret-123" not in output
    assert "another-secret" not in output
    assert "yh-upstream-secret" not in output
    assert "[REDACTED]" in output
    assert "visible" in output


def test_sensitive_filter_redacts_nested_query_params(log_stream):
    """The upstream `key` query parameter is redacted inside nested dicts."""
    logger, stream = log_stream

    logger.info(
        "upstream_params",
        extra={"params": {"id": "123456", "key": "yh-upstream-secret"}},
    )

    output = stream.getvalue()

    assert "yh-upstream-secret" not in output
    assert "123456" in output


def test_sensitive_filter_allows_lookup_fields(log_stream):
    """Verify safe lookup fields pass through unmodified."""
    logger, stream = log_stream

    logger.info(
        "yunhei.request_succeeded",
        extra={
            "query_id": "10001",
            "status": 200,
            "duration_ms": 150.5,
            "key_hash": "abcdef0123456789",
        },
    )

    payload = json.loads(stream.getvalue())

    assert payload["message"] == "yunhei.request_succeeded"
    assert payload["query_id"] == "10001"
    assert payload["status"] == 200
    assert payload["key_hash"] == "abcdef0123456789"
    assert "[REDACTED]" not in stream.getvalue()


def test_json_formatter_keeps_non_ascii_text(log_stream):
    logger, stream = log_stream

    logger.info("yunhei.config_loaded", extra={"masked_key": "未配置"})

    assert "未配置" in stream.getvalue()


def test_request_id_is_attached_from_context(log_stream):
    logger, stream = log_stream
    set_request_id("req-abc")

    logger.info("rate_limit.exceeded")

    assert json.loads(stream.getvalue())["request_id"] == "req-abc"


def test_key_query_parameter_is_redacted_inside_urls(log_stream):
    logger, stream = log_stream

    logger.info(
        "yunhei.request_failed",
        extra={"error_msg": "timed out for url 'http://yunhei.test/OpenAPI.php?id=1&key=yh-secret'"},
    )

    output = stream.getvalue()
    assert "yh-secret" not in output
    assert "id=1&key=[REDACTED]" in output


def test_exception_traceback_is_included(log_stream):
    logger, stream = log_stream

    try:
        raise RuntimeError("lookup exploded")
    except RuntimeError:
        logger.exception("yunhei.lookup_failed", extra={"query_id": "10001"})

    payload = json.loads(stream.getvalue())
    assert payload["query_id"] == "10001"
    assert "RuntimeError: lookup exploded" in payload["exc_info"]
