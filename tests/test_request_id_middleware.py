from __future__ import annotations

from fastapi.testclient import TestClient

from app.main import app


client = TestClient(app)


def test_preserves_incoming_request_id_header():
    incoming_id = "test-request-id-123"
    resp = client.get("/health", headers={"X-Request-ID": incoming_id})

    assert resp.status_code == 200
    assert resp.headers.get("X-Request-ID") == incoming_id


def test_generates_request_id_when_missing():
    resp = client.get("/health")

    assert resp.status_code == 200
    assert resp.headers.get("X-Request-ID")
    assert resp.headers.get("X-Request-Duration-ms") is not None


def test_health_is_open_and_reports_rate_limit_policy():
    resp = client.get("/health")

    body = resp.json()
    assert body["status"] == "ok"
    assert body["rate_limit"]["requests"] == 30
    assert body["rate_limit"]["window_seconds"] == 60


def test_error_responses_carry_request_id():
    resp = client.get(
        "/v1/yunhei",
        headers={"X-Request-ID": "req-err-1", "X-API-Key": "test-api-key-123"},
    )

    assert resp.status_code == 400
    assert resp.headers.get("X-Request-ID") == "req-err-1"
    assert resp.json()["error"]["request_id"] == "req-err-1"
