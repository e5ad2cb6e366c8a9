"""OpenAPI customization for the lookup service.

Enriches the generated schema with:
- the ``X-API-Key`` security scheme, required everywhere except health
- tag descriptions
- documented 429/502 responses and an ``x-rate-limit`` extension on every
  rate-limited lookup operation
"""

from __future__ import annotations

from typing import Any, Dict

from fastapi import FastAPI

from app.core.config import settings

TAGS = [
    {
        "name": "Yunhei",
        "description": "Cloud blacklist lookups (rate-limited per caller).",
    },
    {
        "name": "Health",
        "description": "Liveness checks.",
    },
]

_ERROR_RESPONSES = {
    "429": {"description": "Too many lookups from this caller in the current window."},
    "502": {"description": "The Yunhei API failed or returned an unrecognised payload."},
}


def _is_lookup_path(path: str) -> bool:
    return "/yunhei" in path


def apply_openapi_customizations(app: FastAPI) -> None:
    """Patch FastAPI's OpenAPI generation to add security and rate limit docs."""

    original_openapi = app.openapi

    def custom_openapi() -> Dict[str, Any]:
        schema = original_openapi()

        components = schema.setdefault("components", {})
        components.setdefault("securitySchemes", {}).setdefault(
            "ApiKeyAuth",
            {
                "type": "apiKey",
                "in": "header",
                "name": "X-API-Key",
                "description": "Provide your API key via the X-API-Key header.",
            },
        )
        schema.setdefault("security", [{"ApiKeyAuth": []}])

        tags = schema.setdefault("tags", [])
        existing = {t.get("name") for t in tags}
        tags.extend(tag for tag in TAGS if tag["name"] not in existing)

        rate_limit = {
            "requests": settings.app.rate_limit_requests,
            "window_seconds": settings.app.rate_limit_window_seconds,
            "key": "X-User-ID header (shared 'system' bucket when absent)",
        }

        for path, methods in schema.get("paths", {}).items():
            for operation in methods.values():
                if not isinstance(operation, dict):
                    continue
                if path.endswith("/health"):
                    operation["security"] = []
                elif _is_lookup_path(path):
                    responses = operation.setdefault("responses", {})
                    for code, response in _ERROR_RESPONSES.items():
                        responses.setdefault(code, response)
                    if settings.app.rate_limit_enabled:
                        operation["x-rate-limit"] = rate_limit

        return schema

    app.openapi = custom_openapi  # type: ignore[assignment]
