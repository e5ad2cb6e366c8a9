"""Yunhei HTTP client adapter."""

import json
import logging
import time
from typing import Any

import httpx

from app.adapters.yunhei.base import AbstractYunheiClient
from app.core.errors import UpstreamAppError
from app.utils.masking import mask_secret

logger = logging.getLogger(__name__)

UNKNOWN_NETWORK_ERROR = "未知网络错误"
SERVER_ERROR = "服务器内部错误"


class YunheiHttpClient(AbstractYunheiClient):
    """Client for the Yunhei lookup endpoint.

    Uses a shared ``httpx.AsyncClient`` so connections are pooled across
    lookups. The API key travels as the ``key`` query parameter, next to the
    looked-up ``id``.
    """

    def __init__(
        self,
        api_key: str,
        endpoint: str,
        timeout_seconds: float = 5.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the async HTTP client.

        Args:
            api_key: Yunhei API key.
            endpoint: Full URL of the lookup endpoint.
            timeout_seconds: Timeout for requests in seconds.
            transport: Optional httpx transport (tests inject a MockTransport).
        """
        self.api_key = api_key
        self.endpoint = endpoint
        self.client = httpx.AsyncClient(
            timeout=timeout_seconds,
            transport=transport,
            follow_redirects=True,
        )

    def masked_url(self, query_id: str) -> str:
        """Request URL with the API key masked, suitable for logs."""
        return f"{self.endpoint}?id={query_id}&key={mask_secret(self.api_key)}"

    async def aclose(self) -> None:
        await self.client.aclose()

    async def fetch(self, query_id: str) -> Any:
        """GET the lookup endpoint and decode the JSON body.

        Args:
            query_id: Identifier to look up.

        Returns:
            Any: Decoded JSON payload (shape is reconciled by the service).

        Raises:
            UpstreamAppError: On transport failure, HTTP error status or a
                body that is not valid JSON.
        """
        log_context = {"query_id": query_id}
        logger.debug(
            "yunhei.request_started",
            extra={**log_context, "request_url": self.masked_url(query_id)},
        )

        start = time.perf_counter()
        try:
            response = await self.client.get(
                self.endpoint,
                params={"id": query_id, "key": self.api_key},
            )
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            raise _status_error(exc, log_context) from exc
        except httpx.TransportError as exc:
            # Timeouts, refused connections, DNS failures: no response at all
            logger.error(
                "yunhei.request_failed",
                extra={
                    **log_context,
                    "error_type": type(exc).__name__,
                    "error_msg": str(exc),
                },
            )
            raise UpstreamAppError(
                code="upstream_network_error",
                message=UNKNOWN_NETWORK_ERROR,
                details={"query_id": query_id},
            ) from exc

        duration_ms = (time.perf_counter() - start) * 1000

        try:
            payload = response.json()
        except ValueError as exc:
            logger.error(
                "yunhei.invalid_json",
                extra={
                    **log_context,
                    "status": response.status_code,
                    "body_preview": response.text[:200],
                },
            )
            raise UpstreamAppError(
                code="upstream_invalid_json",
                message=UNKNOWN_NETWORK_ERROR,
                details={"query_id": query_id, "http_status": response.status_code},
            ) from exc

        logger.info(
            "yunhei.request_succeeded",
            extra={
                **log_context,
                "status": response.status_code,
                "duration_ms": round(duration_ms, 2),
                "response": json.dumps(payload, ensure_ascii=False, indent=2),
            },
        )
        return payload


def _status_error(exc: httpx.HTTPStatusError, log_context: dict[str, Any]) -> UpstreamAppError:
    """Translate an HTTP error status into an UpstreamAppError.

    5xx collapses to a generic server error; other statuses surface the
    upstream reason phrase when it has one.
    """
    status = exc.response.status_code
    logger.error(
        "yunhei.request_failed",
        extra={
            **log_context,
            "status": status,
            "reason": exc.response.reason_phrase,
        },
    )

    if status >= 500:
        return UpstreamAppError(
            code="upstream_server_error",
            message=SERVER_ERROR,
            details={"query_id": log_context["query_id"], "http_status": status},
        )
    return UpstreamAppError(
        code="upstream_http_error",
        message=exc.response.reason_phrase or UNKNOWN_NETWORK_ERROR,
        details={"query_id": log_context["query_id"], "http_status": status},
    )
