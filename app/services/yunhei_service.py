"""Yunhei lookup service: input validation, response reconciliation, rendering.

The upstream API is inconsistent about the shape of ``info``. This service
reduces every accepted shape to a single ``YunheiRecord``:

- ``[{...}]``             → the one record
- ``[{...}, {...}, ...]`` → all object items merged, later keys win
- ``{...}``               → treated as a single record

Anything else is reported as an ``UpstreamAppError``.
"""

import logging
from collections.abc import Mapping
from typing import Any

from app.adapters.yunhei.base import AbstractYunheiClient
from app.core.config import settings
from app.core.errors import UpstreamAppError, ValidationAppError
from app.schemas.yunhei import YunheiRecord
from app.utils.text_formatter import format_record

logger = logging.getLogger(__name__)


def normalize_query_id(raw: str | None) -> str:
    """Validate and normalize a user-supplied lookup identifier.

    Args:
        raw: Identifier as received from the caller (may be None or blank).

    Returns:
        The identifier with surrounding whitespace removed.

    Raises:
        ValidationAppError: If the identifier is missing or too long.
    """
    query_id = (raw or "").strip()
    if not query_id:
        raise ValidationAppError(
            code="missing_query_id",
            message="请输入要查询的ID",
        )

    max_chars = settings.app.max_query_id_chars
    if len(query_id) > max_chars:
        raise ValidationAppError(
            code="query_id_too_long",
            message=f"查询ID过长（最多{max_chars}个字符）",
            details={"max_value": max_chars, "actual_value": len(query_id)},
        )
    return query_id


def _malformed(query_id: str) -> UpstreamAppError:
    return UpstreamAppError(
        code="upstream_malformed_response",
        message=f"ID {query_id} 的云黑数据格式异常，请联系管理员",
        details={"query_id": query_id},
    )


def _unknown_format(query_id: str) -> UpstreamAppError:
    return UpstreamAppError(
        code="upstream_unknown_format",
        message=f"ID {query_id} 的云黑数据格式未知，请联系管理员",
        details={"query_id": query_id},
    )


def reconcile_records(payload: Any, query_id: str) -> YunheiRecord:
    """Reduce an upstream payload to a single record.

    Args:
        payload: Decoded JSON body returned by the Yunhei API.
        query_id: Identifier the payload belongs to (for messages/logs).

    Returns:
        YunheiRecord built from the payload's ``info`` section.

    Raises:
        UpstreamAppError: ``upstream_malformed_response`` when ``info`` is
            absent, ``upstream_unknown_format`` when its shape is unrecognised.
    """
    info = payload.get("info") if isinstance(payload, Mapping) else None
    if not info:
        logger.error(
            "yunhei.malformed_response",
            extra={"query_id": query_id, "payload_type": type(payload).__name__},
        )
        raise _malformed(query_id)

    if isinstance(info, Mapping):
        return YunheiRecord.model_validate(dict(info))

    if isinstance(info, list):
        if len(info) == 1 and isinstance(info[0], Mapping):
            return YunheiRecord.model_validate(dict(info[0]))

        objects = [item for item in info if isinstance(item, Mapping)]
        if len(info) > 1 and objects:
            # Empty objects still merge; the record then renders with fallbacks
            merged: dict[str, Any] = {}
            for item in objects:
                merged.update(item)
            logger.debug(
                "yunhei.records_merged",
                extra={"query_id": query_id, "parts": len(info)},
            )
            return YunheiRecord.model_validate(merged)

    logger.error(
        "yunhei.unknown_response_format",
        extra={"query_id": query_id, "info_type": type(info).__name__},
    )
    raise _unknown_format(query_id)


class YunheiLookupService:
    """Look identifiers up in Yunhei and turn the answer into text."""

    def __init__(self, client: AbstractYunheiClient) -> None:
        self.client = client

    async def lookup(self, query_id: str) -> YunheiRecord:
        """Fetch and reconcile the record for ``query_id``.

        Raises:
            UpstreamAppError: If the upstream call fails or the payload is
                not in a recognised shape.
        """
        payload = await self.client.fetch(query_id)
        return reconcile_records(payload, query_id)

    async def render(self, query_id: str) -> str:
        """Look up ``query_id`` and return the formatted reply text."""
        record = await self.lookup(query_id)
        return format_record(record)
