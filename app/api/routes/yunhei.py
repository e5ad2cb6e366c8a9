import logging
from typing import Annotated

from fastapi import APIRouter, Depends
from fastapi.responses import PlainTextResponse

from app.adapters.yunhei.factory import create_yunhei_client
from app.core.auth import verify_api_key
from app.core.errors import InternalAppError, UpstreamAppError
from app.core.rate_limit import enforce_rate_limit, get_query_id
from app.schemas.yunhei import YunheiLookupResponse
from app.services.yunhei_service import YunheiLookupService
from app.utils.masking import mask_query_id
from app.utils.text_formatter import format_record

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Yunhei"])

# Shared client so connections are pooled; closed in the app lifespan
_yunhei_client = create_yunhei_client()
_lookup_service = YunheiLookupService(client=_yunhei_client)

QueryId = Annotated[str, Depends(get_query_id)]


async def _lookup(query_id: str) -> YunheiLookupResponse:
    """Run a lookup, translating failures into client-facing errors.

    Upstream failures keep their error code but get the masked identifier
    prepended to the message; anything unexpected becomes a generic 500.
    """
    try:
        record = await _lookup_service.lookup(query_id)
    except UpstreamAppError as exc:
        raise UpstreamAppError(
            code=exc.code,
            message=f"[{mask_query_id(query_id)}] 查询失败：{exc.message}",
            details=exc.details,
        ) from exc
    except Exception as exc:
        logger.exception(
            "yunhei.lookup_failed",
            extra={"query_id": query_id, "error_type": type(exc).__name__},
        )
        raise InternalAppError(
            code="lookup_failed",
            message=f"查询ID {query_id} 时出现未知错误，请稍后再试",
            details={"query_id": query_id},
        ) from exc

    return YunheiLookupResponse(
        query_id=query_id,
        record=record,
        text=format_record(record),
    )


@router.get(
    "/yunhei",
    response_class=PlainTextResponse,
    dependencies=[Depends(verify_api_key), Depends(enforce_rate_limit)],
)
async def lookup_text(query_id: QueryId) -> str:
    """Look an identifier up in Yunhei and return the formatted reply.

    Args:
        query_id: Identifier from the ``id`` query parameter.

    Returns:
        str: Multi-line, human-readable lookup result (text/plain).

    Raises:
        ValidationAppError: 400 if ``id`` is missing or too long.
        HTTPException: 429 when the caller exceeded the rate limit.
        InternalAppError: 500 on unexpected errors.
        UpstreamAppError: 502 if the Yunhei API failed or answered with an
            unrecognised payload.
    """
    result = await _lookup(query_id)
    return result.text


@router.get(
    "/yunhei/record",
    response_model=YunheiLookupResponse,
    response_model_exclude_unset=True,
    dependencies=[Depends(verify_api_key), Depends(enforce_rate_limit)],
)
async def lookup_record(query_id: QueryId) -> YunheiLookupResponse:
    """Same lookup as ``/yunhei`` but returns the reconciled record as JSON."""
    return await _lookup(query_id)


async def close_yunhei_client() -> None:
    """Close the shared upstream client (called on application shutdown)."""
    await _yunhei_client.aclose()
