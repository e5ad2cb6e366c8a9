"""Factory for creating the Yunhei client from settings."""

import logging

from app.adapters.yunhei.base import AbstractYunheiClient
from app.adapters.yunhei.http_client import YunheiHttpClient
from app.core.config import settings
from app.core.errors import ValidationAppError

logger = logging.getLogger(__name__)


def create_yunhei_client() -> AbstractYunheiClient:
    """Instantiate the Yunhei client configured in app.core.config.settings.

    Returns:
        AbstractYunheiClient: Configured client instance.

    Raises:
        ValidationAppError: If the API key is missing or blank.
    """
    if not settings.yunhei.api_key.strip():
        logger.error("yunhei.missing_api_key", extra={"endpoint": settings.yunhei.endpoint})
        raise ValidationAppError(
            code="yunhei_missing_api_key",
            message="云黑API密钥未配置，请联系管理员",
            details={"hint": "Set the YUNHEI_API_KEY environment variable"},
        )

    return YunheiHttpClient(
        api_key=settings.yunhei.api_key,
        endpoint=settings.yunhei.endpoint,
        timeout_seconds=settings.yunhei.timeout_seconds,
    )
