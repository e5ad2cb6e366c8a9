"""Yunhei adapter layer - abstracts over the upstream blacklist API."""

from app.adapters.yunhei.base import AbstractYunheiClient
from app.adapters.yunhei.factory import create_yunhei_client
from app.adapters.yunhei.http_client import YunheiHttpClient

__all__ = [
    "AbstractYunheiClient",
    "YunheiHttpClient",
    "create_yunhei_client",
]
