"""Helpers for showing secrets and identifiers without disclosing them."""

from __future__ import annotations

UNCONFIGURED = "未配置"


def mask_secret(value: str | None) -> str:
    """Mask a secret, keeping only its first and last two characters.

    Examples:
        >>> mask_secret("abcdef123")
        'ab****23'
        >>> mask_secret("abc")
        '****'
        >>> mask_secret(None)
        '未配置'
    """
    if not value:
        return UNCONFIGURED
    if len(value) <= 4:
        return "****"
    return f"{value[:2]}****{value[-2:]}"


def mask_query_id(value: str) -> str:
    """Shorten a lookup identifier for client-facing failure messages.

    Identifiers of up to six characters are returned unchanged.

    Examples:
        >>> mask_query_id("123456789")
        '123***789'
        >>> mask_query_id("12345")
        '12345'
    """
    if len(value) > 6:
        return f"{value[:3]}***{value[-3:]}"
    return value
