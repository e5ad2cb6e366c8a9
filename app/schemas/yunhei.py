"""Pydantic schemas for Yunhei lookup records and responses."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

# Upstream values are loosely typed: the same field may arrive as "12", 12, true or even a list.
UpstreamValue = Any


class YunheiRecord(BaseModel):
    """A single Yunhei record, possibly merged from several partial records.

    Every field is optional. Whether a field was sent at all matters for
    rendering, so use ``model_fields_set`` (not ``is None``) to test presence.
    Unknown upstream fields are preserved as extras.
    """

    model_config = ConfigDict(extra="allow")

    user: UpstreamValue = Field(default=None, description="Looked-up account identifier.")
    tel: UpstreamValue = Field(default=None, description="Phone number bound ('true'/'false').")
    wx: UpstreamValue = Field(default=None, description="WeChat bound ('true'/'false').")
    zfb: UpstreamValue = Field(default=None, description="Alipay bound ('true'/'false').")
    shiming: UpstreamValue = Field(default=None, description="Real-name verified ('true'/'false').")
    group_num: UpstreamValue = Field(default=None, description="Number of groups joined.")
    m_send_num: UpstreamValue = Field(default=None, description="Messages sent this month.")
    send_num: UpstreamValue = Field(default=None, description="Total messages sent.")
    first_send: UpstreamValue = Field(default=None, description="Time of first message.")
    last_send: UpstreamValue = Field(default=None, description="Time of last message.")
    yh: UpstreamValue = Field(default=None, description="Blacklisted flag ('true'/'false').")
    type: UpstreamValue = Field(default=None, description="Classification: none, bilei or yunhei.")
    note: UpstreamValue = Field(default=None, description="Reason recorded for the listing.")
    admin: UpstreamValue = Field(default=None, description="Operator who handled the listing.")
    level: UpstreamValue = Field(default=None, description="Blacklist severity level.")
    date: UpstreamValue = Field(default=None, description="Date the listing was recorded.")

    def has(self, field: str) -> bool:
        """Return True if the upstream response carried ``field`` at all."""
        return field in self.model_fields_set


class YunheiLookupResponse(BaseModel):
    """Structured lookup result for API clients that want JSON."""

    query_id: str = Field(..., description="Identifier that was looked up.")
    record: YunheiRecord = Field(..., description="Reconciled upstream record.")
    text: str = Field(..., description="Human-readable rendering of the record.")
