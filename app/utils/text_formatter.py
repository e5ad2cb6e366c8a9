"""Render a Yunhei record as the human-readable lookup reply."""

from __future__ import annotations

import json

from app.schemas.yunhei import UpstreamValue, YunheiRecord

KNOWN_TYPES = frozenset({"none", "bilei", "yunhei"})

HEADER = "=== 云黑查询结果 ==="
BASIC_SECTION = "--- 基础信息 ---"
ACTIVITY_SECTION = "--- 活跃信息 ---"
BLACKLIST_SECTION = "--- 云黑信息 ---"

# (field, label) pairs rendered as bound/unbound flags
BINDING_FIELDS = (
    ("tel", "手机号"),
    ("wx", "微信"),
    ("zfb", "支付宝"),
    ("shiming", "实名认证"),
)

# (field, label) pairs rendered verbatim
ACTIVITY_FIELDS = (
    ("group_num", "加群数"),
    ("m_send_num", "月活数量"),
    ("send_num", "累计发送"),
    ("first_send", "首次发送"),
    ("last_send", "最后发送"),
)


def is_true(value: UpstreamValue) -> bool:
    """Interpret an upstream flag; only ``True`` or the string "true" count."""
    if isinstance(value, bool):
        return value
    return isinstance(value, str) and value.strip().lower() == "true"


def validate_type(value: UpstreamValue) -> bool:
    """Return True if ``value`` is one of the known listing classifications."""
    return isinstance(value, str) and value.lower() in KNOWN_TYPES


def display(value: UpstreamValue) -> str:
    """Render an upstream value as reply text; lists are comma-joined."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (list, tuple)):
        return ",".join(display(item) for item in value)
    if isinstance(value, dict):
        return json.dumps(value, ensure_ascii=False)
    return str(value)


def _or_default(value: UpstreamValue, default: str) -> str:
    # Falsy values (None, "", 0, False, []) fall back to the default text
    return display(value) if value else default


def format_record(record: YunheiRecord) -> str:
    """Build the multi-line lookup reply for ``record``.

    Optional lines are emitted only when the upstream response carried the
    field; the blacklist section is always present, with fallbacks.

    Args:
        record: Reconciled Yunhei record.

    Returns:
        Newline-joined text ready to send to the caller.
    """
    lines: list[str] = [HEADER]

    if record.user:
        lines.append(f"用户ID：{display(record.user)}")

    lines.append(BASIC_SECTION)
    for field, label in BINDING_FIELDS:
        if record.has(field):
            bound = is_true(getattr(record, field))
            lines.append(f"{label}：{'已绑定' if bound else '未绑定'}")

    lines.append(ACTIVITY_SECTION)
    for field, label in ACTIVITY_FIELDS:
        if record.has(field):
            value = getattr(record, field)
            lines.append(f"{label}：{display(value)}")

    listing_type = record.type if validate_type(record.type) else "未知类型"

    lines.extend(
        [
            BLACKLIST_SECTION,
            f"云黑状态：{'是' if is_true(record.yh) else '账号暂无云黑'}",
            f"类型判定：{listing_type}",
            f"原因说明：{_or_default(record.note, '无记录')}",
            f"处理人员：{_or_default(record.admin, '未知')}",
            f"云黑等级：{_or_default(record.level, '未知')}",
            f"记录日期：{_or_default(record.date, '未知')}",
        ]
    )
    return "\n".join(lines)
