"""Tests for rendering Yunhei records as reply text."""

import pytest

from app.schemas.yunhei import YunheiRecord
from app.utils.text_formatter import display, format_record, is_true, validate_type


def _record(**fields) -> YunheiRecord:
    return YunheiRecord.model_validate(fields)


def test_full_record_renders_every_section():
    record = _record(
        user="10001",
        tel="true",
        wx="false",
        zfb="true",
        shiming="false",
        group_num="12",
        m_send_num="300",
        send_num="4500",
        first_send="2023-01-01",
        last_send="2024-05-20",
        yh="true",
        type="yunhei",
        note="诈骗",
        admin="管理员A",
        level="3",
        date="2024-05-21",
    )

    assert format_record(record).split("\n") == [
        "=== 云黑查询结果 ===",
        "用户ID：10001",
        "--- 基础信息 ---",
        "手机号：已绑定",
        "微信：未绑定",
        "支付宝：已绑定",
        "实名认证：未绑定",
        "--- 活跃信息 ---",
        "加群数：12",
        "月活数量：300",
        "累计发送：4500",
        "首次发送：2023-01-01",
        "最后发送：2024-05-20",
        "--- 云黑信息 ---",
        "云黑状态：是",
        "类型判定：yunhei",
        "原因说明：诈骗",
        "处理人员：管理员A",
        "云黑等级：3",
        "记录日期：2024-05-21",
    ]


def test_empty_record_uses_fallbacks_and_keeps_section_headers():
    assert format_record(_record()).split("\n") == [
        "=== 云黑查询结果 ===",
        "--- 基础信息 ---",
        "--- 活跃信息 ---",
        "--- 云黑信息 ---",
        "云黑状态：账号暂无云黑",
        "类型判定：未知类型",
        "原因说明：无记录",
        "处理人员：未知",
        "云黑等级：未知",
        "记录日期：未知",
    ]


def test_present_but_null_flag_renders_as_unbound():
    text = format_record(_record(tel=None))

    assert "手机号：未绑定" in text
    assert "微信" not in text


def test_numeric_activity_values_are_rendered():
    text = format_record(_record(group_num=0, send_num=42))

    assert "加群数：0" in text
    assert "累计发送：42" in text


def test_empty_user_is_skipped():
    assert "用户ID" not in format_record(_record(user=""))


def test_unknown_type_is_replaced():
    assert "类型判定：未知类型" in format_record(_record(type="spam"))


def test_known_type_keeps_original_case():
    assert "类型判定：BiLei" in format_record(_record(type="BiLei"))


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        ("true", True),
        ("TRUE", True),
        (True, True),
        ("false", False),
        (False, False),
        ("1", False),
        (1, False),
        (None, False),
    ],
)
def test_is_true(value, expected):
    assert is_true(value) is expected


@pytest.mark.parametrize("value", ["none", "bilei", "yunhei", "YunHei"])
def test_validate_type_accepts_known_types(value):
    assert validate_type(value) is True


@pytest.mark.parametrize("value", [None, "", "other", 1])
def test_validate_type_rejects_others(value):
    assert validate_type(value) is False


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        (None, ""),
        ("8", "8"),
        (8, "8"),
        (True, "true"),
        (["spam", "ads"], "spam,ads"),
        ({"name": "管理员"}, '{"name": "管理员"}'),
    ],
)
def test_display(value, expected):
    assert display(value) == expected


def test_list_values_render_comma_joined():
    text = format_record(_record(group_num=[1, 2], note=["spam", "ads"]))

    assert "加群数：1,2" in text
    assert "原因说明：spam,ads" in text
