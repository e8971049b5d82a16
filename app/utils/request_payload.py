"""请求 payload 解析与规范化.

目标:
- 统一处理 JSON dict 与 Werkzeug MultiDict(form/query).
- 展开后台表单约定的 ``param_key[field]`` 嵌套命名,输出以字段名为键的 dict.
- 提供最小的输入规范化(字符串 strip/NUL 清理).

注意:
- 本模块只负责 "取参形状" 与 "基础规范化",不做业务校验.
- 字段类型转换与关联解析交由后台写服务完成.
"""

from __future__ import annotations

import re
from collections.abc import Mapping, Sequence
from typing import Any, cast

from flask import has_request_context, request

from app.core.types.structures import MutablePayloadDict, PayloadValue, ScalarValue

_STRING_LIKE_TYPES = (str, bytes, bytearray)
_PARSE_PAYLOAD_MARKER = "_coral_parse_payload_called"
_BRACKET_KEY_PATTERN = re.compile(r"^(?P<root>[^\[\]]+)(?P<path>(?:\[[^\[\]]*\])*)$")
_BRACKET_SEGMENT_PATTERN = re.compile(r"\[([^\[\]]*)\]")
_RESERVED_KEYS = frozenset({"_method", "modal", "return_to"})


def _guard_parse_payload_called_once() -> None:
    if not has_request_context():
        return
    if getattr(request, _PARSE_PAYLOAD_MARKER, False):
        raise RuntimeError("parse_payload 只允许在一次请求链路内执行一次")
    setattr(request, _PARSE_PAYLOAD_MARKER, True)


def split_bracket_key(key: str) -> list[str]:
    """把 ``player[fanship_attributes][team_id]`` 拆成路径段.

    空方括号 ``[]`` 会保留为空字符串段,表示列表追加.
    """
    match = _BRACKET_KEY_PATTERN.match(key)
    if match is None:
        return [key]
    return [match.group("root"), *_BRACKET_SEGMENT_PATTERN.findall(match.group("path"))]


def parse_payload(
    payload: object | None,
    *,
    param_key: str | None = None,
    list_fields: Sequence[str] = (),
) -> MutablePayloadDict:
    """解析并规范化 payload.

    Args:
        payload: JSON dict 或 MultiDict 兼容对象.
        param_key: 表单参数前缀,例如 ``player``. 提供时仅保留 ``player[...]``
            下的字段以及未加前缀的平铺字段.
        list_fields: 需要固定为 list 形状的字段名集合(单值也输出 list).

    Returns:
        规范化后的 payload dict.

    """
    _guard_parse_payload_called_once()
    list_field_set = set(list_fields)

    if payload is None:
        return {}

    if hasattr(payload, "getlist"):
        return _parse_multidict(payload, param_key=param_key, list_fields=list_field_set)

    if isinstance(payload, Mapping):
        nested = payload.get(param_key) if param_key else None
        source = nested if isinstance(nested, Mapping) else payload
        return _parse_mapping(source, list_fields=list_field_set)

    raise TypeError("payload 必须为 mapping 或 MultiDict 兼容对象")


def _parse_multidict(
    payload: object,
    *,
    param_key: str | None,
    list_fields: set[str],
) -> MutablePayloadDict:
    multi_dict = cast(Any, payload)
    sanitized: dict[str, Any] = {}
    for key in list(multi_dict.keys()):
        if key in _RESERVED_KEYS:
            continue
        segments = split_bracket_key(key)
        if len(segments) > 1:
            if param_key is None or segments[0] != param_key:
                continue
            segments = segments[1:]
        elif param_key is not None and segments[0] == param_key:
            continue

        values = [_sanitize_scalar_value(value) for value in multi_dict.getlist(key) or []]
        _assign_path(sanitized, segments, values, force_list=segments[0] in list_fields)
    return cast(MutablePayloadDict, sanitized)


def _assign_path(target: dict[str, Any], segments: list[str], values: list[ScalarValue], *, force_list: bool) -> None:
    head, *rest = segments
    if rest and rest[0] != "":
        child = target.get(head)
        if not isinstance(child, dict):
            child = {}
            target[head] = child
        _assign_path(child, rest, values, force_list=False)
        return

    if rest or force_list:
        existing = target.get(head)
        bucket = existing if isinstance(existing, list) else []
        bucket.extend(values)
        target[head] = bucket
        return

    target[head] = values[-1] if values else None


def _parse_mapping(payload: Mapping[str, object], *, list_fields: set[str]) -> MutablePayloadDict:
    sanitized: MutablePayloadDict = {}
    for key, value in payload.items():
        if key in _RESERVED_KEYS:
            continue
        sanitized[key] = _sanitize_value(value, force_list=(key in list_fields))
    return sanitized


def _sanitize_value(value: object, *, force_list: bool) -> PayloadValue:
    if isinstance(value, Mapping):
        return {str(key): _sanitize_value(item, force_list=False) for key, item in value.items()}

    if isinstance(value, Sequence) and not isinstance(value, _STRING_LIKE_TYPES):
        items = [_sanitize_scalar_value(item) for item in value]
        if force_list:
            return items
        return items if items else None

    if force_list:
        return [] if value is None else [_sanitize_scalar_value(value)]
    return _sanitize_scalar_value(value)


def _sanitize_scalar_value(value: object) -> ScalarValue:
    if value is None:
        return None
    if isinstance(value, (bool, int, float)):
        return cast(ScalarValue, value)
    if isinstance(value, (bytes, bytearray)):
        return _strip_nul(value.decode(errors="ignore"))
    if isinstance(value, str):
        return _strip_nul(value)
    return _strip_nul(str(value))


def _strip_nul(value: str) -> str:
    return value.replace("\x00", "").strip()
