"""主键(含复合主键)在表单/URL 中的编码与解码.

复合主键各列按映射器主键顺序以逗号拼接,例如 Fanship 的 ``(fan_id, team_id)``
编码为 ``"3,7"``.
"""

from __future__ import annotations

from collections.abc import Sequence
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import TYPE_CHECKING

from app.core.exceptions import MalformedKeyError

if TYPE_CHECKING:
    from sqlalchemy import Column

KEY_DELIMITER = ","


def encode_key(values: Sequence[object]) -> str:
    """把主键值序列编码为字符串."""
    return KEY_DELIMITER.join("" if value is None else str(value) for value in values)


def key_values(instance: object, attributes: Sequence[str]) -> tuple[object, ...]:
    """按属性名读取实例上的主键值."""
    return tuple(getattr(instance, name) for name in attributes)


def decode_key(raw: object, columns: Sequence[Column]) -> tuple[object, ...]:
    """把提交的主键字符串解码为与列一一对应的值元组.

    Args:
        raw: 表单或 URL 中的主键字符串.
        columns: 主键列,决定段数与每段的类型.

    Returns:
        已按列类型转换的值元组.

    Raises:
        MalformedKeyError: 段数不符或某段无法转换.

    """
    expected_parts = len(columns)
    text = "" if raw is None else str(raw).strip()
    parts = text.split(KEY_DELIMITER) if expected_parts > 1 else [text]
    if len(parts) != expected_parts:
        raise MalformedKeyError(raw, expected_parts=expected_parts)

    values: list[object] = []
    for part, column in zip(parts, columns, strict=True):
        segment = part.strip()
        if not segment:
            raise MalformedKeyError(raw, expected_parts=expected_parts)
        try:
            values.append(_coerce(segment, column))
        except (TypeError, ValueError, InvalidOperation) as exc:
            raise MalformedKeyError(raw, expected_parts=expected_parts) from exc
    return tuple(values)


def _coerce(segment: str, column: Column) -> object:
    try:
        python_type = column.type.python_type
    except NotImplementedError:
        return segment

    if python_type is bool:
        raise ValueError("boolean key columns are not supported")
    if python_type is int:
        return int(segment)
    if python_type is Decimal:
        return Decimal(segment)
    if python_type is datetime:
        return datetime.fromisoformat(segment)
    if python_type is date:
        return date.fromisoformat(segment)
    if python_type is str:
        return segment
    return python_type(segment)


__all__ = ["KEY_DELIMITER", "decode_key", "encode_key", "key_values"]
