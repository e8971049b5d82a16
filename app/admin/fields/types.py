"""内置字段类型注册表条目.

每个条目是一个 FieldTypeDescriptor, `build_registry` 按顺序注册;父类型需排在子类型之前.
"""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import TYPE_CHECKING

from sqlalchemy import Enum as SAEnum

from app.admin.fields.base import FieldTypeDescriptor

if TYPE_CHECKING:
    from app.admin.fields.base import Field

_TRUE_VALUES = frozenset({"1", "true", "on", "yes", "y", "t"})
_FALSE_VALUES = frozenset({"0", "false", "off", "no", "n", "f"})


def _parse_string(raw: str) -> str:
    return raw


def _format_string(value: object) -> str:
    return str(value)


def _parse_integer(raw: str) -> int:
    return int(raw.strip())


def _parse_float(raw: str) -> float:
    return float(raw.strip())


def _parse_decimal(raw: str) -> Decimal:
    try:
        return Decimal(raw.strip())
    except InvalidOperation as exc:
        raise ValueError(f"invalid decimal: {raw!r}") from exc


def _parse_boolean(raw: str) -> bool:
    normalized = raw.strip().lower()
    if normalized in _TRUE_VALUES:
        return True
    if normalized in _FALSE_VALUES:
        return False
    raise ValueError(f"invalid boolean: {raw!r}")


def _format_boolean(value: object) -> str:
    return "是" if value else "否"


def _parse_date(raw: str) -> date:
    return date.fromisoformat(raw.strip())


def _format_date(value: object) -> str:
    if isinstance(value, date):
        return value.isoformat()
    return str(value)


def _parse_datetime(raw: str) -> datetime:
    return datetime.fromisoformat(raw.strip())


def _format_datetime(value: object) -> str:
    if isinstance(value, datetime):
        return value.strftime("%Y-%m-%dT%H:%M:%S")
    return str(value)


def _column_required(field: Field) -> bool:
    column = field.column
    if column is None:
        return False
    if column.nullable or column.primary_key:
        return False
    return column.default is None and column.server_default is None


def _column_length(field: Field) -> int | None:
    column = field.column
    if column is None:
        return None
    return getattr(column.type, "length", None)


def _enum_choices(field: Field) -> tuple[str, ...]:
    column = field.column
    if column is None or not isinstance(column.type, SAEnum):
        return ()
    return tuple(column.type.enums)


def _association_required(field: Field) -> bool:
    association = field.association
    if association is None:
        return False
    return association.is_belongs_to and not association.nullable


def _associated_collection_limit(field: Field) -> int:
    return field.model_config.admin.associated_collection_limit


def _associated_collection_cache_all(field: Field) -> bool:
    """目标表记录数小于关联集合上限时整表预加载,否则改为远程检索."""
    from app.repositories.admin_records_repository import AdminRecordsRepository  # noqa: PLC0415

    association = field.association
    if association is None:
        return True
    limit = int(field.option("associated_collection_limit"))
    return AdminRecordsRepository.count(association.target_model) < limit


def _association_widget(field: Field) -> str:
    association = field.association
    multiple = association is not None and association.is_has_many
    if field.option("associated_collection_cache_all"):
        return "select_multiple" if multiple else "select"
    return "filtering_multiselect" if multiple else "filtering_select"


def _singular_name(field: Field) -> str:
    """has_many 字段名的单数形式,仅去掉结尾的 ``s``; 不规则复数通过 ``singular`` 覆盖."""
    return field.name.removesuffix("s")


_BASE_OPTIONS: dict[str, object] = {
    "visible": True,
    "read_only": False,
    "help": "",
    "required": _column_required,
}

_ASSOCIATION_OPTIONS: dict[str, object] = {
    "view_helper": _association_widget,
    "required": _association_required,
    "associated_collection_limit": _associated_collection_limit,
    "associated_collection_cache_all": _associated_collection_cache_all,
    "nested": False,
    "inline_add": True,
}

BUILTIN_FIELD_TYPES: tuple[FieldTypeDescriptor, ...] = (
    FieldTypeDescriptor(
        name="string",
        view_helper="text_field",
        options={**_BASE_OPTIONS, "length": _column_length},
        parse=_parse_string,
        format=_format_string,
    ),
    FieldTypeDescriptor(name="text", view_helper="text_area", parent="string"),
    FieldTypeDescriptor(name="numeric", view_helper="number_field", parent="string"),
    FieldTypeDescriptor(name="integer", parent="numeric", options={"step": 1}, parse=_parse_integer),
    FieldTypeDescriptor(name="float", parent="numeric", options={"step": "any"}, parse=_parse_float),
    FieldTypeDescriptor(name="decimal", parent="numeric", options={"step": "any"}, parse=_parse_decimal),
    FieldTypeDescriptor(
        name="boolean",
        view_helper="check_box",
        parent="string",
        parse=_parse_boolean,
        format=_format_boolean,
    ),
    FieldTypeDescriptor(
        name="date",
        view_helper="date_field",
        parent="string",
        parse=_parse_date,
        format=_format_date,
    ),
    FieldTypeDescriptor(
        name="datetime",
        view_helper="datetime_field",
        parent="string",
        parse=_parse_datetime,
        format=_format_datetime,
    ),
    FieldTypeDescriptor(name="enum", view_helper="select", parent="string", options={"enum": _enum_choices}),
    FieldTypeDescriptor(
        name="association",
        view_helper="select",
        parent="string",
        options=_ASSOCIATION_OPTIONS,
    ),
    FieldTypeDescriptor(name="belongs_to_association", parent="association"),
    FieldTypeDescriptor(name="has_one_association", parent="association"),
    FieldTypeDescriptor(
        name="has_many_association",
        parent="association",
        options={"inline_add": False, "singular": _singular_name},
    ),
)


__all__ = ["BUILTIN_FIELD_TYPES"]
