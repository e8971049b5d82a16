"""后台字段类型: 描述符、注册表与内置类型."""

from app.admin.fields.base import Field, FieldTypeDescriptor, ResolvedFieldType
from app.admin.fields.registry import FieldTypeRegistry, build_registry
from app.admin.fields.types import BUILTIN_FIELD_TYPES

__all__ = [
    "BUILTIN_FIELD_TYPES",
    "Field",
    "FieldTypeDescriptor",
    "FieldTypeRegistry",
    "ResolvedFieldType",
    "build_registry",
]
