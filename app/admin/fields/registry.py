"""字段类型注册表.

注册表在应用启动时由显式的注册表条目构建(见 `BUILTIN_FIELD_TYPES`),之后只读.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping
from types import MappingProxyType
from typing import TYPE_CHECKING

from sqlalchemy import types as sa_types

from app.admin.fields.base import FieldTypeDescriptor, ResolvedFieldType
from app.admin.fields.types import BUILTIN_FIELD_TYPES
from app.core.exceptions import ConfigurationError, DuplicateRegistrationError, UnknownFieldTypeError
from app.utils.structlog_config import log_debug

if TYPE_CHECKING:
    from sqlalchemy import Column

# 顺序敏感: 子类型需排在父类型之前
_COLUMN_TYPE_MAP: tuple[tuple[type[sa_types.TypeEngine], str], ...] = (
    (sa_types.Enum, "enum"),
    (sa_types.Boolean, "boolean"),
    (sa_types.Integer, "integer"),
    (sa_types.Float, "float"),
    (sa_types.Numeric, "decimal"),
    (sa_types.DateTime, "datetime"),
    (sa_types.Date, "date"),
    (sa_types.Text, "text"),
    (sa_types.String, "string"),
)
_FALLBACK_COLUMN_TYPE = "string"


class FieldTypeRegistry:
    """字段类型名称到描述符的映射."""

    def __init__(self) -> None:
        self._descriptors: dict[str, FieldTypeDescriptor] = {}
        self._resolved: dict[str, ResolvedFieldType] = {}

    def __contains__(self, name: object) -> bool:
        return name in self._descriptors

    def __iter__(self) -> Iterator[FieldTypeDescriptor]:
        return iter(self._descriptors.values())

    def __len__(self) -> int:
        return len(self._descriptors)

    def register(self, descriptor: FieldTypeDescriptor, *, replace: bool = False) -> FieldTypeDescriptor:
        """注册字段类型.

        Args:
            descriptor: 字段类型描述符.
            replace: 为 True 时允许以不同定义覆盖同名类型.

        Returns:
            注册表中生效的描述符.

        Raises:
            DuplicateRegistrationError: 同名类型已存在且定义不一致.
            UnknownFieldTypeError: 父类型尚未注册.

        """
        existing = self._descriptors.get(descriptor.name)
        if existing is not None and not replace:
            if existing == descriptor:
                return existing
            raise DuplicateRegistrationError(descriptor.name)

        if descriptor.parent is not None:
            if descriptor.parent == descriptor.name:
                raise ConfigurationError(f"字段类型不能继承自身: {descriptor.name}")
            if descriptor.parent not in self._descriptors:
                raise UnknownFieldTypeError(descriptor.parent)

        self._descriptors[descriptor.name] = descriptor
        # 覆盖后子类型的合并结果同样失效
        self._resolved.clear()
        log_debug("注册字段类型", module="admin", field_type=descriptor.name, parent=descriptor.parent)
        return descriptor

    def lookup(self, name: str) -> FieldTypeDescriptor:
        """按名称查找描述符.

        Raises:
            UnknownFieldTypeError: 名称未注册.

        """
        try:
            return self._descriptors[name]
        except KeyError:
            raise UnknownFieldTypeError(name) from None

    def lineage(self, name: str) -> tuple[FieldTypeDescriptor, ...]:
        """返回从自身到最顶层父类型的描述符链."""
        chain: list[FieldTypeDescriptor] = []
        current: str | None = name
        while current is not None:
            descriptor = self.lookup(current)
            if descriptor in chain:
                raise ConfigurationError(f"字段类型继承出现循环: {name}")
            chain.append(descriptor)
            current = descriptor.parent
        return tuple(chain)

    def resolve_options(self, name: str) -> Mapping[str, object]:
        """沿父链合并选项表,子类型覆盖父类型."""
        return self.resolve(name).options

    def resolve(self, name: str) -> ResolvedFieldType:
        """合并父链,得到可直接绑定到字段的类型."""
        cached = self._resolved.get(name)
        if cached is not None:
            return cached

        chain = self.lineage(name)
        options: dict[str, object] = {}
        for descriptor in reversed(chain):
            options.update(descriptor.options)

        view_helper = next((item.view_helper for item in chain if item.view_helper), None)
        parse = next((item.parse for item in chain if item.parse is not None), None)
        format_value = next((item.format for item in chain if item.format is not None), None)
        if view_helper is None or parse is None or format_value is None:
            raise ConfigurationError(f"字段类型 {name} 缺少 view_helper/parse/format 定义")

        resolved = ResolvedFieldType(
            name=name,
            lineage=tuple(item.name for item in chain),
            view_helper=view_helper,
            options=MappingProxyType(options),
            parse=parse,
            format=format_value,
        )
        self._resolved[name] = resolved
        return resolved

    def type_for_column(self, column: Column) -> str:
        """根据 SQLAlchemy 列类型推导字段类型名称."""
        column_type = column.type
        for sa_type, name in _COLUMN_TYPE_MAP:
            if isinstance(column_type, sa_type) and name in self._descriptors:
                return name
        return _FALLBACK_COLUMN_TYPE


def build_registry(extra: Iterable[FieldTypeDescriptor] = ()) -> FieldTypeRegistry:
    """由内置注册表条目与额外描述符构建注册表.

    额外描述符与内置类型同名且定义不一致时抛出 DuplicateRegistrationError,
    需要覆盖内置类型时请在构建后调用 ``register(..., replace=True)``.
    """
    registry = FieldTypeRegistry()
    for descriptor in BUILTIN_FIELD_TYPES:
        registry.register(descriptor)
    for descriptor in extra:
        registry.register(descriptor)
    return registry


__all__ = ["FieldTypeRegistry", "build_registry"]
