"""字段类型描述符与绑定到模型的字段对象.

FieldTypeDescriptor 是注册表中的声明式条目,只描述 "某类数据如何录入与展示";
Field 则是描述符与具体模型列/关联的绑定结果,按需解析选项.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from app.core.exceptions import ConfigurationError

if TYPE_CHECKING:
    from sqlalchemy import Column

    from app.admin.associations.descriptor import AssociationDescriptor
    from app.admin.model_config import ModelConfig

ParseFunc = Callable[[str], object]
FormatFunc = Callable[[object], str]

_MISSING = object()


@dataclass(frozen=True, slots=True)
class FieldTypeDescriptor:
    """字段类型描述符.

    Attributes:
        name: 字段类型名称,在注册表内唯一.
        view_helper: 表单控件名称,为空时沿父类型继承.
        parent: 父类型名称,选项与解析函数沿父链继承.
        options: 选项默认值,值可以是常量,也可以是 ``(field) -> value`` 的回调.
        parse: 表单字符串转换为 Python 值,格式错误时抛出 ValueError.
        format: Python 值转换为展示字符串.

    """

    name: str
    view_helper: str | None = None
    parent: str | None = None
    options: Mapping[str, object] = field(default_factory=dict, hash=False)
    parse: ParseFunc | None = field(default=None, hash=False)
    format: FormatFunc | None = field(default=None, hash=False)


@dataclass(frozen=True, slots=True)
class ResolvedFieldType:
    """沿父链合并后的字段类型."""

    name: str
    lineage: tuple[str, ...]
    view_helper: str
    options: Mapping[str, object]
    parse: ParseFunc
    format: FormatFunc

    def is_a(self, name: str) -> bool:
        """判断当前类型是否为 ``name`` 或继承自 ``name``."""
        return name in self.lineage


def humanize(name: str) -> str:
    """``draft_id`` -> ``Draft``, ``managing_user`` -> ``Managing user``."""
    text = name.removesuffix("_id").replace("_", " ").strip()
    return text[:1].upper() + text[1:]


class Field:
    """绑定到具体模型的字段.

    选项解析顺序: 模型级覆盖 -> 字段类型(含父链)默认值. 回调型选项在每次读取时
    以当前字段为参数求值.
    """

    def __init__(
        self,
        model_config: ModelConfig,
        name: str,
        field_type: ResolvedFieldType,
        *,
        column: Column | None = None,
        association: AssociationDescriptor | None = None,
        overrides: Mapping[str, object] | None = None,
    ) -> None:
        self.model_config = model_config
        self.name = name
        self.field_type = field_type
        self.column = column
        self.association = association
        self.overrides = dict(overrides or {})

    def __repr__(self) -> str:
        return f"<Field {self.model_config.name}.{self.name} type={self.field_type.name}>"

    def option(self, name: str, default: object = _MISSING) -> object:
        """读取选项值.

        Raises:
            ConfigurationError: 选项既无覆盖也无默认值且未提供 default.

        """
        if name in self.overrides:
            value = self.overrides[name]
        elif name in self.field_type.options:
            value = self.field_type.options[name]
        elif default is not _MISSING:
            return default
        else:
            raise ConfigurationError(f"字段 {self.model_config.name}.{self.name} 未定义选项: {name}")
        if callable(value):
            return value(self)
        return value

    @property
    def type_name(self) -> str:
        return self.field_type.name

    @property
    def view_helper(self) -> str:
        return str(self.option("view_helper", self.field_type.view_helper))

    @property
    def label(self) -> str:
        return str(self.option("label", humanize(self.name)))

    @property
    def is_association(self) -> bool:
        return self.association is not None

    @property
    def nested(self) -> bool:
        return bool(self.option("nested", False))

    @property
    def visible(self) -> bool:
        return bool(self.option("visible", True))

    @property
    def read_only(self) -> bool:
        return bool(self.option("read_only", False))

    @property
    def required(self) -> bool:
        return bool(self.option("required", False))

    @property
    def method_name(self) -> str:
        """表单参数中的字段键.

        列字段即列名; belongs_to 使用外键列名(单列时); has_one 为 ``<name>_id``;
        has_many 为 ``<singular 选项>_ids``.
        """
        association = self.association
        if association is None:
            return self.name
        if association.is_belongs_to and len(association.foreign_key) == 1:
            return association.foreign_key[0]
        if association.is_has_many:
            return f"{self.option('singular')}_ids"
        return f"{self.name}_id"

    @property
    def attributes_name(self) -> str:
        """嵌套表单参数键,例如 ``fanship_attributes``."""
        return f"{self.name}_attributes"

    @property
    def input_id(self) -> str:
        return f"{self.model_config.param_key}_{self.method_name}"

    @property
    def input_name(self) -> str:
        base = f"{self.model_config.param_key}[{self.method_name}]"
        if self.association is not None and self.association.is_has_many:
            return f"{base}[]"
        return base

    def parse_input(self, raw: str) -> object:
        """把表单字符串转换为字段值,格式错误时抛出 ValueError."""
        return self.field_type.parse(raw)

    def format_value(self, value: object) -> str:
        if value is None:
            return ""
        return self.field_type.format(value)

    def value(self, instance: object) -> object:
        """读取实例上的字段原始值."""
        return getattr(instance, self.name, None)

    def form_value(self, instance: object | None) -> str:
        """渲染表单时的回填字符串(关联字段由关联解析器提供)."""
        if instance is None:
            return ""
        return self.format_value(self.value(instance))


__all__ = [
    "Field",
    "FieldTypeDescriptor",
    "FormatFunc",
    "ParseFunc",
    "ResolvedFieldType",
    "humanize",
]
