"""单个模型的后台配置: 通过 SQLAlchemy 映射器内省列与关联,生成有序字段列表."""

from __future__ import annotations

import re
from collections.abc import Iterable, Mapping, Sequence
from typing import TYPE_CHECKING, cast

from sqlalchemy import inspect as sa_inspect
from sqlalchemy import types as sa_types
from sqlalchemy.orm import ColumnProperty, RelationshipProperty

from app.admin.associations.descriptor import describe_association
from app.admin.associations.keys import decode_key, encode_key, key_values
from app.admin.fields.base import Field, humanize
from app.constants.system_constants import ErrorMessages
from app.core.exceptions import ConfigurationError

if TYPE_CHECKING:
    from sqlalchemy import Column
    from sqlalchemy.orm import Mapper

    from app.admin.associations.descriptor import AssociationDescriptor
    from app.admin.config import AdminConfig

LABEL_ATTRIBUTES: tuple[str, ...] = ("name", "title", "label")
_CAMEL_BOUNDARY = re.compile(r"(?<!^)(?=[A-Z])")


def underscore(class_name: str) -> str:
    """``ManagingUser`` -> ``managing_user``."""
    return _CAMEL_BOUNDARY.sub("_", class_name).lower()


class ModelConfig:
    """单个模型的后台配置.

    Attributes:
        model: 模型类.
        admin: 所属 AdminConfig.
        name: URL 段与模板中的模型名,例如 ``nested_fan``.
        param_key: 表单参数前缀,与 name 相同.
        label: 展示名,例如 ``Nested fan``.
        included: 是否出现在后台导航与路由中.

    """

    def __init__(
        self,
        model: type,
        admin: AdminConfig,
        *,
        fields: Sequence[str] | None = None,
        overrides: Mapping[str, Mapping[str, object]] | None = None,
        label: str | None = None,
        included: bool = True,
    ) -> None:
        self.model = model
        self.admin = admin
        self.mapper: Mapper = sa_inspect(model)
        self.name = underscore(model.__name__)
        self.param_key = self.name
        self.label = label or humanize(self.name)
        self.included = included
        self.overrides: dict[str, dict[str, object]] = {key: dict(value) for key, value in (overrides or {}).items()}

        unknown = set(self.overrides) - set(self._available_names())
        if unknown:
            raise ConfigurationError(
                ErrorMessages.UNKNOWN_FIELD.format(model=model.__name__, field=", ".join(sorted(unknown))),
            )
        self.fields: list[Field] = self._build_fields(fields)
        self._by_name = {field.name: field for field in self.fields}

    def __repr__(self) -> str:
        return f"<ModelConfig {self.name}>"

    # ------------------------------------------------------------------ #
    # 字段
    # ------------------------------------------------------------------ #
    def field(self, name: str) -> Field:
        """按名称获取字段.

        Raises:
            ConfigurationError: 字段不存在或未配置.

        """
        try:
            return self._by_name[name]
        except KeyError:
            raise ConfigurationError(
                ErrorMessages.UNKNOWN_FIELD.format(model=self.model.__name__, field=name),
            ) from None

    def has_field(self, name: str) -> bool:
        return name in self._by_name

    @property
    def visible_fields(self) -> list[Field]:
        return [field for field in self.fields if field.visible]

    @property
    def form_fields(self) -> list[Field]:
        """可编辑字段,排除自增主键与只读字段."""
        return [field for field in self.visible_fields if not field.read_only and not self._is_generated_key(field)]

    def nested_form_fields(self, inverse: str | None) -> list[Field]:
        """作为嵌套表单时的字段,排除指回父记录的关联."""
        return [field for field in self.form_fields if field.name != inverse]

    @property
    def association_fields(self) -> list[Field]:
        return [field for field in self.fields if field.association is not None]

    # ------------------------------------------------------------------ #
    # 主键与展示
    # ------------------------------------------------------------------ #
    @property
    def primary_key_columns(self) -> tuple[Column, ...]:
        return tuple(self.mapper.primary_key)

    @property
    def primary_key_attributes(self) -> tuple[str, ...]:
        return tuple(self.mapper.get_property_by_column(column).key for column in self.mapper.primary_key)

    def object_key(self, instance: object) -> str:
        """实例主键的 URL 编码形式,复合主键以逗号拼接."""
        return encode_key(key_values(instance, self.primary_key_attributes))

    def decode_object_key(self, raw: str) -> tuple[object, ...]:
        return decode_key(raw, self.primary_key_columns)

    @property
    def label_column(self) -> Column | None:
        """用作展示名的列(name/title/label),不存在时为 None."""
        for attribute in LABEL_ATTRIBUTES:
            prop = self.mapper.attrs.get(attribute)
            if isinstance(prop, ColumnProperty):
                return prop.columns[0]
        return None

    def object_label(self, instance: object) -> str:
        """实例的展示名: 优先 name/title/label 属性,否则为 ``<模型名> #<主键>``."""
        for attribute in LABEL_ATTRIBUTES:
            if attribute not in self.mapper.attrs:
                continue
            value = getattr(instance, attribute, None)
            if value is not None and str(value).strip():
                return str(value)
        return f"{self.label} #{self.object_key(instance)}"

    # ------------------------------------------------------------------ #
    # 构建
    # ------------------------------------------------------------------ #
    def _available_names(self) -> list[str]:
        return [prop.key for prop in self.mapper.attrs if isinstance(prop, (ColumnProperty, RelationshipProperty))]

    def _default_field_names(self) -> list[str]:
        """列按表顺序排列,被 belongs_to 覆盖的外键列替换为该关联;其余关联追加在后."""
        belongs_to_by_column: dict[str, str] = {}
        trailing: list[str] = []
        for relationship in self.mapper.relationships:
            if relationship.viewonly:
                continue
            descriptor = self._describe(relationship.key)
            if descriptor.is_belongs_to:
                for column_name in descriptor.foreign_key:
                    belongs_to_by_column.setdefault(column_name, relationship.key)
            else:
                trailing.append(relationship.key)

        names: list[str] = []
        for prop in self.mapper.column_attrs:
            column = prop.columns[0]
            association = belongs_to_by_column.get(column.name)
            name = association or prop.key
            if name not in names:
                names.append(name)
        names.extend(trailing)
        return names

    def _build_fields(self, field_names: Iterable[str] | None) -> list[Field]:
        names = list(field_names) if field_names is not None else self._default_field_names()
        available = set(self._available_names())
        built: list[Field] = []
        for name in names:
            if name not in available:
                raise ConfigurationError(ErrorMessages.UNKNOWN_FIELD.format(model=self.model.__name__, field=name))
            built.append(self._build_field(name))
        return built

    def _build_field(self, name: str) -> Field:
        overrides = self.overrides.get(name, {})
        registry = self.admin.registry
        prop = self.mapper.attrs[name]

        if isinstance(prop, RelationshipProperty):
            descriptor = self._describe(name)
            type_name = str(overrides.get("type") or descriptor.field_type_name)
            return Field(self, name, registry.resolve(type_name), association=descriptor, overrides=overrides)

        column = prop.columns[0]
        type_name = str(overrides.get("type") or registry.type_for_column(column))
        return Field(self, name, registry.resolve(type_name), column=column, overrides=overrides)

    def _describe(self, name: str) -> AssociationDescriptor:
        primary_key = cast("str | Sequence[str] | None", self.overrides.get(name, {}).get("primary_key"))
        return describe_association(self.model, name, primary_key=primary_key)

    @staticmethod
    def _is_generated_key(field: Field) -> bool:
        column = field.column
        if column is None or not column.primary_key:
            return False
        if column.autoincrement is True:
            return True
        if column.autoincrement != "auto" or len(column.table.primary_key) != 1:
            return False
        return isinstance(column.type, sa_types.Integer)


__all__ = ["LABEL_ATTRIBUTES", "ModelConfig", "underscore"]
