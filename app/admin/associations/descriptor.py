"""关联描述符: 从 SQLAlchemy relationship 推导关联的基数与键列."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING

from sqlalchemy import inspect as sa_inspect
from sqlalchemy.orm import MANYTOMANY, MANYTOONE

from app.constants.system_constants import ErrorMessages
from app.core.exceptions import ConfigurationError

if TYPE_CHECKING:
    from sqlalchemy import Column
    from sqlalchemy.orm import Mapper, RelationshipProperty


class Cardinality(Enum):
    """关联基数."""

    BELONGS_TO = "belongs_to"
    HAS_ONE = "has_one"
    HAS_MANY = "has_many"


@dataclass(frozen=True, slots=True)
class AssociationDescriptor:
    """关联描述符.

    Attributes:
        name: 关联(relationship)名称.
        parent_model: 声明关联的模型.
        target_model: 关联目标模型.
        cardinality: 关联基数.
        foreign_key: 外键列名,belongs_to 在父表,has_one/has_many 在目标表(多对多在中间表).
        primary_key: 外键所引用的列名,可由配置显式声明(例如 ``email``).
        target_key: 表单中用于标识目标记录的目标模型属性名.
        target_key_columns: 与 target_key 对应的列,用于解码提交值.
        target_key_is_primary: target_key 是否恰为目标模型主键.
        nullable: 外键列是否全部可空.
        inverse: 目标模型上指回父模型的关联名称.

    """

    name: str
    parent_model: type
    target_model: type
    cardinality: Cardinality
    foreign_key: tuple[str, ...]
    primary_key: tuple[str, ...]
    target_key: tuple[str, ...]
    target_key_columns: tuple[Column, ...] = field(compare=False, repr=False)
    target_key_is_primary: bool = True
    nullable: bool = True
    inverse: str | None = None

    @property
    def is_belongs_to(self) -> bool:
        return self.cardinality is Cardinality.BELONGS_TO

    @property
    def is_has_one(self) -> bool:
        return self.cardinality is Cardinality.HAS_ONE

    @property
    def is_has_many(self) -> bool:
        return self.cardinality is Cardinality.HAS_MANY

    @property
    def field_type_name(self) -> str:
        return f"{self.cardinality.value}_association"


def describe_association(
    model: type,
    name: str,
    primary_key: str | Sequence[str] | None = None,
) -> AssociationDescriptor:
    """根据模型上的 relationship 构建关联描述符.

    Args:
        model: 声明关联的模型类.
        name: relationship 名称.
        primary_key: 外键引用列的显式声明,需与 relationship 的连接条件一致.

    Returns:
        AssociationDescriptor.

    Raises:
        ConfigurationError: 关联不存在,或 primary_key 声明与连接条件不一致.

    """
    mapper: Mapper = sa_inspect(model)
    relationship = mapper.relationships.get(name)
    if relationship is None:
        raise ConfigurationError(ErrorMessages.UNKNOWN_FIELD.format(model=model.__name__, field=name))

    target_mapper: Mapper = relationship.mapper
    cardinality = _cardinality(relationship)

    if relationship.direction is MANYTOMANY:
        foreign_columns = [secondary for _, secondary in relationship.synchronize_pairs]
        referenced_columns = [local for local, _ in relationship.synchronize_pairs]
    elif relationship.direction is MANYTOONE:
        foreign_columns = [local for local, _ in relationship.local_remote_pairs]
        referenced_columns = [remote for _, remote in relationship.local_remote_pairs]
    else:
        foreign_columns = [remote for _, remote in relationship.local_remote_pairs]
        referenced_columns = [local for local, _ in relationship.local_remote_pairs]

    referenced_names = tuple(column.name for column in referenced_columns)
    if primary_key is not None:
        declared = (primary_key,) if isinstance(primary_key, str) else tuple(primary_key)
        if set(declared) != set(referenced_names):
            raise ConfigurationError(
                f"关联 {model.__name__}.{name} 的 primary_key 声明 {declared} 与连接列 {referenced_names} 不一致",
            )
        referenced_names = declared

    if cardinality is Cardinality.BELONGS_TO:
        target_key_columns = tuple(referenced_columns)
        target_key_is_primary = {column.name for column in target_key_columns} == {
            column.name for column in target_mapper.primary_key
        }
    else:
        target_key_columns = tuple(target_mapper.primary_key)
        target_key_is_primary = True

    return AssociationDescriptor(
        name=name,
        parent_model=mapper.class_,
        target_model=target_mapper.class_,
        cardinality=cardinality,
        foreign_key=tuple(column.name for column in foreign_columns),
        primary_key=referenced_names,
        target_key=tuple(target_mapper.get_property_by_column(column).key for column in target_key_columns),
        target_key_columns=target_key_columns,
        target_key_is_primary=target_key_is_primary,
        nullable=all(column.nullable for column in foreign_columns),
        inverse=_find_inverse(mapper, relationship),
    )


def _cardinality(relationship: RelationshipProperty) -> Cardinality:
    if relationship.direction is MANYTOONE:
        return Cardinality.BELONGS_TO
    if relationship.direction is MANYTOMANY or relationship.uselist:
        return Cardinality.HAS_MANY
    return Cardinality.HAS_ONE


def _foreign_columns(relationship: RelationshipProperty) -> frozenset[tuple[str, str]]:
    if relationship.direction is MANYTOMANY:
        columns = [secondary for _, secondary in relationship.synchronize_pairs]
    elif relationship.direction is MANYTOONE:
        columns = list(relationship.local_columns)
    else:
        columns = list(relationship.remote_side)
    return frozenset((column.table.name, column.name) for column in columns)


def _find_inverse(mapper: Mapper, relationship: RelationshipProperty) -> str | None:
    if relationship.back_populates:
        return relationship.back_populates
    expected = _foreign_columns(relationship)
    for candidate in relationship.mapper.relationships:
        if candidate is relationship or candidate.direction is MANYTOMANY:
            continue
        if candidate.mapper.local_table is not mapper.local_table:
            continue
        if _foreign_columns(candidate) == expected:
            return candidate.key
    return None


__all__ = ["AssociationDescriptor", "Cardinality", "describe_association"]
