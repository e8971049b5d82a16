"""关联解析: 把表单提交的主键解析为目标记录并写入关联."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING

from sqlalchemy import and_, select
from sqlalchemy import inspect as sa_inspect

from app import db
from app.admin.associations.keys import decode_key, encode_key, key_values
from app.constants.system_constants import ErrorMessages
from app.core.exceptions import AssociationNotFoundError, MalformedKeyError, ValidationError
from app.utils.structlog_config import log_debug

if TYPE_CHECKING:
    from sqlalchemy.orm import Session

    from app.admin.associations.descriptor import AssociationDescriptor


@dataclass(frozen=True, slots=True)
class LinkageOperation:
    """一次请求内的关联写入动作.

    Attributes:
        parent: 父记录.
        descriptor: 关联描述符.
        targets: 解析出的目标记录,为空表示清除关联.

    """

    parent: object
    descriptor: AssociationDescriptor
    targets: tuple[object, ...] = ()

    @property
    def clears(self) -> bool:
        return not self.targets

    @property
    def target(self) -> object | None:
        return self.targets[0] if self.targets else None


def _normalize_raw(raw: object, *, many: bool) -> list[str]:
    if raw is None:
        return []
    items = list(raw) if isinstance(raw, Sequence) and not isinstance(raw, str) else [raw]
    values: list[str] = []
    for item in items:
        text = "" if item is None else str(item).strip()
        if text and text not in values:
            values.append(text)
    if not many and len(values) > 1:
        raise MalformedKeyError(raw, expected_parts=1)
    return values


class AssociationResolver:
    """关联解析器,运行在调用方的工作单元内,不负责提交."""

    def __init__(self, session: Session | None = None) -> None:
        self.session = session or db.session

    def resolve(self, parent: object, descriptor: AssociationDescriptor, raw: object) -> LinkageOperation:
        """解析提交值.

        空值/缺省表示清除关联; has_many 接受主键列表,重复值会被合并.

        Raises:
            MalformedKeyError: 主键格式无效.
            AssociationNotFoundError: 目标记录不存在.
            ValidationError: 外键不可为空时尝试清除 has_one 关联.

        """
        values = _normalize_raw(raw, many=descriptor.is_has_many)
        if not values:
            if descriptor.is_has_one and not descriptor.nullable and getattr(parent, descriptor.name, None) is not None:
                raise ValidationError(ErrorMessages.FIELD_REQUIRED, extra={"field": descriptor.name})
            return LinkageOperation(parent=parent, descriptor=descriptor)

        targets = tuple(self.load_target(descriptor, value) for value in values)
        return LinkageOperation(parent=parent, descriptor=descriptor, targets=targets)

    def load_target(self, descriptor: AssociationDescriptor, raw: str) -> object:
        """按目标主键(或声明的引用列)加载目标记录."""
        key = decode_key(raw, descriptor.target_key_columns)
        target_model = descriptor.target_model
        if descriptor.target_key_is_primary:
            ordered = self._primary_key_order(descriptor, key)
            target = self.session.get(target_model, ordered if len(ordered) > 1 else ordered[0])
        else:
            conditions = [
                getattr(target_model, attribute) == value
                for attribute, value in zip(descriptor.target_key, key, strict=True)
            ]
            target = self.session.scalars(select(target_model).where(and_(*conditions)).limit(1)).first()

        if target is None:
            raise AssociationNotFoundError(descriptor.name, target=target_model.__name__, key=raw)
        return target

    def apply(self, operation: LinkageOperation) -> None:
        """把解析结果写入父记录的 relationship,由 ORM 同步外键列."""
        descriptor = operation.descriptor
        if descriptor.is_has_many:
            setattr(operation.parent, descriptor.name, list(operation.targets))
        else:
            setattr(operation.parent, descriptor.name, operation.target)
        log_debug(
            "写入关联",
            module="admin",
            association=descriptor.name,
            cardinality=descriptor.cardinality.value,
            target_count=len(operation.targets),
        )

    def current_key(self, parent: object | None, descriptor: AssociationDescriptor) -> str | list[str]:
        """当前关联目标的主键字符串,用于编辑时回填选择框."""
        linked = getattr(parent, descriptor.name, None) if parent is not None else None
        if descriptor.is_has_many:
            return [encode_key(key_values(item, descriptor.target_key)) for item in linked or ()]
        if linked is None:
            return ""
        return encode_key(key_values(linked, descriptor.target_key))

    @staticmethod
    def _primary_key_order(descriptor: AssociationDescriptor, key: tuple[object, ...]) -> tuple[object, ...]:
        # target_key_columns 与映射器主键可能顺序不同
        by_name = {column.name: value for column, value in zip(descriptor.target_key_columns, key, strict=True)}
        return tuple(by_name[column.name] for column in sa_inspect(descriptor.target_model).primary_key)


__all__ = ["AssociationResolver", "LinkageOperation"]
