"""后台记录写操作 Service.

职责:
- 按字段类型解析表单值并收集字段级错误
- 通过关联解析器写入 belongs_to/has_one/has_many 关联
- 处理嵌套的 has_one 子记录表单(``<field>_attributes``)
- 调用 repository 执行 add/delete/flush
- 不返回 Response, 不 commit
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import TYPE_CHECKING, cast

from sqlalchemy.exc import IntegrityError

from app import db
from app.admin.associations.resolver import AssociationResolver
from app.constants.system_constants import ErrorMessages
from app.core.exceptions import ConflictError, NotFoundError, RecordValidationError, ValidationError
from app.repositories.admin_records_repository import AdminRecordsRepository
from app.utils.structlog_config import log_info

if TYPE_CHECKING:
    from app.admin.fields.base import Field
    from app.admin.model_config import ModelConfig
    from app.core.types import PayloadMapping, PayloadValue

_ErrorBucket = dict[str, list[str]]


class RecordWriteService:
    """后台记录写操作服务."""

    def __init__(
        self,
        repository: AdminRecordsRepository | None = None,
        resolver: AssociationResolver | None = None,
    ) -> None:
        self._repository = repository or AdminRecordsRepository()
        self._resolver = resolver or AssociationResolver()

    def upsert(
        self,
        model_config: ModelConfig,
        payload: PayloadMapping | None,
        resource: object | None = None,
    ) -> object:
        """创建或更新记录.

        只处理 payload 中出现的字段,未提交的字段保持原值;必填校验对最终状态生效.

        Args:
            model_config: 模型配置.
            payload: 已展开 ``param_key[...]`` 的字段字典.
            resource: 编辑场景下的已有记录,创建时为 None.

        Returns:
            已 flush 的模型实例.

        Raises:
            RecordValidationError: 存在字段级错误.
            ConflictError: 违反数据库约束.

        """
        sanitized = dict(payload or {})
        instance = resource if resource is not None else model_config.model()
        errors: _ErrorBucket = {}

        # 加载关联目标时不触发半成品记录的自动 flush
        with db.session.no_autoflush:
            self._assign_fields(model_config, instance, sanitized, model_config.form_fields, errors, prefix="")

        if errors:
            raise RecordValidationError(errors, model=model_config.name)

        if resource is None:
            self._repository.add(instance)
        self._flush(model_config)

        log_info(
            "更新后台记录" if resource is not None else "创建后台记录",
            module="admin",
            model=model_config.name,
            record_key=model_config.object_key(instance),
            fields=sorted(sanitized),
        )
        return instance

    def delete(self, model_config: ModelConfig, resource: object) -> None:
        """删除记录.

        Raises:
            ConflictError: 记录仍被其他记录引用.

        """
        record_key = model_config.object_key(resource)
        self._repository.delete(resource)
        self._flush(model_config)
        log_info("删除后台记录", module="admin", model=model_config.name, record_key=record_key)

    # ------------------------------------------------------------------ #
    # 字段赋值
    # ------------------------------------------------------------------ #
    def _assign_fields(
        self,
        model_config: ModelConfig,
        instance: object,
        payload: Mapping[str, PayloadValue],
        fields: Sequence[Field],
        errors: _ErrorBucket,
        *,
        prefix: str,
    ) -> None:
        for field in fields:
            error_key = f"{prefix}{field.name}"
            if field.association is None:
                self._assign_column(field, instance, payload, errors, error_key)
            elif field.nested and isinstance(payload.get(field.attributes_name), Mapping):
                self._assign_nested(model_config, field, instance, payload, errors, error_key)
            else:
                self._assign_association(field, instance, payload, errors, error_key)

            if error_key not in errors and field.required and field.value(instance) is None:
                errors.setdefault(error_key, []).append(ErrorMessages.FIELD_REQUIRED)

    def _assign_column(
        self,
        field: Field,
        instance: object,
        payload: Mapping[str, PayloadValue],
        errors: _ErrorBucket,
        error_key: str,
    ) -> None:
        if field.method_name not in payload:
            return
        raw = _scalar(payload[field.method_name])
        if raw is None or raw == "":
            setattr(instance, field.name, None)
            return

        try:
            value = field.parse_input(raw)
        except ValueError:
            errors.setdefault(error_key, []).append(ErrorMessages.FIELD_INVALID)
            return

        choices = cast("tuple[str, ...]", field.option("enum", ()))
        if choices and value not in choices:
            errors.setdefault(error_key, []).append(ErrorMessages.FIELD_NOT_IN_CHOICES)
            return
        length = field.option("length", None)
        if isinstance(length, int) and isinstance(value, str) and len(value) > length:
            errors.setdefault(error_key, []).append(ErrorMessages.FIELD_TOO_LONG.format(length=length))
            return
        setattr(instance, field.name, value)

    def _assign_association(
        self,
        field: Field,
        instance: object,
        payload: Mapping[str, PayloadValue],
        errors: _ErrorBucket,
        error_key: str,
    ) -> None:
        if field.method_name not in payload:
            return
        descriptor = field.association
        if descriptor is None:
            return
        try:
            operation = self._resolver.resolve(instance, descriptor, payload[field.method_name])
        except (NotFoundError, ValidationError) as exc:
            errors.setdefault(error_key, []).append(exc.message)
            return
        self._resolver.apply(operation)

    def _assign_nested(
        self,
        model_config: ModelConfig,
        field: Field,
        instance: object,
        payload: Mapping[str, PayloadValue],
        errors: _ErrorBucket,
        error_key: str,
    ) -> None:
        descriptor = field.association
        if descriptor is None:
            return
        attributes = cast("Mapping[str, PayloadValue]", payload[field.attributes_name])
        target_config = model_config.admin.config_for(descriptor.target_model)
        child = getattr(instance, field.name, None)
        if child is None:
            if not any(_scalar(value) not in (None, "") for value in attributes.values()):
                return
            child = target_config.model()

        nested_fields = target_config.nested_form_fields(descriptor.inverse)
        self._assign_fields(target_config, child, attributes, nested_fields, errors, prefix=f"{error_key}.")
        setattr(instance, field.name, child)

    def _flush(self, model_config: ModelConfig) -> None:
        try:
            self._repository.flush()
        except IntegrityError as exc:
            raise ConflictError(
                ErrorMessages.CONSTRAINT_VIOLATION,
                extra={"model": model_config.name, "detail": str(exc.orig)},
            ) from exc


def _scalar(value: PayloadValue) -> str | None:
    # 多值提交取最后一个(复选框的隐藏默认值在前)
    if isinstance(value, Sequence) and not isinstance(value, str):
        value = value[-1] if value else None
    if value is None or isinstance(value, Mapping):
        return None
    return str(value)


__all__ = ["RecordWriteService"]
