"""珊瑚后台 - 统一异常定义(Shared Kernel).

说明:
- 本模块只负责定义异常类型与语义字段,不包含 HTTP/Flask/Werkzeug 等框架细节.
- 异常到 HTTP status 的映射应在 API/HTTP 边界完成(见 `app/api/error_mapping.py`).
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING

from app.constants.system_constants import ErrorCategory, ErrorMessages, ErrorSeverity

if TYPE_CHECKING:
    from app.core.types import LoggerExtra


@dataclass(frozen=True, slots=True)
class ExceptionMetadata:
    """异常的元信息(不包含传输层信息)."""

    category: ErrorCategory
    severity: ErrorSeverity
    default_message_key: str


class AppError(Exception):
    """统一的基础业务异常.

    Args:
        message: 自定义错误文案,若为空则根据 ``message_key`` 推导.
        message_key: 自定义消息键.
        extra: 结构化日志附加字段.
        severity: 错误严重度.
        category: 错误分类.
    """

    metadata = ExceptionMetadata(
        category=ErrorCategory.SYSTEM,
        severity=ErrorSeverity.HIGH,
        default_message_key="INTERNAL_ERROR",
    )

    def __init__(
        self,
        message: str | None = None,
        *,
        message_key: str | None = None,
        extra: LoggerExtra | None = None,
        severity: ErrorSeverity | None = None,
        category: ErrorCategory | None = None,
    ) -> None:
        """初始化基础业务异常.

        Args:
            message: 直接使用的错误提示,缺省时会根据 message_key 推导.
            message_key: 覆盖默认 message_key 的可选值.
            extra: 结构化日志附加字段.
            severity: 错误严重度.
            category: 错误分类.
        """
        self.message_key = message_key or self.metadata.default_message_key
        self.message = message or getattr(ErrorMessages, self.message_key, ErrorMessages.INTERNAL_ERROR)
        self.extra = dict(extra or {})
        self.severity = severity or self.metadata.severity
        self.category = category or self.metadata.category
        super().__init__(self.message)

    @property
    def recoverable(self) -> bool:
        """表示该异常是否可恢复."""

        return self.severity in (ErrorSeverity.LOW, ErrorSeverity.MEDIUM)


class ValidationError(AppError):
    """表示输入参数或请求体验证失败."""

    metadata = ExceptionMetadata(
        category=ErrorCategory.VALIDATION,
        severity=ErrorSeverity.LOW,
        default_message_key="VALIDATION_ERROR",
    )


class NotFoundError(AppError):
    """表示客户端请求的资源不存在或被删除."""

    metadata = ExceptionMetadata(
        category=ErrorCategory.BUSINESS,
        severity=ErrorSeverity.LOW,
        default_message_key="RESOURCE_NOT_FOUND",
    )


class ConflictError(AppError):
    """表示资源状态冲突或违反唯一性约束."""

    metadata = ExceptionMetadata(
        category=ErrorCategory.BUSINESS,
        severity=ErrorSeverity.MEDIUM,
        default_message_key="CONSTRAINT_VIOLATION",
    )


class SystemError(AppError):
    """表示系统级未知错误或底层故障."""


class ConfigurationError(AppError):
    """表示后台配置阶段的错误,应在启动时直接失败."""

    metadata = ExceptionMetadata(
        category=ErrorCategory.CONFIGURATION,
        severity=ErrorSeverity.CRITICAL,
        default_message_key="CONFIGURATION_ERROR",
    )


class UnknownFieldTypeError(ConfigurationError):
    """查找或继承了未注册的字段类型."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(
            ErrorMessages.UNKNOWN_FIELD_TYPE.format(name=name),
            message_key="UNKNOWN_FIELD_TYPE",
            extra={"field_type": name},
        )


class DuplicateRegistrationError(ConfigurationError):
    """同名字段类型以不兼容的定义重复注册."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(
            ErrorMessages.DUPLICATE_FIELD_TYPE.format(name=name),
            message_key="DUPLICATE_FIELD_TYPE",
            extra={"field_type": name},
        )


class MalformedKeyError(NotFoundError):
    """主键(含复合主键)的提交值无法解析,按记录不存在处理."""

    def __init__(self, raw_value: object, *, expected_parts: int) -> None:
        self.raw_value = raw_value
        self.expected_parts = expected_parts
        super().__init__(
            ErrorMessages.MALFORMED_KEY,
            message_key="MALFORMED_KEY",
            extra={"raw_value": str(raw_value), "expected_parts": expected_parts},
        )


class AssociationNotFoundError(NotFoundError):
    """关联目标记录不存在."""

    def __init__(self, field_name: str, *, target: str, key: object) -> None:
        self.field_name = field_name
        self.target = target
        self.key = key
        super().__init__(
            ErrorMessages.ASSOCIATION_NOT_FOUND,
            message_key="ASSOCIATION_NOT_FOUND",
            extra={"field": field_name, "target": target, "key": str(key)},
        )


class RecordValidationError(ValidationError):
    """记录保存前的字段级校验失败.

    Attributes:
        errors: 字段名到错误文案列表的映射,用于在表单对应字段下展示.
    """

    def __init__(self, errors: Mapping[str, Sequence[str]], *, model: str | None = None) -> None:
        self.errors: dict[str, list[str]] = {name: list(messages) for name, messages in errors.items()}
        super().__init__(
            ErrorMessages.RECORD_INVALID,
            message_key="RECORD_INVALID",
            extra={"model": model, "error_fields": sorted(self.errors)},
        )


__all__ = [
    "AppError",
    "AssociationNotFoundError",
    "ConfigurationError",
    "ConflictError",
    "DuplicateRegistrationError",
    "MalformedKeyError",
    "NotFoundError",
    "RecordValidationError",
    "SystemError",
    "UnknownFieldTypeError",
    "ValidationError",
]
