"""珊瑚后台 - 常量定义模块

统一管理错误分类、严重度与面向用户的提示文案.
"""

from enum import Enum


class ErrorCategory(Enum):
    """错误分类枚举."""

    VALIDATION = "validation"
    BUSINESS = "business"
    CONFIGURATION = "configuration"
    SYSTEM = "system"


class ErrorSeverity(Enum):
    """错误严重程度枚举."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


# 错误消息常量
class ErrorMessages:
    """错误消息常量."""

    # 通用错误
    INTERNAL_ERROR = "服务器内部错误"
    VALIDATION_ERROR = "数据验证失败"
    RESOURCE_NOT_FOUND = "资源不存在"
    INVALID_REQUEST = "无效的请求"
    CONSTRAINT_VIOLATION = "数据约束错误"

    # 配置错误
    CONFIGURATION_ERROR = "后台配置错误"
    UNKNOWN_FIELD_TYPE = "未知的字段类型: {name}"
    DUPLICATE_FIELD_TYPE = "字段类型重复注册: {name}"
    UNKNOWN_MODEL = "模型未纳入后台管理: {name}"
    UNKNOWN_FIELD = "模型 {model} 不存在字段: {field}"

    # 记录/关联错误
    RECORD_INVALID = "记录保存失败,请检查标红字段"
    RECORD_NOT_FOUND = "{model} 记录不存在"
    ASSOCIATION_NOT_FOUND = "未找到关联记录"
    MALFORMED_KEY = "主键格式无效"
    FIELD_REQUIRED = "不能为空"
    FIELD_INVALID = "格式无效"
    FIELD_TOO_LONG = "长度不能超过 {length} 个字符"
    FIELD_NOT_IN_CHOICES = "不在可选范围内"


# 成功消息常量
class SuccessMessages:
    """成功消息常量."""

    OPERATION_SUCCESS = "操作成功"
    RECORD_CREATED = "{model} 创建成功"
    RECORD_UPDATED = "{model} 更新成功"
    RECORD_DELETED = "{model} 删除成功"


__all__ = [
    "ErrorCategory",
    "ErrorMessages",
    "ErrorSeverity",
    "SuccessMessages",
]
