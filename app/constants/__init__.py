"""常量模块.

集中管理系统常量,包括错误消息、HTTP 相关常量与 Flash 类别.

主要常量:
- ErrorMessages: 错误消息常量
- HttpStatus: HTTP 状态码常量
- HttpHeaders: HTTP 头常量
- FlashCategory: Flash 消息类别
"""

from http import HTTPStatus as HttpStatus

from .flash_categories import FlashCategory
from .http_headers import HttpHeaders
from .system_constants import (
    ErrorCategory,
    ErrorMessages,
    ErrorSeverity,
    SuccessMessages,
)

__all__ = [
    "ErrorCategory",
    "ErrorMessages",
    "ErrorSeverity",
    "FlashCategory",
    "HttpHeaders",
    "HttpStatus",
    "SuccessMessages",
]
