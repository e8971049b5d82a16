"""后台请求的工作单元边界.

视图把一次写操作包成闭包交给 `safe_route_call`: 正常返回即提交,
任何异常都回滚整个会话. 日志字段统一带上 module/action 与当前后台模型.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import TYPE_CHECKING, Literal, TypeVar, Unpack

from sqlalchemy.exc import IntegrityError
from werkzeug.exceptions import HTTPException

from app import db
from app.constants.system_constants import ErrorMessages
from app.core.exceptions import AppError, ConflictError, SystemError
from app.utils.logging.context_vars import admin_model_var
from app.utils.structlog_config import get_logger

if TYPE_CHECKING:
    from app.core.types import ContextDict, ContextMapping, LoggerExtra, RouteSafetyOptions

R = TypeVar("R")
LogLevel = Literal["debug", "info", "warning", "error", "critical"]

# 业务层主动抛出的异常原样透传,由全局错误处理器或视图自行渲染
PASSTHROUGH_EXCEPTIONS: tuple[type[BaseException], ...] = (AppError, HTTPException)


def log_with_context(
    level: LogLevel,
    event: str,
    *,
    module: str,
    action: str,
    context: ContextMapping | None = None,
    extra: LoggerExtra | None = None,
) -> None:
    """输出带 module/action 与后台模型名的结构化日志.

    Args:
        level: structlog 方法名,例如 "info"、"warning".
        event: 事件描述.
        module: 所属模块,例如 "admin".
        action: 操作名,例如 "create".
        context: 业务上下文(模型名、主键等).
        extra: 诊断字段(异常类型等).

    """
    payload: ContextDict = {"module": module, "action": action}
    admin_model = admin_model_var.get()
    if admin_model:
        payload["admin_model"] = admin_model
    if context:
        payload.update(context)
    if extra:
        payload.update(extra)
    logger = get_logger("app")
    getattr(logger, level, logger.error)(event, **payload)


def safe_route_call(
    func: Callable[[], R],
    *,
    module: str,
    action: str,
    public_error: str,
    **options: Unpack[RouteSafetyOptions],
) -> R:
    """在单个工作单元内执行视图逻辑.

    Args:
        func: 业务闭包.
        module: 日志模块名.
        action: 日志动作名.
        public_error: 未知异常时暴露给客户端的文案.
        **options: ``context``/``extra`` 日志字段; ``commit=False`` 用于只读调用,
            成功后不提交.

    Returns:
        业务闭包的返回值.

    Raises:
        AppError: 业务异常原样抛出; 提交时违反约束转为 ConflictError;
            其余异常包装为 SystemError(public_error).

    """
    context: ContextMapping = options.get("context") or {}
    extra: LoggerExtra = options.get("extra") or {}
    event = f"{action}执行失败"

    try:
        result = func()
    except PASSTHROUGH_EXCEPTIONS as exc:
        db.session.rollback()
        log_with_context(
            "warning",
            event,
            module=module,
            action=action,
            context=context,
            extra={**extra, "error_type": exc.__class__.__name__, "error_message": str(exc)},
        )
        raise
    except Exception as exc:
        db.session.rollback()
        log_with_context(
            "error",
            event,
            module=module,
            action=action,
            context=context,
            extra={**extra, "error_type": exc.__class__.__name__, "unexpected": True},
        )
        raise SystemError(public_error) from exc

    if not options.get("commit", True):
        return result

    try:
        db.session.commit()
    except IntegrityError as exc:
        db.session.rollback()
        log_with_context(
            "warning",
            event,
            module=module,
            action=action,
            context=context,
            extra={**extra, "error_type": exc.__class__.__name__, "commit_failed": True},
        )
        raise ConflictError(ErrorMessages.CONSTRAINT_VIOLATION, extra={"action": action}) from exc
    except Exception as exc:
        db.session.rollback()
        log_with_context(
            "error",
            event,
            module=module,
            action=action,
            context=context,
            extra={**extra, "error_type": exc.__class__.__name__, "commit_failed": True},
        )
        raise SystemError(public_error) from exc
    return result
