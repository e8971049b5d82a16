"""结构化日志模块共享的上下文变量。."""

from contextvars import ContextVar

request_id_var: ContextVar[str | None] = ContextVar("request_id", default=None)
admin_model_var: ContextVar[str | None] = ContextVar("admin_model", default=None)

__all__ = ["admin_model_var", "request_id_var"]
