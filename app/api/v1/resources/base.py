"""Base Resource helpers."""

from __future__ import annotations

from collections.abc import Callable, Mapping
from typing import TYPE_CHECKING, Any, TypeVar, cast

from flask import Response
from flask_restx import Resource

from app.admin import get_admin_config
from app.infra.route_safety import safe_route_call
from app.utils.logging.context_vars import admin_model_var
from app.utils.response_utils import jsonify_unified_success

if TYPE_CHECKING:
    from app.admin.model_config import ModelConfig
    from app.core.types import ContextDict, JsonValue, LoggerExtra, RouteSafetyOptions

R = TypeVar("R")


class BaseResource(Resource):
    """统一封套、后台模型解析与 safe_route_call 适配."""

    def success(
        self,
        data: object | None = None,
        message: object | None = None,
        *,
        status: int = 200,
        meta: Mapping[str, object] | None = None,
    ) -> Response:
        """成功封套. RestX 只原样透传单个 Response,状态码写在 Response 上."""
        response, status_code = jsonify_unified_success(data=data, message=message, status=status, meta=meta)
        response.status_code = status_code
        return response

    def model_config(self, model_name: str) -> ModelConfig:
        """按 URL 中的模型名取配置,并写入日志上下文.

        Raises:
            NotFoundError: 模型未纳入后台管理.

        """
        config = get_admin_config().model(model_name)
        admin_model_var.set(config.name)
        return config

    def safe_call(
        self,
        func: Callable[[], R],
        *,
        module: str,
        action: str,
        public_error: str,
        context: ContextDict | None = None,
        extra: LoggerExtra | None = None,
        **options: RouteSafetyOptions,
    ) -> R:
        return safe_route_call(
            func,
            module=module,
            action=action,
            public_error=public_error,
            context=cast("ContextDict | None", context),
            extra=cast("dict[str, JsonValue] | None", extra),
            **cast("dict[str, Any]", options),
        )
