"""Flask-RESTX Api 定制.

- RestX 内部错误(含 reqparse 校验失败)统一映射为 `unified_error_response`
- `/api/v1/` 根路径返回可发现性入口
"""

from __future__ import annotations

from flask import Response, jsonify, request
from flask_restx import Api

from app.utils.response_utils import jsonify_unified_success, unified_error_response
from app.utils.structlog_config import ErrorContext


class CoralApi(Api):
    """统一错误封套的 RestX Api."""

    def render_root(self) -> tuple[Response, int]:  # type: ignore[override]
        prefix = request.path.rstrip("/")
        return jsonify_unified_success(
            data={
                "docs_url": f"{prefix}{self._doc}" if self._doc else None,
                "openapi_url": f"{prefix}/openapi.json",
                "models_url": f"{prefix}/admin/models",
                "field_types_url": f"{prefix}/admin/field-types",
            },
            message="API v1 已就绪",
        )

    def handle_error(self, e: Exception) -> Response:  # type: ignore[override]
        payload, status_code = unified_error_response(e, context=ErrorContext(e, request))
        response = jsonify(payload)
        response.status_code = status_code
        return response
