"""OpenAPI: 统一 JSON 封套模型.

仅用于文档表达; 实际响应由 `jsonify_unified_success` 与全局错误处理器生成.
"""

from __future__ import annotations

from flask_restx import Namespace, fields

ERROR_ENVELOPE_NAME = "ErrorEnvelope"

_TIMESTAMP = fields.String(required=True, description="时间戳(ISO8601)", example="2026-01-01T00:00:00+00:00")


def get_error_envelope_model(ns: Namespace):
    """注册/获取错误封套 Model(同一 namespace 只注册一次)."""
    if ERROR_ENVELOPE_NAME in ns.models:
        return ns.models[ERROR_ENVELOPE_NAME]

    return ns.model(
        ERROR_ENVELOPE_NAME,
        {
            "success": fields.Boolean(required=True, example=False),
            "error": fields.Boolean(required=True, example=True),
            "error_id": fields.String(required=True, description="错误ID", example="9f1c2e"),
            "category": fields.String(required=True, description="错误分类", example="business"),
            "severity": fields.String(required=True, description="严重程度", example="low"),
            "message_code": fields.String(required=True, description="错误码", example="MALFORMED_KEY"),
            "message": fields.String(required=True, description="可展示的错误摘要", example="主键格式无效"),
            "timestamp": _TIMESTAMP,
            "recoverable": fields.Boolean(required=True, example=True),
            "suggestions": fields.List(fields.String, required=True, description="处理建议"),
            "context": fields.Raw(required=True, description="请求上下文(request_id、后台模型等)", example={}),
            "errors": fields.Raw(
                required=False,
                description="字段级错误,仅记录校验失败时返回",
                example={"draft": ["未找到关联记录"]},
            ),
            "extra": fields.Raw(required=False, description="非敏感诊断字段", example={}),
        },
    )


def make_success_envelope_model(ns: Namespace, name: str, data_model=None):
    """构建成功封套 Model; ``data_model`` 为空时 data 以 Raw 表达."""
    data_field = (
        fields.Raw(required=False, description="响应数据", example={})
        if data_model is None
        else fields.Nested(data_model, required=False, description="响应数据")
    )
    return ns.model(
        name,
        {
            "success": fields.Boolean(required=True, example=True),
            "error": fields.Boolean(required=True, example=False),
            "message": fields.String(required=True, description="可展示的成功摘要", example="操作成功"),
            "timestamp": _TIMESTAMP,
            "data": data_field,
            "meta": fields.Raw(required=False, description="元数据", example={}),
        },
    )
