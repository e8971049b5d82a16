"""
响应工具函数单元测试
"""

import re
from typing import Any

import pytest
from flask import Flask
from werkzeug.exceptions import MethodNotAllowed

from app.constants.system_constants import ErrorCategory, ErrorSeverity, SuccessMessages
from app.core.exceptions import ConflictError, MalformedKeyError, RecordValidationError, ValidationError
from app.utils.response_utils import (
    jsonify_unified_error,
    jsonify_unified_success,
    unified_error_response,
    unified_success_response,
)


@pytest.fixture
def flask_app() -> Any:
    """构造临时 Flask 应用，供 jsonify 系列函数使用"""
    app = Flask(__name__)
    app.config["TESTING"] = True
    return app


@pytest.mark.unit
def test_unified_success_response_default():
    """默认成功响应结构包含必要字段"""
    payload, status = unified_success_response()

    assert status == 200
    assert payload["success"] is True
    assert payload["error"] is False
    assert payload["message"] == SuccessMessages.OPERATION_SUCCESS
    assert re.match(r"\d{4}-\d{2}-\d{2}T", payload["timestamp"])
    assert "data" not in payload


@pytest.mark.unit
def test_unified_success_response_with_data():
    """成功响应包含 data 与 meta"""
    data = {"id": "1,2", "label": "Fanship #1,2"}
    meta = {"page": 1}

    payload, status = unified_success_response(data=data, meta=meta, message="Fanship 创建成功", status=201)

    assert status == 201
    assert payload["message"] == "Fanship 创建成功"
    assert payload["data"] == data
    assert payload["meta"] == meta


@pytest.mark.unit
def test_jsonify_unified_success(flask_app: Any):
    """jsonify 版本的成功响应可直接返回 HTTP Response"""
    with flask_app.app_context():
        response, status = jsonify_unified_success(data={"key": "value"})

        assert status == 200
        json_data = response.get_json()
        assert json_data["error"] is False
        assert json_data["data"] == {"key": "value"}


@pytest.mark.unit
def test_unified_error_response_from_app_error(flask_app: Any):
    """AppError 子类可正确映射到 HTTP 状态码与分类"""
    with flask_app.test_request_context("/"):
        payload, status = unified_error_response(ValidationError("参数错误"))

    assert status == 400
    assert payload["error"] is True
    assert payload["success"] is False
    assert payload["category"] == ErrorCategory.VALIDATION.value
    assert payload["severity"] == ErrorSeverity.LOW.value
    assert payload["recoverable"] is True
    assert payload["message"] == "参数错误"


@pytest.mark.unit
def test_record_validation_error_carries_field_errors(flask_app: Any):
    """字段级校验失败返回 422 并携带 errors 映射"""
    error = RecordValidationError({"draft": ["未找到关联记录"]}, model="player")

    with flask_app.test_request_context("/"):
        payload, status = unified_error_response(error)

    assert status == 422
    assert payload["errors"] == {"draft": ["未找到关联记录"]}
    assert payload["message_code"] == "RECORD_INVALID"


@pytest.mark.unit
@pytest.mark.parametrize(
    ("error", "expected_status"),
    [
        (MalformedKeyError("1", expected_parts=2), 404),
        (ConflictError(), 409),
        (MethodNotAllowed(), 405),
        (RuntimeError("boom"), 500),
    ],
)
def test_error_status_mapping(flask_app: Any, error: Exception, expected_status: int):
    """异常类型到 HTTP 状态码的映射"""
    with flask_app.test_request_context("/"):
        response, status = jsonify_unified_error(error)

    assert status == expected_status
    assert response.get_json()["error"] is True


@pytest.mark.unit
def test_unexpected_error_does_not_leak_exception_text(flask_app: Any):
    """未知异常不向外暴露原始异常文本"""
    with flask_app.test_request_context("/"):
        payload, status = unified_error_response(RuntimeError("password=secret"))

    assert status == 500
    assert "secret" not in payload["message"]
