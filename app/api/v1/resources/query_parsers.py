"""API v1 query 参数解析工具.

约束:
- 仅用于 API 层的 query params(`request.args`)
- 通过 `flask_restx.reqparse.RequestParser` 统一解析并配合 `@ns.expect(parser)`
"""

from __future__ import annotations

from typing import Final

from flask_restx import reqparse

_DEFAULT_BUNDLE_ERRORS: Final[bool] = True


def new_parser(*, bundle_errors: bool = _DEFAULT_BUNDLE_ERRORS) -> reqparse.RequestParser:
    """构造统一配置的 RequestParser."""
    return reqparse.RequestParser(bundle_errors=bundle_errors)


def build_candidates_parser() -> reqparse.RequestParser:
    """关联候选项检索参数: query 为检索文本, limit 为期望条数."""
    parser = new_parser()
    parser.add_argument("query", type=str, default="", location="args", help="按展示名检索的文本")
    parser.add_argument("limit", type=int, default=None, location="args", help="期望条数,超过上限时截断")
    return parser
