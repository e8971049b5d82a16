"""工具模块.

主要工具:
- structlog_config: 结构化日志配置
- response_utils: 统一 JSON 响应封装
- request_payload: 表单/JSON 请求体解析(支持 ``model[field]`` 嵌套键)
- pagination_utils: 分页参数解析
"""
