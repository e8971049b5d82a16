"""HTTP 头常量.

请求追踪与代理协议检测用到的头名称.
"""


class HttpHeaders:
    """HTTP 头常量."""

    # 代理和转发
    X_FORWARDED_PROTO = "X-Forwarded-Proto"
    X_FORWARDED_SSL = "X-Forwarded-Ssl"

    # 请求追踪
    X_REQUEST_ID = "X-Request-ID"
