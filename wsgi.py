"""珊瑚后台 - WSGI 入口文件, 提供生产与本地统一启动方式."""

from __future__ import annotations

import os
from typing import Final

from app import create_app
from app.utils.structlog_config import get_system_logger

DEFAULT_HOST: Final[str] = "127.0.0.1"
DEFAULT_PORT: Final[str] = "5001"

application = app = create_app()


def _resolve_host_and_port() -> tuple[str, int]:
    """解析运行时绑定信息, 默认使用 127.0.0.1."""
    host = os.environ.get("FLASK_HOST") or DEFAULT_HOST
    port = int(os.environ.get("FLASK_PORT", DEFAULT_PORT))
    return host, port


def main() -> None:
    """启动开发服务器并输出访问入口."""
    host, port = _resolve_host_and_port()
    logger = get_system_logger()
    logger.info("珊瑚后台已启动", host=host, port=port, debug=application.debug)
    logger.info("管理后台", url=f"http://{host}:{port}{application.config['ADMIN_URL_PREFIX']}")
    logger.info("API 文档", url=f"http://{host}:{port}/api/v1/docs")
    application.run(host=host, port=port, debug=application.debug, use_reloader=False)


if __name__ == "__main__":
    main()
