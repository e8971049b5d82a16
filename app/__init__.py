"""珊瑚后台 - Flask 应用初始化.

基于 Flask 的通用数据管理后台: 由 SQLAlchemy 模型内省生成列表、表单与关联选择控件.
"""

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path
from uuid import uuid4

from flask import Flask, jsonify, request
from flask.typing import ResponseReturnValue
from flask_sqlalchemy import SQLAlchemy

from app.constants import FlashCategory, HttpHeaders
from app.settings import Settings
from app.utils.logging.context_vars import admin_model_var, request_id_var
from app.utils.response_utils import unified_error_response
from app.utils.structlog_config import ErrorContext, configure_structlog, get_system_logger

# 初始化扩展
db = SQLAlchemy()


def create_app(*, settings: Settings | None = None) -> Flask:
    """创建 Flask 应用实例.

    Args:
        settings: 可选的配置对象,用于测试或多环境启动.

    Returns:
        Flask: Flask 应用实例

    """
    resolved_settings = settings or Settings.load()
    app = Flask(__name__)

    # 配置应用
    configure_app(app, resolved_settings)

    # 初始化扩展
    db.init_app(app)

    # 构建后台配置(导入 ADMIN_MODELS 并内省映射器)
    initialize_admin(app, resolved_settings)

    # 注册蓝图
    configure_blueprints(app, resolved_settings)

    # 配置日志
    configure_logging(app)

    # 配置统一日志系统
    configure_structlog(app)

    # 设置全局日志级别
    log_level_name = str(app.config.get("LOG_LEVEL", "INFO"))
    logging.getLogger().setLevel(getattr(logging, log_level_name, logging.INFO))

    # 注册全局错误处理器
    @app.errorhandler(Exception)
    def handle_global_exception(error: Exception) -> ResponseReturnValue:
        """全局错误处理."""
        payload, status_code = unified_error_response(error, context=ErrorContext(error, request))
        return jsonify(payload), status_code

    # 配置模板过滤器
    configure_template_filters(app)

    return app


def configure_app(app: Flask, settings: Settings) -> None:
    """写入 Settings 提供的配置并注册基础钩子.

    Args:
        app: Flask 应用实例.
        settings: 统一配置对象,包含环境变量解析、默认值与校验结果.

    Returns:
        None: 写入 `app.config` 后返回.

    """
    app.config.from_mapping(settings.to_flask_config())
    app.config.setdefault("APPLICATION_ROOT", "/")
    _register_protocol_detector(app)
    _register_request_context(app)


def _register_protocol_detector(app: Flask) -> None:
    """注册请求协议检测钩子,适配代理或直连模式."""

    @app.before_request
    def detect_protocol() -> None:
        """动态检测请求协议."""
        if request.headers.get(HttpHeaders.X_FORWARDED_PROTO) == "https":
            app.config["PREFERRED_URL_SCHEME"] = "https"
            return

        if request.is_secure or request.headers.get(HttpHeaders.X_FORWARDED_SSL) == "on":
            app.config["PREFERRED_URL_SCHEME"] = "https"


def _register_request_context(app: Flask) -> None:
    """为每个请求绑定 request_id,并重置后台模型上下文."""

    @app.before_request
    def bind_request_id() -> None:
        request_id_var.set(request.headers.get(HttpHeaders.X_REQUEST_ID) or uuid4().hex)
        admin_model_var.set(None)


def initialize_admin(app: Flask, settings: Settings) -> None:
    """构建 AdminConfig 并挂载到 ``app.extensions``.

    模型内省需要已初始化的 SQLAlchemy 元数据,放在 app context 内执行.
    """
    from app.admin.config import EXTENSION_KEY, AdminConfig  # noqa: PLC0415

    with app.app_context():
        app.extensions[EXTENSION_KEY] = AdminConfig.from_settings(settings)


def configure_blueprints(app: Flask, settings: Settings) -> None:
    """注册后台页面与 JSON API 蓝图.

    Args:
        app: Flask 应用实例.
        settings: 统一配置对象,提供后台 URL 前缀与文档开关.

    Returns:
        None: 蓝图全部注册后返回.

    """
    from app.api import register_api_blueprints  # noqa: PLC0415
    from app.routes.admin import admin_bp  # noqa: PLC0415

    app.register_blueprint(admin_bp, url_prefix=settings.admin_url_prefix)
    register_api_blueprints(app, settings)


def configure_logging(app: Flask) -> None:
    """配置日志系统与文件处理器.

    Args:
        app: Flask 应用实例.

    Returns:
        None: 日志处理器挂载完毕后返回.

    """
    if not app.debug and not app.testing:
        # 创建日志目录
        log_path = Path(app.config["LOG_FILE"])
        log_dir = log_path.parent
        log_dir.mkdir(parents=True, exist_ok=True)

        # 配置文件日志处理器
        file_handler = RotatingFileHandler(
            log_path,
            maxBytes=app.config["LOG_MAX_SIZE"],
            backupCount=app.config["LOG_BACKUP_COUNT"],
        )
        file_handler.setFormatter(
            logging.Formatter("%(asctime)s %(levelname)s: %(message)s [in %(pathname)s:%(lineno)d]"),
        )
        file_handler.setLevel(getattr(logging, app.config["LOG_LEVEL"]))
        app.logger.addHandler(file_handler)

        app.logger.setLevel(getattr(logging, app.config["LOG_LEVEL"]))
        get_system_logger().info("珊瑚后台启动", version=app.config.get("APP_VERSION"))


def configure_template_filters(app: Flask) -> None:
    """注册后台模板过滤器.

    Args:
        app: Flask 应用实例.

    Returns:
        None: 过滤器注册后返回.

    """

    @app.template_filter("flash_css")
    def flash_css_filter(category: str) -> str:
        """Flash 类别到 alert 样式类."""
        return FlashCategory.get_css_class(category)
