"""珊瑚后台核心: 字段类型注册表、模型配置与关联解析."""

from app.admin.config import EXTENSION_KEY, AdminConfig, get_admin_config
from app.admin.model_config import ModelConfig

__all__ = ["EXTENSION_KEY", "AdminConfig", "ModelConfig", "get_admin_config"]
