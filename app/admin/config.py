"""后台配置对象.

AdminConfig 在 `create_app` 中构建一次,挂载在 ``app.extensions["coral_admin"]``,
请求处理时通过 `get_admin_config()` 取用. 注册表与模型配置均由显式调用构建,
不存在模块级的全局注册表.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from importlib import import_module
from typing import TYPE_CHECKING, cast

from flask import current_app
from sqlalchemy import inspect as sa_inspect

from app.admin.fields.registry import FieldTypeRegistry, build_registry
from app.admin.model_config import ModelConfig, underscore
from app.constants.system_constants import ErrorMessages
from app.core.exceptions import ConfigurationError, NotFoundError
from app.utils.structlog_config import log_info

if TYPE_CHECKING:
    from app.admin.fields.base import FieldTypeDescriptor
    from app.settings import Settings

EXTENSION_KEY = "coral_admin"


class AdminConfig:
    """后台整体配置: 字段类型注册表、纳入管理的模型与全局上限."""

    def __init__(
        self,
        registry: FieldTypeRegistry,
        *,
        url_prefix: str = "/admin",
        associated_collection_limit: int = 100,
        remote_candidate_limit: int = 30,
        default_page_size: int = 20,
        max_page_size: int = 200,
    ) -> None:
        self.registry = registry
        self.url_prefix = url_prefix
        self.associated_collection_limit = associated_collection_limit
        self.remote_candidate_limit = remote_candidate_limit
        self.default_page_size = default_page_size
        self.max_page_size = max_page_size
        self._by_name: dict[str, ModelConfig] = {}
        self._by_class: dict[type, ModelConfig] = {}

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        *,
        extra_field_types: Iterable[FieldTypeDescriptor] = (),
    ) -> AdminConfig:
        """按 Settings 构建配置,并纳入 ADMIN_MODELS 声明的模型."""
        admin = cls(
            build_registry(extra_field_types),
            url_prefix=settings.admin_url_prefix,
            associated_collection_limit=settings.admin_associated_collection_limit,
            remote_candidate_limit=settings.admin_remote_candidate_limit,
            default_page_size=settings.admin_default_page_size,
            max_page_size=settings.admin_max_page_size,
        )
        for model in import_models(settings.admin_models):
            admin.configure(model)
        return admin

    def configure(
        self,
        model: type,
        *,
        fields: Sequence[str] | None = None,
        overrides: Mapping[str, Mapping[str, object]] | None = None,
        label: str | None = None,
    ) -> ModelConfig:
        """纳入(或重新配置)一个模型.

        Args:
            model: SQLAlchemy 映射类.
            fields: 字段顺序与取舍,缺省按内省结果.
            overrides: 字段级选项覆盖,例如 ``{"team": {"associated_collection_cache_all": False}}``.
            label: 模型展示名.

        Returns:
            生成的 ModelConfig.

        Raises:
            ConfigurationError: 模型名冲突、字段或字段类型不存在.

        """
        config = ModelConfig(model, self, fields=fields, overrides=overrides, label=label, included=True)
        existing = self._by_name.get(config.name)
        if existing is not None and existing.model is not model:
            raise ConfigurationError(f"模型名称冲突: {config.name}")

        self._by_name[config.name] = config
        self._by_class[model] = config
        self._ensure_targets(config)
        log_info("后台模型已纳入管理", module="admin", model=config.name, fields=[f.name for f in config.fields])
        return config

    def model(self, name_or_class: str | type) -> ModelConfig:
        """获取纳入管理的模型配置.

        Raises:
            NotFoundError: 模型未纳入后台管理.

        """
        if isinstance(name_or_class, str):
            config = self._by_name.get(name_or_class)
        else:
            config = self._by_class.get(name_or_class)
        if config is None or not config.included:
            display = name_or_class if isinstance(name_or_class, str) else underscore(name_or_class.__name__)
            raise NotFoundError(ErrorMessages.UNKNOWN_MODEL.format(name=display), extra={"model": display})
        return config

    def config_for(self, model: type) -> ModelConfig:
        """获取任意模型(含仅作为关联目标出现的模型)的配置."""
        config = self._by_class.get(model)
        if config is None:
            config = self._build_hidden(model)
            self._ensure_targets(config)
        return config

    def is_included(self, model: type) -> bool:
        config = self._by_class.get(model)
        return config is not None and config.included

    @property
    def models(self) -> list[ModelConfig]:
        return [config for config in self._by_name.values() if config.included]

    def _build_hidden(self, model: type) -> ModelConfig:
        config = ModelConfig(model, self, included=False)
        self._by_class[model] = config
        return config

    def _ensure_targets(self, config: ModelConfig) -> None:
        pending = [config]
        while pending:
            current = pending.pop()
            for field in current.association_fields:
                target = cast(type, field.association.target_model)  # type: ignore[union-attr]
                if target not in self._by_class:
                    pending.append(self._build_hidden(target))


def import_models(paths: Iterable[str]) -> list[type]:
    """把 ``module:Class`` 形式的导入路径解析为映射类."""
    models: list[type] = []
    for path in paths:
        module_path, _, attr = path.partition(":")
        try:
            model = getattr(import_module(module_path), attr)
        except (ImportError, AttributeError) as exc:
            raise ConfigurationError(f"无法导入后台模型: {path}") from exc
        if sa_inspect(model, raiseerr=False) is None:
            raise ConfigurationError(f"不是 SQLAlchemy 映射类: {path}")
        models.append(model)
    return models


def get_admin_config() -> AdminConfig:
    """从当前应用取出 AdminConfig."""
    return cast(AdminConfig, current_app.extensions[EXTENSION_KEY])


__all__ = ["EXTENSION_KEY", "AdminConfig", "get_admin_config", "import_models"]
