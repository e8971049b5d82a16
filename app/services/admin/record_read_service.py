"""后台记录读取 Service.

职责:
- 按编码主键加载记录,组织列表页与展示页 DTO
- 不做 Query 细节、不做序列化/Response、不 commit
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from app.constants.system_constants import ErrorMessages
from app.core.exceptions import NotFoundError
from app.core.types import AssociationLink, DisplayValue, RecordPage, RecordRow
from app.repositories.admin_records_repository import AdminRecordsRepository

if TYPE_CHECKING:
    from sqlalchemy import Column

    from app.admin.fields.base import Field
    from app.admin.model_config import ModelConfig


class RecordReadService:
    """后台记录读取服务."""

    def __init__(self, repository: AdminRecordsRepository | None = None) -> None:
        self._repository = repository or AdminRecordsRepository()

    def load(self, model_config: ModelConfig, raw_key: str) -> object:
        """按 URL 中的主键加载记录.

        Raises:
            NotFoundError: 主键格式无效或记录不存在.

        """
        key = model_config.decode_object_key(raw_key)
        record = self._repository.get(model_config.model, key)
        if record is None:
            raise NotFoundError(
                ErrorMessages.RECORD_NOT_FOUND.format(model=model_config.label),
                extra={"model": model_config.name, "record_key": raw_key},
            )
        return record

    def list_page(
        self,
        model_config: ModelConfig,
        *,
        page: int,
        limit: int,
        search: str | None = None,
    ) -> tuple[RecordPage, list[RecordRow]]:
        """分页列出记录,关键字在字符串列上做子串匹配."""
        page_result = self._repository.list_page(
            model_config.model,
            page=page,
            limit=limit,
            search=search,
            search_columns=self._search_columns(model_config),
        )
        rows = [
            RecordRow(
                key=model_config.object_key(record),
                label=model_config.object_label(record),
                cells=[
                    self.display(field, record)
                    for field in model_config.visible_fields
                    if field.association is None or not field.association.is_has_many
                ],
            )
            for record in page_result.items
        ]
        return page_result, rows

    def detail(self, model_config: ModelConfig, record: object) -> list[DisplayValue]:
        """展示页字段列表."""
        return [self.display(field, record) for field in model_config.visible_fields]

    def display(self, field: Field, record: object) -> DisplayValue:
        """单个字段的展示值,关联字段输出指向目标记录的链接."""
        if field.association is None:
            return DisplayValue(name=field.name, label=field.label, text=field.format_value(field.value(record)))

        admin = field.model_config.admin
        target_config = admin.config_for(field.association.target_model)
        linked = field.value(record)
        targets = list(linked or ()) if field.association.is_has_many else ([linked] if linked is not None else [])
        links = [
            AssociationLink(
                model=target_config.name if target_config.included else None,
                key=target_config.object_key(target),
                label=target_config.object_label(target),
            )
            for target in targets
        ]
        return DisplayValue(
            name=field.name,
            label=field.label,
            text=", ".join(link.label for link in links),
            links=links,
            is_association=True,
        )

    @staticmethod
    def _search_columns(model_config: ModelConfig) -> list[Column]:
        return [
            field.column
            for field in model_config.visible_fields
            if field.column is not None and field.type_name in {"string", "text"}
        ]


__all__ = ["RecordReadService"]
