"""关联候选项: 预加载选择框与远程(自动补全)检索共用的数据来源."""

from __future__ import annotations

from typing import TYPE_CHECKING

from app.admin.associations.keys import encode_key, key_values
from app.constants.system_constants import ErrorMessages
from app.core.exceptions import ValidationError
from app.core.types import CandidateItem
from app.repositories.admin_records_repository import AdminRecordsRepository
from app.utils.structlog_config import log_debug

if TYPE_CHECKING:
    from collections.abc import Iterable

    from app.admin.fields.base import Field
    from app.admin.model_config import ModelConfig


class AssociationCandidateService:
    """根据关联字段列出可选目标记录."""

    def __init__(self, repository: AdminRecordsRepository | None = None) -> None:
        self._repository = repository or AdminRecordsRepository()

    def list_candidates(
        self,
        model_config: ModelConfig,
        field_name: str,
        query: str | None = None,
        limit: int | None = None,
    ) -> list[CandidateItem]:
        """远程检索: 按展示名做大小写不敏感的子串匹配,结果数不超过上限.

        Args:
            model_config: 声明关联的模型配置.
            field_name: 关联字段名.
            query: 检索文本,为空时返回前 N 条.
            limit: 调用方期望条数,最终取 ``min(limit, ADMIN_REMOTE_CANDIDATE_LIMIT)``.

        Returns:
            ``[{"id": 编码后的主键, "label": 展示名}]``.

        Raises:
            ValidationError: 字段不是关联字段.

        """
        field = self._association_field(model_config, field_name)
        ceiling = model_config.admin.remote_candidate_limit
        bound = ceiling if limit is None or limit <= 0 else min(limit, ceiling)
        target_config = model_config.admin.config_for(field.association.target_model)  # type: ignore[union-attr]
        text = (query or "").strip()

        if not text:
            records = self._repository.first_records(target_config.model, limit=bound)
        elif target_config.label_column is not None:
            candidates = self._repository.iter_label_matches_or_blank(
                target_config.model,
                target_config.label_column,
                text,
            )
            records = self._match_labels(target_config, candidates, text, bound)
        else:
            candidates = self._repository.iter_records(target_config.model)
            records = self._match_labels(target_config, candidates, text, bound)

        items = [self._to_item(field, target_config, record) for record in records]
        log_debug(
            "检索关联候选项",
            module="admin",
            model=model_config.name,
            field=field_name,
            query=text,
            limit=bound,
            result_count=len(items),
        )
        return items

    def preload(self, field: Field) -> list[CandidateItem]:
        """预加载模式: 按主键顺序取前 ``associated_collection_limit`` 条."""
        admin = field.model_config.admin
        target_config = admin.config_for(field.association.target_model)  # type: ignore[union-attr]
        limit = int(field.option("associated_collection_limit"))
        records = self._repository.first_records(target_config.model, limit=limit)
        return [self._to_item(field, target_config, record) for record in records]

    @staticmethod
    def _match_labels(
        target_config: ModelConfig,
        records: Iterable[object],
        text: str,
        bound: int,
    ) -> list[object]:
        # 展示列为空的记录显示为 "<模型名> #<主键>",按最终展示名在内存中匹配,命中数达到上限即停止读取
        needle = text.casefold()
        matched: list[object] = []
        for record in records:
            if needle in target_config.object_label(record).casefold():
                matched.append(record)
                if len(matched) >= bound:
                    break
        return matched

    @staticmethod
    def _to_item(field: Field, target_config: ModelConfig, record: object) -> CandidateItem:
        key = encode_key(key_values(record, field.association.target_key))  # type: ignore[union-attr]
        return CandidateItem(id=key, label=target_config.object_label(record))

    @staticmethod
    def _association_field(model_config: ModelConfig, field_name: str) -> Field:
        field = model_config.field(field_name) if model_config.has_field(field_name) else None
        if field is None or field.association is None:
            raise ValidationError(
                ErrorMessages.UNKNOWN_FIELD.format(model=model_config.name, field=field_name),
                extra={"field": field_name},
            )
        return field


__all__ = ["AssociationCandidateService"]
