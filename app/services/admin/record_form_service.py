"""后台表单状态 Service.

把 ModelConfig 的字段列表转换为模板可直接渲染的 FieldState: 控件名称/id、
回填值、预加载候选项、远程模式下已选项的展示名以及字段级错误.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, cast

from sqlalchemy import inspect as sa_inspect

from app.admin.associations.candidates import AssociationCandidateService
from app.admin.associations.keys import encode_key, key_values
from app.admin.associations.resolver import AssociationResolver
from app.core.exceptions import NotFoundError
from app.core.types import CandidateItem

if TYPE_CHECKING:
    from app.admin.fields.base import Field
    from app.admin.model_config import ModelConfig
    from app.core.types import FieldErrorMapping, PayloadValue

REMOTE_WIDGETS = frozenset({"filtering_select", "filtering_multiselect"})


@dataclass(slots=True)
class FieldState:
    """单个表单控件的渲染状态.

    Attributes:
        field: 字段对象.
        input_id: 控件 id,例如 ``player_draft_id``.
        input_name: 控件 name,例如 ``player[draft_id]``.
        widget: 控件类型(view_helper).
        value: 回填值,多选为字符串列表.
        checked: 复选框是否勾选.
        options: 预加载模式的候选项.
        selected: 已选目标(含展示名),远程模式用于回填输入框.
        errors: 字段级错误文案.
        nested: 嵌套子表单的字段状态.
        target_model: 关联目标模型名,目标未纳入后台管理时为 None.
        create_params: "新建关联记录" 链接的预填参数,为 None 时不展示链接.

    """

    field: Field
    input_id: str
    input_name: str
    widget: str
    value: str | list[str] = ""
    checked: bool = False
    options: list[CandidateItem] = field(default_factory=list)
    selected: list[CandidateItem] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)
    nested: list[FieldState] = field(default_factory=list)
    target_model: str | None = None
    create_params: dict[str, str] | None = None

    @property
    def label(self) -> str:
        return self.field.label

    @property
    def required(self) -> bool:
        return self.field.required

    @property
    def is_remote(self) -> bool:
        return self.widget in REMOTE_WIDGETS

    @property
    def is_multiple(self) -> bool:
        return isinstance(self.value, list)

    @property
    def create_link_args(self) -> dict[str, str]:
        """新建关联记录链接的查询参数,以弹窗方式打开."""
        return {**(self.create_params or {}), "modal": "true"}

    def is_selected(self, key: str) -> bool:
        if isinstance(self.value, list):
            return key in self.value
        return key == self.value


class RecordFormService:
    """表单状态构建服务."""

    def __init__(
        self,
        candidates: AssociationCandidateService | None = None,
        resolver: AssociationResolver | None = None,
    ) -> None:
        self._candidates = candidates or AssociationCandidateService()
        self._resolver = resolver or AssociationResolver()

    def build(
        self,
        model_config: ModelConfig,
        resource: object | None = None,
        *,
        submitted: Mapping[str, PayloadValue] | None = None,
        errors: FieldErrorMapping | None = None,
    ) -> list[FieldState]:
        """构建整张表单的字段状态.

        Args:
            model_config: 模型配置.
            resource: 编辑中的记录,新建时为 None.
            submitted: 已提交(或通过查询参数预填)的字段值,优先于记录上的值.
            errors: 字段级错误,嵌套字段使用 ``<关联>.<字段>`` 键.

        Returns:
            按字段顺序排列的 FieldState 列表.

        """
        return self._build_states(
            model_config,
            model_config.form_fields,
            resource,
            submitted or {},
            errors or {},
            name_scope=model_config.param_key,
            id_scope=model_config.param_key,
            error_prefix="",
        )

    def _build_states(
        self,
        model_config: ModelConfig,
        fields: Sequence[Field],
        resource: object | None,
        submitted: Mapping[str, PayloadValue],
        errors: FieldErrorMapping,
        *,
        name_scope: str,
        id_scope: str,
        error_prefix: str,
    ) -> list[FieldState]:
        states: list[FieldState] = []
        for item in fields:
            multiple = item.association is not None and item.association.is_has_many
            state = FieldState(
                field=item,
                input_id=f"{id_scope}_{item.method_name}",
                input_name=f"{name_scope}[{item.method_name}]" + ("[]" if multiple else ""),
                widget=item.view_helper,
                errors=list(errors.get(f"{error_prefix}{item.name}", ())),
            )
            if item.association is None:
                self._fill_column(state, resource, submitted)
            elif item.nested:
                self._fill_nested(state, model_config, resource, submitted, errors, name_scope, id_scope, error_prefix)
            else:
                self._fill_association(state, resource, submitted)
            states.append(state)
        return states

    @staticmethod
    def _fill_column(state: FieldState, resource: object | None, submitted: Mapping[str, PayloadValue]) -> None:
        item = state.field
        if item.method_name in submitted:
            raw = submitted[item.method_name]
            if isinstance(raw, Sequence) and not isinstance(raw, str):
                raw = raw[-1] if raw else None
            text = "" if raw is None else str(raw)
            state.value = text
            if item.field_type.is_a("boolean"):
                try:
                    state.checked = bool(text) and bool(item.parse_input(text))
                except ValueError:
                    state.checked = False
        else:
            state.value = item.form_value(resource)
            if item.field_type.is_a("boolean"):
                state.checked = bool(item.value(resource)) if resource is not None else False

        choices = cast("tuple[str, ...]", item.option("enum", ()))
        state.options = [CandidateItem(id=choice, label=choice) for choice in choices]

    def _fill_association(
        self,
        state: FieldState,
        resource: object | None,
        submitted: Mapping[str, PayloadValue],
    ) -> None:
        item = state.field
        descriptor = item.association
        if descriptor is None:
            return
        admin = item.model_config.admin
        target_config = admin.config_for(descriptor.target_model)
        state.target_model = target_config.name if target_config.included else None

        if item.method_name in submitted:
            state.value = self._submitted_keys(submitted[item.method_name], many=descriptor.is_has_many)
            state.selected = self._lookup_selected(item, state.value)
        else:
            state.value = self._resolver.current_key(resource, descriptor)
            linked = item.value(resource) if resource is not None else None
            records = list(linked or ()) if descriptor.is_has_many else ([linked] if linked is not None else [])
            state.selected = [
                CandidateItem(id=self._candidate_key(item, record), label=target_config.object_label(record))
                for record in records
            ]

        if not state.is_remote:
            state.options = self._candidates.preload(item)
            known = {option["id"] for option in state.options}
            # 已选目标超出预加载范围时补入选项,保证回填
            state.options.extend(option for option in state.selected if option["id"] not in known)

        state.create_params = self._create_params(item, resource, state.target_model)

    def _fill_nested(
        self,
        state: FieldState,
        model_config: ModelConfig,
        resource: object | None,
        submitted: Mapping[str, PayloadValue],
        errors: FieldErrorMapping,
        name_scope: str,
        id_scope: str,
        error_prefix: str,
    ) -> None:
        item = state.field
        descriptor = item.association
        if descriptor is None:
            return
        target_config = model_config.admin.config_for(descriptor.target_model)
        child = item.value(resource) if resource is not None else None
        nested_submitted = submitted.get(item.attributes_name)
        state.widget = "nested_form"
        state.nested = self._build_states(
            target_config,
            target_config.nested_form_fields(descriptor.inverse),
            child,
            nested_submitted if isinstance(nested_submitted, Mapping) else {},
            errors,
            name_scope=f"{name_scope}[{item.attributes_name}]",
            id_scope=f"{id_scope}_{item.attributes_name}",
            error_prefix=f"{error_prefix}{item.name}.",
        )

    def _lookup_selected(self, item: Field, value: str | list[str]) -> list[CandidateItem]:
        descriptor = item.association
        if descriptor is None:
            return []
        target_config = item.model_config.admin.config_for(descriptor.target_model)
        keys = value if isinstance(value, list) else ([value] if value else [])
        selected: list[CandidateItem] = []
        for key in keys:
            try:
                record = self._resolver.load_target(descriptor, key)
            except NotFoundError:
                continue
            selected.append(CandidateItem(id=key, label=target_config.object_label(record)))
        return selected

    @staticmethod
    def _candidate_key(item: Field, record: object) -> str:
        descriptor = item.association
        return encode_key(key_values(record, descriptor.target_key)) if descriptor is not None else ""

    @staticmethod
    def _submitted_keys(raw: PayloadValue, *, many: bool) -> str | list[str]:
        if isinstance(raw, Sequence) and not isinstance(raw, str):
            values = [str(value) for value in raw if value not in (None, "")]
        else:
            values = [] if raw in (None, "") else [str(raw)]
        if many:
            return values
        return values[-1] if values else ""

    @staticmethod
    def _create_params(item: Field, resource: object | None, target_model: str | None) -> dict[str, str] | None:
        """新建关联记录链接的预填参数.

        belongs_to 只提供空白的新建入口; has_one/has_many 在父记录已保存时
        以 ``<目标>[<外键>]=<引用值>`` 预填外键,使新记录自动指回父记录.
        """
        descriptor = item.association
        if descriptor is None or target_model is None or not item.option("inline_add", False):
            return None
        if descriptor.is_belongs_to:
            return {}
        if resource is None or not sa_inspect(resource).persistent:
            return None

        parent_mapper = item.model_config.mapper
        params: dict[str, str] = {}
        for foreign_key, referenced in zip(descriptor.foreign_key, descriptor.primary_key, strict=True):
            attribute = parent_mapper.get_property_by_column(parent_mapper.local_table.c[referenced]).key
            value = getattr(resource, attribute, None)
            if value is None:
                return None
            params[f"{target_model}[{foreign_key}]"] = str(value)
        return params


__all__ = ["REMOTE_WIDGETS", "FieldState", "RecordFormService"]
