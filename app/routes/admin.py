"""珊瑚后台 - 通用 CRUD 路由.

每个纳入管理的模型共用同一组视图: 列表、新建、展示、编辑、删除.
写操作经 `safe_route_call` 统一提交/回滚;字段级校验失败时回填表单并返回 422.
"""

from __future__ import annotations

from flask import Blueprint, Response, abort, flash, redirect, render_template, request, url_for
from flask.views import MethodView

from app.admin import get_admin_config
from app.admin.model_config import ModelConfig
from app.constants import FlashCategory, HttpStatus
from app.constants.system_constants import SuccessMessages
from app.core.exceptions import RecordValidationError
from app.core.types import FieldErrorMapping, MutablePayloadDict
from app.infra.route_safety import safe_route_call
from app.repositories.admin_records_repository import AdminRecordsRepository
from app.services.admin import RecordFormService, RecordReadService, RecordWriteService
from app.utils.logging.context_vars import admin_model_var
from app.utils.pagination_utils import resolve_pagination
from app.utils.request_payload import parse_payload
from app.utils.response_utils import jsonify_unified_success

admin_bp = Blueprint("admin", __name__)

_read_service = RecordReadService()
_write_service = RecordWriteService()
_form_service = RecordFormService()

_OVERRIDE_METHODS = frozenset({"PUT", "PATCH", "DELETE"})


def _model_config(model_name: str) -> ModelConfig:
    config = get_admin_config().model(model_name)
    admin_model_var.set(config.name)
    return config


def _is_modal() -> bool:
    return (request.values.get("modal") or "").lower() == "true"


def _extract_payload(model_config: ModelConfig) -> MutablePayloadDict:
    source = request.get_json(silent=True) if request.is_json else request.form
    list_fields = [
        field.method_name
        for field in model_config.form_fields
        if field.association is not None and field.association.is_has_many
    ]
    return parse_payload(source, param_key=model_config.param_key, list_fields=list_fields)


def _render_form(
    model_config: ModelConfig,
    resource: object | None,
    *,
    submitted: MutablePayloadDict | None = None,
    errors: FieldErrorMapping | None = None,
    status: int = HttpStatus.OK,
) -> tuple[str, int]:
    states = _form_service.build(model_config, resource, submitted=submitted, errors=errors)
    html = render_template(
        "admin/form.html",
        model=model_config,
        resource=resource,
        record_key=model_config.object_key(resource) if resource is not None else None,
        fields=states,
        errors=errors or {},
        modal=_is_modal(),
    )
    return html, status


def _saved_response(model_config: ModelConfig, record: object, *, created: bool) -> Response | tuple[Response, int]:
    record_key = model_config.object_key(record)
    template = SuccessMessages.RECORD_CREATED if created else SuccessMessages.RECORD_UPDATED
    message = template.format(model=model_config.label)
    if request.is_json or _is_modal():
        return jsonify_unified_success(
            data={"id": record_key, "label": model_config.object_label(record)},
            message=message,
            status=HttpStatus.CREATED if created else HttpStatus.OK,
        )
    flash(message, FlashCategory.SUCCESS)
    return redirect(url_for("admin.show", model_name=model_config.name, record_key=record_key))


@admin_bp.context_processor
def inject_admin_models() -> dict[str, object]:
    """导航栏所需的模型列表."""
    return {"admin_models": get_admin_config().models}


@admin_bp.route("/")
def dashboard() -> str:
    """后台首页,列出所有纳入管理的模型及记录数."""
    admin = get_admin_config()
    models = [(config, AdminRecordsRepository.count(config.model)) for config in admin.models]
    return render_template("admin/dashboard.html", models=models)


class RecordCollectionView(MethodView):
    """``/<model_name>``: GET 列表, POST 新建."""

    def get(self, model_name: str) -> str:
        model_config = _model_config(model_name)
        admin = model_config.admin
        search = request.args.get("query", "", type=str)
        params = resolve_pagination(
            request.args,
            default_size=admin.default_page_size,
            max_size=admin.max_page_size,
            module="admin",
            action="index",
        )
        page_result, rows = _read_service.list_page(
            model_config,
            page=params.page,
            limit=params.limit,
            search=search,
        )
        return render_template(
            "admin/index.html",
            model=model_config,
            columns=[
                field
                for field in model_config.visible_fields
                if field.association is None or not field.association.is_has_many
            ],
            rows=rows,
            page=page_result,
            search=search,
        )

    def post(self, model_name: str) -> Response | tuple[str, int] | tuple[Response, int]:
        model_config = _model_config(model_name)
        payload = _extract_payload(model_config)

        def _execute() -> object:
            return _write_service.upsert(model_config, payload)

        try:
            record = safe_route_call(
                _execute,
                module="admin",
                action="create",
                public_error=f"创建 {model_config.label} 失败",
                context={"model": model_config.name},
            )
        except RecordValidationError as exc:
            if request.is_json:
                raise
            return _render_form(
                model_config,
                None,
                submitted=payload,
                errors=exc.errors,
                status=HttpStatus.UNPROCESSABLE_ENTITY,
            )
        return _saved_response(model_config, record, created=True)


class RecordView(MethodView):
    """``/<model_name>/<record_key>``: GET 展示, PUT 更新, DELETE 删除.

    HTML 表单通过 POST 携带 ``_method=put|delete`` 模拟.
    """

    def get(self, model_name: str, record_key: str) -> str:
        model_config = _model_config(model_name)
        record = _read_service.load(model_config, record_key)
        return render_template(
            "admin/show.html",
            model=model_config,
            record=record,
            record_key=model_config.object_key(record),
            record_label=model_config.object_label(record),
            values=_read_service.detail(model_config, record),
        )

    def post(self, model_name: str, record_key: str) -> Response | tuple[str, int] | tuple[Response, int]:
        override = (request.form.get("_method") or "").upper()
        if override not in _OVERRIDE_METHODS:
            abort(HttpStatus.METHOD_NOT_ALLOWED)
        if override == "DELETE":
            return self.delete(model_name, record_key)
        return self.put(model_name, record_key)

    def put(self, model_name: str, record_key: str) -> Response | tuple[str, int] | tuple[Response, int]:
        model_config = _model_config(model_name)
        record = _read_service.load(model_config, record_key)
        payload = _extract_payload(model_config)

        def _execute() -> object:
            return _write_service.upsert(model_config, payload, record)

        try:
            saved = safe_route_call(
                _execute,
                module="admin",
                action="update",
                public_error=f"更新 {model_config.label} 失败",
                context={"model": model_config.name, "record_key": record_key},
            )
        except RecordValidationError as exc:
            if request.is_json:
                raise
            # 回滚后重新加载,避免回填已被撤销的内存状态
            record = _read_service.load(model_config, record_key)
            return _render_form(
                model_config,
                record,
                submitted=payload,
                errors=exc.errors,
                status=HttpStatus.UNPROCESSABLE_ENTITY,
            )
        return _saved_response(model_config, saved, created=False)

    patch = put

    def delete(self, model_name: str, record_key: str) -> Response | tuple[Response, int]:
        model_config = _model_config(model_name)
        record = _read_service.load(model_config, record_key)

        def _execute() -> None:
            _write_service.delete(model_config, record)

        safe_route_call(
            _execute,
            module="admin",
            action="delete",
            public_error=f"删除 {model_config.label} 失败",
            context={"model": model_config.name, "record_key": record_key},
        )
        message = SuccessMessages.RECORD_DELETED.format(model=model_config.label)
        if request.is_json:
            return jsonify_unified_success(data={"id": record_key}, message=message)
        flash(message, FlashCategory.SUCCESS)
        return redirect(url_for("admin.index", model_name=model_config.name))


@admin_bp.route("/<model_name>/new")
def new(model_name: str) -> tuple[str, int]:
    """新建表单,查询参数 ``<param_key>[<字段>]`` 用于预填(例如从关联记录跳转)."""
    model_config = _model_config(model_name)
    prefill = parse_payload(request.args, param_key=model_config.param_key)
    return _render_form(model_config, None, submitted=prefill)


@admin_bp.route("/<model_name>/<record_key>/edit")
def edit(model_name: str, record_key: str) -> tuple[str, int]:
    """编辑表单."""
    model_config = _model_config(model_name)
    record = _read_service.load(model_config, record_key)
    return _render_form(model_config, record)


@admin_bp.route("/<model_name>/<record_key>/edit", methods=["POST", "PUT"])
def update(model_name: str, record_key: str) -> Response | tuple[str, int] | tuple[Response, int]:
    """编辑表单的提交入口,与 ``PUT /<model_name>/<record_key>`` 等价."""
    return RecordView().put(model_name, record_key)


@admin_bp.route("/<model_name>/<record_key>/delete", methods=["POST"])
def delete(model_name: str, record_key: str) -> Response | tuple[Response, int]:
    """删除入口,与 ``DELETE /<model_name>/<record_key>`` 等价."""
    return RecordView().delete(model_name, record_key)


_collection_view = RecordCollectionView.as_view("index")
_record_view = RecordView.as_view("show")
admin_bp.add_url_rule("/<model_name>", view_func=_collection_view, methods=["GET", "POST"])
admin_bp.add_url_rule(
    "/<model_name>/<record_key>",
    view_func=_record_view,
    methods=["GET", "POST", "PUT", "PATCH", "DELETE"],
)
